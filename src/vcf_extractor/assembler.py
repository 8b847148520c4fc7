"""Assembly of normalized, deduplicated variant records from query rows."""

import logging
import re
from collections.abc import Iterable
from dataclasses import replace

from .annotation import match_annotation, parse_annotation_payload
from .config import ExtractorConfig
from .coverage import resolve_coverage
from .models import (
    NO_ID,
    NOCALL,
    NODATA,
    PLACEHOLDER,
    RawVariantRow,
    VariantKey,
    VariantRecord,
)
from .normalizer import normalize_variant
from .rows import MalformedRowError, parse_count, split_values

logger = logging.getLogger(__name__)

# Symbolic alleles, CNV and fusion breakends from Ion Reporter.
NON_VARIANT_ALT = re.compile(r"[.<>\[\]\d+]")
REASON_PREFIX = ".,"
NOCALL_GENOTYPE = "./."
REFERENCE_GENOTYPE = "0/0"
MIN_REPORTABLE_VAF = 1.0


class RecordAssembler:
    """Builds the keyed record table for one batch of query rows."""

    def __init__(self, config: ExtractorConfig | None = None):
        self.config = config or ExtractorConfig()
        self.warnings: list[str] = []

    def assemble(self, rows: Iterable[RawVariantRow]) -> dict[VariantKey, VariantRecord]:
        """
        Assemble variant records from decoded rows.

        Args:
            rows: Rows decoded from the query tool output

        Returns:
            Mapping of VariantKey to VariantRecord

        Raises:
            MalformedRowError: If a row has inconsistent or non-numeric fields.
        """
        self.warnings = []
        records: dict[VariantKey, VariantRecord] = {}
        n_rows = 0

        for row in rows:
            n_rows += 1
            self._assemble_row(row, records)

        logger.debug("Assembled %d records from %d rows", len(records), n_rows)
        for warning in self.warnings:
            logger.warning(warning)

        return records

    def _prepare_row(self, row: RawVariantRow) -> RawVariantRow | None:
        """Return a cleaned copy of the row, or None when the row is skipped."""
        if NON_VARIANT_ALT.search(row.alt):
            return None

        reason = row.filter_reason
        if reason.startswith(REASON_PREFIX):
            reason = reason[len(REASON_PREFIX):]

        if reason == NODATA:
            return None

        filter_status = NOCALL if NOCALL_GENOTYPE in row.genotype else row.filter

        if self.config.drop_nocall and filter_status == NOCALL:
            return None
        if self.config.drop_ref and row.genotype == REFERENCE_GENOTYPE:
            return None

        return replace(row, filter=filter_status, filter_reason=reason)

    def _assemble_row(
        self, row: RawVariantRow, records: dict[VariantKey, VariantRecord]
    ) -> None:
        row = self._prepare_row(row)
        if row is None:
            return

        alts = split_values(row.alt)
        hotspot_ids = split_values(row.hotspot_ids)
        caller_refs = split_values(row.caller_refs)
        caller_alts = split_values(row.caller_alts)
        allele_map = split_values(row.caller_allele_map)
        lods = split_values(row.lod)

        payload = None
        if self.config.include_annotations:
            payload = parse_annotation_payload(row.annotation, row.line_number)

        for alt_index, alt in enumerate(alts):
            normalized = normalize_variant(row.ref, alt, row.pos)
            position = f"{row.chrom}:{normalized.pos}"

            for candidate in (j for j, mapped in enumerate(allele_map) if mapped == alt):
                try:
                    key = VariantKey(
                        position, caller_refs[candidate], caller_alts[candidate], row.filter
                    )
                    hotspot_id = hotspot_ids[candidate]
                except IndexError:
                    raise MalformedRowError(
                        f"OMAPALT entry {candidate + 1} at {row.location} has no matching "
                        "OID/OREF/OALT value",
                        row.line_number,
                    ) from None

                # A tagged candidate displaces the record at its key even when it is
                # excluded below.
                if hotspot_id != NO_ID:
                    records.pop(key, None)

                coverage = resolve_coverage(row, alt_index, self.config.assay_mode)
                if self._is_excluded_vaf(coverage.vaf):
                    continue

                annotation = None
                if payload is not None:
                    match = match_annotation(
                        payload, normalized, annotations_requested=True, location=row.location
                    )
                    if match.warning:
                        self.warnings.append(match.warning)
                    annotation = match.fields

                total_coverage = coverage.total_coverage
                lod = PLACEHOLDER
                if self.config.high_sensitivity:
                    total_coverage = parse_count(row.depth, "DP", row)
                    lod = lods[alt_index] if alt_index < len(lods) else PLACEHOLDER

                record = VariantRecord(
                    position=position,
                    ref=normalized.ref,
                    alt=normalized.alt,
                    filter=row.filter,
                    filter_reason=row.filter_reason,
                    genotype=row.genotype,
                    vaf=coverage.vaf,
                    total_coverage=total_coverage,
                    ref_coverage=coverage.ref_coverage,
                    alt_coverage=coverage.alt_coverage,
                    hotspot_id=hotspot_id,
                    lod=lod,
                    annotation=annotation,
                )
                self._store(records, key, record)

    def _is_excluded_vaf(self, vaf: float | None) -> bool:
        if vaf is None or not self.config.drop_ref:
            return False
        if vaf == 0:
            return True
        return vaf < MIN_REPORTABLE_VAF and not self.config.high_sensitivity

    @staticmethod
    def _store(
        records: dict[VariantKey, VariantRecord], key: VariantKey, record: VariantRecord
    ) -> None:
        existing = records.get(key)
        if existing is not None:
            if existing.hotspot_id != NO_ID and record.hotspot_id == NO_ID:
                logger.debug("Keeping hotspot record %s over untagged duplicate", key)
                return
            logger.debug(
                "Replacing record at %s (%s -> %s)", key, existing.hotspot_id, record.hotspot_id
            )
        records[key] = record


def assemble_records(
    rows: Iterable[RawVariantRow], config: ExtractorConfig | None = None
) -> tuple[dict[VariantKey, VariantRecord], list[str]]:
    """Assemble rows and return the record table with its soft warnings."""
    assembler = RecordAssembler(config)
    records = assembler.assemble(rows)
    return records, assembler.warnings
