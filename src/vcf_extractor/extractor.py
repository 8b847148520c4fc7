"""End-to-end extraction of variant records from an Ion Torrent VCF."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .assembler import RecordAssembler
from .config import ExtractorConfig
from .filters import FilterEngine, FilterResult, FilterSelection
from .models import VariantKey, VariantRecord
from .query import (
    VCFHeaderInfo,
    build_query_format,
    check_header_compatibility,
    inspect_header,
    run_query,
)
from .rows import parse_rows

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Assembled records of one VCF with the soft warnings raised on the way."""

    vcf_path: Path
    header: VCFHeaderInfo
    records: dict[VariantKey, VariantRecord]
    warnings: list[str] = field(default_factory=list)


class VCFExtractor:
    """Runs the query tool over a VCF and assembles its records."""

    def __init__(self, config: ExtractorConfig | None = None):
        self.config = config or ExtractorConfig()

    def extract(self, vcf_path: Path | str) -> ExtractionResult:
        """
        Extract assembled records from a VCF.

        Raises:
            FileNotFoundError: If the VCF file doesn't exist.
            ConfigValidationError: If the options don't fit the VCF.
            QueryToolError: If vcf-query is missing or fails.
            MalformedRowError: If the query output can not be decoded.
        """
        vcf_path = Path(vcf_path)
        header = inspect_header(vcf_path)
        check_header_compatibility(header, self.config)

        query_format = build_query_format(
            self.config.include_annotations, self.config.assay_mode
        )
        lines = run_query(vcf_path, query_format)
        rows = parse_rows(lines)
        logger.info("Read %d rows from %s", len(rows), vcf_path.name)

        assembler = RecordAssembler(self.config)
        records = assembler.assemble(rows)

        return ExtractionResult(vcf_path, header, records, assembler.warnings)

    def extract_filtered(
        self, vcf_path: Path | str, selection: FilterSelection | None = None
    ) -> tuple[ExtractionResult, FilterResult]:
        """Extract records and apply the standing and query filters."""
        extraction = self.extract(vcf_path)
        engine = FilterEngine(
            only_annotated=self.config.only_annotated,
            only_hotspot=self.config.only_hotspot,
        )
        return extraction, engine.apply(extraction.records, selection)
