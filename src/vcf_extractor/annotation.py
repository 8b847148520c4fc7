"""Ion Reporter FUNC annotation decoding and allele matching."""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any

from .models import NO_ID, PLACEHOLDER, AnnotationFields, NormalizedVariant
from .rows import MalformedRowError

logger = logging.getLogger(__name__)

SEVERE_FUNCTION_PATTERN = re.compile(r"missense|nonsense")
FUNCTION_SEPARATOR = "|"
PARTIAL_FIELDS = ("gene", "transcript", "location", "exon")


class AnnotationDecodeError(MalformedRowError):
    """Raised when a FUNC payload is not a JSON array of blocks."""

    pass


@dataclass(frozen=True)
class AbsentAnnotation:
    """The variant has no FUNC entry ('.')."""


@dataclass(frozen=True)
class NotRequestedAnnotation:
    """Annotation was not extracted from the VCF ('---')."""


@dataclass(frozen=True)
class AnnotationBlocks:
    """Decoded FUNC blocks, one per overlapping annotation."""

    blocks: list[dict[str, Any]] = field(default_factory=list)


AnnotationPayload = AbsentAnnotation | NotRequestedAnnotation | AnnotationBlocks


@dataclass
class AnnotationMatch:
    """Annotation fields resolved for one variant."""

    fields: AnnotationFields
    warning: str | None = None


def parse_annotation_payload(raw: str, line_number: int | None = None) -> AnnotationPayload:
    """
    Resolve a FUNC column value into its payload variant.

    Ion Reporter writes the JSON with single quotes, which are translated
    to double quotes before decoding.

    Raises:
        AnnotationDecodeError: If the payload is neither a sentinel nor a JSON array.
    """
    raw = raw.strip()
    if raw == NO_ID:
        return AbsentAnnotation()
    if raw == PLACEHOLDER:
        return NotRequestedAnnotation()

    try:
        decoded = json.loads(raw.replace("'", '"'))
    except json.JSONDecodeError as e:
        raise AnnotationDecodeError(f"FUNC annotation is not valid JSON: {e}", line_number) from e

    if isinstance(decoded, dict):
        decoded = [decoded]
    if not isinstance(decoded, list) or not all(isinstance(b, dict) for b in decoded):
        raise AnnotationDecodeError("FUNC annotation is not an array of blocks", line_number)

    return AnnotationBlocks(blocks=decoded)


def collapse_function(value: Any) -> str:
    """Reduce a list of functional classes to one display value."""
    if value is None:
        return PLACEHOLDER
    if not isinstance(value, list):
        return str(value)

    values = [str(v) for v in value]
    for candidate in values:
        if SEVERE_FUNCTION_PATTERN.search(candidate):
            return candidate
    return FUNCTION_SEPARATOR.join(values) if values else PLACEHOLDER


def format_location(location: Any, exon: Any) -> str:
    if location is None:
        return PLACEHOLDER
    if location == "exonic":
        return f"Exon{exon if exon is not None else ''}"
    return str(location)


def _block_matches(block: dict[str, Any], normalized: NormalizedVariant) -> bool:
    if block.get("normalizedRef") != normalized.ref:
        return False
    if block.get("normalizedAlt") != normalized.alt:
        return False
    block_pos = block.get("normalizedPos")
    return block_pos is None or str(block_pos) == str(normalized.pos)


def _text(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    return PLACEHOLDER if value is None else str(value)


def _select_block_data(
    blocks: list[dict[str, Any]], normalized: NormalizedVariant
) -> dict[str, Any]:
    for block in blocks:
        if "normalizedRef" in block and _block_matches(block, normalized):
            return block

    # No allele-specific block; keep only the locus level fields.
    logger.debug(
        "No FUNC block for %s>%s at %s; using partial annotation",
        normalized.ref,
        normalized.alt,
        normalized.pos,
    )
    partial: dict[str, Any] = {}
    for block in blocks:
        for key in PARTIAL_FIELDS:
            if partial.get(key) is None and block.get(key) is not None:
                partial[key] = block[key]
    return partial


def fields_from_blocks(
    blocks: list[dict[str, Any]], normalized: NormalizedVariant
) -> AnnotationFields:
    """Build annotation fields from the block matching a normalized variant."""
    data = _select_block_data(blocks, normalized)

    return AnnotationFields(
        gene=_text(data, "gene"),
        transcript=_text(data, "transcript"),
        hgvs=_text(data, "coding"),
        protein=_text(data, "protein"),
        function=collapse_function(data.get("function")),
        location=format_location(data.get("location"), data.get("exon")),
        oncomine_gene_class=_text(data, "oncomineGeneClass"),
        oncomine_variant_class=_text(data, "oncomineVariantClass"),
    )


def match_annotation(
    payload: AnnotationPayload,
    normalized: NormalizedVariant,
    annotations_requested: bool = False,
    location: str | None = None,
) -> AnnotationMatch:
    """
    Select the annotation for a normalized variant.

    Args:
        payload: Decoded FUNC payload of the row
        normalized: Normalized alleles and position of the variant
        annotations_requested: Whether annotation output was asked for
        location: CHROM:POS used in the warning message

    Returns:
        AnnotationMatch with the fields and an optional soft warning
    """
    if isinstance(payload, AbsentAnnotation):
        warning = None
        if annotations_requested:
            warning = f"could not find FUNC entry for '{location or normalized.pos}'"
        return AnnotationMatch(fields=AnnotationFields.null(), warning=warning)

    if isinstance(payload, NotRequestedAnnotation):
        return AnnotationMatch(fields=AnnotationFields.null())

    return AnnotationMatch(fields=fields_from_blocks(payload.blocks, normalized))
