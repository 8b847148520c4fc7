"""Coverage accounting and variant allele fraction."""

from dataclasses import dataclass

from .config import AssayMode
from .models import NOCALL, NODATA, NO_ID, RawVariantRow
from .rows import parse_count, split_values


@dataclass
class CoverageResult:
    """Coverage and VAF for one alternate allele."""

    vaf: float | None
    total_coverage: int
    ref_coverage: int
    alt_coverage: int
    long_indel: bool = False


def compute_vaf(
    filter_status: str,
    total_coverage: int,
    alt_coverage: int,
    assay_mode: AssayMode = AssayMode.STANDARD,
) -> float | None:
    """
    Compute the variant allele fraction as a percentage.

    Args:
        filter_status: Caller filter status of the variant
        total_coverage: Denominator read count
        alt_coverage: Reads supporting the alternative allele
        assay_mode: Selects 2 or 4 decimal places

    Returns:
        None for NOCALL variants, otherwise the rounded percentage
    """
    if filter_status == NOCALL:
        return None
    if filter_status == NODATA or total_coverage == 0:
        return 0.0

    return round(100 * alt_coverage / total_coverage, assay_mode.vaf_decimals)


def format_vaf(vaf: float | None, assay_mode: AssayMode = AssayMode.STANDARD) -> str:
    """Render a VAF for output, '.' for NOCALL."""
    if vaf is None:
        return NO_ID
    return f"{vaf:.{assay_mode.vaf_decimals}f}"


def resolve_coverage(
    row: RawVariantRow,
    allele_index: int,
    assay_mode: AssayMode = AssayMode.STANDARD,
) -> CoverageResult:
    """
    Resolve coverage counts and VAF for one alternate allele of a row.

    Flow-corrected forward counts (FRO/FAO) are used when the allele has
    them. Alleles called by the long indel assembler carry '.' in FAO, and
    fall back to the raw RO/AO counts with DP as the VAF denominator.

    Raises:
        MalformedRowError: If a required count is not numeric.
    """
    forward_alt = split_values(row.forward_alt_coverage)
    raw_alt = split_values(row.alt_coverage)

    if allele_index < len(forward_alt) and forward_alt[allele_index] != NO_ID:
        ref_cov = parse_count(row.forward_ref_coverage, "FRO", row)
        alt_cov = parse_count(forward_alt[allele_index], "FAO", row)
        total = ref_cov + sum(
            parse_count(value, "FAO", row) for value in forward_alt if value != NO_ID
        )
        vaf = compute_vaf(row.filter, total, alt_cov, assay_mode)
        return CoverageResult(vaf, total, ref_cov, alt_cov)

    if allele_index >= len(raw_alt):
        raw_value = ""
    else:
        raw_value = raw_alt[allele_index]
    ref_cov = parse_count(row.ref_coverage, "RO", row)
    alt_cov = parse_count(raw_value, "AO", row)
    depth = parse_count(row.depth, "DP", row)
    vaf = compute_vaf(row.filter, depth, alt_cov, assay_mode)

    return CoverageResult(vaf, alt_cov + ref_cov, ref_cov, alt_cov, long_indel=True)
