"""Decoding of tab-delimited rows produced by the VCF query tool."""

from collections.abc import Iterable

from .models import RawVariantRow

ROW_FIELDS = (
    "chrom_pos",
    "ref",
    "alt",
    "filter",
    "filter_reason",
    "hotspot_ids",
    "caller_positions",
    "caller_refs",
    "caller_alts",
    "caller_allele_map",
    "annotation",
    "lod",
    "genotype",
    "allele_frequency",
    "forward_ref_coverage",
    "ref_coverage",
    "forward_alt_coverage",
    "alt_coverage",
    "depth",
)


class MalformedRowError(Exception):
    """Raised when a query tool row cannot be decoded."""

    def __init__(self, message: str, line_number: int | None = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


def parse_row(line: str, line_number: int = 0) -> RawVariantRow:
    """Decode one query tool row into a RawVariantRow.

    Args:
        line: Tab-delimited row, trailing newline allowed.
        line_number: 1-based line number used in error messages.

    Raises:
        MalformedRowError: If the field count or position is invalid.
    """
    values = line.rstrip("\r\n").split("\t")
    if len(values) != len(ROW_FIELDS):
        raise MalformedRowError(
            f"expected {len(ROW_FIELDS)} fields, got {len(values)}", line_number
        )

    fields = dict(zip(ROW_FIELDS, values, strict=True))
    chrom_pos = fields.pop("chrom_pos")
    chrom, _, pos = chrom_pos.rpartition(":")
    if not chrom:
        raise MalformedRowError(f"'{chrom_pos}' is not a CHROM:POS value", line_number)
    try:
        position = int(pos)
    except ValueError:
        raise MalformedRowError(
            f"position '{pos}' in '{chrom_pos}' is not an integer", line_number
        ) from None

    return RawVariantRow(chrom=chrom, pos=position, line_number=line_number, **fields)


def parse_rows(lines: Iterable[str]) -> list[RawVariantRow]:
    """Decode every non-blank row, numbering lines from 1."""
    rows = []
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        rows.append(parse_row(line, line_number))
    return rows


def split_values(value: str) -> list[str]:
    """Split a comma-separated multi-value column."""
    return value.split(",")


def parse_count(value: str, field: str, row: RawVariantRow) -> int:
    """Convert a coverage count, treating non-numeric values as fatal."""
    try:
        return int(value)
    except ValueError:
        try:
            number = float(value)
        except ValueError:
            raise MalformedRowError(
                f"{field} value '{value}' at {row.location} is not numeric", row.line_number
            ) from None
        if not number.is_integer():
            raise MalformedRowError(
                f"{field} value '{value}' at {row.location} is not a whole count",
                row.line_number,
            )
        return int(number)
