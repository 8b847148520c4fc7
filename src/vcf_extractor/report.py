"""Fixed-width text rendering of filtered variant records."""

import re
from collections.abc import Callable

from .config import ExtractorConfig
from .coverage import format_vaf
from .filters import FilterResult
from .models import NULL, AnnotationFields, VariantKey, VariantRecord

FIXED_WIDTHS = {
    "CHROM:POS": 17,
    "VAF": 9,
    "LOD": 7,
    "TotCov": 8,
    "RefCov": 8,
    "AltCov": 8,
    "Filter": 8,
    "Gene": 13,
    "Transcript": 15,
    "Location": 13,
    "oncomineGeneClass": 21,
}

# Columns sized to their content, never narrower than the default.
DEFAULT_WIDTHS = {
    "REF": 5,
    "ALT": 5,
    "VarID": 10,
    "Filter_Reason": 17,
    "CDS": 7,
    "AA": 7,
    "Function": 9,
}

ANNOTATION_COLUMNS = ["Gene", "Transcript", "CDS", "AA", "Location", "Function"]
ONCOMINE_COLUMNS = ["oncomineGeneClass", "oncomineVariantClass"]


def natural_sort_key(value: str) -> list:
    """Sort key comparing digit runs numerically (chr2 before chr10)."""
    return [int(part) if part.isdigit() else part for part in re.split(r"(\d+)", value)]


def record_sort_key(item: tuple[VariantKey, VariantRecord]) -> list:
    key, _ = item
    return natural_sort_key(":".join(key))


def report_columns(config: ExtractorConfig, oncomine_available: bool = False) -> list[str]:
    """Column names of the report for a configuration."""
    columns = ["CHROM:POS", "REF", "ALT"]
    if not config.drop_nocall:
        columns += ["Filter", "Filter_Reason"]
    columns.append("VAF")
    if config.high_sensitivity:
        columns.append("LOD")
    columns += ["TotCov", "RefCov", "AltCov", "VarID"]
    if config.include_annotations:
        columns += ANNOTATION_COLUMNS
        if oncomine_available:
            columns += ONCOMINE_COLUMNS
    return columns


def _column_getters(config: ExtractorConfig) -> dict[str, Callable[[VariantRecord], str]]:
    def annotation(record: VariantRecord) -> AnnotationFields:
        return record.annotation or AnnotationFields.null()

    return {
        "CHROM:POS": lambda r: r.position,
        "REF": lambda r: r.ref,
        "ALT": lambda r: r.alt,
        "Filter": lambda r: r.filter,
        "Filter_Reason": lambda r: r.filter_reason,
        "VAF": lambda r: format_vaf(r.vaf, config.assay_mode),
        "LOD": lambda r: r.lod,
        "TotCov": lambda r: str(r.total_coverage),
        "RefCov": lambda r: str(r.ref_coverage),
        "AltCov": lambda r: str(r.alt_coverage),
        "VarID": lambda r: r.hotspot_id or NULL,
        "Gene": lambda r: annotation(r).gene,
        "Transcript": lambda r: annotation(r).transcript,
        "CDS": lambda r: annotation(r).hgvs,
        "AA": lambda r: annotation(r).protein,
        "Location": lambda r: annotation(r).location,
        "Function": lambda r: annotation(r).function,
        "oncomineGeneClass": lambda r: annotation(r).oncomine_gene_class,
        "oncomineVariantClass": lambda r: annotation(r).oncomine_variant_class,
    }


def _format_line(values: list[str], widths: list[int | None]) -> str:
    cells = [value if width is None else value.ljust(width) for value, width in zip(values, widths)]
    return " ".join(cells).rstrip()


def render_records(
    records: dict[VariantKey, VariantRecord],
    config: ExtractorConfig,
    oncomine_available: bool = False,
) -> list[str]:
    """
    Render a header line plus one line per record.

    Records are ordered by natural sort of their identity key.
    """
    columns = report_columns(config, oncomine_available)
    getters = _column_getters(config)
    rows = [
        [getters[column](record) for column in columns]
        for _, record in sorted(records.items(), key=record_sort_key)
    ]

    widths: list[int | None] = []
    for index, column in enumerate(columns):
        if index == len(columns) - 1:
            widths.append(None)
        elif column in DEFAULT_WIDTHS:
            longest = max((len(row[index]) + 2 for row in rows), default=0)
            widths.append(max(DEFAULT_WIDTHS[column], longest))
        else:
            widths.append(FIXED_WIDTHS[column])

    return [_format_line(columns, widths)] + [_format_line(row, widths) for row in rows]


def render_report(
    result: FilterResult,
    config: ExtractorConfig,
    oncomine_available: bool = False,
) -> str:
    """Render the report for a filter result, with a no-match notice when empty."""
    lines = render_records(result.records, config, oncomine_available)
    if result.is_empty:
        lines += ["", f">>> {result.no_match_message()} <<<"]
    return "\n".join(lines) + "\n"
