"""Record filtering by position, hotspot id, gene or fuzzy position."""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .config import MAX_FUZZY_DIGITS, ConfigValidationError
from .models import NULL, PLACEHOLDER, VariantKey, VariantRecord

logger = logging.getLogger(__name__)

VALID_HOTSPOT_PREFIXES = (
    "BT",
    "COSM",
    "OM",
    "OMINDEL",
    "MCH",
    "PM_COSM",
    "PM_B",
    "PM_D",
    "PM_MCH",
    "PM_E",
    "CV",
    "MAN",
)

POSITION_PATTERN = re.compile(r"^chr[0-9YX]+:\d+$", re.IGNORECASE)
HOTSPOT_PATTERN = re.compile(rf"(?:{'|'.join(VALID_HOTSPOT_PREFIXES)})\d+")


class FilterKind(str, Enum):
    """The single query filter applied to a record table."""

    NONE = "none"
    POSITION = "position"
    HOTSPOT_ID = "hotspot_id"
    GENE = "gene"
    FUZZY_POSITION = "fuzzy_position"


@dataclass
class FilterSelection:
    """A validated filter kind and its query values."""

    kind: FilterKind = FilterKind.NONE
    values: list[str] = field(default_factory=list)
    fuzzy_digits: int = 0

    def describe(self) -> str:
        if self.kind is FilterKind.NONE:
            return "no filter"
        return f"{self.kind.value} filter: {', '.join(self.values)}"


@dataclass
class FilterResult:
    """Filtered records plus the query values each record matched."""

    records: dict[VariantKey, VariantRecord]
    selection: FilterSelection
    matches: dict[str, list[VariantKey]] = field(default_factory=dict)
    only_annotated: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.records

    def no_match_message(self) -> str:
        """Describe an empty result in terms of the filter that produced it."""
        selection = self.selection
        if self.only_annotated:
            return "No Oncomine Annotated Variants Found!"
        if selection.kind is FilterKind.GENE:
            return f"No Variants Found for Gene(s): {', '.join(selection.values)}!"
        if selection.kind is FilterKind.HOTSPOT_ID:
            return f"No Variants Found for Hotspot ID(s): {', '.join(selection.values)}!"
        if selection.kind is FilterKind.POSITION:
            return f"No variant found at position(s): {', '.join(selection.values)}!"
        if selection.kind is FilterKind.FUZZY_POSITION:
            masked = [
                value[: -selection.fuzzy_digits] + "*" * selection.fuzzy_digits
                for value in selection.values
            ]
            return f"No variant found at position(s): {', '.join(masked)}!"
        return "No variants found!"


def validate_positions(positions: list[str]) -> None:
    for position in positions:
        if not POSITION_PATTERN.match(position):
            raise ConfigValidationError(
                f"'{position}' not valid. Please use the following format for "
                "position queries: 'chr#:position'"
            )


def normalize_position_query(position: str) -> str:
    """Canonical `chrN:pos` spelling of a validated position query."""
    chrom, _, pos = position.partition(":")
    return f"chr{chrom[3:].upper()}:{pos}"


def validate_hotspot_ids(hotspot_ids: list[str]) -> None:
    for hotspot_id in hotspot_ids:
        if not HOTSPOT_PATTERN.search(hotspot_id):
            valid = ", ".join(f"{prefix}###" for prefix in VALID_HOTSPOT_PREFIXES)
            raise ConfigValidationError(
                f"'{hotspot_id}' is not a valid hotspot query term! Valid lookups are: {valid}"
            )


def build_filter_selection(
    positions: list[str] | None = None,
    hotspot_ids: list[str] | None = None,
    genes: list[str] | None = None,
    fuzzy_digits: int = 0,
) -> FilterSelection:
    """
    Validate query options and select the single active filter.

    Raises:
        ConfigValidationError: If more than one filter kind is requested,
            the fuzzy digit count is out of range, or a query is malformed.
    """
    requested = {
        FilterKind.POSITION: positions or [],
        FilterKind.HOTSPOT_ID: hotspot_ids or [],
        FilterKind.GENE: [gene.upper() for gene in genes or []],
    }
    active = [kind for kind, values in requested.items() if values]

    if len(active) > 1:
        raise ConfigValidationError(
            "Using more than one type of filter is redundant and not accepted. "
            f"Filters chosen: {', '.join(kind.value for kind in active)}"
        )

    if fuzzy_digits:
        if not 0 < fuzzy_digits <= MAX_FUZZY_DIGITS:
            raise ConfigValidationError(
                f"Can not trim more than {MAX_FUZZY_DIGITS} digits from the query string"
            )
        if active != [FilterKind.POSITION]:
            raise ConfigValidationError(
                "Must include a position query with the fuzzy option"
            )

    if not active:
        return FilterSelection()

    kind = active[0]
    values = requested[kind]
    if kind is FilterKind.POSITION:
        validate_positions(values)
        values = [normalize_position_query(value) for value in values]
        if fuzzy_digits:
            kind = FilterKind.FUZZY_POSITION
    elif kind is FilterKind.HOTSPOT_ID:
        validate_hotspot_ids(values)

    return FilterSelection(kind=kind, values=values, fuzzy_digits=fuzzy_digits)


def read_lookup_file(path: Path) -> tuple[FilterKind, list[str]]:
    """
    Read a batch lookup file of positions or hotspot ids.

    Terms may be separated by any whitespace. The query type is detected
    from the content; mixed files are rejected by the later validation.

    Raises:
        FileNotFoundError: If the lookup file doesn't exist.
        ConfigValidationError: If the terms are neither positions nor hotspot ids.
    """
    if not path.exists():
        raise FileNotFoundError(f"Lookup file not found: {path}")

    terms = path.read_text().split()
    if any(HOTSPOT_PATTERN.search(term) for term in terms):
        return FilterKind.HOTSPOT_ID, terms
    if any(re.search(r"chr[0-9YX]+", term, re.IGNORECASE) for term in terms):
        return FilterKind.POSITION, terms

    raise ConfigValidationError(f"Issue with lookup file '{path}'. Check and retry")


def _truncate(value: str, digits: int) -> str:
    return value[:-digits] if digits else value


class FilterEngine:
    """Applies the standing filters and one query filter to a record table."""

    def __init__(self, only_annotated: bool = False, only_hotspot: bool = False):
        self.only_annotated = only_annotated
        self.only_hotspot = only_hotspot

    def apply_standing_filters(
        self, records: dict[VariantKey, VariantRecord]
    ) -> dict[VariantKey, VariantRecord]:
        """Drop unannotated and untagged records when requested."""
        if self.only_annotated:
            logger.info("Running Oncomine annotation filter")
            records = {
                key: record
                for key, record in records.items()
                if record.oncomine_variant_class not in (None, PLACEHOLDER, NULL)
            }
        if self.only_hotspot:
            logger.info("Running hotspot filter")
            records = {key: record for key, record in records.items() if record.has_hotspot_id}
        return records

    def apply(
        self,
        records: dict[VariantKey, VariantRecord],
        selection: FilterSelection | None = None,
    ) -> FilterResult:
        """
        Filter a record table.

        Args:
            records: Assembled record table
            selection: Validated query filter; None applies only the standing filters

        Returns:
            FilterResult with the surviving records and per-query matches
        """
        selection = selection or FilterSelection()
        records = self.apply_standing_filters(records)

        if selection.kind is FilterKind.NONE:
            return FilterResult(records, selection, only_annotated=self.only_annotated)

        logger.info("Running the %s", selection.describe())
        matches: dict[str, list[VariantKey]] = {value: [] for value in selection.values}

        for key, record in records.items():
            for value in selection.values:
                if self._matches(record, value, selection):
                    matches[value].append(key)

        matched_keys = {key for keys in matches.values() for key in keys}
        filtered = {key: record for key, record in records.items() if key in matched_keys}

        return FilterResult(filtered, selection, matches, only_annotated=self.only_annotated)

    @staticmethod
    def _matches(record: VariantRecord, value: str, selection: FilterSelection) -> bool:
        if selection.kind is FilterKind.POSITION:
            return record.position == value
        if selection.kind is FilterKind.HOTSPOT_ID:
            return record.hotspot_id == value
        if selection.kind is FilterKind.GENE:
            return record.gene == value
        if selection.kind is FilterKind.FUZZY_POSITION:
            digits = selection.fuzzy_digits
            return _truncate(record.position, digits) == _truncate(value, digits)
        return True
