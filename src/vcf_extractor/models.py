"""Data models for extracted VCF variants."""

from dataclasses import dataclass, fields
from typing import NamedTuple

NO_ID = "."
NOCALL = "NOCALL"
NODATA = "NODATA"
PLACEHOLDER = "---"
NULL = "NULL"


@dataclass
class RawVariantRow:
    """One tab-delimited row emitted by the VCF query tool."""

    chrom: str
    pos: int
    ref: str
    alt: str
    filter: str
    filter_reason: str
    hotspot_ids: str
    caller_positions: str
    caller_refs: str
    caller_alts: str
    caller_allele_map: str
    annotation: str
    lod: str
    genotype: str
    allele_frequency: str
    forward_ref_coverage: str
    ref_coverage: str
    forward_alt_coverage: str
    alt_coverage: str
    depth: str

    line_number: int = 0

    @property
    def location(self) -> str:
        return f"{self.chrom}:{self.pos}"


@dataclass(frozen=True)
class NormalizedVariant:
    """Minimal, position-anchored representation of one ref/alt pair."""

    ref: str
    alt: str
    pos: int


@dataclass
class AnnotationFields:
    """Ion Reporter and Oncomine annotation values for one variant."""

    gene: str = PLACEHOLDER
    transcript: str = PLACEHOLDER
    hgvs: str = PLACEHOLDER
    protein: str = PLACEHOLDER
    function: str = PLACEHOLDER
    location: str = PLACEHOLDER
    oncomine_gene_class: str = PLACEHOLDER
    oncomine_variant_class: str = PLACEHOLDER

    @classmethod
    def null(cls) -> "AnnotationFields":
        """Fields for a variant without any annotation block."""
        return cls(**{f.name: NULL for f in fields(cls)})


class VariantKey(NamedTuple):
    """Identity of a record in the assembled table."""

    position: str
    ref: str
    alt: str
    filter: str


@dataclass
class VariantRecord:
    """A single normalized variant call."""

    position: str
    ref: str
    alt: str
    filter: str
    filter_reason: str
    genotype: str
    vaf: float | None
    total_coverage: int
    ref_coverage: int
    alt_coverage: int
    hotspot_id: str

    lod: str = PLACEHOLDER
    annotation: AnnotationFields | None = None

    @property
    def is_nocall(self) -> bool:
        return self.filter == NOCALL

    @property
    def has_hotspot_id(self) -> bool:
        return self.hotspot_id != NO_ID

    @property
    def gene(self) -> str | None:
        return self.annotation.gene if self.annotation else None

    @property
    def oncomine_variant_class(self) -> str | None:
        return self.annotation.oncomine_variant_class if self.annotation else None
