"""Cross-run detection frequency of variants."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from statistics import fmean

from .models import VariantKey, VariantRecord


@dataclass
class VariantTally:
    """Occurrences of one variant across a set of runs."""

    position: str
    ref: str
    alt: str
    coverages: list[int] = field(default_factory=list)
    vafs: list[float] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.coverages)

    def detection_frequency(self, total_runs: int) -> float:
        """Percentage of runs in which the variant was detected."""
        return round(100 * self.count / total_runs, 2) if total_runs else 0.0

    @property
    def coverage_stats(self) -> tuple[int, float, int]:
        return min(self.coverages), fmean(self.coverages), max(self.coverages)

    @property
    def vaf_stats(self) -> tuple[float, float, float]:
        if not self.vafs:
            return 0.0, 0.0, 0.0
        return min(self.vafs), fmean(self.vafs), max(self.vafs)


def tally_runs(
    tables: Sequence[dict[VariantKey, VariantRecord]],
    coverage_cutoff: int = 450,
) -> list[VariantTally]:
    """
    Count each (position, ref, alt) across per-run record tables.

    Only records whose total coverage exceeds the cutoff are counted. A
    variant is counted at most once per run.

    Args:
        tables: One assembled record table per run
        coverage_cutoff: Minimum total coverage (exclusive)

    Returns:
        Tallies ordered by descending detection count
    """
    tallies: dict[tuple[str, str, str], VariantTally] = {}

    for table in tables:
        seen: set[tuple[str, str, str]] = set()
        for record in table.values():
            if record.total_coverage <= coverage_cutoff:
                continue
            variant_id = (record.position, record.ref, record.alt)
            if variant_id in seen:
                continue
            seen.add(variant_id)

            tally = tallies.setdefault(variant_id, VariantTally(*variant_id))
            tally.coverages.append(record.total_coverage)
            if record.vaf is not None:
                tally.vafs.append(record.vaf)

    return sorted(tallies.values(), key=lambda t: t.count, reverse=True)


def render_tally(
    tallies: list[VariantTally], total_runs: int, coverage_cutoff: int = 450
) -> str:
    """Render the tally as a fixed-width table with a title line."""
    ref_width = max((len(t.ref) + 3 for t in tallies), default=5)
    alt_width = max((len(t.alt) + 3 for t in tallies), default=5)

    header = (
        f"{'Chr':<8} {'Position':<12} {'Ref':<{ref_width}} {'Var':<{alt_width}} "
        f"{'Count':<10} {'MinCov':<7} {'MeanCov':<7} {'MaxCov':<7} "
        f"{'MinVAF':>9} {'MeanVAF':>9} {'MaxVAF':>9}"
    )
    lines = [
        f"Frequency of detected variants with at least {coverage_cutoff} reads "
        f"in {total_runs} runs",
        "",
        header,
    ]

    for tally in tallies:
        chrom, _, pos = tally.position.rpartition(":")
        min_cov, mean_cov, max_cov = tally.coverage_stats
        min_vaf, mean_vaf, max_vaf = tally.vaf_stats
        lines.append(
            f"{chrom:<8} {pos:<12} {tally.ref:<{ref_width}} {tally.alt:<{alt_width}} "
            f"{f'{tally.count}/{total_runs}':<10} {min_cov:<7d} {int(mean_cov):<7d} "
            f"{max_cov:<7d} {min_vaf:8.2f}% {mean_vaf:8.2f}% {max_vaf:8.2f}%"
        )

    return "\n".join(lines) + "\n"
