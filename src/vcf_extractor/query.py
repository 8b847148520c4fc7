"""VCF header inspection and the external vcf-query extraction tool."""

import gzip
import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .config import AssayMode, ConfigValidationError, ExtractorConfig

logger = logging.getLogger(__name__)

QUERY_TOOL = "vcf-query"

BASE_FIELDS = [
    "%CHROM:%POS",
    "%REF",
    "%ALT",
    "%FILTER",
    "%INFO/FR",
    "%INFO/OID",
    "%INFO/OPOS",
    "%INFO/OREF",
    "%INFO/OALT",
    "%INFO/OMAPALT",
    "---",
    "---",
    "[%GTR",
    "%AF",
    "%FRO",
    "%RO",
    "%FAO",
    "%AO",
    "%DP]",
]

ANNOTATION_FIELD = 10
LOD_FIELD = 11
# Molecular family counts replace the flow-corrected ones for cfDNA assays.
HIGH_SENSITIVITY_FIELDS = {
    LOD_FIELD: "%INFO/LOD",
    BASE_FIELDS.index("%AF"): "%MAF",
    BASE_FIELDS.index("%FRO"): "%MRO",
    BASE_FIELDS.index("%FAO"): "%MAO",
}


class QueryToolError(Exception):
    """Raised when the external query tool is missing or fails."""

    pass


@dataclass
class VCFHeaderInfo:
    """Features of a VCF detected from its header lines."""

    ion_reporter: bool = False
    oncomine_annotation: bool = False
    high_sensitivity: bool = False
    legacy_tvc: bool = False


def read_header_lines(vcf_path: Path) -> list[str]:
    """Read the '#' header lines of a plain or gzipped VCF."""
    opener = gzip.open if vcf_path.suffix == ".gz" else open
    header = []
    with opener(vcf_path, "rt") as f:
        for line in f:
            if not line.startswith("#"):
                break
            header.append(line.rstrip("\n"))
    return header


def inspect_header(vcf_path: Path) -> VCFHeaderInfo:
    """
    Detect Ion Reporter, Oncomine, cfDNA and legacy TVC features.

    Raises:
        FileNotFoundError: If the VCF file doesn't exist.
        ValueError: If the file has no header.
    """
    if not vcf_path.exists():
        raise FileNotFoundError(f"VCF file not found: {vcf_path}")

    header = read_header_lines(vcf_path)
    if not header:
        raise ValueError(f"'{vcf_path}' does not appear to be a valid VCF file or has no header")

    return VCFHeaderInfo(
        ion_reporter=any("IonReporterExportVersion" in line for line in header),
        oncomine_annotation=any("OncomineVariantAnnotation" in line for line in header),
        high_sensitivity=any(line.startswith("##INFO=<ID=LOD") for line in header),
        legacy_tvc=any(
            line.startswith("##INFO") and "Bayesian_Score" in line for line in header
        ),
    )


def check_header_compatibility(info: VCFHeaderInfo, config: ExtractorConfig) -> None:
    """
    Check requested options against the features of the VCF.

    Raises:
        ConfigValidationError: If the file can not be processed with the options.
    """
    if info.legacy_tvc:
        raise ConfigValidationError(
            "Pre TVCv4.0 VCF file detected. These files are no longer supported"
        )
    if config.include_annotations and not info.ion_reporter:
        raise ConfigValidationError(
            "Annotation output selected, but VCF does not appear to have been run through "
            "Ion Reporter"
        )
    if info.high_sensitivity and not config.high_sensitivity:
        raise ConfigValidationError(
            "VCF appears to be derived from the TagSeq cfDNA panel, but the "
            "high-sensitivity assay mode is not set"
        )
    if config.high_sensitivity and not info.high_sensitivity:
        raise ConfigValidationError(
            "High-sensitivity assay mode selected, but VCF does not appear to be from a cfDNA run"
        )


def build_query_format(
    include_annotations: bool = False, assay_mode: AssayMode = AssayMode.STANDARD
) -> str:
    """Build the vcf-query format string for the row layout of rows.ROW_FIELDS."""
    fields = list(BASE_FIELDS)
    if include_annotations:
        fields[ANNOTATION_FIELD] = "%INFO/FUNC"
    if assay_mode is AssayMode.HIGH_SENSITIVITY:
        for index, value in HIGH_SENSITIVITY_FIELDS.items():
            fields[index] = value
    return "\\t".join(fields) + "\\n"


def run_query(vcf_path: Path, query_format: str) -> list[str]:
    """
    Run vcf-query over a VCF and return its output rows.

    Raises:
        QueryToolError: If vcf-query is not installed or exits with an error.
    """
    executable = shutil.which(QUERY_TOOL)
    if executable is None:
        raise QueryToolError(
            f"Required program '{QUERY_TOOL}' is not installed. Install vcftools "
            "('vcftools.sourceforge.net') and try again"
        )

    logger.debug("Running %s on %s", QUERY_TOOL, vcf_path)
    try:
        result = subprocess.run(
            [executable, str(vcf_path), "-f", query_format],
            check=True,
            capture_output=True,
            text=True,
        )
    except subprocess.CalledProcessError as e:
        raise QueryToolError(
            f"{QUERY_TOOL} failed on {vcf_path}: {e.stderr.strip() or e.returncode}"
        ) from e

    return result.stdout.splitlines()
