"""Synthetic vcf-query rows and Ion Torrent VCF headers for unit tests."""

import json
import tempfile
from dataclasses import dataclass
from pathlib import Path


@dataclass
class SyntheticRow:
    """Represents one synthetic vcf-query output row."""

    chrom: str = "chr7"
    pos: int = 55249071
    ref: str = "C"
    alt: str = "T"
    filter: str = "PASS"
    reason: str = "."
    oid: str = "."
    opos: str | None = None
    oref: str | None = None
    oalt: str | None = None
    omapalt: str | None = None
    func: str = "---"
    lod: str = "---"
    genotype: str = "0/1"
    af: str = "0.2"
    fro: str = "80"
    ro: str = "80"
    fao: str = "20"
    ao: str = "20"
    dp: str = "100"

    def to_line(self) -> str:
        """Render the row in the query tool's 19 field layout."""
        values = [
            f"{self.chrom}:{self.pos}",
            self.ref,
            self.alt,
            self.filter,
            self.reason,
            self.oid,
            self.opos if self.opos is not None else str(self.pos),
            self.oref if self.oref is not None else self.ref,
            self.oalt if self.oalt is not None else self.alt,
            self.omapalt if self.omapalt is not None else self.alt,
            self.func,
            self.lod,
            self.genotype,
            self.af,
            self.fro,
            self.ro,
            self.fao,
            self.ao,
            self.dp,
        ]
        return "\t".join(values)


def func_payload(*blocks: dict) -> str:
    """Encode FUNC blocks the way Ion Reporter does, with single quotes."""
    return json.dumps(list(blocks)).replace('"', "'")


class IonVCFHeader:
    """Generate minimal Ion Torrent VCF headers for header inspection tests."""

    BASE = """##fileformat=VCFv4.1
##source="tvc 5.0-13 (fe0c9d6) - Torrent Variant Caller"
##INFO=<ID=FR,Number=.,Type=String,Description="Reason for no call">
##INFO=<ID=OID,Number=.,Type=String,Description="List of original Hotspot IDs">
##INFO=<ID=OMAPALT,Number=.,Type=String,Description="Maps OID,OPOS,OREF,OALT entries to specific ALT alleles">
##FORMAT=<ID=GT,Number=1,Type=String,Description="Genotype">
"""

    @classmethod
    def generate(
        cls,
        ion_reporter: bool = False,
        oncomine: bool = False,
        cfdna: bool = False,
        legacy: bool = False,
    ) -> str:
        lines = [cls.BASE.strip()]
        if ion_reporter:
            lines.append("##IonReporterExportVersion=5.10")
            lines.append('##INFO=<ID=FUNC,Number=.,Type=String,Description="Functional Annotations">')
        if oncomine:
            lines.append("##OncomineVariantAnnotationToolVersion=2.5")
        if cfdna:
            lines.append('##INFO=<ID=LOD,Number=A,Type=Float,Description="Limit of Detection">')
        if legacy:
            lines.append('##INFO=<ID=Bayesian_Score,Number=1,Type=Float,Description="Score">')
        lines.append("#CHROM\tPOS\tID\tREF\tALT\tQUAL\tFILTER\tINFO\tFORMAT\tSAMPLE1")
        lines.append("chr7\t55249071\t.\tC\tT\t100\tPASS\tDP=100\tGT\t0/1")
        return "\n".join(lines) + "\n"

    @classmethod
    def generate_file(cls, directory: Path | None = None, **kwargs) -> Path:
        """Write a VCF with the requested header features and return its path."""
        content = cls.generate(**kwargs)
        with tempfile.NamedTemporaryFile(
            mode="w", suffix=".vcf", delete=False, dir=directory
        ) as f:
            f.write(content)
            return Path(f.name)
