"""Pytest configuration and fixtures for vcf-extractor tests."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from fixtures.row_generator import IonVCFHeader, SyntheticRow, func_payload  # noqa: E402

from vcf_extractor.config import ExtractorConfig  # noqa: E402
from vcf_extractor.rows import parse_row  # noqa: E402


@pytest.fixture
def row_factory():
    """Factory for decoded rows built from SyntheticRow defaults."""

    def _factory(line_number: int = 1, **kwargs):
        return parse_row(SyntheticRow(**kwargs).to_line(), line_number)

    return _factory


@pytest.fixture
def default_config() -> ExtractorConfig:
    return ExtractorConfig()


@pytest.fixture
def egfr_func() -> str:
    """FUNC payload for an exonic EGFR missense variant."""
    return func_payload(
        {
            "gene": "EGFR",
            "transcript": "NM_005228.3",
            "coding": "c.2369C>T",
            "protein": "p.Thr790Met",
            "function": "missense",
            "location": "exonic",
            "exon": "20",
            "normalizedRef": "C",
            "normalizedAlt": "T",
            "normalizedPos": "55249071",
            "oncomineGeneClass": "Gain-of-Function",
            "oncomineVariantClass": "Hotspot",
        }
    )


@pytest.fixture
def ion_vcf_file(tmp_path):
    """Factory for Ion Torrent VCF files with selected header features."""

    def _factory(**kwargs) -> Path:
        return IonVCFHeader.generate_file(directory=tmp_path, **kwargs)

    return _factory
