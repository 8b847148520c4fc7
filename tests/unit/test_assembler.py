"""Tests for record assembly, merging and deduplication."""

import pytest
from fixtures.row_generator import SyntheticRow, func_payload

from vcf_extractor.assembler import RecordAssembler, assemble_records
from vcf_extractor.config import AssayMode, ExtractorConfig
from vcf_extractor.models import VariantKey
from vcf_extractor.rows import MalformedRowError, parse_rows


def rows_of(*synthetic: SyntheticRow):
    return parse_rows([row.to_line() for row in synthetic])


class TestRowSkipping:
    """Test the row level skip and rewrite rules."""

    @pytest.mark.parametrize("alt", ["<CNV>", "]chr2:100]T", "T[chr5:10[", "<DEL>", "."])
    def test_non_variant_alts_skipped(self, alt):
        records = RecordAssembler().assemble(rows_of(SyntheticRow(alt=alt)))
        assert records == {}

    def test_nodata_reason_skipped(self):
        rows = rows_of(SyntheticRow(reason=".,NODATA"))
        assert RecordAssembler().assemble(rows) == {}

    def test_reason_prefix_stripped(self):
        rows = rows_of(SyntheticRow(reason=".,STDBIAS0.9"))
        (record,) = RecordAssembler().assemble(rows).values()
        assert record.filter_reason == "STDBIAS0.9"

    def test_uncalled_genotype_becomes_nocall(self):
        rows = rows_of(SyntheticRow(filter="PASS", genotype="./."))
        (record,) = RecordAssembler().assemble(rows).values()

        assert record.filter == "NOCALL"
        assert record.vaf is None

    def test_input_rows_left_unchanged(self):
        rows = rows_of(SyntheticRow(filter="PASS", genotype="./.", reason=".,STDBIAS"))
        (record,) = RecordAssembler().assemble(rows).values()

        assert record.filter == "NOCALL"
        assert record.filter_reason == "STDBIAS"
        assert rows[0].filter == "PASS"
        assert rows[0].filter_reason == ".,STDBIAS"

    def test_drop_nocall(self):
        rows = rows_of(SyntheticRow(genotype="./."))
        assert RecordAssembler(ExtractorConfig(drop_nocall=True)).assemble(rows) == {}

    def test_drop_reference_calls(self):
        rows = rows_of(SyntheticRow(genotype="0/0", fao="0", fro="100"))
        assert RecordAssembler(ExtractorConfig(drop_ref=True)).assemble(rows) == {}

    def test_reference_calls_kept_by_default(self):
        rows = rows_of(SyntheticRow(genotype="0/0", fao="0", fro="100"))
        (record,) = RecordAssembler().assemble(rows).values()
        assert record.vaf == 0.0


class TestMultiAllelic:
    """Test splitting multi-allelic rows into records."""

    def test_each_alt_becomes_a_record(self):
        rows = rows_of(
            SyntheticRow(
                pos=100,
                ref="CA",
                alt="TA,C",
                oid="COSM1,.",
                opos="100,101",
                oref="C,A",
                oalt="T,-",
                omapalt="TA,C",
                fro="50",
                fao="30,20",
                ao="30,20",
                genotype="1/2",
            )
        )
        records = RecordAssembler().assemble(rows)

        snv = records[VariantKey("chr7:100", "C", "T", "PASS")]
        assert (snv.ref, snv.alt, snv.hotspot_id) == ("C", "T", "COSM1")
        assert snv.vaf == 30.0

        deletion = records[VariantKey("chr7:100", "A", "-", "PASS")]
        assert (deletion.ref, deletion.alt) == ("CA", "C")
        assert deletion.alt_coverage == 20
        assert deletion.total_coverage == 100

    def test_allele_mapped_to_several_candidates(self):
        rows = rows_of(
            SyntheticRow(
                pos=200,
                ref="ACC",
                alt="AC",
                oid="COSM5,.",
                opos="200,201",
                oref="AC,C",
                oalt="A,-",
                omapalt="AC,AC",
            )
        )
        records = RecordAssembler().assemble(rows)

        assert set(records) == {
            VariantKey("chr7:200", "AC", "A", "PASS"),
            VariantKey("chr7:200", "C", "-", "PASS"),
        }
        assert all(record.ref == "AC" and record.alt == "A" for record in records.values())

    def test_unmapped_alt_produces_no_record(self):
        rows = rows_of(SyntheticRow(alt="T", omapalt="G"))
        assert RecordAssembler().assemble(rows) == {}

    def test_missing_caller_values_are_fatal(self):
        rows = rows_of(SyntheticRow(alt="T", oid=".", oref="C", oalt="T", omapalt="T,T"))
        with pytest.raises(MalformedRowError, match="OMAPALT"):
            RecordAssembler().assemble(rows)


class TestHotspotDeduplication:
    """Test merging of duplicate hotspot and de novo entries."""

    def test_hotspot_record_replaces_untagged(self):
        rows = rows_of(
            SyntheticRow(oid=".", fro="90", fao="10"),
            SyntheticRow(oid="COSM123", fro="80", fao="20"),
        )
        records = RecordAssembler().assemble(rows)

        assert len(records) == 1
        (record,) = records.values()
        assert record.hotspot_id == "COSM123"
        assert record.vaf == 20.0

    def test_untagged_does_not_replace_hotspot_record(self):
        rows = rows_of(
            SyntheticRow(oid="COSM123", fro="80", fao="20"),
            SyntheticRow(oid=".", fro="90", fao="10"),
        )
        (record,) = RecordAssembler().assemble(rows).values()
        assert record.hotspot_id == "COSM123"

    def test_excluded_hotspot_record_still_displaces_untagged(self):
        rows = rows_of(
            SyntheticRow(oid=".", fro="90", fao="10"),
            SyntheticRow(oid="COSM1", fro="995", fao="5"),
        )
        assert RecordAssembler(ExtractorConfig(drop_ref=True)).assemble(rows) == {}

    def test_different_filter_status_coexists(self):
        rows = rows_of(
            SyntheticRow(oid="."),
            SyntheticRow(oid="COSM123", filter="NOCALL", reason="PREDICTIONSHIFTx0.3"),
        )
        records = RecordAssembler().assemble(rows)

        assert len(records) == 2
        assert {record.filter for record in records.values()} == {"PASS", "NOCALL"}


class TestLowVAFExclusion:
    """Test the post-hoc low frequency exclusion."""

    def test_sub_one_percent_dropped_with_drop_ref(self):
        rows = rows_of(SyntheticRow(fro="995", fao="5"))
        assert RecordAssembler(ExtractorConfig(drop_ref=True)).assemble(rows) == {}

    def test_sub_one_percent_kept_without_drop_ref(self):
        rows = rows_of(SyntheticRow(fro="995", fao="5"))
        (record,) = RecordAssembler().assemble(rows).values()
        assert record.vaf == 0.5

    def test_sub_one_percent_kept_in_high_sensitivity_mode(self):
        config = ExtractorConfig(drop_ref=True, assay_mode=AssayMode.HIGH_SENSITIVITY)
        rows = rows_of(SyntheticRow(fro="995", fao="5", lod="0.05", dp="2000"))
        (record,) = RecordAssembler(config).assemble(rows).values()

        assert record.vaf == 0.5
        assert record.lod == "0.05"
        assert record.total_coverage == 2000

    def test_zero_vaf_dropped_with_drop_ref(self):
        config = ExtractorConfig(drop_ref=True, assay_mode=AssayMode.HIGH_SENSITIVITY)
        rows = rows_of(SyntheticRow(fro="100", fao="0"))
        assert RecordAssembler(config).assemble(rows) == {}

    def test_nocall_never_dropped_by_vaf(self):
        rows = rows_of(SyntheticRow(genotype="./.", fro="995", fao="5"))
        (record,) = RecordAssembler(ExtractorConfig(drop_ref=True)).assemble(rows).values()
        assert record.filter == "NOCALL"


class TestAnnotations:
    """Test annotation attachment during assembly."""

    def test_annotations_attached_when_requested(self, egfr_func):
        rows = rows_of(SyntheticRow(func=egfr_func))
        (record,) = RecordAssembler(ExtractorConfig(include_annotations=True)).assemble(rows).values()

        assert record.gene == "EGFR"
        assert record.annotation.protein == "p.Thr790Met"

    def test_annotations_ignored_when_not_requested(self, egfr_func):
        rows = rows_of(SyntheticRow(func=egfr_func))
        (record,) = RecordAssembler().assemble(rows).values()
        assert record.annotation is None

    def test_missing_func_warns(self):
        rows = rows_of(SyntheticRow(func="."))
        records, warnings = assemble_records(rows, ExtractorConfig(include_annotations=True))

        (record,) = records.values()
        assert record.gene == "NULL"
        assert warnings == ["could not find FUNC entry for 'chr7:55249071'"]

    def test_annotation_uses_normalized_alleles(self):
        func = func_payload(
            {"gene": "KRAS", "normalizedRef": "A", "normalizedAlt": "T",
             "normalizedPos": 25398285, "protein": "p.G12C"},
        )
        rows = rows_of(
            SyntheticRow(chrom="chr12", pos=25398284, ref="CA", alt="CT",
                         oref="A", oalt="T", func=func)
        )
        (record,) = RecordAssembler(ExtractorConfig(include_annotations=True)).assemble(rows).values()

        assert record.position == "chr12:25398285"
        assert record.annotation.protein == "p.G12C"


class TestEndToEnd:
    """Scenarios across several rows."""

    def test_nocall_reference_and_hotspot_rows(self):
        rows = rows_of(
            SyntheticRow(pos=1000, ref="G", alt="A", genotype="./.", filter="NOCALL",
                         oid="."),
            SyntheticRow(pos=1000, ref="G", alt="A", genotype="0/0", fro="400", fao="0",
                         oid="."),
            SyntheticRow(pos=1000, ref="G", alt="A", genotype="0/1", fro="340", fao="60",
                         oid="COSM999"),
        )
        config = ExtractorConfig(drop_ref=True, drop_nocall=True)
        records = RecordAssembler(config).assemble(rows)

        assert list(records) == [VariantKey("chr7:1000", "G", "A", "PASS")]
        (record,) = records.values()
        assert record.hotspot_id == "COSM999"
        assert record.vaf == 15.0
        assert record.total_coverage == 400

    def test_empty_input(self):
        assert RecordAssembler().assemble([]) == {}
