"""Tests for the CrisprSet controller."""

import logging

import pandas as pd
import pytest
from crispr_variants import (
    AlignmentRecord,
    ConfigurationError,
    CrisprSet,
    LabelConfig,
    Run,
    Target,
    VariantSetConfig,
)


REFERENCE = "ACGTACGTACGTACGTACGTACGTACGT"
DELETED = REFERENCE[:21] + REFERENCE[25:]
INSERTED = REFERENCE[:22] + "GG" + REFERENCE[22:]


def plus_target(target_loc=22):
    return Target(chrom="5", start=101, end=128, strand='+', target_loc=target_loc)


def record(read_id, cigar="28M", seq=REFERENCE, start=101):
    return AlignmentRecord.from_cigar(read_id, start, cigar, seq)


def deletion(read_id):
    return record(read_id, "21M4D3M", DELETED)


def worked_runs():
    return [
        Run.from_records("sample", [deletion(f"s{i}") for i in range(4)] + [record("s4")]),
        Run.from_records("control", [deletion("c0")] + [record(f"c{i}") for i in range(1, 4)]),
    ]


class TestConstruction:
    """Test CrisprSet initialisation."""

    def test_worked_example(self):
        cset = CrisprSet(worked_runs(), REFERENCE, plus_target())
        assert list(cset.cigar_freqs.index) == ["no variant", "-1:4D"]
        assert cset.cigar_freqs.values.tolist() == [[1, 3], [4, 1]]
        assert cset.variant_counts is cset.cigar_freqs
        assert cset.run_names == ["sample", "control"]
        assert len(cset) == 2

    def test_runs_carry_labels(self):
        cset = CrisprSet(worked_runs(), REFERENCE, plus_target())
        assert cset.runs[0].labels == ("-1:4D",) * 4 + ("no variant",)
        assert cset.labels["-1:4D"].is_indel

    def test_coordinate_map(self):
        cset = CrisprSet(worked_runs(), REFERENCE, plus_target())
        assert cset.coordinate_map[122] == -1
        assert cset.coordinate_map[123] == 1

    def test_names(self):
        cset = CrisprSet(worked_runs(), REFERENCE, plus_target(), names=["treated", "wt"])
        assert list(cset.cigar_freqs.columns) == ["treated", "wt"]
        assert cset.runs[0].records[0].sample == "treated"

    def test_names_length_mismatch(self):
        with pytest.raises(ConfigurationError):
            CrisprSet(worked_runs(), REFERENCE, plus_target(), names=["only one"])

    def test_duplicate_run_names(self):
        runs = [
            Run.from_records("s", [deletion("a")]),
            Run.from_records("s", [record("b")]),
        ]
        with pytest.raises(ConfigurationError, match="unique"):
            CrisprSet(runs, REFERENCE, plus_target())

    def test_duplicate_display_names(self):
        with pytest.raises(ConfigurationError, match="unique"):
            CrisprSet(worked_runs(), REFERENCE, plus_target(), names=["x", "x"])

    def test_empty_runs_dropped(self, caplog):
        runs = worked_runs() + [Run(name="empty")]
        with caplog.at_level(logging.WARNING):
            cset = CrisprSet(runs, REFERENCE, plus_target())
        assert cset.run_names == ["sample", "control"]
        assert any("empty" in r.getMessage() for r in caplog.records)

    def test_no_reads(self):
        with pytest.raises(ConfigurationError, match="no on target reads"):
            CrisprSet([Run(name="a"), Run(name="b")], REFERENCE, plus_target())

    def test_width_mismatch(self):
        with pytest.raises(ConfigurationError, match="same width"):
            CrisprSet(worked_runs(), REFERENCE + "A", plus_target())

    def test_renumbering_requires_target_loc(self):
        with pytest.raises(ConfigurationError, match="target_loc"):
            CrisprSet(worked_runs(), REFERENCE, plus_target(target_loc=None))

    def test_not_renumbered_uses_default_cut(self):
        """Test genomic offsets and the default cut site for the SNV window."""
        snv = REFERENCE[:16] + "C" + REFERENCE[17:]  # position 117
        runs = [Run.from_records("s1", [deletion("a"), record("b", seq=snv)])]
        cset = CrisprSet(runs, REFERENCE, plus_target(target_loc=None),
                         config=LabelConfig(renumbered=False))
        assert set(cset.cigar_freqs.index) == {"122:4D", "SNV:117C"}

    def test_minus_strand(self):
        runs = [Run.from_records("s1", [
            record("a", "3M4D21M", REFERENCE[:3] + REFERENCE[7:]),
            record("b", "6M2I22M", REFERENCE[:6] + "GG" + REFERENCE[6:]),
        ])]
        target = Target(chrom="5", start=101, end=128, strand='-', target_loc=22)
        cset = CrisprSet(runs, REFERENCE, target)
        assert list(cset.cigar_freqs.index) == ["-1:4D", "-1:2I"]

    def test_insertion_at_read_end(self):
        """Test that an insertion right of the last aligned base can be renumbered."""
        runs = [Run.from_records("s1", [record("a", "20M2I", REFERENCE[:20] + "GG")])]
        target = Target(chrom="5", start=101, end=128, strand='-', target_loc=22)
        cset = CrisprSet(runs, REFERENCE, target)
        assert list(cset.cigar_freqs.index) == ["-15:2I"]

    def test_insertion_at_read_start(self):
        """Test that an insertion left of the first aligned base can be renumbered."""
        runs = [Run.from_records("s1", [record("a", "2I28M", "GG" + REFERENCE)])]
        cset = CrisprSet(runs, REFERENCE, plus_target())
        assert list(cset.cigar_freqs.index) == ["-23:2I"]
        assert cset.coordinate_map.genomic_start == 100

    def test_parallel_labelling(self):
        serial = CrisprSet(worked_runs(), REFERENCE, plus_target())
        parallel = CrisprSet(worked_runs(), REFERENCE, plus_target(), n_jobs=2)
        pd.testing.assert_frame_equal(serial.cigar_freqs, parallel.cigar_freqs)
        assert [r.labels for r in serial.runs] == [r.labels for r in parallel.runs]

    def test_from_config(self):
        config = VariantSetConfig(target=plus_target(), reference=REFERENCE,
                                  labels=LabelConfig(match_label="wt"),
                                  names=["a", "b"])
        cset = CrisprSet.from_config(worked_runs(), config)
        assert list(cset.cigar_freqs.index) == ["wt", "-1:4D"]
        assert cset.run_names == ["a", "b"]

    def test_from_records(self):
        off_target = record("far", "10M", "ACGTACGTAC", start=500)
        cset = CrisprSet.from_records(
            {"s1": [deletion("a"), off_target], "s2": [record("b")]},
            REFERENCE, plus_target(),
        )
        assert cset.cigar_freqs.sum().tolist() == [1, 1]

    def test_repr(self):
        cset = CrisprSet(worked_runs(), REFERENCE, plus_target())
        assert repr(cset) == "CrisprSet(2 samples, target 5:101-128(+), 2 variants)"
        assert "-1:4D" in cset.summary()


class TestDerivedViews:
    """Test the summaries computed from a CrisprSet."""

    def test_mutation_efficiency(self):
        cset = CrisprSet(worked_runs(), REFERENCE, plus_target())
        eff = cset.mutation_efficiency(exclude_cols=["control"])
        assert eff["sample"] == 80.0
        assert eff["Overall"] == 80.0

    def test_filtered_table(self):
        cset = CrisprSet(worked_runs(), REFERENCE, plus_target())
        assert list(cset.filtered_table(top_n=1).index) == ["-1:4D"]
        assert list(cset.filtered_table(min_count=5).index) == ["-1:4D"]

    def test_classifications(self):
        cset = CrisprSet(worked_runs(), REFERENCE, plus_target())
        assert cset.classify_variants_by_type().tolist() == ["no variant", "deletion"]

        def lookup(ranges):
            return ranges.assign(location="coding")[["chrom", "start", "end", "location"]]

        var_type = cset.classify_variants_by_location(lookup)
        assert var_type.tolist() == ["no variant", "coding"]
        sized = cset.classify_coding_by_size(var_type)
        assert sized["-1:4D"] == "frameshift indel < 10"

    def test_indel_ranges(self):
        cset = CrisprSet(worked_runs(), REFERENCE, plus_target())
        ranges = cset.get_unique_indel_ranges()
        assert ranges.values.tolist() == [["chr5", 122, 125, "-1:4D"]]

    def test_alleles_and_spectrum(self):
        cset = CrisprSet(worked_runs(), REFERENCE, plus_target())
        assert cset.count_variant_alleles()["Allele"].tolist() == [1, 1]
        spectrum = cset.variant_frequency_spectrum()
        assert spectrum.values.tolist() == [[2, 5, 1]]

    def test_insertions(self):
        runs = [Run.from_records("s1", [record("a", "22M2I6M", INSERTED)])]
        cset = CrisprSet(runs, REFERENCE, plus_target())
        insertions = cset.get_insertions()
        assert insertions.values.tolist() == [["s1", "-1:2I", 122, "GG", 1]]

    def test_pairwise_alignments(self):
        cset = CrisprSet(worked_runs(), REFERENCE, plus_target())
        alignments = cset.make_pairwise_alignments(top_n=1)
        assert list(alignments) == ["-1:4D"]
        assert alignments["-1:4D"].aligned == REFERENCE[:21] + "----" + REFERENCE[25:]
        assert alignments["-1:4D"].n_reads == 5

    def test_pairwise_alignments_reverse_complement(self):
        runs = [Run.from_records("s1", [deletion("a"), record("b", "21M4D3M", "G" + DELETED[1:])])]
        cset = CrisprSet(runs, REFERENCE, plus_target())
        aligned = cset.make_pairwise_alignments(rc=True)["-1:4D"].aligned
        assert aligned.endswith("Y")
        assert "N" not in aligned

    def test_find_chimeras(self):
        runs = [
            Run.from_records("s1", [record("x"), record("y"), record("x")]),
            Run.from_records("s2", [record("z")]),
        ]
        cset = CrisprSet(runs, REFERENCE, plus_target())
        assert cset.find_chimeras() == {"s1": [0, 2]}

    def test_filter_unique_low_quality(self):
        ambiguous = "N" + DELETED[1:]
        runs = [
            Run.from_records("s1", [record("a"), record("b", "21M4D3M", ambiguous)]),
            Run.from_records("s2", [record("c"), record("d")]),
        ]
        cset = CrisprSet(runs, REFERENCE, plus_target())
        assert cset.filter_unique_low_quality() == 1
        assert list(cset.cigar_freqs.index) == ["no variant"]
        assert len(cset.runs[0]) == 1
        assert cset.cigar_freqs["s1"].sum() == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
