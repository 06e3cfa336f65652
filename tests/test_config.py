"""Tests for crispr_variants.config module."""

import pytest
from crispr_variants.config import (
    DEFAULT_CUT_SITE,
    ConfigurationError,
    LabelConfig,
    Target,
    VariantSetConfig,
    is_dna_sequence,
    parse_sequence_input,
)


REFERENCE = "ACGTACGTACGTACGTACGTACGTACGT"  # 28 bp


class TestTarget:
    """Test Target class."""

    def test_basic_initialization(self):
        target = Target(chrom="5", start=101, end=128, strand='+', target_loc=22)
        assert target.width == 28
        assert not target.is_reverse
        assert target.cut_site == 22

    def test_default_cut_site(self):
        """Test that the cut site falls back to the default without target_loc."""
        target = Target(chrom="5", start=101, end=128)
        assert target.cut_site == DEFAULT_CUT_SITE == 18

    def test_bad_strand(self):
        with pytest.raises(ConfigurationError):
            Target(chrom="5", start=101, end=128, strand='x')

    def test_end_before_start(self):
        with pytest.raises(ConfigurationError):
            Target(chrom="5", start=128, end=101)

    def test_from_dict(self):
        target = Target.from_dict({"chrom": 5, "start": 101, "end": 128, "strand": "-"})
        assert target.chrom == "5"
        assert target.is_reverse
        assert target.target_loc is None


class TestLabelConfig:
    """Test LabelConfig class."""

    def test_defaults(self):
        config = LabelConfig()
        assert config.match_label == "no variant"
        assert config.mismatch_label == "SNV"
        assert config.short
        assert config.renumbered
        assert config.split_snv
        assert config.upstream_snv == 8
        assert config.downstream_snv == 5

    def test_same_labels_rejected(self):
        with pytest.raises(ConfigurationError):
            LabelConfig(match_label="x", mismatch_label="x")

    def test_negative_window_rejected(self):
        with pytest.raises(ConfigurationError):
            LabelConfig(upstream_snv=-1)

    def test_from_dict_ignores_unknown_keys(self):
        config = LabelConfig.from_dict({"match_label": "wt", "colour": "blue"})
        assert config.match_label == "wt"


class TestVariantSetConfig:
    """Test VariantSetConfig validation and YAML loading."""

    def test_width_mismatch(self):
        """Test that a reference shorter than the target is rejected."""
        config = VariantSetConfig(
            target=Target("5", 101, 128, target_loc=22),
            reference=REFERENCE[:-1],
        )
        with pytest.raises(ConfigurationError, match="same width"):
            config.validate()

    def test_renumbering_requires_target_loc(self):
        config = VariantSetConfig(target=Target("5", 101, 128), reference=REFERENCE)
        with pytest.raises(ConfigurationError, match="target_loc"):
            config.validate()

    def test_no_renumbering_without_target_loc(self):
        config = VariantSetConfig(
            target=Target("5", 101, 128),
            reference=REFERENCE,
            labels=LabelConfig(renumbered=False),
        )
        assert config.validate() is config

    def test_from_yaml(self, tmp_path):
        """Test loading a full configuration from YAML."""
        path = tmp_path / "config.yaml"
        path.write_text(
            "target:\n"
            "  chrom: chr5\n"
            "  start: 101\n"
            "  end: 128\n"
            "  strand: '-'\n"
            "  target_loc: 22\n"
            f"reference: {REFERENCE.lower()}\n"
            "names: [sample, control]\n"
            "n_jobs: 2\n"
            "labels:\n"
            "  match_label: wild type\n"
            "  upstream_snv: 4\n"
        )
        config = VariantSetConfig.from_yaml(path)
        assert config.reference == REFERENCE
        assert config.target.is_reverse
        assert config.target.target_loc == 22
        assert config.names == ["sample", "control"]
        assert config.n_jobs == 2
        assert config.labels.match_label == "wild type"
        assert config.labels.upstream_snv == 4
        assert config.labels.downstream_snv == 5

    def test_from_yaml_fasta_reference(self, tmp_path):
        """Test that the reference may be given as a FASTA path."""
        fasta = tmp_path / "ref.fa"
        fasta.write_text(f">amplicon\n{REFERENCE[:14]}\n{REFERENCE[14:]}\n>other\nAAAA\n")
        path = tmp_path / "config.yaml"
        path.write_text(
            "target: {chrom: '5', start: 101, end: 128, target_loc: 22}\n"
            f"reference: {fasta}\n"
        )
        config = VariantSetConfig.from_yaml(path)
        assert config.reference == REFERENCE

    def test_from_yaml_missing_target(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(f"reference: {REFERENCE}\n")
        with pytest.raises(ConfigurationError):
            VariantSetConfig.from_yaml(path)


class TestSequenceInput:
    """Test sequence input parsing."""

    def test_is_dna_sequence(self):
        assert is_dna_sequence("ACGTN")
        assert not is_dna_sequence("")
        assert not is_dna_sequence("/tmp/ref.fa")

    def test_parse_dna_string(self):
        assert parse_sequence_input(" acgt ") == "ACGT"

    def test_missing_file(self):
        with pytest.raises(ConfigurationError):
            parse_sequence_input("/does/not/exist.fa")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
