"""Tests for crispr_variants.utils module."""

import pytest
from crispr_variants.utils.sequence import (
    count_ambiguous_bases,
    format_cigar,
    iupac_code,
    parse_cigar,
    reverse_complement,
)


class TestReverseComplement:
    """Test reverse complement of reads and alignment strings."""

    def test_amplicon_fragment(self):
        assert reverse_complement("ACGTTGCA") == "TGCAACGT"

    def test_applied_twice(self):
        seq = "GGATCCTTN"
        assert reverse_complement(reverse_complement(seq)) == seq

    def test_case_preserved(self):
        assert reverse_complement("ggaT") == "Atcc"

    def test_gaps_are_kept(self):
        """Test that gap characters stay in place after reversal."""
        assert reverse_complement("AAC-G") == "C-GTT"

    def test_ambiguity_codes(self):
        assert reverse_complement("RYKMBVDH") == "DHBVKMRY"
        assert reverse_complement("swn") == "nws"

    def test_unknown_characters_pass_through(self):
        assert reverse_complement("A*C") == "G*T"


class TestCigarStrings:
    """Test CIGAR string helpers."""

    def test_parse_cigar(self):
        assert parse_cigar("10M2I3D5M") == [(10, 'M'), (2, 'I'), (3, 'D'), (5, 'M')]

    def test_parse_cigar_invalid(self):
        """Test that junk in a CIGAR string is rejected."""
        with pytest.raises(ValueError):
            parse_cigar("10Q")
        with pytest.raises(ValueError):
            parse_cigar("M10")

    def test_format_cigar_merges_neighbours(self):
        assert format_cigar([(3, 'M'), (2, 'M'), (1, 'D'), (4, 'M')]) == "5M1D4M"


class TestAmbiguity:
    """Test ambiguous base helpers."""

    def test_count_ambiguous_bases(self):
        assert count_ambiguous_bases("ACGT") == 0
        assert count_ambiguous_bases("ACNNR") == 3
        assert count_ambiguous_bases("acn") == 1

    def test_iupac_code_pairs(self):
        assert iupac_code("AG") == 'R'
        assert iupac_code(["C", "T"]) == 'Y'
        assert iupac_code("TA") == 'W'

    def test_iupac_code_single_base(self):
        assert iupac_code("G") == 'G'

    def test_iupac_code_empty(self):
        assert iupac_code([]) == 'N'


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
