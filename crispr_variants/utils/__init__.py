"""
Utility modules for crispr-variants.
"""

from .sequence import (
    count_ambiguous_bases,
    format_cigar,
    iupac_code,
    parse_cigar,
    reverse_complement,
)

__all__ = [
    'reverse_complement',
    'parse_cigar',
    'format_cigar',
    'count_ambiguous_bases',
    'iupac_code',
]
