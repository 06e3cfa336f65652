"""
Sequence manipulation utilities.

Provides common functions for DNA sequence and CIGAR string operations.
"""

import re
from typing import Iterable, List, Tuple


# IUPAC ambiguity codes keyed by the set of bases they stand for
IUPAC_CODES = {
    frozenset('A'): 'A',
    frozenset('C'): 'C',
    frozenset('G'): 'G',
    frozenset('T'): 'T',
    frozenset('AG'): 'R',
    frozenset('CT'): 'Y',
    frozenset('CG'): 'S',
    frozenset('AT'): 'W',
    frozenset('GT'): 'K',
    frozenset('AC'): 'M',
    frozenset('CGT'): 'B',
    frozenset('AGT'): 'D',
    frozenset('ACT'): 'H',
    frozenset('ACG'): 'V',
    frozenset('ACGT'): 'N',
}

AMBIGUOUS_BASES = frozenset('NRYSWKMBDHV')

CIGAR_PATTERN = re.compile(r'(\d+)([MIDNSHP=X])')

_COMPLEMENT = str.maketrans(
    "ACGTRYSWKMBDHVN" "acgtryswkmbdhvn",
    "TGCAYRSWMKVHDBN" "tgcayrswmkvhdbn",
)


def reverse_complement(seq: str) -> str:
    """Return reverse complement of DNA sequence.

    IUPAC ambiguity codes are complemented; gaps and any other characters
    are kept as they are.
    """
    return seq.translate(_COMPLEMENT)[::-1]


def parse_cigar(cigar_str: str) -> List[Tuple[int, str]]:
    """Split a CIGAR string into (length, operation) pairs.

    Raises ValueError if the string contains anything other than
    length/operation pairs.
    """
    parsed = [(int(length), op) for length, op in CIGAR_PATTERN.findall(cigar_str)]
    if ''.join(f"{length}{op}" for length, op in parsed) != cigar_str:
        raise ValueError(f"Invalid CIGAR string: {cigar_str!r}")
    return parsed


def format_cigar(operations: Iterable[Tuple[int, str]]) -> str:
    """Format (length, operation) tuples as a CIGAR string, merging neighbours."""
    merged: List[Tuple[int, str]] = []
    for length, op in operations:
        if merged and merged[-1][1] == op:
            merged[-1] = (merged[-1][0] + length, op)
        else:
            merged.append((length, op))
    return ''.join(f"{length}{op}" for length, op in merged)


def count_ambiguous_bases(seq: str) -> int:
    """Count IUPAC ambiguity characters (N and friends) in a sequence."""
    return sum(1 for base in seq.upper() if base in AMBIGUOUS_BASES)


def iupac_code(bases: Iterable[str]) -> str:
    """Return the IUPAC code covering a collection of unambiguous bases."""
    key = frozenset(base.upper() for base in bases)
    if not key:
        return 'N'
    return IUPAC_CODES.get(key, 'N')
