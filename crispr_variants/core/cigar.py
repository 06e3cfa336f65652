"""
CIGAR parsing utilities for variant labelling.

Operations are expressed in 1-based, inclusive genomic coordinates so they
can be renumbered directly. Insertions are zero-width on the reference:
their ``ref_start`` is the base to the right of the insertion and
``ref_end == ref_start - 1``.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

# CIGAR operation codes (pysam / SAM format)
CIGAR_OPS = {
    0: 'M',   # Match/mismatch
    1: 'I',   # Insertion
    2: 'D',   # Deletion
    3: 'N',   # Skipped region (intron)
    4: 'S',   # Soft clip
    5: 'H',   # Hard clip
    6: 'P',   # Padding
    7: '=',   # Sequence match
    8: 'X',   # Sequence mismatch
}
CIGAR_CODES = {op: code for code, op in CIGAR_OPS.items()}

# Operations that consume reference bases
REF_CONSUMING_OPS = {0, 2, 3, 7, 8}  # M, D, N, =, X

# Operations that consume query (read) bases
QUERY_CONSUMING_OPS = {0, 1, 4, 7, 8}  # M, I, S, =, X

# Operations with one read base per reference base
ALIGNED_OPS = {0, 7, 8}  # M, =, X

INDEL_OPS = {1, 2}  # I, D


@dataclass(frozen=True)
class CigarOperation:
    """Represents a single CIGAR operation with genomic coordinates."""
    op_code: int
    op_char: str
    length: int
    ref_start: int
    ref_end: int
    query_start: int
    query_end: int

    @property
    def is_indel(self) -> bool:
        return self.op_code in INDEL_OPS

    @property
    def is_insertion(self) -> bool:
        return self.op_code == 1

    @property
    def is_deletion(self) -> bool:
        return self.op_code == 2


def build_operations(
    cigar_tuples: Sequence[Tuple[int, int]],
    ref_start: int,
) -> List[CigarOperation]:
    """
    Turn (op_code, length) tuples into positioned operations.

    Soft and hard clips are dropped; query coordinates index into the
    aligned (unclipped) part of the read.

    Args:
        cigar_tuples: (op_code, length) pairs as produced by pysam
        ref_start: 1-based genomic position of the first aligned base

    Returns:
        List of CigarOperation objects
    """
    operations = []
    ref_pos = ref_start
    query_pos = 0

    for op_code, length in cigar_tuples:
        if op_code in (4, 5, 6):
            continue
        op_char = CIGAR_OPS.get(op_code, '?')

        ref_end = ref_pos + length - 1 if op_code in REF_CONSUMING_OPS else ref_pos - 1
        query_end = query_pos + length if op_code in QUERY_CONSUMING_OPS else query_pos

        operations.append(CigarOperation(
            op_code=op_code,
            op_char=op_char,
            length=length,
            ref_start=ref_pos,
            ref_end=ref_end,
            query_start=query_pos,
            query_end=query_end,
        ))

        if op_code in REF_CONSUMING_OPS:
            ref_pos += length
        if op_code in QUERY_CONSUMING_OPS:
            query_pos += length

    return operations


def clip_lengths(cigar_tuples: Sequence[Tuple[int, int]]) -> Tuple[int, int]:
    """Return the number of soft-clipped bases at the 5' and 3' ends."""
    codes = [op for op, _ in cigar_tuples]
    lengths = [length for _, length in cigar_tuples]
    left = 0
    i = 0
    while i < len(codes) and codes[i] in (4, 5):
        if codes[i] == 4:
            left += lengths[i]
        i += 1
    right = 0
    j = len(codes) - 1
    while j > i and codes[j] in (4, 5):
        if codes[j] == 4:
            right += lengths[j]
        j -= 1
    return left, right

