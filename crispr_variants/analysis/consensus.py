"""
Consensus sequences per variant label, re-anchored to the reference.

Reads sharing a label are grouped across runs; their aligned bases are
collapsed into a column-wise majority consensus and laid out over the
target window for display. Insertions are lifted out of the alignment and
reported separately.
"""

import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from ..core.cigar import ALIGNED_OPS
from ..core.models import AlignmentRecord, Run
from ..utils.sequence import iupac_code, reverse_complement
from .types import ConsensusAlignment, InsertionRecord

logger = logging.getLogger(__name__)


class UnsupportedAlignmentError(NotImplementedError):
    """Reads sharing a variant label start at different positions."""


def consensus_sequence(sequences: Sequence[str]) -> str:
    """
    Column-wise majority consensus of left-aligned sequences.

    Shorter sequences only vote in the columns they cover. Ties between
    bases give the IUPAC code of the tied bases (e.g. A/G -> R). N only wins
    a column in which no other base is present.

    Example:
        >>> consensus_sequence(["ACGT", "ACGA", "ACG"])
        'ACGW'
    """
    if not sequences:
        return ""

    width = max(len(s) for s in sequences)
    columns = []
    for i in range(width):
        votes = Counter(s[i].upper() for s in sequences if i < len(s))
        votes.pop('N', None)
        if not votes:
            columns.append('N')
            continue
        best = max(votes.values())
        tied = [base for base, n in votes.items() if n == best]
        columns.append(tied[0] if len(tied) == 1 else iupac_code(tied))
    return ''.join(columns)


def seqs_to_alignment(
    sequence: str,
    operations: Iterable,
    target_start: int,
    target_end: int,
    del_char: str = '-',
    pad_char: str = '-',
) -> Tuple[str, List[Tuple[int, str]]]:
    """
    Lay a sequence out over the target window using alignment operations.

    Args:
        sequence: Aligned bases, consumed in the order of the operations
        operations: CigarOperation objects describing the alignment
        target_start: Genomic start of the window
        target_end: Genomic end of the window
        del_char: Character for deleted reference bases
        pad_char: Character for window positions the sequence does not cover

    Returns:
        Tuple of (aligned string of window width, insertions), where
        insertions are (genomic position left of the insertion, bases)
    """
    width = target_end - target_start + 1
    aligned = [pad_char] * width
    insertions = []

    for op in operations:
        if op.is_insertion:
            insertions.append((op.ref_start - 1, sequence[op.query_start:op.query_end]))
            continue
        for i in range(op.length):
            idx = op.ref_start + i - target_start
            if not 0 <= idx < width:
                continue
            if op.op_code in ALIGNED_OPS:
                q = op.query_start + i
                aligned[idx] = sequence[q] if q < len(sequence) else pad_char
            else:
                aligned[idx] = del_char

    return ''.join(aligned), insertions


def group_records_by_label(
    runs: Sequence[Run],
    wanted: Optional[Iterable[str]] = None,
) -> Dict[str, List[AlignmentRecord]]:
    """Collect records of all runs by their label, optionally restricted."""
    wanted_set = set(wanted) if wanted is not None else None
    groups: Dict[str, List[AlignmentRecord]] = {}
    for run in runs:
        for record, label in zip(run.records, run.labels):
            if wanted_set is not None and label not in wanted_set:
                continue
            groups.setdefault(label, []).append(record)
    return groups


def build_consensus_alignments(
    counts: pd.DataFrame,
    runs: Sequence[Run],
    target_start: int,
    target_end: int,
    reverse: bool = False,
    del_char: str = '-',
    pad_char: str = '-',
) -> Dict[str, ConsensusAlignment]:
    """
    Build one consensus alignment per row of a (filtered) frequency table.

    Args:
        counts: Frequency table; its row names select the labels to build
        runs: Labelled runs holding the records
        target_start: Genomic start of the target window
        target_end: Genomic end of the target window
        reverse: Reverse complement the aligned consensus (minus strand display)
        del_char: Character for deleted bases
        pad_char: Character for uncovered positions

    Returns:
        Dict label -> ConsensusAlignment, in frequency table row order

    Raises:
        UnsupportedAlignmentError: If reads sharing a label start at different
            genomic positions
    """
    groups = group_records_by_label(runs, counts.index)
    alignments = {}

    for label in counts.index:
        records = groups.get(label)
        if not records:
            logger.debug(f"No records left for variant {label!r}; skipping")
            continue

        starts = sorted({r.start for r in records})
        if len(starts) > 1:
            raise UnsupportedAlignmentError(
                f"Sequences with the variant label {label!r} have different "
                f"starting locations {starts}. This case is not implemented yet."
            )

        consensus = consensus_sequence([r.sequence for r in records])
        # The longest member covers every consensus column
        representative = max(records, key=lambda r: len(r.sequence))
        aligned, insertions = seqs_to_alignment(
            consensus, representative.operations, target_start, target_end,
            del_char=del_char, pad_char=pad_char,
        )
        if reverse:
            aligned = reverse_complement(aligned)
            insertions = [(pos, reverse_complement(seq)) for pos, seq in insertions]

        alignments[label] = ConsensusAlignment(
            label=label,
            consensus=consensus,
            start=starts[0],
            aligned=aligned,
            insertions=insertions,
            n_reads=len(records),
        )

    logger.debug(f"Built {len(alignments)} consensus alignments")
    return alignments


def get_insertions(runs: Sequence[Run]) -> pd.DataFrame:
    """
    Table of inserted sequences per sample and label.

    Returns:
        DataFrame with columns sample, label, start, seq, count; one row per
        distinct (sample, label, start, seq), sorted by start then seq
    """
    tally: Dict[Tuple[str, str, int, str], int] = {}
    for run in runs:
        for record, label in zip(run.records, run.labels):
            for op, seq in record.inserted_sequences():
                key = (run.name, label, op.ref_start - 1, seq)
                tally[key] = tally.get(key, 0) + 1

    rows = [InsertionRecord(sample, label, start, seq, n).to_dict()
            for (sample, label, start, seq), n in tally.items()]
    columns = ['sample', 'label', 'start', 'seq', 'count']
    if not rows:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(rows, columns=columns)
    return df.sort_values(['start', 'seq'], kind='stable').reset_index(drop=True)
