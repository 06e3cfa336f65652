"""
Chimeric read detection.

Assumes the alignments contain no multimapping reads, so a read name that
appears more than once marks the fragments of a split (chimeric) read.
"""

from collections import Counter
from typing import Dict, List, Sequence

from .models import AlignmentRecord


def find_chimeras(records: Sequence[AlignmentRecord]) -> List[int]:
    """
    Find the fragments of chimeric reads.

    Args:
        records: Alignment records of one run

    Returns:
        Indices of records whose read id occurs more than once, ordered by
        read id so that fragments of the same read are adjacent. Fragments of
        one read keep their original relative order.
    """
    name_counts = Counter(r.read_id for r in records)
    chimera_idxs = [i for i, r in enumerate(records) if name_counts[r.read_id] > 1]
    return sorted(chimera_idxs, key=lambda i: (records[i].read_id, i))


def group_chimeras(records: Sequence[AlignmentRecord]) -> Dict[str, List[int]]:
    """Map each chimeric read id to the indices of its fragments."""
    groups: Dict[str, List[int]] = {}
    for idx in find_chimeras(records):
        groups.setdefault(records[idx].read_id, []).append(idx)
    return groups
