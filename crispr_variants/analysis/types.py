"""
Type definitions for the crispr-variants analysis module.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass(frozen=True)
class InsertionRecord:
    """
    Inserted sequence observed in one sample.

    Attributes:
        sample: Run name
        label: Variant label of the reads carrying the insertion
        start: Genomic position of the reference base left of the insertion
        seq: Inserted bases
        count: Number of reads in the sample with this insertion and label
    """
    sample: str
    label: str
    start: int
    seq: str
    count: int = 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for DataFrame creation."""
        return {
            "sample": self.sample,
            "label": self.label,
            "start": self.start,
            "seq": self.seq,
            "count": self.count,
        }


@dataclass
class ConsensusAlignment:
    """
    Consensus of all reads sharing a variant label, anchored to the reference.

    Attributes:
        label: Variant label (frequency table row name)
        consensus: Consensus of the aligned read bases
        start: Genomic start shared by every read in the group
        aligned: Consensus laid out over the target window, one character per
            reference base; deletions and uncovered positions are gap
            characters, insertions are removed
        insertions: (genomic position left of insertion, inserted bases) pairs
            lifted out of the consensus
        n_reads: Number of reads the consensus was built from
    """
    label: str
    consensus: str
    start: int
    aligned: str
    insertions: List[Tuple[int, str]] = field(default_factory=list)
    n_reads: int = 0

    def __len__(self) -> int:
        return len(self.aligned)
