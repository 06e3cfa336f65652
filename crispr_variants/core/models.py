"""
Data models for alignment records and per-sample runs.

AlignmentRecord and Run are immutable; operations that remove records return
new objects so that a CrisprSet stays the single owner of its runs.
"""

from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pysam

from ..utils.sequence import count_ambiguous_bases, format_cigar, parse_cigar
from .cigar import (
    ALIGNED_OPS,
    CIGAR_CODES,
    CigarOperation,
    build_operations,
    clip_lengths,
)


@dataclass(frozen=True)
class AlignmentRecord:
    """
    One aligned read, restricted to its aligned (unclipped) bases.

    Attributes:
        read_id: Read name. Repeated names indicate chimeric fragments.
        start: 1-based genomic position of the first reference base covered
        operations: Positioned CIGAR operations (no clips)
        sequence: Aligned read bases, soft clips removed
        sample: Owning sample name
    """
    read_id: str
    start: int
    operations: Tuple[CigarOperation, ...]
    sequence: str
    sample: Optional[str] = None

    @classmethod
    def from_cigar(
        cls,
        read_id: str,
        start: int,
        cigar: str,
        sequence: str,
        sample: Optional[str] = None,
    ) -> 'AlignmentRecord':
        """
        Build a record from a CIGAR string.

        Args:
            read_id: Read name
            start: 1-based genomic position of the first aligned base
            cigar: CIGAR string; soft clipped bases are stripped from sequence
            sequence: Full read sequence as stored in the alignment
            sample: Owning sample name
        """
        tuples = [(CIGAR_CODES[op], length) for length, op in parse_cigar(cigar)]
        left, right = clip_lengths(tuples)
        aligned = sequence[left:len(sequence) - right]
        operations = tuple(build_operations(tuples, start))

        query_length = operations[-1].query_end if operations else 0
        if query_length != len(aligned):
            raise ValueError(
                f"Read {read_id}: CIGAR {cigar} consumes {query_length} bases "
                f"but {len(aligned)} aligned bases were supplied"
            )
        return cls(read_id=read_id, start=start, operations=operations,
                   sequence=aligned.upper(), sample=sample)

    @property
    def end(self) -> int:
        """Last reference base covered (1-based, inclusive)."""
        if not self.operations:
            return self.start - 1
        return max(op.ref_end for op in self.operations)

    @property
    def cigar(self) -> str:
        return format_cigar((op.length, op.op_char) for op in self.operations)

    @property
    def genome_ranges(self) -> List[Tuple[int, int]]:
        """Genomic (start, end) of every operation, zero-width for insertions."""
        return [(op.ref_start, op.ref_end) for op in self.operations]

    @property
    def has_indel(self) -> bool:
        return any(op.is_indel for op in self.operations)

    def ambiguous_bases(self) -> int:
        """Number of N (or other ambiguity) characters in the aligned bases."""
        return count_ambiguous_bases(self.sequence)

    def inserted_sequences(self) -> List[Tuple[CigarOperation, str]]:
        """Return (operation, inserted bases) for every insertion."""
        return [(op, self.sequence[op.query_start:op.query_end])
                for op in self.operations if op.is_insertion]


def narrow_to_target(
    record: AlignmentRecord,
    target_start: int,
    target_end: int,
) -> Optional[AlignmentRecord]:
    """
    Trim a record to the target window.

    Aligned blocks and deletions are clipped to the window. Insertions are
    kept only when both flanking reference bases lie inside the window.

    Returns:
        The trimmed record, or None if nothing of it lies in the window
    """
    kept: List[Tuple[int, int]] = []
    pieces: List[str] = []
    new_start = None

    for op in record.operations:
        if op.is_insertion:
            if target_start < op.ref_start <= target_end and new_start is not None:
                kept.append((op.op_code, op.length))
                pieces.append(record.sequence[op.query_start:op.query_end])
            continue

        overlap_start = max(op.ref_start, target_start)
        overlap_end = min(op.ref_end, target_end)
        if overlap_start > overlap_end:
            continue
        length = overlap_end - overlap_start + 1
        if new_start is None:
            new_start = overlap_start
        kept.append((op.op_code, length))
        if op.op_code in ALIGNED_OPS:
            offset = op.query_start + (overlap_start - op.ref_start)
            pieces.append(record.sequence[offset:offset + length])

    if new_start is None:
        return None

    return replace(
        record,
        start=new_start,
        operations=tuple(build_operations(kept, new_start)),
        sequence=''.join(pieces),
    )


def record_from_segment(
    read: pysam.AlignedSegment,
    sample: Optional[str] = None,
) -> Optional[AlignmentRecord]:
    """
    Convert a mapped pysam read into an AlignmentRecord.

    Returns None for unmapped reads or reads without a stored sequence.
    """
    if read.is_unmapped or read.cigartuples is None or read.query_sequence is None:
        return None

    left, right = clip_lengths(read.cigartuples)
    sequence = read.query_sequence
    aligned = sequence[left:len(sequence) - right]
    return AlignmentRecord(
        read_id=read.query_name,
        start=read.reference_start + 1,
        operations=tuple(build_operations(read.cigartuples, read.reference_start + 1)),
        sequence=aligned.upper(),
        sample=sample,
    )


@dataclass(frozen=True)
class Run:
    """
    One sequencing sample: its on-target records and their cached labels.

    Attributes:
        name: Display name (column name in the frequency table)
        records: On-target alignment records
        labels: Variant label strings, parallel to records; empty until set
    """
    name: str
    records: Tuple[AlignmentRecord, ...] = ()
    labels: Tuple[str, ...] = field(default=())

    @classmethod
    def from_records(
        cls,
        name: str,
        records: Iterable[AlignmentRecord],
        target_start: Optional[int] = None,
        target_end: Optional[int] = None,
    ) -> 'Run':
        """
        Create a run, optionally narrowing every record to the target window.

        Records that do not overlap the window are dropped.
        """
        records = list(records)
        if target_start is not None and target_end is not None:
            narrowed = (narrow_to_target(r, target_start, target_end) for r in records)
            records = [r for r in narrowed if r is not None]
        return cls(name=name,
                   records=tuple(replace(r, sample=name) for r in records))

    @classmethod
    def from_segments(
        cls,
        name: str,
        reads: Iterable[pysam.AlignedSegment],
        target_start: Optional[int] = None,
        target_end: Optional[int] = None,
    ) -> 'Run':
        """Create a run from pysam reads, skipping unmapped ones."""
        records = (record_from_segment(read, name) for read in reads)
        return cls.from_records(name, (r for r in records if r is not None),
                                target_start, target_end)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def is_empty(self) -> bool:
        return len(self.records) == 0

    @property
    def read_ids(self) -> List[str]:
        return [r.read_id for r in self.records]

    def with_name(self, name: str) -> 'Run':
        return replace(self, name=name,
                       records=tuple(replace(r, sample=name) for r in self.records))

    def with_labels(self, labels: Sequence[str]) -> 'Run':
        if len(labels) != len(self.records):
            raise ValueError(
                f"Run {self.name}: {len(labels)} labels for {len(self.records)} records"
            )
        return replace(self, labels=tuple(labels))

    def without_records(self, indices: Iterable[int]) -> 'Run':
        """Return a copy with the records at the given indices removed."""
        drop = set(indices)
        keep = [i for i in range(len(self.records)) if i not in drop]
        labels = tuple(self.labels[i] for i in keep) if self.labels else ()
        return replace(self,
                       records=tuple(self.records[i] for i in keep),
                       labels=labels)

    def label_counts(self) -> Dict[str, int]:
        """Count records per label, in first-seen order."""
        return dict(Counter(self.labels))
