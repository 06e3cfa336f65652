"""
Variant labels for aligned reads.

A read is described by the insertions and deletions it carries, each
written as ``<offset>:<length><op>`` (e.g. ``-1:4D``) and joined by commas
in read order. Reads without indels are labelled with the match label, or
the mismatch label if they carry single nucleotide variants. With SNV
splitting, mismatches close to the cut site are listed after the mismatch
label, e.g. ``SNV:-3G,2A``.

Labels are built as VariantLabel structures and only formatted to strings
for aggregation, so identical operations always give identical strings.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ..config import LabelConfig
from .cigar import ALIGNED_OPS
from .models import AlignmentRecord
from .renumber import CoordinateMap


class VariantKind(Enum):
    """Top level variant categories."""
    MATCH = 'match'
    MISMATCH = 'mismatch'
    INDEL = 'indel'


@dataclass(frozen=True)
class IndelToken:
    """
    A single insertion or deletion.

    Attributes:
        offset: Position of the 5'-most affected base (target coordinates if
            renumbered, otherwise genomic)
        length: Indel size in bp
        op: 'I' or 'D'
        genomic_start: First genomic base of the indel range. Insertions span
            their two flanking bases.
        genomic_end: Last genomic base of the indel range
    """
    offset: int
    length: int
    op: str
    genomic_start: int = field(default=0, compare=False)
    genomic_end: int = field(default=0, compare=False)

    def __str__(self) -> str:
        return f"{self.offset}:{self.length}{self.op}"


@dataclass(frozen=True)
class SNVToken:
    """A mismatch reported in split-SNV mode."""
    offset: int
    base: str

    def __str__(self) -> str:
        return f"{self.offset}{self.base}"


@dataclass(frozen=True)
class VariantLabel:
    """Structured variant label of one read."""
    kind: VariantKind
    indels: Tuple[IndelToken, ...] = ()
    snvs: Tuple[SNVToken, ...] = ()
    cigar: Optional[str] = field(default=None, compare=False)

    @property
    def is_match(self) -> bool:
        return self.kind == VariantKind.MATCH

    @property
    def is_mismatch(self) -> bool:
        return self.kind == VariantKind.MISMATCH

    @property
    def is_indel(self) -> bool:
        return self.kind == VariantKind.INDEL

    @property
    def has_insertion(self) -> bool:
        return any(t.op == 'I' for t in self.indels)

    @property
    def has_deletion(self) -> bool:
        return any(t.op == 'D' for t in self.indels)

    @property
    def indel_length(self) -> int:
        """Summed length of all insertions and deletions."""
        return sum(t.length for t in self.indels)

    def format(self, config: LabelConfig) -> str:
        """Canonical string form used as the frequency table row name."""
        if self.kind == VariantKind.MATCH:
            return config.match_label
        if self.kind == VariantKind.MISMATCH:
            if self.snvs:
                return f"{config.mismatch_label}:" + ",".join(str(s) for s in self.snvs)
            return config.mismatch_label
        if not config.short and self.cigar:
            return self.cigar
        return ",".join(str(t) for t in self.indels)


def _indel_tokens(
    record: AlignmentRecord,
    coordinate_map: Optional[CoordinateMap],
) -> List[IndelToken]:
    tokens = []
    reverse = coordinate_map is not None and coordinate_map.is_reverse

    for op in record.operations:
        if op.is_deletion:
            genomic_start, genomic_end = op.ref_start, op.ref_end
            anchor = op.ref_end if reverse else op.ref_start
        elif op.is_insertion:
            # Flanking bases either side of the insertion point
            genomic_start, genomic_end = op.ref_start - 1, op.ref_start
            anchor = genomic_end if reverse else genomic_start
        else:
            continue

        offset = coordinate_map[anchor] if coordinate_map is not None else anchor
        tokens.append(IndelToken(
            offset=offset,
            length=op.length,
            op=op.op_char,
            genomic_start=genomic_start,
            genomic_end=genomic_end,
        ))

    return tokens


def find_mismatches(
    record: AlignmentRecord,
    reference: Optional[str] = None,
    target_start: Optional[int] = None,
) -> List[Tuple[int, str]]:
    """
    List (genomic position, read base) of mismatching aligned bases.

    'X' operations are mismatches by definition. 'M' operations are compared
    against the reference when it is supplied. Ambiguous bases in either
    sequence are not counted.
    """
    mismatches = []
    can_compare = reference is not None and target_start is not None

    for op in record.operations:
        if op.op_code not in ALIGNED_OPS or op.op_char == '=':
            continue
        for i in range(op.length):
            pos = op.ref_start + i
            read_base = record.sequence[op.query_start + i]
            if read_base == 'N':
                continue
            if op.op_char == 'X':
                mismatches.append((pos, read_base))
                continue
            if not can_compare:
                continue
            ref_idx = pos - target_start
            if not 0 <= ref_idx < len(reference):
                continue
            ref_base = reference[ref_idx].upper()
            if ref_base != 'N' and ref_base != read_base:
                mismatches.append((pos, read_base))

    return mismatches


def make_variant_label(
    record: AlignmentRecord,
    config: LabelConfig,
    reference: Optional[str] = None,
    target_start: Optional[int] = None,
    coordinate_map: Optional[CoordinateMap] = None,
) -> VariantLabel:
    """
    Build the variant label of one record.

    Args:
        record: Alignment record, already narrowed to the target window
        config: Labelling options
        reference: Reference sequence of the target window, used to find
            mismatches inside 'M' operations
        target_start: Genomic start of the reference sequence
        coordinate_map: Cut-site map. Used for indel offsets when
            config.renumbered is set, and for the split-SNV window.

    Returns:
        VariantLabel
    """
    indel_map = coordinate_map if config.renumbered else None
    tokens = _indel_tokens(record, indel_map)
    if tokens:
        return VariantLabel(kind=VariantKind.INDEL, indels=tuple(tokens),
                            cigar=record.cigar)

    mismatches = find_mismatches(record, reference, target_start)
    if not mismatches:
        return VariantLabel(kind=VariantKind.MATCH)

    if not config.split_snv or coordinate_map is None:
        return VariantLabel(kind=VariantKind.MISMATCH)

    snvs = []
    for pos, base in mismatches:
        relative = coordinate_map.relative(pos)
        if -config.upstream_snv <= relative <= config.downstream_snv:
            offset = relative if config.renumbered else pos
            snvs.append(SNVToken(offset=offset, base=base))

    if config.renumbered:
        # 5' to 3' along the target strand
        snvs.sort(key=lambda s: s.offset)
    return VariantLabel(kind=VariantKind.MISMATCH, snvs=tuple(snvs))


def label_records(
    records: Sequence[AlignmentRecord],
    config: LabelConfig,
    reference: Optional[str] = None,
    target_start: Optional[int] = None,
    coordinate_map: Optional[CoordinateMap] = None,
) -> List[VariantLabel]:
    """Label every record of a run."""
    return [
        make_variant_label(record, config, reference, target_start, coordinate_map)
        for record in records
    ]
