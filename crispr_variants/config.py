"""
Configuration classes for crispr-variants.

Holds the target window, the variant labelling options and a YAML loader
that bundles them for a CrisprSet.
"""

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, List, Optional
import re
import yaml


# Regex to detect if string is pure DNA sequence
DNA_PATTERN = re.compile(r'^[ACGTacgtNn]+$')

# Zero point used for SNV windows when no target_loc is given
DEFAULT_CUT_SITE = 18

VALID_STRANDS = ('+', '-')


class ConfigurationError(ValueError):
    """Raised when a target, reference or labelling option is unusable."""


def is_dna_sequence(s: str) -> bool:
    """Check if string is a pure DNA sequence (not a file path)."""
    # Must be non-empty and contain only valid DNA characters
    return bool(s) and bool(DNA_PATTERN.match(s)) and len(s) < 1000


def parse_sequence_input(value: str) -> str:
    """
    Parse sequence input - can be either a DNA string or a FASTA file path.

    Args:
        value: Either a DNA sequence string or path to a FASTA file

    Returns:
        The DNA sequence (uppercase)

    Examples:
        >>> parse_sequence_input("ATCGATCG")
        'ATCGATCG'
    """
    value = value.strip()

    if is_dna_sequence(value):
        return value.upper()

    path = Path(value)
    if not path.exists():
        raise ConfigurationError(f"File not found: {value}")

    return load_fasta(path)


@dataclass
class Target:
    """
    Genomic window over which variants are counted.

    Attributes:
        chrom: Chromosome name
        start: First base of the window (1-based, inclusive)
        end: Last base of the window (1-based, inclusive)
        strand: '+' or '-'
        target_loc: Cut site offset from the window start (1-based). This is the
            base left of the cut, numbered -1 after renumbering. For a 23 bp
            Cas9 guide with the PAM at bases 21-23 the target_loc is 18.
    """
    chrom: str
    start: int
    end: int
    strand: str = '+'
    target_loc: Optional[int] = None

    def __post_init__(self):
        if self.strand not in VALID_STRANDS:
            raise ConfigurationError(
                f"Target strand must be one of {VALID_STRANDS}, got {self.strand!r}"
            )
        if self.end < self.start:
            raise ConfigurationError(
                f"Target end ({self.end}) is before target start ({self.start})"
            )

    @property
    def width(self) -> int:
        return self.end - self.start + 1

    @property
    def is_reverse(self) -> bool:
        return self.strand == '-'

    @property
    def cut_site(self) -> int:
        """Zero point relative to the target start, falling back to the default."""
        return self.target_loc if self.target_loc is not None else DEFAULT_CUT_SITE

    @classmethod
    def from_dict(cls, d: Dict) -> 'Target':
        """Create from dictionary."""
        return cls(
            chrom=str(d['chrom']),
            start=int(d['start']),
            end=int(d['end']),
            strand=d.get('strand', '+'),
            target_loc=d.get('target_loc'),
        )


@dataclass
class LabelConfig:
    """
    Options controlling how alignments are turned into variant labels.

    Attributes:
        match_label: Label for reads with no variants
        mismatch_label: Label for reads carrying only single nucleotide variants
        short: Use offset:lengthOp tokens. If False, reads with indels are
            labelled with their CIGAR string.
        renumbered: Number positions relative to the cut site
        split_snv: Report SNV positions for reads without insertions/deletions
        upstream_snv: Bases upstream of the cut site in which SNVs are shown
        downstream_snv: Bases downstream of the cut site in which SNVs are shown
    """
    match_label: str = "no variant"
    mismatch_label: str = "SNV"
    short: bool = True
    renumbered: bool = True
    split_snv: bool = True
    upstream_snv: int = 8
    downstream_snv: int = 5

    def __post_init__(self):
        if self.match_label == self.mismatch_label:
            raise ConfigurationError("match_label and mismatch_label must differ")
        if self.upstream_snv < 0 or self.downstream_snv < 0:
            raise ConfigurationError("SNV window sizes must not be negative")

    @classmethod
    def from_dict(cls, d: Dict) -> 'LabelConfig':
        """Create from dictionary, ignoring unknown keys."""
        known = set(asdict(cls()).keys())
        return cls(**{k: v for k, v in d.items() if k in known})


@dataclass
class VariantSetConfig:
    """Everything needed to build a CrisprSet besides the runs themselves."""
    target: Target
    reference: str
    labels: LabelConfig = field(default_factory=LabelConfig)
    names: Optional[List[str]] = None
    n_jobs: int = 1

    def validate(self) -> 'VariantSetConfig':
        """Check target/reference consistency and renumbering requirements."""
        if self.target.width != len(self.reference):
            raise ConfigurationError(
                "The target and the reference sequence must be the same width "
                f"(target {self.target.width} bp, reference {len(self.reference)} bp)"
            )
        if self.labels.renumbered and self.target.target_loc is None:
            raise ConfigurationError(
                "Must specify target_loc for renumbering variant locations. "
                "The target_loc is the zero point with respect to the reference "
                "string. This is typically 18 for a 23 bp Crispr-Cas9 guide sequence"
            )
        return self

    @classmethod
    def from_yaml(cls, path: Path) -> 'VariantSetConfig':
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if 'target' not in data:
            raise ConfigurationError(f"No 'target' section in {path}")

        reference = data.get('reference', '')
        if reference:
            reference = parse_sequence_input(str(reference))

        return cls(
            target=Target.from_dict(data['target']),
            reference=reference,
            labels=LabelConfig.from_dict(data.get('labels', {})),
            names=data.get('names'),
            n_jobs=data.get('n_jobs', 1),
        ).validate()


def _read_fasta_sequence(path: str) -> str:
    """Read first sequence from a FASTA file."""
    sequence = []
    with open(path) as f:
        for line in f:
            line = line.strip()
            if line.startswith('>'):
                if sequence:
                    break  # Only read first sequence
                continue
            sequence.append(line.upper())
    return ''.join(sequence)


def load_fasta(path: Path) -> str:
    """Load sequence from FASTA file."""
    return _read_fasta_sequence(str(path))
