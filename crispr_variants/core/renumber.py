"""
Renumbering of genomic coordinates relative to the cut site.

The cut site lies between -1 and 1, so 0 is never produced. On the plus
strand coordinates increase with genomic position; on the minus strand the
numbering is reversed.

Example, target_loc = 5 on the plus strand:

    genomic:  1  2  3  4  5  6  7  8
    target:  -5 -4 -3 -2 -1  1  2  3
"""

from dataclasses import dataclass
from typing import Iterator, Optional

import pandas as pd

from ..config import ConfigurationError, VALID_STRANDS


@dataclass(frozen=True)
class CoordinateMap:
    """
    Bijection from observed genomic positions to signed target coordinates.

    Attributes:
        cut: Genomic position numbered -1
        strand: '+' or '-'
        genomic_start: First observed genomic position
        genomic_end: Last observed genomic position
    """
    cut: int
    strand: str
    genomic_start: int
    genomic_end: int

    @property
    def is_reverse(self) -> bool:
        return self.strand == '-'

    def __contains__(self, pos: object) -> bool:
        return isinstance(pos, int) and self.genomic_start <= pos <= self.genomic_end

    def __len__(self) -> int:
        return self.genomic_end - self.genomic_start + 1

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.genomic_start, self.genomic_end + 1))

    def __getitem__(self, pos: int) -> int:
        if pos not in self:
            raise KeyError(
                f"Genomic position {pos} is outside the observed range "
                f"{self.genomic_start}-{self.genomic_end}"
            )
        return self.relative(pos)

    def relative(self, pos: int) -> int:
        """Target coordinate of any genomic position, without range checks."""
        if self.is_reverse:
            return self.cut - pos if pos < self.cut else self.cut - pos - 1
        return pos - self.cut - 1 if pos <= self.cut else pos - self.cut

    def to_genomic(self, offset: int) -> int:
        """Inverse of relative()."""
        if offset == 0:
            raise ValueError("Target coordinate 0 does not exist; the cut site lies between -1 and 1")
        if self.is_reverse:
            return self.cut - offset if offset > 0 else self.cut - offset - 1
        return self.cut + offset + 1 if offset < 0 else self.cut + offset

    def to_series(self) -> pd.Series:
        """Genomic position -> target coordinate for the whole observed range."""
        positions = list(self)
        return pd.Series([self.relative(p) for p in positions],
                         index=pd.Index(positions, name='genomic'),
                         name='target')


def genome_to_target(
    target_loc: Optional[int],
    target_start: Optional[int],
    target_end: Optional[int],
    strand: Optional[str],
    observed_start: int,
    observed_end: int,
) -> CoordinateMap:
    """
    Build the coordinate map for a target.

    Args:
        target_loc: Cut offset from the target start (1-based), measured on the
            target start side even for minus strand targets
        target_start: Genomic start of the target (1-based, inclusive)
        target_end: Genomic end of the target
        strand: '+' or '-'
        observed_start: Smallest genomic position covered by any record
        observed_end: Largest genomic position covered by any record

    Returns:
        CoordinateMap over [observed_start, observed_end]

    Raises:
        ConfigurationError: If any of target_loc, start, end or strand is missing
    """
    if target_loc is None:
        raise ConfigurationError("Must specify target_loc (cut site) for renumbering")
    if target_start is None or target_end is None or strand is None:
        raise ConfigurationError(
            "Must specify target_loc (cut site), target_start, target_end and strand "
            "for renumbering"
        )
    if strand not in VALID_STRANDS:
        raise ConfigurationError(f"Unknown strand {strand!r}")
    if observed_end < observed_start:
        raise ConfigurationError(
            f"Empty observed range {observed_start}-{observed_end}"
        )

    if strand == '-':
        cut = target_end - target_loc + 1
    else:
        cut = target_start + target_loc - 1

    return CoordinateMap(cut=cut, strand=strand,
                         genomic_start=observed_start, genomic_end=observed_end)
