"""
Mutation efficiency statistics.
"""

import logging
from typing import Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd

from ..config import ConfigurationError
from ..core.labels import VariantKind, VariantLabel
from .aggregation import row_kinds

logger = logging.getLogger(__name__)

SNV_MODES = ("include", "exclude", "non_variant")


def _resolve_columns(counts: pd.DataFrame, cols: Iterable[Union[str, int]]) -> List[str]:
    """Map column names or positions to names, skipping unknown ones."""
    if isinstance(cols, str):
        cols = [cols]
    resolved = []
    for col in cols:
        if isinstance(col, (int, np.integer)) and not isinstance(col, bool):
            if 0 <= col < counts.shape[1]:
                resolved.append(counts.columns[col])
            else:
                logger.debug(f"Column index {col} out of range; ignored")
        elif col in counts.columns:
            resolved.append(col)
        else:
            logger.debug(f"Column {col!r} not in frequency table; ignored")
    return resolved


def mutation_efficiency(
    counts: pd.DataFrame,
    labels: Mapping[str, VariantLabel],
    snv: str = "include",
    exclude_cols: Optional[Iterable[Union[str, int]]] = None,
    filter_labels: Optional[Iterable[str]] = None,
) -> pd.Series:
    """
    Percentage of reads carrying a variant, per sample and overall.

    Reads without an insertion or deletion but with a single nucleotide
    variant are ambiguous; ``snv`` decides how they are treated.

    Args:
        counts: Frequency table
        labels: Label string -> structured label
        snv: "include" (mismatch reads are mutated), "exclude" (mismatch reads
            are left out of the calculation) or "non_variant" (mismatch reads
            are not mutated)
        exclude_cols: Samples (names or positions) to leave out, e.g. controls
        filter_labels: Variant labels removed before any counting, e.g.
            known polymorphisms. Labels not in the table are ignored.

    Returns:
        Series indexed by sample name plus Average, Median and Overall, rounded
        to 2 decimals. Overall is the pooled ratio of all mutant reads to all
        reads, not the mean of the per-sample percentages.

    Example:
        >>> mutation_efficiency(counts, labels, exclude_cols=['control'])
        sample     80.0
        Average    80.0
        Median     80.0
        Overall    80.0
        dtype: float64
    """
    if snv not in SNV_MODES:
        raise ConfigurationError(f"snv must be one of {SNV_MODES}, got {snv!r}")

    freqs = counts
    if exclude_cols:
        freqs = freqs.drop(columns=_resolve_columns(freqs, exclude_cols))

    if filter_labels:
        if isinstance(filter_labels, str):
            filter_labels = [filter_labels]
        present = [label for label in filter_labels if label in freqs.index]
        freqs = freqs.drop(index=present)

    kinds = row_kinds(freqs.index, labels)
    is_snv = (kinds == VariantKind.MISMATCH).to_numpy()
    is_ref = (kinds == VariantKind.MATCH).to_numpy()

    if snv == "exclude":
        freqs = freqs[~is_snv]
        is_ref = is_ref[~is_snv]
        is_snv = np.zeros(len(freqs), dtype=bool)

    total_seqs = freqs.sum(axis=0)
    not_mutated = is_ref | is_snv if snv == "non_variant" else is_ref
    mutants = freqs[~not_mutated].sum(axis=0)

    with np.errstate(divide='ignore', invalid='ignore'):
        efficiency = mutants / total_seqs * 100
        overall = mutants.sum() / total_seqs.sum() * 100 if total_seqs.sum() > 0 else np.nan

    summary = pd.Series({
        "Average": efficiency.mean(),
        "Median": efficiency.median(),
        "Overall": overall,
    })
    return pd.concat([efficiency.astype(float), summary]).round(2)
