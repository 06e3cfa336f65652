"""
Aggregation of per-read variant labels into a sample-by-variant table.

The frequency table is a pandas DataFrame with one row per label (index
named ``variant``) and one integer column per run. Rows are ordered with the
match row first, then mismatch rows, then the remaining variants by
descending total count. Equal totals keep the order in which the labels were
first seen (runs in order, records in order).
"""

import logging
from collections import Counter
from typing import Dict, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from ..core.labels import VariantKind, VariantLabel

logger = logging.getLogger(__name__)


def row_kinds(index: Sequence[str], labels: Mapping[str, VariantLabel]) -> pd.Series:
    """
    Variant kind of every row name.

    Row names missing from ``labels`` are treated as indel variants.
    """
    kinds = [labels[row].kind if row in labels else VariantKind.INDEL for row in index]
    return pd.Series(kinds, index=index, dtype=object)


def order_variant_rows(
    counts: pd.DataFrame,
    labels: Mapping[str, VariantLabel],
    nonvar_first: bool = True,
) -> pd.DataFrame:
    """
    Sort rows by descending total, moving match and mismatch rows to the top.

    The sort is stable, so rows with equal totals keep their current order.
    """
    totals = counts.sum(axis=1).to_numpy()
    order = np.argsort(-totals, kind='stable')
    ordered = counts.iloc[order]

    if not nonvar_first:
        return ordered

    kinds = row_kinds(ordered.index, labels)
    is_ref = (kinds == VariantKind.MATCH).to_numpy()
    is_snv = (kinds == VariantKind.MISMATCH).to_numpy()
    rest = ~(is_ref | is_snv)
    return pd.concat([ordered[is_ref], ordered[is_snv], ordered[rest]])


def count_variants(
    labels_by_run: Mapping[str, Sequence[str]],
    labels: Mapping[str, VariantLabel],
    nonvar_first: bool = True,
) -> pd.DataFrame:
    """
    Tabulate label counts per run.

    Start coordinates are not considered: two reads with the same label but
    different starts count as the same variant.

    Args:
        labels_by_run: Run name -> label of every record in that run
        labels: Label string -> structured label, used for row ordering
        nonvar_first: Put match and mismatch rows first

    Returns:
        Frequency table (labels x runs), zero-filled

    Example:
        >>> counts = count_variants({'s1': ['-1:4D', 'no variant']}, labels)
        >>> counts.loc['-1:4D', 's1']
        1
    """
    seen: Dict[str, None] = {}
    per_run = {}
    for run_name, run_labels in labels_by_run.items():
        tally = Counter(run_labels)
        seen.update(dict.fromkeys(tally))
        per_run[run_name] = tally

    unique = list(seen)
    data = {
        run_name: [tally.get(label, 0) for label in unique]
        for run_name, tally in per_run.items()
    }
    counts = pd.DataFrame(
        data,
        index=pd.Index(unique, name='variant', dtype=object),
        columns=list(labels_by_run),
        dtype=np.int64,
    )
    logger.debug(f"Counted {len(unique)} variant combinations in {counts.shape[1]} runs")
    return order_variant_rows(counts, labels, nonvar_first=nonvar_first)


def filter_variant_table(
    counts: pd.DataFrame,
    top_n: Optional[int] = None,
    min_count: int = 0,
) -> pd.DataFrame:
    """
    Select the most frequent rows of a frequency table.

    Args:
        counts: Frequency table
        top_n: Keep rows ranked <= top_n by total count. Tied rows are kept
            only if all members of the tie rank <= top_n.
        min_count: Keep rows with total count >= min_count

    Returns:
        Filtered frequency table, original row order preserved
    """
    totals = counts.sum(axis=1)
    keep = totals >= min_count
    if top_n is not None:
        keep &= totals.rank(ascending=False, method='max') <= top_n
    return counts[keep]


def count_variant_alleles(
    counts: pd.DataFrame,
    labels: Mapping[str, VariantLabel],
) -> pd.DataFrame:
    """
    Number of distinct variant alleles seen in each sample.

    Match and mismatch-only rows are not counted as variant alleles.

    Returns:
        DataFrame with columns Allele and Sample
    """
    kinds = row_kinds(counts.index, labels)
    variants = counts[(kinds == VariantKind.INDEL).to_numpy()]
    alleles = (variants != 0).sum(axis=0)
    return pd.DataFrame({'Allele': alleles.to_numpy(), 'Sample': list(alleles.index)})


def variant_frequency_spectrum(
    counts: pd.DataFrame,
    labels: Mapping[str, VariantLabel],
    indel_only: bool = True,
) -> pd.DataFrame:
    """
    How many variants occur in a given number of samples with a given count.

    Args:
        counts: Frequency table
        labels: Label string -> structured label
        indel_only: Ignore match and mismatch-only rows

    Returns:
        DataFrame with columns samples (number of samples carrying the
        variant), variants (total read count) and occurs (number of distinct
        variants with that combination)
    """
    freqs = counts
    if indel_only:
        kinds = row_kinds(counts.index, labels)
        freqs = counts[(kinds == VariantKind.INDEL).to_numpy()]

    spectrum = pd.DataFrame({
        'samples': (freqs > 0).sum(axis=1).to_numpy(),
        'variants': freqs.sum(axis=1).to_numpy(),
    })
    if spectrum.empty:
        return pd.DataFrame(columns=['samples', 'variants', 'occurs'])

    grouped = spectrum.groupby(['samples', 'variants']).size()
    return grouped.rename('occurs').reset_index()
