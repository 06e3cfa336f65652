"""
Removal of rare, ambiguity-rich reads.

Reads with rare variant combinations that also contain many ambiguity
characters are most likely alignment artifacts. They are deleted from their
runs and the frequency table is updated from the reads actually removed.
"""

import logging
from typing import Dict, List, Sequence, Tuple

import pandas as pd

from ..core.models import Run

logger = logging.getLogger(__name__)


def filter_unique_low_quality(
    counts: pd.DataFrame,
    runs: Sequence[Run],
    min_count: int = 2,
    max_n: int = 0,
) -> Tuple[pd.DataFrame, List[Run], int]:
    """
    Delete reads with rare variants and too many ambiguous bases.

    Args:
        counts: Frequency table
        runs: Labelled runs, in frequency table column order
        min_count: Number of times a variant combination must occur across all
            samples to be exempt (default 2, i.e. variants seen once are checked)
        max_n: Maximum number of ambiguity bases a read with a rare variant
            combination may contain

    Returns:
        Tuple of (updated frequency table, updated runs, number of removed
        reads). Rows are decremented by the reads removed from each run; rows
        whose total reaches zero this way are dropped.
    """
    totals = counts.sum(axis=1)
    rare = set(totals.index[(totals < min_count).to_numpy()])

    updated = counts.copy()
    new_runs = []
    n_removed = 0
    emptied = set()

    for run in runs:
        if run.name not in counts.columns or not rare:
            new_runs.append(run)
            continue

        removed_by_label: Dict[str, int] = {}
        to_remove = []
        for idx, (record, label) in enumerate(zip(run.records, run.labels)):
            if label in rare and record.ambiguous_bases() > max_n:
                to_remove.append(idx)
                removed_by_label[label] = removed_by_label.get(label, 0) + 1

        if not to_remove:
            new_runs.append(run)
            continue

        logger.debug(f"Run {run.name}: removing {len(to_remove)} rare read(s) with ambiguities")
        for label, n in removed_by_label.items():
            updated.loc[label, run.name] -= n
            if updated.loc[label].sum() == 0:
                emptied.add(label)
        new_runs.append(run.without_records(to_remove))
        n_removed += len(to_remove)

    if emptied:
        updated = updated.drop(index=[row for row in updated.index if row in emptied])

    logger.info(f"Removing {n_removed} rare sequence(s) with ambiguities")
    return updated, new_runs, n_removed
