"""
CrisprSet: a set of runs aligned to the same target region.

A CrisprSet owns its runs, labels every on-target read, and keeps the
resulting frequency table. All summaries (efficiency, classification,
consensus alignments) are computed from that table and the labelled runs.
"""

from collections import Counter
from concurrent.futures import ProcessPoolExecutor, as_completed
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union
import logging

import pandas as pd

from .config import ConfigurationError, LabelConfig, Target, VariantSetConfig
from .core.chimeras import find_chimeras
from .core.labels import VariantLabel, label_records
from .core.models import AlignmentRecord, Run
from .core.renumber import CoordinateMap, genome_to_target
from .analysis.aggregation import (
    count_variant_alleles,
    count_variants,
    filter_variant_table,
    variant_frequency_spectrum,
)
from .analysis.classification import (
    AnnotationLookup,
    classify_coding_by_size,
    classify_variants_by_location,
    classify_variants_by_type,
    get_unique_indel_ranges,
)
from .analysis.consensus import build_consensus_alignments, get_insertions
from .analysis.filtering import filter_unique_low_quality
from .analysis.statistics import mutation_efficiency
from .analysis.types import ConsensusAlignment

logger = logging.getLogger(__name__)


def _label_run_worker(job):
    """
    Worker function for parallel labelling.

    This is a module-level function (not a method) so it can be pickled
    by ProcessPoolExecutor.

    Args:
        job: Tuple of (run name, records, label config, reference,
            target start, coordinate map)

    Returns:
        Tuple of (run name, list of VariantLabel)
    """
    name, records, config, reference, target_start, coordinate_map = job
    labels = label_records(records, config, reference, target_start, coordinate_map)
    return name, labels


def _observed_range(runs: Sequence[Run]) -> Tuple[int, int]:
    """Smallest and largest genomic position touched by any record."""
    starts = []
    ends = []
    for run in runs:
        for record in run.records:
            starts.append(record.start)
            ends.append(record.end)
            # Insertions are flanked by the bases either side of the insertion point
            for op in record.operations:
                if op.is_insertion:
                    starts.append(op.ref_start - 1)
                    ends.append(op.ref_start)
    return min(starts), max(ends)


class CrisprSet:
    """
    Labelled reads of several samples over one target region.

    Attributes:
        target: Target window
        reference: Reference sequence of the window
        config: Labelling options
        runs: Non-empty runs with cached label strings
        labels: Label string -> structured label
        coordinate_map: Genomic position -> cut-site-relative coordinate
        cigar_freqs: Frequency table (labels x runs)
    """

    def __init__(
        self,
        runs: Sequence[Run],
        reference: str,
        target: Target,
        config: Optional[LabelConfig] = None,
        names: Optional[Sequence[str]] = None,
        n_jobs: int = 1,
    ):
        """
        Args:
            runs: One Run per sample, records already narrowed to the target
            reference: Reference sequence, same width as the target
            target: Window over which variants are counted
            config: Labelling options (defaults to LabelConfig())
            names: Display names replacing the run names
            n_jobs: Number of worker processes used for labelling

        Raises:
            ConfigurationError: If reference and target widths differ,
                renumbering is requested without target_loc, names do not
                match the runs, run names repeat, or no run has on-target reads
        """
        logger.info(f"Initialising CrisprSet with {len(runs)} samples")

        self.config = config if config is not None else LabelConfig()
        self.target = target
        self.reference = reference.upper()
        self.n_jobs = n_jobs

        VariantSetConfig(target=target, reference=self.reference, labels=self.config,
                         names=list(names) if names is not None else None,
                         n_jobs=n_jobs).validate()

        runs = list(runs)
        if names is not None:
            if len(names) != len(runs):
                raise ConfigurationError(
                    f"Got {len(names)} names for {len(runs)} runs"
                )
            runs = [run.with_name(name) for run, name in zip(runs, names)]

        name_counts = Counter(run.name for run in runs)
        duplicated = sorted(name for name, n in name_counts.items() if n > 1)
        if duplicated:
            raise ConfigurationError(f"Run names must be unique, got duplicates: {duplicated}")

        nonempty = []
        for run in runs:
            if run.is_empty:
                logger.warning(f"Run {run.name} has no on-target reads; excluded")
            else:
                nonempty.append(run)
        if not nonempty:
            raise ConfigurationError("no on target reads in any sample")

        observed_start, observed_end = _observed_range(nonempty)
        self.coordinate_map: CoordinateMap = genome_to_target(
            target.cut_site, target.start, target.end, target.strand,
            observed_start, observed_end,
        )

        logger.info("Renaming cigar strings")
        structured = self._label_runs(nonempty)

        self.labels: Dict[str, VariantLabel] = {}
        self.runs: List[Run] = []
        for run in nonempty:
            texts = []
            for label in structured[run.name]:
                text = label.format(self.config)
                self.labels.setdefault(text, label)
                texts.append(text)
            self.runs.append(run.with_labels(texts))

        logger.info("Counting variant combinations")
        self.cigar_freqs: pd.DataFrame = count_variants(
            {run.name: run.labels for run in self.runs}, self.labels,
        )

    @classmethod
    def from_config(cls, runs: Sequence[Run], config: VariantSetConfig) -> 'CrisprSet':
        """Create from a VariantSetConfig, e.g. one loaded with from_yaml()."""
        return cls(runs, config.reference, config.target, config=config.labels,
                   names=config.names, n_jobs=config.n_jobs)

    @classmethod
    def from_records(
        cls,
        records_by_run: Dict[str, Iterable[AlignmentRecord]],
        reference: str,
        target: Target,
        **kwargs,
    ) -> 'CrisprSet':
        """Create from raw records per run name, narrowing them to the target."""
        runs = [Run.from_records(name, records, target.start, target.end)
                for name, records in records_by_run.items()]
        return cls(runs, reference, target, **kwargs)

    def _label_runs(self, runs: Sequence[Run]) -> Dict[str, List[VariantLabel]]:
        jobs = [
            (run.name, run.records, self.config, self.reference,
             self.target.start, self.coordinate_map)
            for run in runs
        ]

        if self.n_jobs <= 1 or len(jobs) <= 1:
            return dict(_label_run_worker(job) for job in jobs)

        results: Dict[str, List[VariantLabel]] = {}
        with ProcessPoolExecutor(max_workers=self.n_jobs) as executor:
            future_to_run = {
                executor.submit(_label_run_worker, job): job[0]
                for job in jobs
            }
            for future in as_completed(future_to_run):
                name = future_to_run[future]
                try:
                    run_name, labels = future.result()
                except Exception as e:
                    logger.error(f"Labelling run {name} failed: {e}")
                    raise
                results[run_name] = labels
                logger.debug(f"Labelled run {run_name} ({len(results)}/{len(jobs)})")
        return results

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def variant_counts(self) -> pd.DataFrame:
        return self.cigar_freqs

    @property
    def run_names(self) -> List[str]:
        return [run.name for run in self.runs]

    def __len__(self) -> int:
        return len(self.runs)

    def __repr__(self) -> str:
        t = self.target
        return (
            f"CrisprSet({len(self.runs)} samples, target {t.chrom}:{t.start}-{t.end}"
            f"({t.strand}), {len(self.cigar_freqs)} variants)"
        )

    def summary(self, top_n: int = 6) -> str:
        """Short text description with the most frequent variants."""
        return (
            f"{self!r}\nMost frequent variants:\n"
            f"{self.filtered_table(top_n=top_n).to_string()}"
        )

    def filtered_table(self, top_n: Optional[int] = None, min_count: int = 0) -> pd.DataFrame:
        """Frequency table restricted to the top_n rows with total >= min_count."""
        return filter_variant_table(self.cigar_freqs, top_n=top_n, min_count=min_count)

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def filter_unique_low_quality(self, min_count: int = 2, max_n: int = 0) -> int:
        """
        Remove rare reads with ambiguity characters from runs and table.

        Returns:
            Number of reads removed
        """
        counts, runs, n_removed = filter_unique_low_quality(
            self.cigar_freqs, self.runs, min_count=min_count, max_n=max_n,
        )
        self.cigar_freqs = counts
        self.runs = runs
        return n_removed

    # ------------------------------------------------------------------
    # Statistics and classification
    # ------------------------------------------------------------------

    def mutation_efficiency(
        self,
        snv: str = "include",
        exclude_cols: Optional[Iterable[Union[str, int]]] = None,
        filter_labels: Optional[Iterable[str]] = None,
    ) -> pd.Series:
        """See analysis.statistics.mutation_efficiency."""
        return mutation_efficiency(self.cigar_freqs, self.labels, snv=snv,
                                   exclude_cols=exclude_cols, filter_labels=filter_labels)

    def classify_variants_by_type(self) -> pd.Series:
        return classify_variants_by_type(self.cigar_freqs, self.labels, self.config)

    def get_unique_indel_ranges(self, add_chr: bool = True, add_to_ins: bool = True) -> pd.DataFrame:
        return get_unique_indel_ranges(self.cigar_freqs, self.labels, self.target.chrom,
                                       add_chr=add_chr, add_to_ins=add_to_ins)

    def classify_variants_by_location(
        self,
        lookup: AnnotationLookup,
        add_chr: bool = True,
    ) -> pd.Series:
        """Location tag per variant, looked up through ``lookup``."""
        return classify_variants_by_location(self.cigar_freqs, self.labels, lookup,
                                             self.target.chrom, self.config, add_chr=add_chr)

    def classify_coding_by_size(self, var_type: pd.Series, cutoff: int = 10) -> pd.Series:
        return classify_coding_by_size(var_type, self.labels, cutoff=cutoff)

    def count_variant_alleles(self, counts: Optional[pd.DataFrame] = None) -> pd.DataFrame:
        return count_variant_alleles(self.cigar_freqs if counts is None else counts, self.labels)

    def variant_frequency_spectrum(self, indel_only: bool = True) -> pd.DataFrame:
        return variant_frequency_spectrum(self.cigar_freqs, self.labels, indel_only=indel_only)

    # ------------------------------------------------------------------
    # Read level views
    # ------------------------------------------------------------------

    def get_insertions(self) -> pd.DataFrame:
        return get_insertions(self.runs)

    def make_pairwise_alignments(
        self,
        top_n: Optional[int] = None,
        min_count: int = 0,
        rc: bool = False,
    ) -> Dict[str, ConsensusAlignment]:
        """
        Consensus alignment for each selected variant.

        Args:
            top_n: Only the top_n most frequent variants
            min_count: Only variants seen at least min_count times
            rc: Reverse complement the alignments for display

        Raises:
            UnsupportedAlignmentError: If reads of one variant start at
                different genomic positions
        """
        counts = self.filtered_table(top_n=top_n, min_count=min_count)
        return build_consensus_alignments(counts, self.runs, self.target.start,
                                          self.target.end, reverse=rc)

    def find_chimeras(self) -> Dict[str, List[int]]:
        """Chimeric record indices per run name; runs without chimeras are omitted."""
        result = {}
        for run in self.runs:
            idxs = find_chimeras(run.records)
            if idxs:
                result[run.name] = idxs
        return result
