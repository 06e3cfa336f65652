"""
Classification of variant rows by type, genomic location and coding effect.

Location lookups are delegated to an annotation callable, which receives a
DataFrame of indel ranges (columns chrom, start, end, variant) and returns a
DataFrame with columns chrom, start, end, location. A range may have zero or
more location rows; multiple tags are reduced to one using
LOCATION_PREFERENCE.
"""

import logging
from typing import Callable, Dict, List, Mapping, Set, Tuple

import pandas as pd

from ..config import LabelConfig
from ..core.labels import VariantKind, VariantLabel
from .aggregation import row_kinds

logger = logging.getLogger(__name__)

# Most to least preferred location tag
LOCATION_PREFERENCE = (
    "spliceSite", "coding", "intron", "fiveUTR", "threeUTR", "promoter", "intergenic",
)

AnnotationLookup = Callable[[pd.DataFrame], pd.DataFrame]


class AnnotationLookupError(RuntimeError):
    """The external annotation lookup failed or returned unusable data."""


def classify_variants_by_type(
    counts: pd.DataFrame,
    labels: Mapping[str, VariantLabel],
    config: LabelConfig,
) -> pd.Series:
    """
    Classify rows as match, mismatch, insertion, deletion or insertion/deletion.

    Returns:
        Series of categories indexed like the frequency table
    """
    categories = []
    for row, kind in row_kinds(counts.index, labels).items():
        if kind == VariantKind.MATCH:
            categories.append(config.match_label)
        elif kind == VariantKind.MISMATCH:
            categories.append(config.mismatch_label)
        else:
            label = labels.get(row)
            has_ins = label.has_insertion if label is not None else 'I' in row
            has_del = label.has_deletion if label is not None else 'D' in row
            if has_ins and has_del:
                categories.append("insertion/deletion")
            elif has_ins:
                categories.append("insertion")
            else:
                categories.append("deletion")
    return pd.Series(categories, index=counts.index, dtype=object)


def get_unique_indel_ranges(
    counts: pd.DataFrame,
    labels: Mapping[str, VariantLabel],
    chrom: str,
    add_chr: bool = True,
    add_to_ins: bool = True,
) -> pd.DataFrame:
    """
    Genomic ranges of every insertion and deletion in the table.

    Only ranges are reported, not sequences; inserted sequences may differ
    between reads sharing a label.

    Args:
        counts: Frequency table
        labels: Label string -> structured label
        chrom: Chromosome of the target
        add_chr: Prefix the chromosome with "chr" if it lacks it (UCSC style)
        add_to_ins: Report insertions as spanning their two flanking bases.
            If False, insertions keep their zero-width range (start is the
            base right of the insertion, end = start - 1).

    Returns:
        DataFrame with columns chrom, start, end, variant
    """
    if add_chr and not chrom.startswith('chr'):
        chrom = f"chr{chrom}"

    rows = []
    for row in counts.index:
        label = labels.get(row)
        if label is None or not label.is_indel:
            continue
        for token in label.indels:
            start, end = token.genomic_start, token.genomic_end
            if token.op == 'I' and not add_to_ins:
                start, end = end, start
            rows.append({
                "chrom": chrom,
                "start": start,
                "end": end,
                "variant": row,
            })
    return pd.DataFrame(rows, columns=["chrom", "start", "end", "variant"])


def _preferred_location(tags: Set[str]) -> str:
    if not tags:
        return ""
    ranked = sorted(
        tags,
        key=lambda t: (LOCATION_PREFERENCE.index(t) if t in LOCATION_PREFERENCE
                       else len(LOCATION_PREFERENCE), t),
    )
    return ranked[0]


def classify_variants_by_location(
    counts: pd.DataFrame,
    labels: Mapping[str, VariantLabel],
    lookup: AnnotationLookup,
    chrom: str,
    config: LabelConfig,
    add_chr: bool = True,
) -> pd.Series:
    """
    Assign one location tag to every row of the frequency table.

    Preference order: spliceSite > coding > intron > fiveUTR > threeUTR >
    promoter > intergenic. Match and mismatch rows keep their sentinel
    labels; indel rows without any annotation get an empty string.

    Args:
        counts: Frequency table
        labels: Label string -> structured label
        lookup: Annotation callable (see module docstring)
        chrom: Chromosome of the target
        config: Label options supplying the sentinel labels
        add_chr: Prefix chromosome names with "chr"

    Returns:
        Series of location tags indexed like the frequency table

    Raises:
        AnnotationLookupError: If the lookup fails or its result lacks the
            expected columns
    """
    ranges = get_unique_indel_ranges(counts, labels, chrom, add_chr=add_chr)
    logger.info(f"Looking up locations of {len(ranges)} indel ranges")

    tags_by_range: Dict[Tuple[str, int, int], Set[str]] = {}
    if not ranges.empty:
        try:
            locations = lookup(ranges)
        except Exception as e:
            raise AnnotationLookupError(
                f"Annotation lookup failed for {len(ranges)} ranges on "
                f"{ranges['chrom'].iloc[0]}:{ranges['start'].min()}-{ranges['end'].max()}: {e}"
            ) from e

        missing = {"chrom", "start", "end", "location"} - set(locations.columns)
        if missing:
            raise AnnotationLookupError(
                f"Annotation lookup result is missing columns {sorted(missing)}"
            )
        for loc in locations.itertuples(index=False):
            key = (str(loc.chrom), int(loc.start), int(loc.end))
            tags_by_range.setdefault(key, set()).add(str(loc.location))

    logger.info("Classifying variants")
    tags_by_variant: Dict[str, Set[str]] = {}
    for r in ranges.itertuples(index=False):
        tags = tags_by_range.get((r.chrom, int(r.start), int(r.end)), set())
        tags_by_variant.setdefault(r.variant, set()).update(tags)

    classification: List[str] = []
    for row, kind in row_kinds(counts.index, labels).items():
        if kind == VariantKind.MATCH:
            classification.append(config.match_label)
        elif kind == VariantKind.MISMATCH:
            classification.append(config.mismatch_label)
        else:
            classification.append(_preferred_location(tags_by_variant.get(row, set())))

    return pd.Series(classification, index=counts.index, dtype=object)


def classify_coding_by_size(
    var_type: pd.Series,
    labels: Mapping[str, VariantLabel],
    cutoff: int = 10,
) -> pd.Series:
    """
    Split coding variants into frameshift/inframe and short/long.

    A naive classification: the lengths of all indels of a variant are
    summed; sums divisible by 3 are inframe, others frameshift. Sums below
    ``cutoff`` are short.

    Args:
        var_type: Location classification, e.g. from classify_variants_by_location
        labels: Label string -> structured label
        cutoff: Length separating short from long indels

    Returns:
        Copy of var_type with "coding" entries replaced by one of
        "inframe indel < cutoff", "frameshift indel < cutoff",
        "inframe indel > cutoff", "frameshift indel > cutoff"
    """
    result = var_type.copy()
    for row in var_type.index[(var_type == "coding").to_numpy()]:
        label = labels.get(row)
        if label is None:
            logger.warning(f"No structured label for coding variant {row!r}; left as coding")
            continue
        length = label.indel_length
        frame = "inframe" if length % 3 == 0 else "frameshift"
        size = "<" if length < cutoff else ">"
        result[row] = f"{frame} indel {size} {cutoff}"
    return result
