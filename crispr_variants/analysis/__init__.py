"""
Analysis module for crispr-variants.

Provides functions for:
- Aggregating per-read labels into a frequency table
- Consensus alignments per variant
- Mutation efficiency and variant classification
- Removing rare low quality reads

Example usage:

    from crispr_variants.analysis import (
        count_variants,
        mutation_efficiency,
        classify_variants_by_type,
    )

    counts = count_variants(labels_by_run, labels)
    eff = mutation_efficiency(counts, labels, exclude_cols=['control'])
    print(eff['Overall'])
"""

from .aggregation import (
    count_variant_alleles,
    count_variants,
    filter_variant_table,
    order_variant_rows,
    row_kinds,
    variant_frequency_spectrum,
)
from .classification import (
    LOCATION_PREFERENCE,
    AnnotationLookupError,
    classify_coding_by_size,
    classify_variants_by_location,
    classify_variants_by_type,
    get_unique_indel_ranges,
)
from .consensus import (
    UnsupportedAlignmentError,
    build_consensus_alignments,
    consensus_sequence,
    get_insertions,
    seqs_to_alignment,
)
from .filtering import filter_unique_low_quality
from .statistics import mutation_efficiency
from .types import (
    ConsensusAlignment,
    InsertionRecord,
)

__all__ = [
    # Types
    "ConsensusAlignment",
    "InsertionRecord",
    # Aggregation
    "count_variants",
    "order_variant_rows",
    "row_kinds",
    "filter_variant_table",
    "count_variant_alleles",
    "variant_frequency_spectrum",
    # Consensus
    "UnsupportedAlignmentError",
    "consensus_sequence",
    "seqs_to_alignment",
    "build_consensus_alignments",
    "get_insertions",
    # Statistics
    "mutation_efficiency",
    # Classification
    "LOCATION_PREFERENCE",
    "AnnotationLookupError",
    "classify_variants_by_type",
    "classify_variants_by_location",
    "classify_coding_by_size",
    "get_unique_indel_ranges",
    # Filtering
    "filter_unique_low_quality",
]
