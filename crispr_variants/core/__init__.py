"""
Core read-level modules for crispr-variants.
"""

from .chimeras import (
    find_chimeras,
    group_chimeras,
)
from .cigar import (
    CigarOperation,
    build_operations,
)
from .labels import (
    IndelToken,
    SNVToken,
    VariantKind,
    VariantLabel,
    find_mismatches,
    label_records,
    make_variant_label,
)
from .models import (
    AlignmentRecord,
    Run,
    narrow_to_target,
    record_from_segment,
)
from .renumber import (
    CoordinateMap,
    genome_to_target,
)

__all__ = [
    # CIGAR
    'CigarOperation',
    'build_operations',
    # Models
    'AlignmentRecord',
    'Run',
    'narrow_to_target',
    'record_from_segment',
    # Renumbering
    'CoordinateMap',
    'genome_to_target',
    # Labels
    'VariantKind',
    'IndelToken',
    'SNVToken',
    'VariantLabel',
    'make_variant_label',
    'label_records',
    'find_mismatches',
    # Chimeras
    'find_chimeras',
    'group_chimeras',
]
