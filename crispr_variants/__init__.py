"""
crispr-variants - Cut-site-relative variant labelling and counting for CRISPR amplicon reads.
"""

__version__ = "0.1.0"

from .config import (
    ConfigurationError,
    LabelConfig,
    Target,
    VariantSetConfig,
)
from .core.labels import VariantKind, VariantLabel
from .core.models import AlignmentRecord, Run
from .crispr_set import CrisprSet

__all__ = [
    "ConfigurationError",
    "LabelConfig",
    "Target",
    "VariantSetConfig",
    "AlignmentRecord",
    "Run",
    "VariantKind",
    "VariantLabel",
    "CrisprSet",
    "__version__",
]
