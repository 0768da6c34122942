"""Public exports for the plasma-kinetics data layer."""

from .analysis import SourceBreakdown, SourceSide, source_breakdown
from .config import FilterSettings, load_filter_settings
from .dataset import CONDITION_LABELS, CanonicalDataset, condition_label
from .errors import (
    ConfigError,
    DatasetReadError,
    MalformedRowError,
    MissingOptionalError,
    MissingRequiredFileError,
    PlaskinError,
    StructuralError,
)
from .filters import select_contributors
from .hdf5_loader import HDF5Loader
from .session import Session, read_text_directory
from .text_loader import LEGACY_DIALECT, QT_DIALECT, TextLoader

__all__ = [
    "CONDITION_LABELS",
    "CanonicalDataset",
    "ConfigError",
    "DatasetReadError",
    "FilterSettings",
    "HDF5Loader",
    "LEGACY_DIALECT",
    "MalformedRowError",
    "MissingOptionalError",
    "MissingRequiredFileError",
    "PlaskinError",
    "QT_DIALECT",
    "Session",
    "SourceBreakdown",
    "SourceSide",
    "StructuralError",
    "TextLoader",
    "condition_label",
    "load_filter_settings",
    "read_text_directory",
    "select_contributors",
    "source_breakdown",
]
