"""Domain-specific exceptions for the kinetics data layer."""

from __future__ import annotations


class PlaskinError(RuntimeError):
    """Base class for data layer errors."""


class ConfigError(PlaskinError):
    """Raised when filter or loader configuration is invalid."""


class DatasetReadError(PlaskinError):
    """Raised when the input cannot be read or is not a supported container."""


class StructuralError(PlaskinError):
    """Raised when an HDF5 file lacks the expected root container or groups."""


class MissingRequiredFileError(PlaskinError):
    """Raised when a mandatory text file is absent from the input set."""

    def __init__(self, role: str, filename: str) -> None:
        super().__init__(f"{role} file not found: {filename}")
        self.role = role
        self.filename = filename


class MalformedRowError(PlaskinError):
    """Raised by parsers for unparseable numeric tokens; never escapes a loader."""


class MissingOptionalError(PlaskinError):
    """Raised by optional readers; loaders substitute a documented default."""


__all__ = [
    "PlaskinError",
    "ConfigError",
    "DatasetReadError",
    "StructuralError",
    "MissingRequiredFileError",
    "MalformedRowError",
    "MissingOptionalError",
]
