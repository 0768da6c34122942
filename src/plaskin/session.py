"""Owner of the active dataset and input-shape dispatch."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Union

from .dataset import CanonicalDataset
from .errors import DatasetReadError, PlaskinError
from .hdf5_loader import HDF5Loader, HDF5Source, looks_like_hdf5
from .text_loader import TextBlob, TextLoader

logger = logging.getLogger(__name__)


class DatasetLoader(Protocol):
    """Anything that turns one logical input into a :class:`CanonicalDataset`."""

    def load(self, source: Any) -> CanonicalDataset:
        ...


def read_text_directory(path: Union[str, Path]) -> Dict[str, bytes]:
    """Map basename to contents for the regular files directly under ``path``."""

    directory = Path(path)
    if not directory.is_dir():
        raise DatasetReadError(f"{directory} is not a directory")
    blobs: Dict[str, bytes] = {}
    try:
        for entry in sorted(directory.iterdir()):
            if entry.is_file():
                blobs[entry.name] = entry.read_bytes()
    except OSError as exc:
        raise DatasetReadError(f"Failed to read {directory}: {exc}") from exc
    return blobs


class Session:
    """Holds the active dataset; a new load replaces it only on success."""

    def __init__(
        self,
        *,
        hdf5_loader: Optional[DatasetLoader] = None,
        text_loader: Optional[DatasetLoader] = None,
    ) -> None:
        self._hdf5_loader = hdf5_loader or HDF5Loader()
        self._text_loader = text_loader or TextLoader()
        self._dataset: Optional[CanonicalDataset] = None
        self._source: Optional[str] = None

    @property
    def dataset(self) -> Optional[CanonicalDataset]:
        return self._dataset

    @property
    def source(self) -> Optional[str]:
        return self._source

    def require_dataset(self) -> CanonicalDataset:
        if self._dataset is None:
            raise PlaskinError("No data loaded.")
        return self._dataset

    def _replace(self, build: Callable[[], CanonicalDataset], source: str) -> CanonicalDataset:
        try:
            dataset = build()
        except PlaskinError as exc:
            logger.error("failed to load %s: %s", source, exc)
            raise
        self._dataset = dataset
        self._source = source
        logger.info("Loaded: %s | %s", source, dataset.describe())
        return dataset

    def load_hdf5_bytes(self, buffer: HDF5Source, source: str = "<hdf5>") -> CanonicalDataset:
        return self._replace(lambda: self._hdf5_loader.load(buffer), source)

    def load_text_blobs(self, blobs: Mapping[str, TextBlob], source: str = "<text>") -> CanonicalDataset:
        return self._replace(lambda: self._text_loader.load(blobs), source)

    def load_path(self, path: Union[str, Path]) -> CanonicalDataset:
        """Load a directory of text files or a single HDF5 file."""

        path = Path(path)
        if path.is_dir():
            return self._replace(lambda: self._text_loader.load(read_text_directory(path)), str(path))
        if not path.exists():
            raise DatasetReadError(f"{path} does not exist")
        if looks_like_hdf5(path):
            return self._replace(lambda: self._hdf5_loader.load(path), str(path))
        raise DatasetReadError(f"Unsupported input {path}: expected an HDF5 file or a directory")


__all__ = ["DatasetLoader", "Session", "read_text_directory"]
