"""Loader for ZDPlaskin-style HDF5 output files."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import BinaryIO, Dict, List, Tuple, Union

import h5py
import numpy as np

from .dataset import CanonicalDataset, fit_to_axis, zero_matrix
from .errors import DatasetReadError, MissingOptionalError, StructuralError

logger = logging.getLogger(__name__)

HDF5Source = Union[bytes, bytearray, memoryview, str, Path, BinaryIO]

ROOT_CANDIDATES = ("main", "zdplaskin")
"""Root groups tried in priority order; ``zdplaskin`` is the legacy layout."""

HDF5_SUFFIXES = (".h5", ".hdf5")
LABEL_ATTRIBUTE = "name"


def _numeric_key(key: str) -> Tuple[int, int, str]:
    try:
        return (0, int(key), key)
    except ValueError:
        return (1, 0, key)


def _find_root(h5file: h5py.File) -> h5py.Group:
    for name in ROOT_CANDIDATES:
        if f"{name}/t" in h5file:
            return h5file[name]
    expected = " or ".join(f"{name}/" for name in ROOT_CANDIDATES)
    raise StructuralError(f"Unrecognised HDF5 structure (expected {expected} group)")


def _read_time(root: h5py.Group) -> np.ndarray:
    node = root["t"]
    if not isinstance(node, h5py.Dataset):
        raise StructuralError(f"{root.name}/t is not a dataset")
    return np.asarray(node[()], dtype=float).ravel()


def _attribute_label(node: h5py.Dataset) -> str:
    raw = node.attrs.get(LABEL_ATTRIBUTE)
    if isinstance(raw, np.ndarray):
        raw = raw.reshape(-1)[0] if raw.size else None
    if isinstance(raw, (bytes, np.bytes_)):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str):
        raise MissingOptionalError(f"{node.name} has no string '{LABEL_ATTRIBUTE}' attribute")
    return str(raw)


def _resolve_label(node: h5py.Dataset, key: str) -> str:
    try:
        return _attribute_label(node)
    except MissingOptionalError as exc:
        logger.debug("%s; using key %r as label", exc, key)
        return key


def _read_group(root: h5py.Group, name: str, n_times: int) -> Tuple[List[str], Dict[int, np.ndarray]]:
    """Read the numbered children of ``root/name`` in ascending numeric order."""

    group = root[name]
    if not isinstance(group, h5py.Group):
        raise KeyError(f"{root.name}/{name} is not a group")
    labels: List[str] = []
    series: Dict[int, np.ndarray] = {}
    for key in sorted(group.keys(), key=_numeric_key):
        node = group[key]
        if not isinstance(node, h5py.Dataset):
            logger.debug("skipping non-dataset member %s", node.name)
            continue
        labels.append(_resolve_label(node, key))
        series[len(labels)] = fit_to_axis(node[()], n_times, node.name)
    return labels, series


def _read_required_group(root: h5py.Group, name: str, n_times: int) -> Tuple[List[str], Dict[int, np.ndarray]]:
    try:
        return _read_group(root, name, n_times)
    except KeyError as exc:
        raise StructuralError(f"Missing required group {root.name}/{name}") from exc


def _read_optional_group(root: h5py.Group, name: str, n_times: int) -> Tuple[List[str], Dict[int, np.ndarray]]:
    try:
        return _read_group(root, name, n_times)
    except KeyError:
        logger.debug("optional group %s/%s not present", root.name, name)
        return [], {}


def _read_source_matrix(root: h5py.Group, shape: Tuple[int, int]) -> np.ndarray:
    if "source_matrix" not in root:
        raise MissingOptionalError(f"{root.name}/source_matrix not present")
    node = root["source_matrix"]
    if not isinstance(node, h5py.Dataset):
        raise MissingOptionalError(f"{node.name} is not a dataset")
    values = np.asarray(node[()], dtype=float)
    if values.ndim != 2 or values.shape != shape:
        raise MissingOptionalError(f"{node.name} has shape {values.shape}, expected {shape}")
    if not np.all(np.isfinite(values)):
        raise MissingOptionalError(f"{node.name} contains non-finite coefficients")
    return np.rint(values).astype(int)


def _parse(h5file: h5py.File) -> CanonicalDataset:
    root = _find_root(h5file)
    t = _read_time(root)
    species, densities = _read_required_group(root, "density", t.size)
    reactions, rates = _read_required_group(root, "rate", t.size)
    conditions, condition_series = _read_optional_group(root, "condition", t.size)

    shape = (len(species), len(reactions))
    try:
        matrix = _read_source_matrix(root, shape)
    except MissingOptionalError as exc:
        logger.debug("%s; using zero source matrix", exc)
        matrix = zero_matrix(*shape)

    return CanonicalDataset(
        species=tuple(species),
        reactions=tuple(reactions),
        conditions=tuple(conditions),
        t=t,
        source_matrix=matrix,
        densities=densities,
        rates=rates,
        condition_series=condition_series,
    )


class HDF5Loader:
    """Build a :class:`CanonicalDataset` from a hierarchical HDF5 input.

    ``source`` may be the raw file contents, a path, or a binary file object.
    """

    def load(self, source: HDF5Source) -> CanonicalDataset:
        if isinstance(source, (bytes, bytearray, memoryview)):
            source = io.BytesIO(bytes(source))
        try:
            h5file = h5py.File(source, "r")
        except (OSError, ValueError) as exc:
            raise DatasetReadError(f"Unable to open HDF5 input: {exc}") from exc
        try:
            with h5file:
                dataset = _parse(h5file)
        except (OSError, TypeError, ValueError) as exc:
            raise DatasetReadError(f"Failed to read HDF5 input: {exc}") from exc
        logger.info("loaded HDF5 dataset: %s", dataset.describe())
        return dataset


def looks_like_hdf5(path: Union[str, Path]) -> bool:
    """True for ``.h5``/``.hdf5`` names and for files carrying the HDF5 signature."""

    path = Path(path)
    if path.suffix.lower() in HDF5_SUFFIXES:
        return True
    return path.is_file() and bool(h5py.is_hdf5(str(path)))


__all__ = ["HDF5Loader", "HDF5_SUFFIXES", "ROOT_CANDIDATES", "looks_like_hdf5"]
