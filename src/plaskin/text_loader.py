"""Loader for the plain-text output family (``qt_*.txt`` and legacy names)."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .dataset import CanonicalDataset, zero_matrix
from .errors import MalformedRowError, MissingRequiredFileError

logger = logging.getLogger(__name__)

TextBlob = Union[str, bytes]

_LIST_LINE = re.compile(r"^\d+\s+(.*)$")


@dataclass(frozen=True)
class TextDialect:
    """File names for one naming convention of the text output."""

    name: str
    species_list: str
    reactions_list: str
    conditions_list: str
    densities: str
    rates: str
    conditions: str
    matrix: str


QT_DIALECT = TextDialect(
    name="qt",
    species_list="qt_species_list.txt",
    reactions_list="qt_reactions_list.txt",
    conditions_list="qt_conditions_list.txt",
    densities="qt_densities.txt",
    rates="qt_rates.txt",
    conditions="qt_conditions.txt",
    matrix="qt_matrix.txt",
)

LEGACY_DIALECT = TextDialect(
    name="legacy",
    species_list="species_list.txt",
    reactions_list="reactions_list.txt",
    conditions_list="conditions_list.txt",
    densities="out_density.txt",
    rates="out_rate.txt",
    conditions="out_temperatures.txt",
    matrix="source_matrix.txt",
)

SENTINEL_FILE = QT_DIALECT.species_list


def detect_dialect(names: Iterable[str]) -> TextDialect:
    """``qt`` when the sentinel species list is present, legacy otherwise."""

    basenames = {PurePath(name).name for name in names}
    return QT_DIALECT if SENTINEL_FILE in basenames else LEGACY_DIALECT


@dataclass(frozen=True)
class DataTable:
    """Parsed data file: time column plus one value column per entity."""

    t: np.ndarray
    values: np.ndarray  # shape (n_rows, n_columns)

    def column(self, index: int) -> np.ndarray:
        return self.values[:, index]


def parse_list_file(text: str) -> List[str]:
    """Labels in file order; the printed leading index is ignored."""

    labels: List[str] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        match = _LIST_LINE.match(line)
        labels.append(match.group(1).strip() if match else line)
    return labels


def _parse_row(line: str, n_columns: int) -> Tuple[float, List[float]]:
    tokens = line.split()
    try:
        numbers = [float(token) for token in tokens]
    except ValueError as exc:
        raise MalformedRowError(f"unparseable numeric token in {line!r}") from exc
    values = numbers[1 : n_columns + 1]
    values.extend([0.0] * (n_columns - len(values)))
    return numbers[0], values


def parse_data_file(text: str, n_columns: int) -> DataTable:
    """Parse a densities/rates/conditions file.

    The first line is a header.  Rows with an unparseable token are dropped;
    short rows are zero-filled on the right and extra columns are ignored.
    """

    times: List[float] = []
    rows: List[List[float]] = []
    dropped = 0
    for lineno, line in enumerate(text.strip().splitlines()[1:], start=2):
        if not line.strip():
            continue
        try:
            time, values = _parse_row(line, n_columns)
        except MalformedRowError as exc:
            logger.debug("line %d dropped: %s", lineno, exc)
            dropped += 1
            continue
        times.append(time)
        rows.append(values)
    if dropped:
        logger.warning("dropped %d malformed data row(s)", dropped)
    values = np.array(rows, dtype=float) if rows else np.zeros((0, n_columns), dtype=float)
    return DataTable(t=np.array(times, dtype=float), values=values.reshape(len(rows), n_columns))


_INT64 = np.iinfo(np.int64)


def _parse_int(token: str) -> int:
    try:
        value = int(token)
    except ValueError:
        try:
            number = float(token)
        except ValueError as exc:
            raise MalformedRowError(f"unparseable coefficient {token!r}") from exc
        if not number.is_integer():
            raise MalformedRowError(f"non-integer coefficient {token!r}")
        value = int(number)
    if not _INT64.min <= value <= _INT64.max:
        raise MalformedRowError(f"coefficient {token!r} out of range")
    return value


def parse_matrix_file(text: str) -> List[List[int]]:
    """One row per species, one whitespace-separated integer per reaction."""

    return [[_parse_int(token) for token in line.split()] for line in text.splitlines() if line.strip()]


def _fit_matrix(rows: List[List[int]], shape: Tuple[int, int]) -> np.ndarray:
    matrix = zero_matrix(*shape)
    n_rows = len(rows)
    n_cols = max((len(row) for row in rows), default=0)
    if (n_rows, n_cols) != shape or any(len(row) != n_cols for row in rows):
        logger.warning(
            "source matrix is %dx%d (ragged or mismatched), expected %dx%d; fitting",
            n_rows,
            n_cols,
            *shape,
        )
    for i, row in enumerate(rows[: shape[0]]):
        keep = row[: shape[1]]
        matrix[i, : len(keep)] = keep
    return matrix


def _decode(blob: TextBlob) -> str:
    if isinstance(blob, bytes):
        return blob.decode("utf-8", errors="replace")
    return blob


def _align_to_axis(table: DataTable, t: np.ndarray, kind: str) -> np.ndarray:
    """Values of ``table`` placed on the rows of ``t`` by matching time stamps."""

    if table.t.shape == t.shape and np.array_equal(table.t, t):
        return table.values
    frame = pd.DataFrame(table.values, index=table.t)
    frame = frame[~frame.index.duplicated(keep="first")]
    aligned = frame.reindex(t, fill_value=0.0)
    missing = int(np.count_nonzero(~np.isin(t, frame.index.to_numpy())))
    if missing:
        logger.warning("%s file has no row for %d of %d time step(s); zero-filled", kind, missing, t.size)
    return aligned.to_numpy(dtype=float)


def _series_from_table(table: DataTable, labels: List[str], t: np.ndarray, kind: str) -> Dict[int, np.ndarray]:
    values = _align_to_axis(table, t, kind)
    return {j + 1: values[:, j].copy() for j in range(len(labels))}


class TextLoader:
    """Build a :class:`CanonicalDataset` from named text blobs.

    ``blobs`` maps file names (basenames or paths; only the basename is
    matched) to their contents.  Only the species list and the densities
    file are mandatory.
    """

    def load(self, blobs: Mapping[str, TextBlob]) -> CanonicalDataset:
        files: Dict[str, TextBlob] = {}
        for name, blob in blobs.items():
            files.setdefault(PurePath(name).name, blob)
        dialect = detect_dialect(files)
        logger.debug("text dialect %s", dialect.name)

        def required(filename: str, role: str) -> str:
            if filename not in files:
                raise MissingRequiredFileError(role, filename)
            return _decode(files[filename])

        def optional(filename: str) -> Optional[str]:
            if filename not in files:
                logger.debug("optional file %s not present", filename)
                return None
            return _decode(files[filename])

        species_text = required(dialect.species_list, "Species list")
        densities_text = required(dialect.densities, "Densities")
        reactions_text = optional(dialect.reactions_list)
        conditions_list_text = optional(dialect.conditions_list)
        rates_text = optional(dialect.rates)
        conditions_text = optional(dialect.conditions)
        matrix_text = optional(dialect.matrix)

        species = parse_list_file(species_text)
        reactions = parse_list_file(reactions_text) if reactions_text else []
        conditions = parse_list_file(conditions_list_text) if conditions_list_text else []

        density_table = parse_data_file(densities_text, len(species))
        t = density_table.t
        densities = _series_from_table(density_table, species, t, "density")

        rates: Dict[int, np.ndarray] = {}
        if rates_text and reactions:
            rates = _series_from_table(parse_data_file(rates_text, len(reactions)), reactions, t, "rate")
        condition_series: Dict[int, np.ndarray] = {}
        if conditions_text and conditions:
            condition_series = _series_from_table(
                parse_data_file(conditions_text, len(conditions)), conditions, t, "condition"
            )

        shape = (len(species), len(reactions))
        matrix = zero_matrix(*shape)
        if matrix_text:
            try:
                matrix = _fit_matrix(parse_matrix_file(matrix_text), shape)
            except MalformedRowError as exc:
                logger.warning("%s: %s; using zero source matrix", dialect.matrix, exc)

        dataset = CanonicalDataset(
            species=tuple(species),
            reactions=tuple(reactions),
            conditions=tuple(conditions),
            t=t,
            source_matrix=matrix,
            densities=densities,
            rates=rates,
            condition_series=condition_series,
        )
        logger.info("loaded %s text dataset: %s", dialect.name, dataset.describe())
        return dataset


__all__ = [
    "DataTable",
    "LEGACY_DIALECT",
    "QT_DIALECT",
    "SENTINEL_FILE",
    "TextDialect",
    "TextLoader",
    "detect_dialect",
    "parse_data_file",
    "parse_list_file",
    "parse_matrix_file",
]
