"""Canonical, format-independent representation of a kinetics simulation run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

SeriesMap = Mapping[int, np.ndarray]

CONDITION_LABELS: Mapping[str, str] = MappingProxyType(
    {
        "gas_temperature": "Gas temperature [K]",
        "Tgas_K": "Gas temperature [K]",
        "reduced_field": "Reduced field E/N [Td]",
        "E/N_Td": "Reduced field E/N [Td]",
        "elec_temperature": "Electron temperature [K]",
        "Telec_K": "Electron temperature [K]",
        "elec_drift_velocity": "Electron drift velocity [cm/s]",
        "elec_diff_coeff": "Electron diffusion coeff. [cm2 s-1]",
        "elec_frequency_n": "Electron collision freq. [cm3 s-1]",
        "elec_power_n": "Electron power [eV cm3 s-1]",
        "elec_power_elastic_n": "Electron elastic power [eV cm3 s-1]",
        "elec_power_inelastic_n": "Electron inelastic power [eV cm3 s-1]",
    }
)


def condition_label(name: str) -> str:
    """Return the display name for a condition key, or the key itself."""

    return CONDITION_LABELS.get(name, name)


def zero_matrix(n_species: int, n_reactions: int) -> np.ndarray:
    return np.zeros((n_species, n_reactions), dtype=int)


def fit_to_axis(values: Sequence[float], n_times: int, label: str = "") -> np.ndarray:
    """Zero-pad or truncate ``values`` so it has exactly ``n_times`` samples."""

    arr = np.asarray(values, dtype=float).ravel()
    if arr.size == n_times:
        return arr
    logger.warning(
        "series %s has %d samples but the time axis has %d; fitting to the axis",
        label or "<unnamed>",
        arr.size,
        n_times,
    )
    fitted = np.zeros(n_times, dtype=float)
    keep = min(arr.size, n_times)
    fitted[:keep] = arr[:keep]
    return fitted


def _readonly(values: Iterable[float], dtype=float) -> np.ndarray:
    arr = np.array(values, dtype=dtype)
    arr.setflags(write=False)
    return arr


def _freeze_series(series: Optional[Mapping[int, Sequence[float]]]) -> SeriesMap:
    frozen: Dict[int, np.ndarray] = {}
    for key, values in (series or {}).items():
        frozen[int(key)] = _readonly(values)
    return MappingProxyType(frozen)


@dataclass(frozen=True, eq=False)
class CanonicalDataset:
    """Immutable container shared by every loader and every consumer.

    Attributes
    ----------
    species, reactions, conditions:
        Display labels.  Public indices are 1-based: label ``k`` lives at
        position ``k - 1``.
    t:
        Global time axis shared by every series.
    source_matrix:
        Integer stoichiometric matrix with shape ``(n_species, n_reactions)``.
        ``None`` is replaced by the all-zero matrix.
    densities, rates, condition_series:
        Sparse mappings from 1-based index to a series aligned with ``t``.  A
        missing key means the source had no data for that entry, which is
        distinct from a series of zeros.
    """

    species: Tuple[str, ...]
    reactions: Tuple[str, ...]
    conditions: Tuple[str, ...]
    t: np.ndarray
    source_matrix: Optional[np.ndarray] = None
    densities: SeriesMap = field(default_factory=dict)
    rates: SeriesMap = field(default_factory=dict)
    condition_series: SeriesMap = field(default_factory=dict)

    def __post_init__(self) -> None:
        species = tuple(str(name) for name in self.species)
        reactions = tuple(str(name) for name in self.reactions)
        conditions = tuple(str(name) for name in self.conditions)
        object.__setattr__(self, "species", species)
        object.__setattr__(self, "reactions", reactions)
        object.__setattr__(self, "conditions", conditions)
        object.__setattr__(self, "t", _readonly(np.asarray(self.t, dtype=float).ravel()))

        shape = (len(species), len(reactions))
        if self.source_matrix is None:
            matrix = zero_matrix(*shape)
        else:
            matrix = np.array(self.source_matrix, dtype=int)
            if matrix.size == 0:
                matrix = zero_matrix(*shape)
            if matrix.shape != shape:
                raise ValueError(f"source matrix shape {matrix.shape} does not match {shape}")
        matrix.setflags(write=False)
        object.__setattr__(self, "source_matrix", matrix)

        for attr, labels in (
            ("densities", species),
            ("rates", reactions),
            ("condition_series", conditions),
        ):
            frozen = _freeze_series(getattr(self, attr))
            for key, values in frozen.items():
                if not 1 <= key <= len(labels):
                    raise ValueError(f"{attr} key {key} outside [1, {len(labels)}]")
                if values.shape != self.t.shape:
                    raise ValueError(
                        f"{attr}[{key}] has {values.size} samples, expected {self.t.size}"
                    )
            object.__setattr__(self, attr, frozen)

    # --- sizes ---------------------------------------------------------------------

    @property
    def n_species(self) -> int:
        return len(self.species)

    @property
    def n_reactions(self) -> int:
        return len(self.reactions)

    @property
    def n_conditions(self) -> int:
        return len(self.conditions)

    @property
    def n_times(self) -> int:
        return int(self.t.size)

    def describe(self) -> str:
        return (
            f"{self.n_species} species | {self.n_reactions} reactions | "
            f"{self.n_times} timesteps"
        )

    # --- series access ---------------------------------------------------------------

    @staticmethod
    def _lookup(series: SeriesMap, labels: Tuple[str, ...], key: int, kind: str) -> Optional[np.ndarray]:
        if not 1 <= key <= len(labels):
            raise IndexError(f"{kind} index {key} outside [1, {len(labels)}]")
        return series.get(key)

    def density(self, key: int) -> Optional[np.ndarray]:
        return self._lookup(self.densities, self.species, key, "species")

    def rate(self, key: int) -> Optional[np.ndarray]:
        return self._lookup(self.rates, self.reactions, key, "reaction")

    def condition(self, key: int) -> Optional[np.ndarray]:
        return self._lookup(self.condition_series, self.conditions, key, "condition")

    def species_index(self, token: Union[int, str]) -> int:
        """Resolve a species label or 1-based index (int or digit string)."""

        if isinstance(token, str):
            if token in self.species:
                return self.species.index(token) + 1
            if not token.strip().isdigit():
                raise KeyError(f"unknown species {token!r}")
            token = int(token)
        index = int(token)
        if not 1 <= index <= self.n_species:
            raise KeyError(f"species index {index} outside [1, {self.n_species}]")
        return index

    # --- decomposition -------------------------------------------------------------

    def sources(self, species_index: int) -> Dict[int, np.ndarray]:
        """Per-reaction contribution to ``species_index``.

        Returns ``{reaction_index: rate * coefficient}`` for every reaction
        with a nonzero coefficient for the species and a known rate series.
        Positive samples are production, negative samples are consumption.
        An index outside the matrix rows yields an empty mapping.
        """

        row = species_index - 1
        result: Dict[int, np.ndarray] = {}
        if not 0 <= row < self.source_matrix.shape[0]:
            return result
        coefficients = self.source_matrix[row]
        for col in np.flatnonzero(coefficients):
            reaction = int(col) + 1
            rate = self.rates.get(reaction)
            if rate is None:
                continue
            result[reaction] = rate * float(coefficients[col])
        return result

    # --- tabular views ---------------------------------------------------------------

    def _frame(self, series: SeriesMap, labels: Tuple[str, ...]) -> pd.DataFrame:
        keys = sorted(series)
        index = pd.Index(self.t, name="t")
        if not keys:
            return pd.DataFrame(index=index)
        data = np.column_stack([series[key] for key in keys])
        return pd.DataFrame(data, index=index, columns=[labels[key - 1] for key in keys])

    def density_frame(self) -> pd.DataFrame:
        return self._frame(self.densities, self.species)

    def rate_frame(self) -> pd.DataFrame:
        return self._frame(self.rates, self.reactions)

    def condition_frame(self) -> pd.DataFrame:
        return self._frame(self.condition_series, self.conditions)


__all__ = [
    "CONDITION_LABELS",
    "CanonicalDataset",
    "SeriesMap",
    "condition_label",
    "fit_to_axis",
    "zero_matrix",
]
