"""Production/removal decomposition of a species' source terms."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple, Union

import numpy as np

from .config import FilterSettings
from .dataset import CanonicalDataset
from .filters import peak_contribution, select_with_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceSide:
    """Selected reactions on one side (production or removal) of the balance."""

    reaction_ids: Tuple[int, ...] = ()
    weighted: Mapping[int, np.ndarray] = field(default_factory=dict)

    def peak(self, reaction_id: int) -> float:
        return peak_contribution(self.weighted.get(reaction_id))


@dataclass(frozen=True)
class SourceBreakdown:
    """Result of :func:`source_breakdown` for a single species."""

    species_index: int
    species: str
    production: SourceSide
    removal: SourceSide
    labels: Mapping[int, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.production.reaction_ids and not self.removal.reaction_ids

    def rates(self, dataset: CanonicalDataset, side: str = "production") -> Dict[int, np.ndarray]:
        """Raw reaction rates for the selected ids, as plotted by the viewer."""

        chosen = self.production if side == "production" else self.removal
        result: Dict[int, np.ndarray] = {}
        for rid in chosen.reaction_ids:
            series = dataset.rate(rid)
            if series is not None:
                result[rid] = series
        return result


def reaction_label(dataset: CanonicalDataset, reaction_id: int) -> str:
    name = dataset.reactions[reaction_id - 1] if 1 <= reaction_id <= dataset.n_reactions else "?"
    return f"[{reaction_id}] {name}"


def split_sources(
    sources: Mapping[int, np.ndarray],
) -> Tuple[List[int], Dict[int, np.ndarray], List[int], Dict[int, np.ndarray]]:
    """Split signed contributions into production and removal candidates.

    A reaction with any positive sample is a production candidate weighted by
    the positive part; any negative sample makes it a removal candidate
    weighted by the negated negative part.  A reaction can be both.
    """

    production_ids: List[int] = []
    removal_ids: List[int] = []
    production: Dict[int, np.ndarray] = {}
    removal: Dict[int, np.ndarray] = {}
    for rid, signed in sources.items():
        if np.any(signed > 0):
            production_ids.append(rid)
            production[rid] = np.maximum(signed, 0.0)
        if np.any(signed < 0):
            removal_ids.append(rid)
            removal[rid] = np.maximum(-signed, 0.0)
    return production_ids, production, removal_ids, removal


def source_breakdown(
    dataset: CanonicalDataset,
    species: Union[int, str],
    settings: Optional[FilterSettings] = None,
) -> SourceBreakdown:
    settings = settings or FilterSettings()
    index = dataset.species_index(species)
    sources = dataset.sources(index)
    if not sources:
        logger.info("no reactions affect %s (check source matrix)", dataset.species[index - 1])

    production_ids, production, removal_ids, removal = split_sources(sources)
    kept_production = select_with_settings(production, production_ids, settings)
    kept_removal = select_with_settings(removal, removal_ids, settings)
    logger.debug(
        "species %d: %d/%d production and %d/%d removal reactions kept (delta=%g)",
        index,
        len(kept_production),
        len(production_ids),
        len(kept_removal),
        len(removal_ids),
        settings.delta,
    )

    return SourceBreakdown(
        species_index=index,
        species=dataset.species[index - 1],
        production=SourceSide(
            reaction_ids=tuple(kept_production),
            weighted={rid: production[rid] for rid in kept_production},
        ),
        removal=SourceSide(
            reaction_ids=tuple(kept_removal),
            weighted={rid: removal[rid] for rid in kept_removal},
        ),
        labels={rid: reaction_label(dataset, rid) for rid in (*kept_production, *kept_removal)},
    )


__all__ = [
    "SourceBreakdown",
    "SourceSide",
    "reaction_label",
    "source_breakdown",
    "split_sources",
]
