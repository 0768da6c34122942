"""Top-contributor selection for the sensitivity view."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from .config import FilterSettings


def peak_contribution(series: Optional[Sequence[float]]) -> float:
    """Largest finite sample of ``series``; 0 for empty or missing series."""

    if series is None:
        return 0.0
    arr = np.asarray(series, dtype=float)
    arr = arr[np.isfinite(arr)]
    return float(arr.max()) if arr.size else 0.0


def select_contributors(
    weighted: Mapping[int, Sequence[float]],
    candidate_ids: Sequence[int],
    delta: float,
    max_count: int = 8,
    min_count: int = 1,
) -> List[int]:
    """Pick the reactions worth displaying, most important first.

    ``weighted`` holds one non-negative series per reaction.  Candidates are
    ranked by peak contribution normalised to the largest peak.  The first
    ``min_count`` ranks are always kept, ranks below ``max_count`` need a
    normalised peak above ``delta`` (any peak when ``delta`` is 0), and later
    ranks are kept only above ``1 - delta``.
    """

    if not candidate_ids:
        return []
    peaks: Dict[int, float] = {rid: peak_contribution(weighted.get(rid)) for rid in candidate_ids}
    global_peak = max(peaks.values())
    if global_peak <= 0.0:
        return []

    # reverse=True keeps tied candidates in input order
    ranked = sorted(candidate_ids, key=lambda rid: peaks[rid] / global_peak, reverse=True)

    selected: List[int] = []
    for rank, rid in enumerate(ranked):
        norm = peaks[rid] / global_peak
        if rank < min_count:
            selected.append(rid)
        elif rank < max_count:
            if delta == 0 or norm > delta:
                selected.append(rid)
        elif delta > 0 and norm > 1 - delta:
            selected.append(rid)
    return selected


def select_with_settings(
    weighted: Mapping[int, Sequence[float]],
    candidate_ids: Sequence[int],
    settings: FilterSettings,
) -> List[int]:
    return select_contributors(
        weighted,
        candidate_ids,
        settings.delta,
        max_count=settings.max_count,
        min_count=settings.min_count,
    )


__all__ = ["peak_contribution", "select_contributors", "select_with_settings"]
