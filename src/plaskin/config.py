"""Settings for the sensitivity filter, with environment overrides."""

from __future__ import annotations

import os
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, model_validator

from .errors import ConfigError

ENV_DELTA = "PLASKIN_FILTER_DELTA"
ENV_MAX_COUNT = "PLASKIN_FILTER_MAX"
ENV_MIN_COUNT = "PLASKIN_FILTER_MIN"

_ENV_FIELDS = {
    ENV_DELTA: "delta",
    ENV_MAX_COUNT: "max_count",
    ENV_MIN_COUNT: "min_count",
}


class FilterSettings(BaseModel):
    """Thresholds used when ranking reactions for the sensitivity view.

    ``delta`` is the significance threshold on normalised peak contribution;
    ``min_count`` reactions are always shown and at most ``max_count`` are
    shown unless a reaction dominates (normalised peak above ``1 - delta``).
    """

    model_config = {"frozen": True, "extra": "forbid"}

    delta: float = Field(default=0.1, ge=0.0, le=1.0)
    max_count: int = Field(default=8, ge=0)
    min_count: int = Field(default=1, ge=0)

    @model_validator(mode="after")
    def counts_ordered(self) -> "FilterSettings":
        if self.min_count > self.max_count:
            raise ValueError(f"min_count {self.min_count} exceeds max_count {self.max_count}")
        return self


def load_filter_settings(
    environ: Optional[Mapping[str, str]] = None,
    **overrides: object,
) -> FilterSettings:
    """Build :class:`FilterSettings` from the environment plus explicit overrides.

    Keyword overrides set to ``None`` are ignored so CLI defaults can be
    forwarded unconditionally.
    """

    env = os.environ if environ is None else environ
    values: Dict[str, object] = {}
    for variable, field_name in _ENV_FIELDS.items():
        raw = env.get(variable)
        if raw is not None and raw.strip():
            values[field_name] = raw.strip()
    values.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return FilterSettings(**values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid filter settings: {exc}") from exc


__all__ = [
    "ENV_DELTA",
    "ENV_MAX_COUNT",
    "ENV_MIN_COUNT",
    "FilterSettings",
    "load_filter_settings",
]
