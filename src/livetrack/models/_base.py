"""Base model and enum for livetrack payloads.

Every inbound model inherits from :class:`TrackBaseModel` which provides:

* A ``model_validator(mode="before")`` that strips placeholder values
  (``""``, ``"--"``, NaN, ``None``) so the field default is used.
* A ``raw`` dict that captures the original payload.

Code enums inherit from :class:`TrackEnum` which adds a ``_missing_``
hook returning ``UNKNOWN`` for any value without a mapped member.
"""

from __future__ import annotations

import enum
import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Placeholder strings producers use for "not available".
_SENTINELS = frozenset({"", "--", "NaN", "nan", "null"})


class TrackEnum(enum.IntEnum):
    """Base for integer code enums.

    Every subclass **must** define ``UNKNOWN = -1``.
    """

    @classmethod
    def _missing_(cls, value: object) -> TrackEnum:
        if hasattr(cls, "UNKNOWN"):
            unknown: TrackEnum = cls.UNKNOWN  # type: ignore[attr-defined]
            return unknown
        return next(iter(cls))


class TrackBaseModel(BaseModel):
    """Base for models validated from external payloads."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, repr=False, exclude=True)
    """Original payload dict."""

    @model_validator(mode="before")
    @classmethod
    def _clean_values(cls, values: Any) -> Any:
        """Strip placeholder values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        # Keep an explicitly passed raw=, otherwise stash the payload itself.
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
