"""Audience breakdown encodings and their canonical flat form.

Instagram has returned audience demographics in two shapes over time:

- legacy: ``{"F.18-24": 120, "M.25-34": 80}``
- current: ``[{"value": 120, "dimension_values": ["F", "18-24"]}, ...]``

Stored rows may hold either shape. Readers parse a raw value into one of
the two tagged models below and flatten it once with :func:`normalize_breakdown`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

Number = Union[int, float]


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class BreakdownEntry(BaseModel):
    value: Number
    dimension_values: list[str]

    @property
    def label(self) -> str:
        return ", ".join(self.dimension_values)


class FlatBreakdown(BaseModel):
    """Legacy encoding: composite label -> count."""

    kind: Literal["flat"] = "flat"
    counts: dict[str, Number] = Field(default_factory=dict)

    def to_mapping(self) -> dict[str, Number]:
        return dict(self.counts)


class DimensionalBreakdown(BaseModel):
    """Current encoding: ordered ``{value, dimension_values}`` records."""

    kind: Literal["dimensional"] = "dimensional"
    entries: list[BreakdownEntry] = Field(default_factory=list)

    def to_mapping(self) -> dict[str, Number]:
        # later duplicates of a label overwrite earlier ones
        return {entry.label: entry.value for entry in self.entries}


Breakdown = Annotated[Union[FlatBreakdown, DimensionalBreakdown], Field(discriminator="kind")]


def _as_entry(item: Any) -> BreakdownEntry | None:
    if not isinstance(item, Mapping):
        return None
    dimensions = item.get("dimension_values")
    value = item.get("value")
    if not isinstance(dimensions, (list, tuple)) or not is_number(value):
        return None
    return BreakdownEntry(value=value, dimension_values=[str(part) for part in dimensions])


def parse_breakdown(raw: Any) -> FlatBreakdown | DimensionalBreakdown | None:
    """Detect which encoding ``raw`` uses.

    Returns ``None`` for absent values and for shapes matching neither
    encoding. Sequence elements lacking a numeric ``value`` or a
    ``dimension_values`` list are skipped.
    """
    if isinstance(raw, (FlatBreakdown, DimensionalBreakdown)):
        return raw
    if not raw:
        return None
    if isinstance(raw, Mapping):
        if all(is_number(value) for value in raw.values()):
            return FlatBreakdown(counts={str(key): value for key, value in raw.items()})
        return None
    if isinstance(raw, (list, tuple)):
        entries = [entry for entry in (_as_entry(item) for item in raw) if entry is not None]
        return DimensionalBreakdown(entries=entries)
    return None


def normalize_breakdown(raw: Any) -> dict[str, Number]:
    """Flatten any supported breakdown encoding into ``{label: count}``.

    Total: unrecognized input yields an empty mapping. Idempotent, since the
    output is itself a valid legacy encoding.
    """
    parsed = parse_breakdown(raw)
    if parsed is None:
        if raw:
            logger.debug("Ignoring malformed audience breakdown | type=%s", type(raw).__name__)
        return {}
    return parsed.to_mapping()
