"""Dashboard views derived from normalized audience breakdowns.

All functions take the canonical ``{label: count}`` mapping produced by
``core.schemas.breakdown.normalize_breakdown`` and return plain dataclasses
ready for serialization. Percentages use half-up rounding to match the
numbers the site has always displayed.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Mapping

from ..constants.brazil_states import (
    EMPTY_STATE_COLOR,
    MIN_STATE_INTENSITY,
    STATE_CODE_TO_NAME,
    STATE_NAME_TO_CODE,
)

Number = int | float

TOP_CITIES_LIMIT = 8
TOP_STATES_LIMIT = 10

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _format_js_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def age_sort_key(label: str) -> int:
    """Numeric prefix of an age bucket label ("25-34" -> 25, "65+" -> 65, junk -> 0)."""
    match = _LEADING_INT.match(label.split("-", 1)[0])
    return int(match.group(1)) if match else 0


# ---------------------------------------------------------------------------
# Gender / age
# ---------------------------------------------------------------------------


@dataclass
class AgeBucket:
    label: str
    count: Number
    percent: int
    bar_fraction: float


@dataclass
class GenderAgeBreakdown:
    male: Number = 0
    female: Number = 0
    male_percent: int = 0
    female_percent: int = 0
    age_buckets: list[AgeBucket] = field(default_factory=list)

    @property
    def total(self) -> Number:
        return self.male + self.female


def split_gender_age_label(label: str) -> tuple[str | None, str | None]:
    """Split "F, 18-24" (current) or "F.18-24" (legacy) into gender and age."""
    separator = ", " if ", " in label else "."
    parts = label.split(separator)
    gender = parts[0].strip() if parts else None
    age = parts[1].strip() if len(parts) > 1 else None
    return gender or None, age or None


def reduce_gender_age(mapping: Mapping[str, Number]) -> GenderAgeBreakdown:
    male: Number = 0
    female: Number = 0
    ages: dict[str, Number] = {}

    for label, count in mapping.items():
        gender, age = split_gender_age_label(label)
        if gender == "M":
            male += count
        elif gender == "F":
            female += count
        if age:
            ages[age] = ages.get(age, 0) + count

    total = male + female
    male_percent = round_half_up(male / total * 100) if total else 0
    female_percent = round_half_up(female / total * 100) if total else 0

    age_total = sum(ages.values()) or 1
    age_max = max([*ages.values(), 1])
    buckets = [
        AgeBucket(
            label=label,
            count=count,
            percent=round_half_up(count / age_total * 100),
            bar_fraction=count / age_max,
        )
        for label, count in sorted(ages.items(), key=lambda item: age_sort_key(item[0]))
    ]

    return GenderAgeBreakdown(
        male=male,
        female=female,
        male_percent=male_percent,
        female_percent=female_percent,
        age_buckets=buckets,
    )


# ---------------------------------------------------------------------------
# Cities
# ---------------------------------------------------------------------------


@dataclass
class CityShare:
    name: str
    count: Number
    percent: int
    bar_fraction: float


@dataclass
class CityBreakdown:
    cities: list[CityShare] = field(default_factory=list)
    total: Number = 0


def city_name(label: str) -> str:
    """Strip the state suffix: "São Paulo, São Paulo (state)" -> "São Paulo"."""
    return label.split(",", 1)[0].strip() or label


def reduce_cities(mapping: Mapping[str, Number], limit: int = TOP_CITIES_LIMIT) -> CityBreakdown:
    merged: dict[str, Number] = {}
    for label, count in mapping.items():
        name = city_name(label)
        merged[name] = merged.get(name, 0) + count

    ranked = sorted(merged.items(), key=lambda item: item[1], reverse=True)[:limit]
    total = sum(merged.values())
    divisor = total or 1
    max_value = (ranked[0][1] if ranked else 0) or 1

    return CityBreakdown(
        cities=[
            CityShare(
                name=name,
                count=count,
                percent=round_half_up(count / divisor * 100),
                bar_fraction=count / max_value,
            )
            for name, count in ranked
        ],
        total=total,
    )


# ---------------------------------------------------------------------------
# Brazilian states
# ---------------------------------------------------------------------------


@dataclass
class StateShare:
    code: str
    name: str
    count: Number
    bar_fraction: float
    intensity: float
    color: str


@dataclass
class StateBreakdown:
    totals: dict[str, Number] = field(default_factory=dict)
    ranking: list[StateShare] = field(default_factory=list)
    max_value: Number = 1

    def color_for(self, code: str) -> str:
        return state_color(self.totals.get(code, 0), self.max_value)


def state_code(label: str) -> str | None:
    """Two-letter code for the state named after the last ", " in a city label.

    A bare label is only mapped when the city shares its state's name
    ("São Paulo", "Rio de Janeiro"). This deliberately extends the
    two-segment rule the map legend used before, so bare capital labels
    count toward their state.
    """
    parts = label.split(", ")
    if len(parts) < 2:
        return STATE_NAME_TO_CODE.get(label.strip())
    return STATE_NAME_TO_CODE.get(parts[-1].strip())


def state_intensity(value: Number, max_value: Number) -> float:
    return max(MIN_STATE_INTENSITY, value / (max_value or 1))


def state_color(value: Number, max_value: Number) -> str:
    """Teal-to-gold ramp keyed to the state's share of the top state."""
    if not value:
        return EMPTY_STATE_COLOR
    intensity = state_intensity(value, max_value)
    r = round_half_up(20 + intensity * 220)
    g = round_half_up(200 - intensity * 30)
    b = round_half_up(120 - intensity * 80)
    alpha = _format_js_number(0.4 + intensity * 0.6)
    return f"rgba({r},{g},{b},{alpha})"


def reduce_states(mapping: Mapping[str, Number], limit: int = TOP_STATES_LIMIT) -> StateBreakdown:
    totals: dict[str, Number] = {}
    for label, count in mapping.items():
        code = state_code(label)
        if code:
            totals[code] = totals.get(code, 0) + count

    max_value = max([*totals.values(), 1])
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)[:limit]

    return StateBreakdown(
        totals=totals,
        ranking=[
            StateShare(
                code=code,
                name=STATE_CODE_TO_NAME.get(code, code),
                count=count,
                bar_fraction=count / max_value,
                intensity=state_intensity(count, max_value),
                color=state_color(count, max_value),
            )
            for code, count in ranked
        ],
        max_value=max_value,
    )
