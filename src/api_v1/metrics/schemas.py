from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from api_v1.common.schemas import SimpleMeta

Number = Union[int, float]


class PeriodTotalsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reach: int = 0
    impressions: int = 0
    interactions: int = 0
    followers_gained: int = 0
    snapshot_count: int = 0


class AggregatedMetricsPayload(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    days: int
    period_start: date
    period_end: date
    total_reach: int
    total_impressions: int
    total_interactions: int
    followers_gained: int
    reach_growth: float
    impressions_growth: float
    interactions_growth: float
    followers_growth: float
    snapshot_count: int
    previous: PeriodTotalsSchema
    audience_city: Dict[str, Number] = Field(default_factory=dict)
    audience_gender_age: Dict[str, Number] = Field(default_factory=dict)
    audience_country: Dict[str, Number] = Field(default_factory=dict)


class AggregatedMetricsResponse(BaseModel):
    meta: SimpleMeta
    payload: AggregatedMetricsPayload


class AgeBucketSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    label: str
    count: Number
    percent: int
    bar_fraction: float


class GenderAgeSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    male: Number = 0
    female: Number = 0
    total: Number = 0
    male_percent: int = 0
    female_percent: int = 0
    age_buckets: List[AgeBucketSchema] = Field(default_factory=list)


class CityShareSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    count: Number
    percent: int
    bar_fraction: float


class CitiesSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    cities: List[CityShareSchema] = Field(default_factory=list)
    total: Number = 0


class StateShareSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    code: str
    name: str
    count: Number
    bar_fraction: float
    intensity: float
    color: str


class StatesSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    totals: Dict[str, Number] = Field(default_factory=dict)
    ranking: List[StateShareSchema] = Field(default_factory=list)
    max_value: Number = 1
    colors: Dict[str, str] = Field(
        default_factory=dict,
        description="Fill colour for every Brazilian state code, including states with no followers.",
    )


class AudienceOverviewPayload(BaseModel):
    snapshot_date: Optional[date] = None
    gender_age: GenderAgeSchema
    cities: CitiesSchema
    states: StatesSchema
    countries: Dict[str, Number] = Field(default_factory=dict)


class AudienceOverviewResponse(BaseModel):
    meta: SimpleMeta
    payload: AudienceOverviewPayload


class SnapshotPayload(BaseModel):
    snapshot_date: date
    followers_count: int
    reach_daily: int
    impressions_daily: int
    media_saved: int = 0


class SnapshotResponse(BaseModel):
    meta: SimpleMeta
    payload: SnapshotPayload


class TopContentItemSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    media_type: Optional[str] = None
    media_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    caption: Optional[str] = None
    permalink: Optional[str] = None
    like_count: int = 0
    comments_count: int = 0
    timestamp: Optional[datetime] = Field(default=None, validation_alias=AliasChoices("posted_at", "timestamp"))


class TopContentPayload(BaseModel):
    items: List[TopContentItemSchema] = Field(default_factory=list)


class TopContentResponse(BaseModel):
    meta: SimpleMeta
    payload: TopContentPayload
