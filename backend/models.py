# models.py
# typed value objects shared by adapters, scorer and the HTTP layer

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Dict, List, Literal, Optional

MealType = Literal["breakfast", "lunch", "dinner"]
MEAL_TYPES = ("breakfast", "lunch", "dinner")

WeatherCondition = Literal["clear", "cloudy", "rainy", "snowy", "stormy"]
SourceKind = Literal["internal", "external"]


class CamelModel(BaseModel):
    # wire format is camelCase, python side stays snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class WeatherSnapshot(CamelModel):
    condition: WeatherCondition
    temperature_c: float
    humidity_pct: float
    description: str
    is_good_for_outdoor: bool
    # set on synthetic snapshots; never authoritative
    is_fallback: bool = False


class OutdoorPreference(CamelModel):
    prefer_outdoor: bool
    suggestions: List[str]


class RatingAggregate(BaseModel):
    up: int = Field(0, ge=0)
    down: int = Field(0, ge=0)


class BusinessHours(BaseModel):
    open: str  # "HH:MM"
    close: str


class InternalVenue(CamelModel):
    id: str
    name: str
    description: str = ""
    category: str = ""
    coordinate: Coordinate
    rating: RatingAggregate = Field(default_factory=RatingAggregate)
    has_outdoor_seating: bool = False
    # weekday name (lowercase) -> hours, None meaning closed that day
    business_hours: Optional[Dict[str, Optional[BusinessHours]]] = None


class MealSuitability(BaseModel):
    breakfast: int = Field(0, ge=0, le=10)
    lunch: int = Field(0, ge=0, le=10)
    dinner: int = Field(0, ge=0, le=10)


class ExternalVenue(CamelModel):
    id: str
    name: str
    address: str = ""
    coordinate: Coordinate
    rating: float = Field(0.0, ge=0, le=5)
    price_level: int = Field(2, ge=1, le=4)
    is_open: bool = True
    types: List[str] = Field(default_factory=list)
    description: str = ""
    meal_suitability: MealSuitability = Field(default_factory=MealSuitability)
    outdoor_seating: bool = False
    distance_meters: float = 0.0


class CategorySignal(BaseModel):
    up: int = 0
    down: int = 0
    visits: int = 0


class UserHistory(BaseModel):
    liked_venue_ids: List[str] = Field(default_factory=list)
    visited_venue_ids: List[str] = Field(default_factory=list)
    categories: Dict[str, CategorySignal] = Field(default_factory=dict)


class ScoreFactors(CamelModel):
    proximity: float
    meal_relevance: float
    user_preference: float
    weather: float
    popularity: float

    def total(self) -> float:
        return round(
            self.proximity + self.meal_relevance + self.user_preference + self.weather + self.popularity,
            2,
        )


class ScoredRecommendation(CamelModel):
    source_kind: SourceKind
    reference_id: str
    name: str
    distance_meters: float
    score: float = Field(..., ge=0)
    factors: ScoreFactors
    reason: str


class RecommendationsData(CamelModel):
    meal_type: MealType
    count: int
    recommendations: List[ScoredRecommendation]


class RecommendationsResponse(BaseModel):
    message: str
    data: RecommendationsData


class NotifyData(CamelModel):
    meal_type: MealType
    notification_sent: bool


class NotifyResponse(BaseModel):
    message: str
    sent: bool
    data: NotifyData
