"""Shared fakes and builders for the recommender tests."""

import asyncio
import math
from typing import List, Optional

import pytest

from collaborators import InMemoryInteractionHistory, InMemoryLocationResolver, InMemoryVenueCatalog
from models import (
    Coordinate,
    ExternalVenue,
    InternalVenue,
    MealSuitability,
    RatingAggregate,
    UserHistory,
    WeatherSnapshot,
)
from providers.weather import FixedWeatherFallback, WeatherClient
from recommender import RecommendationService

USER = "user-1"
VANCOUVER = Coordinate(latitude=49.2827, longitude=-123.1207)

# one degree of latitude on the sphere used by haversine_m
METERS_PER_DEG = math.pi * 6_371_000 / 180


def north_of(origin: Coordinate, meters: float) -> Coordinate:
    return Coordinate(latitude=origin.latitude + meters / METERS_PER_DEG, longitude=origin.longitude)


def internal_venue(venue_id: str, meters: float, **kwargs) -> InternalVenue:
    defaults = {
        "name": f"Venue {venue_id}",
        "category": "restaurant",
        "rating": RatingAggregate(),
    }
    defaults.update(kwargs)
    return InternalVenue(id=venue_id, coordinate=north_of(VANCOUVER, meters), **defaults)


def external_venue(venue_id: str, meters: float, **kwargs) -> ExternalVenue:
    defaults = {
        "name": f"Place {venue_id}",
        "rating": 4.0,
        "types": ["restaurant"],
        "meal_suitability": MealSuitability(breakfast=3, lunch=7, dinner=8),
    }
    defaults.update(kwargs)
    return ExternalVenue(
        id=venue_id, coordinate=north_of(VANCOUVER, meters), distance_meters=meters, **defaults
    )


class FakePlaces:
    """Stands in for PlacesClient; can fail or hang on demand."""

    def __init__(self, venues: Optional[List[ExternalVenue]] = None, error: Optional[Exception] = None,
                 delay_s: float = 0.0):
        self.venues = venues or []
        self.error = error
        self.delay_s = delay_s
        self.calls = []

    async def get_nearby_dining_options(self, coordinate, radius_meters, meal_type):
        self.calls.append((coordinate, radius_meters, meal_type))
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.error:
            raise self.error
        return list(self.venues)


class BrokenCatalog:
    def __init__(self, error: Exception):
        self.error = error

    async def find_nearby(self, coordinate, radius_meters, meal_type):
        raise self.error


class BrokenHistory:
    async def for_user(self, user_id):
        raise RuntimeError("history store down")


MILD_CLOUDY = WeatherSnapshot(
    condition="cloudy",
    temperature_c=18.0,
    humidity_pct=60.0,
    description="test weather",
    is_good_for_outdoor=True,
)


def make_service(
    internal=(),
    external=(),
    locations=None,
    weather: WeatherSnapshot = MILD_CLOUDY,
    places=None,
    catalog=None,
    history=None,
    min_score: float = 0,
    places_timeout_s: float = 10.0,
) -> RecommendationService:
    return RecommendationService(
        locations=InMemoryLocationResolver({USER: VANCOUVER} if locations is None else locations),
        catalog=catalog or InMemoryVenueCatalog(internal),
        places=places or FakePlaces(list(external)),
        weather=WeatherClient("", fallback=FixedWeatherFallback(weather)),
        history=history or InMemoryInteractionHistory({USER: UserHistory()}),
        places_timeout_s=places_timeout_s,
        min_score=min_score,
    )


@pytest.fixture
def breakfast_scene():
    """Cafe from the catalog at 50m and a directory cafe at 75m."""
    internal = [internal_venue("pin-1", 50, name="Morning Brew Cafe", category="cafe",
                               description="Fresh pastries and espresso")]
    external = [external_venue("gp-1", 75, name="Google Places Cafe", types=["cafe"],
                               meal_suitability=MealSuitability(breakfast=9, lunch=6, dinner=2))]
    return internal, external
