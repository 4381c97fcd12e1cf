# scoring.py
# Composite scoring for both venue sources. Pure functions of the fetched snapshots.
#
# Point budgets (same for both sources, 100 total):
#   proximity 25, mealRelevance 25, userPreference 20, weather 15, popularity 15

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from models import (
    Coordinate,
    ExternalVenue,
    InternalVenue,
    ScoredRecommendation,
    ScoreFactors,
    UserHistory,
    WeatherSnapshot,
)
from providers.weather import derive_outdoor_preference
from utils import haversine_m

PROXIMITY_MAX = 25.0
MEAL_MAX = 25.0
PREFERENCE_MAX = 20.0
PREFERENCE_NEUTRAL = 10.0
WEATHER_MAX = 15.0
POPULARITY_MAX = 15.0

# 0-10 suitability per meal for catalog categories
CATEGORY_MEAL_RELEVANCE = {
    "breakfast": {"breakfast": 10, "lunch": 4, "dinner": 1},
    "brunch": {"breakfast": 9, "lunch": 7, "dinner": 1},
    "cafe": {"breakfast": 9, "lunch": 6, "dinner": 2},
    "coffee": {"breakfast": 9, "lunch": 5, "dinner": 1},
    "coffee_shop": {"breakfast": 9, "lunch": 5, "dinner": 1},
    "bakery": {"breakfast": 9, "lunch": 5, "dinner": 1},
    "deli": {"breakfast": 5, "lunch": 9, "dinner": 3},
    "sandwich_shop": {"breakfast": 5, "lunch": 9, "dinner": 3},
    "food_truck": {"breakfast": 2, "lunch": 8, "dinner": 4},
    "bistro": {"breakfast": 4, "lunch": 9, "dinner": 8},
    "restaurant": {"breakfast": 4, "lunch": 8, "dinner": 9},
    "pizza": {"breakfast": 1, "lunch": 8, "dinner": 8},
    "pizzeria": {"breakfast": 1, "lunch": 8, "dinner": 8},
    "sushi": {"breakfast": 0, "lunch": 7, "dinner": 9},
    "grill": {"breakfast": 2, "lunch": 6, "dinner": 9},
    "bar": {"breakfast": 0, "lunch": 5, "dinner": 9},
    "pub": {"breakfast": 0, "lunch": 6, "dinner": 9},
    "steakhouse": {"breakfast": 0, "lunch": 3, "dinner": 10},
    "fine_dining": {"breakfast": 0, "lunch": 3, "dinner": 10},
}

MEAL_KEYWORDS = {
    "breakfast": ["breakfast", "cafe", "café", "coffee", "bakery", "pastry", "brunch", "bagel", "espresso"],
    "lunch": ["lunch", "sandwich", "bistro", "deli", "pizza", "burger", "noodle", "ramen", "pho", "salad", "wrap"],
    "dinner": ["dinner", "restaurant", "bar", "grill", "steak", "pizzeria", "sushi", "tapas", "bistro"],
}

# keyword matches -> 0-10
KEYWORD_NEUTRAL = 2


def _category_key(category: str) -> str:
    return re.sub(r"[\s\-]+", "_", category.strip().lower())


def _keyword_relevance(text: str, meal_type: str) -> int:
    matches = sum(1 for kw in MEAL_KEYWORDS.get(meal_type, []) if kw in text)
    if matches >= 3:
        return 10
    if matches == 2:
        return 8
    if matches == 1:
        return 5
    return KEYWORD_NEUTRAL


def serves_meal(venue: InternalVenue, meal_type: str) -> bool:
    """A catalog marker is a candidate only if its category or keywords relate to the meal."""
    if CATEGORY_MEAL_RELEVANCE.get(_category_key(venue.category), {}).get(meal_type, 0) > 0:
        return True
    text = f"{venue.name} {venue.description} {venue.category}".lower()
    return any(kw in text for kw in MEAL_KEYWORDS.get(meal_type, []))


def score_proximity(distance_m: float, max_distance_m: float) -> float:
    if max_distance_m <= 0:
        return PROXIMITY_MAX if distance_m <= 0 else 0.0
    return PROXIMITY_MAX * max(0.0, 1.0 - distance_m / max_distance_m)


def internal_meal_relevance(venue: InternalVenue, meal_type: str) -> float:
    table = CATEGORY_MEAL_RELEVANCE.get(_category_key(venue.category), {}).get(meal_type, 0)
    text = f"{venue.name} {venue.description} {venue.category}".lower()
    return MEAL_MAX * max(table, _keyword_relevance(text, meal_type)) / 10


def external_meal_relevance(venue: ExternalVenue, meal_type: str) -> float:
    return MEAL_MAX * getattr(venue.meal_suitability, meal_type, 0) / 10


def score_user_preference(venue_id: str, categories: Iterable[str], history: Optional[UserHistory]) -> float:
    """
    Neutral 10 with no history. Category votes move it by up to +/-6, category
    visits add up to 3, and a like or visit of this exact venue adds 5 or 3.
    """
    if history is None:
        return PREFERENCE_NEUTRAL

    up = down = visits = 0
    for cat in {_category_key(c) for c in categories if c}:
        signal = history.categories.get(cat)
        if signal:
            up += signal.up
            down += signal.down
            visits += signal.visits

    score = PREFERENCE_NEUTRAL
    if up + down:
        score += 6 * (up - down) / (up + down)
    score += min(visits, 3)
    if venue_id in history.liked_venue_ids:
        score += 5
    if venue_id in history.visited_venue_ids:
        score += 3
    return min(PREFERENCE_MAX, max(0.0, score))


def score_weather(snapshot: Optional[WeatherSnapshot], outdoor: bool) -> float:
    if snapshot is None:
        return 5.0
    pref = derive_outdoor_preference(snapshot)
    if pref.prefer_outdoor and snapshot.is_good_for_outdoor and outdoor:
        return WEATHER_MAX
    if not pref.prefer_outdoor and not outdoor:
        return 10.0
    return 5.0


def internal_popularity(venue: InternalVenue) -> float:
    # Laplace-smoothed upvote share; no votes -> half marks
    up, down = venue.rating.up, venue.rating.down
    return POPULARITY_MAX * (up + 1) / (up + down + 2)


def external_popularity(venue: ExternalVenue) -> float:
    base = 12 * venue.rating / 5 if venue.rating > 0 else 6.0
    return base + (3.0 if venue.is_open else 0.0)


def build_reason(factors: ScoreFactors, meal_type: str) -> str:
    phrases: List[str] = []
    if factors.proximity >= 20:
        phrases.append("close by")
    if factors.meal_relevance >= 20:
        phrases.append(f"great for {meal_type}")
    if factors.user_preference >= 15:
        phrases.append("a favourite of yours")
    if factors.weather >= 15:
        phrases.append("perfect weather for outdoor dining")
    elif factors.weather >= 10:
        phrases.append("a cosy indoor pick for this weather")
    if factors.popularity >= 12:
        phrases.append("highly rated")

    if not phrases:
        return "A good option nearby"
    reason = " and ".join(phrases[:2])
    return reason[0].upper() + reason[1:]


def _factors(proximity, meal, preference, weather, popularity) -> ScoreFactors:
    return ScoreFactors(
        proximity=round(proximity, 2),
        meal_relevance=round(meal, 2),
        user_preference=round(preference, 2),
        weather=round(weather, 2),
        popularity=round(popularity, 2),
    )


def score_internal(
    venue: InternalVenue,
    origin: Coordinate,
    meal_type: str,
    max_distance_m: float,
    weather: Optional[WeatherSnapshot],
    history: Optional[UserHistory],
) -> Optional[ScoredRecommendation]:
    """None when the venue lies beyond max_distance_m."""
    distance = float(round(haversine_m(origin, venue.coordinate)))
    if distance > max_distance_m:
        return None
    factors = _factors(
        score_proximity(distance, max_distance_m),
        internal_meal_relevance(venue, meal_type),
        score_user_preference(venue.id, [venue.category], history),
        score_weather(weather, venue.has_outdoor_seating),
        internal_popularity(venue),
    )
    return ScoredRecommendation(
        source_kind="internal",
        reference_id=venue.id,
        name=venue.name,
        distance_meters=distance,
        score=factors.total(),
        factors=factors,
        reason=build_reason(factors, meal_type),
    )


def score_external(
    venue: ExternalVenue,
    origin: Coordinate,
    meal_type: str,
    max_distance_m: float,
    weather: Optional[WeatherSnapshot],
    history: Optional[UserHistory],
) -> Optional[ScoredRecommendation]:
    distance = float(round(haversine_m(origin, venue.coordinate)))
    if distance > max_distance_m:
        return None
    factors = _factors(
        score_proximity(distance, max_distance_m),
        external_meal_relevance(venue, meal_type),
        score_user_preference(venue.id, venue.types, history),
        score_weather(weather, venue.outdoor_seating),
        external_popularity(venue),
    )
    return ScoredRecommendation(
        source_kind="external",
        reference_id=venue.id,
        name=venue.name,
        distance_meters=distance,
        score=factors.total(),
        factors=factors,
        reason=build_reason(factors, meal_type),
    )


def ordering_key(rec: ScoredRecommendation):
    # score desc, distance asc, internal before external, then id for full determinism
    return (-rec.score, rec.distance_meters, 0 if rec.source_kind == "internal" else 1, rec.reference_id)


def rank(recs: Sequence[ScoredRecommendation], limit: int) -> List[ScoredRecommendation]:
    if limit <= 0:
        return []
    return sorted(recs, key=ordering_key)[:limit]
