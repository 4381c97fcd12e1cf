# recommender.py
# Aggregates the internal catalog, the external directory and weather into one ranked list

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from collaborators import (
    InteractionHistory,
    InternalVenueCatalog,
    LocationResolver,
    SourceUnavailableError,
)
from models import Coordinate, ScoredRecommendation, UserHistory
from providers.places import PlacesClient
from providers.weather import WeatherClient
from scoring import rank, score_external, score_internal
from utils import run_with_timeout

log = logging.getLogger("mealspot.recommender")


class RecommendationService:
    """
    All upstreams are injected. Location and catalog faults propagate as
    SourceUnavailableError; weather, places and history degrade to neutral values.
    """

    def __init__(
        self,
        locations: LocationResolver,
        catalog: InternalVenueCatalog,
        places: PlacesClient,
        weather: WeatherClient,
        history: Optional[InteractionHistory] = None,
        weather_timeout_s: float = 5.0,
        places_timeout_s: float = 10.0,
        catalog_timeout_s: float = 10.0,
        min_score: float = 30.0,
    ):
        self.locations = locations
        self.catalog = catalog
        self.places = places
        self.weather = weather
        self.history = history
        self.weather_timeout_s = weather_timeout_s
        self.places_timeout_s = places_timeout_s
        self.catalog_timeout_s = catalog_timeout_s
        self.min_score = min_score

    async def _resolve_location(self, user_id: str) -> Optional[Coordinate]:
        try:
            return await self.locations.resolve(user_id)
        except SourceUnavailableError:
            raise
        except Exception as e:
            raise SourceUnavailableError(f"location lookup failed: {e}") from e

    async def _catalog_nearby(self, origin: Coordinate, radius: float, meal_type: str):
        try:
            return await asyncio.wait_for(
                self.catalog.find_nearby(origin, radius, meal_type), timeout=self.catalog_timeout_s
            )
        except SourceUnavailableError:
            raise
        except Exception as e:
            raise SourceUnavailableError(f"catalog query failed: {e}") from e

    async def _user_history(self, user_id: str) -> Optional[UserHistory]:
        if self.history is None:
            return None
        return await self.history.for_user(user_id)

    async def generate_recommendations(
        self,
        user_id: str,
        meal_type: str,
        max_distance_meters: float = 2000,
        limit: int = 5,
    ) -> List[ScoredRecommendation]:
        if limit <= 0:
            return []

        origin = await self._resolve_location(user_id)
        if origin is None:
            log.info("no location for user %s, nothing to recommend", user_id)
            return []

        internal, external, weather, history = await asyncio.gather(
            self._catalog_nearby(origin, max_distance_meters, meal_type),
            run_with_timeout(
                self.places.get_nearby_dining_options(origin, max_distance_meters, meal_type),
                self.places_timeout_s, "places", fallback=[],
            ),
            run_with_timeout(
                self.weather.get_current_weather(origin),
                self.weather_timeout_s, "weather", fallback=self.weather.fallback.snapshot(origin),
            ),
            run_with_timeout(self._user_history(user_id), self.catalog_timeout_s, "history", fallback=None),
        )

        candidates: List[ScoredRecommendation] = []
        for venue in internal:
            rec = score_internal(venue, origin, meal_type, max_distance_meters, weather.value, history.value)
            if rec is not None and rec.score > self.min_score:
                candidates.append(rec)
        n_internal = len(candidates)
        for venue in external.value:
            rec = score_external(venue, origin, meal_type, max_distance_meters, weather.value, history.value)
            if rec is not None and rec.score > self.min_score:
                candidates.append(rec)

        ranked = rank(candidates, limit)
        log.info(
            "%s for %s: internal=%d external=%d returned=%d",
            meal_type, user_id, n_internal, len(candidates) - n_internal, len(ranked),
        )
        for r in (external, weather, history):
            if r.degraded:
                log.warning("degraded source: %s", r.error)
        return ranked
