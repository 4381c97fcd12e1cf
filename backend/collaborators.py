# collaborators.py
# contracts for the data sources the recommender depends on, plus in-memory versions
# used for local runs (seeded from JSON) and tests

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol

from models import Coordinate, InternalVenue, UserHistory
from scoring import serves_meal
from utils import haversine_m, is_open_at

log = logging.getLogger("mealspot.catalog")


class SourceUnavailableError(RuntimeError):
    """Genuine infrastructure fault in location or catalog storage (surfaces as 500)."""


class LocationResolver(Protocol):
    async def resolve(self, user_id: str) -> Optional[Coordinate]: ...


class InternalVenueCatalog(Protocol):
    async def find_nearby(self, coordinate: Coordinate, radius_meters: float, meal_type: str) -> List[InternalVenue]: ...


class InteractionHistory(Protocol):
    async def for_user(self, user_id: str) -> UserHistory: ...


class NotificationDelivery(Protocol):
    async def push(self, user_id: str, title: str, body: str, payload: Dict[str, Any]) -> bool: ...


class RecipientDirectory(Protocol):
    async def notifiable_users(self) -> List[str]: ...


class InMemoryLocationResolver:
    def __init__(self, locations: Optional[Dict[str, Coordinate]] = None):
        self._locations = dict(locations or {})

    def update(self, user_id: str, coordinate: Coordinate) -> None:
        self._locations[user_id] = coordinate

    async def resolve(self, user_id: str) -> Optional[Coordinate]:
        return self._locations.get(user_id)

    async def notifiable_users(self) -> List[str]:
        # users without a known location would get nothing anyway
        return list(self._locations)


class InMemoryVenueCatalog:
    """
    Radius query over a fixed venue list. Venues closed right now (per their
    business hours) or unrelated to the requested meal are not candidates.
    """

    def __init__(self, venues: Iterable[InternalVenue] = (), clock=datetime.now):
        self._venues = list(venues)
        self._clock = clock

    async def find_nearby(self, coordinate: Coordinate, radius_meters: float, meal_type: str) -> List[InternalVenue]:
        now = self._clock()
        out = [
            v for v in self._venues
            if haversine_m(coordinate, v.coordinate) <= radius_meters
            and serves_meal(v, meal_type)
            and is_open_at(v, now)
        ]
        log.info("catalog: %d venues within %sm for %s", len(out), radius_meters, meal_type)
        return out


class InMemoryInteractionHistory:
    def __init__(self, histories: Optional[Dict[str, UserHistory]] = None):
        self._histories = dict(histories or {})

    async def for_user(self, user_id: str) -> UserHistory:
        return self._histories.get(user_id) or UserHistory()


def load_seed(path: str) -> tuple[InMemoryLocationResolver, InMemoryVenueCatalog, InMemoryInteractionHistory]:
    """
    Build in-memory collaborators from a JSON file shaped like:
    {"venues": [...], "locations": {"<user>": {"latitude":..,"longitude":..}}, "history": {"<user>": {...}}}
    An empty path gives empty collaborators.
    """
    if not path:
        return InMemoryLocationResolver(), InMemoryVenueCatalog(), InMemoryInteractionHistory()

    data = json.loads(Path(path).read_text(encoding="utf-8"))
    venues = [InternalVenue.model_validate(v) for v in data.get("venues", [])]
    locations = {uid: Coordinate.model_validate(c) for uid, c in (data.get("locations") or {}).items()}
    history = {uid: UserHistory.model_validate(h) for uid, h in (data.get("history") or {}).items()}
    log.info("seed: %d venues, %d user locations from %s", len(venues), len(locations), path)
    return InMemoryLocationResolver(locations), InMemoryVenueCatalog(venues), InMemoryInteractionHistory(history)
