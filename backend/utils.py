# utils.py
# Helpers: great-circle distance, per-source results with timeouts, business hours

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Generic, Optional, TypeVar
import asyncio
import logging
import math

from models import Coordinate, InternalVenue

log = logging.getLogger("mealspot.sources")

EARTH_RADIUS_M = 6_371_000.0

T = TypeVar("T")


def haversine_m(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates, in meters."""
    lat1, lat2 = math.radians(a.latitude), math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{round(meters)}m away"
    return f"{meters / 1000:.1f}km away"


@dataclass(frozen=True)
class SourceResult(Generic[T]):
    """
    Outcome of one upstream call. `value` is always usable: on failure it holds
    the source's degraded value and `error` says what went wrong.
    """
    value: T
    error: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.error is not None


# timeout wrapper for upstream sources
# collapses "raised" and "timed out" into the same degraded value; never raises
async def run_with_timeout(coro: Awaitable[T], seconds: float, label: str, fallback: T) -> SourceResult[T]:
    try:
        value = await asyncio.wait_for(coro, timeout=seconds)
        return SourceResult(value=value)
    except asyncio.TimeoutError:
        msg = f"{label} timed out after {seconds}s"
        log.warning(msg)
        return SourceResult(value=fallback, error=msg)
    except Exception as e:
        msg = f"{label} error: {e}"
        log.warning(msg)
        return SourceResult(value=fallback, error=msg)


def is_open_at(venue: InternalVenue, when: datetime) -> bool:
    """
    True when the venue is open at `when`. Venues without hours are assumed open;
    a weekday listed as None means closed all day. A close time earlier than the
    open time runs past midnight.
    """
    hours = venue.business_hours
    if not hours:
        return True
    day = when.strftime("%A").lower()
    if day not in hours:
        return True
    today = hours[day]
    if today is None:
        return False
    now = when.strftime("%H:%M")
    if today.close < today.open:
        return now >= today.open or now <= today.close
    return today.open <= now <= today.close
