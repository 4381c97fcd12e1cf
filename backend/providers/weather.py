# providers/weather.py
# OpenWeather current conditions with an injectable, deterministic fallback

import logging
import random
from typing import Optional, Protocol

import httpx

from models import Coordinate, OutdoorPreference, WeatherCondition, WeatherSnapshot

log = logging.getLogger("mealspot.weather")

OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"

HEADERS = {
    "User-Agent": "MealSpot/0.1",
    "Accept": "application/json",
}


class WeatherFallback(Protocol):
    def snapshot(self, coordinate: Coordinate) -> WeatherSnapshot: ...


class FixedWeatherFallback:
    """Always returns the same configured snapshot."""

    def __init__(self, snapshot: Optional[WeatherSnapshot] = None):
        base = snapshot or WeatherSnapshot(
            condition="cloudy",
            temperature_c=18.0,
            humidity_pct=60.0,
            description="Weather unavailable, assuming mild cloudy conditions",
            is_good_for_outdoor=True,
        )
        self._snapshot = base.model_copy(update={"is_fallback": True})

    def snapshot(self, coordinate: Coordinate) -> WeatherSnapshot:
        return self._snapshot


class SeededWeatherFallback:
    """
    Plausible synthetic weather (clear/cloudy/rainy, 5-34°C, 30-79% humidity).
    Seeded per coordinate so the same seed and location always give the same snapshot.
    """

    CONDITIONS = ("clear", "cloudy", "rainy")

    def __init__(self, seed: int = 0):
        self.seed = seed

    def snapshot(self, coordinate: Coordinate) -> WeatherSnapshot:
        rng = random.Random(f"{self.seed}:{coordinate.latitude:.4f}:{coordinate.longitude:.4f}")
        condition = rng.choice(self.CONDITIONS)
        temperature = rng.randrange(5, 35)
        return WeatherSnapshot(
            condition=condition,
            temperature_c=float(temperature),
            humidity_pct=float(rng.randrange(30, 80)),
            description=f"Synthetic {condition} weather",
            is_good_for_outdoor=condition == "clear" and 10 < temperature < 30,
            is_fallback=True,
        )


def map_weather_condition(code: int) -> WeatherCondition:
    """OpenWeather condition id -> simplified condition."""
    if 200 <= code < 300:
        return "stormy"
    if 300 <= code < 600:
        return "rainy"
    if 600 <= code < 700:
        return "snowy"
    if 701 <= code < 800:
        return "cloudy"
    if code == 800:
        return "clear"
    if code > 800:
        return "cloudy"
    return "clear"


def is_good_for_outdoor(code: int, temperature_c: float) -> bool:
    # storms, rain, snow
    if 200 <= code < 700:
        return False
    if temperature_c < 0 or temperature_c > 40:
        return False
    return True


def derive_outdoor_preference(snapshot: WeatherSnapshot) -> OutdoorPreference:
    """Fixed rule table; first matching row wins."""
    t = snapshot.temperature_c

    if snapshot.condition in ("clear", "cloudy") and 15 < t < 30:
        return OutdoorPreference(prefer_outdoor=True, suggestions=[
            "Perfect weather for outdoor dining!",
            "Great day to sit on a patio",
            "Enjoy the fresh air while eating",
        ])

    if snapshot.condition in ("rainy", "stormy", "snowy"):
        return OutdoorPreference(prefer_outdoor=False, suggestions=[
            "Cozy indoor spots recommended",
            "Perfect weather for a warm meal inside",
            "Stay dry and comfortable indoors",
        ])

    if t < 5:
        return OutdoorPreference(prefer_outdoor=False, suggestions=[
            "Warm up with hot food indoors",
            "Perfect weather for hot coffee or tea",
            "Cozy indoor atmosphere recommended",
        ])

    if t > 35:
        return OutdoorPreference(prefer_outdoor=False, suggestions=[
            "Cool down with air conditioning",
            "Perfect for cold drinks and indoor dining",
            "Escape the heat inside",
        ])

    return OutdoorPreference(prefer_outdoor=True, suggestions=["Nice weather for dining out"])


class WeatherClient:
    """
    Long-lived and stateless after construction; safe to share across requests.
    `transport` lets tests swap in an httpx.MockTransport.
    """

    def __init__(
        self,
        api_key: str,
        fallback: Optional[WeatherFallback] = None,
        timeout_s: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.fallback = fallback or FixedWeatherFallback()
        self.timeout_s = timeout_s
        self._transport = transport
        if not api_key:
            log.warning("OpenWeather API key not configured, using fallback weather")

    async def get_current_weather(self, coordinate: Coordinate) -> Optional[WeatherSnapshot]:
        if not self.api_key:
            return self.fallback.snapshot(coordinate)

        params = {
            "lat": coordinate.latitude,
            "lon": coordinate.longitude,
            "appid": self.api_key,
            "units": "metric",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, headers=HEADERS, transport=self._transport) as client:
                r = await client.get(OPENWEATHER_URL, params=params)
                r.raise_for_status()
                js = r.json()
            code = int(js["weather"][0]["id"])
            temperature = float(js["main"]["temp"])
            return WeatherSnapshot(
                condition=map_weather_condition(code),
                temperature_c=temperature,
                humidity_pct=float(js["main"].get("humidity", 0)),
                description=js["weather"][0].get("description", ""),
                is_good_for_outdoor=is_good_for_outdoor(code, temperature),
            )
        except (httpx.HTTPError, AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
            log.warning("weather lookup failed, using fallback: %s", e)
            return self.fallback.snapshot(coordinate)
