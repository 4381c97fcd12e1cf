# providers/places.py
# Google Places (New) nearby search, normalized into ExternalVenue

import logging
import re
from typing import List, Optional

import httpx

from models import Coordinate, ExternalVenue, MealSuitability
from utils import haversine_m

log = logging.getLogger("mealspot.places")

SEARCH_NEARBY_URL = "https://places.googleapis.com/v1/places:searchNearby"

FIELD_MASK = ",".join([
    "places.id",
    "places.displayName",
    "places.formattedAddress",
    "places.location",
    "places.rating",
    "places.priceLevel",
    "places.currentOpeningHours",
    "places.types",
    "places.businessStatus",
    "places.editorialSummary",
    "places.outdoorSeating",
])

MEAL_TYPE_FILTERS = {
    "breakfast": ["cafe", "bakery", "breakfast_restaurant"],
    "lunch": ["restaurant", "meal_takeaway", "sandwich_shop", "pizza_restaurant"],
    "dinner": ["restaurant", "meal_delivery", "fine_dining_restaurant", "pizza_restaurant"],
}
DEFAULT_FILTERS = ["restaurant", "cafe"]

PRICE_LEVELS = {
    "PRICE_LEVEL_FREE": 1,
    "PRICE_LEVEL_INEXPENSIVE": 1,
    "PRICE_LEVEL_MODERATE": 2,
    "PRICE_LEVEL_EXPENSIVE": 3,
    "PRICE_LEVEL_VERY_EXPENSIVE": 4,
}

# score given to a meal when no keyword rule matches
NEUTRAL_SUITABILITY = 4
CURRENT_MEAL_BOOST = 2


def _words(*terms: str) -> re.Pattern:
    return re.compile(r"\b(" + "|".join(terms) + r")\b")


# (text pattern, type pattern, score), checked top to bottom per meal; first hit wins
SUITABILITY_RULES = {
    "breakfast": [
        (_words("cafe", "coffee", "bakery", "breakfast", "brunch", "pastry", "espresso", "latte"),
         _words("cafe", "bakery", "breakfast_restaurant"), 8),
        (_words("sandwich", "bagel", "muffin", "croissant"), None, 6),
        (None, _words("restaurant"), 3),
    ],
    "lunch": [
        (_words("lunch", "sandwich", "salad", "soup", "deli", "bistro", "pizza", "burger", "noodle", "pho", "ramen"),
         _words("meal_takeaway", "sandwich_shop", "pizza_restaurant"), 8),
        (None, _words("restaurant", "cafe"), 7),
        (None, _words("bakery"), 4),
    ],
    "dinner": [
        (_words("dinner", "fine.dining", "steakhouse", "sushi", "italian", "french", "indian", "thai", "chinese"),
         _words("restaurant", "fine_dining_restaurant", "meal_delivery"), 8),
        (_words("pizza", "burger", "bar", "grill"), _words("pizza_restaurant", "meal_takeaway"), 7),
        (None, _words("cafe"), 2),
    ],
}


def meal_type_filters(meal_type: str) -> List[str]:
    return list(MEAL_TYPE_FILTERS.get(meal_type, DEFAULT_FILTERS))


def map_price_level(price_level: Optional[str]) -> int:
    """Directory price enum -> 1..4; missing or unknown is moderate (2)."""
    if not price_level:
        return 2
    return PRICE_LEVELS.get(price_level, 2)


def compute_meal_suitability(name: str, description: str, types: List[str], current_meal: str) -> MealSuitability:
    text = f"{name} {description}".lower()
    type_str = " ".join(types).lower()

    scores = {}
    for meal, rules in SUITABILITY_RULES.items():
        scores[meal] = NEUTRAL_SUITABILITY
        for text_re, type_re, score in rules:
            if (text_re and text_re.search(text)) or (type_re and type_re.search(type_str)):
                scores[meal] = score
                break

    if current_meal in scores:
        scores[current_meal] = min(10, scores[current_meal] + CURRENT_MEAL_BOOST)
    return MealSuitability(**scores)


def _slug_id(name: str) -> str:
    return "places_" + re.sub(r"\s+", "_", name.strip()).lower()


def normalize_place(place: dict, origin: Coordinate, meal_type: str) -> Optional[ExternalVenue]:
    """Directory record -> ExternalVenue, or None when name/location are missing."""
    name = ((place.get("displayName") or {}).get("text") or "").strip()
    loc = place.get("location") or {}
    if not name or loc.get("latitude") is None or loc.get("longitude") is None:
        return None

    coordinate = Coordinate(latitude=float(loc["latitude"]), longitude=float(loc["longitude"]))
    types = place.get("types") or []
    address = place.get("formattedAddress") or ""
    description = (place.get("editorialSummary") or {}).get("text") or address
    hours = place.get("currentOpeningHours") or {}

    return ExternalVenue(
        id=place.get("id") or _slug_id(name),
        name=name,
        address=address,
        coordinate=coordinate,
        rating=float(place.get("rating") or 0.0),
        price_level=map_price_level(place.get("priceLevel")),
        is_open=hours.get("openNow") is not False,
        types=types,
        description=description,
        meal_suitability=compute_meal_suitability(name, description, types, meal_type),
        outdoor_seating=bool(place.get("outdoorSeating", False)),
        distance_meters=round(haversine_m(origin, coordinate)),
    )


class PlacesClient:
    """
    Stateless after construction; safe to share across requests.
    Without an API key every lookup returns [] (degraded mode).
    """

    def __init__(
        self,
        api_key: str,
        timeout_s: float = 10.0,
        max_results: int = 20,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.timeout_s = timeout_s
        self.max_results = max_results
        self._transport = transport
        if not api_key:
            log.warning("Google Maps API key not configured, external venues disabled")

    async def get_nearby_dining_options(
        self, coordinate: Coordinate, radius_meters: float, meal_type: str
    ) -> List[ExternalVenue]:
        if not self.api_key:
            return []

        body = {
            "includedTypes": meal_type_filters(meal_type),
            "maxResultCount": self.max_results,
            "locationRestriction": {
                "circle": {
                    "center": {"latitude": coordinate.latitude, "longitude": coordinate.longitude},
                    "radius": float(radius_meters),
                },
            },
            "rankPreference": "DISTANCE",
        }
        headers = {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self.api_key,
            "X-Goog-FieldMask": FIELD_MASK,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, headers=headers, transport=self._transport) as client:
                r = await client.post(SEARCH_NEARBY_URL, json=body)
                if r.status_code != 200:
                    log.warning("places status %s: %s", r.status_code, r.text[:400])
                    return []
                js = r.json()
        except (httpx.HTTPError, ValueError) as e:
            log.warning("places lookup failed: %s", e)
            return []

        if not isinstance(js, dict) or not isinstance(js.get("places") or [], list):
            log.warning("places response is not a place list: %s", str(js)[:200])
            return []

        out: List[ExternalVenue] = []
        for place in js.get("places") or []:
            try:
                venue = normalize_place(place, coordinate, meal_type)
            except (AttributeError, ValueError) as e:
                log.warning("skipping malformed place: %s", e)
                continue
            if venue is None:
                continue
            if venue.distance_meters > radius_meters:
                continue
            out.append(venue)

        log.info("places: %d %s options within %sm", len(out), meal_type, radius_meters)
        return out
