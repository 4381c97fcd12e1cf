import json

import httpx
import pytest

from conftest import METERS_PER_DEG, VANCOUVER
from providers.places import (
    NEUTRAL_SUITABILITY,
    PlacesClient,
    compute_meal_suitability,
    map_price_level,
    meal_type_filters,
)


def _place(name, meters_north, **extra):
    place = {
        "id": f"id-{name}",
        "displayName": {"text": name},
        "formattedAddress": "123 Main St",
        "location": {"latitude": VANCOUVER.latitude + meters_north / METERS_PER_DEG,
                     "longitude": VANCOUVER.longitude},
    }
    place.update(extra)
    return place


def test_meal_type_filters():
    assert meal_type_filters("breakfast") == ["cafe", "bakery", "breakfast_restaurant"]
    assert meal_type_filters("lunch") == ["restaurant", "meal_takeaway", "sandwich_shop", "pizza_restaurant"]
    assert meal_type_filters("dinner") == ["restaurant", "meal_delivery", "fine_dining_restaurant", "pizza_restaurant"]
    assert meal_type_filters("supper") == ["restaurant", "cafe"]


@pytest.mark.parametrize("level,expected", [
    (None, 2),
    ("PRICE_LEVEL_FREE", 1),
    ("PRICE_LEVEL_INEXPENSIVE", 1),
    ("PRICE_LEVEL_MODERATE", 2),
    ("PRICE_LEVEL_EXPENSIVE", 3),
    ("PRICE_LEVEL_VERY_EXPENSIVE", 4),
    ("PRICE_LEVEL_UNSPECIFIED", 2),
])
def test_price_level(level, expected):
    assert map_price_level(level) == expected


def test_suitability_cafe_for_breakfast():
    s = compute_meal_suitability("Blue Door", "", ["cafe", "food"], "breakfast")
    assert s.breakfast == 10
    assert s.lunch == 7
    assert s.dinner == 2


def test_suitability_dinner_keywords():
    s = compute_meal_suitability("Smokey Grill", "", ["food"], "lunch")
    assert s.dinner == 7
    assert s.lunch == NEUTRAL_SUITABILITY + 2


def test_suitability_unmatched_is_neutral_not_zero():
    s = compute_meal_suitability("Zed", "", ["store"], "dinner")
    assert s.breakfast == NEUTRAL_SUITABILITY
    assert s.lunch == NEUTRAL_SUITABILITY
    assert s.dinner == NEUTRAL_SUITABILITY + 2


def test_suitability_boost_caps_at_ten():
    s = compute_meal_suitability("Fine Sushi", "", ["restaurant"], "dinner")
    assert s.dinner == 10


@pytest.mark.asyncio
async def test_nearby_normalizes_and_filters():
    captured = {}

    def handler(request):
        captured["body"] = json.loads(request.content)
        captured["headers"] = request.headers
        return httpx.Response(200, json={"places": [
            _place("Good Bakery", 100, types=["bakery"], rating=4.6, priceLevel="PRICE_LEVEL_INEXPENSIVE",
                   currentOpeningHours={"openNow": False}, outdoorSeating=True,
                   editorialSummary={"text": "Croissants and coffee"}),
            _place("Far Cafe", 1500, types=["cafe"]),
            {"id": "no-name", "location": {"latitude": 49.28, "longitude": -123.12}},
            {"id": "no-location", "displayName": {"text": "Ghost"}},
        ]})

    client = PlacesClient("key", transport=httpx.MockTransport(handler))
    venues = await client.get_nearby_dining_options(VANCOUVER, 1000, "breakfast")

    assert [v.name for v in venues] == ["Good Bakery"]
    v = venues[0]
    assert v.id == "id-Good Bakery"
    assert v.price_level == 1
    assert v.is_open is False
    assert v.outdoor_seating is True
    assert v.description == "Croissants and coffee"
    assert v.distance_meters == 100
    assert v.meal_suitability.breakfast == 10

    body = captured["body"]
    assert body["includedTypes"] == ["cafe", "bakery", "breakfast_restaurant"]
    assert body["locationRestriction"]["circle"]["radius"] == 1000
    assert captured["headers"]["X-Goog-Api-Key"] == "key"
    assert "places.outdoorSeating" in captured["headers"]["X-Goog-FieldMask"]


@pytest.mark.asyncio
async def test_defaults_for_sparse_records():
    def handler(request):
        return httpx.Response(200, json={"places": [_place("Plain", 10)]})

    client = PlacesClient("key", transport=httpx.MockTransport(handler))
    [v] = await client.get_nearby_dining_options(VANCOUVER, 500, "lunch")
    assert v.price_level == 2
    assert v.is_open is True
    assert v.rating == 0
    assert v.description == "123 Main St"


@pytest.mark.asyncio
async def test_non_object_records_are_skipped():
    def handler(request):
        return httpx.Response(200, json={"places": ["junk", 42, _place("Kept", 10)]})

    client = PlacesClient("key", transport=httpx.MockTransport(handler))
    venues = await client.get_nearby_dining_options(VANCOUVER, 500, "lunch")
    assert [v.name for v in venues] == ["Kept"]


@pytest.mark.asyncio
async def test_missing_key_is_degraded_empty():
    def handler(request):
        raise AssertionError("no network call expected")

    client = PlacesClient("", transport=httpx.MockTransport(handler))
    assert await client.get_nearby_dining_options(VANCOUVER, 1000, "lunch") == []


@pytest.mark.asyncio
@pytest.mark.parametrize("handler", [
    lambda request: httpx.Response(403, json={"error": "denied"}),
    lambda request: httpx.Response(200, text="not json"),
    lambda request: httpx.Response(200, json=[{"displayName": {"text": "Listed"}}]),
    lambda request: httpx.Response(200, json={"places": "none"}),
    lambda request: (_ for _ in ()).throw(httpx.ConnectError("refused", request=request)),
])
async def test_transport_failures_are_empty(handler):
    client = PlacesClient("key", transport=httpx.MockTransport(handler))
    assert await client.get_nearby_dining_options(VANCOUVER, 1000, "dinner") == []
