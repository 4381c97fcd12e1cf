import pytest

from conftest import VANCOUVER, external_venue, internal_venue
from models import CategorySignal, RatingAggregate, ScoredRecommendation, ScoreFactors, UserHistory, WeatherSnapshot
from scoring import (
    build_reason,
    external_meal_relevance,
    external_popularity,
    internal_meal_relevance,
    internal_popularity,
    rank,
    score_external,
    score_internal,
    score_proximity,
    score_user_preference,
    score_weather,
)


def _snapshot(condition, temp, good=True):
    return WeatherSnapshot(condition=condition, temperature_c=temp, humidity_pct=50,
                           description="", is_good_for_outdoor=good)


def _rec(ref, score, distance, kind="internal"):
    factors = ScoreFactors(proximity=0, meal_relevance=0, user_preference=0, weather=0, popularity=0)
    return ScoredRecommendation(source_kind=kind, reference_id=ref, name=ref, distance_meters=distance,
                                score=score, factors=factors, reason="")


def test_proximity_decreases_with_distance():
    values = [score_proximity(d, 1000) for d in (0, 100, 500, 999, 1000)]
    assert values[0] == 25
    assert values == sorted(values, reverse=True)
    assert values[-1] == 0


def test_proximity_zero_max_distance():
    assert score_proximity(0, 0) == 25
    assert score_proximity(10, 0) == 0


def test_internal_meal_relevance_uses_category_table():
    cafe = internal_venue("c", 10, name="Corner", category="cafe")
    assert internal_meal_relevance(cafe, "breakfast") == pytest.approx(22.5)
    assert internal_meal_relevance(cafe, "dinner") < internal_meal_relevance(cafe, "breakfast")


def test_internal_meal_relevance_keywords_beat_unknown_category():
    venue = internal_venue("k", 10, name="Bagel & Coffee Bakery", category="shops_services")
    # bagel, coffee, bakery -> strong keyword match
    assert internal_meal_relevance(venue, "breakfast") == 25


def test_internal_meal_relevance_has_neutral_floor():
    venue = internal_venue("n", 10, name="Hardware Depot", category="shops_services")
    assert internal_meal_relevance(venue, "lunch") == 5


def test_external_meal_relevance_scales_suitability():
    venue = external_venue("e", 10)
    assert external_meal_relevance(venue, "dinner") == 20


def test_user_preference_neutral_without_history():
    assert score_user_preference("v", ["cafe"], None) == 10
    assert score_user_preference("v", ["cafe"], UserHistory()) == 10


def test_user_preference_rewards_liked_venue_and_category():
    history = UserHistory(
        liked_venue_ids=["v"],
        visited_venue_ids=["v"],
        categories={"cafe": CategorySignal(up=4, down=0, visits=5)},
    )
    assert score_user_preference("v", ["cafe"], history) == 20


def test_user_preference_disliked_category_stays_non_negative():
    history = UserHistory(categories={"bar": CategorySignal(up=0, down=9)})
    assert score_user_preference("v", ["bar"], history) == 4


@pytest.mark.parametrize("snapshot,outdoor,expected", [
    (_snapshot("clear", 22), True, 15),
    (_snapshot("clear", 22), False, 5),
    (_snapshot("rainy", 12, good=False), False, 10),
    (_snapshot("rainy", 12, good=False), True, 5),
    (_snapshot("cloudy", 2), False, 10),
    (None, True, 5),
])
def test_weather_factor(snapshot, outdoor, expected):
    assert score_weather(snapshot, outdoor) == expected


def test_internal_popularity_smoothed():
    assert internal_popularity(internal_venue("a", 1)) == pytest.approx(7.5)
    loved = internal_venue("b", 1, rating=RatingAggregate(up=18, down=0))
    hated = internal_venue("c", 1, rating=RatingAggregate(up=0, down=18))
    assert 14 < internal_popularity(loved) <= 15
    assert 0 < internal_popularity(hated) < 1


def test_external_popularity():
    assert external_popularity(external_venue("a", 1, rating=5.0, is_open=True)) == 15
    assert external_popularity(external_venue("b", 1, rating=0.0, is_open=False)) == 6


def test_reason_joins_two_phrases():
    factors = ScoreFactors(proximity=24, meal_relevance=22.5, user_preference=10, weather=15, popularity=14)
    assert build_reason(factors, "breakfast") == "Close by and great for breakfast"


def test_reason_default():
    factors = ScoreFactors(proximity=3, meal_relevance=5, user_preference=10, weather=5, popularity=7)
    assert build_reason(factors, "lunch") == "A good option nearby"


def test_score_internal_drops_out_of_range():
    far = internal_venue("far", 1500)
    assert score_internal(far, VANCOUVER, "lunch", 1000, None, None) is None


def test_score_external_breakdown_adds_up():
    rec = score_external(external_venue("e", 200), VANCOUVER, "dinner", 1000, None, None)
    assert rec.source_kind == "external"
    assert rec.distance_meters == 200
    assert rec.score == rec.factors.total()
    assert rec.score >= 0


def test_rank_tie_breaks():
    recs = [
        _rec("ext", 50, 100, kind="external"),
        _rec("int", 50, 100),
        _rec("near", 50, 40, kind="external"),
        _rec("best", 60, 900),
    ]
    assert [r.reference_id for r in rank(recs, 10)] == ["best", "near", "int", "ext"]


def test_rank_limit():
    recs = [_rec(str(i), i, 10) for i in range(5)]
    assert len(rank(recs, 3)) == 3
    assert rank(recs, 0) == []
    assert rank(recs, -1) == []
