"""Tests for haversine distance, radius filtering and ranking."""

import math

import pytest

from app.distance import distance_to, filter_by_radius, haversine, rank
from app.schemas import GeoPoint
from tests.factories import MONTEVIDEO, make_pro, north_of


# ============================================================================
# HAVERSINE
# ============================================================================


def test_haversine_same_point_is_zero():
    assert haversine(-34.9, -56.2, -34.9, -56.2) == 0


def test_haversine_one_degree_latitude():
    assert haversine(0, 0, 1, 0) == pytest.approx(111.195, abs=0.01)


def test_haversine_montevideo_buenos_aires():
    # ~206 km across the Rio de la Plata
    d = haversine(-34.9011, -56.1645, -34.6037, -58.3816)
    assert 200 < d < 210


def test_haversine_is_symmetric():
    assert haversine(-34.9, -56.2, -30.4, -57.0) == pytest.approx(haversine(-30.4, -57.0, -34.9, -56.2))


# ============================================================================
# RADIUS FILTER
# ============================================================================


def test_filter_keeps_pro_inside_own_radius():
    lat, lng = north_of(MONTEVIDEO, 11)
    near = make_pro("A", base_latitude=lat, base_longitude=lng, service_radius_km=50)

    assert filter_by_radius([near], MONTEVIDEO) == [near]


def test_filter_excludes_pro_outside_own_radius():
    lat, lng = north_of(MONTEVIDEO, 500)
    far = make_pro("B", base_latitude=lat, base_longitude=lng, service_radius_km=10)

    assert filter_by_radius([far], MONTEVIDEO) == []


def test_filter_uses_default_radius_of_10km():
    lat9, lng9 = north_of(MONTEVIDEO, 9)
    lat11, lng11 = north_of(MONTEVIDEO, 11)
    inside = make_pro("in", base_latitude=lat9, base_longitude=lng9)
    outside = make_pro("out", base_latitude=lat11, base_longitude=lng11)

    assert filter_by_radius([inside, outside], MONTEVIDEO) == [inside]


def test_filter_radius_boundary_is_inclusive():
    pro = make_pro("edge", base_latitude=-34.9, base_longitude=-56.2, service_radius_km=0)

    assert filter_by_radius([pro], MONTEVIDEO) == [pro]


@pytest.mark.parametrize(
    "lat,lng",
    [
        (None, -56.2),
        (-34.9, None),
        (None, None),
        (math.nan, -56.2),
        (-34.9, math.inf),
    ],
)
def test_filter_excludes_pros_without_usable_coordinates(lat, lng):
    pro = make_pro("nocoords", base_latitude=lat, base_longitude=lng, service_radius_km=10_000)

    assert filter_by_radius([pro], MONTEVIDEO) == []


# ============================================================================
# RANKING
# ============================================================================


def _at(pro_id, km, **kw):
    lat, lng = north_of(MONTEVIDEO, km)
    return make_pro(pro_id, base_latitude=lat, base_longitude=lng, **kw)


def test_rank_orders_by_distance_first():
    far = _at("far", 8, is_top_pro=True, rating=5)
    near = _at("near", 2)
    mid = _at("mid", 5)

    assert [p.id for p in rank([far, near, mid], MONTEVIDEO)] == ["near", "mid", "far"]


def test_rank_equal_distance_top_pro_first():
    regular = _at("regular", 3, rating=5)
    top = _at("top", 3, is_top_pro=True, rating=1)

    assert [p.id for p in rank([regular, top], MONTEVIDEO)] == ["top", "regular"]


def test_rank_equal_distance_and_top_pro_higher_rating_first():
    low = _at("low", 3, rating=3.5)
    unrated = _at("unrated", 3)
    high = _at("high", 3, rating=4.8)

    assert [p.id for p in rank([low, unrated, high], MONTEVIDEO)] == ["high", "low", "unrated"]


def test_rank_then_completed_jobs():
    few = _at("few", 3, rating=4.0, completed_jobs_count=2)
    none = _at("none", 3, rating=4.0)
    many = _at("many", 3, rating=4.0, completed_jobs_count=40)

    assert [p.id for p in rank([few, none, many], MONTEVIDEO)] == ["many", "few", "none"]


def test_rank_full_ties_keep_input_order():
    pros = [_at(f"p{i}", 3, rating=4.0, completed_jobs_count=1) for i in range(5)]

    assert rank(pros, MONTEVIDEO) == pros
    assert rank(list(reversed(pros)), MONTEVIDEO) == list(reversed(pros))


def test_rank_is_idempotent():
    pros = [_at("a", 4), _at("b", 1, is_top_pro=True), _at("c", 1), _at("d", 2, rating=3)]

    first = rank(pros, MONTEVIDEO)
    assert rank(pros, MONTEVIDEO) == first
    assert rank(first, MONTEVIDEO) == first


def test_distance_to_uses_base_coordinates():
    pro = _at("x", 11)

    assert distance_to(pro, MONTEVIDEO) == pytest.approx(11, abs=1e-6)


def test_geopoint_rejects_non_finite_coordinates():
    with pytest.raises(ValueError):
        GeoPoint(latitude=math.nan, longitude=-56.2)
