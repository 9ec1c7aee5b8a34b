from __future__ import annotations

import pytest
from fakes import BANGKOK, offset

from livetrack.geo import angle_delta, circular_mean, haversine_m, lerp_heading, normalize_heading
from livetrack.models.geo import LatLng


def test_haversine_zero_for_same_point() -> None:
    assert haversine_m(BANGKOK, BANGKOK) == 0.0


def test_haversine_one_degree_of_latitude() -> None:
    a = LatLng(latitude=0.0, longitude=0.0)
    b = LatLng(latitude=1.0, longitude=0.0)
    assert haversine_m(a, b) == pytest.approx(111_194.93, abs=0.1)


def test_haversine_matches_offset_helper() -> None:
    assert haversine_m(BANGKOK, offset(BANGKOK, east=14.0)) == pytest.approx(14.0, abs=0.01)
    assert haversine_m(BANGKOK, offset(BANGKOK, north=25.0)) == pytest.approx(25.0, abs=0.01)


def test_circular_mean_wraps_around_north() -> None:
    mean = circular_mean([359.0, 1.0])
    assert mean is not None
    assert abs(angle_delta(mean, 0.0)) < 1e-6
    assert 0.0 <= mean < 360.0


def test_circular_mean_plain_average_away_from_wrap() -> None:
    assert circular_mean([80.0, 100.0]) == pytest.approx(90.0)


def test_circular_mean_empty_is_none() -> None:
    assert circular_mean([]) is None


def test_normalize_heading_range() -> None:
    assert normalize_heading(360.0) == 0.0
    assert normalize_heading(-90.0) == 270.0
    assert normalize_heading(-1e-15) == 0.0


def test_angle_delta_takes_shortest_way() -> None:
    assert angle_delta(350.0, 10.0) == pytest.approx(20.0)
    assert angle_delta(10.0, 350.0) == pytest.approx(-20.0)


def test_lerp_heading_crosses_north() -> None:
    mid = lerp_heading(350.0, 10.0, 0.5)
    assert abs(angle_delta(mid, 0.0)) < 1e-9
