import math

import pytest

from app.bearing.bearing import classify, initial_bearing, normalize_bearing
from app.models.coordinate import Coordinate
from app.models.report import CardinalLabel


@pytest.mark.parametrize(
    "degrees, label",
    [
        (0, CardinalLabel.north),
        (45, CardinalLabel.northeast),
        (90, CardinalLabel.east),
        (135, CardinalLabel.southeast),
        (180, CardinalLabel.south),
        (225, CardinalLabel.southwest),
        (270, CardinalLabel.west),
        (315, CardinalLabel.northwest),
        (359, CardinalLabel.north),
    ],
)
def test_classify_compass_points(degrees, label):
    assert classify(degrees) == label


def test_classify_boundaries_belong_to_next_sector():
    assert classify(22.5) == CardinalLabel.northeast
    assert classify(22.4999) == CardinalLabel.north
    assert classify(67.5) == CardinalLabel.east
    assert classify(292.5) == CardinalLabel.northwest
    assert classify(337.5) == CardinalLabel.north
    assert classify(337.4999) == CardinalLabel.northwest


@pytest.mark.parametrize("degrees", [0, 10.5, 22.5, 100, 181, 300, 359.9])
@pytest.mark.parametrize("turns", [-3, -1, 1, 2, 10])
def test_classify_is_periodic(degrees, turns):
    assert classify(degrees) == classify(degrees + 360 * turns)


def test_classify_negative_bearing():
    assert classify(-90) == CardinalLabel.west
    assert classify(-10) == CardinalLabel.north
    assert classify(-45) == CardinalLabel.northwest


def test_normalize_bearing_range():
    assert normalize_bearing(360) == 0
    assert normalize_bearing(-1) == 359
    assert normalize_bearing(725) == 5
    assert 0 <= normalize_bearing(-1e-20) < 360


def test_initial_bearing_cardinal_directions():
    origin = Coordinate(latitude=0, longitude=0)
    assert initial_bearing(origin, Coordinate(latitude=1, longitude=0)) == pytest.approx(0)
    assert initial_bearing(origin, Coordinate(latitude=0, longitude=1)) == pytest.approx(90)
    assert initial_bearing(origin, Coordinate(latitude=-1, longitude=0)) == pytest.approx(180)
    assert initial_bearing(origin, Coordinate(latitude=0, longitude=-1)) == pytest.approx(270)


def test_initial_bearing_same_point_is_north():
    point = Coordinate(latitude=21.15, longitude=-98.42)
    assert initial_bearing(point, point) == 0
    assert classify(initial_bearing(point, point)) == CardinalLabel.north


def test_initial_bearing_toward_city_center():
    fix = Coordinate(latitude=21.1500, longitude=-98.4200)
    center = Coordinate(latitude=21.1403, longitude=-98.4194)
    bearing = initial_bearing(fix, center)
    assert 170 < bearing < 180
    assert classify(bearing) == CardinalLabel.south


@pytest.mark.parametrize(
    "boundary, below, at",
    [
        (22.5, CardinalLabel.north, CardinalLabel.northeast),
        (67.5, CardinalLabel.northeast, CardinalLabel.east),
        (112.5, CardinalLabel.east, CardinalLabel.southeast),
        (157.5, CardinalLabel.southeast, CardinalLabel.south),
        (202.5, CardinalLabel.south, CardinalLabel.southwest),
        (247.5, CardinalLabel.southwest, CardinalLabel.west),
        (292.5, CardinalLabel.west, CardinalLabel.northwest),
        (337.5, CardinalLabel.northwest, CardinalLabel.north),
    ],
)
def test_classify_last_float_below_boundary(boundary, below, at):
    assert classify(math.nextafter(boundary, 0)) == below
    assert classify(boundary) == at


def test_classify_just_below_full_turn_is_north():
    assert classify(math.nextafter(360, 0)) == CardinalLabel.north
    assert classify(-math.nextafter(0, 1)) == CardinalLabel.north


def test_normalize_keeps_values_below_boundary():
    assert normalize_bearing(math.nextafter(22.5, 0)) < 22.5
