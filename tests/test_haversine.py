import math
import struct

import pytest

from perfaware.haversine import EARTH_RADIUS, deg2rad, haversine


def test_same_point_is_zero():
    assert haversine(10.0, 20.0, 10.0, 20.0) == 0.0


def test_symmetric():
    a = haversine(-30.5, 12.25, 47.0, -60.75)
    b = haversine(47.0, -60.75, -30.5, 12.25)
    assert a == b
    assert a > 0.0


def test_antipodal_on_equator_is_half_circumference():
    assert haversine(0.0, 0.0, 180.0, 0.0) == pytest.approx(
        math.pi * EARTH_RADIUS, rel=1e-6)


def test_quarter_on_equator():
    assert haversine(0.0, 0.0, 90.0, 0.0) == pytest.approx(
        math.pi / 2 * EARTH_RADIUS, rel=1e-6)


def test_default_radius_is_earth_radius():
    assert haversine(1.0, 2.0, 3.0, 4.0) == haversine(
        1.0, 2.0, 3.0, 4.0, EARTH_RADIUS)


def test_scales_with_radius():
    unit = haversine(5.0, 6.0, 70.0, -20.0, 1.0)
    assert unit * EARTH_RADIUS == pytest.approx(
        haversine(5.0, 6.0, 70.0, -20.0), rel=1e-12)


def test_deg2rad_uses_single_precision_factor():
    factor = deg2rad(1.0)
    assert struct.unpack("<f", struct.pack("<f", factor))[0] == factor
    assert factor == pytest.approx(math.radians(1.0), rel=1e-7)
    assert deg2rad(180.0) == pytest.approx(math.pi, rel=1e-7)