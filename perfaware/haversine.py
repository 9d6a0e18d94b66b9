"""Great-circle distance between two longitude/latitude points."""

from __future__ import annotations

import math
import struct

EARTH_RADIUS = 6372.8

# The degrees-to-radians factor is kept at single precision on purpose:
# reference outputs were produced with it.
_DEG_TO_RAD = struct.unpack("<f", struct.pack("<f", 0.01745329251994329577))[0]


def deg2rad(deg: float) -> float:
    """Convert degrees to radians using a single-precision factor."""
    return _DEG_TO_RAD * deg


def haversine(x0: float, y0: float, x1: float, y1: float,
              earth_radius: float = EARTH_RADIUS) -> float:
    """Distance between (x0, y0) and (x1, y1), x being longitude and y latitude."""
    dlat = deg2rad(y1 - y0)
    dlon = deg2rad(x1 - x0)
    lat0 = deg2rad(y0)
    lat1 = deg2rad(y1)

    a = (math.sin(dlat / 2.0) ** 2
         + math.cos(lat0) * math.cos(lat1) * math.sin(dlon / 2.0) ** 2)
    root = math.sqrt(a)
    c = 2.0 * math.asin(root) if root <= 1.0 else math.nan
    return earth_radius * c