"""Bearing math and eight-point compass classification."""

import math

from app.models.coordinate import Coordinate
from app.models.report import CardinalLabel

SECTOR_WIDTH_DEG = 45.0

# Clockwise from North; each sector is centered on its compass point.
SECTORS = [
    CardinalLabel.north,
    CardinalLabel.northeast,
    CardinalLabel.east,
    CardinalLabel.southeast,
    CardinalLabel.south,
    CardinalLabel.southwest,
    CardinalLabel.west,
    CardinalLabel.northwest,
]


def normalize_bearing(bearing_degrees: float) -> float:
    """Fold any real bearing into [0, 360)."""
    normalized = bearing_degrees % 360
    # -1e-20 % 360 rounds up to 360.0
    return 0.0 if normalized == 360 else normalized


def classify(bearing_degrees: float) -> CardinalLabel:
    """Map a bearing to one of eight cardinal labels.

    Sector boundaries sit at odd multiples of 22.5 degrees and belong to the
    next sector clockwise, so 22.5 is Northeast and 337.5 is North.

    Args:
        bearing_degrees: Bearing in degrees; may be negative or exceed 360.

    Returns:
        The CardinalLabel of the sector containing the bearing.
    """
    normalized = normalize_bearing(bearing_degrees)
    half_sector = int(normalized // (SECTOR_WIDTH_DEG / 2))
    return SECTORS[((half_sector + 1) // 2) % len(SECTORS)]


def initial_bearing(origin: Coordinate, target: Coordinate) -> float:
    """Forward azimuth from origin to target on a spherical Earth.

    Args:
        origin: Starting coordinate.
        target: Destination coordinate.

    Returns:
        Initial bearing in degrees within [0, 360).
    """
    lat1 = math.radians(origin.latitude)
    lat2 = math.radians(target.latitude)
    d_lon = math.radians(target.longitude - origin.longitude)
    y = math.sin(d_lon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(d_lon)
    return normalize_bearing(math.degrees(math.atan2(y, x)))
