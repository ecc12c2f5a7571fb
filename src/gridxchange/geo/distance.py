"""Great-circle distance helpers used to scope the marketplace to nearby homes."""

import math
from typing import Mapping, Union

from ..models import Coordinate

EARTH_RADIUS_KM = 6371.0

DEFAULT_SUGGESTED_RADII_KM: dict[str, float] = {
    "urban": 5.0,
    "suburban": 10.0,
    "rural": 25.0,
}
FALLBACK_RADIUS_KM = 10.0

DEFAULT_TRAVEL_SPEEDS_KMH: dict[str, float] = {
    "walking": 5.0,
    "driving": 30.0,  # average city speed
}

PointLike = Union[Coordinate, tuple[float, float]]


def _as_lat_lon(point: PointLike) -> tuple[float, float]:
    if isinstance(point, Coordinate):
        return point.latitude, point.longitude
    return float(point[0]), float(point[1])


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    """Check latitude ∈ [-90, 90] and longitude ∈ [-180, 180]."""
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def distance_km(point_a: PointLike, point_b: PointLike) -> float:
    """Calculate the haversine distance between two points.

    Inputs must be valid coordinates; validation belongs at the data-entry
    boundary.

    Args:
        point_a: First point as Coordinate or (lat, lon)
        point_b: Second point as Coordinate or (lat, lon)

    Returns:
        Distance in kilometres
    """
    lat1, lon1 = _as_lat_lon(point_a)
    lat2, lon2 = _as_lat_lon(point_b)

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def within_radius(center: PointLike, target: PointLike, radius_km: float) -> bool:
    """True iff the target lies at most `radius_km` from the center."""
    return distance_km(center, target) <= radius_km


def format_distance(km: float) -> str:
    """Format a distance for display.

    Examples:
        >>> format_distance(0.5)
        '500m'
        >>> format_distance(5.3)
        '5.3km'
        >>> format_distance(23.6)
        '24km'
    """
    if km < 1:
        return f"{_round_half_up(km * 1000)}m"
    if km < 10:
        return f"{km:.1f}km"
    return f"{_round_half_up(km)}km"


def _round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; display rounding is half-up
    return int(math.floor(value + 0.5))


def suggested_radius(
    location_type: str,
    radii: Mapping[str, float] = DEFAULT_SUGGESTED_RADII_KM,
) -> float:
    """Suggested trading radius for an urban/suburban/rural location."""
    return float(radii.get(location_type, FALLBACK_RADIUS_KM))


def estimate_travel_time(
    km: float,
    mode: str = "driving",
    speeds: Mapping[str, float] = DEFAULT_TRAVEL_SPEEDS_KMH,
) -> int:
    """Estimate travel time in whole minutes for a given transport mode.

    Raises:
        ValueError: If the transport mode has no configured speed
    """
    speed = speeds.get(mode)
    if not speed:
        raise ValueError(f"Unknown transport mode: {mode}")
    return _round_half_up(km / speed * 60)
