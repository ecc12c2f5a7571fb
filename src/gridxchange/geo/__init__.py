"""Geo-proximity helpers."""

from .distance import (
    EARTH_RADIUS_KM,
    distance_km,
    within_radius,
    format_distance,
    is_valid_coordinate,
    suggested_radius,
    estimate_travel_time,
)

__all__ = [
    "EARTH_RADIUS_KM",
    "distance_km",
    "within_radius",
    "format_distance",
    "is_valid_coordinate",
    "suggested_radius",
    "estimate_travel_time",
]
