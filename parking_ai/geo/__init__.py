"""
Geographic helpers.

Responsibilities:
- Great-circle (haversine) distance between two lat/lng points.
- Annotate parking spaces with their distance from a user location.
"""
from .distance import EARTH_RADIUS_KM, calculate_distance, calculate_distances

__all__ = ["EARTH_RADIUS_KM", "calculate_distance", "calculate_distances"]
