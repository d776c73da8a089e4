"""Geographic processing for the spillover analysis.

This module provides functionality for:
- Geodesic distances between sales and housing units
- Meter/mile conversion
- k-d tree nearest-neighbour matching with a deterministic tie-break
"""

from .distance import (
    geodesic_distance_meters,
    haversine_distance_meters,
    vincenty_distance_meters,
    meters_to_miles,
    miles_to_meters
)
from .nearest import HousingIndex, match_nearest_housing

__all__ = [
    'HousingIndex',
    'match_nearest_housing',
    'geodesic_distance_meters',
    'haversine_distance_meters',
    'vincenty_distance_meters',
    'meters_to_miles',
    'miles_to_meters'
]
