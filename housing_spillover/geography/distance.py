"""Geodesic distance calculations between sales and housing units."""

from math import radians, cos, sin, atan2, sqrt
from typing import Union

import numpy as np
import logging

from ..config import constants
from ..utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]


def meters_to_miles(meters: ArrayLike) -> ArrayLike:
    """Convert meters to miles (1 mile = 1609.34 m)."""
    return meters / constants.METERS_PER_MILE


def miles_to_meters(miles: ArrayLike) -> ArrayLike:
    """Convert miles to meters."""
    return miles * constants.METERS_PER_MILE


def haversine_distance_meters(
    lat1: ArrayLike,
    lon1: ArrayLike,
    lat2: ArrayLike,
    lon2: ArrayLike
) -> ArrayLike:
    """Calculate great circle distance on a spherical earth.
    
    Works element-wise on NumPy arrays as well as on scalars.
    
    Args:
        lat1: Latitude of first point(s) in degrees
        lon1: Longitude of first point(s) in degrees
        lat2: Latitude of second point(s) in degrees
        lon2: Longitude of second point(s) in degrees
        
    Returns:
        Distance in meters
    """
    lat1, lon1, lat2, lon2 = map(np.radians, (lat1, lon1, lat2, lon2))
    
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    
    a = (np.sin(dlat / 2) ** 2 +
         np.cos(lat1) * np.cos(lat2) *
         np.sin(dlon / 2) ** 2)
    
    c = 2 * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))
    
    return constants.EARTH_RADIUS_METERS * c


def vincenty_distance_meters(
    lat1: float,
    lon1: float,
    lat2: float,
    lon2: float
) -> float:
    """
    Calculate distance on the WGS84 ellipsoid using Vincenty's inverse formula.
    
    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point
        
    Returns:
        Distance in meters
    """
    a = constants.WGS84_SEMI_MAJOR_AXIS
    f = constants.WGS84_FLATTENING
    b = (1 - f) * a
    
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    
    # Reduced latitudes
    U1 = atan2((1 - f) * sin(lat1), cos(lat1))
    U2 = atan2((1 - f) * sin(lat2), cos(lat2))
    
    L = lon2 - lon1
    Lambda = L
    
    sinU1 = sin(U1)
    cosU1 = cos(U1)
    sinU2 = sin(U2)
    cosU2 = cos(U2)
    
    for _ in range(constants.VINCENTY_MAX_ITERATIONS):
        sinLambda = sin(Lambda)
        cosLambda = cos(Lambda)
        
        sinSigma = sqrt((cosU2 * sinLambda) ** 2 +
                        (cosU1 * sinU2 - sinU1 * cosU2 * cosLambda) ** 2)
        
        if sinSigma == 0:
            return 0.0  # Coincident points
        
        cosSigma = sinU1 * sinU2 + cosU1 * cosU2 * cosLambda
        sigma = atan2(sinSigma, cosSigma)
        
        sinAlpha = cosU1 * cosU2 * sinLambda / sinSigma
        cosSqAlpha = 1 - sinAlpha ** 2
        
        if cosSqAlpha == 0:
            cos2SigmaM = 0.0  # Equatorial line
        else:
            cos2SigmaM = cosSigma - 2 * sinU1 * sinU2 / cosSqAlpha
        
        C = f / 16 * cosSqAlpha * (4 + f * (4 - 3 * cosSqAlpha))
        
        Lambda_prev = Lambda
        Lambda = L + (1 - C) * f * sinAlpha * (
            sigma + C * sinSigma * (
                cos2SigmaM + C * cosSigma * (-1 + 2 * cos2SigmaM ** 2)
            )
        )
        
        if abs(Lambda - Lambda_prev) < constants.VINCENTY_TOLERANCE:
            break
    else:
        # Nearly antipodal points; the sphere is close enough there
        logger.debug("Vincenty did not converge, falling back to haversine")
        return float(haversine_distance_meters(
            np.degrees(lat1), np.degrees(lon1), np.degrees(lat2), np.degrees(lon2)
        ))
    
    uSq = cosSqAlpha * (a ** 2 - b ** 2) / (b ** 2)
    A = 1 + uSq / 16384 * (4096 + uSq * (-768 + uSq * (320 - 175 * uSq)))
    B = uSq / 1024 * (256 + uSq * (-128 + uSq * (74 - 47 * uSq)))
    
    deltaSigma = B * sinSigma * (
        cos2SigmaM + B / 4 * (
            cosSigma * (-1 + 2 * cos2SigmaM ** 2) -
            B / 6 * cos2SigmaM * (-3 + 4 * sinSigma ** 2) * (-3 + 4 * cos2SigmaM ** 2)
        )
    )
    
    return b * A * (sigma - deltaSigma)


def geodesic_distance_meters(
    lat1: np.ndarray,
    lon1: np.ndarray,
    lat2: np.ndarray,
    lon2: np.ndarray,
    method: str = constants.DEFAULT_DISTANCE_METHOD
) -> np.ndarray:
    """Distance between paired points, element-wise.
    
    Args:
        lat1, lon1: Coordinates of the first points in degrees
        lat2, lon2: Coordinates of the paired points in degrees
        method: 'vincenty' (WGS84 ellipsoid) or 'haversine' (sphere)
        
    Returns:
        Array of distances in meters
    """
    lat1, lon1, lat2, lon2 = (
        np.asarray(x, dtype=float) for x in (lat1, lon1, lat2, lon2)
    )
    
    if method == "haversine":
        return haversine_distance_meters(lat1, lon1, lat2, lon2)
    
    if method == "vincenty":
        return np.fromiter(
            (vincenty_distance_meters(*row) for row in zip(lat1, lon1, lat2, lon2)),
            dtype=float,
            count=len(lat1)
        )
    
    raise ConfigurationError(
        f"Unknown distance method: {method}. "
        f"Valid options are: {constants.DISTANCE_METHODS}"
    )


def to_unit_vectors(lat: np.ndarray, lon: np.ndarray) -> np.ndarray:
    """Project coordinates onto the unit sphere as (x, y, z) rows.
    
    Chord length between unit vectors grows monotonically with great circle
    distance, so Euclidean nearest neighbours here are geodesic nearest
    neighbours on the sphere.
    """
    lat_rad = np.radians(np.asarray(lat, dtype=float))
    lon_rad = np.radians(np.asarray(lon, dtype=float))
    
    return np.column_stack([
        np.cos(lat_rad) * np.cos(lon_rad),
        np.cos(lat_rad) * np.sin(lon_rad),
        np.sin(lat_rad)
    ])
