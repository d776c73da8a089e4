"""Unit tests for distance module."""

import pytest
import numpy as np
from hypothesis import given, strategies as st

from housing_spillover.config import constants
from housing_spillover.utils.exceptions import ConfigurationError
from housing_spillover.geography.distance import (
    haversine_distance_meters,
    vincenty_distance_meters,
    geodesic_distance_meters,
    meters_to_miles,
    miles_to_meters,
    to_unit_vectors
)


class TestUnitConversion:
    """Test meter/mile conversion."""
    
    def test_divisor(self):
        assert meters_to_miles(1609.34) == 1.0
        assert constants.METERS_PER_MILE == 1609.34
    
    def test_array_conversion(self):
        miles = meters_to_miles(np.array([0.0, 804.67, 1609.34]))
        np.testing.assert_allclose(miles, [0.0, 0.5, 1.0])
    
    @given(st.floats(min_value=0, max_value=2e7, allow_nan=False))
    def test_round_trip(self, meters):
        assert miles_to_meters(meters_to_miles(meters)) == pytest.approx(meters, rel=1e-12, abs=1e-9)


class TestHaversine:
    """Test spherical distance."""
    
    def test_same_point(self):
        assert haversine_distance_meters(34.05, -118.25, 34.05, -118.25) == pytest.approx(0.0, abs=1e-6)
    
    def test_known_values(self):
        # NYC to LA approximately 3,936 km
        dist = haversine_distance_meters(40.7128, -74.0060, 34.0522, -118.2437)
        assert dist == pytest.approx(3.936e6, rel=0.01)
    
    def test_one_degree_latitude(self):
        dist = haversine_distance_meters(0.0, 0.0, 1.0, 0.0)
        assert dist == pytest.approx(111195, rel=1e-3)
    
    def test_vectorised(self):
        lat1 = np.array([34.0, 34.0])
        lon1 = np.array([-118.0, -118.0])
        lat2 = np.array([34.0, 35.0])
        lon2 = np.array([-118.0, -118.0])
        
        dist = haversine_distance_meters(lat1, lon1, lat2, lon2)
        
        assert dist.shape == (2,)
        assert dist[0] == pytest.approx(0.0, abs=1e-6)
        assert dist[1] > 100000


class TestVincenty:
    """Test ellipsoidal distance."""
    
    def test_same_point(self):
        assert vincenty_distance_meters(34.05, -118.25, 34.05, -118.25) == 0.0
    
    def test_one_degree_latitude_at_equator(self):
        # Meridian arc from 0 to 1 degree on WGS84
        dist = vincenty_distance_meters(0.0, 0.0, 1.0, 0.0)
        assert dist == pytest.approx(110574.4, rel=1e-5)
    
    def test_equatorial(self):
        dist = vincenty_distance_meters(0.0, 0.0, 0.0, 1.0)
        assert dist == pytest.approx(111319.5, rel=1e-5)
    
    def test_close_to_haversine_for_short_distances(self):
        v = vincenty_distance_meters(34.05, -118.25, 34.06, -118.24)
        h = haversine_distance_meters(34.05, -118.25, 34.06, -118.24)
        assert v == pytest.approx(h, rel=0.005)
    
    def test_symmetric(self):
        a = vincenty_distance_meters(34.05, -118.25, 34.10, -118.30)
        b = vincenty_distance_meters(34.10, -118.30, 34.05, -118.25)
        assert a == pytest.approx(b, rel=1e-12)


class TestGeodesicDistance:
    """Test the method dispatcher."""
    
    def test_methods(self):
        lat1, lon1 = np.array([34.05]), np.array([-118.25])
        lat2, lon2 = np.array([34.06]), np.array([-118.25])
        
        vincenty = geodesic_distance_meters(lat1, lon1, lat2, lon2, method="vincenty")
        haversine = geodesic_distance_meters(lat1, lon1, lat2, lon2, method="haversine")
        
        assert vincenty.shape == (1,)
        assert vincenty[0] == pytest.approx(haversine[0], rel=0.005)
    
    def test_empty(self):
        empty = np.array([], dtype=float)
        assert len(geodesic_distance_meters(empty, empty, empty, empty)) == 0
    
    def test_unknown_method(self):
        with pytest.raises(ConfigurationError):
            geodesic_distance_meters([0.0], [0.0], [1.0], [1.0], method="manhattan")


class TestUnitVectors:
    """Test unit-sphere projection."""
    
    def test_unit_length(self):
        vectors = to_unit_vectors([0.0, 45.0, -30.0], [0.0, 90.0, 170.0])
        np.testing.assert_allclose(np.linalg.norm(vectors, axis=1), 1.0)
    
    def test_chord_monotone_in_distance(self):
        origin = to_unit_vectors([34.0], [-118.0])[0]
        points = to_unit_vectors([34.01, 34.02, 34.05], [-118.0, -118.0, -118.0])
        chords = np.linalg.norm(points - origin, axis=1)
        assert list(chords) == sorted(chords)
