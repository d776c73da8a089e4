"""Nearest subsidized-housing lookup backed by a k-d tree."""

from typing import Optional

import numpy as np
import pandas as pd
from scipy.spatial import cKDTree
import logging

from ..config import constants
from ..utils.exceptions import ConfigurationError, InsufficientDataError
from .distance import geodesic_distance_meters, meters_to_miles, to_unit_vectors

logger = logging.getLogger(__name__)


class HousingIndex:
    """
    Spatial index over housing units for nearest-neighbour queries.
    
    Points are stored as unit-sphere Cartesian vectors in a ``cKDTree`` so a
    query costs O(log R) instead of scanning every unit. The tree only
    proposes candidates: every unit whose chord lies within
    ``candidate_slack`` of the closest one is re-ranked by
    ``geodesic_distance_meters`` with ``method``, so the chosen unit is the
    nearest under the same distance the matched pair is reported with.
    
    Ties are broken deterministically: when several candidates are equally
    close (within ``tie_tolerance`` relative distance), the unit with the
    lexicographically smallest ``housing_id`` is returned.
    """
    
    def __init__(
        self,
        housing_df: pd.DataFrame,
        id_col: str = 'housing_id',
        lat_col: str = 'lat',
        lng_col: str = 'lng',
        method: str = constants.DEFAULT_DISTANCE_METHOD,
        tie_tolerance: float = constants.TIE_TOLERANCE,
        candidate_slack: float = constants.CANDIDATE_SLACK
    ):
        """
        Build the index.
        
        Parameters
        ----------
        housing_df : pd.DataFrame
            Unified housing units
        id_col, lat_col, lng_col : str
            Column names for identifier and coordinates
        method : str
            Distance used to rank candidates ('vincenty' or 'haversine')
        tie_tolerance : float
            Relative distance tolerance used to detect ties
        candidate_slack : float
            Relative chord margin around the closest unit that is re-ranked
        """
        if len(housing_df) == 0:
            raise InsufficientDataError("Cannot build a housing index with no units")
        
        self.housing_df = housing_df.reset_index(drop=True)
        self.ids = self.housing_df[id_col].astype(str).to_numpy()
        self.method = method
        self.tie_tolerance = tie_tolerance
        self.candidate_slack = candidate_slack
        
        self._lat = self.housing_df[lat_col].to_numpy(dtype=float)
        self._lng = self.housing_df[lng_col].to_numpy(dtype=float)
        self._tree = cKDTree(to_unit_vectors(self._lat, self._lng))
        
        logger.info(f"Built housing index over {len(self.housing_df):,} units")
    
    def __len__(self) -> int:
        return len(self.housing_df)
    
    def query(self, lat: np.ndarray, lng: np.ndarray) -> np.ndarray:
        """
        Positions (into ``housing_df``) of the nearest unit for each query point.
        
        Parameters
        ----------
        lat, lng : array-like
            Query coordinates in degrees
            
        Returns
        -------
        np.ndarray
            Integer positions, one per query point
        """
        lat = np.asarray(lat, dtype=float)
        lng = np.asarray(lng, dtype=float)
        queries = to_unit_vectors(lat, lng)
        if len(queries) == 0:
            return np.array([], dtype=int)
        
        chord, positions = self._tree.query(queries, k=1)
        positions = np.asarray(positions, dtype=int)
        
        for i, (query, best) in enumerate(zip(queries, chord)):
            radius = best * (1 + self.candidate_slack) + self.tie_tolerance
            candidates = self._tree.query_ball_point(query, r=radius)
            if len(candidates) > 1:
                positions[i] = self._rank_candidates(lat[i], lng[i], candidates)
        
        return positions
    
    def _rank_candidates(self, lat: float, lng: float, candidates: list) -> int:
        """Pick the candidate with the smallest geodesic distance, then the smallest id."""
        candidates = np.asarray(candidates, dtype=int)
        distances = geodesic_distance_meters(
            np.full(len(candidates), lat),
            np.full(len(candidates), lng),
            self._lat[candidates],
            self._lng[candidates],
            method=self.method
        )
        nearest = distances.min()
        tied = candidates[distances <= nearest * (1 + self.tie_tolerance) + self.tie_tolerance]
        return int(min(tied, key=lambda pos: self.ids[pos]))


def match_nearest_housing(
    sales_df: pd.DataFrame,
    housing_df: pd.DataFrame,
    method: str = constants.DEFAULT_DISTANCE_METHOD,
    index: Optional[HousingIndex] = None
) -> pd.DataFrame:
    """
    Attach the nearest housing unit and its distance to every sale.
    
    Only the matched pair's distance is computed, never the full Q x R
    cross product.
    
    Parameters
    ----------
    sales_df : pd.DataFrame
        Sales joined to property points (``lat``/``lng`` columns)
    housing_df : pd.DataFrame
        Unified housing units
    method : str
        Distance method for ranking and for the matched pair
        ('vincenty' or 'haversine')
    index : HousingIndex, optional
        Prebuilt index over ``housing_df``; must rank with ``method``
        
    Returns
    -------
    pd.DataFrame
        Sales with housing_id, housing_year, housing_lat, housing_lng,
        program, distance_meters and distance_miles columns
    """
    if index is None:
        index = HousingIndex(housing_df, method=method)
    elif index.method != method:
        raise ConfigurationError(
            f"Index ranks by {index.method!r} but distances use {method!r}"
        )
    
    sales = sales_df.reset_index(drop=True)
    positions = index.query(sales['lat'].to_numpy(), sales['lng'].to_numpy())
    
    nearest = index.housing_df.iloc[positions].reset_index(drop=True)
    nearest = nearest.rename(columns={
        'year': 'housing_year',
        'lat': 'housing_lat',
        'lng': 'housing_lng'
    })
    
    matched = pd.concat([sales, nearest], axis=1)
    
    matched['distance_meters'] = geodesic_distance_meters(
        matched['lat'].to_numpy(),
        matched['lng'].to_numpy(),
        matched['housing_lat'].to_numpy(),
        matched['housing_lng'].to_numpy(),
        method=method
    )
    matched['distance_miles'] = meters_to_miles(matched['distance_meters'])
    
    logger.info(
        f"Matched {len(matched):,} sales to nearest housing units "
        f"(median distance {matched['distance_miles'].median():.2f} mi)"
    )
    
    return matched
