"""Cohort classification of sales relative to their nearest housing unit.

A sale is labelled by how far it lies from the nearest subsidized-housing
unit and by how many years separate the sale from the unit's placed-in-service
year:

- ``pre``: within the inner radius, unit opens 2-5 years after the sale
- ``mid``: within the inner radius, unit opens 0-2 years after the sale
  (a same-year sale is ``mid``)
- ``post``: within the inner radius, sale happens after the unit opened
- ``outside``: beyond the inner radius (inside-only grouping), or
  ``outside_pre`` / ``outside_mid`` / ``outside_post`` under full grouping
- ``other``: anything else; these rows are discarded
"""

from enum import Enum
from typing import Optional

import numpy as np
import pandas as pd

from ..config import constants


class CohortGroup(str, Enum):
    """Temporal/spatial cohort labels."""
    PRE = "pre"
    MID = "mid"
    POST = "post"
    OUTSIDE = "outside"
    OUTSIDE_PRE = "outside_pre"
    OUTSIDE_MID = "outside_mid"
    OUTSIDE_POST = "outside_post"
    OTHER = "other"


class Grouping(str, Enum):
    """Classification variants."""
    INSIDE_ONLY = "inside_only"
    FULL = "full"


INSIDE_ONLY_GROUPS = [
    CohortGroup.PRE, CohortGroup.MID, CohortGroup.POST, CohortGroup.OUTSIDE
]
FULL_GROUPS = [
    CohortGroup.PRE, CohortGroup.MID, CohortGroup.POST,
    CohortGroup.OUTSIDE_PRE, CohortGroup.OUTSIDE_MID, CohortGroup.OUTSIDE_POST
]


def groups_for(grouping: Grouping) -> list:
    """Labels a grouping can produce, excluding ``other``."""
    return INSIDE_ONLY_GROUPS if Grouping(grouping) is Grouping.INSIDE_ONLY else FULL_GROUPS


def _is_pre(years_until_open: float) -> bool:
    return constants.PRE_WINDOW_MIN <= years_until_open <= constants.PRE_WINDOW_MAX


def _is_mid(years_until_open: float) -> bool:
    return constants.MID_WINDOW_MIN <= years_until_open < constants.MID_WINDOW_MAX


def _is_post(years_until_open: float) -> bool:
    return -years_until_open > 0


def classify_inside_only(
    distance: float,
    sale_year: float,
    housing_year: float,
    inner_radius: float = constants.INNER_RADIUS_MILES,
    outer_radius: float = constants.OUTER_RADIUS_MILES
) -> CohortGroup:
    """
    Classify a sale, collapsing everything beyond the inner radius to ``outside``.
    
    Sales beyond the outer radius, and sales with a missing distance, are
    ``other``.
    """
    if pd.isna(distance) or not distance <= outer_radius:
        return CohortGroup.OTHER
    
    if distance > inner_radius:
        return CohortGroup.OUTSIDE
    
    if pd.isna(sale_year) or pd.isna(housing_year):
        return CohortGroup.OTHER
    
    gap = housing_year - sale_year
    if _is_pre(gap):
        return CohortGroup.PRE
    if _is_mid(gap):
        return CohortGroup.MID
    if _is_post(gap):
        return CohortGroup.POST
    return CohortGroup.OTHER


def classify_full(
    distance: float,
    sale_year: float,
    housing_year: float,
    inner_radius: float = constants.INNER_RADIUS_MILES
) -> CohortGroup:
    """Classify a sale, splitting sales beyond the inner radius by the same year tests."""
    if pd.isna(distance) or pd.isna(sale_year) or pd.isna(housing_year):
        return CohortGroup.OTHER
    
    gap = housing_year - sale_year
    inside = distance <= inner_radius
    
    if _is_pre(gap):
        return CohortGroup.PRE if inside else CohortGroup.OUTSIDE_PRE
    if _is_mid(gap):
        return CohortGroup.MID if inside else CohortGroup.OUTSIDE_MID
    if _is_post(gap):
        return CohortGroup.POST if inside else CohortGroup.OUTSIDE_POST
    return CohortGroup.OTHER


def classify(
    grouping: Grouping,
    distance: float,
    sale_year: float,
    housing_year: float,
    inner_radius: float = constants.INNER_RADIUS_MILES,
    outer_radius: float = constants.OUTER_RADIUS_MILES
) -> CohortGroup:
    """Classify a single sale under the requested grouping."""
    if Grouping(grouping) is Grouping.INSIDE_ONLY:
        return classify_inside_only(
            distance, sale_year, housing_year, inner_radius, outer_radius
        )
    return classify_full(distance, sale_year, housing_year, inner_radius)


def assign_groups(
    df: pd.DataFrame,
    grouping: Grouping,
    inner_radius: Optional[float] = None,
    outer_radius: Optional[float] = None,
    distance_col: str = 'distance_miles',
    sale_year_col: str = 'sale_year',
    housing_year_col: str = 'housing_year',
    group_col: str = 'group'
) -> pd.DataFrame:
    """
    Label every row of a matched-sales table with its cohort group.
    
    Vectorised form of :func:`classify`; the two agree row for row.
    
    Parameters
    ----------
    df : pd.DataFrame
        Matched sales with distance and year columns
    grouping : Grouping
        Classification variant
    inner_radius, outer_radius : float, optional
        Radii in miles (defaults from constants)
        
    Returns
    -------
    pd.DataFrame
        Copy of ``df`` with a string ``group`` column
    """
    if inner_radius is None:
        inner_radius = constants.INNER_RADIUS_MILES
    if outer_radius is None:
        outer_radius = constants.OUTER_RADIUS_MILES
    
    df = df.copy()
    
    distance = df[distance_col].astype(float).to_numpy()
    gap = (
        df[housing_year_col].astype(float) - df[sale_year_col].astype(float)
    ).to_numpy()
    
    # NaN comparisons are False, so missing inputs fall through to "other"
    with np.errstate(invalid='ignore'):
        inside = distance <= inner_radius
        beyond = distance > inner_radius
        pre = (gap >= constants.PRE_WINDOW_MIN) & (gap <= constants.PRE_WINDOW_MAX)
        mid = (gap >= constants.MID_WINDOW_MIN) & (gap < constants.MID_WINDOW_MAX)
        post = -gap > 0
    
    if Grouping(grouping) is Grouping.INSIDE_ONLY:
        within = distance <= outer_radius
        conditions = [
            within & inside & pre,
            within & inside & mid,
            within & inside & post,
            within & beyond,
        ]
        choices = [g.value for g in INSIDE_ONLY_GROUPS]
    else:
        conditions = [
            inside & pre,
            inside & mid,
            inside & post,
            beyond & pre,
            beyond & mid,
            beyond & post,
        ]
        choices = [g.value for g in FULL_GROUPS]
    
    df[group_col] = np.select(conditions, choices, default=CohortGroup.OTHER.value)
    df[group_col] = df[group_col].astype(object)
    
    return df
