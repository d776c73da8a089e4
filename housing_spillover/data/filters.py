"""Row filters that carve the regression sample out of the matched sales."""

from typing import Optional, Tuple

import pandas as pd
import logging

from ..config import constants
from ..models.cohorts import CohortGroup

logger = logging.getLogger(__name__)


def filter_matched_sales(
    df: pd.DataFrame,
    max_distance: Optional[float] = None,
    max_year_gap: Optional[int] = None,
    max_amount: Optional[float] = None,
    inplace: bool = False
) -> pd.DataFrame:
    """
    Apply all sample filters to classified sales, in order.
    
    1. distance <= max_distance
    2. group is not ``other``
    3. age >= 0
    4. square_footage > 0
    5. amount > 0
    6. age is not null
    7. |sale_year - housing_year| <= max_year_gap
    8. drop duplicate rows
    9. amount <= max_amount
    
    Every filter is a pure predicate, so re-applying the chain to its own
    output removes nothing.
    
    Parameters
    ----------
    df : pd.DataFrame
        Matched sales with a ``group`` column
    max_distance : float, optional
        Maximum distance in miles (default: from constants)
    max_year_gap : int, optional
        Maximum absolute year gap (default: from constants)
    max_amount : float, optional
        Inclusive sale amount cap (default: from constants)
    inplace : bool, default False
        Whether to modify DataFrame in place
        
    Returns
    -------
    pd.DataFrame
        Filtered sales
    """
    if not inplace:
        df = df.copy()
    
    if max_distance is None:
        max_distance = constants.OUTER_RADIUS_MILES
    if max_year_gap is None:
        max_year_gap = constants.MAX_YEAR_GAP
    if max_amount is None:
        max_amount = constants.MAX_SALE_AMOUNT
    
    steps = [
        ("beyond distance cutoff", lambda d: apply_distance_filter(d, max_distance, inplace=True)),
        ("in the 'other' group", lambda d: apply_group_filter(d, inplace=True)),
        ("with negative age", lambda d: apply_non_negative_filter(d, 'age', inplace=True)),
        ("with non-positive square footage", lambda d: apply_positive_filter(d, 'square_footage', inplace=True)),
        ("with non-positive amount", lambda d: apply_positive_filter(d, 'amount', inplace=True)),
        ("with missing age", lambda d: apply_not_null_filter(d, 'age', inplace=True)),
        ("outside the year window", lambda d: apply_year_window_filter(d, max_year_gap, inplace=True)),
        ("duplicated", lambda d: drop_duplicate_sales(d, inplace=True)),
        ("above the price cap", lambda d: apply_price_cap_filter(d, max_amount, inplace=True)),
    ]
    
    for description, step in steps:
        initial_count = len(df)
        df = step(df)
        logger.info(f"Removed {initial_count - len(df):,} sales {description}")
    
    logger.info(f"Total sales after filtering: {len(df):,}")
    
    return df


def apply_distance_filter(
    df: pd.DataFrame,
    max_distance: float = constants.OUTER_RADIUS_MILES,
    distance_col: str = 'distance_miles',
    inplace: bool = False
) -> pd.DataFrame:
    """Keep sales within ``max_distance`` miles of their nearest unit."""
    if not inplace:
        df = df.copy()
    
    mask = df[distance_col] <= max_distance
    
    return df[mask]


def apply_group_filter(
    df: pd.DataFrame,
    group_col: str = 'group',
    inplace: bool = False
) -> pd.DataFrame:
    """Drop sales classified as ``other``."""
    if not inplace:
        df = df.copy()
    
    mask = df[group_col] != CohortGroup.OTHER.value
    
    return df[mask]


def apply_non_negative_filter(
    df: pd.DataFrame,
    column: str,
    inplace: bool = False
) -> pd.DataFrame:
    """
    Drop rows where ``column`` is negative.
    
    Missing values pass; they are handled by :func:`apply_not_null_filter`.
    """
    if not inplace:
        df = df.copy()
    
    mask = ~(df[column] < 0)
    
    return df[mask]


def apply_positive_filter(
    df: pd.DataFrame,
    column: str,
    inplace: bool = False
) -> pd.DataFrame:
    """Keep rows where ``column`` is strictly positive."""
    if not inplace:
        df = df.copy()
    
    mask = df[column] > 0
    
    return df[mask]


def apply_not_null_filter(
    df: pd.DataFrame,
    column: str,
    inplace: bool = False
) -> pd.DataFrame:
    """Drop rows where ``column`` is missing."""
    if not inplace:
        df = df.copy()
    
    mask = df[column].notna()
    
    return df[mask]


def apply_year_window_filter(
    df: pd.DataFrame,
    max_year_gap: int = constants.MAX_YEAR_GAP,
    sale_year_col: str = 'sale_year',
    housing_year_col: str = 'housing_year',
    inplace: bool = False
) -> pd.DataFrame:
    """
    Keep sales within ``max_year_gap`` years of the unit's placed-in-service year.
    
    Removes rows where: |sale_year - housing_year| > max_year_gap
    """
    if not inplace:
        df = df.copy()
    
    gap = (df[sale_year_col] - df[housing_year_col]).abs()
    mask = gap <= max_year_gap
    
    return df[mask]


def drop_duplicate_sales(
    df: pd.DataFrame,
    inplace: bool = False
) -> pd.DataFrame:
    """Drop rows that are identical in every column, keeping the first."""
    if not inplace:
        df = df.copy()
    
    return df.drop_duplicates(keep='first')


def apply_price_cap_filter(
    df: pd.DataFrame,
    max_amount: float = constants.MAX_SALE_AMOUNT,
    amount_col: str = 'amount',
    inplace: bool = False
) -> pd.DataFrame:
    """Drop sales above ``max_amount``; the cap itself is retained."""
    if not inplace:
        df = df.copy()
    
    mask = df[amount_col] <= max_amount
    
    return df[mask]


def validate_filtered_data(df: pd.DataFrame) -> Tuple[bool, str]:
    """
    Check that a filtered sample can feed the hedonic regression.
    
    Parameters
    ----------
    df : pd.DataFrame
        Filtered sales
        
    Returns
    -------
    tuple
        (is_valid, message)
    """
    if len(df) == 0:
        return False, "No sales remain after filtering"
    
    required_cols = [
        'amount', 'square_footage', 'age', 'sale_year', 'tract', 'group'
    ]
    missing_cols = set(required_cols) - set(df.columns)
    if missing_cols:
        return False, f"Missing required columns: {missing_cols}"
    
    if (df['amount'] <= 0).any() or (df['square_footage'] <= 0).any():
        return False, "Amount and square footage must be positive"
    
    if (df['group'] == CohortGroup.OTHER.value).any():
        return False, "Sample still contains 'other' rows"
    
    return True, "Data validation passed"
