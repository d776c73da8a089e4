"""Normalization of the raw inputs into the pipeline's stage tables."""

import re
from typing import Optional, Tuple

import numpy as np
import pandas as pd
import logging

from ..config import constants
from ..utils.exceptions import CoordinateParseError
from .schemas import (
    validate_housing_units,
    validate_property_points,
    validate_sale_records
)

logger = logging.getLogger(__name__)

_NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
_PAIR_PATTERN = re.compile(
    rf"^\s*[\(\[]?\s*(?P<lat>{_NUMBER})\s*[,;\s]\s*(?P<lng>{_NUMBER})\s*[\)\]]?\s*$"
)
_WKT_PATTERN = re.compile(
    rf"^\s*POINT\s*\(\s*(?P<lng>{_NUMBER})\s+(?P<lat>{_NUMBER})\s*\)\s*$",
    re.IGNORECASE
)


def _as_str(series: pd.Series) -> pd.Series:
    """Cast non-null values to str, leaving missing values missing."""
    return series.map(lambda v: v if pd.isna(v) else str(v)).astype(object)


def _suffix_duplicate_ids(ids: pd.Series) -> pd.Series:
    """Keep the first occurrence of each id and suffix later ones ``-1``, ``-2``, ..."""
    seen = set()
    unique_ids = []
    for value in ids:
        candidate, n = value, 1
        while candidate in seen:
            candidate = f"{value}-{n}"
            n += 1
        seen.add(candidate)
        unique_ids.append(candidate)
    
    renamed = sum(a != b for a, b in zip(ids, unique_ids))
    if renamed:
        logger.warning(f"Suffixed {renamed:,} duplicated housing ids")
    
    return pd.Series(unique_ids, index=ids.index, dtype=object)


def parse_coordinate(value: str) -> Tuple[float, float]:
    """
    Parse a combined coordinate string into ``(lat, lng)``.
    
    Accepts ``"lat, lng"``, ``"(lat, lng)"``, ``"[lat, lng]"`` and WKT
    ``"POINT (lng lat)"``.
    
    Raises
    ------
    CoordinateParseError
        If the string matches none of those forms or is out of range
    """
    text = str(value)
    match = _WKT_PATTERN.match(text) or _PAIR_PATTERN.match(text)
    if match is None:
        raise CoordinateParseError(f"Cannot parse coordinate: {value!r}")
    
    lat = float(match.group('lat'))
    lng = float(match.group('lng'))
    
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise CoordinateParseError(f"Coordinate out of range: {value!r}")
    
    return lat, lng


def parse_centroid(centroid: pd.Series) -> pd.DataFrame:
    """
    Split a combined coordinate column into ``lat`` and ``lng`` columns.
    
    Null entries become NaN pairs; any non-null entry that cannot be parsed
    is fatal.
    
    Parameters
    ----------
    centroid : pd.Series
        Combined coordinate strings
        
    Returns
    -------
    pd.DataFrame
        ``lat`` and ``lng`` columns aligned to ``centroid.index``
    """
    lat = np.full(len(centroid), np.nan)
    lng = np.full(len(centroid), np.nan)
    
    for i, value in enumerate(centroid):
        if pd.isna(value) or (isinstance(value, str) and not value.strip()):
            continue
        lat[i], lng[i] = parse_coordinate(value)
    
    return pd.DataFrame({'lat': lat, 'lng': lng}, index=centroid.index)


def normalize_housing_units(
    lihtc_df: pd.DataFrame,
    second_df: pd.DataFrame,
    min_year: Optional[int] = None,
    max_year: Optional[int] = None
) -> pd.DataFrame:
    """
    Unify both housing programs into one (housing_id, year, lat, lng, program) table.
    
    Rows with a year outside ``[min_year, max_year)`` or without coordinates
    are dropped silently; only the count is logged. Every other record is
    kept: a missing HUD_ID becomes ``lihtc-<row>`` and a repeated id gets a
    ``-<n>`` suffix in input order.

    Parameters
    ----------
    lihtc_df : pd.DataFrame
        Records with HUD_ID, YR_PIS, LATITUDE, LONGITUDE
    second_df : pd.DataFrame
        Records with Barnes.Year, lat, lng
    min_year : int, optional
        Inclusive lower year bound (default: from constants)
    max_year : int, optional
        Exclusive upper year bound (default: from constants)
        
    Returns
    -------
    pd.DataFrame
        Validated housing units
    """
    if min_year is None:
        min_year = constants.MIN_HOUSING_YEAR
    if max_year is None:
        max_year = constants.MAX_HOUSING_YEAR
    
    lihtc = pd.DataFrame({
        'housing_id': _as_str(lihtc_df['HUD_ID']),
        'year': pd.to_numeric(lihtc_df['YR_PIS'], errors='coerce'),
        'lat': pd.to_numeric(lihtc_df['LATITUDE'], errors='coerce'),
        'lng': pd.to_numeric(lihtc_df['LONGITUDE'], errors='coerce'),
        'program': constants.LIHTC_PROGRAM
    }).reset_index(drop=True)
    
    # Records without a HUD_ID are still units; give them a positional id
    missing_id = lihtc['housing_id'].isna()
    if missing_id.any():
        lihtc.loc[missing_id, 'housing_id'] = [
            f"{constants.LIHTC_PROGRAM}-{i:06d}" for i in np.flatnonzero(missing_id)
        ]
        logger.warning(f"Generated ids for {missing_id.sum():,} housing records without HUD_ID")
    
    # The second program carries no identifier of its own
    second = pd.DataFrame({
        'housing_id': [
            f"{constants.SECOND_PROGRAM}-{i:06d}" for i in range(len(second_df))
        ],
        'year': pd.to_numeric(second_df['Barnes.Year'], errors='coerce').to_numpy(),
        'lat': pd.to_numeric(second_df['lat'], errors='coerce').to_numpy(),
        'lng': pd.to_numeric(second_df['lng'], errors='coerce').to_numpy(),
        'program': constants.SECOND_PROGRAM
    })
    
    housing = pd.concat([lihtc, second], ignore_index=True)
    housing['housing_id'] = _suffix_duplicate_ids(housing['housing_id'])
    initial_count = len(housing)
    
    mask = (
        (housing['year'] >= min_year) &
        (housing['year'] < max_year) &
        housing['lat'].notna() &
        housing['lng'].notna()
    )
    housing = housing[mask]
    housing = housing.reset_index(drop=True)
    housing['year'] = housing['year'].astype(int)
    housing['program'] = housing['program'].astype(object)
    
    logger.info(
        f"Removed {initial_count - len(housing):,} housing records outside "
        f"[{min_year}, {max_year}) or without coordinates"
    )
    logger.info(f"Unified {len(housing):,} housing units")
    
    return validate_housing_units(housing, min_year=min_year, max_year=max_year)


def prepare_properties(property_df: pd.DataFrame) -> pd.DataFrame:
    """
    Parse property coordinates and select the columns the pipeline uses.
    
    Parameters
    ----------
    property_df : pd.DataFrame
        Property details with apn, centroid, tract, square_footage, year_built
        
    Returns
    -------
    pd.DataFrame
        apn, tract, square_footage, year_built, lat, lng
    """
    coords = parse_centroid(property_df['centroid'])
    
    properties = pd.DataFrame({
        'apn': _as_str(property_df['apn']),
        'tract': _as_str(property_df['tract']),
        'square_footage': pd.to_numeric(property_df['square_footage'], errors='coerce'),
        'year_built': pd.to_numeric(property_df['year_built'], errors='coerce'),
        'lat': coords['lat'],
        'lng': coords['lng']
    })
    
    initial_count = len(properties)
    properties = properties[
        properties['apn'].notna() &
        properties['lat'].notna() &
        properties['lng'].notna()
    ]
    properties = properties.reset_index(drop=True)
    
    removed = initial_count - len(properties)
    if removed:
        logger.warning(f"Removed {removed:,} properties without a parcel id or centroid")
    logger.info(f"Prepared {len(properties):,} property points")
    
    return validate_property_points(properties)


def prepare_sales(sales_df: pd.DataFrame) -> pd.DataFrame:
    """
    Parse sale dates and derive the sale year.
    
    Rows whose ``ownerdate`` cannot be parsed are dropped.
    
    Parameters
    ----------
    sales_df : pd.DataFrame
        Sales with apn, ownerdate, amount
        
    Returns
    -------
    pd.DataFrame
        apn, sale_date, amount, sale_year
    """
    sales = pd.DataFrame({
        'apn': _as_str(sales_df['apn']),
        'sale_date': pd.to_datetime(sales_df['ownerdate'], errors='coerce'),
        'amount': pd.to_numeric(sales_df['amount'], errors='coerce')
    })
    
    initial_count = len(sales)
    sales = sales[sales['apn'].notna() & sales['sale_date'].notna()]
    sales = sales.reset_index(drop=True)
    
    removed = initial_count - len(sales)
    if removed:
        logger.info(f"Removed {removed:,} sales without a parcel id or parseable date")
    
    sales['sale_year'] = sales['sale_date'].dt.year.astype(int)
    
    logger.info(f"Prepared {len(sales):,} sales")
    
    return validate_sale_records(sales)


def join_sales_to_properties(
    sales_df: pd.DataFrame,
    properties_df: pd.DataFrame
) -> pd.DataFrame:
    """
    Inner-join sales to property points on ``apn`` and derive sale age.
    
    Sales without a matching parcel are dropped.
    
    Parameters
    ----------
    sales_df : pd.DataFrame
        Output of :func:`prepare_sales`
    properties_df : pd.DataFrame
        Output of :func:`prepare_properties`
        
    Returns
    -------
    pd.DataFrame
        Joined table with ``age = sale_year - year_built``
    """
    joined = sales_df.merge(properties_df, on='apn', how='inner')
    joined['age'] = joined['sale_year'] - joined['year_built']
    
    logger.info(
        f"Joined {len(joined):,} sales to properties "
        f"(dropped {(~sales_df['apn'].isin(properties_df['apn'])).sum():,} unmatched sales)"
    )
    
    return joined
