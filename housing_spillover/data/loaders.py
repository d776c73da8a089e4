"""Data loading utilities for the spillover analysis."""

import pandas as pd
from pathlib import Path
from typing import Union, Optional, Dict
import logging

import pandera.pandas as pa

from .schemas import (
    validate_input,
    property_input_schema,
    housing_input_schema,
    sales_input_schema,
    second_program_input_schema
)
from ..config import constants

logger = logging.getLogger(__name__)


def _read_table(
    filepath: Union[str, Path],
    dtype: Optional[Dict[str, type]] = None,
    **kwargs
) -> pd.DataFrame:
    """Read a csv, parquet or feather file."""
    filepath = Path(filepath)
    
    if not filepath.exists():
        raise FileNotFoundError(f"Input file not found: {filepath}")
    
    file_ext = filepath.suffix.lower()
    
    if file_ext == '.csv':
        df = pd.read_csv(filepath, dtype=dtype, **kwargs)
    elif file_ext == '.parquet':
        df = pd.read_parquet(filepath, **kwargs)
    elif file_ext == '.feather':
        df = pd.read_feather(filepath, **kwargs)
    else:
        raise ValueError(
            f"Unsupported file format: {file_ext}. "
            f"Supported formats: {constants.SUPPORTED_INPUT_FORMATS}"
        )
    
    return df


def _load(
    filepath: Union[str, Path],
    schema: pa.DataFrameSchema,
    label: str,
    dtype: Optional[Dict[str, type]] = None,
    **kwargs
) -> pd.DataFrame:
    df = _read_table(filepath, dtype=dtype, **kwargs)
    df = validate_input(df, schema)
    logger.info(f"Loaded {len(df):,} {label} from {filepath}")
    return df


def load_property_details(
    filepath: Union[str, Path],
    **kwargs
) -> pd.DataFrame:
    """
    Load property details.
    
    Parameters
    ----------
    filepath : str or Path
        File with apn, centroid, tract, square_footage, year_built
    **kwargs
        Additional arguments passed to pandas read function
        
    Returns
    -------
    pd.DataFrame
        Raw property details; ``apn`` and ``tract`` are read as strings
        
    Raises
    ------
    FileNotFoundError
        If the file does not exist
    ValueError
        If file format is not supported
    DataValidationError
        If a required column is missing
    """
    return _load(
        filepath, property_input_schema, "property records",
        dtype={'apn': str, 'tract': str, 'centroid': str}, **kwargs
    )


def load_housing_records(
    filepath: Union[str, Path],
    **kwargs
) -> pd.DataFrame:
    """
    Load subsidized-housing (LIHTC) records.
    
    Parameters
    ----------
    filepath : str or Path
        File with HUD_ID, YR_PIS, LATITUDE, LONGITUDE
    **kwargs
        Additional arguments passed to pandas read function
        
    Returns
    -------
    pd.DataFrame
        Raw housing records
    """
    return _load(
        filepath, housing_input_schema, "housing records",
        dtype={'HUD_ID': str}, **kwargs
    )


def load_sales_records(
    filepath: Union[str, Path],
    **kwargs
) -> pd.DataFrame:
    """
    Load sales records.
    
    Parameters
    ----------
    filepath : str or Path
        File with apn, ownerdate, amount
    **kwargs
        Additional arguments passed to pandas read function
        
    Returns
    -------
    pd.DataFrame
        Raw sales records
    """
    return _load(
        filepath, sales_input_schema, "sales records",
        dtype={'apn': str}, **kwargs
    )


def load_second_program_records(
    filepath: Union[str, Path],
    **kwargs
) -> pd.DataFrame:
    """Load the second housing program's records (Barnes.Year, lat, lng)."""
    return _load(
        filepath, second_program_input_schema, "second-program records",
        **kwargs
    )


def save_results(
    df: pd.DataFrame,
    filepath: Union[str, Path],
    format: Optional[str] = None,
    **kwargs
) -> None:
    """
    Save results to file.
    
    Parameters
    ----------
    df : pd.DataFrame
        Data to save
    filepath : str or Path
        Output file path
    format : str, optional
        Output format. If None, inferred from filepath extension
    **kwargs
        Additional arguments passed to pandas write function
    """
    filepath = Path(filepath)
    
    filepath.parent.mkdir(parents=True, exist_ok=True)
    
    if format is None:
        format = filepath.suffix.lower() or constants.DEFAULT_OUTPUT_FORMAT
    else:
        format = format.lower()
        if not format.startswith('.'):
            format = f'.{format}'
    
    if format == '.parquet':
        df.to_parquet(filepath, **kwargs)
    elif format == '.csv':
        df.to_csv(filepath, index=False, **kwargs)
    elif format == '.feather':
        df.to_feather(filepath, **kwargs)
    else:
        raise ValueError(f"Unsupported output format: {format}")
    
    logger.info(f"Saved {len(df):,} rows to {filepath}")
