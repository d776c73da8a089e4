"""Stage contracts for the spillover pipeline, expressed as Pandera schemas."""

from typing import List, Optional

import pandas as pd
import pandera.pandas as pa

from ..config import constants
from ..models.cohorts import CohortGroup
from ..utils.exceptions import DataValidationError


def _raw_schema(name: str, columns: List[str]) -> pa.DataFrameSchema:
    """Schema that only requires the named columns to be present."""
    return pa.DataFrameSchema(
        {col: pa.Column(nullable=True) for col in columns},
        name=name,
        strict=False
    )


def _is_datetime(series: pd.Series) -> bool:
    return pd.api.types.is_datetime64_any_dtype(series)


# Raw inputs: column presence only, malformed rows are dropped downstream
property_input_schema = _raw_schema("property_details", constants.PROPERTY_COLUMNS)
housing_input_schema = _raw_schema("housing_records", constants.LIHTC_COLUMNS)
sales_input_schema = _raw_schema("sales_records", constants.SALES_COLUMNS)
second_program_input_schema = _raw_schema(
    "second_program_records", constants.SECOND_PROGRAM_COLUMNS
)


# Unified housing units from both programs
housing_unit_schema = pa.DataFrameSchema({
    "housing_id": pa.Column(
        str,
        nullable=False,
        unique=True,
        description="Housing unit identifier"
    ),
    "year": pa.Column(
        int,
        nullable=False,
        coerce=True,
        checks=[
            pa.Check.in_range(
                constants.MIN_HOUSING_YEAR,
                constants.MAX_HOUSING_YEAR,
                include_max=False
            )
        ],
        description="Year the unit was placed in service"
    ),
    "lat": pa.Column(
        float,
        nullable=False,
        checks=[pa.Check.in_range(-90, 90)],
        description="WGS84 latitude"
    ),
    "lng": pa.Column(
        float,
        nullable=False,
        checks=[pa.Check.in_range(-180, 180)],
        description="WGS84 longitude"
    ),
    "program": pa.Column(
        str,
        nullable=False,
        checks=[pa.Check.isin(constants.HOUSING_PROGRAMS)],
        description="Funding program"
    )
}, name="housing_units", strict=True)


# Property details with parsed coordinates
property_point_schema = pa.DataFrameSchema({
    "apn": pa.Column(str, nullable=False, description="Parcel identifier"),
    "tract": pa.Column(str, nullable=True, description="Census tract"),
    "square_footage": pa.Column(float, nullable=True, coerce=True),
    "year_built": pa.Column(float, nullable=True, coerce=True),
    "lat": pa.Column(
        float,
        nullable=False,
        checks=[pa.Check.in_range(-90, 90)]
    ),
    "lng": pa.Column(
        float,
        nullable=False,
        checks=[pa.Check.in_range(-180, 180)]
    )
}, name="property_points", strict=False)


# Sales with derived sale year
sale_record_schema = pa.DataFrameSchema({
    "apn": pa.Column(str, nullable=False, description="Parcel identifier"),
    "sale_date": pa.Column(
        nullable=False,
        checks=[pa.Check(_is_datetime, element_wise=False, error="sale_date must be datetime")]
    ),
    "amount": pa.Column(float, nullable=True, coerce=True, description="Sale amount"),
    "sale_year": pa.Column(int, nullable=False, coerce=True)
}, name="sale_records", strict=False)


# Sales joined to their nearest housing unit
matched_sale_schema = pa.DataFrameSchema({
    "apn": pa.Column(str, nullable=False),
    "sale_year": pa.Column(int, nullable=False, coerce=True),
    "amount": pa.Column(float, nullable=True, coerce=True),
    "square_footage": pa.Column(float, nullable=True, coerce=True),
    "age": pa.Column(float, nullable=True, coerce=True),
    "housing_id": pa.Column(str, nullable=False),
    "housing_year": pa.Column(int, nullable=False, coerce=True),
    "distance_meters": pa.Column(
        float,
        nullable=False,
        checks=[pa.Check.greater_than_or_equal_to(0)]
    ),
    "distance_miles": pa.Column(
        float,
        nullable=False,
        checks=[pa.Check.greater_than_or_equal_to(0)]
    ),
    "group": pa.Column(
        str,
        nullable=False,
        required=False,
        checks=[pa.Check.isin([g.value for g in CohortGroup])]
    )
}, name="matched_sales", strict=False)


# Rows handed to the hedonic regression
model_frame_schema = pa.DataFrameSchema({
    "amount": pa.Column(
        float,
        nullable=False,
        coerce=True,
        checks=[pa.Check.greater_than(0)]
    ),
    "square_footage": pa.Column(
        float,
        nullable=False,
        coerce=True,
        checks=[pa.Check.greater_than(0)]
    ),
    "age": pa.Column(
        float,
        nullable=False,
        coerce=True,
        checks=[pa.Check.greater_than_or_equal_to(0)]
    ),
    "sale_year": pa.Column(int, nullable=False, coerce=True),
    "tract": pa.Column(str, nullable=True),
    "group": pa.Column(
        str,
        nullable=False,
        checks=[pa.Check.isin([g.value for g in CohortGroup if g is not CohortGroup.OTHER])]
    )
}, name="model_frame", strict=False)


def _validate(schema: pa.DataFrameSchema, df: pd.DataFrame) -> pd.DataFrame:
    try:
        return schema.validate(df)
    except (pa.errors.SchemaError, pa.errors.SchemaErrors) as exc:
        raise DataValidationError(f"{schema.name} failed validation: {exc}") from exc


def validate_input(df: pd.DataFrame, schema: pa.DataFrameSchema) -> pd.DataFrame:
    """
    Check that a raw input table carries its required columns.
    
    Parameters
    ----------
    df : pd.DataFrame
        Raw table as read from disk
    schema : pa.DataFrameSchema
        One of the ``*_input_schema`` objects
        
    Returns
    -------
    pd.DataFrame
        The unchanged table
        
    Raises
    ------
    DataValidationError
        If a required column is missing
    """
    return _validate(schema, df)


def validate_housing_units(
    df: pd.DataFrame,
    min_year: Optional[int] = None,
    max_year: Optional[int] = None
) -> pd.DataFrame:
    """
    Validate the unified housing table.
    
    ``min_year``/``max_year`` replace the default placed-in-service window
    so the check matches the bounds the table was filtered with.
    """
    schema = housing_unit_schema
    if min_year is not None or max_year is not None:
        schema = schema.update_column(
            "year",
            checks=[
                pa.Check.in_range(
                    constants.MIN_HOUSING_YEAR if min_year is None else min_year,
                    constants.MAX_HOUSING_YEAR if max_year is None else max_year,
                    include_max=False
                )
            ]
        )
    return _validate(schema, df)


def validate_property_points(df: pd.DataFrame) -> pd.DataFrame:
    """Validate property details after coordinate parsing."""
    return _validate(property_point_schema, df)


def validate_sale_records(df: pd.DataFrame) -> pd.DataFrame:
    """Validate sales after date parsing."""
    return _validate(sale_record_schema, df)


def validate_matched_sales(df: pd.DataFrame) -> pd.DataFrame:
    """Validate sales matched to their nearest housing unit."""
    return _validate(matched_sale_schema, df)


def validate_model_frame(df: pd.DataFrame) -> pd.DataFrame:
    """
    Validate the regression sample.
    
    Raises
    ------
    DataValidationError
        If any row would be invalid under the log-linear model
    """
    return _validate(model_frame_schema, df)
