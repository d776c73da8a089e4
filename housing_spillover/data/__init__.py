"""Data ingestion, normalization, schemas and filters for the spillover analysis."""

from .schemas import (
    housing_unit_schema,
    property_point_schema,
    sale_record_schema,
    matched_sale_schema,
    model_frame_schema,
    validate_input,
    validate_housing_units,
    validate_property_points,
    validate_sale_records,
    validate_matched_sales,
    validate_model_frame
)
from .loaders import (
    load_property_details,
    load_housing_records,
    load_sales_records,
    load_second_program_records,
    save_results
)
from .normalize import (
    parse_centroid,
    normalize_housing_units,
    prepare_properties,
    prepare_sales,
    join_sales_to_properties
)
from .filters import (
    filter_matched_sales,
    apply_distance_filter,
    apply_group_filter,
    apply_year_window_filter,
    apply_price_cap_filter,
    drop_duplicate_sales
)

__all__ = [
    "housing_unit_schema",
    "property_point_schema",
    "sale_record_schema",
    "matched_sale_schema",
    "model_frame_schema",
    "validate_input",
    "validate_housing_units",
    "validate_property_points",
    "validate_sale_records",
    "validate_matched_sales",
    "validate_model_frame",
    "load_property_details",
    "load_housing_records",
    "load_sales_records",
    "load_second_program_records",
    "save_results",
    "parse_centroid",
    "normalize_housing_units",
    "prepare_properties",
    "prepare_sales",
    "join_sales_to_properties",
    "filter_matched_sales",
    "apply_distance_filter",
    "apply_group_filter",
    "apply_year_window_filter",
    "apply_price_cap_filter",
    "drop_duplicate_sales"
]
