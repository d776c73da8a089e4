"""Batch pipeline: ingest, normalize, match, classify, filter and regress."""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .config import Settings
from .data.filters import filter_matched_sales, validate_filtered_data
from .data.loaders import (
    load_housing_records,
    load_property_details,
    load_sales_records,
    load_second_program_records,
    save_results
)
from .data.normalize import (
    join_sales_to_properties,
    normalize_housing_units,
    prepare_properties,
    prepare_sales
)
from .data.schemas import validate_matched_sales, validate_model_frame
from .geography.nearest import HousingIndex, match_nearest_housing
from .models.cohorts import Grouping, assign_groups
from .models.hedonic import DEFAULT_MODEL_SPECS, HedonicRegressor, HedonicResults, ModelSpec
from .utils.exceptions import ConfigurationError, InsufficientDataError, SpilloverError
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)


@dataclass
class InputTables:
    """The four raw input tables."""
    
    properties: pd.DataFrame
    housing: pd.DataFrame
    sales: pd.DataFrame
    second_program: pd.DataFrame


@dataclass
class PipelineResults:
    """Everything a run produces."""
    
    matched: pd.DataFrame
    model_frames: Dict[str, pd.DataFrame] = field(default_factory=dict)
    models: Dict[str, HedonicResults] = field(default_factory=dict)
    
    def summary_table(self) -> pd.DataFrame:
        """Group effects and contrasts of every model in one table."""
        if not self.models:
            return pd.DataFrame()
        return pd.concat(
            [result.to_dataframe() for result in self.models.values()],
            ignore_index=True
        )


class SpilloverPipeline:
    """
    Orchestrates one offline run of the spillover analysis.
    
    Stages:
    1. load the four inputs
    2. normalize housing, parse coordinates and sale years, join sales to parcels
    3. match every sale to its nearest housing unit
    4. classify and filter one model frame per specification
    5. fit each hedonic specification
    """
    
    def __init__(
        self,
        settings: Optional[Settings] = None,
        model_specs: Sequence[ModelSpec] = DEFAULT_MODEL_SPECS
    ):
        self.settings = settings or Settings()
        self.settings.validate()
        self.model_specs = list(model_specs)
        
        names = [spec.name for spec in self.model_specs]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Model names must be unique: {names}")
    
    def load(self) -> InputTables:
        """Read the four input files named in the settings."""
        missing = [name for name, path in self.settings.input_paths().items() if path is None]
        if missing:
            raise ConfigurationError(f"Missing input paths: {missing}")
        
        return InputTables(
            properties=load_property_details(self.settings.property_data_path),
            housing=load_housing_records(self.settings.housing_data_path),
            sales=load_sales_records(self.settings.sales_data_path),
            second_program=load_second_program_records(self.settings.second_program_data_path)
        )
    
    def prepare(self, tables: InputTables) -> pd.DataFrame:
        """
        Normalize, join and match the inputs.
        
        Returns
        -------
        pd.DataFrame
            One row per sold property with its nearest housing unit
        """
        housing = normalize_housing_units(
            tables.housing,
            tables.second_program,
            min_year=self.settings.min_housing_year,
            max_year=self.settings.max_housing_year
        )
        properties = prepare_properties(tables.properties)
        sales = prepare_sales(tables.sales)
        joined = join_sales_to_properties(sales, properties)
        
        if len(joined) == 0:
            raise InsufficientDataError("No sales matched a property record")
        
        index = HousingIndex(housing, method=self.settings.distance_method)
        matched = match_nearest_housing(
            joined, housing, method=self.settings.distance_method, index=index
        )
        
        return validate_matched_sales(matched)
    
    def build_model_frame(self, matched: pd.DataFrame, grouping: Grouping) -> pd.DataFrame:
        """Classify matched sales under ``grouping`` and apply the sample filters."""
        classified = assign_groups(
            matched,
            grouping,
            inner_radius=self.settings.inner_radius_miles,
            outer_radius=self.settings.outer_radius_miles
        )
        
        logger.info(
            f"{Grouping(grouping).value} group counts before filtering: "
            f"{classified['group'].value_counts().to_dict()}"
        )
        
        frame = filter_matched_sales(
            classified,
            max_distance=self.settings.outer_radius_miles,
            max_year_gap=self.settings.max_year_gap,
            max_amount=self.settings.max_sale_amount
        )
        
        is_valid, message = validate_filtered_data(frame)
        if not is_valid:
            raise InsufficientDataError(message)
        
        return validate_model_frame(frame)
    
    def fit_models(self, matched: pd.DataFrame) -> PipelineResults:
        """Build each specification's model frame and fit it."""
        results = PipelineResults(matched=matched)
        frames_by_grouping: Dict[Grouping, pd.DataFrame] = {}
        
        for spec in self.model_specs:
            grouping = Grouping(spec.grouping)
            if grouping not in frames_by_grouping:
                frames_by_grouping[grouping] = self.build_model_frame(matched, grouping)
            frame = frames_by_grouping[grouping]
            
            regressor = HedonicRegressor(
                spec,
                z=self.settings.confidence_z,
                covariance_sign=self.settings.contrast_covariance_sign
            )
            results.model_frames[spec.name] = frame
            results.models[spec.name] = regressor.fit(frame)
        
        return results
    
    def run(self, tables: Optional[InputTables] = None) -> PipelineResults:
        """
        Run the whole analysis.
        
        Parameters
        ----------
        tables : InputTables, optional
            Preloaded inputs; read from the settings' paths when omitted
            
        Returns
        -------
        PipelineResults
            Matched sales, model frames and fitted models
        """
        if tables is None:
            tables = self.load()
        
        matched = self.prepare(tables)
        results = self.fit_models(matched)
        
        for line in format_summary(results):
            logger.info(line)
        
        if self.settings.output_path:
            save_results(results.summary_table(), self.settings.output_path)
        
        return results


def format_summary(results: PipelineResults) -> List[str]:
    """Human-readable lines for every estimate of every model."""
    lines = []
    for name, model in results.models.items():
        lines.append(
            f"Model {name}: N={model.n_observations:,}, R²={model.r_squared:.4f}, "
            f"reference={model.spec.reference.value}"
        )
        for estimate in model.group_effects() + model.contrasts():
            lines.append(
                f"  {estimate.label}: {estimate.estimate:.4f} "
                f"(95% CI {estimate.lower:.4f}, {estimate.upper:.4f}) "
                f"-> {estimate.percent_effect:.2f}% "
                f"[{estimate.percent_lower:.2f}%, {estimate.percent_upper:.2f}%]"
            )
    return lines


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line interface for the batch run"""
    parser = argparse.ArgumentParser(
        description="Estimate subsidized-housing effects on nearby sale prices"
    )
    parser.add_argument("property_path", help="Property details (apn, centroid, tract, ...)")
    parser.add_argument("housing_path", help="Subsidized-housing records (HUD_ID, YR_PIS, ...)")
    parser.add_argument("sales_path", help="Sales records (apn, ownerdate, amount)")
    parser.add_argument("second_program_path", help="Second program records (Barnes.Year, lat, lng)")
    parser.add_argument("--config", help="Path to a JSON settings file")
    parser.add_argument("--output", help="Where to write the estimate table")
    parser.add_argument("--log-level", help="Logging level (default: from settings)")
    
    args = parser.parse_args(argv)
    
    try:
        settings = Settings.from_json(args.config) if args.config else Settings()
        settings.property_data_path = args.property_path
        settings.housing_data_path = args.housing_path
        settings.sales_data_path = args.sales_path
        settings.second_program_data_path = args.second_program_path
        if args.output:
            settings.output_path = args.output
        if args.log_level:
            settings.log_level = args.log_level
        
        settings.validate()
        setup_logging(
            "housing_spillover",
            level=settings.log_level,
            log_file=settings.log_file
        )
        
        results = SpilloverPipeline(settings).run()
    except (SpilloverError, FileNotFoundError, ValueError) as exc:
        logger.error(f"Pipeline failed: {exc}")
        print(f"Pipeline failed: {exc}", file=sys.stderr)
        return 1
    
    print(f"Pipeline completed: {len(results.models)} models fitted")
    for line in format_summary(results):
        print(line)
    
    return 0


if __name__ == "__main__":
    sys.exit(main())
