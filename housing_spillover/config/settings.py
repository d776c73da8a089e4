"""Settings configuration for the housing spillover analysis."""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any
import json

from . import constants
from ..utils.exceptions import ConfigurationError


@dataclass
class Settings:
    """Configuration settings for a spillover analysis run."""
    
    # Data paths
    property_data_path: Optional[str] = None
    housing_data_path: Optional[str] = None
    sales_data_path: Optional[str] = None
    second_program_data_path: Optional[str] = None
    output_path: Optional[str] = None
    
    # Spatial thresholds (miles)
    inner_radius_miles: float = constants.INNER_RADIUS_MILES
    outer_radius_miles: float = constants.OUTER_RADIUS_MILES
    distance_method: str = constants.DEFAULT_DISTANCE_METHOD
    
    # Sample filters
    max_year_gap: int = constants.MAX_YEAR_GAP
    max_sale_amount: float = constants.MAX_SALE_AMOUNT
    min_housing_year: int = constants.MIN_HOUSING_YEAR
    max_housing_year: int = constants.MAX_HOUSING_YEAR
    
    # Inference
    confidence_z: float = constants.CONFIDENCE_Z
    contrast_covariance_sign: int = constants.CONTRAST_COVARIANCE_SIGN
    
    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None
    
    @classmethod
    def from_json(cls, json_path: str) -> "Settings":
        """Load settings from JSON file."""
        with open(json_path, 'r') as f:
            config = json.load(f)
        return cls.from_dict(config)
    
    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "Settings":
        """Create settings from dictionary."""
        unknown = set(config_dict) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigurationError(f"Unknown settings: {sorted(unknown)}")
        return cls(**config_dict)
    
    def to_json(self, json_path: str) -> None:
        """Save settings to JSON file."""
        config_dict = {
            k: v for k, v in asdict(self).items()
            if v is not None
        }
        with open(json_path, 'w') as f:
            json.dump(config_dict, f, indent=2)
    
    def input_paths(self) -> Dict[str, Optional[str]]:
        """Input paths keyed by dataset name."""
        return {
            "property": self.property_data_path,
            "housing": self.housing_data_path,
            "sales": self.sales_data_path,
            "second_program": self.second_program_data_path,
        }
    
    def validate(self) -> None:
        """Validate settings consistency."""
        if self.inner_radius_miles <= 0:
            raise ConfigurationError("Inner radius must be positive")
        
        if self.outer_radius_miles <= self.inner_radius_miles:
            raise ConfigurationError("Outer radius must exceed inner radius")
        
        if self.distance_method not in constants.DISTANCE_METHODS:
            raise ConfigurationError(
                f"Unknown distance method: {self.distance_method}. "
                f"Valid options are: {constants.DISTANCE_METHODS}"
            )
        
        if self.max_year_gap < 0:
            raise ConfigurationError("Maximum year gap cannot be negative")
        
        if self.max_sale_amount <= 0:
            raise ConfigurationError("Maximum sale amount must be positive")
        
        if self.min_housing_year >= self.max_housing_year:
            raise ConfigurationError("Minimum housing year must be below maximum")
        
        if self.confidence_z <= 0:
            raise ConfigurationError("Confidence z value must be positive")
        
        if self.contrast_covariance_sign not in (-1, 1):
            raise ConfigurationError("Contrast covariance sign must be 1 or -1")
        
        if str(self.log_level).upper() not in constants.LOG_LEVELS:
            raise ConfigurationError(
                f"Unknown log level: {self.log_level}. "
                f"Valid options are: {constants.LOG_LEVELS}"
            )


def get_default_settings() -> Settings:
    """Get default settings instance."""
    return Settings()
