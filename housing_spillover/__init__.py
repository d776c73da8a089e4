"""
housing_spillover: effect of nearby subsidized housing on home sale prices

This package matches property sales to the nearest subsidized-housing unit,
labels each sale by its timing and distance relative to that unit, and fits
log-linear hedonic regressions with year and tract fixed effects.
"""

__version__ = "0.1.0"
__author__ = "Housing Spillover Analysis Team"

from .config import constants
from .models import cohorts, hedonic
from .pipeline import SpilloverPipeline, PipelineResults

__all__ = [
    "constants",
    "cohorts",
    "hedonic",
    "SpilloverPipeline",
    "PipelineResults"
]
