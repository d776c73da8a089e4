"""Cohort classification and hedonic regression models."""

from .cohorts import (
    CohortGroup,
    Grouping,
    classify,
    classify_inside_only,
    classify_full,
    assign_groups
)
from .hedonic import (
    ModelSpec,
    DEFAULT_MODEL_SPECS,
    CoefficientEstimate,
    HedonicRegressor,
    HedonicResults
)

__all__ = [
    "CohortGroup",
    "Grouping",
    "classify",
    "classify_inside_only",
    "classify_full",
    "assign_groups",
    "ModelSpec",
    "DEFAULT_MODEL_SPECS",
    "CoefficientEstimate",
    "HedonicRegressor",
    "HedonicResults"
]
