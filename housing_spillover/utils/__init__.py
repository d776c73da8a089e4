"""Shared utilities: exceptions and logging setup."""

from .exceptions import (
    SpilloverError,
    ConfigurationError,
    DataValidationError,
    CoordinateParseError,
    InsufficientDataError,
    SingularDesignError,
    ModelSpecificationError
)
from .logging import setup_logging

__all__ = [
    "SpilloverError",
    "ConfigurationError",
    "DataValidationError",
    "CoordinateParseError",
    "InsufficientDataError",
    "SingularDesignError",
    "ModelSpecificationError",
    "setup_logging"
]
