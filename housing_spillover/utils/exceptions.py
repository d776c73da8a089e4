"""Custom exceptions for the housing spillover analysis."""


class SpilloverError(Exception):
    """Base exception for the housing_spillover package."""
    pass


class ConfigurationError(SpilloverError):
    """Raised when configuration is invalid."""
    pass


class DataValidationError(SpilloverError):
    """Raised when a stage table violates its schema."""
    pass


class CoordinateParseError(DataValidationError):
    """Raised when a combined coordinate field cannot be parsed."""
    pass


class InsufficientDataError(SpilloverError):
    """Raised when there is insufficient data for calculation."""
    pass


class SingularDesignError(SpilloverError):
    """Raised when a regression design matrix is rank deficient."""
    pass


class ModelSpecificationError(SpilloverError):
    """Raised when a model specification cannot be applied to the data."""
    pass
