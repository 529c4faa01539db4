"""Custom exception classes for the serofoi package.

This module defines the hierarchy of exceptions raised by the validation layer
and the model specification assembler. All custom exceptions inherit from the
base SeroFoiError class to allow for unified exception handling when needed.
They also inherit from ValueError, as each of them reports an input that has the
right type but an unusable value or structure.

Every one of these errors is raised before any numeric computation begins. The
sampler's own numerical problems (divergences, high R-hat, low effective sample
size) are never raised; they are reported as diagnostics on the fitted model.
"""


class SeroFoiError(ValueError):
    """Base class for all exceptions in the serofoi package.

    Example:
        >>> try:
        ...     sf.fit_seromodel(serosurvey, model_type="time")
        ... except SeroFoiError as e:
        ...     print(f"serofoi error occurred: {e}")
    """


class SchemaError(SeroFoiError):
    """Raised when a table is missing required columns or a column has the wrong
    type (e.g., a non-numeric ``n_sample`` column in a serosurvey).
    """


class DesignError(SeroFoiError):
    """Raised when a survey design has ambiguous age bins.

    Age bins are inclusive of both bounds, so the ``age_max`` of one bin cannot
    equal the ``age_min`` of another.
    """


class ShapeError(SeroFoiError):
    """Raised when an FoI table, FoI-index table or transition matrix does not
    have the expected columns or dimensions.
    """


class DomainError(SeroFoiError):
    """Raised when a scalar lies outside of its valid range (e.g., a negative
    seroreversion rate or a group size larger than the maximum age).
    """


class ConsistencyError(SeroFoiError):
    """Raised when two inputs disagree with each other, such as an FoI-index table
    whose length differs from the maximum age of the serosurvey, or an index
    sequence that skips or decreases.
    """


class MissingPriorError(SeroFoiError):
    """Raised when a model component is enabled but its prior was not given."""


class InvalidPriorError(SeroFoiError):
    """Raised when a prior family is not supported at the site it is used, or when
    the parameters of a prior are invalid.
    """
