"""
Error types and field checks for the laminate and tube models.

All errors derive from ``ValueError`` so callers that only care about bad
input can catch that. Each validation error carries the name of the field
that failed so it can be surfaced next to the offending input.
"""

import math
import numbers
from typing import Optional


class ValidationError(ValueError):
    """
    Invalid or missing value supplied to a constructor.

    Parameters
    ----------
    field : str
        Name of the offending field.
    message : str
        Human readable description of the problem.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class ProfileRangeError(ValueError):
    """Geometry lookup outside the axial range of a profile."""

    def __init__(self, x: float, x_min: float, x_max: float):
        self.x = x
        self.x_min = x_min
        self.x_max = x_max
        super().__init__(
            f"Position {x:.6g} outside profile range [{x_min:.6g}, {x_max:.6g}]"
        )


class EmptyLaminateError(ValueError):
    """Properties requested from a laminate with no plies."""

    def __init__(self, name: Optional[str] = None):
        label = f" '{name}'" if name else ""
        super().__init__(f"Laminate{label} has no plies")


# =============================================================================
# Field checks used by the constructors
# =============================================================================


def check_number(value, field: str) -> float:
    """Return ``value`` as a float or raise if it is missing or not numeric."""
    if value is None or isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValidationError(field, "missing or not numeric.")
    if math.isnan(value):
        raise ValidationError(field, "missing or not numeric.")
    return float(value)


def check_positive(value, field: str) -> float:
    value = check_number(value, field)
    if value <= 0.0:
        raise ValidationError(field, "must be greater than zero.")
    return value


def check_non_negative(value, field: str) -> float:
    value = check_number(value, field)
    if value < 0.0:
        raise ValidationError(field, "must not be negative.")
    return value


def check_poisson(value, field: str) -> float:
    """Poisson's ratios are limited to [0, 0.5]."""
    value = check_number(value, field)
    if value < 0.0 or value > 0.5:
        raise ValidationError(field, f"must be between 0 and 0.5, found {value}.")
    return value


def check_fraction(value, field: str) -> float:
    """Volume and mass fractions are limited to [0, 1]."""
    value = check_number(value, field)
    if value < 0.0 or value > 1.0:
        raise ValidationError(field, f"must be between 0 and 1, found {value}.")
    return value
