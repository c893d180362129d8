"""Errors raised by layertrans, and the per-layer issue annotations."""

from typing import Optional

# Annotations attached to a single layer's record. These never abort a
# run; the rest of the stack is still computed.
NON_POSITIVE_KAPPA = "non-positive absorption coefficient (population inversion)"
RADIATIVE_PROBABILITY_OUT_OF_RANGE = "radiative probability outside [0, 1]"
NON_FINITE_OPTICAL_DEPTH = "optical depth is not finite"

PHYSICAL_INCONSISTENCIES = (
    NON_POSITIVE_KAPPA,
    RADIATIVE_PROBABILITY_OUT_OF_RANGE,
    NON_FINITE_OPTICAL_DEPTH,
)


class LayertransError(Exception):
    """Base exception for layertrans errors."""

    def __init__(self, message: str, suggestions: Optional[list[str]] = None):
        """Initialize with message and optional suggestions.

        Args:
            message: Error description
            suggestions: Optional list of actionable suggestions
        """
        self.message = message
        self.suggestions = suggestions or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with suggestions."""
        formatted = f"{self.message}"
        if self.suggestions:
            formatted += "\n\nSuggestions:"
            for suggestion in self.suggestions:
                formatted += f"\n  - {suggestion}"
        return formatted


class ConfigurationError(LayertransError, ValueError):
    """Raised for scenario parameters that cannot describe an atmosphere.

    Always raised before any layer is built.
    """


class NumericDegeneracy(LayertransError, ZeroDivisionError):
    """Raised when a conversion would divide by zero, e.g. zero frequency."""


def require_number(name: str, value) -> float:
    """Converts a scenario parameter to float, ConfigurationError if it
    is not a number."""
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"{name} must be a number, got {value!r}"
        ) from None


def require_positive(name: str, value: float) -> float:
    """Checks a scenario parameter is a finite, strictly positive number.

    Args:
        name: parameter name used in the message.
        value: the value to check.

    Returns:
        value as a float.
    """
    value = require_number(name, value)
    if not value > 0 or value == float("inf"):
        raise ConfigurationError(
            f"{name} must be positive and finite, got {value}",
            [f"Set {name} to a value greater than zero"],
        )
    return value
