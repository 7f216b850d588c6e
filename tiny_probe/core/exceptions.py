"""
Exceptions raised by tiny-probe.

Both error kinds derive from ValueError, so callers that already guard
construction and combination with ``except ValueError`` keep working.
"""

import numbers


class InvalidConfigurationError(ValueError):
    """Raised when a structure is constructed with unusable parameters."""


class ShapeMismatchError(ValueError):
    """Raised when combining Bloom filters whose bucket or hash counts differ."""


def require_count(name: str, value: object, minimum: int) -> int:
    """
    Validate an integer configuration parameter.

    Args:
        name: Parameter name used in the error message.
        value: The value to check. Floats and bools are rejected rather than
               truncated.
        minimum: Smallest accepted value.

    Returns:
        The value as a plain int.

    Raises:
        InvalidConfigurationError: If value is not an integer or is below minimum.
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidConfigurationError(
            f"{name} must be at least {minimum}, got {value}"
        )
    return int(value)
