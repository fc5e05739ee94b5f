"""
Operand validation.
"""
import math
from typing import Any, Tuple

from .errors import InvalidInput


def parse_operand(value: Any, name: str) -> float:
    """
    Parse a single operand into a finite float.

    Args:
        value: Raw value, usually a query string parameter
        name: Parameter name used in the error message

    Returns:
        The operand as a float

    Raises:
        InvalidInput: If the value is missing, non-numeric or not finite
    """
    message = f"Invalid input: {name} must be a finite number"

    if value is None or isinstance(value, bool):
        raise InvalidInput(message)

    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise InvalidInput(message)

    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidInput(message)

    if not math.isfinite(number):
        raise InvalidInput(message)

    return number


def validate_operands(num1: Any, num2: Any) -> Tuple[float, float]:
    """Validate both operands, returning them as floats."""
    return parse_operand(num1, "num1"), parse_operand(num2, "num2")
