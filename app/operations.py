"""
Registry of the supported binary operations.
"""
import math
import logging
from enum import Enum
from typing import Any, Callable, Dict

from .errors import DivisionByZero, ModuloByZero, UndefinedResult, UnknownOperation
from .models import Calculation
from .validation import validate_operands

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    """The fixed set of operations the service can perform."""
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    POWER = "power"
    MODULO = "modulo"

    @classmethod
    def resolve(cls, name: Any) -> "Operation":
        """
        Look up an operation by name.

        Raises:
            UnknownOperation: If the name is not a supported operation
        """
        try:
            return cls(name)
        except ValueError:
            raise UnknownOperation(name)

    def apply(self, a: float, b: float) -> float:
        """
        Apply the operation to two operands.

        Raises:
            DivisionByZero, ModuloByZero: On a zero divisor
            UndefinedResult: If the result is not a finite real number
        """
        result = _FUNCTIONS[self](a, b)
        if not math.isfinite(result):
            raise UndefinedResult(f"Result of {self.value}({a}, {b}) is not a finite number")
        return result


def _add(a: float, b: float) -> float:
    return a + b


def _subtract(a: float, b: float) -> float:
    return a - b


def _multiply(a: float, b: float) -> float:
    return a * b


def _divide(a: float, b: float) -> float:
    if b == 0:
        raise DivisionByZero()
    return a / b


def _power(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except OverflowError:
        raise UndefinedResult(f"Result of power({a}, {b}) is too large")
    except ValueError:
        raise UndefinedResult(f"power({a}, {b}) has no real result")


def _modulo(a: float, b: float) -> float:
    if b == 0:
        raise ModuloByZero()
    # Truncated remainder: the sign follows the dividend
    return math.fmod(a, b)


_FUNCTIONS: Dict[Operation, Callable[[float, float], float]] = {
    Operation.ADD: _add,
    Operation.SUBTRACT: _subtract,
    Operation.MULTIPLY: _multiply,
    Operation.DIVIDE: _divide,
    Operation.POWER: _power,
    Operation.MODULO: _modulo,
}


def evaluate(operation: Any, num1: Any, num2: Any) -> Calculation:
    """
    Resolve, validate and compute a calculation without persisting it.

    Args:
        operation: Operation name
        num1: First operand, raw
        num2: Second operand, raw

    Returns:
        Calculation holding the parsed operands and the result

    Raises:
        CalculationError: If the operation is unknown, the operands are
            invalid, or the computation has no valid result
    """
    op = Operation.resolve(operation)
    a, b = validate_operands(num1, num2)
    result = op.apply(a, b)
    logger.debug(f"Evaluated {op.value}({a}, {b}) = {result}")
    return Calculation(operation=op, operand1=a, operand2=b, result=result)
