"""
Tests for the operation registry.
"""
import math
from unittest.mock import patch

import pytest

from app.errors import (
    DivisionByZero, InvalidInput, ModuloByZero, UndefinedResult, UnknownOperation,
)
from app.operations import Operation, evaluate


class TestResolve:
    """Tests for Operation.resolve."""

    @pytest.mark.parametrize("name", ["add", "subtract", "multiply", "divide", "power", "modulo"])
    def test_known_operations(self, name):
        assert Operation.resolve(name).value == name

    @pytest.mark.parametrize("name", ["sqrt", "ADD", "", None])
    def test_unknown_operation(self, name):
        with pytest.raises(UnknownOperation):
            Operation.resolve(name)


class TestApply:
    """Tests for the operation functions."""

    @pytest.mark.parametrize("op, a, b, expected", [
        (Operation.ADD, 2, 3, 5),
        (Operation.SUBTRACT, 2, 3, -1),
        (Operation.MULTIPLY, -4, 2.5, -10),
        (Operation.DIVIDE, 10, 4, 2.5),
        (Operation.POWER, 2, 10, 1024),
        (Operation.POWER, 4, 0.5, 2),
        (Operation.POWER, 2, -1, 0.5),
        (Operation.MODULO, 10, 3, 1),
        (Operation.MODULO, 5.5, 2, 1.5),
    ])
    def test_results(self, op, a, b, expected):
        assert op.apply(a, b) == pytest.approx(expected)

    def test_modulo_sign_follows_dividend(self):
        """Remainder is truncated, like C fmod."""
        assert Operation.MODULO.apply(-7, 3) == -1
        assert Operation.MODULO.apply(7, -3) == 1

    def test_divide_by_zero(self):
        with pytest.raises(DivisionByZero, match="Division by zero"):
            Operation.DIVIDE.apply(1, 0)

    def test_modulo_by_zero(self):
        with pytest.raises(ModuloByZero, match="Modulo by zero"):
            Operation.MODULO.apply(1, 0.0)

    @pytest.mark.parametrize("op, a, b", [
        (Operation.POWER, 10, 400),
        (Operation.POWER, -8, 1 / 3),
        (Operation.POWER, 0, -1),
        (Operation.MULTIPLY, 1e308, 10),
        (Operation.ADD, 1e308, 1e308),
    ])
    def test_non_finite_results_rejected(self, op, a, b):
        """No NaN or infinity is ever returned as a result."""
        with pytest.raises(UndefinedResult):
            op.apply(a, b)


class TestEvaluate:
    """Tests for evaluate."""

    def test_evaluate(self):
        calculation = evaluate("add", "2", "3")

        assert calculation.operation is Operation.ADD
        assert calculation.operand1 == 2
        assert calculation.operand2 == 3
        assert calculation.result == 5

    def test_unknown_operation_checked_first(self):
        with pytest.raises(UnknownOperation):
            evaluate("sqrt", "x", "y")

    def test_invalid_input_never_computes(self):
        """Invalid operands fail before any operation function runs."""
        with patch.object(Operation, "apply") as mock_apply:
            with pytest.raises(InvalidInput):
                evaluate("add", "x", "2")
        mock_apply.assert_not_called()

    def test_result_is_finite_double(self):
        calculation = evaluate("divide", "1", "3")
        assert math.isclose(calculation.result, 1 / 3)
