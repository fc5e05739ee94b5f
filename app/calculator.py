"""
Calculation service: validate, compute and record a calculation.
"""
from typing import Any

from .history import HistoryStore
from .models import CalculationRecord
from .operations import evaluate


class CalculatorService:
    """Computes calculations and records each one in the history store."""

    def __init__(self, store: HistoryStore):
        self.store = store

    def compute(self, operation: Any, num1: Any, num2: Any) -> CalculationRecord:
        """
        Compute a calculation and persist it.

        Nothing is written unless the calculation succeeds, and the result
        is only returned once the record has been stored.

        Args:
            operation: Operation name
            num1: First operand, raw
            num2: Second operand, raw

        Returns:
            The persisted CalculationRecord, including its id

        Raises:
            CalculationError: If the request is rejected before computing
            PersistenceError: If the record could not be saved
        """
        calculation = evaluate(operation, num1, num2)
        return self.store.create(calculation)
