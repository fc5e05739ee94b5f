"""
Calculation data types.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from .operations import Operation


@dataclass
class Calculation:
    """A computed but not yet persisted calculation."""
    operation: "Operation"
    operand1: float
    operand2: float
    result: float


@dataclass
class CalculationRecord:
    """A calculation persisted in the history store."""
    id: str
    operation: str
    operand1: float
    operand2: float
    result: float
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "operation": self.operation,
            "operand1": self.operand1,
            "operand2": self.operand2,
            "result": self.result,
            "timestamp": self.timestamp.isoformat(),
        }
