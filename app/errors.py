"""
Exceptions raised by the calculator core.
"""


class CalculationError(Exception):
    """Base class for errors caused by the caller's input."""
    pass


class InvalidInput(CalculationError):
    """Raised when an operand is missing or not a finite number."""
    pass


class UnknownOperation(CalculationError):
    """Raised when an operation name is not in the registry."""

    def __init__(self, name):
        self.name = name
        super().__init__(f"Unsupported operation: {name}")


class DivisionByZero(CalculationError):
    """Raised when dividing by zero."""

    def __init__(self):
        super().__init__("Division by zero is not allowed")


class ModuloByZero(CalculationError):
    """Raised when taking a remainder modulo zero."""

    def __init__(self):
        super().__init__("Modulo by zero is not allowed")


class UndefinedResult(CalculationError):
    """Raised when an operation has no finite real result."""
    pass


class HistoryError(Exception):
    """Base class for history store errors."""
    pass


class RecordNotFound(HistoryError):
    """Raised when no record has the requested id."""

    def __init__(self, record_id):
        self.record_id = record_id
        super().__init__(f"Calculation {record_id} not found")


class PersistenceError(HistoryError):
    """Raised when the underlying store fails to read or write."""
    pass
