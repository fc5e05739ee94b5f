"""
Calculation history storage using ChromaDB.
"""
import math
import uuid
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .config import COLLECTION_NAME
from .errors import PersistenceError, RecordNotFound
from .models import Calculation, CalculationRecord
from .operations import Operation, evaluate

logger = logging.getLogger(__name__)

_OPERATION_INDEX = {op.value: float(i) for i, op in enumerate(Operation)}


class HistoryStore:
    """ChromaDB-backed CRUD store for calculation records."""

    def __init__(self, collection):
        """
        Initialize the history store.

        Args:
            collection: ChromaDB collection holding one entry per record
        """
        self.collection = collection

    @classmethod
    def from_client(cls, client, name: str = COLLECTION_NAME) -> "HistoryStore":
        """Open (or create) the history collection on a ChromaDB client."""
        collection = client.get_or_create_collection(name=name)
        logger.info(f"Opened history collection '{name}' with {collection.count()} records")
        return cls(collection)

    def _call(self, action: str, fn: Callable, **kwargs) -> Any:
        """Run a collection call, wrapping client failures as PersistenceError."""
        try:
            return fn(**kwargs)
        except Exception as e:
            logger.error(f"History store failed to {action}: {e}")
            raise PersistenceError(f"Failed to {action}") from e

    def create(
        self,
        calculation: Calculation,
        timestamp: Optional[datetime] = None
    ) -> CalculationRecord:
        """
        Persist a new calculation and assign its id.

        Args:
            calculation: Computed calculation to store
            timestamp: Creation time, defaults to now

        Returns:
            The stored CalculationRecord

        Raises:
            PersistenceError: If the write fails
        """
        record = CalculationRecord(
            id=uuid.uuid4().hex,
            operation=calculation.operation.value,
            operand1=calculation.operand1,
            operand2=calculation.operand2,
            result=calculation.result,
            timestamp=timestamp or datetime.now(timezone.utc),
        )
        self._call(
            "save calculation",
            self.collection.add,
            ids=[record.id],
            embeddings=[_embed(record)],
            metadatas=[_to_metadata(record)],
            documents=[_describe(record)],
        )
        logger.info(f"Saved calculation {record.id}: {_describe(record)}")
        return record

    def list(self, operation: Optional[str] = None) -> List[CalculationRecord]:
        """
        Return all records, oldest first.

        Args:
            operation: Only return records for this operation name

        Returns:
            List of CalculationRecord objects, empty if none match
        """
        where = {"operation": operation} if operation else None
        results = self._call(
            "fetch history",
            self.collection.get,
            where=where,
            include=["metadatas"],
        )
        records = [
            _from_metadata(record_id, meta)
            for record_id, meta in zip(results["ids"], results["metadatas"])
        ]
        records.sort(key=lambda r: r.timestamp)
        return records

    def get(self, record_id: str) -> CalculationRecord:
        """
        Fetch a single record.

        Raises:
            RecordNotFound: If no record has this id
            PersistenceError: If the read fails
        """
        results = self._call(
            "fetch calculation",
            self.collection.get,
            ids=[record_id],
            include=["metadatas"],
        )
        if not results["ids"]:
            raise RecordNotFound(record_id)
        return _from_metadata(results["ids"][0], results["metadatas"][0])

    def update(
        self,
        record_id: str,
        operation: Any,
        num1: Any,
        num2: Any
    ) -> CalculationRecord:
        """
        Replace a record's inputs and recompute its result.

        The new inputs are validated and evaluated before the store is
        touched; the stored result is always the recomputed one.

        Raises:
            CalculationError: If the new inputs are rejected
            RecordNotFound: If no record has this id
            PersistenceError: If the read or write fails
        """
        calculation = evaluate(operation, num1, num2)
        self.get(record_id)

        record = CalculationRecord(
            id=record_id,
            operation=calculation.operation.value,
            operand1=calculation.operand1,
            operand2=calculation.operand2,
            result=calculation.result,
            timestamp=datetime.now(timezone.utc),
        )
        self._call(
            "update calculation",
            self.collection.update,
            ids=[record_id],
            embeddings=[_embed(record)],
            metadatas=[_to_metadata(record)],
            documents=[_describe(record)],
        )
        logger.info(f"Updated calculation {record_id}: {_describe(record)}")
        return record

    def delete(self, record_id: str) -> CalculationRecord:
        """
        Remove a record permanently.

        Returns:
            The record as it was before removal

        Raises:
            RecordNotFound: If no record has this id
            PersistenceError: If the read or delete fails
        """
        record = self.get(record_id)
        self._call("delete calculation", self.collection.delete, ids=[record_id])
        logger.info(f"Deleted calculation {record_id}")
        return record


def _embed(record: CalculationRecord) -> List[float]:
    # Every entry needs a vector. Vectors are stored as float32, so operands
    # are log-compressed to stay finite; exact values live in the metadata.
    return [
        _OPERATION_INDEX[record.operation],
        _compress(record.operand1),
        _compress(record.operand2),
    ]


def _compress(value: float) -> float:
    return math.copysign(math.log1p(abs(value)), value)


def _describe(record: CalculationRecord) -> str:
    return f"{record.operation}({record.operand1}, {record.operand2}) = {record.result}"


def _to_metadata(record: CalculationRecord) -> Dict[str, Any]:
    return {
        "operation": record.operation,
        "operand1": record.operand1,
        "operand2": record.operand2,
        "result": record.result,
        "timestamp": record.timestamp.isoformat(),
    }


def _from_metadata(record_id: str, meta: Dict[str, Any]) -> CalculationRecord:
    return CalculationRecord(
        id=record_id,
        operation=meta["operation"],
        operand1=float(meta["operand1"]),
        operand2=float(meta["operand2"]),
        result=float(meta["result"]),
        timestamp=datetime.fromisoformat(meta["timestamp"]),
    )
