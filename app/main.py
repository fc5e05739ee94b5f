"""
FastAPI entrypoint for the Calculator service.
"""
import json
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import List, Optional

import chromadb
from chromadb.config import Settings
from pydantic import BaseModel
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from .config import (
    SERVICE_NAME, SERVICE_VERSION, HOST, PORT,
    CHROMA_PERSIST_DIR, COLLECTION_NAME,
    LOG_FILE, ERROR_LOG_FILE, LOG_MAX_BYTES, LOG_BACKUP_COUNT,
    RATE_LIMIT, STRICT_DELETE,
)
from .calculator import CalculatorService
from .errors import CalculationError, PersistenceError, RecordNotFound
from .history import HistoryStore
from .models import CalculationRecord
from .operations import Operation

# Attributes present on every LogRecord, excluded from the JSON extras dict
_LOG_RECORD_BUILTIN_ATTRS = {
    'args', 'asctime', 'created', 'exc_info', 'exc_text', 'filename',
    'funcName', 'levelname', 'levelno', 'lineno', 'message', 'module',
    'msecs', 'msg', 'name', 'pathname', 'process', 'processName',
    'relativeCreated', 'stack_info', 'thread', 'threadName', 'taskName',
}


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON for machine-readable file output."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        # Merge any extra={} fields passed by the caller
        for key, val in record.__dict__.items():
            if key not in _LOG_RECORD_BUILTIN_ATTRS and key not in entry:
                entry[key] = val
        return json.dumps(entry, default=str)


# Console handler: human-readable
_console_handler = logging.StreamHandler()
_console_handler.setFormatter(
    logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
)

# File handlers: JSON, rotated. Everything to one file, errors also to another
_file_handler = RotatingFileHandler(
    LOG_FILE, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding='utf-8'
)
_file_handler.setFormatter(JSONFormatter())

_error_file_handler = RotatingFileHandler(
    ERROR_LOG_FILE, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT, encoding='utf-8'
)
_error_file_handler.setLevel(logging.ERROR)
_error_file_handler.setFormatter(JSONFormatter())

logging.basicConfig(
    level=logging.INFO,
    handlers=[_console_handler, _file_handler, _error_file_handler],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    logger.info(f"Starting {SERVICE_NAME} {SERVICE_VERSION}")

    # The store is shared by every request; failing to open it is fatal
    try:
        client = chromadb.PersistentClient(
            path=CHROMA_PERSIST_DIR,
            settings=Settings(anonymized_telemetry=False)
        )
        app.state.history_store = HistoryStore.from_client(client, COLLECTION_NAME)
    except Exception:
        logger.exception(f"Cannot open history store at {CHROMA_PERSIST_DIR}")
        raise

    logger.info(f"Calculator service ready on port {PORT}")
    yield
    # Shutdown (nothing to clean up)


# Rate limiter
limiter = Limiter(key_func=get_remote_address)

# Initialize FastAPI app
app = FastAPI(
    title="Calculator Service",
    description="Arithmetic operations with a persistent calculation history",
    version=SERVICE_VERSION,
    lifespan=lifespan
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every HTTP request with method, path, query, status code, and duration."""
    start_time = time.time()
    response = await call_next(request)
    duration_ms = round((time.time() - start_time) * 1000, 2)
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms}ms)",
        extra={
            "method": request.method,
            "path": request.url.path,
            "query": dict(request.query_params),
            "ip": request.client.host if request.client else None,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
        },
    )
    return response


# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Response models
class CalculationResponse(BaseModel):
    """Response model for the operation endpoints."""
    result: float
    id: str


class CalculationOut(BaseModel):
    """A calculation history record."""
    id: str
    operation: str
    operand1: float
    operand2: float
    result: float
    timestamp: datetime


class DeleteResponse(BaseModel):
    """Response model for history deletion."""
    message: str
    deleted: Optional[CalculationOut]


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str


class VersionResponse(BaseModel):
    """Response model for version endpoint."""
    version: str


# Dependencies
def get_history_store(request: Request) -> HistoryStore:
    """Return the history store opened at startup."""
    return request.app.state.history_store


def get_calculator(store: HistoryStore = Depends(get_history_store)) -> CalculatorService:
    return CalculatorService(store)


def _to_out(record: CalculationRecord) -> CalculationOut:
    return CalculationOut(**record.to_dict())


def _calculate(
    operation: Operation,
    num1: Optional[str],
    num2: Optional[str],
    calculator: CalculatorService
) -> CalculationResponse:
    """Run one calculation for an operation endpoint and map errors to HTTP."""
    try:
        record = calculator.compute(operation.value, num1, num2)
    except CalculationError as e:
        logger.warning(f"Error in /{operation.value}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError:
        logger.exception(f"Error saving {operation.value} calculation")
        raise HTTPException(status_code=500, detail="Failed to save calculation")

    return CalculationResponse(result=record.result, id=record.id)


# Operation endpoints
@app.get("/add", response_model=CalculationResponse)
@limiter.limit(RATE_LIMIT)
def add_endpoint(
    request: Request,
    num1: Optional[str] = Query(None),
    num2: Optional[str] = Query(None),
    calculator: CalculatorService = Depends(get_calculator),
):
    """Add num2 to num1."""
    return _calculate(Operation.ADD, num1, num2, calculator)


@app.get("/subtract", response_model=CalculationResponse)
@limiter.limit(RATE_LIMIT)
def subtract_endpoint(
    request: Request,
    num1: Optional[str] = Query(None),
    num2: Optional[str] = Query(None),
    calculator: CalculatorService = Depends(get_calculator),
):
    """Subtract num2 from num1."""
    return _calculate(Operation.SUBTRACT, num1, num2, calculator)


@app.get("/multiply", response_model=CalculationResponse)
@limiter.limit(RATE_LIMIT)
def multiply_endpoint(
    request: Request,
    num1: Optional[str] = Query(None),
    num2: Optional[str] = Query(None),
    calculator: CalculatorService = Depends(get_calculator),
):
    """Multiply num1 by num2."""
    return _calculate(Operation.MULTIPLY, num1, num2, calculator)


@app.get("/divide", response_model=CalculationResponse)
@limiter.limit(RATE_LIMIT)
def divide_endpoint(
    request: Request,
    num1: Optional[str] = Query(None),
    num2: Optional[str] = Query(None),
    calculator: CalculatorService = Depends(get_calculator),
):
    """Divide num1 by num2. A zero divisor is rejected."""
    return _calculate(Operation.DIVIDE, num1, num2, calculator)


@app.get("/power", response_model=CalculationResponse)
@limiter.limit(RATE_LIMIT)
def power_endpoint(
    request: Request,
    num1: Optional[str] = Query(None, description="Base"),
    num2: Optional[str] = Query(None, description="Exponent"),
    calculator: CalculatorService = Depends(get_calculator),
):
    """Raise num1 to the power num2."""
    return _calculate(Operation.POWER, num1, num2, calculator)


@app.get("/modulo", response_model=CalculationResponse)
@limiter.limit(RATE_LIMIT)
def modulo_endpoint(
    request: Request,
    num1: Optional[str] = Query(None),
    num2: Optional[str] = Query(None),
    calculator: CalculatorService = Depends(get_calculator),
):
    """Remainder of num1 divided by num2. A zero divisor is rejected."""
    return _calculate(Operation.MODULO, num1, num2, calculator)


# History endpoints
@app.get("/history", response_model=List[CalculationOut])
def list_history(
    operation: Optional[str] = Query(None, description="Only return this operation"),
    store: HistoryStore = Depends(get_history_store),
):
    """
    List calculation history, oldest first.
    """
    try:
        records = store.list(operation)
    except PersistenceError:
        logger.exception("Error fetching history")
        raise HTTPException(status_code=500, detail="Failed to fetch history")
    return [_to_out(r) for r in records]


@app.get("/history/{record_id}", response_model=CalculationOut)
def get_history(record_id: str, store: HistoryStore = Depends(get_history_store)):
    """
    Get a single calculation by id.
    """
    try:
        record = store.get(record_id)
    except RecordNotFound as e:
        logger.warning(str(e))
        raise HTTPException(status_code=404, detail="Calculation not found")
    except PersistenceError:
        logger.exception(f"Error fetching calculation {record_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch calculation")
    return _to_out(record)


@app.put("/history/{record_id}", response_model=CalculationOut)
def update_history(
    record_id: str,
    num1: Optional[str] = Query(None),
    num2: Optional[str] = Query(None),
    operation: Optional[str] = Query(None),
    store: HistoryStore = Depends(get_history_store),
):
    """
    Replace a calculation's inputs. The result is recomputed server-side.
    """
    if not num1 or not num2 or not operation:
        logger.warning(f"Error in /history/{record_id}: Invalid or missing parameters")
        raise HTTPException(
            status_code=400,
            detail="Invalid or missing parameters: num1, num2, and operation are required"
        )

    try:
        record = store.update(record_id, operation, num1, num2)
    except CalculationError as e:
        logger.warning(f"Error in /history/{record_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except RecordNotFound as e:
        logger.warning(str(e))
        raise HTTPException(status_code=404, detail="Calculation not found")
    except PersistenceError:
        logger.exception(f"Error updating calculation {record_id}")
        raise HTTPException(status_code=500, detail="Failed to update calculation")
    return _to_out(record)


@app.delete("/history/{record_id}", response_model=DeleteResponse)
def delete_history(record_id: str, store: HistoryStore = Depends(get_history_store)):
    """
    Delete a calculation permanently.

    An unknown id answers with ``deleted: null`` unless STRICT_DELETE is set.
    """
    try:
        record = store.delete(record_id)
    except RecordNotFound as e:
        if STRICT_DELETE:
            logger.warning(str(e))
            raise HTTPException(status_code=404, detail="Calculation not found")
        logger.info(f"Delete of unknown calculation {record_id} ignored")
        return DeleteResponse(message="Calculation deleted", deleted=None)
    except PersistenceError:
        logger.exception(f"Error deleting calculation {record_id}")
        raise HTTPException(status_code=500, detail="Failed to delete calculation")
    return DeleteResponse(message="Calculation deleted", deleted=_to_out(record))


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.
    """
    return HealthResponse(status="healthy")


@app.get("/version", response_model=VersionResponse)
async def version_endpoint():
    """
    Report the service version.
    """
    logger.info(f"Version endpoint accessed: {SERVICE_VERSION}")
    return VersionResponse(version=SERVICE_VERSION)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=HOST, port=PORT)
