"""
Configuration constants for the Calculator service.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# Service identity
SERVICE_NAME = os.getenv("SERVICE_NAME", "calculator-microservice")
SERVICE_VERSION = os.getenv("SERVICE_VERSION", "3.0")

# HTTP server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))

# ChromaDB configuration
CHROMA_PERSIST_DIR = os.getenv("CHROMA_PERSIST_DIR", "./chroma_db")
COLLECTION_NAME = os.getenv("COLLECTION_NAME", "calculations")

# Logging
LOG_FILE = os.getenv("LOG_FILE", "combined.log")
ERROR_LOG_FILE = os.getenv("ERROR_LOG_FILE", "error.log")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", str(10 * 1024 * 1024)))  # 10MB
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "3"))

# Guardrails
RATE_LIMIT = os.getenv("RATE_LIMIT", "120/minute")

# Deleting an unknown id answers 404 instead of an empty success
STRICT_DELETE = os.getenv("STRICT_DELETE", "false").lower() in ("1", "true", "yes")
