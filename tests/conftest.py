"""
Pytest configuration and fixtures.
"""
import uuid

import pytest
import sys
import os

import chromadb
from chromadb.config import Settings

# Add the parent directory to path so we can import the app
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.history import HistoryStore  # noqa: E402


@pytest.fixture(scope="session")
def chroma_client():
    """In-memory ChromaDB client shared by the test session."""
    return chromadb.EphemeralClient(settings=Settings(anonymized_telemetry=False))


@pytest.fixture
def store(chroma_client):
    """History store over a fresh, empty collection."""
    name = f"test-{uuid.uuid4().hex}"
    history = HistoryStore.from_client(chroma_client, name)
    yield history
    chroma_client.delete_collection(name)
