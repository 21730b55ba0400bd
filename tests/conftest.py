# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# This module provides pytest fixtures and configuration for all tests.
#
# Key features:
# - Sets up environment variables before any imports
# - Gives every test an empty board store
# - Provides common fixtures for testing
# =============================================================================

import os

# =============================================================================
# Set up test environment BEFORE any imports
# =============================================================================
# This must happen before importing app.config which loads settings immediately

os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("REBALANCE_THRESHOLD", "50")
os.environ.setdefault("MAX_KEY_LENGTH", "512")
os.environ.setdefault("MAX_BULK_KEYS", "10000")

import pytest

from lib.board_store import BoardStore


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def fresh_store():
    """Start every test from an empty store."""
    BoardStore.reset()
    yield BoardStore.get_store()
    BoardStore.reset()


@pytest.fixture
def store(fresh_store):
    """The board store for the current test."""
    return fresh_store


@pytest.fixture
def board(store):
    """An empty board."""
    return store.insert_board("Sprint 12")


@pytest.fixture
def sample_positions():
    """Sibling rows as the store returns them, deliberately unsorted."""
    return [
        {"id": "col-c", "position": "a2"},
        {"id": "col-a", "position": "a0"},
        {"id": "col-b", "position": "a1"},
    ]


@pytest.fixture
def client():
    """FastAPI test client."""
    from fastapi.testclient import TestClient

    from app.main import app

    with TestClient(app) as test_client:
        yield test_client
