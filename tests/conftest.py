"""
Shared pytest fixtures and configuration for redmap tests.

This module provides:
- An isolated in-memory store per test
- Engines bound to that store with the shared record types registered
- Settings cache cleanup for test isolation

Usage:
    Fixtures are auto-discovered by pytest. Simply use them as function
    arguments:

    @pytest.mark.asyncio
    async def test_something(engine, store):
        ...
"""

import sys
from pathlib import Path
from typing import Generator

import pytest

# Ensure redmap package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from redmap.engine import Engine
from redmap.settings import StoreSettings, clear_settings_cache
from redmap.stores import InMemoryStore
from tests._support import Counter, Note, Profile
from tests._support.fault_injection import FaultyStore


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_cache_fixture() -> Generator[None, None, None]:
    """Clear the cached settings before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Store / Engine Fixtures
# =============================================================================


@pytest.fixture
def settings() -> StoreSettings:
    return StoreSettings(prefix="test")


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def faulty_store(store: InMemoryStore) -> FaultyStore:
    """The shared in-memory store wrapped for fault injection."""
    return FaultyStore(store)


@pytest.fixture
def engine(store: InMemoryStore, settings: StoreSettings) -> Engine:
    """Engine over the in-memory store with every test model registered."""
    engine = Engine(store, settings)
    for model_type in (Profile, Counter, Note):
        engine.register(model_type)
    return engine


@pytest.fixture
def faulty_engine(faulty_store: FaultyStore, settings: StoreSettings) -> Engine:
    engine = Engine(faulty_store, settings)
    engine.register(Profile)
    return engine
