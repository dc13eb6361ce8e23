"""Shared fixtures for the quote cache tests."""
import pytest

from fakes import FakeClock, MockQuoteProvider, RecordingStore
from quotecache.core.data.freshness import FreshnessPolicy
from quotecache.core.data.providers.cached import CachedQuoteProvider
from quotecache.core.data.store.memory import InMemoryTelemetrySink


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def telemetry():
    return InMemoryTelemetrySink()


@pytest.fixture
def upstream():
    return MockQuoteProvider(
        prices={"AAPL": 190.0, "MSFT": 410.0, "GOOGL": 140.0, "TSLA": 200.0},
        trending=[f"T{i:02d}" for i in range(1, 51)],
    )


@pytest.fixture
def provider(upstream, store, telemetry, clock):
    return CachedQuoteProvider(upstream, store, telemetry, FreshnessPolicy(), clock=clock)
