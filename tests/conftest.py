"""
Shared fixtures for the HPC Cache Engine tests.
"""

import pytest

from hpccache_engine.connectors import MockConnector
from hpccache_engine.engine.wait_context import WaitContext
from hpccache_engine.models import WaitSettings


class FakeClockContext(WaitContext):
    """Wait context on a simulated clock; sleeping advances time instantly."""

    def __init__(self, deadline=None):
        self.current = 0.0
        self.sleeps = []
        super().__init__(deadline=deadline, clock=lambda: self.current)

    def sleep(self, seconds):
        self.check()
        self.sleeps.append(seconds)
        self.current += seconds
        self.check()


@pytest.fixture
def connector():
    """In-memory control plane."""
    return MockConnector()


@pytest.fixture
def fake_context():
    return FakeClockContext()


@pytest.fixture
def settings():
    """Poll cadence of the cache create wait with a 60 second timeout."""
    return WaitSettings(delay=10, min_timeout=30, timeout=60)
