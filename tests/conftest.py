"""
Pytest configuration and fixtures
"""

import pytest

from heritageflow.controller import PlaybackController
from heritageflow.ids import CounterIdFactory
from heritageflow.orchestrator import ContentOrchestrator

from tests.fakes import FakeGenerativeClient


@pytest.fixture
def fake_client() -> FakeGenerativeClient:
    return FakeGenerativeClient()


@pytest.fixture
def orchestrator(fake_client) -> ContentOrchestrator:
    return ContentOrchestrator(fake_client, id_factory=CounterIdFactory())


@pytest.fixture
def controller(orchestrator) -> PlaybackController:
    return PlaybackController(orchestrator)
