"""Shared fixtures for extraction tests."""

import sys
from pathlib import Path
from typing import Iterable, Optional

import pytest
from fastapi.testclient import TestClient


def ensure_src_on_path() -> None:
    root = Path(__file__).resolve().parent.parent
    src_path = root / "src"
    if str(src_path) not in sys.path:
        sys.path.append(str(src_path))


ensure_src_on_path()

from skulabels.api.app import app
from skulabels.api.dependencies import get_orchestrator_factory
from skulabels.models.domain import LabelRecord, RemoteProvider
from skulabels.services.base_backend import ExtractionBackend
from skulabels.services.orchestrator import Orchestrator


class ScriptedBackend(ExtractionBackend):
    """Replays one scripted outcome per call; the last outcome repeats."""

    name = "scripted"

    def __init__(self, outcomes: Iterable[object]):
        self.outcomes = list(outcomes)
        self.calls = 0
        self.texts: list[str] = []

    async def extract(self, text: str) -> list[LabelRecord]:
        outcome = self.outcomes[min(self.calls, len(self.outcomes) - 1)]
        self.calls += 1
        self.texts.append(text)
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)


class RecordedSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def recorded_sleep() -> RecordedSleep:
    return RecordedSleep()


@pytest.fixture
def records_a() -> list[LabelRecord]:
    return [
        LabelRecord("ABC123", "7891234567890", 2),
        LabelRecord("XYZ999", "7890000000001", 1),
    ]


@pytest.fixture
def records_b() -> list[LabelRecord]:
    return [LabelRecord("ABC123", "7891234567890", 3)]


@pytest.fixture
def records_c() -> list[LabelRecord]:
    return [LabelRecord("QQQ111", "1234567890128", 1)]


@pytest.fixture(scope="function")
def orchestrator() -> Orchestrator:
    return Orchestrator()


@pytest.fixture
def requested_providers() -> list[Optional[RemoteProvider]]:
    return []


@pytest.fixture(scope="function")
def client(orchestrator: Orchestrator, requested_providers: list[Optional[RemoteProvider]]):
    def orchestrator_for(provider: Optional[RemoteProvider]) -> Orchestrator:
        requested_providers.append(provider)
        return orchestrator

    app.dependency_overrides[get_orchestrator_factory] = lambda: orchestrator_for
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def scripted_backend():
    return ScriptedBackend
