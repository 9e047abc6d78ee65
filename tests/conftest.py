"""
Shared fixtures: a small catalog, stores over both backends, and a
service wired the way the server wires it.
"""

from typing import Dict

import pytest

from capacity.errors import PersistenceFailure
from capacity.models import Catalog, Program
from capacity.service import RegistrationService
from capacity.store import CounterStore, JsonFileBackend, MemoryBackend

ADMIN_KEY = "s3cret"


class FailingBackend(MemoryBackend):
    """Loads fine, refuses every write."""

    async def save(self, state: Dict[str, int]) -> None:
        raise PersistenceFailure("disk full")


@pytest.fixture
def catalog():
    return Catalog([
        Program(id="week1", limit=5, name="Week 1"),
        Program(id="week2", limit=24),
        Program(id="summerA", limit=18, name="Summer <A>"),
    ])


@pytest.fixture
def memory_backend():
    return MemoryBackend()


@pytest.fixture
def counters_path(tmp_path):
    return tmp_path / "counters.json"


@pytest.fixture
def file_store(counters_path):
    return CounterStore(JsonFileBackend(counters_path))


@pytest.fixture
def service(catalog, memory_backend):
    return RegistrationService(catalog, CounterStore(memory_backend), admin_key=ADMIN_KEY)


@pytest.fixture
def failing_service(catalog):
    backend = FailingBackend({"week1": 2})
    return RegistrationService(catalog, CounterStore(backend), admin_key=ADMIN_KEY)
