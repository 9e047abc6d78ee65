"""
Tests for the CapacityServer orchestrator.

Runs the full startup / shutdown cycle on a loopback port with an
in-memory store.
"""

import asyncio
import socket

import pytest

from capacity.main import CapacityServer
from capacity.models import ServerSettings
from capacity.store import CounterStore, MemoryBackend


def _settings(**overrides):
    values = {"host": "127.0.0.1", "port": 0, "keepalive_interval": 3600}
    values.update(overrides)
    return ServerSettings(**values)


class TestCapacityServer:
    async def test_startup_initializes_every_program(self, catalog):
        backend = MemoryBackend({"week1": 3})
        server = CapacityServer(catalog, _settings(), store=CounterStore(backend))
        server.shutdown()
        await asyncio.wait_for(server.run(), timeout=5)

        assert backend.saved == {"week1": 3, "week2": 0, "summerA": 0}

    async def test_shutdown_cancels_keepalive(self, catalog):
        settings = _settings(keepalive_url="http://127.0.0.1:9/")
        server = CapacityServer(catalog, settings, store=CounterStore(MemoryBackend()))
        task = asyncio.create_task(server.run())

        while not server._tasks:
            await asyncio.sleep(0.01)
        server.shutdown()
        await asyncio.wait_for(task, timeout=5)

        assert all(t.done() for t in server._tasks)
        assert server._runner.server is None

    async def test_bind_failure_cleans_up_runner(self, catalog):
        with socket.socket() as taken:
            taken.bind(("127.0.0.1", 0))
            taken.listen()
            port = taken.getsockname()[1]

            server = CapacityServer(
                catalog, _settings(port=port), store=CounterStore(MemoryBackend())
            )
            with pytest.raises(OSError):
                await server.run()

        assert server._runner.server is None
