"""
Main entry point — the CapacityServer orchestrator.

Loads the catalog and the counter file, starts the aiohttp site and the
optional keep-alive pinger in a single asyncio event loop, and handles
graceful shutdown on Ctrl+C / SIGTERM.

Usage:
    python -m capacity.main
    capacity-tracker
"""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import List, Optional

import aiohttp
from aiohttp import web

from capacity import notifier
from capacity.config import load_config
from capacity.models import Catalog, ServerSettings
from capacity.pinger import KeepAlive
from capacity.server import create_app
from capacity.service import RegistrationService
from capacity.store import CounterStore, JsonFileBackend


class CapacityServer:
    """
    Top-level orchestrator.

    Owns the counter store, the web runner and the keep-alive task.
    """

    def __init__(
        self,
        catalog: Catalog,
        settings: ServerSettings,
        store: Optional[CounterStore] = None,
    ) -> None:
        self.catalog = catalog
        self.settings = settings
        self.store = store if store is not None else CounterStore(
            JsonFileBackend(settings.counters_file)
        )
        self.service = RegistrationService(catalog, self.store, settings.admin_key)
        self._runner: Optional[web.AppRunner] = None
        self._tasks: List[asyncio.Task] = []
        self._stopped = asyncio.Event()

    async def run(self) -> None:
        """
        Prepare the counter file, serve requests and wait until interrupted.
        """
        notifier.print_banner()

        counts = await self.store.initialize_missing(self.catalog.ids)
        notifier.print_catalog(self.catalog, counts)
        if not self.service.admin_enabled:
            notifier.print_admin_disabled()

        app = create_app(self.service, self.settings)
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        try:
            site = web.TCPSite(self._runner, self.settings.host, self.settings.port)
            await site.start()
            notifier.print_listening(
                self.settings.host, self.settings.port, self.settings.counters_file
            )

            async with aiohttp.ClientSession() as session:
                if self.settings.keepalive_url:
                    pinger = KeepAlive(
                        self.settings.keepalive_url, self.settings.keepalive_interval
                    )
                    self._tasks.append(
                        asyncio.create_task(pinger.start(session), name="keep-alive")
                    )
                await self._stopped.wait()
                for task in self._tasks:
                    task.cancel()
                await asyncio.gather(*self._tasks, return_exceptions=True)
        finally:
            await self._runner.cleanup()

    def shutdown(self) -> None:
        """Stop serving and cancel the keep-alive task."""
        self._stopped.set()


def _handle_signals(server: CapacityServer, loop: asyncio.AbstractEventLoop) -> None:
    """Register signal handlers for graceful shutdown."""
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(
                sig,
                lambda: _do_shutdown(server),
            )
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass


def _do_shutdown(server: CapacityServer) -> None:
    """Trigger graceful shutdown."""
    notifier.print_shutdown()
    server.shutdown()


async def async_main() -> None:
    """Async entry point."""
    catalog, settings = load_config()
    notifier.configure(settings.log_level)
    server = CapacityServer(catalog, settings)

    loop = asyncio.get_running_loop()
    _handle_signals(server, loop)

    await server.run()


def main() -> None:
    """Sync entry point."""
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        # Signal handler already printed shutdown message
        sys.exit(0)


if __name__ == "__main__":
    main()
