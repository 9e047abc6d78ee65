"""
Keep-alive pinger.

Hosted free tiers put idle services to sleep; a periodic outbound GET to
the service's own public URL keeps it warm. The pinger shares no state
with the counter store, and its failures are printed and otherwise
ignored: the loop simply tries again on the next interval.
"""

from __future__ import annotations

import asyncio

import aiohttp

from capacity import notifier


class KeepAlive:
    """
    Pings a URL on a fixed interval until cancelled.

    Attributes:
        url: Address to GET on every tick.
        interval: Seconds between pings.
        pings_sent: Successful pings so far.
        failures: Failed pings so far.
    """

    def __init__(self, url: str, interval: float, timeout: float = 15) -> None:
        self.url = url
        self.interval = interval
        self.timeout = timeout
        self.pings_sent = 0
        self.failures = 0

    async def start(self, session: aiohttp.ClientSession) -> None:
        """
        Begin the ping loop. Runs indefinitely until cancelled.

        The first ping happens after one interval, not at startup.
        """
        notifier.print_keepalive_start(self.url, int(self.interval))

        while True:
            try:
                await asyncio.sleep(self.interval)
                await self._ping(session)
            except asyncio.CancelledError:
                break
            except Exception as exc:
                self.failures += 1
                notifier.print_error("keep-alive", f"{self.url}: {exc!r}")

    async def _ping(self, session: aiohttp.ClientSession) -> None:
        async with session.get(
            self.url,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as resp:
            resp.raise_for_status()
            self.pings_sent += 1
            notifier.print_ping(self.url, resp.status)
