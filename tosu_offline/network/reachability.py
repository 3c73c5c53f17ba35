"""
Network reachability signal.

The platform pushes connectivity changes with ``update()``; code that needs
a current answer calls ``fetch()``, which asks a probe. Until the first
report the state is unknown, which counts as online so that the first read
still tries the network.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

import httpx

logger = logging.getLogger(__name__)

Listener = Callable[[bool], None]


class ReachabilityProbe(Protocol):
    async def check(self) -> bool:
        """Return True if the network is reachable."""
        ...


class HttpReachabilityProbe:
    """
    Probe that issues a HEAD request.

    Any HTTP response, whatever its status, means the network is up; only a
    transport failure means offline.
    """

    def __init__(self, url: str, timeout: float = 5.0, client: httpx.AsyncClient | None = None):
        self.url = url
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    async def check(self) -> bool:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        try:
            await self._client.head(self.url)
        except httpx.HTTPError as e:
            logger.debug("Reachability probe to %s failed: %s", self.url, e)
            return False
        return True

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None


class ReachabilityMonitor:
    """
    Current connectivity state plus change notifications.

    Example:
        monitor = ReachabilityMonitor(HttpReachabilityProbe(url))
        unsubscribe = monitor.subscribe(lambda online: print(online))
        await monitor.fetch()
        unsubscribe()
    """

    def __init__(self, probe: ReachabilityProbe | None = None, connected: bool | None = None):
        self.probe = probe
        self._connected = connected
        self._listeners: list[Listener] = []

    @property
    def state(self) -> bool | None:
        """Last reported state; None while unknown."""
        return self._connected

    @property
    def is_connected(self) -> bool:
        return self._connected is not False

    @property
    def is_offline(self) -> bool:
        return self._connected is False

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener for connectivity transitions.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(self, connected: bool) -> None:
        """Record a reported state; listeners fire only on a change."""
        previous = self._connected
        self._connected = connected
        if previous == connected:
            return

        logger.info("Network %s", "online" if connected else "offline")
        for listener in list(self._listeners):
            try:
                listener(connected)
            except Exception as e:
                logger.error("Reachability listener failed: %s", e)

    async def fetch(self) -> bool:
        """Query the probe once and record the answer."""
        if self.probe is None:
            return self.is_connected
        connected = await self.probe.check()
        self.update(connected)
        return connected

    async def watch(self, interval: float = 30.0, checks: int | None = None) -> None:
        """
        Poll the probe every interval seconds.

        Args:
            interval: Seconds between probes
            checks: Number of probes to run, None to poll until cancelled
        """
        done = 0
        while checks is None or done < checks:
            if done:
                await asyncio.sleep(interval)
            await self.fetch()
            done += 1
