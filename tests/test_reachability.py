"""Tests for the network reachability signal."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from tosu_offline.network.reachability import HttpReachabilityProbe, ReachabilityMonitor


class TestReachabilityMonitor:
    """Test ReachabilityMonitor state and listeners."""

    def test_unknown_counts_as_online(self):
        monitor = ReachabilityMonitor()

        assert monitor.state is None
        assert monitor.is_connected
        assert not monitor.is_offline

    def test_update_notifies_on_change_only(self):
        monitor = ReachabilityMonitor(connected=True)
        listener = MagicMock()
        monitor.subscribe(listener)

        monitor.update(True)
        monitor.update(False)
        monitor.update(False)
        monitor.update(True)

        assert [c.args[0] for c in listener.call_args_list] == [False, True]

    def test_unsubscribe(self):
        monitor = ReachabilityMonitor()
        listener = MagicMock()
        unsubscribe = monitor.subscribe(listener)

        unsubscribe()
        unsubscribe()
        monitor.update(False)

        listener.assert_not_called()

    def test_failing_listener_does_not_block_others(self):
        monitor = ReachabilityMonitor(connected=True)
        broken = MagicMock(side_effect=RuntimeError("boom"))
        healthy = MagicMock()
        monitor.subscribe(broken)
        monitor.subscribe(healthy)

        monitor.update(False)

        healthy.assert_called_once_with(False)
        assert monitor.is_offline

    @pytest.mark.asyncio
    async def test_fetch_uses_probe(self):
        probe = MagicMock()
        probe.check = AsyncMock(return_value=False)
        monitor = ReachabilityMonitor(probe)

        assert await monitor.fetch() is False
        assert monitor.is_offline

    @pytest.mark.asyncio
    async def test_fetch_without_probe(self):
        monitor = ReachabilityMonitor(connected=False)

        assert await monitor.fetch() is False

    @pytest.mark.asyncio
    async def test_watch_runs_bounded_checks(self):
        """Test watch probes the given number of times and reports transitions."""
        probe = MagicMock()
        probe.check = AsyncMock(side_effect=[True, True, False])
        monitor = ReachabilityMonitor(probe)
        seen: list[bool] = []
        monitor.subscribe(seen.append)

        await monitor.watch(interval=0, checks=3)

        assert probe.check.await_count == 3
        assert seen == [True, False]
        assert monitor.is_offline

    @pytest.mark.asyncio
    async def test_watch_until_cancelled(self):
        probe = MagicMock()
        probe.check = AsyncMock(return_value=True)
        monitor = ReachabilityMonitor(probe)

        task = asyncio.create_task(monitor.watch(interval=0.01))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert probe.check.await_count >= 2


class TestHttpReachabilityProbe:
    """Test the HEAD-request probe."""

    @pytest.mark.asyncio
    async def test_any_response_means_online(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(503)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        probe = HttpReachabilityProbe("https://cms.example.com/", client=client)

        assert await probe.check() is True
        assert requests[0].method == "HEAD"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_transport_error_means_offline(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("no route to host", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        probe = HttpReachabilityProbe("https://cms.example.com/", client=client)

        assert await probe.check() is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_close_keeps_injected_client(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        probe = HttpReachabilityProbe("https://cms.example.com/", client=client)

        await probe.close()

        assert not client.is_closed
        await client.aclose()
