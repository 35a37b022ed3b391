"""
Tests for WebSocket ConnectionManager
"""
import asyncio
import pytest
from unittest.mock import AsyncMock, Mock
from cloudscan.services.websocket.manager import ConnectionManager, SYSTEM_TOPICS


class TestConnectionManager:
    """Test suite for ConnectionManager"""

    def test_initialization(self):
        """Test manager initializes with empty state"""
        manager = ConnectionManager()
        assert manager.active_connections == {}
        assert manager._interceptors == {}

    def test_register_topic_idempotent(self):
        """Test registering same topic twice doesn't overwrite"""
        manager = ConnectionManager()
        manager.register_topic("scan")
        manager.active_connections["scan"].append("dummy")
        manager.register_topic("scan")

        assert manager.active_connections["scan"] == ["dummy"]

    def test_unregister_topic(self):
        manager = ConnectionManager()
        manager.register_topic("scan")
        manager.add_observer("scan", Mock())

        manager.unregister_topic("scan")

        assert "scan" not in manager.active_connections
        assert "scan" not in manager._observers

    @pytest.mark.asyncio
    async def test_connect_new_topic(self):
        """Test connecting to a new topic"""
        manager = ConnectionManager()
        websocket = AsyncMock()

        await manager.connect(websocket, "new_topic")

        websocket.accept.assert_called_once()
        assert websocket in manager.active_connections["new_topic"]

    def test_disconnect_nonexistent_topic(self):
        """Test disconnect handles missing topic gracefully"""
        manager = ConnectionManager()
        manager.disconnect(Mock(), "nonexistent")

    @pytest.mark.asyncio
    async def test_broadcast_bytes_to_connections(self):
        """Test broadcasting bytes to websocket connections"""
        manager = ConnectionManager()
        websocket1 = AsyncMock()
        websocket2 = AsyncMock()
        manager.active_connections["scan"] = [websocket1, websocket2]

        await manager.broadcast("scan", b"LSCN")
        await asyncio.sleep(0)

        websocket1.send_bytes.assert_called_once_with(b"LSCN")
        websocket2.send_bytes.assert_called_once_with(b"LSCN")

    @pytest.mark.asyncio
    async def test_broadcast_removes_dead_connections(self):
        """Test broadcast removes connections that fail"""
        manager = ConnectionManager()
        dead_ws = AsyncMock()
        dead_ws.send_bytes.side_effect = Exception("Connection dead")
        alive_ws = AsyncMock()
        manager.active_connections["scan"] = [dead_ws, alive_ws]

        await manager.broadcast("scan", b"data")
        await asyncio.sleep(0)

        assert dead_ws not in manager.active_connections["scan"]
        assert alive_ws in manager.active_connections["scan"]

    @pytest.mark.asyncio
    async def test_wait_for_next_returns_message(self):
        """Test wait_for_next returns broadcast message"""
        manager = ConnectionManager()

        async def delayed_broadcast():
            await asyncio.sleep(0.05)
            await manager.broadcast("scan", b"frame")

        task = asyncio.create_task(delayed_broadcast())
        result = await manager.wait_for_next("scan", timeout=1.0)
        await task

        assert result == b"frame"

    @pytest.mark.asyncio
    async def test_wait_for_next_timeout(self):
        """Test wait_for_next raises TimeoutError and cleans up"""
        manager = ConnectionManager()

        with pytest.raises(asyncio.TimeoutError):
            await manager.wait_for_next("scan", timeout=0.05)

        assert "scan" not in manager._interceptors


class TestListenerObservers:
    """Listener-count notifications that drive lazy feeds"""

    @pytest.mark.asyncio
    async def test_connect_and_disconnect_notify(self):
        manager = ConnectionManager()
        counts = []
        manager.add_observer("scan", counts.append)
        websocket = AsyncMock()

        await manager.connect(websocket, "scan")
        manager.disconnect(websocket, "scan")

        assert counts == [1, 0]

    def test_disconnect_unknown_websocket_does_not_notify(self):
        manager = ConnectionManager()
        observer = Mock()
        manager.add_observer("scan", observer)
        manager.active_connections["scan"] = []

        manager.disconnect(Mock(), "scan")

        observer.assert_not_called()

    @pytest.mark.asyncio
    async def test_capture_counts_as_listener(self):
        """Test a pending /topics/capture request counts as a listener until it resolves"""
        manager = ConnectionManager()
        counts = []
        manager.add_observer("scan", counts.append)

        async def delayed_broadcast():
            await asyncio.sleep(0.05)
            assert manager.listener_count("scan") == 1
            await manager.broadcast("scan", b"frame")

        task = asyncio.create_task(delayed_broadcast())
        await manager.wait_for_next("scan", timeout=1.0)
        await task

        assert counts == [1, 0]
        assert manager.listener_count("scan") == 0

    @pytest.mark.asyncio
    async def test_capture_timeout_notifies(self):
        manager = ConnectionManager()
        counts = []
        manager.add_observer("scan", counts.append)

        with pytest.raises(asyncio.TimeoutError):
            await manager.wait_for_next("scan", timeout=0.05)

        assert counts == [1, 0]

    def test_reset_notifies_every_topic(self):
        manager = ConnectionManager()
        observer = Mock()
        manager.add_observer("scan", observer)
        manager.active_connections["scan"] = [Mock()]

        manager.reset_active_connections()

        observer.assert_called_once_with(0)

    def test_remove_observer(self):
        manager = ConnectionManager()
        observer = Mock()
        manager.add_observer("scan", observer)
        manager.remove_observer("scan", observer)
        manager.active_connections["scan"] = [Mock()]

        manager.reset_active_connections()

        observer.assert_not_called()

    @pytest.mark.asyncio
    async def test_failing_observer_does_not_break_connect(self):
        manager = ConnectionManager()
        manager.add_observer("scan", Mock(side_effect=RuntimeError("boom")))
        healthy = Mock()
        manager.add_observer("scan", healthy)

        await manager.connect(AsyncMock(), "scan")

        healthy.assert_called_once_with(1)


class TestSystemTopicsFiltering:
    """Test suite for system topics filtering"""

    def test_system_topics_constant_defined(self):
        assert isinstance(SYSTEM_TOPICS, set)
        assert "system_status" in SYSTEM_TOPICS

    def test_get_public_topics_filters_and_sorts(self):
        manager = ConnectionManager()
        manager.register_topic("system_status")
        manager.register_topic("rear_scan")
        manager.register_topic("front_scan")

        assert manager.get_public_topics() == ["front_scan", "rear_scan"]
