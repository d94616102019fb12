"""
Unit tests per il notifier realtime e il registro delle connessioni.
"""

import asyncio
import datetime
import logging
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from officina.services.notifier import (
    EVENT_ORDER_STATUS,
    EVENT_ORDER_UPDATED,
    ConnectionManager,
    RealtimeNotifier,
    room_name,
)


def fake_socket(fail: bool = False) -> MagicMock:
    ws = MagicMock()
    ws.accept = AsyncMock()
    ws.send_json = AsyncMock(side_effect=RuntimeError("socket chiuso") if fail else None)
    return ws


@pytest.fixture
def manager():
    return ConnectionManager()


@pytest.fixture
def notifier(manager):
    return RealtimeNotifier(manager)


class TestConnectionManager:
    """Stanze per ordine e feed dello staff."""

    @pytest.mark.asyncio
    async def test_staff_joins_feed(self, manager):
        staff_ws, customer_ws = fake_socket(), fake_socket()

        await manager.connect(staff_ws, staff=True)
        await manager.connect(customer_ws, staff=False)

        staff_ws.accept.assert_awaited_once()
        assert manager.feed_size == 1

    def test_join_and_leave(self, manager):
        ws = fake_socket()
        order_id = uuid.uuid4()

        manager.join(ws, order_id)
        manager.join(ws, order_id)
        assert manager.room_size(order_id) == 1

        manager.leave(ws, order_id)
        assert manager.room_size(order_id) == 0
        manager.leave(ws, order_id)

    @pytest.mark.asyncio
    async def test_disconnect_clears_every_room(self, manager):
        ws = fake_socket()
        first, second = uuid.uuid4(), uuid.uuid4()
        await manager.connect(ws, staff=True)
        manager.join(ws, first)
        manager.join(ws, second)

        manager.disconnect(ws)

        assert manager.room_size(first) == 0
        assert manager.room_size(second) == 0
        assert manager.feed_size == 0

    def test_room_name(self):
        order_id = uuid.uuid4()
        assert room_name(order_id) == f"order:{order_id}"


class TestRealtimeNotifier:
    """Consegna degli eventi di stato."""

    @pytest.mark.asyncio
    async def test_deliver_to_room_and_feed(self, manager, notifier):
        order_id = uuid.uuid4()
        subscriber, other_room, staff_ws = fake_socket(), fake_socket(), fake_socket()
        manager.join(subscriber, order_id)
        manager.join(other_room, uuid.uuid4())
        await manager.connect(staff_ws, staff=True)
        timestamp = datetime.datetime(2024, 5, 1, 10, 30, tzinfo=datetime.timezone.utc)

        await notifier.deliver(order_id, "Completed", timestamp)

        subscriber.send_json.assert_awaited_once_with({
            "event": EVENT_ORDER_STATUS,
            "data": {
                "orderId": str(order_id),
                "status": "Completed",
                "timestamp": "2024-05-01T10:30:00+00:00",
            },
        })
        staff_ws.send_json.assert_awaited_once_with({
            "event": EVENT_ORDER_UPDATED,
            "data": {"orderId": str(order_id), "status": "Completed"},
        })
        other_room.send_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_customer_does_not_receive_global_feed(self, manager, notifier):
        """Un cliente vede solo gli ordini a cui si è iscritto."""
        customer_ws = fake_socket()
        await manager.connect(customer_ws, staff=False)

        await notifier.deliver(uuid.uuid4(), "Completed")

        customer_ws.send_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_socket_is_dropped(self, manager, notifier):
        order_id = uuid.uuid4()
        broken, healthy = fake_socket(fail=True), fake_socket()
        manager.join(broken, order_id)
        manager.join(healthy, order_id)

        await notifier.deliver(order_id, "In Progress")

        healthy.send_json.assert_awaited_once()
        assert manager.room_size(order_id) == 1

    @pytest.mark.asyncio
    async def test_notify_schedules_delivery(self, manager, notifier):
        order_id = uuid.uuid4()
        subscriber = fake_socket()
        manager.join(subscriber, order_id)

        notifier.notify_status_change(order_id, "In Progress")
        subscriber.send_json.assert_not_awaited()

        await notifier.drain()

        subscriber.send_json.assert_awaited_once()

    def test_notify_without_loop(self, notifier, caplog):
        with caplog.at_level(logging.WARNING, logger="officina.services.notifier"):
            notifier.notify_status_change(uuid.uuid4(), "Completed")

        assert "Nessun event loop" in caplog.text

    @pytest.mark.asyncio
    async def test_drain_without_pending_events(self, notifier):
        await asyncio.wait_for(notifier.drain(), timeout=1)
