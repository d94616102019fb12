"""
Notifiche in tempo reale sugli ordini
Progetto: Officina Online (Ordini e Pagamenti)

Il service layer pubblica i cambi di stato tramite la porta
OrderEventPublisher, sempre dopo il commit. L'implementazione
RealtimeNotifier inoltra gli eventi alle connessioni WebSocket:

- stanza "order:<id>": {"event": "order:status", "data": {orderId, status, timestamp}}
- feed globale dello staff: {"event": "order:updated", "data": {orderId, status}}

La consegna avviene in un task in background: un errore di invio
viene registrato nei log e la connessione difettosa viene scartata,
senza effetti sulla mutazione già confermata.
"""

import asyncio
import datetime
import logging
import uuid
from typing import Any, Optional, Protocol

from fastapi import WebSocket

logger = logging.getLogger(__name__)

EVENT_ORDER_STATUS = "order:status"
EVENT_ORDER_UPDATED = "order:updated"


def room_name(order_id: uuid.UUID) -> str:
    """Nome della stanza dedicata a un ordine."""
    return f"order:{order_id}"


class OrderEventPublisher(Protocol):
    """Porta in uscita per gli eventi sugli ordini."""

    def notify_status_change(self, order_id: uuid.UUID, status: str) -> None:
        ...


class ConnectionManager:
    """
    Registro delle connessioni WebSocket attive.

    Ogni connessione può iscriversi a più stanze (una per ordine);
    le connessioni dello staff ricevono anche il feed globale.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, set[WebSocket]] = {}
        self._feed: set[WebSocket] = set()

    async def connect(self, websocket: WebSocket, *, staff: bool) -> None:
        await websocket.accept()
        if staff:
            self._feed.add(websocket)
        logger.debug("Connessione WebSocket aperta (staff=%s)", staff)

    def disconnect(self, websocket: WebSocket) -> None:
        """Rimuove la connessione dal feed e da tutte le stanze."""
        self._feed.discard(websocket)
        for room in list(self._rooms):
            members = self._rooms[room]
            members.discard(websocket)
            if not members:
                del self._rooms[room]

    def join(self, websocket: WebSocket, order_id: uuid.UUID) -> None:
        self._rooms.setdefault(room_name(order_id), set()).add(websocket)

    def leave(self, websocket: WebSocket, order_id: uuid.UUID) -> None:
        room = room_name(order_id)
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(websocket)
        if not members:
            del self._rooms[room]

    def room_size(self, order_id: uuid.UUID) -> int:
        return len(self._rooms.get(room_name(order_id), ()))

    @property
    def feed_size(self) -> int:
        return len(self._feed)

    async def send_to_room(self, order_id: uuid.UUID, message: dict[str, Any]) -> None:
        for websocket in list(self._rooms.get(room_name(order_id), ())):
            await self._send(websocket, message)

    async def broadcast(self, message: dict[str, Any]) -> None:
        for websocket in list(self._feed):
            await self._send(websocket, message)

    async def _send(self, websocket: WebSocket, message: dict[str, Any]) -> None:
        try:
            await websocket.send_json(message)
        except Exception:
            logger.warning(
                "Invio evento %s fallito, connessione rimossa",
                message.get("event"),
                exc_info=True,
            )
            self.disconnect(websocket)


class RealtimeNotifier:
    """
    Implementazione di OrderEventPublisher su WebSocket.

    notify_status_change è sincrono: pianifica la consegna sul loop
    corrente e ritorna subito.
    """

    def __init__(self, manager: ConnectionManager) -> None:
        self.manager = manager
        self._tasks: set[asyncio.Task] = set()

    def notify_status_change(self, order_id: uuid.UUID, status: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Nessun event loop attivo: evento per ordine %s non inviato", order_id)
            return

        task = loop.create_task(self.deliver(order_id, status))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def deliver(
        self,
        order_id: uuid.UUID,
        status: str,
        timestamp: Optional[datetime.datetime] = None,
    ) -> None:
        """Invia l'evento alla stanza dell'ordine e al feed dello staff."""
        timestamp = timestamp or datetime.datetime.now(datetime.timezone.utc)
        order_key = str(order_id)

        await self.manager.send_to_room(
            order_id,
            {
                "event": EVENT_ORDER_STATUS,
                "data": {
                    "orderId": order_key,
                    "status": status,
                    "timestamp": timestamp.isoformat(),
                },
            },
        )
        await self.manager.broadcast(
            {
                "event": EVENT_ORDER_UPDATED,
                "data": {"orderId": order_key, "status": status},
            }
        )
        logger.debug("Evento di stato pubblicato: ordine %s → %s", order_id, status)

    async def drain(self) -> None:
        """Attende la consegna degli eventi in sospeso (usato allo shutdown)."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


# Istanze condivise dall'applicazione
connection_manager = ConnectionManager()
realtime_notifier = RealtimeNotifier(connection_manager)


def get_publisher() -> OrderEventPublisher:
    """Dipendenza FastAPI: publisher degli eventi sugli ordini."""
    return realtime_notifier


__all__ = [
    "EVENT_ORDER_STATUS",
    "EVENT_ORDER_UPDATED",
    "room_name",
    "OrderEventPublisher",
    "ConnectionManager",
    "RealtimeNotifier",
    "connection_manager",
    "realtime_notifier",
    "get_publisher",
]
