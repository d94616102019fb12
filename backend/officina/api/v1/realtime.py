"""
Canale WebSocket per gli aggiornamenti degli ordini
Progetto: Officina Online (Ordini e Pagamenti)

Connessione: /api/v1/ws?token=<jwt>

Messaggi dal client:
    {"action": "join", "order_id": "<uuid>"}
    {"action": "leave", "order_id": "<uuid>"}

L'iscrizione a un ordine richiede l'autorizzazione ORDER_SUBSCRIBE:
il cliente proprietario o qualsiasi ruolo staff valido. Le connessioni
dello staff ricevono anche il feed globale "order:updated".
"""

import json
import logging
import uuid
from typing import Any, Optional

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy import select

from officina.core.authorization import Action, Decision, ResourceRef, decide
from officina.core.database import session_scope
from officina.core.exceptions import AuthenticationError
from officina.core.identity import Principal, resolve_principal
from officina.models import Order
from officina.services.notifier import ConnectionManager, connection_manager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])

_ORDER_NOT_FOUND = "Ordine non trovato"


async def load_order_owner(order_id: uuid.UUID) -> Optional[uuid.UUID]:
    """Cliente proprietario dell'ordine, None se l'ordine non esiste."""
    async with session_scope() as db:
        result = await db.execute(select(Order.customer_id).where(Order.id == order_id))
        return result.scalar_one_or_none()


def _error(detail: str) -> dict[str, Any]:
    return {"event": "error", "data": {"detail": detail}}


async def handle_message(
    websocket: WebSocket,
    principal: Principal,
    message: Any,
    manager: ConnectionManager,
) -> None:
    """Gestisce un messaggio join/leave del client."""
    if not isinstance(message, dict):
        await websocket.send_json(_error("Messaggio non valido"))
        return

    action = message.get("action")
    try:
        order_id = uuid.UUID(str(message.get("order_id")))
    except ValueError:
        await websocket.send_json(_error("order_id non valido"))
        return

    if action == "leave":
        manager.leave(websocket, order_id)
        await websocket.send_json({"event": "left", "data": {"orderId": str(order_id)}})
        return

    if action != "join":
        await websocket.send_json(_error(f"Azione sconosciuta: {action}"))
        return

    owner_id = await load_order_owner(order_id)
    if owner_id is None:
        await websocket.send_json(_error(_ORDER_NOT_FOUND))
        return

    decision = decide(principal, Action.ORDER_SUBSCRIBE, ResourceRef.order(owner_id))
    if decision != Decision.ALLOW:
        logger.info(
            "Iscrizione negata: %s %s a ordine %s",
            principal.kind.value,
            principal.id,
            order_id,
        )
        await websocket.send_json(_error(_ORDER_NOT_FOUND))
        return

    manager.join(websocket, order_id)
    await websocket.send_json({"event": "joined", "data": {"orderId": str(order_id)}})


@router.websocket("/ws")
async def order_events(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
) -> None:
    try:
        principal = resolve_principal(token)
    except AuthenticationError as exc:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=exc.detail)
        return

    manager = connection_manager
    await manager.connect(websocket, staff=principal.is_staff)
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                await websocket.send_json(_error("JSON non valido"))
                continue
            await handle_message(websocket, principal, message, manager)
    except WebSocketDisconnect:
        logger.debug("WebSocket chiuso da %s %s", principal.kind.value, principal.id)
    finally:
        manager.disconnect(websocket)


__all__ = ["router", "handle_message", "load_order_owner"]
