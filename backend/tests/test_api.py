"""
Tests degli endpoint HTTP e WebSocket.

Lo store degli ordini e il reconciler sono sostituiti tramite
dependency_overrides; il database è una AsyncSession mock.
"""

import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from conftest import MockOrder, auth_header, customer_token, staff_token
from officina.api.v1 import realtime
from officina.api.v1.orders import get_order_store
from officina.core.database import get_db
from officina.core.exceptions import NotFoundError, PaymentNotCompletedError
from officina.core.identity import Principal
from officina.core.roles import Role
from officina.main import app
from officina.services.notifier import ConnectionManager
from officina.services.payment_gateway import SandboxGateway
from officina.services.payment_reconciler import (
    IntentResult,
    PaymentReconciler,
    get_payment_reconciler,
)


@pytest.fixture
def store(order):
    store = MagicMock()
    store.get_order = AsyncMock(return_value=order)
    store.list_orders = AsyncMock(return_value=([order], 1))
    store.create_order = AsyncMock(return_value=order)
    store.update_order = AsyncMock(return_value=order)
    store.add_service = AsyncMock(return_value=order)
    return store


@pytest.fixture
def reconciler():
    return MagicMock(spec=PaymentReconciler)


@pytest.fixture
def client(mock_db, store, reconciler):
    async def override_db():
        yield mock_db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_order_store] = lambda: store
    app.dependency_overrides[get_payment_reconciler] = lambda: reconciler
    yield TestClient(app)
    app.dependency_overrides.clear()


def orders_url(order_id=None) -> str:
    return "/api/v1/orders" if order_id is None else f"/api/v1/orders/{order_id}"


class TestSystem:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_me(self, client, customer):
        response = client.get("/api/v1/auth/me", headers=auth_header(customer_token(customer.id)))

        assert response.status_code == 200
        assert response.json() == {"id": str(customer.id), "kind": "customer", "role": "Customer"}


# ============================================================
# Tests for authentication errors
# ============================================================


class TestAuthentication:
    """Risposte 401."""

    def test_missing_token(self, client, order):
        response = client.get(orders_url(order.id))

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["error_code"] == "UNAUTHENTICATED"

    def test_garbage_token(self, client, order):
        response = client.get(orders_url(order.id), headers=auth_header("non-un-jwt"))

        assert response.status_code == 401


# ============================================================
# Tests for order endpoints
# ============================================================


class TestOrderEndpoints:
    """Autorizzazione sugli endpoint degli ordini."""

    def test_customer_reads_own_order(self, client, order, customer):
        response = client.get(orders_url(order.id), headers=auth_header(customer_token(customer.id)))

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == str(order.id)
        assert body["payment_status"] == "pending"
        assert body["services"] == []

    def test_other_customer_gets_404(self, client, order, other_customer):
        response = client.get(orders_url(order.id), headers=auth_header(customer_token(other_customer.id)))

        assert response.status_code == 404
        assert response.json()["error_code"] == "RESOURCE_NOT_FOUND"

    def test_customer_list_is_scoped(self, client, store, customer, other_customer):
        response = client.get(
            orders_url(),
            params={"customer_id": str(other_customer.id)},
            headers=auth_header(customer_token(customer.id)),
        )

        assert response.status_code == 200
        assert response.json()["total_pages"] == 1
        filters = store.list_orders.await_args.args[1]
        assert filters.customer_id == customer.id

    def test_customer_creates_own_order(self, client, store, customer):
        response = client.post(
            orders_url(),
            json={"description": "Cambio gomme"},
            headers=auth_header(customer_token(customer.id)),
        )

        assert response.status_code == 201
        assert store.create_order.await_args.kwargs["customer_id"] == customer.id

    def test_customer_cannot_create_for_other(self, client, store, customer, other_customer):
        response = client.post(
            orders_url(),
            json={"customer_id": str(other_customer.id)},
            headers=auth_header(customer_token(customer.id)),
        )

        assert response.status_code == 403
        store.create_order.assert_not_awaited()

    def test_staff_create_requires_customer(self, client, store):
        response = client.post(
            orders_url(),
            json={"description": "Revisione"},
            headers=auth_header(staff_token(uuid.uuid4(), "Manager")),
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "CUSTOMER_REQUIRED"

    def test_employee_cannot_create(self, client, store, customer):
        response = client.post(
            orders_url(),
            json={"customer_id": str(customer.id)},
            headers=auth_header(staff_token(uuid.uuid4(), "Employee")),
        )

        assert response.status_code == 403

    def test_employee_updates_status(self, client, store, order):
        response = client.put(
            orders_url(order.id),
            json={"status": "Completed", "total_amount": "120.50"},
            headers=auth_header(staff_token(uuid.uuid4(), "employee")),
        )

        assert response.status_code == 200
        patch = store.update_order.await_args.args[2]
        assert patch.total_amount == Decimal("120.50")

    def test_employee_cannot_reassign_vehicle(self, client, store, order):
        response = client.put(
            orders_url(order.id),
            json={"status": "Completed", "vehicle_id": str(uuid.uuid4())},
            headers=auth_header(staff_token(uuid.uuid4(), "Employee")),
        )

        assert response.status_code == 403
        assert response.json()["extra"] == {"fields": ["vehicle_id"]}
        store.update_order.assert_not_awaited()

    def test_customer_cannot_update(self, client, store, order, customer):
        response = client.put(
            orders_url(order.id),
            json={"status": "Completed"},
            headers=auth_header(customer_token(customer.id)),
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "STAFF_TOKEN_REQUIRED"

    def test_unknown_role_denied(self, client, order):
        response = client.get(orders_url(order.id), headers=auth_header(staff_token(uuid.uuid4(), "Janitor")))

        assert response.status_code == 403

    def test_missing_order(self, client, store):
        store.get_order.side_effect = NotFoundError("Ordine non trovato")

        response = client.get(orders_url(uuid.uuid4()), headers=auth_header(staff_token(uuid.uuid4())))

        assert response.status_code == 404

    def test_customer_adds_service(self, client, store, order, customer):
        service_id = uuid.uuid4()

        response = client.post(
            f"{orders_url(order.id)}/services",
            json={"service_id": str(service_id)},
            headers=auth_header(customer_token(customer.id)),
        )

        assert response.status_code == 200
        store.add_service.assert_awaited_once()
        assert store.add_service.await_args.args[2] == service_id


# ============================================================
# Tests for payment endpoints
# ============================================================


class TestPaymentEndpoints:
    """Intent, conferma, webhook e storico."""

    def test_intent_uses_camel_case(self, client, reconciler, order, customer):
        reconciler.create_intent = AsyncMock(return_value=IntentResult(
            client_secret="sandbox_pi_x_secret_y",
            payment_intent_id="sandbox_pi_x",
            amount=Decimal("150.00"),
        ))

        response = client.post(
            f"/api/v1/payments/orders/{order.id}/intent",
            headers=auth_header(customer_token(customer.id)),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["clientSecret"] == "sandbox_pi_x_secret_y"
        assert body["paymentIntentId"] == "sandbox_pi_x"
        assert body["amount"] == 150.0

    def test_staff_cannot_create_intent(self, client, order):
        response = client.post(
            f"/api/v1/payments/orders/{order.id}/intent",
            headers=auth_header(staff_token(uuid.uuid4())),
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "CUSTOMER_TOKEN_REQUIRED"

    def test_confirm(self, client, reconciler, order, customer):
        paid = MockOrder(id=order.id, customer_id=customer.id, payment_status="paid", version=2)
        reconciler.confirm_payment = AsyncMock(return_value=paid)

        response = client.post(
            "/api/v1/payments/confirm",
            json={"orderId": str(order.id), "paymentIntentId": "sandbox_pi_x"},
            headers=auth_header(customer_token(customer.id)),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Payment confirmed successfully"
        assert body["order"]["payment_status"] == "paid"
        assert reconciler.confirm_payment.await_args.kwargs["customer_id"] == customer.id

    def test_confirm_rejected(self, client, reconciler, order, customer):
        reconciler.confirm_payment = AsyncMock(
            side_effect=PaymentNotCompletedError("Pagamento rifiutato", error_code="PAYMENT_REJECTED")
        )

        response = client.post(
            "/api/v1/payments/confirm",
            json={"orderId": str(order.id), "paymentIntentId": "pi_1"},
            headers=auth_header(customer_token(customer.id)),
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "PAYMENT_REJECTED"

    @pytest.mark.parametrize("headers", [{}, {"Stripe-Signature": "firma-falsa"}])
    def test_webhook_always_acknowledged(self, client, mock_db, headers):
        app.dependency_overrides[get_payment_reconciler] = (
            lambda: PaymentReconciler(SandboxGateway("secret"))
        )

        response = client.post("/api/v1/payments/webhook", content=b"non json", headers=headers)

        assert response.status_code == 200
        assert response.json() == {"received": True}
        mock_db.execute.assert_not_awaited()

    def test_history_hidden_from_other_customer(self, client, reconciler, order, other_customer):
        response = client.get(
            f"/api/v1/payments/orders/{order.id}",
            headers=auth_header(customer_token(other_customer.id)),
        )

        assert response.status_code == 404
        reconciler.list_payments.assert_not_called()


class TestEmployeeEndpoints:

    def test_manager_cannot_manage_employees(self, client):
        response = client.get("/api/v1/employees", headers=auth_header(staff_token(uuid.uuid4(), "Manager")))

        assert response.status_code == 403

    def test_token_without_role_cannot_manage_employees(self, client):
        response = client.get("/api/v1/employees", headers=auth_header(staff_token(uuid.uuid4(), "")))

        assert response.status_code == 403


# ============================================================
# Tests for the realtime channel
# ============================================================


class FakeWebSocket:
    def __init__(self):
        self.sent = []

    async def send_json(self, message):
        self.sent.append(message)


class TestRealtimeChannel:
    """Iscrizione alle stanze degli ordini."""

    @pytest.fixture
    def owner(self, monkeypatch):
        owners = {}

        async def fake_owner(order_id):
            return owners.get(order_id)

        monkeypatch.setattr(realtime, "load_order_owner", fake_owner)
        return owners

    @pytest.mark.asyncio
    async def test_owner_joins_room(self, owner, customer):
        order_id = uuid.uuid4()
        owner[order_id] = customer.id
        ws, manager = FakeWebSocket(), ConnectionManager()

        await realtime.handle_message(
            ws, Principal.customer(customer.id), {"action": "join", "order_id": str(order_id)}, manager
        )

        assert ws.sent == [{"event": "joined", "data": {"orderId": str(order_id)}}]
        assert manager.room_size(order_id) == 1

    @pytest.mark.asyncio
    async def test_other_customer_cannot_join(self, owner, customer, other_customer):
        order_id = uuid.uuid4()
        owner[order_id] = customer.id
        ws, manager = FakeWebSocket(), ConnectionManager()

        await realtime.handle_message(
            ws, Principal.customer(other_customer.id), {"action": "join", "order_id": str(order_id)}, manager
        )

        assert ws.sent[0]["event"] == "error"
        assert manager.room_size(order_id) == 0

    @pytest.mark.asyncio
    async def test_staff_joins_any_room(self, owner, customer):
        order_id = uuid.uuid4()
        owner[order_id] = customer.id
        ws, manager = FakeWebSocket(), ConnectionManager()

        await realtime.handle_message(
            ws, Principal.staff(uuid.uuid4(), Role.EMPLOYEE), {"action": "join", "order_id": str(order_id)}, manager
        )

        assert manager.room_size(order_id) == 1

    @pytest.mark.asyncio
    async def test_leave_and_bad_messages(self, owner, customer):
        order_id = uuid.uuid4()
        ws, manager = FakeWebSocket(), ConnectionManager()
        manager.join(ws, order_id)
        principal = Principal.customer(customer.id)

        await realtime.handle_message(ws, principal, {"action": "leave", "order_id": str(order_id)}, manager)
        await realtime.handle_message(ws, principal, {"action": "join", "order_id": "x"}, manager)
        await realtime.handle_message(ws, principal, ["join"], manager)

        assert manager.room_size(order_id) == 0
        assert [m["event"] for m in ws.sent] == ["left", "error", "error"]

    def test_invalid_token_closes_connection(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect("/api/v1/ws?token=non-valido"):
                pass

        assert exc_info.value.code == 1008

    def test_join_over_websocket(self, client, owner, customer):
        order_id = uuid.uuid4()
        owner[order_id] = customer.id

        with client.websocket_connect(f"/api/v1/ws?token={customer_token(customer.id)}") as ws:
            ws.send_json({"action": "join", "order_id": str(order_id)})
            assert ws.receive_json() == {"event": "joined", "data": {"orderId": str(order_id)}}
