"""
Pytest configuration and fixtures per Officina Online.

Le sessioni database sono mock di AsyncSession: i risultati delle query
vengono preparati con make_result() nell'ordine in cui il service li
richiede.
"""

import datetime
import uuid
from decimal import Decimal
from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from officina.core.security import create_access_token


# ============================================================
# Fixtures per AsyncSession Mock
# ============================================================


def make_result(scalar=None, scalars=None, rowcount: int = 1) -> MagicMock:
    """Risultato di db.execute() con i metodi usati dai service."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar
    result.scalar_one.return_value = scalar
    result.scalar.return_value = scalar
    result.scalars.return_value.all.return_value = list(scalars or [])
    result.rowcount = rowcount
    return result


@pytest.fixture
def mock_db():
    """Crea un mock di AsyncSession."""
    db = AsyncMock(spec=AsyncSession)
    db.execute = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    db.delete = MagicMock()
    return db


# ============================================================
# Mock dei modelli
# ============================================================


class MockCustomer:
    """Mock del modello Customer."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', uuid.uuid4())
        self.first_name = kwargs.get('first_name', 'Mario')
        self.last_name = kwargs.get('last_name', 'Rossi')
        self.email = kwargs.get('email', 'mario.rossi@example.com')
        self.phone = kwargs.get('phone', '3331234567')
        self.is_active = kwargs.get('is_active', True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class MockVehicle:
    """Mock del modello Vehicle."""
    def __init__(self, **kwargs):
        self.id = kwargs.get('id', uuid.uuid4())
        self.customer_id = kwargs.get('customer_id', uuid.uuid4())
        self.make = kwargs.get('make', 'Fiat')
        self.model = kwargs.get('model', 'Panda')
        self.year = kwargs.get('year', 2019)
        self.license_plate = kwargs.get('license_plate', 'AB123CD')
        self.vin = kwargs.get('vin', None)
        self.color = kwargs.get('color', None)
        self.mileage = kwargs.get('mileage', None)


class MockOrder:
    """Mock del modello Order con tutti i campi letti da OrderRead."""
    def __init__(self, **kwargs):
        now = datetime.datetime.now(datetime.timezone.utc)
        self.id = kwargs.get('id', uuid.uuid4())
        self.customer_id = kwargs.get('customer_id', uuid.uuid4())
        self.vehicle_id = kwargs.get('vehicle_id', None)
        self.assigned_employee_id = kwargs.get('assigned_employee_id', None)
        self.description = kwargs.get('description', 'Rumore ai freni')
        self.status = kwargs.get('status', 'Received')
        self.total_amount = kwargs.get('total_amount', Decimal("0.00"))
        self.payment_status = kwargs.get('payment_status', 'pending')
        self.received_by = kwargs.get('received_by', None)
        self.completion_note = kwargs.get('completion_note', None)
        self.version = kwargs.get('version', 1)
        self.created_at = kwargs.get('created_at', now)
        self.updated_at = kwargs.get('updated_at', now)
        self.services = kwargs.get('services', [])
        self.customer = kwargs.get('customer', None)
        self.vehicle = kwargs.get('vehicle', None)


class MockPayment:
    """Mock del modello Payment."""
    def __init__(self, **kwargs):
        now = datetime.datetime.now(datetime.timezone.utc)
        self.id = kwargs.get('id', uuid.uuid4())
        self.order_id = kwargs.get('order_id', uuid.uuid4())
        self.customer_id = kwargs.get('customer_id', uuid.uuid4())
        self.amount = kwargs.get('amount', Decimal("150.00"))
        self.currency = kwargs.get('currency', 'eur')
        self.payment_method = kwargs.get('payment_method', 'sandbox')
        self.external_intent_id = kwargs.get('external_intent_id', 'sandbox_pi_test')
        self.status = kwargs.get('status', 'pending')
        self.transaction_id = kwargs.get('transaction_id', None)
        self.payment_metadata = kwargs.get('payment_metadata', {})
        self.created_at = kwargs.get('created_at', now)
        self.updated_at = kwargs.get('updated_at', now)


@pytest.fixture
def customer():
    return MockCustomer()


@pytest.fixture
def other_customer():
    return MockCustomer(first_name="Luigi", last_name="Bianchi", email="luigi@example.com")


@pytest.fixture
def order(customer):
    """Ordine di 150 EUR, non pagato."""
    return MockOrder(
        customer_id=customer.id,
        customer=customer,
        total_amount=Decimal("150.00"),
    )


# ============================================================
# Publisher e token
# ============================================================


class FakePublisher:
    """Publisher che registra gli eventi invece di inviarli."""
    def __init__(self, log: Optional[list] = None):
        self.events: list[tuple[uuid.UUID, str]] = []
        self.log = log if log is not None else []

    def notify_status_change(self, order_id: uuid.UUID, status: str) -> None:
        self.events.append((order_id, status))
        self.log.append("publish")


@pytest.fixture
def publisher():
    return FakePublisher()


def customer_token(customer_id: uuid.UUID) -> str:
    return create_access_token(str(customer_id), kind="customer", role="Customer")


def staff_token(employee_id: uuid.UUID, role: str = "Admin") -> str:
    return create_access_token(str(employee_id), kind="staff", role=role)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
