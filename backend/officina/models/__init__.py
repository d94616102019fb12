"""
Modelli Database SQLAlchemy
Progetto: Officina Online (Ordini e Pagamenti)

Import centralizzato di tutti i modelli per la creazione dello schema.

Modelli:
- Customer: Clienti (proprietari di ordini, veicoli e pagamenti)
- Vehicle: Veicoli associati ai clienti
- Employee: Account dello staff con ruolo
- Service: Catalogo servizi dell'officina
- Order: Ordine di servizio
- OrderServiceLink: Associazione ordine ↔ servizio (tabella order_services)
- Payment: Tentativi di pagamento presso il processore esterno
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class per tutti i modelli SQLAlchemy."""
    pass


from officina.models.customer import Customer
from officina.models.vehicle import Vehicle
from officina.models.employee import Employee
from officina.models.service_catalog import Service
from officina.models.order import Order, OrderServiceLink
from officina.models.payment import Payment

__all__ = [
    "Base",
    "Customer",
    "Vehicle",
    "Employee",
    "Service",
    "Order",
    "OrderServiceLink",
    "Payment",
]
