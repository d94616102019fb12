"""
Modelli SQLAlchemy per gli Ordini
Progetto: Officina Online (Ordini e Pagamenti)

 Contiene:
- Order: Ordine di servizio del cliente
- OrderServiceLink: Servizi del catalogo associati all'ordine
"""


from __future__ import annotations
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from officina.models import Base
from officina.models.mixins import TimestampMixin, UUIDMixin

# Import per type hinting relazioni (evita circular import)
if TYPE_CHECKING:
    from officina.models.customer import Customer
    from officina.models.employee import Employee
    from officina.models.payment import Payment
    from officina.models.service_catalog import Service
    from officina.models.vehicle import Vehicle


# Gli stati sono definiti in officina.schemas.order (OrderStatus, PaymentStatus)


class Order(Base, UUIDMixin, TimestampMixin):
    """
    Modello per gli ordini di servizio.

    Lo stato di lavorazione (status) e lo stato di pagamento
    (payment_status) sono assi indipendenti: un ordine può essere pagato
    prima di essere completato e viceversa.

    Attributes:
        id: UUID primary key
        customer_id: Cliente proprietario (immutabile dopo la creazione)
        vehicle_id: Veicolo oggetto dell'intervento (opzionale)
        description: Descrizione della richiesta
        status: Received, In Progress, Completed
        total_amount: Importo totale (>= 0)
        payment_status: pending, paid
        received_by: Chi ha ricevuto l'ordine
        assigned_employee_id: Dipendente assegnato
        completion_note: Nota di completamento
        version: Contatore per il controllo di concorrenza ottimistico

    Relationships:
        customer: Cliente proprietario
        vehicle: Veicolo
        assigned_employee: Dipendente assegnato
        service_links: Righe della tabella order_services
        services: Servizi associati (sola lettura, via order_services)
        payments: Tentativi di pagamento
    """

    __tablename__ = "orders"

    # ------------------------------------------------------------
    # Colonne Relazioni
    # ------------------------------------------------------------
    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="UUID del cliente proprietario",
    )

    vehicle_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("vehicles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        doc="UUID del veicolo oggetto dell'intervento",
    )

    assigned_employee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("employees.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        doc="UUID del dipendente assegnato",
    )

    # ------------------------------------------------------------
    # Colonne Stato e Dati
    # ------------------------------------------------------------
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Descrizione della richiesta del cliente",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="Received",
        doc="Stato di lavorazione dell'ordine",
    )

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        default=Decimal("0"),
        doc="Importo totale dell'ordine",
    )

    payment_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
        doc="Stato del pagamento",
    )

    received_by: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Operatore o canale che ha ricevuto l'ordine",
    )

    completion_note: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        doc="Nota di completamento del lavoro",
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        doc="Versione della riga (optimistic locking)",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    customer: Mapped["Customer"] = relationship(
        "Customer",
        back_populates="orders",
        lazy="noload",
        doc="Cliente proprietario",
    )

    vehicle: Mapped[Optional["Vehicle"]] = relationship(
        "Vehicle",
        back_populates="orders",
        lazy="noload",
        doc="Veicolo oggetto dell'intervento",
    )

    assigned_employee: Mapped[Optional["Employee"]] = relationship(
        "Employee",
        back_populates="assigned_orders",
        lazy="noload",
        doc="Dipendente assegnato",
    )

    service_links: Mapped[List["OrderServiceLink"]] = relationship(
        "OrderServiceLink",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
    )

    services: Mapped[List["Service"]] = relationship(
        "Service",
        secondary="order_services",
        viewonly=True,
        lazy="noload",
        order_by="Service.name",
        doc="Servizi del catalogo associati all'ordine",
    )

    payments: Mapped[List["Payment"]] = relationship(
        "Payment",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
    )

    # ------------------------------------------------------------
    # Indici e Vincoli
    # ------------------------------------------------------------
    __table_args__ = (
        Index("ix_orders_status", "status"),
        Index("ix_orders_payment_status", "payment_status"),
        Index("ix_orders_status_created", "status", "created_at"),
        CheckConstraint(
            "status IN ('Received', 'In Progress', 'Completed')",
            name="ck_orders_status",
        ),
        CheckConstraint(
            "payment_status IN ('pending', 'paid')",
            name="ck_orders_payment_status",
        ),
        CheckConstraint(
            "total_amount >= 0",
            name="ck_orders_total_amount",
        ),
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, status={self.status}, "
            f"payment_status={self.payment_status}, customer_id={self.customer_id})>"
        )


class OrderServiceLink(Base, UUIDMixin, TimestampMixin):
    """
    Associazione ordine ↔ servizio (tabella order_services).

    La coppia (order_id, service_id) è univoca: lo stesso servizio
    non può essere associato due volte allo stesso ordine.
    """

    __tablename__ = "order_services"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    service_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("services.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    order: Mapped["Order"] = relationship(
        "Order",
        back_populates="service_links",
    )

    service: Mapped["Service"] = relationship(
        "Service",
        lazy="joined",
    )

    __table_args__ = (
        UniqueConstraint("order_id", "service_id", name="uq_order_services_order_service"),
    )

    def __repr__(self) -> str:
        return f"<OrderServiceLink(order_id={self.order_id}, service_id={self.service_id})>"
