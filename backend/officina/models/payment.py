"""
Modello SQLAlchemy per i Pagamenti
Progetto: Officina Online (Ordini e Pagamenti)

Ogni riga rappresenta un tentativo di incasso presso il processore di
pagamento esterno. Per lo stesso ordine possono esistere più tentativi,
ma al più uno arriva a "completed".
"""

from __future__ import annotations
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Index, JSON, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from officina.models import Base
from officina.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from officina.models.order import Order


class Payment(Base, UUIDMixin, TimestampMixin):
    """
    Modello per i pagamenti.

    Attributes:
        order_id: Ordine pagato
        customer_id: Cliente pagante (uguale al proprietario dell'ordine)
        amount: Importo in unità maggiori (es. euro)
        currency: Codice ISO della valuta, minuscolo
        payment_method: stripe o sandbox
        external_intent_id: Identificativo dell'intent presso il processore
        status: pending, completed
        transaction_id: Identificativo della transazione completata
        payment_metadata: Metadati inviati al processore (colonna "metadata")
    """

    __tablename__ = "payments"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        doc="UUID dell'ordine",
    )

    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        doc="UUID del cliente pagante",
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        doc="Importo del pagamento",
    )

    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="eur",
    )

    payment_method: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        doc="Gateway usato: stripe o sandbox",
    )

    external_intent_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Identificativo dell'intent (immutabile)",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pending",
    )

    transaction_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )

    # "metadata" è riservato da DeclarativeBase: attributo rinominato
    payment_metadata: Mapped[Optional[dict[str, Any]]] = mapped_column(
        "metadata",
        JSON,
        nullable=True,
    )

    order: Mapped["Order"] = relationship(
        "Order",
        back_populates="payments",
        lazy="noload",
    )

    __table_args__ = (
        Index("ix_payments_order_id", "order_id"),
        Index("ix_payments_customer_id", "customer_id"),
        Index("ix_payments_status", "status"),
        Index("ix_payments_external_intent_id", "external_intent_id", unique=True),
        CheckConstraint(
            "status IN ('pending', 'completed')",
            name="ck_payments_status",
        ),
        CheckConstraint(
            "payment_method IN ('stripe', 'sandbox')",
            name="ck_payments_method",
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Payment(id={self.id}, order_id={self.order_id}, "
            f"intent={self.external_intent_id}, status={self.status})>"
        )
