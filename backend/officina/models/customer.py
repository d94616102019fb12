"""
Modello SQLAlchemy per l'entità Customer
Progetto: Officina Online (Ordini e Pagamenti)

Anagrafica minima dei clienti: serve per l'autenticazione, per i
vincoli di proprietà e per la proiezione del cliente negli ordini.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from officina.models import Base
from officina.models.mixins import SoftDeleteMixin, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from officina.models.order import Order
    from officina.models.vehicle import Vehicle


class Customer(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """
    Modello per i clienti dell'officina.

    Attributes:
        id: UUID primary key
        email: Email univoca (usata per il login)
        hashed_password: Password hashata (None per clienti creati dallo staff)
        first_name: Nome
        last_name: Cognome
        phone: Telefono
        is_active: Account attivo

    Relationships:
        vehicles: Veicoli del cliente (eliminati a cascata)
        orders: Ordini del cliente (eliminati a cascata)
    """

    __tablename__ = "customers"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        doc="Email univoca del cliente",
    )

    hashed_password: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Password hashata",
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    vehicles: Mapped[List["Vehicle"]] = relationship(
        "Vehicle",
        back_populates="customer",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
    )

    orders: Mapped[List["Order"]] = relationship(
        "Order",
        back_populates="customer",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, email={self.email})>"
