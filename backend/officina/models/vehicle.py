"""
Modello SQLAlchemy per l'entità Vehicle
Progetto: Officina Online (Ordini e Pagamenti)

Rappresenta i veicoli associati ai clienti.
"""

import uuid
from typing import TYPE_CHECKING, List

from sqlalchemy import ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from officina.models import Base
from officina.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from officina.models.customer import Customer
    from officina.models.order import Order


class Vehicle(Base, UUIDMixin, TimestampMixin):
    """
    Modello per i veicoli associati ai clienti.

    Un veicolo appartiene a un cliente e può comparire in più ordini.
    Eliminando un veicolo gli ordini restano: il riferimento diventa NULL.

    Attributes:
        id: UUID primary key
        customer_id: Cliente proprietario (obbligatorio)
        make: Marca
        model: Modello
        year: Anno
        license_plate: Targa
        vin: Numero telaio
        color: Colore
        mileage: Chilometraggio
    """

    __tablename__ = "vehicles"

    customer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
        doc="UUID del cliente proprietario",
    )

    make: Mapped[str | None] = mapped_column(String(100), nullable=True)
    model: Mapped[str | None] = mapped_column(String(100), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    license_plate: Mapped[str | None] = mapped_column(String(20), nullable=True)
    vin: Mapped[str | None] = mapped_column(String(50), nullable=True)
    color: Mapped[str | None] = mapped_column(String(50), nullable=True)
    mileage: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    customer: Mapped["Customer"] = relationship(
        "Customer",
        back_populates="vehicles",
        lazy="noload",
    )

    orders: Mapped[List["Order"]] = relationship(
        "Order",
        back_populates="vehicle",
        passive_deletes=True,
        lazy="noload",
    )

    __table_args__ = (
        Index("ix_vehicles_customer_id", "customer_id"),
    )

    def __repr__(self) -> str:
        return f"<Vehicle(id={self.id}, plate={self.license_plate}, customer_id={self.customer_id})>"
