"""
Modello SQLAlchemy per l'entità Employee
Progetto: Officina Online (Ordini e Pagamenti)

Account dello staff. Il ruolo è salvato come testo libero e viene
normalizzato nell'enum Role solo al momento del login.
"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from officina.models import Base
from officina.models.mixins import SoftDeleteMixin, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from officina.models.order import Order


class Employee(Base, UUIDMixin, TimestampMixin, SoftDeleteMixin):
    """
    Modello per i dipendenti (Admin, Manager, Employee).

    Attributes:
        email: Email univoca
        hashed_password: Password hashata
        first_name: Nome
        last_name: Cognome
        phone: Telefono
        role: Ruolo salvato (es. "employee", " MANAGER ")
        is_active: Account attivo
    """

    __tablename__ = "employees"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    role: Mapped[Optional[str]] = mapped_column(
        String(50),
        nullable=True,
        default="Employee",
        doc="Ruolo come inserito; normalizzato al login",
    )

    assigned_orders: Mapped[List["Order"]] = relationship(
        "Order",
        back_populates="assigned_employee",
        passive_deletes=True,
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, email={self.email}, role={self.role})>"
