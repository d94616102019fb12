"""
Modello SQLAlchemy per il catalogo servizi
Progetto: Officina Online (Ordini e Pagamenti)
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from officina.models import Base
from officina.models.mixins import TimestampMixin, UUIDMixin


class Service(Base, UUIDMixin, TimestampMixin):
    """Voce del catalogo servizi (es. cambio olio, revisione freni)."""

    __tablename__ = "services"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Service(id={self.id}, name={self.name})>"
