"""
Service Layer per i Dipendenti
Progetto: Officina Online (Ordini e Pagamenti)

Gestione degli account dello staff, riservata agli amministratori.
"""

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from officina.core.exceptions import DuplicateError, NotFoundError
from officina.core.security import hash_password
from officina.models import Employee
from officina.schemas.employee import EmployeeCreate, EmployeeUpdate

logger = logging.getLogger(__name__)


class EmployeeService:
    """Service per le operazioni CRUD sui dipendenti."""

    async def get_all(self, db: AsyncSession) -> tuple[list[Employee], int]:
        """Tutti i dipendenti, in ordine alfabetico."""
        result = await db.execute(
            select(Employee).order_by(Employee.last_name, Employee.first_name)
        )
        employees = list(result.scalars().all())

        count_result = await db.execute(select(func.count()).select_from(Employee))
        total = count_result.scalar() or 0
        return employees, total

    async def get_by_id(self, db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        result = await db.execute(select(Employee).where(Employee.id == employee_id))
        employee = result.scalar_one_or_none()
        if not employee:
            raise NotFoundError(f"Dipendente con ID {employee_id} non trovato")
        return employee

    async def create(self, db: AsyncSession, data: EmployeeCreate) -> Employee:
        """
        Crea un account dello staff.

        Raises:
            DuplicateError: Email già in uso
        """
        email = data.email.lower()
        existing = await db.execute(select(Employee.id).where(Employee.email == email))
        if existing.scalar_one_or_none() is not None:
            raise DuplicateError(f"L'email {email} è già registrata")

        employee = Employee(
            email=email,
            hashed_password=hash_password(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            role=data.role.value,
        )
        db.add(employee)
        await db.flush()

        logger.info("Creato dipendente %s (%s)", employee.id, employee.role)
        return employee

    async def update(
        self,
        db: AsyncSession,
        employee_id: uuid.UUID,
        data: EmployeeUpdate,
    ) -> Employee:
        """Aggiorna solo i campi forniti; la password viene ri-hashata."""
        employee = await self.get_by_id(db, employee_id)

        update_data = data.model_dump(exclude_unset=True)
        password = update_data.pop("password", None)
        if password:
            employee.hashed_password = hash_password(password)

        # Un ruolo null verrebbe letto come Admin al login: ignorato
        update_data = {
            k: v for k, v in update_data.items() if v is not None or k == "phone"
        }
        if "role" in update_data:
            update_data["role"] = update_data["role"].value

        for field, value in update_data.items():
            setattr(employee, field, value)

        await db.flush()
        logger.info("Aggiornato dipendente %s", employee_id)
        return employee


__all__ = ["EmployeeService"]
