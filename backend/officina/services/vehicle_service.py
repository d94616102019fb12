"""
Service Layer per i Veicoli
Progetto: Officina Online (Ordini e Pagamenti)
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from officina.core.exceptions import NotFoundError
from officina.models import Customer, Vehicle
from officina.schemas.vehicle import VehicleCreate

logger = logging.getLogger(__name__)


class VehicleService:
    """Registrazione e lettura dei veicoli dei clienti."""

    async def get_by_id(self, db: AsyncSession, vehicle_id: uuid.UUID) -> Vehicle:
        """
        Recupera un veicolo tramite ID.

        Raises:
            NotFoundError: Se il veicolo non esiste
        """
        result = await db.execute(select(Vehicle).where(Vehicle.id == vehicle_id))
        vehicle = result.scalar_one_or_none()

        if not vehicle:
            raise NotFoundError(f"Veicolo con ID {vehicle_id} non trovato")
        return vehicle

    async def create(
        self,
        db: AsyncSession,
        customer_id: uuid.UUID,
        data: VehicleCreate,
    ) -> Vehicle:
        """
        Registra un veicolo per il cliente indicato.

        Raises:
            NotFoundError: Se il cliente non esiste
        """
        customer_result = await db.execute(select(Customer.id).where(Customer.id == customer_id))
        if customer_result.scalar_one_or_none() is None:
            raise NotFoundError(f"Cliente con ID {customer_id} non trovato")

        vehicle = Vehicle(
            customer_id=customer_id,
            **data.model_dump(exclude={"customer_id"}),
        )
        db.add(vehicle)
        await db.flush()

        logger.info("Registrato veicolo %s per cliente %s", vehicle.id, customer_id)
        return vehicle


__all__ = ["VehicleService"]
