"""
Router FastAPI per i Veicoli
Progetto: Officina Online (Ordini e Pagamenti)
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from officina.core.authorization import Action, ResourceRef, authorize
from officina.core.database import get_db
from officina.core.deps import CurrentPrincipal
from officina.schemas.vehicle import VehicleCreate, VehicleRead
from officina.services.vehicle_service import VehicleService

logger = logging.getLogger(__name__)

# Istanza del service
vehicle_service = VehicleService()

router = APIRouter(
    prefix="/vehicles",
    tags=["Veicoli"],
)


@router.post(
    "",
    name="veicolo_crea",
    summary="Registra un veicolo",
    description="Un cliente registra veicoli solo a proprio nome.",
    response_model=VehicleRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_vehicle(
    data: VehicleCreate,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
) -> VehicleRead:
    owner_id = data.customer_id or principal.id
    authorize(
        principal,
        Action.VEHICLE_CREATE,
        ResourceRef(kind="vehicle", owner_customer_id=owner_id, exists=False),
    )

    vehicle = await vehicle_service.create(db, owner_id, data)
    await db.commit()
    await db.refresh(vehicle)
    return VehicleRead.model_validate(vehicle)


@router.get(
    "/{vehicle_id}",
    name="veicolo_dettaglio",
    summary="Dettaglio veicolo",
    response_model=VehicleRead,
    status_code=status.HTTP_200_OK,
)
async def get_vehicle(
    principal: CurrentPrincipal,
    vehicle_id: uuid.UUID = Path(..., description="UUID del veicolo"),
    db: AsyncSession = Depends(get_db),
) -> VehicleRead:
    vehicle = await vehicle_service.get_by_id(db, vehicle_id)
    authorize(
        principal,
        Action.VEHICLE_READ,
        ResourceRef(kind="vehicle", owner_customer_id=vehicle.customer_id),
    )
    return VehicleRead.model_validate(vehicle)


__all__ = ["router"]
