"""
Router FastAPI per i Dipendenti
Progetto: Officina Online (Ordini e Pagamenti)

Tutti gli endpoint sono riservati agli amministratori.
"""

import uuid

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from officina.core.authorization import Action, ResourceRef, authorize
from officina.core.database import get_db
from officina.core.deps import StaffPrincipal
from officina.core.identity import Principal
from officina.schemas.employee import EmployeeCreate, EmployeeList, EmployeeRead, EmployeeUpdate
from officina.services.employee_service import EmployeeService

# Istanza del service
employee_service = EmployeeService()

router = APIRouter(
    prefix="/employees",
    tags=["Dipendenti"],
)


async def require_admin(principal: StaffPrincipal) -> Principal:
    """Dipendenza: consente l'accesso solo agli Admin."""
    authorize(principal, Action.EMPLOYEE_MANAGE, ResourceRef(kind="employee"))
    return principal


@router.get(
    "",
    summary="Lista dipendenti",
    response_model=EmployeeList,
    dependencies=[Depends(require_admin)],
)
async def list_employees(db: AsyncSession = Depends(get_db)) -> EmployeeList:
    employees, total = await employee_service.get_all(db)
    return EmployeeList(
        items=[EmployeeRead.model_validate(e) for e in employees],
        total=total,
    )


@router.post(
    "",
    summary="Crea dipendente",
    response_model=EmployeeRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_employee(
    data: EmployeeCreate,
    db: AsyncSession = Depends(get_db),
) -> EmployeeRead:
    employee = await employee_service.create(db, data)
    await db.commit()
    await db.refresh(employee)
    return EmployeeRead.model_validate(employee)


@router.put(
    "/{employee_id}",
    summary="Aggiorna dipendente",
    response_model=EmployeeRead,
    dependencies=[Depends(require_admin)],
)
async def update_employee(
    data: EmployeeUpdate,
    employee_id: uuid.UUID = Path(..., description="UUID del dipendente"),
    db: AsyncSession = Depends(get_db),
) -> EmployeeRead:
    employee = await employee_service.update(db, employee_id, data)
    await db.commit()
    await db.refresh(employee)
    return EmployeeRead.model_validate(employee)


__all__ = ["router"]
