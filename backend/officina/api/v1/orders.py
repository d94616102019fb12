"""
Router FastAPI per gli Ordini
Progetto: Officina Online (Ordini e Pagamenti)

Ogni endpoint risolve l'identità, interroga il gate di autorizzazione
e solo dopo delega allo store.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from officina.core.authorization import Action, ResourceRef, authorize
from officina.core.database import get_db
from officina.core.deps import CurrentPrincipal, StaffPrincipal
from officina.core.exceptions import BusinessValidationError
from officina.schemas.order import (
    AddServiceRequest,
    OrderCreate,
    OrderFilter,
    OrderList,
    OrderRead,
    OrderStatus,
    OrderUpdate,
    PaymentStatus,
)
from officina.services.notifier import get_publisher
from officina.services.order_store import OrderStore

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Router con prefix e tag
router = APIRouter(
    prefix="/orders",
    tags=["Ordini"],
)


def get_order_store() -> OrderStore:
    """Dipendenza FastAPI: store degli ordini collegato al notifier."""
    return OrderStore(get_publisher())


@router.get(
    "",
    name="ordini_lista",
    summary="Lista ordini",
    description="Staff: tutti gli ordini con filtri. Cliente: solo i propri ordini.",
    response_model=OrderList,
    status_code=status.HTTP_200_OK,
)
async def list_orders(
    principal: CurrentPrincipal,
    page: int = Query(1, ge=1, description="Numero pagina"),
    per_page: int = Query(20, ge=1, le=100, description="Elementi per pagina"),
    status_filter: Optional[OrderStatus] = Query(None, alias="status", description="Filtro per stato"),
    payment_status: Optional[PaymentStatus] = Query(None, description="Filtro per stato pagamento"),
    customer_id: Optional[uuid.UUID] = Query(None, description="Filtro per cliente (solo staff)"),
    assigned_employee_id: Optional[uuid.UUID] = Query(None, description="Filtro per dipendente"),
    db: AsyncSession = Depends(get_db),
    store: OrderStore = Depends(get_order_store),
) -> OrderList:
    authorize(principal, Action.ORDER_LIST, ResourceRef(kind="order"))

    if principal.is_customer:
        customer_id = principal.id

    filters = OrderFilter(
        customer_id=customer_id,
        status=status_filter,
        payment_status=payment_status,
        assigned_employee_id=assigned_employee_id,
        page=page,
        per_page=per_page,
    )
    orders, total = await store.list_orders(db, filters)

    return OrderList(
        items=[OrderRead.model_validate(order) for order in orders],
        total=total,
        page=page,
        per_page=per_page,
        total_pages=0,  # calcolato automaticamente dal model_validator
    )


@router.get(
    "/{order_id}",
    name="ordine_dettaglio",
    summary="Dettaglio ordine",
    response_model=OrderRead,
    status_code=status.HTTP_200_OK,
)
async def get_order(
    principal: CurrentPrincipal,
    order_id: uuid.UUID = Path(..., description="UUID dell'ordine"),
    db: AsyncSession = Depends(get_db),
    store: OrderStore = Depends(get_order_store),
) -> OrderRead:
    order = await store.get_order(db, order_id)
    authorize(principal, Action.ORDER_READ, ResourceRef.order(order.customer_id))
    return OrderRead.model_validate(order)


@router.post(
    "",
    name="ordine_crea",
    summary="Crea ordine",
    description=(
        "Un cliente crea ordini a proprio nome; Admin e Manager possono "
        "crearli per conto di un cliente indicando customer_id."
    ),
    response_model=OrderRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_order(
    data: OrderCreate,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
    store: OrderStore = Depends(get_order_store),
) -> OrderRead:
    """
    Crea un ordine con i servizi indicati.

    Raises:
        AuthorizationError: cliente che crea per conto d'altri, ruolo non abilitato
        OwnershipViolationError: veicolo di un altro cliente
        NotFoundError: cliente, veicolo o servizi inesistenti
    """
    owner_id = data.customer_id
    if principal.is_customer and owner_id is None:
        owner_id = principal.id

    authorize(principal, Action.ORDER_CREATE, ResourceRef.new_order(owner_id))

    if owner_id is None:
        raise BusinessValidationError(
            "customer_id è obbligatorio per gli ordini creati dallo staff",
            error_code="CUSTOMER_REQUIRED",
        )

    order = await store.create_order(
        db,
        customer_id=owner_id,
        vehicle_id=data.vehicle_id,
        description=data.description,
        service_ids=data.service_ids,
        received_by=data.received_by,
    )
    return OrderRead.model_validate(order)


@router.put(
    "/{order_id}",
    name="ordine_aggiorna",
    summary="Aggiorna ordine",
    description=(
        "Aggiornamento parziale riservato allo staff. Un Employee può "
        "modificare solo status, total_amount e completion_note."
    ),
    response_model=OrderRead,
    status_code=status.HTTP_200_OK,
)
async def update_order(
    data: OrderUpdate,
    principal: StaffPrincipal,
    order_id: uuid.UUID = Path(..., description="UUID dell'ordine"),
    db: AsyncSession = Depends(get_db),
    store: OrderStore = Depends(get_order_store),
) -> OrderRead:
    order = await store.get_order(db, order_id)
    authorize(
        principal,
        Action.ORDER_UPDATE,
        ResourceRef.order(order.customer_id, data.patched_fields()),
    )

    order = await store.update_order(db, order_id, data)
    return OrderRead.model_validate(order)


@router.post(
    "/{order_id}/services",
    name="ordine_aggiungi_servizio",
    summary="Aggiunge un servizio all'ordine",
    response_model=OrderRead,
    status_code=status.HTTP_200_OK,
)
async def add_service(
    data: AddServiceRequest,
    principal: CurrentPrincipal,
    order_id: uuid.UUID = Path(..., description="UUID dell'ordine"),
    db: AsyncSession = Depends(get_db),
    store: OrderStore = Depends(get_order_store),
) -> OrderRead:
    order = await store.get_order(db, order_id)
    authorize(principal, Action.ORDER_ADD_SERVICE, ResourceRef.order(order.customer_id))

    order = await store.add_service(db, order_id, data.service_id)
    return OrderRead.model_validate(order)


__all__ = ["router", "get_order_store"]
