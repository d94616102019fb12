"""
Router FastAPI per i Pagamenti
Progetto: Officina Online (Ordini e Pagamenti)

Intent e conferma sono riservati ai clienti. Il webhook non richiede
token: è autenticato dalla firma del processore e risponde sempre 200.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Header, Path, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from officina.api.v1.orders import get_order_store
from officina.core.authorization import Action, ResourceRef, authorize
from officina.core.database import get_db
from officina.core.deps import CurrentPrincipal, CustomerPrincipal
from officina.schemas.order import OrderRead
from officina.schemas.payment import (
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    IntentResponse,
    PaymentHistory,
    PaymentRead,
    WebhookAck,
)
from officina.services.order_store import OrderStore
from officina.services.payment_reconciler import PaymentReconciler, get_payment_reconciler

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/payments",
    tags=["Pagamenti"],
)


@router.post(
    "/orders/{order_id}/intent",
    name="pagamento_intent",
    summary="Crea un intent di pagamento per l'ordine",
    response_model=IntentResponse,
    status_code=status.HTTP_200_OK,
)
async def create_intent(
    principal: CustomerPrincipal,
    order_id: uuid.UUID = Path(..., description="UUID dell'ordine"),
    db: AsyncSession = Depends(get_db),
    reconciler: PaymentReconciler = Depends(get_payment_reconciler),
) -> IntentResponse:
    authorize(
        principal,
        Action.PAYMENT_CREATE,
        ResourceRef(kind="payment", owner_customer_id=principal.id, exists=False),
    )
    result = await reconciler.create_intent(db, order_id, principal.id)
    return IntentResponse(
        client_secret=result.client_secret,
        payment_intent_id=result.payment_intent_id,
        amount=result.amount,
    )


@router.post(
    "/confirm",
    name="pagamento_conferma",
    summary="Conferma il pagamento di un ordine",
    response_model=ConfirmPaymentResponse,
    status_code=status.HTTP_200_OK,
)
async def confirm_payment(
    data: ConfirmPaymentRequest,
    principal: CustomerPrincipal,
    db: AsyncSession = Depends(get_db),
    reconciler: PaymentReconciler = Depends(get_payment_reconciler),
) -> ConfirmPaymentResponse:
    """
    Verifica l'intent presso il processore e segna l'ordine come pagato.

    Una conferma ripetuta dello stesso pagamento restituisce l'ordine invariato.
    """
    authorize(
        principal,
        Action.PAYMENT_CONFIRM,
        ResourceRef(kind="payment", owner_customer_id=principal.id),
    )
    order = await reconciler.confirm_payment(
        db,
        order_id=data.order_id,
        intent_id=data.payment_intent_id,
        customer_id=principal.id,
    )
    return ConfirmPaymentResponse(order=OrderRead.model_validate(order))


@router.post(
    "/webhook",
    name="pagamento_webhook",
    summary="Webhook del processore di pagamento",
    response_model=WebhookAck,
    status_code=status.HTTP_200_OK,
)
async def payment_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    db: AsyncSession = Depends(get_db),
    reconciler: PaymentReconciler = Depends(get_payment_reconciler),
) -> WebhookAck:
    payload = await request.body()
    await reconciler.handle_webhook(db, payload, stripe_signature)
    return WebhookAck()


@router.get(
    "/orders/{order_id}",
    name="pagamenti_storico",
    summary="Storico pagamenti dell'ordine",
    response_model=PaymentHistory,
    status_code=status.HTTP_200_OK,
)
async def payment_history(
    principal: CurrentPrincipal,
    order_id: uuid.UUID = Path(..., description="UUID dell'ordine"),
    db: AsyncSession = Depends(get_db),
    store: OrderStore = Depends(get_order_store),
    reconciler: PaymentReconciler = Depends(get_payment_reconciler),
) -> PaymentHistory:
    order = await store.get_order(db, order_id)
    authorize(
        principal,
        Action.PAYMENT_READ,
        ResourceRef(kind="payment", owner_customer_id=order.customer_id),
    )
    payments = await reconciler.list_payments(db, order_id)
    return PaymentHistory(payments=[PaymentRead.model_validate(p) for p in payments])


__all__ = ["router"]
