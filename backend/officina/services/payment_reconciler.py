"""
Riconciliazione dei pagamenti
Progetto: Officina Online (Ordini e Pagamenti)

Collega gli intent del processore di pagamento agli ordini.

Il passaggio a "pagato" è condiviso tra conferma del cliente e webhook
ed è applicato con due UPDATE condizionali nella stessa transazione:

1. payments: pending → completed (0 righe = già completato, nessuna azione)
2. orders: payment_status pending → paid (0 righe = ordine già saldato da
   un altro pagamento: AlreadyPaidError e rollback)

Così conferme e webhook concorrenti applicano la transizione al più una volta.
"""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from officina.core.config import settings
from officina.core.exceptions import (
    AlreadyPaidError,
    AuthorizationError,
    ConflictError,
    ExternalServiceError,
    InvalidAmountError,
    NotFoundError,
    PaymentMismatchError,
    PaymentNotCompletedError,
    WebhookSignatureError,
)
from officina.models import Order, Payment
from officina.schemas.order import PaymentStatus
from officina.schemas.payment import PaymentRecordStatus
from officina.services.order_store import hydrated_order_query
from officina.services.payment_gateway import (
    EVENT_INTENT_SUCCEEDED,
    INTENT_CANCELED,
    PaymentGateway,
    get_payment_gateway,
    to_minor_units,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IntentResult:
    """Dati restituiti al client per completare il pagamento."""

    client_secret: str
    payment_intent_id: str
    amount: Decimal


class PaymentReconciler:
    """
    Service per intent, conferme e webhook di pagamento.

    Args:
        gateway: Processore di pagamento scelto all'avvio
    """

    def __init__(self, gateway: PaymentGateway) -> None:
        self.gateway = gateway

    async def _owned_order(
        self,
        db: AsyncSession,
        order_id: uuid.UUID,
        customer_id: uuid.UUID,
    ) -> Order:
        """Ordine del cliente; un ordine altrui è indistinguibile da uno inesistente."""
        result = await db.execute(
            select(Order)
            .where(Order.id == order_id, Order.customer_id == customer_id)
            .options(selectinload(Order.customer))
        )
        order = result.scalar_one_or_none()
        if not order:
            logger.warning("Ordine %s non trovato per il cliente %s", order_id, customer_id)
            raise NotFoundError("Ordine non trovato o accesso negato")
        return order

    async def _reload(self, db: AsyncSession, order_id: uuid.UUID) -> Order:
        result = await db.execute(hydrated_order_query().where(Order.id == order_id))
        return result.scalar_one()

    async def _mark_paid(
        self,
        db: AsyncSession,
        payment_id: uuid.UUID,
        order_id: uuid.UUID,
        transaction_id: str,
    ) -> bool:
        """
        Applica la transizione a "pagato" (senza commit).

        Returns:
            True se applicata, False se il pagamento era già completato

        Raises:
            AlreadyPaidError: l'ordine è già stato saldato da un altro pagamento
        """
        payment_result = await db.execute(
            update(Payment)
            .where(
                Payment.id == payment_id,
                Payment.status == PaymentRecordStatus.PENDING.value,
            )
            .values(
                status=PaymentRecordStatus.COMPLETED.value,
                transaction_id=transaction_id,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        if payment_result.rowcount == 0:
            logger.info("Pagamento %s già completato: nessuna azione", payment_id)
            return False

        order_result = await db.execute(
            update(Order)
            .where(
                Order.id == order_id,
                Order.payment_status == PaymentStatus.PENDING.value,
            )
            .values(
                payment_status=PaymentStatus.PAID.value,
                version=Order.version + 1,
                updated_at=func.now(),
            )
            .execution_options(synchronize_session=False)
        )
        if order_result.rowcount == 0:
            logger.warning(
                "Ordine %s già saldato: pagamento %s non applicato",
                order_id,
                payment_id,
            )
            raise AlreadyPaidError()

        logger.info("Ordine %s pagato (pagamento %s)", order_id, payment_id)
        return True

    # ------------------------------------------------------------
    # Operazioni
    # ------------------------------------------------------------
    async def create_intent(
        self,
        db: AsyncSession,
        order_id: uuid.UUID,
        customer_id: uuid.UUID,
    ) -> IntentResult:
        """
        Crea un intent di pagamento per l'importo dell'ordine.

        Ogni chiamata crea un nuovo tentativo (riga Payment "pending").

        Raises:
            NotFoundError: Ordine inesistente o di un altro cliente
            InvalidAmountError: Importo nullo o negativo
            AlreadyPaidError: Ordine già pagato
            ExternalServiceError: Errore del processore
        """
        order = await self._owned_order(db, order_id, customer_id)

        if not order.total_amount or order.total_amount <= 0:
            raise InvalidAmountError()

        if order.payment_status == PaymentStatus.PAID.value:
            raise AlreadyPaidError()

        customer_name = order.customer.full_name if order.customer else ""
        metadata = {
            "order_id": str(order.id),
            "customer_id": str(customer_id),
            "customer_name": customer_name,
        }

        intent = await self.gateway.create_intent(
            to_minor_units(order.total_amount),
            settings.payment_currency,
            metadata,
            description=f"Pagamento ordine #{order.id}",
        )
        if not intent.client_secret:
            raise ExternalServiceError("Il processore non ha restituito il client secret")

        payment = Payment(
            order_id=order.id,
            customer_id=customer_id,
            amount=order.total_amount,
            currency=settings.payment_currency,
            payment_method=self.gateway.method,
            external_intent_id=intent.id,
            status=PaymentRecordStatus.PENDING.value,
            payment_metadata=metadata,
        )

        try:
            db.add(payment)
            await db.flush()
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            logger.error("Intent %s già registrato: %s", intent.id, exc.orig)
            raise ConflictError("Intento di pagamento già registrato") from exc
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Intent %s creato per ordine %s (%s %s)",
            intent.id,
            order.id,
            order.total_amount,
            settings.payment_currency,
        )
        return IntentResult(
            client_secret=intent.client_secret,
            payment_intent_id=intent.id,
            amount=order.total_amount,
        )

    async def confirm_payment(
        self,
        db: AsyncSession,
        order_id: uuid.UUID,
        intent_id: str,
        customer_id: uuid.UUID,
    ) -> Order:
        """
        Conferma un pagamento verificandolo presso il processore.

        Una conferma ripetuta per un pagamento già completato restituisce
        l'ordine senza modifiche.

        Raises:
            NotFoundError: Ordine o pagamento non trovati per il cliente
            AlreadyPaidError: Ordine già saldato da un altro pagamento
            PaymentNotCompletedError: Intent non riuscito (PAYMENT_REJECTED se annullato)
            PaymentMismatchError: Intent relativo a un altro ordine
            AuthorizationError: Intent relativo a un altro cliente (PAYMENT_MISMATCH)
        """
        try:
            order = await self._owned_order(db, order_id, customer_id)

            payment_result = await db.execute(
                select(Payment).where(
                    Payment.order_id == order_id,
                    Payment.external_intent_id == intent_id,
                    Payment.customer_id == customer_id,
                )
            )
            payment: Optional[Payment] = payment_result.scalar_one_or_none()

            if order.payment_status == PaymentStatus.PAID.value:
                if payment is not None and payment.status == PaymentRecordStatus.COMPLETED.value:
                    logger.info("Conferma ripetuta per ordine %s: già pagato", order_id)
                    return await self._reload(db, order_id)
                raise AlreadyPaidError()

            if payment is None:
                raise NotFoundError(
                    "Pagamento non trovato o accesso negato",
                    error_code="PAYMENT_NOT_FOUND",
                )

            intent = await self.gateway.retrieve_intent(intent_id)

            if not intent.succeeded:
                if intent.status == INTENT_CANCELED:
                    raise PaymentNotCompletedError(
                        "Pagamento rifiutato o annullato",
                        error_code="PAYMENT_REJECTED",
                        extra={"status": intent.status},
                    )
                raise PaymentNotCompletedError(
                    f"Pagamento non completato. Stato: {intent.status}",
                    extra={"status": intent.status},
                )

            if intent.metadata.get("order_id") != str(order_id):
                raise PaymentMismatchError()

            if intent.metadata.get("customer_id") != str(customer_id):
                raise AuthorizationError(
                    "L'intento di pagamento non appartiene a questo cliente",
                    error_code="PAYMENT_MISMATCH",
                )

            await self._mark_paid(db, payment.id, order_id, transaction_id=intent.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        return await self._reload(db, order_id)

    async def handle_webhook(
        self,
        db: AsyncSession,
        payload: bytes,
        signature: Optional[str],
    ) -> None:
        """
        Elabora un webhook del processore.

        Non solleva mai eccezioni: firme non valide, intent sconosciuti ed
        errori vengono solo registrati nei log.
        """
        try:
            event = self.gateway.parse_webhook(payload, signature)
        except WebhookSignatureError as exc:
            logger.warning("Webhook rifiutato: %s", exc.detail)
            return

        if event.type != EVENT_INTENT_SUCCEEDED or event.intent is None:
            logger.debug("Webhook ignorato: evento %s", event.type)
            return

        intent_id = event.intent.id
        try:
            result = await db.execute(
                select(Payment).where(Payment.external_intent_id == intent_id)
            )
            payment = result.scalar_one_or_none()

            if payment is None:
                logger.warning("Webhook per intent sconosciuto: %s", intent_id)
                return

            await self._mark_paid(db, payment.id, payment.order_id, transaction_id=intent_id)
            await db.commit()
        except AlreadyPaidError:
            await db.rollback()
        except Exception:
            await db.rollback()
            logger.exception("Errore nell'elaborazione del webhook per intent %s", intent_id)

    async def list_payments(self, db: AsyncSession, order_id: uuid.UUID) -> list[Payment]:
        """Storico dei pagamenti di un ordine, dal più recente."""
        result = await db.execute(
            select(Payment)
            .where(Payment.order_id == order_id)
            .order_by(Payment.created_at.desc())
        )
        return list(result.scalars().all())


def get_payment_reconciler() -> PaymentReconciler:
    """Dipendenza FastAPI: reconciler con il gateway configurato."""
    return PaymentReconciler(get_payment_gateway())


__all__ = [
    "IntentResult",
    "PaymentReconciler",
    "get_payment_reconciler",
]
