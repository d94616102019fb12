"""
Gateway verso il processore di pagamento
Progetto: Officina Online (Ordini e Pagamenti)

Un'unica interfaccia (PaymentGateway) con due implementazioni:

- StripeGateway: usa l'SDK stripe; le chiamate bloccanti girano in un thread
- SandboxGateway: processore simulato per sviluppo e test, con intent
  sintetici "sandbox_pi_..." e webhook firmati HMAC-SHA256

L'implementazione viene scelta una sola volta all'avvio da
get_payment_gateway() in base alla configurazione.
"""

import asyncio
import hashlib
import hmac
import json
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Any, Optional

import stripe

from officina.core.config import settings
from officina.core.exceptions import (
    ExternalServiceError,
    PaymentMismatchError,
    WebhookSignatureError,
)

logger = logging.getLogger(__name__)

INTENT_SUCCEEDED = "succeeded"
INTENT_CANCELED = "canceled"
EVENT_INTENT_SUCCEEDED = "payment_intent.succeeded"


def to_minor_units(amount: Decimal) -> int:
    """Converte un importo in centesimi (arrotondamento commerciale)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class IntentHandle:
    """
    Vista normalizzata di un intent di pagamento.

    Attributes:
        id: Identificativo presso il processore
        status: Stato riportato dal processore (es. "succeeded")
        amount_minor: Importo in centesimi
        currency: Valuta (minuscolo)
        metadata: Metadati associati all'intent (order_id, customer_id, ...)
        client_secret: Segreto per il widget di pagamento (solo in creazione)
    """

    id: str
    status: str
    amount_minor: int = 0
    currency: str = ""
    metadata: dict[str, str] = field(default_factory=dict)
    client_secret: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == INTENT_SUCCEEDED


@dataclass(frozen=True)
class WebhookEvent:
    """Evento ricevuto dal processore, con l'intent a cui si riferisce."""

    type: str
    intent: Optional[IntentHandle] = None


def _handle_from_object(obj: Any) -> IntentHandle:
    metadata = obj.get("metadata") or {}
    return IntentHandle(
        id=str(obj["id"]),
        status=str(obj.get("status") or ""),
        amount_minor=int(obj.get("amount") or 0),
        currency=str(obj.get("currency") or ""),
        metadata={str(k): str(v) for k, v in dict(metadata).items()},
        client_secret=obj.get("client_secret"),
    )


class PaymentGateway(ABC):
    """Porta verso il processore di pagamento."""

    #: Valore salvato in Payment.payment_method
    method: str

    @abstractmethod
    async def create_intent(
        self,
        amount_minor: int,
        currency: str,
        metadata: dict[str, str],
        description: Optional[str] = None,
    ) -> IntentHandle:
        ...

    @abstractmethod
    async def retrieve_intent(self, intent_id: str) -> IntentHandle:
        ...

    @abstractmethod
    def parse_webhook(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        """
        Verifica la firma e decodifica l'evento.

        Raises:
            WebhookSignatureError: firma assente o non valida, payload illeggibile
        """


class StripeGateway(PaymentGateway):
    """Gateway Stripe (SDK ufficiale, chiave passata a ogni chiamata)."""

    method = "stripe"

    def __init__(self, secret_key: str, webhook_secret: str = "") -> None:
        self._secret_key = secret_key
        self._webhook_secret = webhook_secret

    async def create_intent(
        self,
        amount_minor: int,
        currency: str,
        metadata: dict[str, str],
        description: Optional[str] = None,
    ) -> IntentHandle:
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.create,
                amount=amount_minor,
                currency=currency,
                metadata=metadata,
                description=description,
                api_key=self._secret_key,
            )
        except stripe.StripeError as exc:
            logger.error("Creazione intent Stripe fallita: %s", exc)
            raise ExternalServiceError(
                "Errore durante la creazione del pagamento",
                extra={"provider_message": getattr(exc, "user_message", None)},
            ) from exc

        return _handle_from_object(intent)

    async def retrieve_intent(self, intent_id: str) -> IntentHandle:
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.retrieve,
                intent_id,
                api_key=self._secret_key,
            )
        except stripe.InvalidRequestError as exc:
            logger.warning("Intent Stripe non valido %s: %s", intent_id, exc)
            raise PaymentMismatchError("Intento di pagamento non valido") from exc
        except stripe.StripeError as exc:
            logger.error("Verifica intent Stripe %s fallita: %s", intent_id, exc)
            raise ExternalServiceError("Impossibile verificare il pagamento") from exc

        return _handle_from_object(intent)

    def parse_webhook(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        if not self._webhook_secret:
            raise WebhookSignatureError("Segreto dei webhook Stripe non configurato")
        if not signature:
            raise WebhookSignatureError("Header Stripe-Signature mancante")

        try:
            event = stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
        except ValueError as exc:
            raise WebhookSignatureError("Payload del webhook non valido") from exc
        except stripe.SignatureVerificationError as exc:
            raise WebhookSignatureError() from exc

        obj = event["data"]["object"]
        intent = _handle_from_object(obj) if obj.get("object") == "payment_intent" else None
        return WebhookEvent(type=event["type"], intent=intent)


class SandboxGateway(PaymentGateway):
    """
    Processore simulato.

    L'id dell'intent contiene ordine e cliente:
    sandbox_pi_<order hex>_<customer hex>_<nonce>. Il recupero di un intent
    ben formato restituisce sempre "succeeded" con quei metadati, così il
    flusso di conferma è riproducibile senza rete.
    """

    method = "sandbox"
    PREFIX = "sandbox_pi_"

    def __init__(self, webhook_secret: str) -> None:
        self._webhook_secret = webhook_secret.encode()

    def _digest(self, data: bytes) -> str:
        return hmac.new(self._webhook_secret, data, hashlib.sha256).hexdigest()

    def sign(self, payload: bytes) -> str:
        """Firma un payload come farebbe il processore simulato."""
        return self._digest(payload)

    async def create_intent(
        self,
        amount_minor: int,
        currency: str,
        metadata: dict[str, str],
        description: Optional[str] = None,
    ) -> IntentHandle:
        try:
            order_id = uuid.UUID(metadata["order_id"])
            customer_id = uuid.UUID(metadata["customer_id"])
        except (KeyError, ValueError) as exc:
            raise PaymentMismatchError("Metadati dell'intento incompleti") from exc

        intent_id = f"{self.PREFIX}{order_id.hex}_{customer_id.hex}_{uuid.uuid4().hex[:12]}"
        logger.info("Intent sandbox creato: %s (%d %s)", intent_id, amount_minor, currency)
        return IntentHandle(
            id=intent_id,
            status="requires_payment_method",
            amount_minor=amount_minor,
            currency=currency,
            metadata=dict(metadata),
            client_secret=f"{intent_id}_secret_{self._digest(intent_id.encode())[:16]}",
        )

    async def retrieve_intent(self, intent_id: str) -> IntentHandle:
        parts = intent_id[len(self.PREFIX):].split("_") if intent_id.startswith(self.PREFIX) else []
        if len(parts) != 3:
            raise PaymentMismatchError("Intento di pagamento non valido")
        try:
            order_id = uuid.UUID(hex=parts[0])
            customer_id = uuid.UUID(hex=parts[1])
        except ValueError as exc:
            raise PaymentMismatchError("Intento di pagamento non valido") from exc

        return IntentHandle(
            id=intent_id,
            status=INTENT_SUCCEEDED,
            metadata={"order_id": str(order_id), "customer_id": str(customer_id)},
        )

    def parse_webhook(self, payload: bytes, signature: Optional[str]) -> WebhookEvent:
        if not signature or not hmac.compare_digest(self._digest(payload), signature):
            raise WebhookSignatureError()

        try:
            event = json.loads(payload)
            obj = event.get("data", {}).get("object") or {}
            intent = _handle_from_object(obj) if obj.get("id") else None
            return WebhookEvent(type=str(event["type"]), intent=intent)
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise WebhookSignatureError("Payload del webhook non valido") from exc


@lru_cache()
def get_payment_gateway() -> PaymentGateway:
    """
    Restituisce il gateway configurato (istanza unica).

    Raises:
        RuntimeError: gateway sandbox richiesto in produzione
    """
    provider = settings.effective_payment_provider

    if provider == "stripe":
        logger.info("Gateway di pagamento: Stripe")
        return StripeGateway(settings.stripe_secret_key, settings.stripe_webhook_secret)

    if settings.is_production:
        raise RuntimeError("Il gateway sandbox non è consentito in produzione")

    logger.warning("Stripe non configurato: uso del gateway di pagamento sandbox")
    return SandboxGateway(settings.sandbox_webhook_secret)


__all__ = [
    "INTENT_SUCCEEDED",
    "INTENT_CANCELED",
    "EVENT_INTENT_SUCCEEDED",
    "to_minor_units",
    "IntentHandle",
    "WebhookEvent",
    "PaymentGateway",
    "StripeGateway",
    "SandboxGateway",
    "get_payment_gateway",
]
