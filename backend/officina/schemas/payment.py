"""
Schemas Pydantic per i Pagamenti
Progetto: Officina Online (Ordini e Pagamenti)

I payload scambiati con il frontend di pagamento usano chiavi camelCase
(clientSecret, paymentIntentId, orderId); i campi Python restano snake_case.
"""

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from officina.schemas.order import OrderRead


class PaymentRecordStatus(str, Enum):
    """Stato di un tentativo di pagamento."""
    PENDING = "pending"
    COMPLETED = "completed"


class PaymentMethod(str, Enum):
    """Gateway che ha emesso l'intent."""
    STRIPE = "stripe"
    SANDBOX = "sandbox"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IntentResponse(_CamelModel):
    """
    Risposta alla creazione di un intent di pagamento.

    Attributes:
        client_secret: Segreto da passare al widget di pagamento
        payment_intent_id: Identificativo dell'intent
        amount: Importo dell'ordine in unità maggiori
    """
    client_secret: str
    payment_intent_id: str
    amount: Decimal

    @field_serializer("amount")
    def serialize_amount(self, amount: Decimal) -> float:
        """Importo come numero JSON (es. 150.0), non come stringa."""
        return float(amount)


class ConfirmPaymentRequest(_CamelModel):
    """Richiesta di conferma: {orderId, paymentIntentId}."""
    order_id: uuid.UUID
    payment_intent_id: str = Field(..., min_length=1, max_length=255)


class ConfirmPaymentResponse(BaseModel):
    """Esito della conferma con l'ordine aggiornato."""
    message: str = "Payment confirmed successfully"
    order: OrderRead


class PaymentRead(BaseModel):
    """Riga dello storico pagamenti di un ordine."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_id: uuid.UUID
    customer_id: uuid.UUID
    amount: Decimal
    currency: str
    payment_method: PaymentMethod
    external_intent_id: str
    status: PaymentRecordStatus
    transaction_id: Optional[str] = None
    metadata: Optional[dict[str, Any]] = Field(
        default=None, validation_alias="payment_metadata"
    )
    created_at: datetime.datetime
    updated_at: datetime.datetime


class PaymentHistory(BaseModel):
    """Storico pagamenti di un ordine, dal più recente."""
    payments: list[PaymentRead]


class WebhookAck(BaseModel):
    """Conferma di ricezione restituita sempre al processore."""
    received: bool = True


__all__ = [
    "PaymentRecordStatus",
    "PaymentMethod",
    "IntentResponse",
    "ConfirmPaymentRequest",
    "ConfirmPaymentResponse",
    "PaymentRead",
    "PaymentHistory",
    "WebhookAck",
]
