"""
Schemas Pydantic per gli Ordini
Progetto: Officina Online (Ordini e Pagamenti)

Definisce gli schemi di validazione e serializzazione per l'API.
"""

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# -------------------------------------------------------------------
# Enum per gli stati dell'ordine
# -------------------------------------------------------------------

class OrderStatus(str, Enum):
    """Stato di lavorazione di un ordine."""
    RECEIVED = "Received"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class PaymentStatus(str, Enum):
    """Stato di pagamento di un ordine (asse indipendente dallo status)."""
    PENDING = "pending"
    PAID = "paid"


# Posizione di ogni stato nel flusso Received → In Progress → Completed.
# Le transizioni all'indietro sono ammesse ma vengono segnalate nei log.
STATUS_RANK: dict[OrderStatus, int] = {
    OrderStatus.RECEIVED: 0,
    OrderStatus.IN_PROGRESS: 1,
    OrderStatus.COMPLETED: 2,
}


def is_backward_transition(current: str, new: str) -> bool:
    """
    Indica se il passaggio da current a new torna indietro nel flusso.

    Stati sconosciuti non sono mai considerati un passo indietro.
    """
    try:
        return STATUS_RANK[OrderStatus(new)] < STATUS_RANK[OrderStatus(current)]
    except ValueError:
        return False


def _strip_text(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


# -------------------------------------------------------------------
# Proiezioni delle entità collegate
# -------------------------------------------------------------------

class ServiceSummary(BaseModel):
    """Servizio del catalogo associato all'ordine."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None


class CustomerSummary(BaseModel):
    """Dati del cliente mostrati insieme all'ordine."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    is_active: bool = True


class VehicleSummary(BaseModel):
    """Dati del veicolo mostrati insieme all'ordine."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    license_plate: Optional[str] = None
    vin: Optional[str] = None
    color: Optional[str] = None
    mileage: Optional[int] = None


# -------------------------------------------------------------------
# Schemas per Order
# -------------------------------------------------------------------

class OrderCreate(BaseModel):
    """
    Schema per la creazione di un ordine.

    Attributes:
        customer_id: Cliente proprietario. Un cliente può ometterlo (viene
            usato il proprio id); lo staff deve indicarlo.
        vehicle_id: Veicolo del cliente (opzionale)
        description: Descrizione della richiesta
        service_ids: Servizi del catalogo da associare
        received_by: Chi ha ricevuto l'ordine
    """
    customer_id: Optional[uuid.UUID] = None
    vehicle_id: Optional[uuid.UUID] = None
    description: Optional[str] = Field(None, max_length=5000)
    service_ids: list[uuid.UUID] = Field(default_factory=list)
    received_by: Optional[str] = Field(None, max_length=255)

    @field_validator("description", "received_by")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip_text(v)

    @field_validator("service_ids")
    @classmethod
    def dedupe_service_ids(cls, v: list[uuid.UUID]) -> list[uuid.UUID]:
        """Rimuove i duplicati mantenendo l'ordine di inserimento."""
        return list(dict.fromkeys(v))


class OrderUpdate(BaseModel):
    """
    Schema per l'aggiornamento parziale di un ordine.

    Vengono applicati solo i campi presenti nella richiesta.
    customer_id non è modificabile. Se service_ids è presente sostituisce
    l'intero insieme dei servizi. version, se presente, deve coincidere con
    la versione corrente della riga.
    """
    model_config = ConfigDict(extra="forbid")

    vehicle_id: Optional[uuid.UUID] = None
    description: Optional[str] = Field(None, max_length=5000)
    status: Optional[OrderStatus] = None
    total_amount: Optional[Decimal] = Field(
        None, ge=Decimal("0"), max_digits=10, decimal_places=2
    )
    received_by: Optional[str] = Field(None, max_length=255)
    assigned_employee_id: Optional[uuid.UUID] = None
    completion_note: Optional[str] = Field(None, max_length=5000)
    service_ids: Optional[list[uuid.UUID]] = None
    version: Optional[int] = Field(None, ge=1)

    @field_validator("description", "received_by", "completion_note")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return _strip_text(v)

    @field_validator("service_ids")
    @classmethod
    def dedupe_service_ids(cls, v: Optional[list[uuid.UUID]]) -> Optional[list[uuid.UUID]]:
        if v is None:
            return None
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def reject_null_required(self) -> "OrderUpdate":
        """status e total_amount non possono essere azzerati con null."""
        for name in ("status", "total_amount"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} non può essere null")
        return self

    def patched_fields(self) -> frozenset[str]:
        """Campi dell'ordine toccati dalla richiesta (esclusa la versione)."""
        return frozenset(self.model_fields_set - {"version"})

    def changes(self) -> dict:
        """Valori da applicare all'ordine, esclusi service_ids e version."""
        data = self.model_dump(exclude_unset=True, exclude={"service_ids", "version"})
        if data.get("status") is not None:
            data["status"] = data["status"].value
        return data


class AddServiceRequest(BaseModel):
    """Richiesta di associazione di un servizio a un ordine."""
    service_id: uuid.UUID


class OrderRead(BaseModel):
    """
    Schema per la lettura di un ordine.

    Include sempre servizi, cliente e veicolo.
    """
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    customer_id: uuid.UUID
    vehicle_id: Optional[uuid.UUID]
    description: Optional[str]
    status: OrderStatus
    total_amount: Decimal
    payment_status: PaymentStatus
    received_by: Optional[str]
    assigned_employee_id: Optional[uuid.UUID]
    completion_note: Optional[str]
    version: int
    created_at: datetime.datetime
    updated_at: datetime.datetime
    services: list[ServiceSummary] = Field(default_factory=list)
    customer: Optional[CustomerSummary] = None
    vehicle: Optional[VehicleSummary] = None


# -------------------------------------------------------------------
# Filtri e lista paginata
# -------------------------------------------------------------------

class OrderFilter(BaseModel):
    """Filtri per l'elenco degli ordini."""
    customer_id: Optional[uuid.UUID] = None
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    assigned_employee_id: Optional[uuid.UUID] = None
    page: int = Field(default=1, ge=1)
    per_page: int = Field(default=20, ge=1, le=100)


class OrderList(BaseModel):
    """
    Schema per la risposta paginata degli ordini.

    Attributes:
        items: Lista degli ordini
        total: Numero totale di record
        page: Pagina corrente
        per_page: Record per pagina
        total_pages: Numero totale di pagine (calcolato automaticamente)
    """
    items: list[OrderRead]
    total: int
    page: int
    per_page: int
    total_pages: int = 0

    @model_validator(mode="after")
    def compute_total_pages(self) -> "OrderList":
        """Calcola automaticamente il numero totale di pagine."""
        if self.per_page > 0:
            self.total_pages = (self.total + self.per_page - 1) // self.per_page
        return self


__all__ = [
    "OrderStatus",
    "PaymentStatus",
    "STATUS_RANK",
    "is_backward_transition",
    "ServiceSummary",
    "CustomerSummary",
    "VehicleSummary",
    "OrderCreate",
    "OrderUpdate",
    "AddServiceRequest",
    "OrderRead",
    "OrderFilter",
    "OrderList",
]
