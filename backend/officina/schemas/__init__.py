"""
Schemas Pydantic per il progetto Officina Online

Questo modulo contiene tutti gli schemi Pydantic utilizzati per la validazione
e serializzazione delle richieste e delle risposte API.
"""

from officina.schemas.token import (
    CustomerRegister,
    LoginRequest,
    PrincipalRead,
    TokenPayload,
    TokenResponse,
)
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
from officina.schemas.payment import (
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    IntentResponse,
    PaymentHistory,
    PaymentRead,
    WebhookAck,
)
from officina.schemas.vehicle import VehicleCreate, VehicleRead
from officina.schemas.employee import (
    EmployeeCreate,
    EmployeeList,
    EmployeeRead,
    EmployeeUpdate,
)

__all__ = [
    "CustomerRegister",
    "LoginRequest",
    "PrincipalRead",
    "TokenPayload",
    "TokenResponse",
    "AddServiceRequest",
    "OrderCreate",
    "OrderFilter",
    "OrderList",
    "OrderRead",
    "OrderStatus",
    "OrderUpdate",
    "PaymentStatus",
    "ConfirmPaymentRequest",
    "ConfirmPaymentResponse",
    "IntentResponse",
    "PaymentHistory",
    "PaymentRead",
    "WebhookAck",
    "VehicleCreate",
    "VehicleRead",
    "EmployeeCreate",
    "EmployeeList",
    "EmployeeRead",
    "EmployeeUpdate",
]
