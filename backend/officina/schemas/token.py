"""
Schemas Pydantic per l'autenticazione JWT
Progetto: Officina Online (Ordini e Pagamenti)

Schemas per token JWT, relativi payload e credenziali di login.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class TokenResponse(BaseModel):
    """
    Schema per la risposta contenente il token JWT.

    Attributes:
        access_token: Token di accesso JWT
        token_type: Tipo di token (default: bearer)
        kind: Tipo di identità ("staff" o "customer")
        role: Ruolo normalizzato
    """

    access_token: str = Field(..., description="Token di accesso JWT")
    token_type: str = Field(default="bearer", description="Tipo di token")
    kind: str = Field(..., description="Tipo di identità (staff/customer)")
    role: str = Field(..., description="Ruolo normalizzato")


class TokenPayload(BaseModel):
    """
    Schema per il payload contenuto nei token JWT.

    Attributes:
        sub: Subject - ID del cliente o del dipendente come stringa
        kind: "staff" oppure "customer"
        role: Ruolo come presente nel token (può mancare)
        exp: Expiration - Data/ora di scadenza
        type: Tipo di token ("access")
    """

    sub: str = Field(..., description="ID soggetto")
    kind: Optional[str] = Field(None, description="Tipo di identità")
    role: Optional[str] = Field(None, description="Ruolo")
    exp: datetime = Field(..., description="Data/ora di scadenza")
    type: Optional[str] = Field(None, description="Tipo di token")


class LoginRequest(BaseModel):
    """Credenziali di accesso (staff o cliente)."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=100)


class CustomerRegister(BaseModel):
    """Registrazione self-service di un cliente."""

    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)


class PrincipalRead(BaseModel):
    """Identità risolta dal token corrente."""

    id: uuid.UUID
    kind: str
    role: Optional[str]


__all__ = [
    "TokenResponse",
    "TokenPayload",
    "LoginRequest",
    "CustomerRegister",
    "PrincipalRead",
]
