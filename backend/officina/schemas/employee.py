"""
Schemas Pydantic per i dipendenti
Progetto: Officina Online (Ordini e Pagamenti)
"""

import datetime
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from officina.core.roles import Role, STAFF_ROLES


def _validate_staff_role(v: Optional[Role]) -> Optional[Role]:
    if v is not None and v not in STAFF_ROLES:
        raise ValueError("Il ruolo deve essere Admin, Manager o Employee")
    return v


class EmployeeCreate(BaseModel):
    """Creazione di un account dello staff (solo Admin)."""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    role: Role = Role.EMPLOYEE

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: Role) -> Role:
        return _validate_staff_role(v)


class EmployeeUpdate(BaseModel):
    """Aggiornamento parziale di un dipendente."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    role: Optional[Role] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(None, min_length=8, max_length=100)

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: Optional[Role]) -> Optional[Role]:
        return _validate_staff_role(v)


class EmployeeRead(BaseModel):
    """
    Lettura di un dipendente.

    role è riportato così come salvato, senza normalizzazione.
    """
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    phone: Optional[str]
    role: Optional[str]
    is_active: bool
    created_at: datetime.datetime
    updated_at: datetime.datetime


class EmployeeList(BaseModel):
    """Elenco dei dipendenti."""
    items: list[EmployeeRead]
    total: int


__all__ = [
    "EmployeeCreate",
    "EmployeeUpdate",
    "EmployeeRead",
    "EmployeeList",
]
