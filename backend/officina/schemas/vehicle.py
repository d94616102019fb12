"""
Schemas Pydantic per l'entità Vehicle
Progetto: Officina Online (Ordini e Pagamenti)
"""

import datetime
import re
import uuid
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_plate(plate: Optional[str]) -> Optional[str]:
    """
    Normalizza la targa: maiuscolo, senza spazi, 2-20 caratteri alfanumerici.

    Raises:
        ValueError: Se il formato non è valido
    """
    if plate is None:
        return None

    normalized = plate.strip().upper().replace(" ", "")
    if not re.match(r"^[A-Z0-9-]{2,20}$", normalized):
        raise ValueError(
            "Targa non valida: deve contenere 2-20 caratteri alfanumerici"
        )
    return normalized


def normalize_vin(vin: Optional[str]) -> Optional[str]:
    """Normalizza il numero telaio (maiuscolo, senza spazi)."""
    if vin is None:
        return None
    normalized = vin.strip().upper().replace(" ", "")
    if not re.match(r"^[A-Z0-9]{1,50}$", normalized):
        raise ValueError("Il numero telaio deve contenere solo caratteri alfanumerici")
    return normalized


class VehicleCreate(BaseModel):
    """
    Schema per la registrazione di un veicolo.

    Un cliente registra sempre veicoli a proprio nome: customer_id può
    essere omesso e, se indicato, deve coincidere con il cliente autenticato.
    """
    customer_id: Optional[uuid.UUID] = None
    make: Optional[str] = Field(None, max_length=100)
    model: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=1900)
    license_plate: Optional[str] = Field(None, max_length=20)
    vin: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=50)
    mileage: Optional[int] = Field(None, ge=0)

    @field_validator("license_plate")
    @classmethod
    def validate_plate(cls, v: Optional[str]) -> Optional[str]:
        return normalize_plate(v)

    @field_validator("vin")
    @classmethod
    def validate_vin(cls, v: Optional[str]) -> Optional[str]:
        return normalize_vin(v)

    @field_validator("year")
    @classmethod
    def validate_year(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v > datetime.date.today().year + 1:
            raise ValueError("Anno non valido")
        return v


class VehicleRead(BaseModel):
    """Schema per la lettura di un veicolo."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    customer_id: uuid.UUID
    make: Optional[str]
    model: Optional[str]
    year: Optional[int]
    license_plate: Optional[str]
    vin: Optional[str]
    color: Optional[str]
    mileage: Optional[int]
    created_at: datetime.datetime
    updated_at: datetime.datetime


__all__ = [
    "normalize_plate",
    "normalize_vin",
    "VehicleCreate",
    "VehicleRead",
]
