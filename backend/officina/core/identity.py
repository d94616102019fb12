"""
Risoluzione dell'identità (Principal)
Progetto: Officina Online (Ordini e Pagamenti)

Unico punto di costruzione del Principal: il valore esplicito che
identifica chi sta eseguendo la richiesta e che viene passato a ogni
operazione. Questo modulo identifica soltanto, non autorizza.
"""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from officina.core.exceptions import AuthenticationError
from officina.core.roles import STAFF_ROLES, Role, parse_staff_role
from officina.core.security import decode_token

logger = logging.getLogger(__name__)


class PrincipalKind(str, Enum):
    """Confine di fiducia dell'identità."""
    STAFF = "staff"
    CUSTOMER = "customer"


@dataclass(frozen=True)
class Principal:
    """
    Identità autenticata della richiesta.

    Attributes:
        kind: staff oppure customer
        id: UUID del dipendente o del cliente
        role: Ruolo normalizzato; None per uno staff con ruolo non riconosciuto
    """

    kind: PrincipalKind
    id: uuid.UUID
    role: Optional[Role]

    @property
    def is_customer(self) -> bool:
        return self.kind == PrincipalKind.CUSTOMER

    @property
    def is_staff(self) -> bool:
        return self.kind == PrincipalKind.STAFF

    def has_role(self, *roles: Role) -> bool:
        """True se il ruolo risolto è tra quelli indicati."""
        return self.role is not None and self.role in roles

    @classmethod
    def customer(cls, customer_id: uuid.UUID) -> "Principal":
        return cls(kind=PrincipalKind.CUSTOMER, id=customer_id, role=Role.CUSTOMER)

    @classmethod
    def staff(cls, employee_id: uuid.UUID, role: Optional[Role]) -> "Principal":
        if role is not None and role not in STAFF_ROLES:
            raise ValueError(f"Ruolo staff non valido: {role}")
        return cls(kind=PrincipalKind.STAFF, id=employee_id, role=role)


def resolve_principal(token: Optional[str]) -> Principal:
    """
    Valida un bearer token e costruisce il Principal.

    Args:
        token: Token JWT (senza prefisso "Bearer ")

    Returns:
        Principal staff (con ruolo normalizzato) o customer

    Raises:
        AuthenticationError: token mancante, firma/scadenza non valide,
            subject non UUID, tipo di token o di identità sconosciuti
    """
    if not token:
        raise AuthenticationError("Token di autenticazione non fornito")

    payload = decode_token(token)

    if payload.type != "access":
        raise AuthenticationError("Tipo di token non valido per questa operazione")

    try:
        subject_id = uuid.UUID(payload.sub)
    except ValueError:
        raise AuthenticationError("ID soggetto invalido nel token")

    if payload.kind == PrincipalKind.CUSTOMER.value:
        return Principal.customer(subject_id)

    if payload.kind == PrincipalKind.STAFF.value:
        role = parse_staff_role(payload.role)
        if role is None:
            logger.warning(
                "Ruolo staff assente o non riconosciuto nel token: %r (dipendente %s)",
                payload.role,
                subject_id,
            )
        return Principal.staff(subject_id, role)

    raise AuthenticationError("Tipo di identità sconosciuto nel token")


__all__ = [
    "Principal",
    "PrincipalKind",
    "resolve_principal",
]
