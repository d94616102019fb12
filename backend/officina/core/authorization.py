"""
Authorization Gate
Progetto: Officina Online (Ordini e Pagamenti)

Funzione di decisione pura (principal, azione, risorsa) → esito,
usata da ogni endpoint che modifica dati. Nessun accesso al database:
il chiamante carica la risorsa e passa il proprietario nel ResourceRef.

Regole:
- Cliente: crea ordini solo per sé stesso; legge/modifica solo ordini,
  veicoli e pagamenti propri. Per le risorse altrui l'esito è NOT_FOUND,
  così l'esistenza non trapela.
- Employee: legge gli ordini e aggiorna solo status, total_amount e
  completion_note.
- Admin e Manager: modifica completa degli ordini.
- Solo Admin: gestione degli account dipendenti.
- Staff con ruolo non riconosciuto: negato su ogni azione riservata.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional

from officina.core.exceptions import AuthorizationError, NotFoundError
from officina.core.identity import Principal
from officina.core.roles import (
    EMPLOYEE_EDITABLE_FIELDS,
    ORDER_MANAGER_ROLES,
    STAFF_ROLES,
    Role,
)

logger = logging.getLogger(__name__)


class Action(str, Enum):
    """Azioni soggette ad autorizzazione."""
    ORDER_CREATE = "order:create"
    ORDER_READ = "order:read"
    ORDER_LIST = "order:list"
    ORDER_UPDATE = "order:update"
    ORDER_ADD_SERVICE = "order:add_service"
    ORDER_SUBSCRIBE = "order:subscribe"
    VEHICLE_CREATE = "vehicle:create"
    VEHICLE_READ = "vehicle:read"
    PAYMENT_CREATE = "payment:create"
    PAYMENT_CONFIRM = "payment:confirm"
    PAYMENT_READ = "payment:read"
    EMPLOYEE_MANAGE = "employee:manage"


class Decision(str, Enum):
    """Esito della decisione."""
    ALLOW = "allow"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class ResourceRef:
    """
    Riferimento alla risorsa su cui si agisce.

    Attributes:
        kind: Tipo di risorsa ("order", "vehicle", "payment", "employee")
        owner_customer_id: Cliente proprietario (None se non applicabile)
        fields: Campi modificati dalla richiesta (solo per gli aggiornamenti)
        exists: False per le risorse ancora da creare
    """

    kind: str
    owner_customer_id: Optional[uuid.UUID] = None
    fields: FrozenSet[str] = field(default_factory=frozenset)
    exists: bool = True

    @classmethod
    def order(
        cls,
        owner_customer_id: uuid.UUID,
        fields: FrozenSet[str] = frozenset(),
    ) -> "ResourceRef":
        return cls(kind="order", owner_customer_id=owner_customer_id, fields=frozenset(fields))

    @classmethod
    def new_order(cls, owner_customer_id: uuid.UUID) -> "ResourceRef":
        return cls(kind="order", owner_customer_id=owner_customer_id, exists=False)


# Azioni consentite al cliente, solo sulle proprie risorse
_CUSTOMER_ACTIONS = frozenset({
    Action.ORDER_CREATE,
    Action.ORDER_READ,
    Action.ORDER_LIST,
    Action.ORDER_ADD_SERVICE,
    Action.ORDER_SUBSCRIBE,
    Action.VEHICLE_CREATE,
    Action.VEHICLE_READ,
    Action.PAYMENT_CREATE,
    Action.PAYMENT_CONFIRM,
    Action.PAYMENT_READ,
})

# Azioni di sola lettura consentite a qualsiasi ruolo staff valido
_STAFF_READ_ACTIONS = frozenset({
    Action.ORDER_READ,
    Action.ORDER_LIST,
    Action.ORDER_SUBSCRIBE,
    Action.VEHICLE_READ,
    Action.PAYMENT_READ,
})

# Azioni riservate ad Admin/Manager
_MANAGER_ACTIONS = frozenset({
    Action.ORDER_CREATE,
    Action.ORDER_ADD_SERVICE,
})


def _decide_customer(principal: Principal, action: Action, resource: ResourceRef) -> Decision:
    if action not in _CUSTOMER_ACTIONS:
        return Decision.FORBIDDEN

    if resource.owner_customer_id is None:
        # Liste: il chiamante filtra sul cliente stesso
        return Decision.ALLOW if action == Action.ORDER_LIST else Decision.FORBIDDEN

    if resource.owner_customer_id == principal.id:
        return Decision.ALLOW

    # Creazione per conto di un altro cliente: esplicitamente vietata.
    # Risorsa esistente di un altro cliente: nascosta.
    return Decision.FORBIDDEN if not resource.exists else Decision.NOT_FOUND


def _decide_staff(principal: Principal, action: Action, resource: ResourceRef) -> Decision:
    role = principal.role
    if role is None or role not in STAFF_ROLES:
        return Decision.FORBIDDEN

    if action == Action.EMPLOYEE_MANAGE:
        return Decision.ALLOW if role == Role.ADMIN else Decision.FORBIDDEN

    if action in _STAFF_READ_ACTIONS:
        return Decision.ALLOW

    if action == Action.ORDER_UPDATE:
        if role in ORDER_MANAGER_ROLES:
            return Decision.ALLOW
        disallowed = set(resource.fields) - EMPLOYEE_EDITABLE_FIELDS
        return Decision.FORBIDDEN if disallowed else Decision.ALLOW

    if action in _MANAGER_ACTIONS:
        return Decision.ALLOW if role in ORDER_MANAGER_ROLES else Decision.FORBIDDEN

    # Creazione veicoli e pagamenti: solo flusso cliente
    return Decision.FORBIDDEN


def decide(principal: Principal, action: Action, resource: ResourceRef) -> Decision:
    """
    Decide se il principal può eseguire l'azione sulla risorsa.

    Args:
        principal: Identità risolta
        action: Azione richiesta
        resource: Riferimento alla risorsa

    Returns:
        Decision.ALLOW, Decision.FORBIDDEN o Decision.NOT_FOUND
    """
    if principal.is_customer:
        return _decide_customer(principal, action, resource)
    return _decide_staff(principal, action, resource)


def authorize(principal: Principal, action: Action, resource: ResourceRef) -> None:
    """
    Applica la decisione sollevando l'eccezione corrispondente.

    Raises:
        AuthorizationError: esito FORBIDDEN
        NotFoundError: esito NOT_FOUND (risorsa di un altro cliente)
    """
    decision = decide(principal, action, resource)
    if decision == Decision.ALLOW:
        return

    logger.info(
        "Accesso negato: %s %s su %s (%s, esito=%s)",
        principal.kind.value,
        principal.id,
        resource.kind,
        action.value,
        decision.value,
    )

    if decision == Decision.NOT_FOUND:
        raise NotFoundError(f"Risorsa '{resource.kind}' non trovata")

    if action == Action.ORDER_UPDATE and resource.fields:
        disallowed = sorted(set(resource.fields) - EMPLOYEE_EDITABLE_FIELDS)
        if disallowed and principal.is_staff and principal.role is not None:
            raise AuthorizationError(
                f"Il ruolo {principal.role.value} non può modificare: {', '.join(disallowed)}",
                extra={"fields": disallowed},
            )
    raise AuthorizationError()


__all__ = [
    "Action",
    "Decision",
    "ResourceRef",
    "decide",
    "authorize",
]
