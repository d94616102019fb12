"""
Ruoli del sistema
Progetto: Officina Online (Ordini e Pagamenti)

Enumerazione chiusa dei ruoli, risolta una sola volta al confine
(login o decodifica del token). Il resto dell'applicazione confronta
solo valori dell'enum, mai stringhe.
"""

from enum import Enum
from typing import Optional


class Role(str, Enum):
    """Ruoli riconosciuti."""
    ADMIN = "Admin"
    MANAGER = "Manager"
    EMPLOYEE = "Employee"
    CUSTOMER = "Customer"


STAFF_ROLES = frozenset({Role.ADMIN, Role.MANAGER, Role.EMPLOYEE})

# Ruoli con pieno controllo sugli ordini (servizi, veicolo, assegnazione)
ORDER_MANAGER_ROLES = frozenset({Role.ADMIN, Role.MANAGER})

# Campi dell'ordine modificabili da un dipendente semplice
EMPLOYEE_EDITABLE_FIELDS = frozenset({"status", "total_amount", "completion_note"})

DEFAULT_STAFF_ROLE = Role.ADMIN


def _canonical(raw: str) -> str:
    """Trim, prima lettera maiuscola, resto minuscolo."""
    trimmed = raw.strip()
    return trimmed[:1].upper() + trimmed[1:].lower()


def parse_staff_role(raw: Optional[object]) -> Optional[Role]:
    """
    Converte il ruolo di un membro dello staff nell'enum.

    - ruolo riconosciuto (case-insensitive) → Role corrispondente
    - ruolo assente, vuoto o non riconosciuto → None; il gate nega ogni
      azione riservata. Il default Admin vale solo al login
      (normalize_role_label), mai nella lettura del token

    Args:
        raw: Valore del ruolo così come salvato o presente nel token

    Returns:
        Il ruolo normalizzato, o None se non interpretabile
    """
    if not isinstance(raw, str) or not raw.strip():
        return None

    canonical = _canonical(raw)
    for role in STAFF_ROLES:
        if role.value == canonical:
            return role
    return None


def normalize_role_label(raw: Optional[str]) -> str:
    """
    Etichetta da salvare nel token per un account staff.

    Un ruolo assente diventa "Admin"; gli altri vengono solo normalizzati,
    così un ruolo sconosciuto resta riconoscibile (e negato) dal gate.
    """
    if not isinstance(raw, str) or not raw.strip():
        return DEFAULT_STAFF_ROLE.value
    return _canonical(raw)


__all__ = [
    "Role",
    "STAFF_ROLES",
    "ORDER_MANAGER_ROLES",
    "EMPLOYEE_EDITABLE_FIELDS",
    "DEFAULT_STAFF_ROLE",
    "parse_staff_role",
    "normalize_role_label",
]
