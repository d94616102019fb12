"""
Servizio per l'autenticazione
Progetto: Officina Online (Ordini e Pagamenti)

Login dello staff e dei clienti, registrazione self-service dei clienti.
Staff e clienti sono confini di fiducia separati: ogni token dichiara
il proprio "kind" e il resolver non li confonde.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from officina.core.exceptions import AuthenticationError, DuplicateError
from officina.core.identity import PrincipalKind
from officina.core.roles import Role, normalize_role_label
from officina.core.security import create_access_token, hash_password, verify_password
from officina.models import Customer, Employee
from officina.schemas.token import CustomerRegister, LoginRequest, TokenResponse

logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS = "Email o password non corretti"


class AuthService:
    """Servizio per la gestione dell'autenticazione."""

    async def login_staff(self, db: AsyncSession, data: LoginRequest) -> TokenResponse:
        """
        Autentica un membro dello staff.

        Il ruolo salvato viene normalizzato prima di entrare nel token;
        un ruolo assente diventa Admin.

        Raises:
            AuthenticationError: Credenziali errate o account disattivato
        """
        result = await db.execute(
            select(Employee).where(Employee.email == data.email.lower())
        )
        employee = result.scalar_one_or_none()

        if not employee or not verify_password(data.password, employee.hashed_password):
            logger.info("Login staff fallito per %s", data.email)
            raise AuthenticationError(_INVALID_CREDENTIALS)

        if not employee.is_active:
            raise AuthenticationError("Account disattivato")

        role = normalize_role_label(employee.role)
        token = create_access_token(str(employee.id), PrincipalKind.STAFF.value, role)

        logger.info("Login staff: %s (%s)", employee.id, role)
        return TokenResponse(access_token=token, kind=PrincipalKind.STAFF.value, role=role)

    async def login_customer(self, db: AsyncSession, data: LoginRequest) -> TokenResponse:
        """
        Autentica un cliente.

        Raises:
            AuthenticationError: Credenziali errate, cliente senza password
                o account disattivato
        """
        result = await db.execute(
            select(Customer).where(Customer.email == data.email.lower())
        )
        customer = result.scalar_one_or_none()

        if not customer or not verify_password(data.password, customer.hashed_password):
            logger.info("Login cliente fallito per %s", data.email)
            raise AuthenticationError(_INVALID_CREDENTIALS)

        if not customer.is_active:
            raise AuthenticationError("Account disattivato")

        token = create_access_token(
            str(customer.id), PrincipalKind.CUSTOMER.value, Role.CUSTOMER.value
        )
        return TokenResponse(
            access_token=token,
            kind=PrincipalKind.CUSTOMER.value,
            role=Role.CUSTOMER.value,
        )

    async def register_customer(self, db: AsyncSession, data: CustomerRegister) -> Customer:
        """
        Registra un nuovo cliente.

        Un cliente creato in precedenza dallo staff (senza password) può
        completare la registrazione con la stessa email.

        Raises:
            DuplicateError: Email già registrata con una password
        """
        email = data.email.lower()
        result = await db.execute(select(Customer).where(Customer.email == email))
        customer = result.scalar_one_or_none()

        if customer is not None and customer.hashed_password:
            raise DuplicateError(f"L'email {email} è già registrata")

        if customer is None:
            customer = Customer(
                email=email,
                first_name=data.first_name,
                last_name=data.last_name,
                phone=data.phone,
            )
            db.add(customer)

        customer.hashed_password = hash_password(data.password)
        await db.flush()

        logger.info("Registrato cliente %s", customer.id)
        return customer


def get_auth_service() -> AuthService:
    """
    Factory per ottenere un'istanza del servizio di autenticazione.

    Returns:
        Istanza di AuthService
    """
    return AuthService()


# Export
__all__ = [
    "AuthService",
    "get_auth_service",
]
