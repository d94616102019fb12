"""
Dependency Injection per autenticazione
Progetto: Officina Online (Ordini e Pagamenti)

Funzioni di dependency injection che costruiscono il Principal della
richiesta a partire dal bearer token.
"""

from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from officina.core.exceptions import AuthorizationError
from officina.core.identity import Principal, resolve_principal

# OAuth2 scheme - estrae il token dall'header Authorization
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/login",
    auto_error=False,
)


async def get_principal(
    token: Optional[str] = Depends(oauth2_scheme),
) -> Principal:
    """
    Dependency per ottenere il Principal dal token JWT.

    Raises:
        AuthenticationError 401: Se il token manca, è invalido o scaduto
    """
    return resolve_principal(token)


async def get_customer_principal(
    principal: Annotated[Principal, Depends(get_principal)],
) -> Principal:
    """
    Dependency per gli endpoint del flusso cliente.

    Raises:
        AuthorizationError 403: Se il token appartiene allo staff
    """
    if not principal.is_customer:
        raise AuthorizationError(
            "Token cliente richiesto",
            error_code="CUSTOMER_TOKEN_REQUIRED",
        )
    return principal


async def get_staff_principal(
    principal: Annotated[Principal, Depends(get_principal)],
) -> Principal:
    """
    Dependency per gli endpoint riservati allo staff.

    Raises:
        AuthorizationError 403: Se il token appartiene a un cliente
    """
    if not principal.is_staff:
        raise AuthorizationError(
            "Token staff richiesto",
            error_code="STAFF_TOKEN_REQUIRED",
        )
    return principal


# Type aliases per uso comune
CurrentPrincipal = Annotated[Principal, Depends(get_principal)]
CustomerPrincipal = Annotated[Principal, Depends(get_customer_principal)]
StaffPrincipal = Annotated[Principal, Depends(get_staff_principal)]


__all__ = [
    "get_principal",
    "get_customer_principal",
    "get_staff_principal",
    "oauth2_scheme",
    "CurrentPrincipal",
    "CustomerPrincipal",
    "StaffPrincipal",
]
