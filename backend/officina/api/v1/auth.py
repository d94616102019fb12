"""
Router per l'autenticazione
Progetto: Officina Online (Ordini e Pagamenti)

Login separati per staff e clienti, registrazione dei clienti e
identità corrente.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from officina.core.database import get_db
from officina.core.deps import CurrentPrincipal
from officina.schemas.token import (
    CustomerRegister,
    LoginRequest,
    PrincipalRead,
    TokenResponse,
)
from officina.services.auth_service import AuthService, get_auth_service

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
)


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login dello staff",
)
async def login_staff(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    return await service.login_staff(db, data)


@router.post(
    "/customer/login",
    response_model=TokenResponse,
    summary="Login del cliente",
)
async def login_customer(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    return await service.login_customer(db, data)


@router.post(
    "/customer/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Registrazione del cliente",
)
async def register_customer(
    data: CustomerRegister,
    db: AsyncSession = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """
    Registra il cliente e restituisce subito un token di accesso.

    Raises:
        DuplicateError: Email già registrata
    """
    await service.register_customer(db, data)
    await db.commit()
    return await service.login_customer(
        db, LoginRequest(email=data.email, password=data.password)
    )


@router.get(
    "/me",
    response_model=PrincipalRead,
    summary="Identità corrente",
)
async def get_me(principal: CurrentPrincipal) -> PrincipalRead:
    return PrincipalRead(
        id=principal.id,
        kind=principal.kind.value,
        role=principal.role.value if principal.role else None,
    )


# Export
__all__ = ["router"]
