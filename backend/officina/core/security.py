"""
Modulo di sicurezza per autenticazione JWT
Progetto: Officina Online (Ordini e Pagamenti)

Funzioni per hashing password e gestione token JWT.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from officina.core.config import settings
from officina.core.exceptions import AuthenticationError
from officina.schemas.token import TokenPayload

# Context per hashing password
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Hasha una password in chiaro.

    Args:
        password: Password in chiaro

    Returns:
        Password hashata
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """
    Verifica una password in chiaro contro una hashata.

    Gli account senza password (clienti creati dallo staff) non
    possono autenticarsi.
    """
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    subject: str,
    kind: str,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Crea un token di accesso JWT.

    Args:
        subject: ID del cliente o del dipendente
        kind: "staff" oppure "customer"
        role: Ruolo normalizzato (per i clienti sempre "Customer")
        expires_delta: Durata personalizzata (default da settings)

    Returns:
        Token JWT codificato
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )

    payload = {
        "sub": subject,
        "kind": kind,
        "role": role,
        "exp": expire,
        "type": "access",
    }

    return jwt.encode(
        payload,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> TokenPayload:
    """
    Decodifica e valida un token JWT (firma e scadenza).

    Args:
        token: Token JWT da decodificare

    Returns:
        TokenPayload con i dati del token

    Raises:
        AuthenticationError: Se il token è invalido o scaduto
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require_exp": True},
        )
    except JWTError as e:
        raise AuthenticationError(f"Token invalido o scaduto: {e}")

    if not payload.get("sub"):
        raise AuthenticationError("Token invalido: subject mancante")

    return TokenPayload(
        sub=str(payload["sub"]),
        kind=payload.get("kind"),
        role=payload.get("role"),
        exp=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
        type=payload.get("type"),
    )


__all__ = [
    "hash_password",
    "verify_password",
    "create_access_token",
    "decode_token",
]
