"""
Unit tests per ruoli e risoluzione dell'identità.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from officina.core.config import settings
from officina.core.authorization import Action, Decision, ResourceRef, decide
from officina.core.exceptions import AuthenticationError
from officina.core.identity import Principal, PrincipalKind, resolve_principal
from officina.core.roles import Role, normalize_role_label, parse_staff_role
from officina.core.security import create_access_token, hash_password, verify_password


# ============================================================
# Tests for role parsing
# ============================================================


class TestParseStaffRole:
    """Normalizzazione del ruolo staff."""

    @pytest.mark.parametrize("raw,expected", [
        ("Admin", Role.ADMIN),
        ("admin", Role.ADMIN),
        ("MANAGER", Role.MANAGER),
        ("  employee ", Role.EMPLOYEE),
        ("eMpLoYeE", Role.EMPLOYEE),
    ])
    def test_known_roles_case_insensitive(self, raw, expected):
        assert parse_staff_role(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_missing_role_is_none(self, raw):
        """Il default Admin vale solo al login, non nella lettura del token."""
        assert parse_staff_role(raw) is None

    @pytest.mark.parametrize("raw", ["Janitor", "Customer", "superuser", 42])
    def test_unknown_role_is_none(self, raw):
        """Customer non è un ruolo staff valido."""
        assert parse_staff_role(raw) is None

    def test_normalize_label(self):
        assert normalize_role_label(None) == "Admin"
        assert normalize_role_label(" manager ") == "Manager"
        assert normalize_role_label("janitor") == "Janitor"


# ============================================================
# Tests for principal resolution
# ============================================================


class TestResolvePrincipal:
    """Costruzione del Principal dal bearer token."""

    def test_customer_token(self):
        customer_id = uuid.uuid4()
        token = create_access_token(str(customer_id), kind="customer", role="Customer")

        principal = resolve_principal(token)

        assert principal == Principal.customer(customer_id)
        assert principal.is_customer
        assert principal.role == Role.CUSTOMER

    def test_staff_token_normalizes_role(self):
        employee_id = uuid.uuid4()
        token = create_access_token(str(employee_id), kind="staff", role="manager")

        principal = resolve_principal(token)

        assert principal.kind == PrincipalKind.STAFF
        assert principal.role == Role.MANAGER

    @pytest.mark.parametrize("role", ["", "   "])
    def test_staff_without_role_is_denied(self, role):
        token = create_access_token(str(uuid.uuid4()), kind="staff", role=role)

        principal = resolve_principal(token)

        assert principal.is_staff
        assert principal.role is None
        decision = decide(principal, Action.EMPLOYEE_MANAGE, ResourceRef(kind="employee"))
        assert decision != Decision.ALLOW

    def test_staff_with_unknown_role_has_no_role(self):
        token = create_access_token(str(uuid.uuid4()), kind="staff", role="Janitor")

        principal = resolve_principal(token)

        assert principal.is_staff
        assert principal.role is None

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token(self, token):
        with pytest.raises(AuthenticationError):
            resolve_principal(token)

    def test_expired_token(self):
        token = create_access_token(
            str(uuid.uuid4()),
            kind="customer",
            role="Customer",
            expires_delta=timedelta(minutes=-5),
        )
        with pytest.raises(AuthenticationError):
            resolve_principal(token)

    def test_wrong_signature(self):
        token = jwt.encode(
            {
                "sub": str(uuid.uuid4()),
                "kind": "customer",
                "type": "access",
                "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
            },
            "another-secret",
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError):
            resolve_principal(token)

    def _encode(self, **claims) -> str:
        payload = {
            "sub": str(uuid.uuid4()),
            "kind": "customer",
            "role": "Customer",
            "type": "access",
            "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
        }
        payload.update(claims)
        return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)

    def test_non_uuid_subject(self):
        with pytest.raises(AuthenticationError):
            resolve_principal(self._encode(sub="42"))

    def test_unknown_kind(self):
        with pytest.raises(AuthenticationError):
            resolve_principal(self._encode(kind="robot"))

    def test_refresh_token_rejected(self):
        with pytest.raises(AuthenticationError):
            resolve_principal(self._encode(type="refresh"))

    def test_staff_principal_rejects_customer_role(self):
        with pytest.raises(ValueError):
            Principal.staff(uuid.uuid4(), Role.CUSTOMER)


class TestPasswordHashing:
    """Hash e verifica delle password."""

    def test_hash_and_verify(self):
        hashed = hash_password("password-sicura")

        assert hashed != "password-sicura"
        assert verify_password("password-sicura", hashed)
        assert not verify_password("sbagliata", hashed)

    def test_account_without_password_cannot_login(self):
        assert not verify_password("qualsiasi", None)
