"""
Unit tests per autenticazione, dipendenti e veicoli.
"""

import uuid
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError as PydanticValidationError

from conftest import MockCustomer, make_result
from officina.core.exceptions import AuthenticationError, DuplicateError, NotFoundError
from officina.core.identity import resolve_principal
from officina.core.roles import Role
from officina.core.security import hash_password
from officina.models import Customer, Vehicle
from officina.schemas.employee import EmployeeCreate, EmployeeUpdate
from officina.schemas.token import CustomerRegister, LoginRequest
from officina.schemas.vehicle import VehicleCreate, normalize_plate
from officina.services.auth_service import AuthService
from officina.services.employee_service import EmployeeService
from officina.services.vehicle_service import VehicleService


def mock_employee(role, password="password-staff", is_active=True):
    employee = MagicMock()
    employee.id = uuid.uuid4()
    employee.role = role
    employee.hashed_password = hash_password(password)
    employee.is_active = is_active
    return employee


# ============================================================
# Tests for AuthService
# ============================================================


class TestStaffLogin:
    """Login dello staff e ruolo nel token."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("stored,expected", [
        ("Manager", "Manager"),
        ("employee", "Employee"),
        (None, "Admin"),
    ])
    async def test_role_normalized_in_token(self, mock_db, stored, expected):
        employee = mock_employee(stored)
        mock_db.execute.side_effect = [make_result(scalar=employee)]

        response = await AuthService().login_staff(
            mock_db, LoginRequest(email="Staff@Officina.it", password="password-staff")
        )

        assert response.kind == "staff"
        assert response.role == expected
        principal = resolve_principal(response.access_token)
        assert principal.id == employee.id
        assert principal.role == Role(expected)

    @pytest.mark.asyncio
    async def test_wrong_password(self, mock_db):
        mock_db.execute.side_effect = [make_result(scalar=mock_employee("Admin"))]

        with pytest.raises(AuthenticationError):
            await AuthService().login_staff(
                mock_db, LoginRequest(email="staff@officina.it", password="sbagliata")
            )

    @pytest.mark.asyncio
    async def test_inactive_account(self, mock_db):
        mock_db.execute.side_effect = [make_result(scalar=mock_employee("Admin", is_active=False))]

        with pytest.raises(AuthenticationError):
            await AuthService().login_staff(
                mock_db, LoginRequest(email="staff@officina.it", password="password-staff")
            )


class TestCustomerAccounts:
    """Registrazione e login dei clienti."""

    @pytest.mark.asyncio
    async def test_register_new_customer(self, mock_db):
        mock_db.execute.side_effect = [make_result(scalar=None)]
        data = CustomerRegister(
            email="Anna.Verdi@example.com",
            password="password-cliente",
            first_name="Anna",
            last_name="Verdi",
        )

        customer = await AuthService().register_customer(mock_db, data)

        assert isinstance(customer, Customer)
        assert customer.email == "anna.verdi@example.com"
        assert customer.hashed_password != "password-cliente"
        mock_db.add.assert_called_once_with(customer)
        mock_db.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_customer_created_by_staff_can_register(self, mock_db):
        existing = MockCustomer(email="anna@example.com")
        existing.hashed_password = None
        mock_db.execute.side_effect = [make_result(scalar=existing)]
        data = CustomerRegister(
            email="anna@example.com",
            password="password-cliente",
            first_name="Anna",
            last_name="Verdi",
        )

        customer = await AuthService().register_customer(mock_db, data)

        assert customer is existing
        assert existing.hashed_password
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_email(self, mock_db):
        existing = MockCustomer()
        existing.hashed_password = hash_password("qualcosa")
        mock_db.execute.side_effect = [make_result(scalar=existing)]
        data = CustomerRegister(
            email=existing.email,
            password="password-cliente",
            first_name="Mario",
            last_name="Rossi",
        )

        with pytest.raises(DuplicateError):
            await AuthService().register_customer(mock_db, data)

    @pytest.mark.asyncio
    async def test_customer_login_token(self, mock_db):
        customer = MockCustomer()
        customer.hashed_password = hash_password("password-cliente")
        mock_db.execute.side_effect = [make_result(scalar=customer)]

        response = await AuthService().login_customer(
            mock_db, LoginRequest(email=customer.email, password="password-cliente")
        )

        principal = resolve_principal(response.access_token)
        assert principal.is_customer
        assert principal.id == customer.id


# ============================================================
# Tests for EmployeeService
# ============================================================


class TestEmployeeService:
    """Gestione degli account dello staff."""

    def test_customer_role_not_assignable(self):
        with pytest.raises(PydanticValidationError):
            EmployeeCreate(
                email="x@officina.it",
                password="password-staff",
                first_name="X",
                last_name="Y",
                role="Customer",
            )

    @pytest.mark.asyncio
    async def test_create_duplicate_email(self, mock_db):
        mock_db.execute.side_effect = [make_result(scalar=uuid.uuid4())]
        data = EmployeeCreate(
            email="x@officina.it",
            password="password-staff",
            first_name="X",
            last_name="Y",
        )

        with pytest.raises(DuplicateError):
            await EmployeeService().create(mock_db, data)

    @pytest.mark.asyncio
    async def test_update_ignores_null_role(self, mock_db):
        employee = mock_employee("Manager")
        mock_db.execute.side_effect = [make_result(scalar=employee)]

        await EmployeeService().update(
            mock_db, employee.id, EmployeeUpdate(role=None, first_name="Giulia")
        )

        assert employee.role == "Manager"
        assert employee.first_name == "Giulia"

    @pytest.mark.asyncio
    async def test_update_role(self, mock_db):
        employee = mock_employee("Employee")
        mock_db.execute.side_effect = [make_result(scalar=employee)]

        await EmployeeService().update(mock_db, employee.id, EmployeeUpdate(role="Manager"))

        assert employee.role == "Manager"


# ============================================================
# Tests for VehicleService
# ============================================================


class TestVehicleService:
    """Registrazione dei veicoli."""

    @pytest.mark.asyncio
    async def test_create_for_customer(self, mock_db, customer):
        mock_db.execute.side_effect = [make_result(scalar=customer.id)]

        vehicle = await VehicleService().create(
            mock_db, customer.id, VehicleCreate(make="Fiat", license_plate="ab 123 cd")
        )

        assert isinstance(vehicle, Vehicle)
        assert vehicle.customer_id == customer.id
        assert vehicle.license_plate == "AB123CD"

    @pytest.mark.asyncio
    async def test_unknown_customer(self, mock_db):
        mock_db.execute.side_effect = [make_result(scalar=None)]

        with pytest.raises(NotFoundError):
            await VehicleService().create(mock_db, uuid.uuid4(), VehicleCreate(make="Fiat"))

    def test_invalid_plate(self):
        with pytest.raises(ValueError):
            normalize_plate("A")
