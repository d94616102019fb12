"""
Service Layer per gli Ordini
Progetto: Officina Online (Ordini e Pagamenti)

Creazione, modifica e lettura degli ordini. Ogni mutazione avviene in
una sola transazione: in caso di errore viene eseguito il rollback e
nessuna riga parziale resta nel database. Gli eventi di stato vengono
pubblicati solo dopo il commit.

L'autorizzazione non è responsabilità di questo modulo: i router
interrogano il gate prima di chiamare lo store.
"""

import datetime
import logging
import uuid
from collections.abc import Iterable
from typing import Optional

from sqlalchemy import and_, delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from officina.core.exceptions import (
    ConflictError,
    DuplicateServiceError,
    NotFoundError,
    OwnershipViolationError,
)
from officina.models import Customer, Employee, Order, OrderServiceLink, Service, Vehicle
from officina.schemas.order import (
    OrderFilter,
    OrderStatus,
    OrderUpdate,
    PaymentStatus,
    is_backward_transition,
)
from officina.services.notifier import OrderEventPublisher

# Logger per questo modulo
logger = logging.getLogger(__name__)


def hydrated_order_query():
    """Query base con servizi, cliente e veicolo sempre caricati."""
    return (
        select(Order)
        .options(
            selectinload(Order.services),
            selectinload(Order.customer),
            selectinload(Order.vehicle),
        )
        .execution_options(populate_existing=True)
    )


class OrderStore:
    """
    Service per il ciclo di vita degli ordini.

    Args:
        publisher: Porta su cui pubblicare i cambi di stato
    """

    def __init__(self, publisher: OrderEventPublisher) -> None:
        self.publisher = publisher

    # ------------------------------------------------------------
    # Letture
    # ------------------------------------------------------------
    async def get_order(self, db: AsyncSession, order_id: uuid.UUID) -> Order:
        """
        Recupera un ordine completo di servizi, cliente e veicolo.

        Raises:
            NotFoundError: Se l'ordine non esiste
        """
        result = await db.execute(hydrated_order_query().where(Order.id == order_id))
        order = result.scalar_one_or_none()

        if not order:
            logger.warning("Ordine non trovato: %s", order_id)
            raise NotFoundError(f"Ordine con ID {order_id} non trovato")

        return order

    async def list_orders(
        self,
        db: AsyncSession,
        filters: OrderFilter,
    ) -> tuple[list[Order], int]:
        """
        Recupera la lista paginata degli ordini, dal più recente.

        Returns:
            Tuple di (lista ordini, totale count)
        """
        conditions = []

        if filters.customer_id:
            conditions.append(Order.customer_id == filters.customer_id)
        if filters.status:
            conditions.append(Order.status == filters.status.value)
        if filters.payment_status:
            conditions.append(Order.payment_status == filters.payment_status.value)
        if filters.assigned_employee_id:
            conditions.append(Order.assigned_employee_id == filters.assigned_employee_id)

        query = hydrated_order_query()
        if conditions:
            query = query.where(and_(*conditions))

        offset = (filters.page - 1) * filters.per_page
        query = (
            query.order_by(Order.created_at.desc())
            .offset(offset)
            .limit(filters.per_page)
        )

        result = await db.execute(query)
        orders = list(result.scalars().all())

        count_query = select(func.count()).select_from(Order)
        if conditions:
            count_query = count_query.where(and_(*conditions))
        count_result = await db.execute(count_query)
        total = count_result.scalar() or 0

        logger.debug("Recuperati %d ordini su %d totali", len(orders), total)
        return orders, total

    # ------------------------------------------------------------
    # Verifiche
    # ------------------------------------------------------------
    async def _check_customer(self, db: AsyncSession, customer_id: uuid.UUID) -> None:
        result = await db.execute(select(Customer.id).where(Customer.id == customer_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError(f"Cliente con ID {customer_id} non trovato")

    async def _check_vehicle(
        self,
        db: AsyncSession,
        vehicle_id: uuid.UUID,
        customer_id: uuid.UUID,
    ) -> None:
        """
        Verifica che il veicolo esista e appartenga al cliente dell'ordine.

        Raises:
            NotFoundError: Se il veicolo non esiste
            OwnershipViolationError: Se il veicolo è di un altro cliente
        """
        result = await db.execute(select(Vehicle).where(Vehicle.id == vehicle_id))
        vehicle = result.scalar_one_or_none()

        if not vehicle:
            raise NotFoundError(f"Veicolo con ID {vehicle_id} non trovato")

        if vehicle.customer_id != customer_id:
            logger.warning(
                "Veicolo %s non appartiene al cliente %s",
                vehicle_id,
                customer_id,
            )
            raise OwnershipViolationError()

    async def _check_services(self, db: AsyncSession, service_ids: Iterable[uuid.UUID]) -> None:
        wanted = set(service_ids)
        if not wanted:
            return

        result = await db.execute(select(Service.id).where(Service.id.in_(wanted)))
        found = set(result.scalars().all())
        missing = wanted - found
        if missing:
            raise NotFoundError(
                "Uno o più servizi non esistono",
                error_code="SERVICE_NOT_FOUND",
                extra={"service_ids": sorted(str(s) for s in missing)},
            )

    async def _check_employee(self, db: AsyncSession, employee_id: uuid.UUID) -> None:
        result = await db.execute(select(Employee.id).where(Employee.id == employee_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError(f"Dipendente con ID {employee_id} non trovato")

    def _publish(self, order_id: uuid.UUID, status: str) -> None:
        try:
            self.publisher.notify_status_change(order_id, status)
        except Exception:
            logger.exception("Pubblicazione evento fallita per ordine %s", order_id)

    # ------------------------------------------------------------
    # Mutazioni
    # ------------------------------------------------------------
    async def create_order(
        self,
        db: AsyncSession,
        customer_id: uuid.UUID,
        vehicle_id: Optional[uuid.UUID] = None,
        description: Optional[str] = None,
        service_ids: Iterable[uuid.UUID] = (),
        received_by: Optional[str] = None,
    ) -> Order:
        """
        Crea un ordine con i servizi indicati in un'unica transazione.

        Args:
            db: Sessione database
            customer_id: Cliente proprietario
            vehicle_id: Veicolo del cliente (opzionale)
            description: Descrizione della richiesta
            service_ids: Servizi da associare (i duplicati vengono ignorati)
            received_by: Chi ha ricevuto l'ordine

        Returns:
            Order: L'ordine creato, con servizi, cliente e veicolo

        Raises:
            NotFoundError: Cliente, veicolo o servizio inesistenti
            OwnershipViolationError: Veicolo di un altro cliente
        """
        distinct_ids = list(dict.fromkeys(service_ids))

        try:
            await self._check_customer(db, customer_id)
            if vehicle_id is not None:
                await self._check_vehicle(db, vehicle_id, customer_id)
            await self._check_services(db, distinct_ids)

            order = Order(
                customer_id=customer_id,
                vehicle_id=vehicle_id,
                description=description,
                received_by=received_by,
                status=OrderStatus.RECEIVED.value,
                payment_status=PaymentStatus.PENDING.value,
            )
            db.add(order)
            await db.flush()  # Assicura che order.id sia disponibile

            for service_id in distinct_ids:
                db.add(OrderServiceLink(order_id=order.id, service_id=service_id))

            await db.flush()
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            logger.warning("Creazione ordine fallita per vincolo: %s", exc.orig)
            raise ConflictError("Impossibile creare l'ordine: dati in conflitto") from exc
        except Exception:
            await db.rollback()
            raise

        order_id = order.id
        logger.info(
            "Creato ordine %s per cliente %s con %d servizi",
            order_id,
            customer_id,
            len(distinct_ids),
        )
        self._publish(order_id, OrderStatus.RECEIVED.value)

        return await self.get_order(db, order_id)

    async def update_order(
        self,
        db: AsyncSession,
        order_id: uuid.UUID,
        patch: OrderUpdate,
    ) -> Order:
        """
        Aggiorna un ordine applicando solo i campi presenti nella richiesta.

        Se service_ids è presente sostituisce l'intero insieme dei servizi.
        Qualsiasi stato può essere impostato; un ritorno a uno stato
        precedente viene solo segnalato nei log.

        Raises:
            NotFoundError: Ordine, veicolo, dipendente o servizio inesistenti
            OwnershipViolationError: Veicolo di un altro cliente
            ConflictError: Versione non aggiornata o modifica concorrente
        """
        order = await self.get_order(db, order_id)

        if patch.version is not None and patch.version != order.version:
            raise ConflictError(
                "L'ordine è stato modificato da un'altra richiesta",
                error_code="VERSION_CONFLICT",
                extra={"current_version": order.version},
            )

        changes = patch.changes()
        previous_status = order.status

        try:
            new_vehicle_id = changes.get("vehicle_id")
            if new_vehicle_id is not None and new_vehicle_id != order.vehicle_id:
                await self._check_vehicle(db, new_vehicle_id, order.customer_id)

            new_employee_id = changes.get("assigned_employee_id")
            if new_employee_id is not None:
                await self._check_employee(db, new_employee_id)

            if patch.service_ids is not None:
                await self._check_services(db, patch.service_ids)
                await db.execute(
                    delete(OrderServiceLink).where(OrderServiceLink.order_id == order_id)
                )
                for service_id in patch.service_ids:
                    db.add(OrderServiceLink(order_id=order_id, service_id=service_id))
                # Forza l'UPDATE della riga ordine (e il controllo di versione)
                order.updated_at = datetime.datetime.now(datetime.timezone.utc)

            for field, value in changes.items():
                setattr(order, field, value)

            if "status" in changes and is_backward_transition(previous_status, order.status):
                logger.warning(
                    "Ordine %s riportato indietro: %s → %s",
                    order_id,
                    previous_status,
                    order.status,
                )

            await db.flush()
            await db.commit()
        except StaleDataError as exc:
            await db.rollback()
            logger.warning("Conflitto di versione sull'ordine %s", order_id)
            raise ConflictError(
                "L'ordine è stato modificato da un'altra richiesta",
                error_code="VERSION_CONFLICT",
            ) from exc
        except IntegrityError as exc:
            await db.rollback()
            logger.warning("Aggiornamento ordine %s fallito per vincolo: %s", order_id, exc.orig)
            raise ConflictError("Impossibile aggiornare l'ordine: dati in conflitto") from exc
        except Exception:
            await db.rollback()
            raise

        logger.info("Aggiornato ordine %s: campi=%s", order_id, sorted(patch.patched_fields()))

        if order.status != previous_status:
            self._publish(order_id, order.status)

        return await self.get_order(db, order_id)

    async def add_service(
        self,
        db: AsyncSession,
        order_id: uuid.UUID,
        service_id: uuid.UUID,
    ) -> Order:
        """
        Associa un servizio del catalogo a un ordine.

        Raises:
            NotFoundError: Ordine o servizio inesistenti
            DuplicateServiceError: Servizio già associato all'ordine
        """
        await self.get_order(db, order_id)

        service_result = await db.execute(select(Service.id).where(Service.id == service_id))
        if service_result.scalar_one_or_none() is None:
            raise NotFoundError(
                f"Servizio con ID {service_id} non trovato",
                error_code="SERVICE_NOT_FOUND",
            )

        existing = await db.execute(
            select(OrderServiceLink.id).where(
                OrderServiceLink.order_id == order_id,
                OrderServiceLink.service_id == service_id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise DuplicateServiceError()

        try:
            db.add(OrderServiceLink(order_id=order_id, service_id=service_id))
            await db.flush()
            await db.commit()
        except IntegrityError as exc:
            # Inserimento concorrente dello stesso servizio
            await db.rollback()
            raise DuplicateServiceError() from exc
        except Exception:
            await db.rollback()
            raise

        logger.info("Servizio %s associato all'ordine %s", service_id, order_id)
        return await self.get_order(db, order_id)


__all__ = ["OrderStore", "hydrated_order_query"]
