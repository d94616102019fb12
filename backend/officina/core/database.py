"""
Accesso al database degli ordini (SQLAlchemy 2.0 async)
Progetto: Officina Online (Ordini e Pagamenti)

Engine e session factory condivisi; `get_db` per le richieste HTTP,
`session_scope` per il canale WebSocket.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from officina.core.config import settings

# Logger per questo modulo
logger = logging.getLogger(__name__)

# ------------------------------------------------------------
# Engine Async SQLAlchemy 2.0
# ------------------------------------------------------------
engine: AsyncEngine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
)


# ------------------------------------------------------------
# Session Factory
# ------------------------------------------------------------
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Sessione per richiesta HTTP.

    Un errore non gestito annulla la transazione aperta, così un ordine
    creato a metà non resta mai nel database. I service confermano da soli
    con commit().
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """Verifica all'avvio che il database risponda (SELECT 1)."""
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Connessione al database stabilita con successo")
    except Exception as e:
        logger.error("Errore connessione database: %s", e)
        raise


async def close_db() -> None:
    """Rilascia il pool di connessioni allo shutdown."""
    await engine.dispose()
    logger.info("Connessioni database chiuse")


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """
    Sessione database fuori dal ciclo richiesta/risposta HTTP.

    Usata dal canale realtime, dove non è disponibile `Depends(get_db)`.
    La sessione è in sola lettura: eventuali transazioni aperte vengono
    annullate alla chiusura.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.rollback()
