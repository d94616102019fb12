"""
Ricrea lo schema del database da zero.
Progetto: Officina Online (Ordini e Pagamenti)

ATTENZIONE: elimina tutte le tabelle (ordini, pagamenti, clienti...).
Uso: python reset_db.py [--seed-admin EMAIL PASSWORD]
"""

import argparse
import asyncio
import logging
import os
import sys

# Aggiungi backend/ alla PYTHONPATH per importare officina.*
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from officina.core.database import AsyncSessionLocal, engine
from officina.core.roles import Role
from officina.core.security import hash_password
from officina.models import Base, Employee

logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")
logger = logging.getLogger("reset_db")


async def reset(seed_admin: tuple[str, str] | None = None) -> None:
    logger.info("Connessione al database, eliminazione tabelle...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        logger.info("Tabelle eliminate. Creazione nuove tabelle...")
        await conn.run_sync(Base.metadata.create_all)

    if seed_admin:
        email, password = seed_admin
        async with AsyncSessionLocal() as session:
            session.add(
                Employee(
                    email=email.lower(),
                    hashed_password=hash_password(password),
                    first_name="Admin",
                    last_name="Officina",
                    role=Role.ADMIN.value,
                )
            )
            await session.commit()
        logger.info("Creato amministratore %s", email)

    await engine.dispose()
    logger.info("Database resettato con successo!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Ricrea lo schema del database")
    parser.add_argument("--seed-admin", nargs=2, metavar=("EMAIL", "PASSWORD"))
    args = parser.parse_args()
    asyncio.run(reset(tuple(args.seed_admin) if args.seed_admin else None))
