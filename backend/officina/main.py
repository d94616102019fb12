"""
Applicazione FastAPI di Officina Online
Progetto: Officina Online (Ordini e Pagamenti)

Avvio: uvicorn officina.main:app (con backend/ nel PYTHONPATH).
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from officina.core.config import settings
from officina.core.database import close_db, init_db
from officina.core.exceptions import AppException
from officina.services.notifier import realtime_notifier
from officina.services.payment_gateway import get_payment_gateway

# ------------------------------------------------------------
# Configurazione Logging
# ------------------------------------------------------------
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ------------------------------------------------------------
# Lifespan Handler
# ------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Avvio e arresto.

    - Startup: verifica il database e seleziona il gateway di pagamento
    - Shutdown: consegna gli eventi in sospeso e chiude le connessioni
    """
    logger.info("Avvio %s v%s", settings.app_name, settings.app_version)
    await init_db()
    gateway = get_payment_gateway()
    logger.info("Applicazione avviata (gateway di pagamento: %s)", gateway.method)

    yield

    logger.info("Arresto applicazione in corso...")
    await realtime_notifier.drain()
    await close_db()
    logger.info("Applicazione arrestata")


# ------------------------------------------------------------
# FastAPI Application
# ------------------------------------------------------------
app = FastAPI(
    title=settings.app_name,
    description="Officina online: ordini, pagamenti e notifiche in tempo reale - Backend API",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)


# ------------------------------------------------------------
# Exception Handlers
# ------------------------------------------------------------
@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Gestore unico per le eccezioni di dominio.

    Corpo: {"detail", "error_code", "extra"}. Le risposte 401 includono
    l'header WWW-Authenticate.
    """
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    if exc.status_code >= 500:
        logger.error("%s %s: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=headers,
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Errore inatteso: traceback nei log, corpo 500 senza dettagli interni."""
    logger.error(
        "Unhandled exception su %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Errore interno del server",
            "error_code": "INTERNAL_SERVER_ERROR",
            "extra": None,
        },
    )


# ------------------------------------------------------------
# Middleware CORS
# ------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------
@app.get(
    "/health",
    name="Health Check",
    summary="Stato del servizio",
    tags=["System"],
)
async def health_check() -> dict[str, str]:
    """Stato del processo e gateway di pagamento in uso."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.app_env,
        "payment_provider": settings.effective_payment_provider,
    }


# ------------------------------------------------------------
# Router
# ------------------------------------------------------------
from officina.api.v1 import api_v1_router

app.include_router(api_v1_router)
