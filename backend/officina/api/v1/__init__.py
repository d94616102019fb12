"""
API v1 Routes
Progetto: Officina Online (Ordini e Pagamenti)

Router versione 1 dell'API.
"""

from fastapi import APIRouter

from officina.api.v1 import auth, employees, orders, payments, realtime, vehicles

# Router aggregato per v1
api_v1_router = APIRouter(prefix="/api/v1")

# Includi i router dei moduli
api_v1_router.include_router(auth.router)
api_v1_router.include_router(orders.router)
api_v1_router.include_router(payments.router)
api_v1_router.include_router(vehicles.router)
api_v1_router.include_router(employees.router)
api_v1_router.include_router(realtime.router)

# Esportazione
__all__ = ["api_v1_router"]
