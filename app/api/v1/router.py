# app/api/v1/router.py
from fastapi import APIRouter

from app.api.v1.endpoints import (
    admin,
    auth,
    bookings,
    dashboard,
    photography,
    products,
    repairs,
    transactions,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
api_router.include_router(bookings.rooms_router, prefix="/rooms", tags=["rooms"])
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
api_router.include_router(repairs.router, prefix="/repairs", tags=["repairs"])
api_router.include_router(photography.router, prefix="/photography", tags=["photography"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
