"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from app.api.routes import auth, rides, bookings

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(rides.router)
api_router.include_router(bookings.router)
