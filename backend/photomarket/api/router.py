"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from photomarket.api.routes import auth, bookings, applications, payments, reviews

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(bookings.router)
api_router.include_router(applications.router)
api_router.include_router(payments.router)
api_router.include_router(reviews.router)
