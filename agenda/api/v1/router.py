"""
API v1 router setup
Organized into: public (no account / manage-link token) and dashboard (JWT) routes
"""
from fastapi import APIRouter

from agenda.api.v1.public import availability as public_availability, bookings, manage
from agenda.api.v1.dashboard import availability as dashboard_availability, appointments

api_v1_router = APIRouter()

# ============================================================================
# PUBLIC ROUTES (No authentication required)
# ============================================================================
api_v1_router.include_router(
    public_availability.router,
    prefix="/public",
    tags=["Public"]
)

api_v1_router.include_router(
    bookings.router,
    prefix="/public",
    tags=["Public"]
)

api_v1_router.include_router(
    manage.router,
    prefix="/public",
    tags=["Public"]
)

# ============================================================================
# DASHBOARD ROUTES (JWT authentication required)
# ============================================================================
api_v1_router.include_router(
    dashboard_availability.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)

api_v1_router.include_router(
    appointments.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """
    API information and available endpoints.
    """
    return {
        "version": "1.0",
        "authentication": {
            "public": "No authentication required (manage routes take the link token)",
            "dashboard": "JWT Bearer token required (user login)",
        }
    }
