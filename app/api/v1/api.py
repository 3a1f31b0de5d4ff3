"""
API v1 router
"""
from fastapi import APIRouter

from app.api.v1.endpoints import (
    auth,
    organization,
    members,
    check_in,
    payments,
    announcements,
    member_app,
    kiosk,
)

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(auth.router)
api_router.include_router(organization.public_router, prefix="/organizations", tags=["Organizations"])
api_router.include_router(organization.router, prefix="/organization", tags=["Organization Management"])
api_router.include_router(members.router, prefix="/members", tags=["Members"])
api_router.include_router(check_in.router, prefix="/check-in", tags=["Check-in"])
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])
api_router.include_router(announcements.router, prefix="/announcements", tags=["Announcements"])
api_router.include_router(member_app.router, prefix="/me", tags=["Member App"])
api_router.include_router(kiosk.router, prefix="/kiosk", tags=["Kiosk"])


@api_router.get("/")
async def api_root():
    """API v1 root endpoint"""
    return {
        "message": "Sanctum Check-in API v1",
        "status": "active",
        "version": "1.0.0",
        "endpoints": {
            "auth": "/auth",
            "organizations": "/organizations (public lookup)",
            "organization": "/organization (staff)",
            "members": "/members",
            "check_in": "/check-in",
            "payments": "/payments",
            "announcements": "/announcements",
            "me": "/me (member app)",
            "kiosk": "/kiosk/{org_code}",
            "docs": "/docs",
            "health": "/health"
        }
    }
