"""
API v1 router
"""
from fastapi import APIRouter

from app.api.v1.endpoints import (
    auth,
    two_factor,
    checklists,
    users,
    admin,
)

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(auth.router)
api_router.include_router(two_factor.router)
api_router.include_router(checklists.router, prefix="/checklist", tags=["Checklist"])
api_router.include_router(users.router, prefix="/user", tags=["User Administration"])
api_router.include_router(admin.router, prefix="/admin", tags=["Admin"])


@api_router.get("/")
async def api_root():
    """API v1 root endpoint"""
    return {
        "message": "VentureFlow API v1",
        "status": "active",
        "version": "1.0.0",
        "endpoints": {
            "auth": "/auth",
            "checklist": "/checklist",
            "user": "/user (admin token)",
            "admin": "/admin (admin token)",
            "docs": "/docs",
            "health": "/health"
        }
    }
