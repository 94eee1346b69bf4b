"""API Routes module"""
from fastapi import APIRouter

from .workflows import router as workflows_router
from .cases import router as cases_router

# Main API router; every route is scoped to a tenant
api_router = APIRouter(prefix="/tenants/{tenant_id}")

# Include all route modules
api_router.include_router(workflows_router, prefix="/workflows", tags=["Workflows"])
api_router.include_router(cases_router, prefix="/cases", tags=["Cases"])

__all__ = ["api_router"]
