"""API v1 router aggregator.

All v1 endpoint routers are included here.
"""

from fastapi import APIRouter

from app.api.v1 import application_wizard

router = APIRouter()

router.include_router(application_wizard.router, prefix="/apply", tags=["apply"])
