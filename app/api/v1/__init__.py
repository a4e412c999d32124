from fastapi import APIRouter

from app.api.v1.admin import router as admin_router
from app.api.v1.gamification import router as gamification_router
from app.api.v1.srs import router as srs_router

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(admin_router)
api_v1_router.include_router(srs_router)
api_v1_router.include_router(gamification_router)
