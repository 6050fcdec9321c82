from fastapi import APIRouter

from api import mentor, readiness, roles, skills
from config import settings

router = APIRouter()


@router.get("/health")
async def health():
    return {
        "status": "ok",
        "rate_limit_enabled": settings.rate_limit_enabled,
    }


api_router = APIRouter(prefix="/api")
api_router.include_router(readiness.router)
api_router.include_router(skills.router)
api_router.include_router(mentor.router)
api_router.include_router(roles.router)

router.include_router(api_router)
