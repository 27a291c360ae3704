from fastapi import APIRouter

from .metrics.views import router as metrics_router

router = APIRouter()
router.include_router(router=metrics_router)
