from fastapi import APIRouter

from .status import router as status_router
from .timeline import router as timeline_router
from .guidance import router as guidance_router
from .document import router as document_router
from .recording import router as recording_router

router = APIRouter(prefix="/api/v1")

router.include_router(status_router)
router.include_router(timeline_router)
router.include_router(guidance_router)
router.include_router(document_router)
router.include_router(recording_router)
