"""
Status route.
"""
from fastapi import APIRouter

from ..deps import get_session

router = APIRouter(tags=["status"])


@router.get("/status")
def status():
    """Current document, timeline, guidance and recording state."""
    return get_session().snapshot_for_ui()
