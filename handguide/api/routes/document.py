"""
Document management routes: load, export, compress, markers.
"""
from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from ..deps import get_session
from ...anim.errors import AnimationError
from ...models import CompressRequest, DocumentSummary, ExportResponse, LoadRequest, MarkerRequest
from ...state import DocumentChanged
from ...services.document_service import (
    NoDocument,
    add_marker_service,
    compress_document_service,
    export_document_service,
    get_document_service,
    load_document_service,
)

router = APIRouter(prefix="/document", tags=["document"])


def _error(e: Exception):
    if isinstance(e, (NoDocument, FileNotFoundError)):
        status = 404
    elif isinstance(e, DocumentChanged):
        status = 409
    else:
        status = 400
    return JSONResponse(status_code=status, content={"error": str(e)})


@router.get("", response_model=DocumentSummary)
def document():
    return get_document_service(get_session())


@router.post("/load", response_model=DocumentSummary)
async def document_load(payload: LoadRequest):
    """
    Load a serialized recording and publish its timeline.
    Body: {"text": "<file contents>"} or {"name": "<file>.txt"} (from the data directory)
    """
    try:
        return await load_document_service(get_session(), payload)
    except (AnimationError, ValueError, FileNotFoundError) as e:
        return _error(e)


@router.get("/export", response_model=ExportResponse)
async def document_export(save: bool = Query(False, description="Also write the file into the data directory")):
    try:
        return await export_document_service(get_session(), save)
    except AnimationError as e:
        return _error(e)


@router.post("/compress", response_model=DocumentSummary)
async def document_compress(payload: CompressRequest):
    """Replace the current document with a compressed copy and republish its timeline."""
    try:
        return await compress_document_service(get_session(), payload)
    except (AnimationError, ValueError) as e:
        return _error(e)


@router.post("/markers", response_model=DocumentSummary)
def document_markers(payload: MarkerRequest):
    try:
        return add_marker_service(get_session(), payload)
    except (AnimationError, ValueError) as e:
        return _error(e)
