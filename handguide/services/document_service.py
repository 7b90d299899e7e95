"""
Document load / export / compress / marker services.

The heavy steps run on the session's batch worker; these coroutines await
the Futures so the event loop (and the tick endpoint) never blocks on them.
"""
from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

from .. import config as C
from ..anim.document import AnimationDocument
from ..anim.errors import AnimationError
from ..anim.models import Handedness
from ..anim.serialization import output_filename
from ..models import (
    CompressRequest,
    DocumentSummary,
    ExportResponse,
    LoadRequest,
    MarkerModel,
    MarkerRequest,
)
from .timeline_service import joint_name

log = logging.getLogger(__name__)


class NoDocument(AnimationError, LookupError):
    """An operation needs a document but none is loaded."""


def summarize_document(doc: Optional[AnimationDocument]) -> DocumentSummary:
    if doc is None:
        return DocumentSummary(loaded=False)
    return DocumentSummary(
        loaded=True,
        description=doc.description,
        duration=doc.duration,
        key_count=doc.key_count,
        has_hand_data=doc.has_hand_data,
        has_camera_pose=doc.has_camera_pose,
        has_eye_gaze=doc.has_eye_gaze,
        left_joints=[joint_name(j) for j in sorted(doc.hand(Handedness.LEFT).joints)],
        right_joints=[joint_name(j) for j in sorted(doc.hand(Handedness.RIGHT).joints)],
        objects=sorted(doc.objects),
        markers=[MarkerModel(t=m.time, name=m.name) for m in doc.markers],
    )


def _current(session) -> AnimationDocument:
    with session.lock:
        doc = session.document
    if doc is None:
        raise NoDocument("no document loaded")
    return doc


def get_document_service(session) -> DocumentSummary:
    with session.lock:
        doc = session.document
    return summarize_document(doc)


def _data_path(name: str) -> str:
    # only plain names inside the data directory
    return os.path.join(C.DATA_DIR, os.path.basename(name))


async def load_document_service(session, req: LoadRequest) -> DocumentSummary:
    if req.text is None and not req.name:
        raise ValueError("text or name required")
    text = req.text
    description = None
    if text is None:
        path = _data_path(req.name)
        if not os.path.isfile(path):
            raise FileNotFoundError(f"no such recording: {os.path.basename(path)}")
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        description = os.path.splitext(os.path.basename(path))[0]

    doc = await asyncio.wrap_future(session.worker.submit_deserialize(text))
    if description:
        doc.description = description
    await asyncio.wrap_future(session.set_document(doc))
    log.info("loaded document %r (%.2fs)", doc.description, doc.duration)
    return summarize_document(doc)


async def export_document_service(session, save: bool = False) -> ExportResponse:
    doc = _current(session)
    text = await asyncio.wrap_future(session.worker.submit_serialize(doc))
    filename = output_filename(doc.description.replace(" ", "_") or "HandAnimation")
    saved = None
    if save:
        saved = _data_path(filename)
        os.makedirs(C.DATA_DIR, exist_ok=True)
        with open(saved, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
        log.info("saved %s", saved)
    return ExportResponse(filename=filename, text=text, saved_path=saved)


async def compress_document_service(session, req: CompressRequest) -> DocumentSummary:
    with session.lock:
        doc, generation = session.document, session.generation
    if doc is None:
        raise NoDocument("no document loaded")
    out = await asyncio.wrap_future(
        session.worker.submit_compress(doc, req.pos_threshold, req.rot_threshold_deg, req.partition_size)
    )
    # markers added while compressing are carried over
    await asyncio.wrap_future(session.set_document(out, base_generation=generation))
    return summarize_document(out)


def add_marker_service(session, req: MarkerRequest) -> DocumentSummary:
    """Markers do not affect the timeline, so the document is swapped without a rebuild."""
    doc = session.edit_document(lambda d: d.add_marker(req.t, req.name))
    if doc is None:
        raise NoDocument("no document loaded")
    return summarize_document(doc)
