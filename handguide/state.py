"""
GuidanceSession: everything one guided session works on.

Owns the current document and its published timeline, the controller, the
capture buffer and the batch worker. Replaces a process-wide "current
animation"; the API creates one session and hands it to routes through deps.
"""
from __future__ import annotations

import logging
from concurrent.futures import Future
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, Optional

from .anim.document import AnimationDocument
from .anim.errors import AnimationError
from .anim.recording import RecordingBuffer
from .anim.timeline import Timeline
from .guidance.controller import GuidanceConfig, GuidanceController
from .services.worker import BatchWorker

log = logging.getLogger(__name__)


class DocumentChanged(AnimationError, RuntimeError):
    """The document was replaced while a derived copy was being built."""


@dataclass
class GuidanceSession:
    config: GuidanceConfig = field(default_factory=GuidanceConfig)
    document: Optional[AnimationDocument] = None
    timeline: Optional[Timeline] = None
    controller: GuidanceController = None
    buffer: RecordingBuffer = field(default_factory=RecordingBuffer)
    recording: bool = False
    # bumped by set_document only; marker edits keep it
    generation: int = 0
    worker: BatchWorker = field(default_factory=BatchWorker)

    # Concurrency
    lock: Lock = field(default_factory=Lock)

    def __post_init__(self):
        if self.controller is None:
            self.controller = GuidanceController(self.config, self.timeline)

    def publish_timeline(self, timeline: Optional[Timeline]) -> None:
        """Swap in a fully built timeline. Published timelines are never mutated."""
        with self.lock:
            self._publish_locked(timeline)

    def _publish_locked(self, timeline: Optional[Timeline]) -> None:
        self.timeline = timeline
        self.controller.set_timeline(timeline)
        if timeline is not None:
            log.info("published timeline: %d samples, %.2fs", len(timeline), timeline.duration)

    def set_document(self, document: AnimationDocument, base_generation: Optional[int] = None) -> "Future[Timeline]":
        """
        Store the document and build its timeline on the worker; publishes when done.

        `base_generation` marks `document` as derived from the stored one at that
        generation: markers added since are carried over, and DocumentChanged is
        raised if another document was set in between.
        """
        with self.lock:
            if base_generation is not None:
                if base_generation != self.generation:
                    raise DocumentChanged("the document was replaced while it was being processed")
                if self.document is not None:
                    document.copy_markers_from(self.document)
            self.generation += 1
            self.document = document
            generation = self.generation
        return self.worker.submit(self._build_and_publish, document, generation)

    def edit_document(self, edit) -> Optional[AnimationDocument]:
        """Apply `edit` to a copy of the stored document and swap it in; the timeline is kept."""
        with self.lock:
            if self.document is None:
                return None
            doc = self.document.copy()
            edit(doc)
            self.document = doc
            return doc

    def _build_and_publish(self, document: AnimationDocument, generation: int) -> Timeline:
        try:
            timeline = Timeline.from_document(document)
        except Exception as e:
            log.error("timeline build failed: %s", e)
            raise
        with self.lock:
            # a newer document may have been set meanwhile
            if generation == self.generation:
                self._publish_locked(timeline)
            else:
                log.info("dropped timeline of superseded document (generation %d)", generation)
        return timeline

    def snapshot_for_ui(self) -> Dict[str, Any]:
        with self.lock:
            doc, tl, c = self.document, self.timeline, self.controller
            return {
                "document": doc.description if doc is not None else None,
                "timeline": {
                    "count": len(tl) if tl is not None else 0,
                    "t0": tl.start_time if tl is not None else 0.0,
                    "t1": tl.end_time if tl is not None else 0.0,
                },
                "guidance": {
                    "state": c.state.value,
                    "speed": c.guidance_speed,
                    "t_est": c.estimated_time,
                    "t_vis": c.visualization_time,
                    "completed": c.completed_count,
                },
                "recording": {"active": self.recording, "frames": len(self.buffer)},
            }

    def close(self) -> None:
        self.worker.shutdown(wait=False)
