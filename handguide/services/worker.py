"""
Batch worker: runs compression, (de)serialization and timeline building off
the tick path and hands back Futures.
"""
from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor

from ..anim.document import AnimationDocument, compress_document
from ..anim.serialization import dumps, loads
from ..anim.timeline import Timeline

log = logging.getLogger(__name__)


class BatchWorker:
    def __init__(self, name: str = "handguide-batch"):
        self._pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)

    def submit(self, fn, *args, **kwargs) -> Future:
        return self._pool.submit(fn, *args, **kwargs)

    def submit_compress(self, document: AnimationDocument, pos_threshold: float, rot_threshold_deg: float, partition_size: int = 0) -> "Future[AnimationDocument]":
        return self.submit(compress_document, document, pos_threshold, rot_threshold_deg, partition_size)

    def submit_serialize(self, document: AnimationDocument) -> "Future[str]":
        return self.submit(dumps, document)

    def submit_deserialize(self, text: str) -> "Future[AnimationDocument]":
        return self.submit(loads, text)

    def submit_build_timeline(self, document: AnimationDocument) -> "Future[Timeline]":
        return self.submit(Timeline.from_document, document)

    def shutdown(self, wait: bool = True) -> None:
        log.debug("batch worker shutting down")
        self._pool.shutdown(wait=wait)
