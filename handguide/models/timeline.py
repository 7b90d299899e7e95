"""
Pydantic models for timeline API responses.
"""
from __future__ import annotations

from typing import Dict, List, Optional
from pydantic import BaseModel


class PoseModel(BaseModel):
    """Position (x, y, z) and rotation quaternion (x, y, z, w)."""
    position: List[float]
    rotation: List[float]


class HandSampleModel(BaseModel):
    tracked: bool
    speed: float
    joints: Dict[str, PoseModel]


class SampleResponse(BaseModel):
    """
    Response for /api/v1/timeline/sample:
    - t:     the query time (already clamped into the timeline)
    - left / right: interpolated hand state, joints keyed by joint name
    """
    t: float
    left: HandSampleModel
    right: HandSampleModel


class TimelineMeta(BaseModel):
    """Extent of the published timeline (zeros when none is published)."""
    count: int
    t0: float
    t1: float
    duration: float
    description: Optional[str] = None
