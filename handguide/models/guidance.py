"""
Pydantic models for the guidance controller API.
"""
from __future__ import annotations

from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field

from .timeline import PoseModel


class GuidanceStatus(BaseModel):
    state: str
    guidance_speed: float
    estimated_time: float
    visualization_time: float
    last_distance: Optional[float] = None
    last_tolerance: Optional[float] = None
    completed_count: int = 0


class TickRequest(BaseModel):
    """
    One controller step.
    - dt:   elapsed seconds since the previous tick
    - hand: live joints of the guided hand keyed by joint name; omit when the
            hand is not tracked
    """
    model_config = ConfigDict(extra="forbid")

    dt: float = Field(ge=0.0)
    hand: Optional[Dict[str, PoseModel]] = None


class SeekRequest(BaseModel):
    t: float
