"""
Pydantic models for document, recording and marker API payloads.
"""
from __future__ import annotations

from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .. import config as C
from .timeline import PoseModel


class MarkerModel(BaseModel):
    t: float
    name: str


class DocumentSummary(BaseModel):
    """Response for /api/v1/document (all zeros / empty when no document is loaded)."""
    loaded: bool
    description: str = ""
    duration: float = 0.0
    key_count: int = 0
    has_hand_data: bool = False
    has_camera_pose: bool = False
    has_eye_gaze: bool = False
    left_joints: List[str] = Field(default_factory=list)
    right_joints: List[str] = Field(default_factory=list)
    objects: List[str] = Field(default_factory=list)
    markers: List[MarkerModel] = Field(default_factory=list)


class LoadRequest(BaseModel):
    """Either the serialized text itself or a file name inside the data directory."""
    text: Optional[str] = None
    name: Optional[str] = None


class ExportResponse(BaseModel):
    filename: str
    text: str
    saved_path: Optional[str] = None


class CompressRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    pos_threshold: float = Field(default=C.COMPRESS_POSITION_THRESHOLD, ge=0.0)
    rot_threshold_deg: float = Field(default=C.COMPRESS_ROTATION_THRESHOLD, ge=0.0)
    partition_size: int = Field(default=C.COMPRESS_PARTITION_SIZE, ge=0)


class MarkerRequest(BaseModel):
    t: float
    name: str = Field("", pattern=r"^[^\r\n]*$")


class FrameRequest(BaseModel):
    """
    One captured frame for /api/v1/recording/frame. Missing hands are untracked.
    """
    t: float
    left: Optional[Dict[str, PoseModel]] = None
    right: Optional[Dict[str, PoseModel]] = None
    left_pinch: bool = False
    right_pinch: bool = False


class RecordingStatus(BaseModel):
    recording: bool
    frames: int
    t0: float
    t1: float
