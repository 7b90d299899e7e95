from .timeline import PoseModel, HandSampleModel, SampleResponse, TimelineMeta
from .guidance import GuidanceStatus, TickRequest, SeekRequest
from .document import (
    MarkerModel,
    DocumentSummary,
    LoadRequest,
    ExportResponse,
    CompressRequest,
    MarkerRequest,
    FrameRequest,
    RecordingStatus,
)
