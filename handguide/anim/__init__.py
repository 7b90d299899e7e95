from .errors import AnimationError, OutOfOrderSample, EmptyTimeline, InsufficientSamples, CorruptFormat, MissingJointData
from .models import JointId, Handedness, Pose, JointTransform, Marker, FINGERTIP_POINTS
from .curve import Curve, StepCurve
from .pose_curves import PoseCurves
from .document import AnimationDocument, compress_document
from .recording import Keyframe, RecordingBuffer
from .timeline import HandSample, Sample, Timeline, estimate_hand_speeds
from .serialization import serialize, deserialize, dumps, loads, save, load, output_filename
