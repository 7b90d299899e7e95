import os

# ---- Capture ----
DEFAULT_FRAME_INTERVAL = 1.0 / 60.0   # assumed frame spacing when two samples share a timestamp
RECORDING_BUFFER_MAX = 100000
DEFAULT_DESCRIPTION = "Unnamed scene"

# ---- Speed estimation ----
SPEED_HALF_WINDOW_MAX = 5

# ---- Compression ----
COMPRESS_POSITION_THRESHOLD = 0.001   # metres
COMPRESS_ROTATION_THRESHOLD = 0.5     # degrees
COMPRESS_PARTITION_SIZE = 0           # 0 = whole curve as one span

# ---- Guidance ----
GUIDED_HAND = "right"
MAX_GUIDANCE_SPEED = 1.0
MAX_ACCELERATION = 1.0 / 1.5
MAX_DECELERATION = -1.0 / 1.0
LOOKAHEAD_SEC = 0.1
PREVIEW_RATE = 1.0

# Required precision: tight at slow recorded motion, loose at fast motion.
TIGHT_TOLERANCE = 0.1
TIGHT_TOLERANCE_SPEED = 0.05
LOOSE_TOLERANCE = 0.4
LOOSE_TOLERANCE_SPEED = 1.0

# wrist, thumb tip, index tip, middle tip, ring tip, pinky tip
DISTANCE_WEIGHTS = (1.0, 0.0, 0.0, 0.0, 0.0, 0.0)

# ---- Persistence ----
FILE_MAGIC = 0x6A8FAF6E0F9E42C6
FILE_EXTENSION = "txt"
DATA_DIR = os.path.abspath(os.environ.get("HANDGUIDE_DATA_DIR", os.path.join(os.getcwd(), "recordings")))
