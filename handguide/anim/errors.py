"""
Error kinds raised by the animation core.
"""


class AnimationError(Exception):
    """Base class for recording, timeline and file-format failures."""


class OutOfOrderSample(AnimationError, ValueError):
    """A sample or key was appended with a timestamp earlier than the last one."""


class EmptyTimeline(AnimationError, LookupError):
    """A query was made on a timeline that holds no samples."""


class InsufficientSamples(AnimationError, ValueError):
    """Too few samples to estimate hand speed."""


class CorruptFormat(AnimationError, ValueError):
    """A serialized document or a document's time grids are inconsistent."""


class MissingJointData(CorruptFormat):
    """A hand block does not carry data for every joint."""
