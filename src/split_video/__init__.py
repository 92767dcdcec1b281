"""Split a video into even sized chunks, each starting on a keyframe."""

from .controller import ChunkController, make_plan, split_video
from .errors import (
    ConfigValidationError,
    DecodeError,
    EncodeError,
    InputExhaustedError,
    InputOpenError,
    NoVideoStreamError,
    OutputAllocError,
    OutputOpenError,
    SplitVideoError,
    UnsupportedCodecError,
    WriteError,
)
from .interfaces import FrameSource, FrameSourceFactory, SegmentSink, SegmentSinkFactory
from .models import (
    ChunkPlan,
    ChunkReport,
    ControllerState,
    EncodeOptions,
    PictureType,
    RunCounters,
    StreamParams,
)
from .template import render_segment_path, validate_output_template

__version__ = "0.1.0"
__all__ = [
    "ChunkController",
    "ChunkPlan",
    "ChunkReport",
    "ConfigValidationError",
    "ControllerState",
    "DecodeError",
    "EncodeError",
    "EncodeOptions",
    "FrameSource",
    "FrameSourceFactory",
    "InputExhaustedError",
    "InputOpenError",
    "NoVideoStreamError",
    "OutputAllocError",
    "OutputOpenError",
    "PictureType",
    "RunCounters",
    "SegmentSink",
    "SegmentSinkFactory",
    "SplitVideoError",
    "StreamParams",
    "UnsupportedCodecError",
    "WriteError",
    "make_plan",
    "render_segment_path",
    "split_video",
    "validate_output_template",
]
