"""Pydantic models for the chunk plan, encode options, stream parameters, and run results."""

from enum import Enum
from fractions import Fraction
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator

H264_ENCODERS = ("libx264", "h264")


class PictureType(str, Enum):
    """Picture type forced on every frame handed to the encoder."""

    I = "I"  # noqa: E741
    P = "P"


class ControllerState(str, Enum):
    """States of the chunk controller."""

    SKIPPING = "skipping"
    ACTIVE = "active"
    ROTATING = "rotating"
    DONE = "done"


class ChunkPlan(BaseModel):
    """Chunking configuration, fixed for a whole run."""

    model_config = ConfigDict(frozen=True)

    gop_size: int = Field(..., gt=0, description="Frames per group of pictures")
    chunk_size: int = Field(..., gt=0, description="Frames per output segment")
    skip_frames: int = Field(0, ge=0, description="Decoded frames dropped before output")
    max_frames: int = Field(-1, description="Frames to write in total; negative means unbounded")

    @model_validator(mode="after")
    def chunk_size_is_multiple_of_gop(self) -> "ChunkPlan":
        if self.chunk_size % self.gop_size != 0:
            raise ValueError(
                f"chunk size ({self.chunk_size}) must be a multiple of gop size ({self.gop_size})"
            )
        return self

    @property
    def bounded(self) -> bool:
        return self.max_frames >= 0

    def picture_type_for(self, in_chunk_index: int) -> PictureType:
        """I at the top of every GOP inside a segment, P everywhere else."""
        if in_chunk_index % self.gop_size == 0:
            return PictureType.I
        return PictureType.P


class EncodeOptions(BaseModel):
    """Encoder and muxer options applied uniformly to every segment of a run."""

    model_config = ConfigDict(frozen=True)

    codec: str = Field("libx264", description="Encoder name")
    crf: int | None = Field(18, ge=0, description="Constant rate factor (quality target)")
    preset: str | None = Field("slow", description="Encoder preset; H.264 encoders only")
    movflags: str | None = Field(
        "faststart", description="Muxer movflags (faststart moves the index to the front)"
    )
    default_format: str = Field(
        "mp4", description="Container used when the output extension is not recognised"
    )

    def codec_options(self) -> dict[str, str]:
        options: dict[str, str] = {}
        if self.crf is not None:
            options["crf"] = str(self.crf)
        if self.preset and self.codec in H264_ENCODERS:
            options["preset"] = self.preset
        return options

    def container_options(self) -> dict[str, str]:
        options: dict[str, str] = {}
        if self.movflags:
            options["movflags"] = self.movflags
        return options


class StreamParams(BaseModel):
    """Geometry and timing of the source video stream, copied to every segment."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    framerate: Fraction
    pix_fmt: str
    codec_name: str | None = None

    @property
    def time_base(self) -> Fraction:
        """One tick per frame, so a frame's pts is its in-segment index."""
        return 1 / self.framerate


class RunCounters(BaseModel):
    """Counters owned by the chunk controller for one run."""

    frames_read: int = 0
    chunk_index: int = 0
    in_chunk_count: int = 0


class ChunkReport(BaseModel):
    """Summary of a finished run."""

    model_config = ConfigDict(frozen=True)

    frames_read: int = Field(..., ge=0)
    segments_written: int = Field(..., ge=0)
    chunk_size: int = Field(..., gt=0)
    last_segment_frames: int = Field(..., ge=0)
    segment_paths: list[Path] = Field(default_factory=list)

    @property
    def total_frames_written(self) -> int:
        if self.segments_written == 0:
            return 0
        return (self.segments_written - 1) * self.chunk_size + self.last_segment_frames
