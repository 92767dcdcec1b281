"""
Decode and encode contracts used by the chunk controller.

Implementations on PyAV live in av_source and av_sink. The controller depends
only on these protocols, so tests drive it with in-memory fakes.
"""

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from .models import EncodeOptions, PictureType, StreamParams


@runtime_checkable
class FrameSource(Protocol):
    """Decoded frames of one input, in source order."""

    @property
    def params(self) -> StreamParams:
        """Stream parameters, read once when the source is opened."""
        ...

    def read_frame(self) -> Any | None:
        """Return the next decoded frame, or None once the input is exhausted."""
        ...

    def skip(self, count: int) -> None:
        """Decode and drop count frames. Raises InputExhaustedError if fewer remain."""
        ...

    def close(self) -> None:
        """Release the decoder and container. Called exactly once."""
        ...


@runtime_checkable
class SegmentSink(Protocol):
    """One output file: encoder plus muxer, open until its chunk is full."""

    @property
    def path(self) -> Path:
        ...

    @property
    def frames_written(self) -> int:
        """Frames submitted with write() so far."""
        ...

    def write(self, frame: Any, *, picture_type: PictureType, pts: int) -> None:
        """Submit one frame. The encoder may hold it back for reordering until flush()."""
        ...

    def flush(self) -> None:
        """Drain every frame the encoder is still holding and mux it."""
        ...

    def close(self) -> None:
        """Write the container trailer and release resources. Must follow flush()."""
        ...

    def abort(self) -> None:
        """Release resources after a failure without flushing. Never raises."""
        ...


class SegmentSinkFactory(Protocol):
    """Opens the sink for one segment."""

    def __call__(
        self,
        path: Path,
        params: StreamParams,
        options: EncodeOptions,
        *,
        gop_size: int,
    ) -> SegmentSink:
        ...


class FrameSourceFactory(Protocol):
    """Opens the source for one input file."""

    def __call__(self, path: str | Path) -> FrameSource:
        ...
