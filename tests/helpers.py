"""Shared test helpers: in-memory frame source and segment sinks, and a PyAV video writer."""

from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction
from pathlib import Path

import av

from split_video import EncodeOptions, InputExhaustedError, PictureType, StreamParams

DEFAULT_PARAMS = StreamParams(
    width=64, height=48, framerate=Fraction(25, 1), pix_fmt="yuv420p", codec_name="fake"
)


@dataclass(frozen=True)
class FakeFrame:
    """Stands in for a decoded picture; index is its position in the source."""

    index: int


class FakeFrameSource:
    """FrameSource yielding frame_count FakeFrames."""

    def __init__(
        self,
        frame_count: int,
        params: StreamParams = DEFAULT_PARAMS,
        *,
        fail_at: int | None = None,
        error: Exception | None = None,
    ) -> None:
        self._frame_count = frame_count
        self._params = params
        self._next = 0
        self._fail_at = fail_at
        self._error = error
        self.close_calls = 0
        self.params_reads = 0

    @property
    def params(self) -> StreamParams:
        self.params_reads += 1
        return self._params

    def read_frame(self) -> FakeFrame | None:
        if self._fail_at is not None and self._next == self._fail_at:
            raise self._error or RuntimeError("decode failed")
        if self._next >= self._frame_count:
            return None
        frame = FakeFrame(self._next)
        self._next += 1
        return frame

    def skip(self, count: int) -> None:
        for skipped in range(count):
            if self.read_frame() is None:
                raise InputExhaustedError(f"no more frames after {skipped} of {count}")

    def close(self) -> None:
        self.close_calls += 1


@dataclass
class WrittenFrame:
    frame: FakeFrame
    picture_type: PictureType
    pts: int


@dataclass
class FakeSink:
    """SegmentSink recording every call in order, shared with its factory's log."""

    path: Path
    log: list[tuple[str, Path]]
    writes: list[WrittenFrame] = field(default_factory=list)
    flushed: bool = False
    closed: bool = False
    aborted: bool = False
    fail_on_write: int | None = None
    error: Exception | None = None

    @property
    def frames_written(self) -> int:
        return len(self.writes)

    def write(self, frame: FakeFrame, *, picture_type: PictureType, pts: int) -> None:
        assert not self.closed and not self.flushed
        if self.fail_on_write is not None and len(self.writes) == self.fail_on_write:
            raise self.error or RuntimeError("encode failed")
        self.writes.append(WrittenFrame(frame, picture_type, pts))
        self.log.append(("write", self.path))

    def flush(self) -> None:
        self.flushed = True
        self.log.append(("flush", self.path))

    def close(self) -> None:
        assert self.flushed, "close without flush"
        self.closed = True
        self.log.append(("close", self.path))

    def abort(self) -> None:
        self.aborted = True
        self.log.append(("abort", self.path))


class FakeSinkFactory:
    """SegmentSinkFactory producing FakeSinks; optionally fails opening or writing."""

    def __init__(
        self,
        *,
        fail_open_at: int | None = None,
        open_error: Exception | None = None,
        fail_write: tuple[int, int] | None = None,
        write_error: Exception | None = None,
    ) -> None:
        self.sinks: list[FakeSink] = []
        self.log: list[tuple[str, Path]] = []
        self.open_calls: list[tuple[Path, StreamParams, EncodeOptions, int]] = []
        self._fail_open_at = fail_open_at
        self._open_error = open_error
        self._fail_write = fail_write
        self._write_error = write_error

    def __call__(
        self,
        path: Path,
        params: StreamParams,
        options: EncodeOptions,
        *,
        gop_size: int,
    ) -> FakeSink:
        if self.sinks:
            assert self.sinks[-1].closed or self.sinks[-1].aborted, "two segments open at once"
        self.open_calls.append((path, params, options, gop_size))
        if self._fail_open_at is not None and len(self.sinks) == self._fail_open_at:
            raise self._open_error or RuntimeError("open failed")
        sink = FakeSink(path=path, log=self.log)
        if self._fail_write is not None and self._fail_write[0] == len(self.sinks):
            sink.fail_on_write = self._fail_write[1]
            sink.error = self._write_error
        self.log.append(("open", path))
        self.sinks.append(sink)
        return sink

    @property
    def sizes(self) -> list[int]:
        return [len(s.writes) for s in self.sinks]

    def picture_types(self, segment: int) -> list[str]:
        return [w.picture_type.value for w in self.sinks[segment].writes]

    def timestamps(self, segment: int) -> list[int]:
        return [w.pts for w in self.sinks[segment].writes]

    def source_indices(self) -> list[int]:
        return [w.frame.index for s in self.sinks for w in s.writes]


def write_test_video(
    path: Path,
    frame_count: int,
    *,
    width: int = 64,
    height: int = 48,
    rate: int = 25,
    codec: str = "mpeg4",
) -> Path:
    """Encode frame_count flat grey frames into path with PyAV."""
    time_base = Fraction(1, rate)
    with av.open(str(path), mode="w") as container:
        stream = container.add_stream(codec, rate=rate)
        stream.width = width
        stream.height = height
        stream.pix_fmt = "yuv420p"
        for i in range(frame_count):
            frame = av.VideoFrame(width, height, "yuv420p")
            for plane in frame.planes:
                plane.update(bytes([(16 + 4 * i) % 235]) * plane.buffer_size)
            frame.pts = i
            frame.time_base = time_base
            for packet in stream.encode(frame):
                container.mux(packet)
        for packet in stream.encode(None):
            container.mux(packet)
    return path


def decode_frames(path: Path) -> list[av.VideoFrame]:
    with av.open(str(path)) as container:
        return list(container.decode(video=0))
