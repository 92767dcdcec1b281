"""
Frame source on PyAV: demux and decode the first video stream of one input.

Frames come out lazily in decode order, one per read_frame() call. The source is
not restartable; once read_frame() returns None the input is exhausted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from fractions import Fraction
from pathlib import Path

import av
from av.error import FFmpegError
from av.video.frame import VideoFrame

from .errors import (
    DecodeError,
    InputExhaustedError,
    InputOpenError,
    NoVideoStreamError,
    UnsupportedCodecError,
)
from .models import StreamParams

logger = logging.getLogger(__name__)


def _stream_framerate(stream) -> Fraction | None:
    """Source frame rate: average rate, then guessed rate, then the decoder's own."""
    for rate in (stream.average_rate, stream.guessed_rate, stream.codec_context.framerate):
        if rate:
            return Fraction(rate)
    return None


class AvFrameSource:
    """Decoded frames of the first video stream of a media file."""

    def __init__(self, path: Path, container, stream) -> None:
        self._path = path
        self._container = container
        self._stream = stream
        self._frames: Iterator[VideoFrame] = container.decode(stream)
        self._params = self._read_params()
        self._frames_decoded = 0
        self._closed = False

    @classmethod
    def open(cls, path: str | Path) -> AvFrameSource:
        """
        Open path and select its first video stream.

        Raises:
            InputOpenError: the file cannot be opened or probed.
            NoVideoStreamError: the file has no video stream.
            UnsupportedCodecError: no decoder for the stream, or no usable frame rate.
        """
        path = Path(path)
        try:
            container = av.open(str(path), mode="r")
        except (FFmpegError, OSError) as e:
            raise InputOpenError(f"couldn't open {path}: {e}", path=str(path)) from e
        try:
            if not container.streams.video:
                raise NoVideoStreamError(f"couldn't find a video stream in {path}", path=str(path))
            stream = container.streams.video[0]
            if stream.codec_context is None:
                raise UnsupportedCodecError(f"codec not found for {path}", path=str(path))
            source = cls(path, container, stream)
        except BaseException:
            container.close()
            raise
        return source

    def _read_params(self) -> StreamParams:
        ctx = self._stream.codec_context
        framerate = _stream_framerate(self._stream)
        if framerate is None:
            raise UnsupportedCodecError(
                f"no frame rate for video stream of {self._path}", path=str(self._path)
            )
        if not ctx.width or not ctx.height or not ctx.pix_fmt:
            raise UnsupportedCodecError(
                f"video stream of {self._path} has no picture geometry ({ctx.name})",
                path=str(self._path),
            )
        params = StreamParams(
            width=ctx.width,
            height=ctx.height,
            framerate=framerate,
            pix_fmt=ctx.pix_fmt,
            codec_name=ctx.name,
        )
        logger.info(
            "input %s: format=%s stream=#%s codec=%s %sx%s %s @ %s fps",
            self._path,
            self._container.format.name,
            self._stream.index,
            params.codec_name,
            params.width,
            params.height,
            params.pix_fmt,
            params.framerate,
        )
        return params

    @property
    def params(self) -> StreamParams:
        return self._params

    @property
    def frames_decoded(self) -> int:
        return self._frames_decoded

    def read_frame(self) -> VideoFrame | None:
        try:
            frame = next(self._frames, None)
        except FFmpegError as e:
            raise DecodeError(
                f"unable to decode video frame {self._frames_decoded} of {self._path}: {e}",
                path=str(self._path),
            ) from e
        if frame is not None:
            self._frames_decoded += 1
        return frame

    def skip(self, count: int) -> None:
        if count < 0:
            raise ValueError(f"skip count must be >= 0, got {count}")
        for skipped in range(count):
            if self.read_frame() is None:
                raise InputExhaustedError(
                    f"no more frames available after skipping {skipped} of {count}",
                    path=str(self._path),
                )

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._container.close()
        logger.debug("input %s closed after %s decoded frames", self._path, self._frames_decoded)

    def __enter__(self) -> AvFrameSource:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
