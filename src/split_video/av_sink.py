"""
Segment sink on PyAV: encode frames and mux them into one output file.

Lifecycle per segment: open -> write* -> flush -> close. The encoder may hold
frames back for reordering, so flush() must run before close() or the last
frames of the segment are lost. abort() is the failure path: it releases the
container without flushing and leaves the partial file on disk.
"""

from __future__ import annotations

import logging
from pathlib import Path

import av
from av.error import FFmpegError
from av.video.frame import PictureType as AvPictureType
from av.video.frame import VideoFrame

from .errors import EncodeError, OutputAllocError, OutputOpenError, WriteError
from .models import EncodeOptions, PictureType, StreamParams

logger = logging.getLogger(__name__)


class AvSegmentSink:
    """One open output file with a single video stream."""

    def __init__(self, path: Path, container, stream, time_base) -> None:
        self._path = path
        self._container = container
        self._stream = stream
        self._time_base = time_base
        self._frames_written = 0
        self._packets_muxed = 0
        self._flushed = False
        self._closed = False

    @classmethod
    def open(
        cls,
        path: Path,
        params: StreamParams,
        options: EncodeOptions,
        *,
        gop_size: int,
    ) -> AvSegmentSink:
        """
        Create the output container and encoder, and write the container header.

        Raises:
            OutputAllocError: container or encoder could not be created.
            OutputOpenError: the file could not be opened for writing.
        """
        path = Path(path)
        try:
            container = _open_container(path, options)
        except OSError as e:
            raise OutputOpenError(f"could not open '{path}': {e}", path=str(path)) from e
        except (FFmpegError, ValueError) as e:
            raise OutputAllocError(
                f"could not allocate output format context for {path}: {e}", path=str(path)
            ) from e
        try:
            stream = container.add_stream(
                options.codec, rate=params.framerate, options=options.codec_options()
            )
            stream.width = params.width
            stream.height = params.height
            stream.pix_fmt = params.pix_fmt
            stream.time_base = params.time_base
            stream.codec_context.time_base = params.time_base
            stream.codec_context.gop_size = gop_size
        except (FFmpegError, ValueError, TypeError) as e:
            container.close()
            raise OutputAllocError(
                f"could not add {options.codec} stream to {path}: {e}", path=str(path)
            ) from e
        try:
            # Opens the encoder and the file, then writes the header.
            container.start_encoding()
        except OSError as e:
            _close_quietly(container, path)
            raise OutputOpenError(f"could not open '{path}': {e}", path=str(path)) from e
        except (FFmpegError, ValueError) as e:
            _close_quietly(container, path)
            raise OutputAllocError(
                f"could not open {options.codec} encoder for {path}: {e}", path=str(path)
            ) from e
        logger.debug(
            "output %s: format=%s codec=%s %sx%s %s gop=%s",
            path,
            container.format.name,
            options.codec,
            params.width,
            params.height,
            params.pix_fmt,
            gop_size,
        )
        return cls(path, container, stream, params.time_base)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def frames_written(self) -> int:
        return self._frames_written

    @property
    def packets_muxed(self) -> int:
        return self._packets_muxed

    def write(self, frame: VideoFrame, *, picture_type: PictureType, pts: int) -> None:
        if self._flushed or self._closed:
            raise RuntimeError(f"segment {self._path} no longer accepts frames")
        frame.pict_type = AvPictureType[picture_type.value]
        frame.pts = pts
        frame.time_base = self._time_base
        self._encode(frame)
        self._frames_written += 1

    def flush(self) -> None:
        if self._closed:
            raise RuntimeError(f"segment {self._path} is closed")
        if self._flushed:
            return
        self._encode(None)
        self._flushed = True

    def _encode(self, frame: VideoFrame | None) -> None:
        try:
            packets = self._stream.encode(frame)
        except FFmpegError as e:
            what = "flushing encoder" if frame is None else f"encoding frame {self._frames_written}"
            raise EncodeError(f"error {what} for {self._path}: {e}", path=str(self._path)) from e
        for packet in packets:
            try:
                self._container.mux(packet)
            except (FFmpegError, OSError) as e:
                raise WriteError(
                    f"error while writing video frame to {self._path}: {e}", path=str(self._path)
                ) from e
            self._packets_muxed += 1

    def close(self) -> None:
        if self._closed:
            return
        if not self._flushed:
            raise RuntimeError(f"segment {self._path} closed without flush")
        self._closed = True
        try:
            self._container.close()
        except (FFmpegError, OSError) as e:
            raise WriteError(f"error writing trailer of {self._path}: {e}", path=str(self._path)) from e
        logger.debug(
            "output %s closed: %s frames, %s packets",
            self._path,
            self._frames_written,
            self._packets_muxed,
        )

    def abort(self) -> None:
        if self._closed:
            return
        self._closed = True
        _close_quietly(self._container, self._path)


def _close_quietly(container, path: Path) -> None:
    try:
        container.close()
    except (FFmpegError, OSError) as e:
        logger.warning("output %s: error releasing container: %s", path, e)


def _open_container(path: Path, options: EncodeOptions):
    """Output container, format deduced by FFmpeg from the file name."""
    container_options = options.container_options()
    try:
        return av.open(str(path), mode="w", options=container_options)
    except ValueError as e:
        # av raises a plain ValueError when no muxer matches the file name.
        if isinstance(e, FFmpegError):
            raise
        logger.warning(
            "could not deduce output format from file extension of %s: using %s",
            path,
            options.default_format,
        )
    return av.open(
        str(path), mode="w", format=options.default_format, options=container_options
    )
