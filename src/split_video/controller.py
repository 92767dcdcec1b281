"""
Chunk controller: pull decoded frames, force the GOP pattern, rotate segments.

States: skipping -> active -> (rotating <-> active)* -> done.

Every segment starts on an I-frame, repeats I every gop_size frames, and carries
timestamps 0..n-1 of its own, so each one plays on its own from time zero.
Concatenating segments therefore does not reproduce the source timeline.

Exactly one segment is open at a time. A full segment is flushed and closed
before the next one is opened. Any failure ends the run; the open segment is
aborted (resources released, partial file left on disk) and the source closed.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from .av_sink import AvSegmentSink
from .av_source import AvFrameSource
from .errors import ConfigValidationError
from .interfaces import FrameSource, FrameSourceFactory, SegmentSink, SegmentSinkFactory
from .models import (
    ChunkPlan,
    ChunkReport,
    ControllerState,
    EncodeOptions,
    RunCounters,
    StreamParams,
)
from .template import render_segment_path, validate_output_template

logger = logging.getLogger(__name__)


def make_plan(
    gop_size: int,
    chunk_size: int,
    *,
    skip_frames: int = 0,
    max_frames: int | None = None,
) -> ChunkPlan:
    """Build a ChunkPlan; invalid combinations raise ConfigValidationError."""
    try:
        return ChunkPlan(
            gop_size=gop_size,
            chunk_size=chunk_size,
            skip_frames=skip_frames,
            max_frames=-1 if max_frames is None else max_frames,
        )
    except ValidationError as e:
        messages = "; ".join(err["msg"] for err in e.errors())
        raise ConfigValidationError(messages) from e


class ChunkController:
    """Drives one run: owns the frame source and, at any moment, one open segment."""

    def __init__(
        self,
        plan: ChunkPlan,
        source: FrameSource,
        open_sink: SegmentSinkFactory,
        output_template: str,
        options: EncodeOptions,
    ) -> None:
        self.plan = plan
        self.options = options
        self.output_template = validate_output_template(output_template)
        self._source = source
        self._open_sink = open_sink
        self._sink: SegmentSink | None = None
        self._segment_paths: list[Path] = []
        self.counters = RunCounters()
        self.state = ControllerState.SKIPPING

    @property
    def segment_paths(self) -> list[Path]:
        return list(self._segment_paths)

    def run(self) -> ChunkReport:
        """
        Split the source into segments.

        Stream parameters are read from the source once, before any segment exists.
        Skip failures happen before the first segment is opened.
        """
        params = self._source.params
        self._skip()
        try:
            self._open_next_segment(params)
            self.state = ControllerState.ACTIVE
            while not self._budget_exhausted():
                frame = self._source.read_frame()
                if frame is None:
                    break
                if self.counters.in_chunk_count == self.plan.chunk_size:
                    self._rotate(params)
                self._write(frame)
            self._finish_segment()
        except BaseException:
            self._abort_segment()
            raise
        self.state = ControllerState.DONE
        report = ChunkReport(
            frames_read=self.counters.frames_read,
            segments_written=self.counters.chunk_index,
            chunk_size=self.plan.chunk_size,
            last_segment_frames=self.counters.in_chunk_count,
            segment_paths=self._segment_paths,
        )
        log_report(report)
        return report

    def _skip(self) -> None:
        skip = self.plan.skip_frames
        if skip > 0:
            logger.info("Skipping %d frames", skip)
            self._source.skip(skip)

    def _budget_exhausted(self) -> bool:
        return self.plan.bounded and self.counters.frames_read >= self.plan.max_frames

    def _open_next_segment(self, params: StreamParams) -> None:
        index = self.counters.chunk_index
        path = render_segment_path(self.output_template, index)
        logger.info("Writing chunk %05d", index)
        self._sink = self._open_sink(path, params, self.options, gop_size=self.plan.gop_size)
        self._segment_paths.append(path)
        self.counters.chunk_index += 1
        self.counters.in_chunk_count = 0

    def _rotate(self, params: StreamParams) -> None:
        self.state = ControllerState.ROTATING
        self._finish_segment()
        self._open_next_segment(params)
        self.state = ControllerState.ACTIVE

    def _write(self, frame) -> None:
        assert self._sink is not None
        k = self.counters.in_chunk_count
        self._sink.write(frame, picture_type=self.plan.picture_type_for(k), pts=k)
        self.counters.in_chunk_count += 1
        self.counters.frames_read += 1

    def _finish_segment(self) -> None:
        sink = self._sink
        if sink is None:
            return
        sink.flush()
        # Drop the reference first so a failing close is not aborted again.
        self._sink = None
        sink.close()
        logger.debug("chunk %s closed with %s frames", sink.path, self.counters.in_chunk_count)

    def _abort_segment(self) -> None:
        sink = self._sink
        self._sink = None
        if sink is not None:
            logger.warning("aborting chunk %s; the partial file is left on disk", sink.path)
            sink.abort()


def log_report(report: ChunkReport) -> None:
    logger.info("Read %d frames", report.frames_read)
    logger.info(
        "Wrote %d chunks of %d frames each (last chunk: %d frames)",
        report.segments_written,
        report.chunk_size,
        report.last_segment_frames,
    )
    logger.info("  for a total of %d frames", report.total_frames_written)


def split_video(
    input_path: str | Path,
    output_template: str,
    plan: ChunkPlan,
    options: EncodeOptions | None = None,
    *,
    open_source: FrameSourceFactory = AvFrameSource.open,
    open_sink: SegmentSinkFactory = AvSegmentSink.open,
) -> ChunkReport:
    """
    Split input_path into segments named by output_template.

    The template is validated before the input is opened. The source is closed
    on every exit path.
    """
    validate_output_template(output_template)
    options = options or EncodeOptions()
    source = open_source(input_path)
    try:
        controller = ChunkController(plan, source, open_sink, output_template, options)
        return controller.run()
    finally:
        source.close()
