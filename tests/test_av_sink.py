"""Tests for the PyAV segment sink and the full PyAV pipeline (mpeg4, built into FFmpeg)."""

from fractions import Fraction
from pathlib import Path
from unittest.mock import MagicMock

import av
import pytest

from split_video import (
    EncodeOptions,
    OutputOpenError,
    PictureType,
    StreamParams,
    make_plan,
    split_video,
)
from split_video.av_sink import AvSegmentSink
from tests.helpers import decode_frames, write_test_video

MPEG4 = EncodeOptions(codec="mpeg4", crf=None, preset=None)
PARAMS = StreamParams(width=64, height=48, framerate=Fraction(25, 1), pix_fmt="yuv420p")


def _grey_frame(value: int = 128) -> av.VideoFrame:
    frame = av.VideoFrame(64, 48, "yuv420p")
    for plane in frame.planes:
        plane.update(bytes([value]) * plane.buffer_size)
    return frame


def test_sink_writes_flushes_and_closes(tmp_path: Path) -> None:
    path = tmp_path / "00000.mp4"
    sink = AvSegmentSink.open(path, PARAMS, MPEG4, gop_size=2)
    for k in range(4):
        sink.write(_grey_frame(), picture_type=PictureType.I if k % 2 == 0 else PictureType.P, pts=k)
    sink.flush()
    sink.close()
    assert sink.frames_written == 4
    assert sink.packets_muxed == 4
    frames = decode_frames(path)
    assert len(frames) == 4
    assert frames[0].key_frame


def test_close_without_flush_is_refused(tmp_path: Path) -> None:
    sink = AvSegmentSink.open(tmp_path / "a.mp4", PARAMS, MPEG4, gop_size=1)
    sink.write(_grey_frame(), picture_type=PictureType.I, pts=0)
    with pytest.raises(RuntimeError, match="without flush"):
        sink.close()
    sink.abort()


def test_write_after_flush_is_refused(tmp_path: Path) -> None:
    sink = AvSegmentSink.open(tmp_path / "a.mp4", PARAMS, MPEG4, gop_size=1)
    sink.flush()
    with pytest.raises(RuntimeError):
        sink.write(_grey_frame(), picture_type=PictureType.I, pts=0)
    sink.close()


def test_unopenable_output_raises_output_open_error(tmp_path: Path) -> None:
    path = tmp_path / "missing-dir" / "00000.mp4"
    with pytest.raises(OutputOpenError):
        AvSegmentSink.open(path, PARAMS, MPEG4, gop_size=1)


def test_undeducible_extension_uses_default_format(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    path = tmp_path / "00000.unknownext"
    sink = AvSegmentSink.open(path, PARAMS, MPEG4, gop_size=1)
    sink.write(_grey_frame(), picture_type=PictureType.I, pts=0)
    sink.flush()
    sink.close()
    with av.open(str(path)) as container:
        assert "mp4" in container.format.name
    assert "could not deduce output format" in caplog.text


@pytest.mark.parametrize(("name", "expected"), [("00000.mts", "mpegts"), ("00000.mkv", "matroska")])
def test_format_deduced_from_extension(
    tmp_path: Path, caplog: pytest.LogCaptureFixture, name: str, expected: str
) -> None:
    path = tmp_path / name
    sink = AvSegmentSink.open(path, PARAMS, MPEG4, gop_size=1)
    sink.write(_grey_frame(), picture_type=PictureType.I, pts=0)
    sink.flush()
    sink.close()
    with av.open(str(path)) as container:
        assert expected in container.format.name.split(",")
    assert "could not deduce" not in caplog.text


def test_abort_never_raises() -> None:
    container = MagicMock()
    container.close.side_effect = OSError("disk gone")
    sink = AvSegmentSink(Path("x.mp4"), container, MagicMock(), Fraction(1, 25))
    sink.abort()
    sink.abort()
    container.close.assert_called_once()


class TestPipeline:
    """Decode with PyAV, split, and decode every segment back."""

    def test_ten_frames_into_four_four_two(self, tmp_path: Path) -> None:
        source = write_test_video(tmp_path / "source.mp4", 10)
        out_dir = tmp_path / "chunks"
        out_dir.mkdir()
        report = split_video(source, str(out_dir / "%05d.mp4"), make_plan(2, 4), MPEG4)

        assert report.segments_written == 3
        assert report.last_segment_frames == 2
        assert sorted(p.name for p in out_dir.iterdir()) == ["00000.mp4", "00001.mp4", "00002.mp4"]
        sizes = []
        for path in report.segment_paths:
            frames = decode_frames(path)
            sizes.append(len(frames))
            assert frames[0].key_frame
            assert frames[0].time == pytest.approx(0.0)
            for k, frame in enumerate(frames):
                assert frame.key_frame == (k % 2 == 0), (path.name, k)
        assert sizes == [4, 4, 2]

    def test_skip_and_length(self, tmp_path: Path) -> None:
        source = write_test_video(tmp_path / "source.mp4", 12)
        report = split_video(
            source,
            str(tmp_path / "%d.mp4"),
            make_plan(3, 6, skip_frames=2, max_frames=7),
            MPEG4,
        )
        assert report.total_frames_written == 7
        assert [len(decode_frames(p)) for p in report.segment_paths] == [6, 1]
