"""
Errors raised by the splitter.

Every error is fatal for the run. Each carries the stage that failed so the CLI
can name it in its diagnostic before exiting with status 1.
"""


class SplitVideoError(Exception):
    """Base class for all splitter failures."""

    stage = "pipeline"

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class ConfigValidationError(SplitVideoError, ValueError):
    """Chunk plan or output template rejected before any I/O."""

    stage = "config"


class InputOpenError(SplitVideoError):
    """Source could not be opened or probed."""

    stage = "input"


class NoVideoStreamError(SplitVideoError):
    stage = "input"


class UnsupportedCodecError(SplitVideoError):
    """No decoder for the source video stream (or the stream lacks usable timing)."""

    stage = "input"


class InputExhaustedError(SplitVideoError):
    """Fewer frames than requested by --skip."""

    stage = "input"


class DecodeError(SplitVideoError):
    stage = "decode"


class OutputAllocError(SplitVideoError):
    """Output container or encoder could not be created."""

    stage = "output"


class OutputOpenError(SplitVideoError):
    """Output file could not be opened for writing."""

    stage = "output"


class EncodeError(SplitVideoError):
    stage = "encode"


class WriteError(SplitVideoError):
    """Muxing a packet or the trailer failed."""

    stage = "write"
