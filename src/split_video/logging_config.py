"""Shared logging format and configuration for the splitter."""

import logging

import av.logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%SZ"

# FFmpeg verbosity names accepted by configure_av_logging.
AV_LOG_LEVELS = {
    "QUIET": av.logging.PANIC,
    "PANIC": av.logging.PANIC,
    "FATAL": av.logging.FATAL,
    "ERROR": av.logging.ERROR,
    "WARNING": av.logging.WARNING,
    "INFO": av.logging.INFO,
    "VERBOSE": av.logging.VERBOSE,
    "DEBUG": av.logging.DEBUG,
}


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure the root logger for this process. Call once at application startup."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)


def configure_av_logging(level: str = "WARNING") -> None:
    """Set FFmpeg's own log level (messages from libav* go through PyAV)."""
    av.logging.set_level(AV_LOG_LEVELS.get(level.upper(), av.logging.WARNING))
