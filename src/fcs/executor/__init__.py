"""Transcoder command building and execution."""

from fcs.executor.command import build_command
from fcs.executor.runner import TranscodeRunner

__all__ = ["TranscodeRunner", "build_command"]
