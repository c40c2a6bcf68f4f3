"""Capture-to-context pipeline."""

from .orchestrator import ContextPipeline, SessionPaths
from .session import CaptureSession, SessionState

__all__ = ["CaptureSession", "ContextPipeline", "SessionPaths", "SessionState"]
