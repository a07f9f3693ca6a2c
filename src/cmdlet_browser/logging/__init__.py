"""Structured logging primitives for cmdlet-browser."""

from .events import build_run_log_path, log_event, setup_logging, summarize_text
from .formatter import EVENT_KEY_ORDER, StructuredTextFormatter

__all__ = [
    "EVENT_KEY_ORDER",
    "StructuredTextFormatter",
    "build_run_log_path",
    "log_event",
    "setup_logging",
    "summarize_text",
]
