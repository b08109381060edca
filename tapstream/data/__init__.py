"""Data models shared across tapstream."""

from .models import CaptureOptions, LogRecord, MessageType

__all__ = ["CaptureOptions", "LogRecord", "MessageType"]
