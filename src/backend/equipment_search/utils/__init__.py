"""Utility helpers - structured logging context"""

from .logging_context import log_context, log_performance

__all__ = ["log_context", "log_performance"]
