"""Structured log sink: rotating log files plus slow SQL persistence."""

__version__ = "0.1.0"
