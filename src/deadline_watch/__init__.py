"""Deadline Watch - detects deadlines in a chat group and alerts before they pass."""

__version__ = "0.1.0"
