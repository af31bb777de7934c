"""Data models for the deadline watcher."""

from .deadline import (
    DeadlineRecord,
    TIME_FORMAT,
    minutes_between,
    to_local_minute,
)

__all__ = [
    "DeadlineRecord",
    "TIME_FORMAT",
    "minutes_between",
    "to_local_minute",
]
