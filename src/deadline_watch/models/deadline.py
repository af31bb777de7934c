"""Deadline record model."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional


# Minute precision, local time, no offset
TIME_FORMAT = "%Y-%m-%dT%H:%M"


def to_local_minute(value: datetime) -> datetime:
    """Normalize to a naive local datetime with minute precision."""
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.replace(second=0, microsecond=0)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, truncated toward zero."""
    return int((end - start) / timedelta(minutes=1))


@dataclass
class DeadlineRecord:
    """A deadline detected in a chat message."""
    
    message: str
    due_at: Optional[datetime]
    notified: bool = False
    
    @property
    def is_scheduled(self) -> bool:
        """False for records saved without a time; those never alert."""
        return self.due_at is not None
    
    def minutes_until(self, now: datetime) -> int:
        """Whole minutes remaining until the deadline (negative once past)."""
        return minutes_between(now, self.due_at)
    
    def to_dict(self) -> dict:
        """Serialize to the on-disk representation."""
        return {
            "message": self.message,
            "time": self.due_at.strftime(TIME_FORMAT) if self.due_at else None,
            "notified": self.notified,
        }
    
    @classmethod
    def from_dict(cls, data: dict) -> "DeadlineRecord":
        """
        Build a record from its on-disk representation.
        
        Older files stored the text under "msg"; both keys are accepted.
        They could also hold "time": null when a deadline was flagged
        without a date; such records load unscheduled.
        
        Raises:
            ValueError: if a required field is missing or malformed
        """
        if not isinstance(data, dict):
            raise ValueError(f"Deadline record must be an object, got {type(data).__name__}")
        
        message = data.get("message", data.get("msg"))
        if not isinstance(message, str):
            raise ValueError("Deadline record has no message text")
        
        if "time" not in data:
            raise ValueError(f"Deadline record has no time: {message[:50]!r}")
        time_str = data["time"]
        if time_str is None:
            due_at = None
        elif isinstance(time_str, str):
            due_at = to_local_minute(datetime.fromisoformat(time_str))
        else:
            raise ValueError(f"Deadline record has a malformed time: {time_str!r}")
        
        notified = data.get("notified", False)
        if not isinstance(notified, bool):
            raise ValueError(f"Deadline record has a non-boolean notified flag: {notified!r}")
        
        return cls(message=message, due_at=due_at, notified=notified)
