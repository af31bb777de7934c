"""Deadline Analyzer - asks the language model whether a message states a deadline."""

import json
import re
from datetime import datetime, timedelta
from typing import Any, Optional

from .base import BaseAgent
from ..models import TIME_FORMAT, to_local_minute
from ..observability import logger


_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)

MESSAGE_MARKER = "Message:"
NOW_MARKER = "Current time:"


def strip_code_fence(raw: str) -> str:
    """Return the body of the first fenced block, or the trimmed text if unfenced."""
    match = _FENCE_RE.search(raw)
    if match:
        return match.group(1).strip()
    return raw.strip()


def _load_json_object(text: str) -> dict[str, Any]:
    """Parse a JSON object, falling back to the outermost {...} span."""
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise
        parsed = json.loads(text[start:end + 1])

    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


def parse_analysis(raw: Optional[str]) -> Optional[datetime]:
    """
    Turn a model completion into a deadline.

    Returns the local due time at minute precision, or None when the
    completion says there is no deadline.

    Raises:
        ValueError: if the completion is missing or not the expected JSON
    """
    if not raw or not raw.strip():
        raise ValueError("Empty completion")

    data = _load_json_object(strip_code_fence(raw))

    if data.get("containsDeadline") is not True:
        return None

    deadline_iso = data.get("deadlineISO")
    if not isinstance(deadline_iso, str) or not deadline_iso.strip():
        raise ValueError(f"containsDeadline is true but deadlineISO is {deadline_iso!r}")

    # A bare date parses as midnight
    return to_local_minute(datetime.fromisoformat(deadline_iso.strip()))


class DeadlineAnalyzer(BaseAgent):
    """
    Extracts at most one deadline from a chat message.

    The model is given the message and the current time so relative
    expressions ("tomorrow", "by Friday") resolve against the real clock.
    Any failure is reported as "no deadline"; callers cannot tell the two apart.
    """

    @property
    def agent_name(self) -> str:
        return "DeadlineAnalyzer"

    def build_prompt(self, text: str, now: datetime) -> str:
        """Build the extraction prompt for one message."""
        return f"""Analyze this message and decide whether it states a deadline, explicitly or implicitly.

Rules:
- If there is a deadline, convert it to a local ISO 8601 datetime with minute precision (YYYY-MM-DDTHH:MM).
- Resolve relative dates against the current time given below.
- If no time of day is mentioned, use 00:00.
- If there is no deadline, set "containsDeadline" to false and "deadlineISO" to null.

Respond with a single raw JSON object and nothing else, in exactly this shape:

{{"containsDeadline": true, "deadlineISO": "2025-08-02T18:00"}}

Do not use markdown, code fences or comments.

{NOW_MARKER} {now.strftime(TIME_FORMAT)} ({now.strftime("%A")})

{MESSAGE_MARKER} {json.dumps(text, ensure_ascii=False)}
"""

    async def analyze(self, text: str, now: Optional[datetime] = None) -> Optional[datetime]:
        """
        Analyze a message for a deadline.

        Args:
            text: Raw message body
            now: Reference time for relative expressions (defaults to now)

        Returns:
            The due time (naive local, minute precision) or None
        """
        if not text or not text.strip():
            logger.debug(f"{self.agent_name}: Empty message, nothing to analyze")
            return None

        now = now or datetime.now()
        prompt = self.build_prompt(text, now)

        try:
            completion = await self.complete(prompt)
            due_at = parse_analysis(completion)
        except Exception as e:
            logger.warning(f"{self.agent_name}: extraction failed, treating as no deadline: {e}")
            return None

        if due_at:
            logger.info(f"{self.agent_name}: deadline {due_at.strftime(TIME_FORMAT)} in {text[:60]!r}")
        else:
            logger.debug(f"{self.agent_name}: no deadline in {text[:60]!r}")
        return due_at

    def _mock_completion(self, prompt: str) -> str:
        """
        Offline stand-in for the model.

        Recognizes an explicit YYYY-MM-DD[ HH:MM] in the message and the word
        "tomorrow"; everything else is "no deadline".
        """
        message = prompt.split(MESSAGE_MARKER, 1)[-1].lower()
        now_line = prompt.split(NOW_MARKER, 1)[-1].strip()
        now = datetime.strptime(now_line[:16], TIME_FORMAT)

        explicit = re.search(r"(\d{4}-\d{2}-\d{2})(?:[ t](\d{1,2}:\d{2}))?", message)
        if explicit:
            date_part, time_part = explicit.groups()
            hours, minutes = (time_part or "00:00").split(":")
            deadline = f"{date_part}T{int(hours):02d}:{minutes}"
        elif "tomorrow" in message:
            deadline = (now + timedelta(days=1)).strftime("%Y-%m-%dT00:00")
        else:
            return json.dumps({"containsDeadline": False, "deadlineISO": None})

        return json.dumps({"containsDeadline": True, "deadlineISO": deadline})
