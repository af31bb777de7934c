"""Notifier - local OS notification plus a mirrored chat message."""

import asyncio
import os
from typing import Mapping, Optional, Protocol

from plyer import notification

from .chat_session import ChatSessionProtocol
from .observability import logger


ALERT_MARKER = "🔔"
NEW_DEADLINE_TITLE = "New Deadline Detected"


def deadline_due_title(minutes: int) -> str:
    """Title for an alert fired inside the alert window."""
    return f"⏰ Deadline in {minutes} mins"


class LocalNotifier(Protocol):
    """A local OS notification channel."""

    name: str

    async def notify(self, title: str, body: str) -> None:
        """Show a notification; raises on failure."""
        ...


class DesktopNotifier:
    """Desktop notification through plyer."""

    name = "desktop"

    def __init__(self, timeout: int = 10):
        self.timeout = timeout

    async def notify(self, title: str, body: str) -> None:
        # plyer blocks until the backend returns
        await asyncio.to_thread(
            notification.notify, title=title, message=body, timeout=self.timeout
        )


class TermuxNotifier:
    """Android notification through the termux-notification command."""

    name = "termux"

    async def notify(self, title: str, body: str) -> None:
        process = await asyncio.create_subprocess_exec(
            "termux-notification", "--title", title, "--content", body,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        _, stderr = await process.communicate()
        if process.returncode != 0:
            raise RuntimeError(
                f"termux-notification exited with {process.returncode}: "
                f"{stderr.decode(errors='replace').strip()}"
            )


def is_termux(env: Optional[Mapping[str, str]] = None) -> bool:
    """Detect a Termux shell from its PREFIX."""
    env = os.environ if env is None else env
    return "com.termux" in env.get("PREFIX", "")


def select_local_notifier(env: Optional[Mapping[str, str]] = None) -> LocalNotifier:
    """Pick the local channel for this environment."""
    if is_termux(env):
        return TermuxNotifier()
    return DesktopNotifier()


class Notifier:
    """
    Fires an alert through two independent channels.

    1. Local OS notification (desktop or Termux)
    2. A copy sent to the user's own chat endpoint

    Delivery is best-effort: a failing channel is logged and does not affect
    the other one, and fire() never raises.
    """

    def __init__(
        self,
        session: ChatSessionProtocol,
        self_endpoint: str,
        local: Optional[LocalNotifier] = None,
    ):
        self.session = session
        self.self_endpoint = self_endpoint
        self.local = local or select_local_notifier()

    async def fire(self, title: str, body: str) -> dict:
        """
        Send an alert on every channel.

        Returns:
            Dictionary with per-channel success flags
        """
        local_ok, chat_ok = await asyncio.gather(
            self._notify_local(title, body),
            self._mirror_to_chat(title, body),
        )
        logger.info(f"Alert fired: {title} (local={local_ok}, chat={chat_ok})")
        return {"local": local_ok, "chat": chat_ok}

    async def _notify_local(self, title: str, body: str) -> bool:
        try:
            await self.local.notify(title, body)
            return True
        except Exception as e:
            logger.error(f"Local {self.local.name} notification failed: {e}")
            return False

    async def _mirror_to_chat(self, title: str, body: str) -> bool:
        if not self.self_endpoint:
            logger.warning("No alert endpoint configured, skipping chat copy")
            return False

        try:
            result = await self.session.send_message(
                self.self_endpoint,
                f"{ALERT_MARKER} {title}\n{body}",
            )
        except Exception as e:
            logger.error(f"Failed to send alert to {self.self_endpoint}: {e}")
            return False

        if not result.get("ok"):
            logger.error(f"Alert to {self.self_endpoint} rejected: {result.get('error')}")
            return False
        return True
