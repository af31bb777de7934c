"""Chat session wrapper supporting both real (Slack Socket Mode) and mock sessions."""

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, Optional, Protocol

from slack_sdk.errors import SlackApiError
from slack_sdk.socket_mode.aiohttp import SocketModeClient
from slack_sdk.socket_mode.request import SocketModeRequest
from slack_sdk.socket_mode.response import SocketModeResponse
from slack_sdk.web.async_client import AsyncWebClient

from .observability import logger


@dataclass
class MessageEvent:
    """An incoming chat message."""
    channel_id: str
    text: str
    user: str = ""
    ts: str = ""


@dataclass
class Conversation:
    """The conversation a message was posted in."""
    is_group: bool
    name: str


MessageHandler = Callable[[MessageEvent], Awaitable[None]]

# Message subtypes that are still ordinary posts by a person
USER_POST_SUBTYPES = frozenset({"file_share", "thread_broadcast"})


class ChatSessionProtocol(Protocol):
    """Protocol for chat session operations."""

    def on_message(self, handler: MessageHandler) -> None:
        """Register a handler for incoming messages."""
        ...

    async def get_conversation(self, event: MessageEvent) -> Conversation:
        """Resolve the conversation an event came from."""
        ...

    async def send_message(self, endpoint_id: str, text: str) -> dict:
        """Send a text message to a user or channel."""
        ...


def message_event_from_payload(event: dict) -> Optional[MessageEvent]:
    """
    Convert a Slack event payload into a MessageEvent.

    Plain user messages qualify, and so do file shares (the caption is the
    text) and thread replies broadcast to the channel. Edits, joins, bot
    posts and other subtypes are ignored, as are messages with no text.
    """
    if event.get("type") != "message":
        return None
    subtype = event.get("subtype")
    if subtype and subtype not in USER_POST_SUBTYPES:
        return None
    if event.get("bot_id"):
        return None
    text = event.get("text") or ""
    if not text.strip():
        return None
    return MessageEvent(
        channel_id=event.get("channel", ""),
        text=text,
        user=event.get("user", ""),
        ts=event.get("ts", ""),
    )


def conversation_from_info(channel: dict) -> Conversation:
    """Build a Conversation from a conversations.info channel object."""
    is_group = bool(
        channel.get("is_channel") or channel.get("is_group") or channel.get("is_mpim")
    )
    return Conversation(is_group=is_group, name=channel.get("name", ""))


class MockChatSession:
    """Mock chat session that uses fixture data for testing."""

    def __init__(self, fixture_path: Optional[str] = None):
        self.fixture_path = Path(fixture_path) if fixture_path else None
        self._data = None
        self._load_fixtures()
        self._handlers: list[MessageHandler] = []
        self.sent_messages: list[dict] = []

    def _load_fixtures(self):
        """Load mock data from fixture file."""
        if self.fixture_path and self.fixture_path.exists():
            with open(self.fixture_path, "r", encoding="utf-8") as f:
                self._data = json.load(f)
        else:
            self._data = {"conversations": {}, "messages": []}

    def add_conversation(self, channel_id: str, name: str, is_group: bool = True):
        """Register a conversation (for tests)."""
        self._data.setdefault("conversations", {})[channel_id] = {
            "name": name,
            "is_group": is_group,
        }

    def on_message(self, handler: MessageHandler) -> None:
        """Register a message handler."""
        self._handlers.append(handler)

    async def dispatch(self, event: MessageEvent):
        """Deliver one event to every registered handler, in order."""
        for handler in self._handlers:
            await handler(event)

    async def replay(self) -> int:
        """Deliver every fixture message; returns how many were delivered."""
        count = 0
        for raw in self._data.get("messages", []):
            event = message_event_from_payload({"type": "message", **raw})
            if event:
                await self.dispatch(event)
                count += 1
        return count

    async def get_conversation(self, event: MessageEvent) -> Conversation:
        """Resolve conversation from fixtures."""
        conversation = self._data.get("conversations", {}).get(event.channel_id, {})
        return Conversation(
            is_group=conversation.get("is_group", False),
            name=conversation.get("name", event.channel_id),
        )

    async def send_message(self, endpoint_id: str, text: str) -> dict:
        """Record sent message."""
        result = {
            "ok": True,
            "channel": endpoint_id,
            "ts": str(datetime.now().timestamp()),
            "text": text,
        }
        self.sent_messages.append(result)
        return result

    async def start(self):
        """Nothing to connect in mock mode."""
        logger.info("Mock chat session ready")

    async def close(self):
        pass


class SlackChatSession:
    """Real chat session using slack-sdk Socket Mode."""

    def __init__(self, bot_token: str, app_token: str):
        self.web_client = AsyncWebClient(token=bot_token)
        self.socket_client = SocketModeClient(
            app_token=app_token,
            web_client=self.web_client,
        )
        self.socket_client.socket_mode_request_listeners.append(self._on_request)
        self._handlers: list[MessageHandler] = []
        self._conversation_cache: dict[str, Conversation] = {}

    def on_message(self, handler: MessageHandler) -> None:
        """Register a message handler."""
        self._handlers.append(handler)

    async def _on_request(self, client: SocketModeClient, req: SocketModeRequest):
        """Acknowledge every envelope and forward plain messages."""
        await client.send_socket_mode_response(
            SocketModeResponse(envelope_id=req.envelope_id)
        )

        if req.type != "events_api":
            return

        event = message_event_from_payload(req.payload.get("event", {}))
        if event is None:
            return

        for handler in self._handlers:
            try:
                await handler(event)
            except Exception as e:
                logger.error(f"Message handler failed for {event.channel_id}/{event.ts}: {e}")

    async def get_conversation(self, event: MessageEvent) -> Conversation:
        """Resolve conversation via conversations.info (cached per channel)."""
        if event.channel_id in self._conversation_cache:
            return self._conversation_cache[event.channel_id]

        response = await self.web_client.conversations_info(channel=event.channel_id)
        conversation = conversation_from_info(response["channel"])
        self._conversation_cache[event.channel_id] = conversation
        return conversation

    async def send_message(self, endpoint_id: str, text: str) -> dict:
        """Send to a channel, opening a DM first when given a user ID."""
        try:
            channel = endpoint_id
            if endpoint_id.startswith(("U", "W")):
                dm_response = await self.web_client.conversations_open(users=endpoint_id)
                channel = dm_response["channel"]["id"]

            response = await self.web_client.chat_postMessage(channel=channel, text=text)
            return response.data
        except SlackApiError as e:
            logger.error(f"Error sending message: {e.response['error']}")
            return {"ok": False, "error": e.response["error"]}

    async def start(self):
        """Open the Socket Mode connection."""
        await self.socket_client.connect()
        logger.info("Slack session connected")

    async def close(self):
        """Close the Socket Mode connection."""
        await self.socket_client.close()


class ChatSession:
    """
    Unified chat session interface.

    Abstracts real vs mock session selection:
    - Pass mock_data_path (or mock=True) for testing with fixtures
    - Otherwise connects to Slack
    """

    def __init__(
        self,
        mock_data_path: Optional[str] = None,
        bot_token: str = "",
        app_token: str = "",
        mock: bool = False,
    ):
        if mock or mock_data_path:
            self._session = MockChatSession(mock_data_path)
        else:
            self._session = SlackChatSession(bot_token, app_token)

    @property
    def is_mock(self) -> bool:
        """Check if using mock session."""
        return isinstance(self._session, MockChatSession)

    @property
    def session(self):
        """The underlying session."""
        return self._session

    def on_message(self, handler: MessageHandler) -> None:
        """Register a handler for incoming messages."""
        self._session.on_message(handler)

    async def get_conversation(self, event: MessageEvent) -> Conversation:
        """Resolve the conversation an event came from."""
        return await self._session.get_conversation(event)

    async def send_message(self, endpoint_id: str, text: str) -> dict:
        """Send a text message to a user or channel."""
        return await self._session.send_message(endpoint_id, text)

    async def start(self):
        await self._session.start()

    async def close(self):
        await self._session.close()

    # Mock-specific accessors for testing
    @property
    def sent_messages(self) -> list[dict]:
        """Get sent messages (mock only)."""
        if hasattr(self._session, "sent_messages"):
            return self._session.sent_messages
        return []
