"""Test configuration and shared fixtures."""

import os
import pytest
from datetime import datetime
from pathlib import Path

# Dummy key so constructing a real model client never fails in tests
os.environ.setdefault("OPENAI_API_KEY", "sk-test-dummy-key-for-testing")

from deadline_watch.chat_session import MockChatSession, MessageEvent
from deadline_watch.notifier import Notifier
from deadline_watch.store import DeadlineStore


GROUP_NAME = "TPO Information IT 2027"
GROUP_CHANNEL = "C_TPO"
SELF_ENDPOINT = "U_SELF"


class RecordingNotifier:
    """Local notifier double that records what it was asked to show."""

    name = "recording"

    def __init__(self, error: Exception = None):
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def notify(self, title: str, body: str) -> None:
        self.calls.append((title, body))
        if self.error:
            raise self.error


@pytest.fixture
def fixtures_path():
    """Path to fixture files."""
    return Path(__file__).parent.parent / "fixtures"


@pytest.fixture
def mock_fixture_path(fixtures_path):
    """Path to mock chat data."""
    return str(fixtures_path / "chat_mock.json")


@pytest.fixture
def now():
    """Fixed reference time."""
    return datetime(2025, 8, 1, 10, 0)


@pytest.fixture
def store_path(tmp_path):
    """Backing file location inside a temp dir."""
    return tmp_path / "data" / "deadlines.json"


@pytest.fixture
def store(store_path):
    """Empty, loaded store."""
    store = DeadlineStore(str(store_path))
    store.load()
    return store


@pytest.fixture
def session():
    """Mock chat session with the watched group and a few others."""
    session = MockChatSession()
    session.add_conversation(GROUP_CHANNEL, GROUP_NAME, is_group=True)
    session.add_conversation("C_OTHER", "Hostel Announcements", is_group=True)
    session.add_conversation("D_FRIEND", GROUP_NAME, is_group=False)
    return session


@pytest.fixture
def local_notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_local_notifier():
    return RecordingNotifier(error=OSError("notification daemon not running"))


@pytest.fixture
def notifier(session, local_notifier):
    return Notifier(session, SELF_ENDPOINT, local=local_notifier)


@pytest.fixture
def group_message():
    """Factory for messages posted in the watched group."""
    def _make(text: str, channel_id: str = GROUP_CHANNEL) -> MessageEvent:
        return MessageEvent(channel_id=channel_id, text=text, user="U_TEST1", ts="1754040000.000100")
    return _make
