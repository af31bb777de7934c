"""Ingestion filter - turns messages from the watched group into stored deadlines."""

from typing import Optional

from .agents.deadline_analyzer import DeadlineAnalyzer
from .chat_session import ChatSessionProtocol, MessageEvent
from .models import DeadlineRecord
from .notifier import NEW_DEADLINE_TITLE, Notifier
from .observability import logger
from .store import DeadlineStore


class DeadlineListener:
    """
    Watches one group conversation for deadlines.

    Messages from any other conversation are dropped before the analyzer is
    called. A detected deadline is persisted first, then announced.
    """

    def __init__(
        self,
        session: ChatSessionProtocol,
        analyzer: DeadlineAnalyzer,
        store: DeadlineStore,
        notifier: Notifier,
        group_name: str,
    ):
        self.session = session
        self.analyzer = analyzer
        self.store = store
        self.notifier = notifier
        self.group_name = group_name

    async def is_watched(self, event: MessageEvent) -> bool:
        """True if the event was posted in the configured group."""
        conversation = await self.session.get_conversation(event)
        return conversation.is_group and conversation.name == self.group_name

    async def on_message(self, event: MessageEvent) -> Optional[DeadlineRecord]:
        """
        Handle one incoming message.

        Returns:
            The stored record, or None if nothing was detected
        """
        if not await self.is_watched(event):
            return None

        due_at = await self.analyzer.analyze(event.text)
        if due_at is None:
            return None

        record = DeadlineRecord(message=event.text, due_at=due_at)
        self.store.append(record)

        await self.notifier.fire(NEW_DEADLINE_TITLE, record.message)
        return record
