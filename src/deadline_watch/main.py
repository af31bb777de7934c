"""Main entry point for the deadline watcher."""

import argparse
import asyncio
from pathlib import Path
from typing import Optional

from .agents.deadline_analyzer import DeadlineAnalyzer
from .chat_session import ChatSession, MessageEvent
from .config import get_config, WatcherConfig
from .listener import DeadlineListener
from .notifier import LocalNotifier, Notifier
from .observability import logger, set_debug
from .scheduler import AlertScheduler
from .store import CorruptStoreError, DeadlineStore


MOCK_FIXTURE_PATH = Path(__file__).parent.parent.parent / "fixtures" / "chat_mock.json"
MOCK_GROUP_NAME = "project-deadlines"


class DeadlineWatcher:
    """
    Wires the session, analyzer, store, notifier, listener and scheduler.

    Message handling and scheduler ticks share one lock, so only one of
    them is ever in flight even though both are coroutines on one loop.
    """

    def __init__(
        self,
        config: WatcherConfig,
        session: ChatSession,
        analyzer: Optional[DeadlineAnalyzer] = None,
        local_notifier: Optional[LocalNotifier] = None,
    ):
        self.config = config
        self.session = session
        self.store = DeadlineStore(config.store_path)
        self.analyzer = analyzer or DeadlineAnalyzer(
            model_name=config.chat_model,
            temperature=config.temperature,
        )
        self.notifier = Notifier(session, config.self_endpoint, local=local_notifier)
        self.listener = DeadlineListener(
            session=session,
            analyzer=self.analyzer,
            store=self.store,
            notifier=self.notifier,
            group_name=config.group_name,
        )
        self.scheduler = AlertScheduler(self.store, self.notifier)
        self._turn = asyncio.Lock()

        session.on_message(self.handle_message)

    async def handle_message(self, event: MessageEvent):
        """Run the listener for one message, one handler at a time."""
        async with self._turn:
            await self.listener.on_message(event)

    async def check_once(self) -> int:
        """Run a single scheduler tick."""
        async with self._turn:
            return await self.scheduler.tick()

    async def run(self):
        """Load state, connect, and tick until cancelled."""
        self.store.load()
        await self.session.start()
        logger.info(f"Watching '{self.config.group_name}' for deadlines")
        try:
            await self.scheduler.run_forever(self._turn)
        finally:
            await self.session.close()


async def run_watcher(config: WatcherConfig):
    """Connect to Slack and watch until interrupted."""
    session = ChatSession(
        bot_token=config.slack_bot_token,
        app_token=config.slack_app_token,
    )
    await DeadlineWatcher(config, session).run()


async def run_check(config: WatcherConfig) -> int:
    """Run one alert check against the stored deadlines."""
    session = ChatSession(
        bot_token=config.slack_bot_token,
        app_token=config.slack_app_token,
    )
    # No messages are read in check mode, so the model is never called
    watcher = DeadlineWatcher(
        config,
        session,
        analyzer=DeadlineAnalyzer(mock_mode=True),
    )
    try:
        watcher.store.load()
        return await watcher.check_once()
    finally:
        await session.close()


async def run_mock(config: WatcherConfig) -> dict:
    """
    Replay fixture messages through the pipeline, then run one tick.

    Uses the mock session and the offline analyzer; no network access.
    """
    session = ChatSession(mock_data_path=str(MOCK_FIXTURE_PATH))
    watcher = DeadlineWatcher(
        config,
        session,
        analyzer=DeadlineAnalyzer(mock_mode=True),
    )
    watcher.store.load()

    replayed = await session.session.replay()
    fired = await watcher.check_once()

    return {
        "replayed": replayed,
        "stored": len(watcher.store),
        "alerts": fired,
        "sent_messages": session.sent_messages,
    }


def cli():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Watch a chat group for deadlines and alert before they pass"
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Replay fixture messages with an offline analyzer, then exit"
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Run one alert check against the deadline file, then exit"
    )
    parser.add_argument(
        "--store",
        default=None,
        help="Path to the deadline file (overrides DEADLINES_FILE)"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args()

    if args.debug:
        set_debug()

    config = get_config()
    if args.store:
        config.store_path = args.store

    try:
        if args.mock:
            config.group_name = config.group_name or MOCK_GROUP_NAME
            config.self_endpoint = config.self_endpoint or "U_SELF"
            config.store_path = args.store or "data/mock_deadlines.json"
            result = asyncio.run(run_mock(config))
            print(f"\n✅ Replayed {result['replayed']} messages, "
                  f"{result['stored']} deadlines stored, {result['alerts']} alerts fired")
            for sent in result["sent_messages"]:
                print(f"  -> {sent['channel']}: {sent['text']}")
            return

        if args.check:
            fired = asyncio.run(run_check(config))
            print(f"\n✅ Check complete: {fired} alerts fired")
            return

        problems = config.validate()
        if problems:
            for problem in problems:
                logger.error(problem)
            print(f"\n❌ Invalid configuration ({len(problems)} problems)")
            exit(1)

        asyncio.run(run_watcher(config))

    except CorruptStoreError as e:
        logger.error(str(e))
        print(f"\n❌ Refusing to start: {e}")
        exit(1)
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    cli()
