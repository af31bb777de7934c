"""Configuration for the deadline watcher."""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass
class WatcherConfig:
    """Fixed configuration, read once at startup."""
    
    # Conversation to monitor (exact display name)
    group_name: str = ""
    
    # Where mirrored alerts are sent: a user ID (DM) or a channel ID
    self_endpoint: str = ""
    
    # Backing file for detected deadlines
    store_path: str = "data/deadlines.json"
    
    # Model settings
    chat_model: str = "gpt-4.1"
    temperature: float = 0.0
    
    # Slack credentials
    slack_bot_token: str = ""
    slack_app_token: str = ""
    
    @classmethod
    def from_env(cls) -> "WatcherConfig":
        """Load configuration from environment variables."""
        return cls(
            group_name=os.getenv("WATCH_GROUP_NAME", ""),
            self_endpoint=os.getenv("ALERT_ENDPOINT", ""),
            store_path=os.getenv("DEADLINES_FILE", "data/deadlines.json"),
            chat_model=os.getenv("CHAT_MODEL", "gpt-4.1"),
            temperature=float(os.getenv("TEMPERATURE", "0.0")),
            slack_bot_token=os.getenv("SLACK_BOT_TOKEN", ""),
            slack_app_token=os.getenv("SLACK_APP_TOKEN", ""),
        )
    
    def validate(self) -> list[str]:
        """Return a list of problems that prevent a live run."""
        problems = []
        if not self.group_name:
            problems.append("WATCH_GROUP_NAME is not set")
        if not self.self_endpoint:
            problems.append("ALERT_ENDPOINT is not set")
        if not self.slack_bot_token:
            problems.append("SLACK_BOT_TOKEN is not set")
        if not self.slack_app_token:
            problems.append("SLACK_APP_TOKEN is not set")
        return problems


def get_config() -> WatcherConfig:
    """Get the current configuration."""
    return WatcherConfig.from_env()
