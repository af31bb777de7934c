"""Logging setup shared by the watcher."""

import logging

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("deadline_watch")


def set_debug(enabled: bool = True):
    """Switch the watcher logger between DEBUG and INFO."""
    logger.setLevel(logging.DEBUG if enabled else logging.INFO)
