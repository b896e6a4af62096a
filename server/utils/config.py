"""
Server configuration module.

This module handles server-side configuration settings.
"""

from pathlib import Path
from typing import Iterable, List, Optional

from common.constants import (
    DEFAULT_SERVER_HOST, DEFAULT_PORT, DEFAULT_DB_PATH, MAX_MESSAGE_BYTES,
    MAX_ROOM_HISTORY, RATE_LIMIT_INTERVAL, WELCOME_TIP_DELAY, TIP_INTERVAL, ERROR_INTERVAL
)


class ServerConfig:
    """Server configuration class."""

    def __init__(self, host: str = DEFAULT_SERVER_HOST, port: int = DEFAULT_PORT,
                 db_path: str = DEFAULT_DB_PATH, banned_terms: Optional[Iterable[str]] = None,
                 banned_terms_file: Optional[str] = None):
        self.host = host
        self.port = port
        self.db_path = db_path

        # Connection settings
        self.max_message_bytes = MAX_MESSAGE_BYTES

        # Chat settings
        self.history_limit = MAX_ROOM_HISTORY
        self.rate_limit_interval = RATE_LIMIT_INTERVAL  # seconds
        self.welcome_tip_delay = WELCOME_TIP_DELAY  # seconds

        # Periodic announcements, 0 disables
        self.tip_interval = TIP_INTERVAL
        self.error_interval = ERROR_INTERVAL

        # Content filter
        self.banned_terms_file = banned_terms_file
        self.banned_terms: List[str] = list(banned_terms or [])
        if banned_terms_file:
            self.banned_terms.extend(self.load_banned_terms(banned_terms_file))

    @staticmethod
    def load_banned_terms(path: str) -> List[str]:
        """Read one term per line, skipping blanks and # comments."""
        terms = []
        with open(Path(path), 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#'):
                    terms.append(line)
        return terms

    def get_chat_settings(self):
        """Get chat pipeline settings."""
        return {
            'history_limit': self.history_limit,
            'rate_limit_interval': self.rate_limit_interval,
            'banned_terms': len(self.banned_terms)
        }
