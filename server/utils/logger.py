"""
Server logging module.

This module handles server-side logging functionality.
"""

import logging
from datetime import datetime
from pathlib import Path

from common.constants import LOG_DIR, CHAT_LOG_FILE


class ServerLogger:
    """Server logging class."""

    def __init__(self, logs_dir: str = LOG_DIR, log_level: int = logging.INFO):
        self.logs_dir = Path(logs_dir)
        self.logs_dir.mkdir(exist_ok=True)

        # Set up main logger
        self.logger = logging.getLogger('retrochat_server')
        self.logger.setLevel(log_level)

        # Remove existing handlers
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)

        formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

        self.chat_log_path = self.logs_dir / CHAT_LOG_FILE

    def set_level(self, log_level: int):
        """Change the level of the logger and its handlers."""
        self.logger.setLevel(log_level)
        for handler in self.logger.handlers:
            handler.setLevel(log_level)

    def info(self, message: str):
        """Log info message."""
        self.logger.info(message)

    def error(self, message: str):
        """Log error message."""
        self.logger.error(message)

    def warning(self, message: str):
        """Log warning message."""
        self.logger.warning(message)

    def debug(self, message: str):
        """Log debug message."""
        self.logger.debug(message)

    def log_connection(self, addr: tuple, uid: int):
        """Log client connection."""
        self.info(f"[CONNECT] New connection from {addr}, assigned uid={uid}")

    def log_login(self, username: str, uid: int, is_guest: bool = False):
        """Log user login."""
        kind = "Guest" if is_guest else "User"
        self.info(f"[LOGIN] {kind} '{username}' logged in with uid={uid}")

    def log_register(self, username: str):
        """Log account creation."""
        self.info(f"[REGISTER] New user: {username}")

    def log_join(self, username: str, room: str):
        self.info(f"[JOIN] {username} joined #{room}")

    def log_disconnect(self, username: str, uid: int, room: str = None):
        """Log user disconnect."""
        where = f" from #{room}" if room else ""
        self.info(f"[DISCONNECT] {username} (uid={uid}){where}")

    def log_chat(self, username: str, room: str, message: str):
        """Log chat message."""
        self.debug(f"[CHAT] #{room} {username}: {message}")
        self._write_to_file(self.chat_log_path, f"{datetime.now().isoformat()} | #{room} | {username} | {message}")

    def log_private(self, from_username: str, to_username: str, message: str):
        """Log private message."""
        self.debug(f"[PM] {from_username} -> {to_username}")
        self._write_to_file(self.chat_log_path, f"{datetime.now().isoformat()} | [PM {from_username}→{to_username}] | {message}")

    def log_blocked(self, username: str, message: str):
        """Log a message rejected by the content filter."""
        self.info(f"[FILTER] Blocked message from {username}: {message}")

    def log_achievement(self, username: str, achievement: str):
        self.info(f"[ACHIEVEMENT] {username} unlocked: {achievement}")

    def log_error(self, operation: str, error: Exception):
        """Log error with operation context."""
        self.error(f"[ERROR] Error in {operation}: {error}")

    def _write_to_file(self, file_path: Path, content: str):
        """Write content to log file."""
        try:
            with open(file_path, 'a', encoding='utf-8') as f:
                f.write(content + '\n')
        except OSError as e:
            self.error(f"Failed to write to log file {file_path}: {e}")


# Global logger instance
logger = ServerLogger()
