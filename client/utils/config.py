"""
Client configuration module.

This module handles client-side configuration settings.
"""

from common.constants import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_COLOR


class ClientConfig:
    """Client configuration class."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT, username: str = None,
                 password: str = None, color: str = DEFAULT_COLOR, guest: bool = False):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.color = color
        # No username means there is nothing to register, so fall back to guest mode
        self.guest = guest or not username

