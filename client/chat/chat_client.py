"""
Chat client module.

This module handles client-side chat messaging functionality.
"""

import asyncio
import json
from typing import Awaitable, Callable, Optional

from common.constants import DEFAULT_HOST, DEFAULT_PORT, MAX_MESSAGE_BYTES
from common.protocol_definitions import (
    create_login_message, create_chat_message, create_image_upload_message,
    create_add_reaction_message, create_typing_message, create_stop_typing_message,
    create_health_message, create_logout_message
)


class ChatClient:
    """Client-side chat functionality."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT):
        self.host = host
        self.port = port
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None
        self.message_handler: Optional[Callable[[dict], Awaitable[None]]] = None

    async def connect(self):
        """Open the connection to the server."""
        self.reader, self.writer = await asyncio.open_connection(
            self.host, self.port, limit=MAX_MESSAGE_BYTES
        )

    async def close(self):
        if self.writer is not None:
            self.writer.close()
            try:
                await self.writer.wait_closed()
            except (ConnectionError, OSError):
                pass
            self.writer = None

    def set_message_handler(self, handler: Callable[[dict], Awaitable[None]]):
        """Set the message handler for incoming messages."""
        self.message_handler = handler

    async def send_message(self, message: dict):
        """Send a JSON message to the server."""
        if not self.writer:
            raise ConnectionError("Not connected to server")
        self.writer.write(json.dumps(message).encode('utf-8') + b'\n')
        await self.writer.drain()

    async def login(self, username: str = None, password: str = None, color: str = None):
        await self.send_message(create_login_message(username, color, password, is_guest=False))

    async def login_as_guest(self, color: str = None):
        await self.send_message(create_login_message(color=color, is_guest=True))

    async def send_chat(self, text: str, timestamp: str = None):
        """Send a chat message or slash command."""
        await self.send_message(create_chat_message(text, timestamp))

    async def send_image(self, image_data: str, timestamp: str = None):
        await self.send_message(create_image_upload_message(image_data, timestamp))

    async def add_reaction(self, message_id: int, reaction: str):
        await self.send_message(create_add_reaction_message(message_id, reaction))

    async def typing(self):
        await self.send_message(create_typing_message())

    async def stop_typing(self):
        await self.send_message(create_stop_typing_message())

    async def request_health(self):
        await self.send_message(create_health_message())

    async def logout(self):
        await self.send_message(create_logout_message())

    async def receive(self) -> Optional[dict]:
        """Read one event, or None once the server closed the connection."""
        data = await self.reader.readline()
        if not data:
            return None
        return json.loads(data.decode('utf-8'))

    async def wait_for(self, event_type: str, timeout: float = 5.0) -> dict:
        """Read events until one of the given type arrives."""
        async def _read():
            while True:
                message = await self.receive()
                if message is None:
                    raise ConnectionError("Connection closed")
                if message.get('type') == event_type:
                    return message
        return await asyncio.wait_for(_read(), timeout)

    async def listen(self):
        """Dispatch incoming events to the handler until the connection closes."""
        while True:
            message = await self.receive()
            if message is None:
                break
            if self.message_handler is not None:
                await self.message_handler(message)
