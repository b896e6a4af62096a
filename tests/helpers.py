"""
Shared fixtures for the server tests.
"""

import json
import sys
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from server.chat.chat_server import ChatServer
from server.storage.chat_store import ChatStore
from server.utils.config import ServerConfig

BANNED_TERMS = ['darn', 'heck']


def make_config(**overrides) -> ServerConfig:
    """Config with timers and rate limiting switched off."""
    config = ServerConfig(host='127.0.0.1', port=0, db_path=':memory:', banned_terms=BANNED_TERMS)
    config.rate_limit_interval = 0.0
    config.welcome_tip_delay = None
    config.tip_interval = 0
    config.error_interval = 0
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


class RecordingWriter:
    """Stands in for asyncio.StreamWriter and keeps every decoded frame."""

    def __init__(self):
        self.frames = []
        self.closed = False

    def write(self, data: bytes):
        for line in data.decode('utf-8').splitlines():
            self.frames.append(json.loads(line))

    async def drain(self):
        pass

    def close(self):
        self.closed = True

    async def wait_closed(self):
        pass

    def get_extra_info(self, name):
        return ('127.0.0.1', 0)

    def events(self, event_type=None):
        if event_type is None:
            return list(self.frames)
        return [f for f in self.frames if f.get('type') == event_type]

    def types(self):
        return [f.get('type') for f in self.frames]

    def clear(self):
        self.frames.clear()


class ChatTestCase(unittest.IsolatedAsyncioTestCase):
    """Runs a ChatServer over an in-memory store with recording writers."""

    config_overrides = {}

    async def asyncSetUp(self):
        self.store = ChatStore(':memory:')
        self.store.initialize()
        self.clients = {}
        self.chat = ChatServer(self.clients, self.store, make_config(**self.config_overrides))

    async def asyncTearDown(self):
        self.chat.cancel_pending()
        self.store.close()

    def connect(self):
        uid = self.chat.get_next_uid()
        writer = RecordingWriter()
        self.clients[uid] = writer
        self.chat.register_connection(uid)
        return uid, writer

    async def login(self, username, password='secret', color='#00ff00'):
        uid, writer = self.connect()
        await self.chat.handle_login(uid, {
            'username': username, 'password': password, 'color': color, 'isGuest': False
        })
        return uid, writer

    async def login_guest(self, color='#123456'):
        uid, writer = self.connect()
        await self.chat.handle_login(uid, {'color': color, 'isGuest': True})
        return uid, writer

    async def say(self, uid, text, timestamp='12:00'):
        return await self.chat.handle_chat(uid, {'message': text, 'timestamp': timestamp})

    def session(self, uid):
        return self.chat.registry.get(uid)
