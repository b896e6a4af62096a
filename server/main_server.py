"""
RetroChat relay server.

Accepts TCP connections carrying newline-delimited JSON events, hands each
event to the chat server and runs the periodic announcements.
"""

import asyncio
import json
import random
from typing import Dict, Optional

from common.constants import EventTypes, TIPS, WIN95_ERRORS
from common.protocol_definitions import create_error_message, create_system_message, create_win95_error_message
from server.chat.chat_server import ChatServer
from server.storage.chat_store import ChatStore
from server.utils.config import ServerConfig
from server.utils.logger import logger


class ChatRelayServer:
    """Main server class that wires the transport to the chat server."""

    def __init__(self, config: Optional[ServerConfig] = None, store: Optional[ChatStore] = None):
        self.config = config or ServerConfig()
        self.clients: Dict[int, asyncio.StreamWriter] = {}  # uid -> writer
        self.store = store or ChatStore(self.config.db_path, self.config.history_limit)
        self.chat_server = ChatServer(self.clients, self.store, self.config)

        self.server: Optional[asyncio.AbstractServer] = None
        self.tasks = []

    async def broadcast(self, message: dict, exclude_uid: int = None):
        """Send a JSON message to all logged-in clients."""
        logger.debug(f"[BROADCAST] type={message.get('type')} to {len(self.clients)} clients")
        await self.chat_server.broadcast(message, exclude_uid)

    async def send_message(self, uid: int, message: dict):
        """Send a JSON message to a specific client."""
        return await self.chat_server.send_message(uid, message)

    async def disconnect_client(self, uid: int):
        await self.chat_server.disconnect_client(uid)

    async def dispatch(self, uid: int, message: dict) -> bool:
        """Route one decoded event. Returns False when the connection should close."""
        msg_type = message.get('type', '')

        if msg_type == EventTypes.USER_LOGIN:
            await self.chat_server.handle_login(uid, message)
        elif msg_type == EventTypes.CHAT_MESSAGE:
            await self.chat_server.handle_chat(uid, message)
        elif msg_type == EventTypes.IMAGE_UPLOAD:
            await self.chat_server.handle_image_upload(uid, message)
        elif msg_type == EventTypes.ADD_REACTION:
            await self.chat_server.handle_reaction(uid, message)
        elif msg_type == EventTypes.TYPING:
            await self.chat_server.handle_typing(uid, message)
        elif msg_type == EventTypes.STOP_TYPING:
            await self.chat_server.handle_stop_typing(uid, message)
        elif msg_type == EventTypes.HEALTH:
            await self.chat_server.handle_health(uid, message)
        elif msg_type == EventTypes.LOGOUT:
            logger.info(f"Logout request from uid={uid}")
            return False
        else:
            logger.warning(f"Unknown message type '{msg_type}' from uid={uid}")
        return True

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Handle individual client connection."""
        addr = writer.get_extra_info('peername')
        uid = self.chat_server.get_next_uid()
        self.clients[uid] = writer
        self.chat_server.register_connection(uid)
        logger.log_connection(addr, uid)

        try:
            while True:
                try:
                    data = await reader.readuntil(b'\n')
                except asyncio.IncompleteReadError as e:
                    data = e.partial  # EOF, possibly after an unterminated frame
                except asyncio.LimitOverrunError:
                    logger.warning(f"Message too large from uid={uid}")
                    await self.send_message(uid, create_error_message("Message too large"))
                    await self._discard_frame(reader)
                    continue
                if not data:
                    break

                try:
                    message = json.loads(data.decode('utf-8').strip())
                except (json.JSONDecodeError, UnicodeDecodeError) as e:
                    logger.error(f"Malformed JSON from uid={uid}: {e}")
                    await self.send_message(uid, create_error_message("Malformed JSON"))
                    continue

                if not isinstance(message, dict) or not isinstance(message.get('type'), str):
                    logger.warning(f"Received message with invalid type from uid={uid}")
                    continue

                logger.debug(f"Received from uid={uid}: {message['type']}")
                try:
                    if not await self.dispatch(uid, message):
                        break
                except Exception as e:
                    # One bad event must not take the connection or the process down.
                    logger.log_error(f"event {message['type']} from uid={uid}", e)
                    await self.send_message(uid, create_error_message("An error occurred"))

        except asyncio.CancelledError:
            logger.info(f"Connection cancelled for uid={uid}")
            raise
        except (ConnectionError, OSError) as e:
            logger.error(f"Socket error for uid={uid}: {e}")
        finally:
            await self.disconnect_client(uid)

    @staticmethod
    async def _discard_frame(reader: asyncio.StreamReader):
        """Skip the rest of an oversized frame, up to and including its newline."""
        while True:
            try:
                await reader.readuntil(b'\n')
                return
            except asyncio.LimitOverrunError as e:
                await reader.readexactly(e.consumed)
            except asyncio.IncompleteReadError:
                return

    async def _tip_loop(self, interval: float):
        while True:
            await asyncio.sleep(interval)
            await self.broadcast(create_system_message(random.choice(TIPS)))

    async def _error_loop(self, interval: float):
        while True:
            await asyncio.sleep(interval)
            if self.clients:
                uid = random.choice(list(self.clients))
                await self.send_message(uid, create_win95_error_message(random.choice(WIN95_ERRORS)))

    def _start_background(self):
        def done_callback(name):
            def callback(task):
                if not task.cancelled() and task.exception():
                    logger.error(f"{name} task failed with exception: {task.exception()}")
            return callback

        if self.config.tip_interval:
            task = asyncio.create_task(self._tip_loop(self.config.tip_interval))
            task.add_done_callback(done_callback("Tip announcer"))
            self.tasks.append(task)
        if self.config.error_interval:
            task = asyncio.create_task(self._error_loop(self.config.error_interval))
            task.add_done_callback(done_callback("Error announcer"))
            self.tasks.append(task)

    async def start_listening(self) -> asyncio.AbstractServer:
        """Bind the TCP listener and start the periodic tasks."""
        self.server = await asyncio.start_server(
            self.handle_client,
            self.config.host,
            self.config.port,
            limit=self.config.max_message_bytes
        )
        self._start_background()

        addr = ', '.join(str(sock.getsockname()) for sock in self.server.sockets)
        logger.info(f"Server listening on {addr}")
        return self.server

    async def start(self):
        """Start the server and serve until cancelled."""
        server = await self.start_listening()
        try:
            async with server:
                await server.serve_forever()
        finally:
            await self.stop()

    async def stop(self):
        """Stop listening, cancel background work and drop every connection."""
        for task in self.tasks:
            task.cancel()
        self.tasks = []
        self.chat_server.cancel_pending()

        if self.server is not None:
            self.server.close()
            self.server = None

        for uid in list(self.clients):
            await self.disconnect_client(uid)
