"""
Chat server module.

This module coordinates the per-connection sessions, the room directory and
the durable store for every chat event: login, room joins, messages, image
uploads, reactions, typing indicators, health queries and disconnects.
"""

import asyncio
import json
import random
import time
from typing import Dict, Optional

from common.constants import DEFAULT_ROOM, MAX_REACTION_LENGTH, TIPS
from common.protocol_definitions import (
    create_login_success_message, create_login_error_message, create_achievements_update_message,
    create_message_history_message, create_users_update_message, create_system_message,
    create_command_error_message, create_reaction_added_message, create_user_typing_message,
    create_user_stop_typing_message, create_health_status_message, create_error_message
)
from server.chat.achievements import AchievementEvaluator
from server.chat.commands import CommandDispatcher
from server.chat.content_filter import ContentFilter
from server.chat.pipeline import MessagePipeline, Outcome
from server.errors import StoreError, ValidationError
from server.presence.registry import PresenceRegistry, Session, make_guest_name, validate_username
from server.rooms.directory import RoomDirectory
from server.storage.chat_store import ChatStore
from server.utils.config import ServerConfig
from server.utils.logger import logger


class ChatServer:
    """Server-side chat functionality."""

    def __init__(self, clients: Dict[int, asyncio.StreamWriter], store: ChatStore, config: ServerConfig,
                 registry: Optional[PresenceRegistry] = None, rooms: Optional[RoomDirectory] = None):
        self.clients = clients  # uid -> writer, owned by the transport
        self.store = store
        self.config = config
        self.registry = registry or PresenceRegistry()
        self.rooms = rooms or RoomDirectory()

        self.content_filter = ContentFilter(config.banned_terms)
        self.achievements = AchievementEvaluator(store, self.send_message, total_rooms=len(self.rooms))
        self.commands = CommandDispatcher(self)
        self.pipeline = MessagePipeline(self, self.content_filter, config.rate_limit_interval)

        self.next_uid = 1
        self.started_at = time.monotonic()
        self._pending = set()

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def send_message(self, uid: int, message: dict) -> bool:
        """Send a JSON message to a specific client."""
        writer = self.clients.get(uid)
        if writer is None:
            return False

        try:
            writer.write(json.dumps(message).encode('utf-8') + b'\n')
            await writer.drain()
            return True
        except (ConnectionError, OSError) as e:
            logger.error(f"Failed to send to uid={uid}: {e}")
            return False

    async def broadcast(self, message: dict, exclude_uid: int = None):
        """Send a JSON message to every logged-in client."""
        for uid, session in self.registry.items():
            if session.logged_in and uid != exclude_uid:
                await self.send_message(uid, message)

    async def broadcast_to_room(self, room: str, message: dict, exclude_uid: int = None):
        """Send a JSON message to the current members of a room."""
        members = set(self.rooms.members(room))
        targets = [
            uid for uid, session in self.registry.items()
            if session.logged_in and session.room == room and session.username in members
            and uid != exclude_uid
        ]
        for uid in targets:
            await self.send_message(uid, message)

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def get_next_uid(self) -> int:
        """Get the next available UID."""
        uid = self.next_uid
        self.next_uid += 1
        return uid

    def register_connection(self, uid: int) -> Session:
        return self.registry.register(uid)

    def get_participant_count(self) -> int:
        """Get the number of logged-in participants."""
        return self.registry.online_count()

    async def disconnect_client(self, uid: int):
        """Remove client and notify its room."""
        writer = self.clients.pop(uid, None)
        if writer is not None:
            try:
                writer.close()
                await writer.wait_closed()
            except (ConnectionError, OSError) as e:
                logger.debug(f"Error closing uid={uid}: {e}")

        session = self.registry.remove(uid)
        if session is None or not session.logged_in:
            return

        room = session.room
        self.rooms.leave(room, session.username)
        logger.log_disconnect(session.username, uid, room)
        await self.broadcast_to_room(room, create_system_message(f"{session.username} has left the chat."))
        await self.broadcast_to_room(room, create_users_update_message(room, self.rooms.members(room)))

    # ------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------

    async def join_room(self, session: Session, room: str):
        """Put a session in a room, replay its history and announce the arrival."""
        self.rooms.join(room, session.username)
        session.room = room
        session.rooms_visited.add(room)

        history = await self.store.load_history(room)
        await self.send_message(session.uid, create_message_history_message(room, history))

        await self.broadcast_to_room(room, create_users_update_message(room, self.rooms.members(room)))
        await self.broadcast_to_room(room, create_system_message(f"{session.username} has entered the chat."))
        logger.log_join(session.username, room)

    async def leave_room(self, session: Session, notice: str):
        """Take a session out of its current room and tell the remaining members."""
        room = session.room
        self.rooms.leave(room, session.username)
        await self.broadcast_to_room(room, create_users_update_message(room, self.rooms.members(room)))
        await self.broadcast_to_room(room, create_system_message(notice))

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    async def handle_login(self, uid: int, data: dict):
        """Process login message."""
        session = self.registry.get(uid)
        if session is None:
            return
        if session.logged_in:
            await self.send_message(uid, create_login_error_message("Already logged in"))
            return

        color = data.get('color') or session.color
        try:
            if data.get('isGuest'):
                username = make_guest_name()
                self.registry.complete_login(uid, username, color, True)
            else:
                username = await self._login_registered(uid, data, color)
                if username is None:
                    return

            await self.join_room(session, DEFAULT_ROOM)
        except ValidationError as e:
            self._abort_login(session)
            await self.send_message(uid, create_login_error_message(str(e)))
            return
        except StoreError as e:
            logger.log_error("login", e)
            self._abort_login(session)
            await self.send_message(uid, create_login_error_message("An error occurred during login"))
            return

        logger.log_login(session.username, uid, session.is_guest)
        await self.send_message(uid, create_login_success_message(
            session.username, session.color, session.is_guest, session.room, self.rooms.topic(session.room)
        ))
        self._schedule_welcome_tip(uid)

    async def _login_registered(self, uid: int, data: dict, color: str) -> Optional[str]:
        username = validate_username(data.get('username'), is_guest=False)
        password = data.get('password') or ''

        if self._name_in_use(username, uid):
            await self.send_message(uid, create_login_error_message(f"'{username}' is already online"))
            return None

        account = await self.store.get_account(username)
        if account is None:
            created = await self.store.create_account(username, password, color)
            if not created:
                await self.send_message(uid, create_login_error_message("Username was just taken, try again"))
                return None
            logger.log_register(username)
            unlocked = []
        else:
            # Plaintext equality, kept so existing accounts log in unchanged.
            if account.password and password != account.password:
                await self.send_message(uid, create_login_error_message("Invalid password"))
                return None
            color = account.color or color
            unlocked = await self.store.get_achievements(username)

        await self.store.record_login(username)

        # The store awaits above may have let another connection claim the name.
        if self._name_in_use(username, uid):
            await self.send_message(uid, create_login_error_message(f"'{username}' is already online"))
            return None

        self.registry.complete_login(uid, username, color, False)
        await self.send_message(uid, create_achievements_update_message(unlocked))
        return username

    def _abort_login(self, session: Session):
        """Unbind a session whose login failed after the name was bound."""
        if not session.logged_in:
            return
        self.rooms.leave(session.room, session.username)
        self.registry.reset_login(session.uid)

    def _name_in_use(self, username: str, uid: int) -> bool:
        holder = self.registry.find_by_username(username)
        return holder is not None and holder != uid

    def _schedule_welcome_tip(self, uid: int):
        delay = self.config.welcome_tip_delay
        if delay is None:
            return
        task = asyncio.create_task(self._send_welcome_tip(uid, delay))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send_welcome_tip(self, uid: int, delay: float):
        await asyncio.sleep(delay)
        if uid in self.clients:
            await self.send_message(uid, create_system_message(random.choice(TIPS)))

    def cancel_pending(self):
        """Cancel outstanding welcome tips."""
        for task in list(self._pending):
            task.cancel()

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def handle_chat(self, uid: int, data: dict) -> Outcome:
        """Process chat message through the pipeline."""
        session = self.registry.get(uid)
        if session is None:
            return Outcome.IGNORED
        return await self.pipeline.submit(session, data.get('message', ''), data.get('timestamp'))

    async def handle_image_upload(self, uid: int, data: dict) -> Outcome:
        session = self.registry.get(uid)
        if session is None:
            return Outcome.IGNORED
        return await self.pipeline.submit_image(session, data.get('imageData'), data.get('timestamp'))

    async def handle_reaction(self, uid: int, data: dict):
        """Record a reaction and show it to the room."""
        session = self.registry.get(uid)
        if session is None or not session.logged_in:
            return

        message_id = data.get('messageId')
        reaction = data.get('reaction')
        if isinstance(reaction, str):
            reaction = reaction.strip()
        if isinstance(message_id, bool) or not isinstance(message_id, int):
            await self.send_message(uid, create_command_error_message("Invalid message id"))
            return
        if not isinstance(reaction, str) or not reaction or len(reaction) > MAX_REACTION_LENGTH:
            await self.send_message(uid, create_command_error_message("Invalid reaction"))
            return

        try:
            added = await self.store.add_reaction(message_id, session.username, reaction)
        except StoreError as e:
            logger.log_error("add-reaction", e)
            await self.send_message(uid, create_error_message("Your reaction could not be saved"))
            return

        if added:
            await self.broadcast_to_room(
                session.room, create_reaction_added_message(message_id, session.username, reaction)
            )

    async def handle_typing(self, uid: int, data: dict):
        session = self.registry.get(uid)
        if session is not None and session.logged_in:
            await self.broadcast_to_room(session.room, create_user_typing_message(session.username), exclude_uid=uid)

    async def handle_stop_typing(self, uid: int, data: dict):
        session = self.registry.get(uid)
        if session is not None and session.logged_in:
            await self.broadcast_to_room(
                session.room, create_user_stop_typing_message(session.username), exclude_uid=uid
            )

    async def handle_health(self, uid: int, data: dict):
        """Reply with uptime and online count."""
        uptime = time.monotonic() - self.started_at
        await self.send_message(uid, create_health_status_message(uptime, self.get_participant_count()))
