"""
Slash command dispatcher.

The first whitespace-separated token picks the handler (case-insensitive);
the rest of the line is handed to it. Handler failures are raised as
ChatError subclasses and turned into a command-error for the sender here,
so they never reach other connections.
"""

import re

from common.constants import IMAGE_KEYWORDS, MAX_NICK_LENGTH, MIN_USERNAME_LENGTH, MessageKinds, STATUSES
from common.protocol_definitions import (
    current_clock_time, create_action_message, create_system_message, create_users_update_message,
    create_color_changed_message, create_clear_chat_message, create_status_change_message,
    create_room_changed_message, create_private_message, create_private_message_sent_message,
    create_help_message, create_command_error_message
)
from server.chat.content_filter import sanitize_input
from server.chat.pipeline import Outcome
from server.errors import (
    ChatError, ChatPermissionError, NotFoundError, StoreError, UnknownCommandError, UsageError
)
from server.presence.registry import Session
from server.utils.logger import logger

_HEX_COLOR = re.compile(r'^#[0-9A-Fa-f]{6}$')


def help_lines(room_names):
    """Static command and keyword reference."""
    keywords = ', '.join(f"!{k}" for k in IMAGE_KEYWORDS)
    return [
        '/me <action> - Perform an action',
        '/nick <name> - Change username (guests only)',
        '/color #RRGGBB - Change text color',
        '/clear - Clear your chat',
        '/status [Online|Away|Busy] - Set status',
        f"/join <room> - Join a room ({', '.join(room_names)})",
        '/msg <user> <text> - Send private message',
        '/help - Show this help',
        '',
        f"Image keywords: {keywords}",
    ]


class CommandDispatcher:
    """Routes slash commands to their handlers."""

    def __init__(self, chat):
        self.chat = chat
        self._handlers = {
            '/me': self.handle_me,
            '/nick': self.handle_nick,
            '/color': self.handle_color,
            '/clear': self.handle_clear,
            '/status': self.handle_status,
            '/join': self.handle_join,
            '/msg': self.handle_msg,
            '/help': self.handle_help,
        }

    async def dispatch(self, session: Session, text: str) -> Outcome:
        parts = text.split(None, 1)
        command = parts[0].lower()
        rest = parts[1] if len(parts) > 1 else ''

        try:
            handler = self._handlers.get(command)
            if handler is None:
                raise UnknownCommandError(command)
            await handler(session, rest)
        except StoreError as e:
            logger.log_error(f"command {command}", e)
            await self.chat.send_message(
                session.uid, create_command_error_message('An error occurred processing your command')
            )
            return Outcome.COMMAND_FAILED
        except ChatError as e:
            logger.debug(f"Command {command} from {session.username} rejected: {e}")
            await self.chat.send_message(session.uid, create_command_error_message(str(e)))
            return Outcome.COMMAND_FAILED
        return Outcome.COMMAND

    async def handle_me(self, session: Session, rest: str):
        action = rest.strip()
        if not action:
            raise UsageError('Usage: /me <action>')

        timestamp = current_clock_time()
        await self.chat.broadcast_to_room(session.room, create_action_message(
            session.username, session.color, action, timestamp
        ))
        await self.chat.store.save_message(
            session.room, session.username, session.color, action, MessageKinds.ACTION, timestamp
        )

    async def handle_nick(self, session: Session, rest: str):
        if not session.is_guest:
            raise ChatPermissionError('Registered users cannot change username. Use guest mode to change names.')

        args = rest.split()
        new_name = sanitize_input(args[0]) if args else ''
        if not MIN_USERNAME_LENGTH <= len(new_name) <= MAX_NICK_LENGTH:
            raise UsageError(f'Usage: /nick <name> ({MIN_USERNAME_LENGTH}-{MAX_NICK_LENGTH} characters)')
        if new_name == session.username:
            return
        if await self.chat.store.get_account(new_name) is not None:
            raise UsageError(f"'{new_name}' belongs to a registered user")
        # Checked after the store await so a login that landed meanwhile is seen.
        holder = self.chat.registry.find_by_username(new_name)
        if holder is not None and holder != session.uid:
            raise UsageError(f"'{new_name}' is already in use")

        old_name = self.chat.registry.rename(session.uid, new_name)
        changed_rooms = self.chat.rooms.rename(old_name, new_name)
        logger.info(f"[NICK] {old_name} is now {new_name}")

        for room in changed_rooms:
            await self.chat.broadcast_to_room(
                room, create_system_message(f"{old_name} changed their name to {new_name}")
            )
            await self.chat.broadcast_to_room(
                room, create_users_update_message(room, self.chat.rooms.members(room))
            )

    async def handle_color(self, session: Session, rest: str):
        args = rest.split()
        color = args[0] if args else ''
        if not _HEX_COLOR.match(color):
            raise UsageError('Usage: /color #RRGGBB (hex color)')

        session.color = color
        await self.chat.send_message(session.uid, create_color_changed_message(color))
        await self.chat.send_message(session.uid, create_system_message('Color changed successfully!'))

    async def handle_clear(self, session: Session, rest: str):
        await self.chat.send_message(session.uid, create_clear_chat_message())

    async def handle_status(self, session: Session, rest: str):
        args = rest.split()
        status = args[0] if args else ''
        if status not in STATUSES:
            raise UsageError(f"Usage: /status [{'|'.join(STATUSES)}]")

        session.status = status
        await self.chat.broadcast_to_room(session.room, create_status_change_message(session.username, status))
        await self.chat.send_message(session.uid, create_system_message(f"Status changed to {status}"))

    async def handle_join(self, session: Session, rest: str):
        args = rest.split()
        target = args[0] if args else ''
        if not target or target not in self.chat.rooms:
            raise UsageError(f"Usage: /join [{'|'.join(self.chat.rooms.names())}]")
        if target == session.room:
            raise UsageError('You are already in this room!')

        await self.chat.leave_room(session, f"{session.username} left the room")
        await self.chat.join_room(session, target)
        await self.chat.send_message(
            session.uid, create_room_changed_message(target, self.chat.rooms.topic(target))
        )

    async def handle_msg(self, session: Session, rest: str):
        args = rest.split(None, 1)
        target = sanitize_input(args[0]) if args else ''
        body = args[1].strip() if len(args) > 1 else ''
        if not target or not body:
            raise UsageError('Usage: /msg <username> <message>')

        target_uid = self.chat.registry.find_by_username(target)
        if target_uid is None:
            raise NotFoundError(f"User '{target}' not found.")

        await self.chat.send_message(target_uid, create_private_message(session.username, session.color, body))
        await self.chat.send_message(session.uid, create_private_message_sent_message(target, body))
        logger.log_private(session.username, target, body)

        await self.chat.achievements.award(session, 'socialite')

    async def handle_help(self, session: Session, rest: str):
        await self.chat.send_message(session.uid, create_help_message(help_lines(self.chat.rooms.names())))
