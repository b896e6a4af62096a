"""
Message pipeline.

Takes raw chat text from a session and runs it through, in order: login and
emptiness checks, command dispatch, rate limiting, the content filter, the
image keyword shortcut and finally plain delivery. Each stage can end the
submission with its own Outcome.
"""

import re
import time
from enum import Enum
from typing import Callable, Mapping, Optional

from common.constants import COMMAND_PREFIX, IMAGE_KEYWORDS, MessageKinds
from common.protocol_definitions import (
    create_room_chat_message, create_image_keyword_message, create_image_message,
    create_message_blocked_message, create_rate_limited_message, create_error_message
)
from server.chat.content_filter import ContentFilter, sanitize_input
from server.errors import StoreError
from server.presence.registry import Session
from server.utils.logger import logger

_KEYWORD_PATTERN = re.compile(r'^!(\w+)$')


class Outcome(Enum):
    IGNORED = 'ignored'
    DELIVERED = 'delivered'
    IMAGE_KEYWORD = 'image-keyword'
    COMMAND = 'command'
    COMMAND_FAILED = 'command-failed'
    RATE_LIMITED = 'rate-limited'
    BLOCKED = 'blocked'
    FAILED = 'failed'


class MessagePipeline:
    """Validates, filters, classifies, persists and fans out chat messages."""

    def __init__(self, chat, content_filter: ContentFilter, rate_limit_interval: float,
                 image_keywords: Optional[Mapping[str, str]] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.chat = chat
        self.content_filter = content_filter
        self.rate_limit_interval = rate_limit_interval
        self.image_keywords = IMAGE_KEYWORDS if image_keywords is None else image_keywords
        self.clock = clock

    async def submit(self, session: Session, raw_text, client_timestamp) -> Outcome:
        if not session.logged_in:
            return Outcome.IGNORED
        text = sanitize_input(raw_text)
        if not text:
            return Outcome.IGNORED

        if text.startswith(COMMAND_PREFIX):
            return await self.chat.commands.dispatch(session, text)

        now = self.clock()
        if session.last_message_at is not None:
            elapsed = now - session.last_message_at
            if elapsed < self.rate_limit_interval:
                await self.chat.send_message(
                    session.uid, create_rate_limited_message(self.rate_limit_interval - elapsed)
                )
                return Outcome.RATE_LIMITED

        if self.content_filter.is_blocked(text):
            logger.log_blocked(session.username, text)
            await self.chat.send_message(session.uid, create_message_blocked_message())
            return Outcome.BLOCKED

        session.last_message_at = now
        timestamp = client_timestamp if isinstance(client_timestamp, str) else ''

        try:
            match = _KEYWORD_PATTERN.match(text)
            if match and match.group(1) in self.image_keywords:
                await self._deliver_keyword(session, match.group(1), timestamp)
                return Outcome.IMAGE_KEYWORD

            await self._deliver_text(session, text, timestamp)
            return Outcome.DELIVERED
        except StoreError as e:
            logger.log_error("chat-message", e)
            await self.chat.send_message(session.uid, create_error_message("Your message could not be saved"))
            return Outcome.FAILED

    async def _deliver_keyword(self, session: Session, keyword: str, timestamp: str):
        # Keyword images count toward the lifetime counter but never run the evaluator.
        room = session.room
        await self.chat.broadcast_to_room(room, create_image_keyword_message(
            session.username, session.color, keyword, self.image_keywords[keyword], timestamp
        ))
        await self.chat.store.save_message(
            room, session.username, session.color, f"!{keyword}", MessageKinds.IMAGE, timestamp
        )
        if not session.is_guest:
            await self.chat.store.increment_message_count(session.username)

    async def _deliver_text(self, session: Session, text: str, timestamp: str):
        room = session.room
        await self.chat.broadcast_to_room(room, create_room_chat_message(
            session.username, session.color, text, timestamp, session.status
        ))
        logger.log_chat(session.username, room, text)
        await self.chat.store.save_message(
            room, session.username, session.color, text, MessageKinds.NORMAL, timestamp
        )

        session.message_count += 1
        if not session.is_guest:
            await self.chat.store.increment_message_count(session.username)
            await self.chat.achievements.check(session)

    async def submit_image(self, session: Session, image_data, client_timestamp) -> Outcome:
        """Relay an uploaded image to the sender's room."""
        if not session.logged_in:
            return Outcome.IGNORED
        if not isinstance(image_data, str) or not image_data:
            return Outcome.IGNORED

        room = session.room
        timestamp = client_timestamp if isinstance(client_timestamp, str) else ''
        try:
            await self.chat.broadcast_to_room(room, create_image_message(
                session.username, session.color, image_data, timestamp
            ))
            await self.chat.store.save_message(
                room, session.username, session.color, '[Image]', MessageKinds.IMAGE_UPLOAD, timestamp
            )
            if not session.is_guest:
                await self.chat.achievements.award(session, 'image-poster')
                await self.chat.achievements.check(session)
        except StoreError as e:
            logger.log_error("image-upload", e)
            await self.chat.send_message(session.uid, create_error_message("Your image could not be saved"))
            return Outcome.FAILED
        return Outcome.DELIVERED
