"""
Achievement evaluation.

Counter achievements are pure predicates over the account's durable counters
and the live session. Event achievements (socialite, image-poster) are awarded
directly by the code path that completes the event. Either way the unlock goes
through the store, whose UNIQUE(username, achievement) constraint decides
whether this call is the one that unlocked it; only that call notifies.
"""

import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Iterable, List, Optional

from common.constants import VETERAN_SECONDS
from common.protocol_definitions import Account, create_achievement_unlocked_message
from server.presence.registry import Session


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str


ACHIEVEMENTS: Dict[str, Achievement] = {a.id: a for a in (
    Achievement('first-message', 'First Message!', 'You sent your first message'),
    Achievement('chatty', 'Chatty!', 'Sent 10 messages'),
    Achievement('super-chatty', 'Super Chatty!', 'Sent 50 messages'),
    Achievement('chatterbox', 'Chatterbox!', 'Sent 100 messages'),
    Achievement('veteran', 'Veteran User', 'Stayed online for 30 minutes'),
    Achievement('room-hopper', 'Room Hopper', 'Visited all chat rooms'),
    Achievement('socialite', 'Socialite', 'Sent your first private message'),
    Achievement('image-poster', 'Picture Perfect', 'Posted your first image'),
)}

# Lifetime message thresholds
MESSAGE_MILESTONES = (
    ('chatty', 10),
    ('super-chatty', 50),
    ('chatterbox', 100),
)


class AchievementEvaluator:
    """Computes and applies unlocks for registered accounts."""

    def __init__(self, store, notify: Callable[[int, dict], Awaitable[bool]], total_rooms: int,
                 veteran_seconds: float = VETERAN_SECONDS, clock: Callable[[], float] = time.time):
        self.store = store
        self.notify = notify
        self.total_rooms = total_rooms
        self.veteran_seconds = veteran_seconds
        self.clock = clock

    def evaluate(self, unlocked: Iterable[str], account: Account, session: Session,
                 now: Optional[float] = None) -> List[str]:
        """Return the counter achievements that qualify and are not yet unlocked."""
        unlocked = set(unlocked)
        now = self.clock() if now is None else now
        earned = []

        if session.message_count >= 1:
            earned.append('first-message')
        for achievement_id, threshold in MESSAGE_MILESTONES:
            if account.total_messages >= threshold:
                earned.append(achievement_id)
        if now - session.joined_at >= self.veteran_seconds:
            earned.append('veteran')
        if len(session.rooms_visited) >= self.total_rooms:
            earned.append('room-hopper')

        return [a for a in earned if a not in unlocked]

    async def check(self, session: Session) -> List[str]:
        """Evaluate and apply counter achievements. Returns newly unlocked ids."""
        if session.is_guest or not session.logged_in:
            return []

        username = session.username
        unlocked = await self.store.get_achievements(username)
        account = await self.store.get_account(username)
        if account is None:
            return []

        newly = []
        for achievement_id in self.evaluate(unlocked, account, session):
            if await self._unlock(session, username, achievement_id):
                newly.append(achievement_id)
        return newly

    async def award(self, session: Session, achievement_id: str) -> bool:
        """Unlock an event achievement. Guests never earn achievements."""
        if session.is_guest or not session.logged_in:
            return False
        return await self._unlock(session, session.username, achievement_id)

    async def _unlock(self, session: Session, username: str, achievement_id: str) -> bool:
        achievement = ACHIEVEMENTS[achievement_id]
        if not await self.store.unlock_achievement(username, achievement_id):
            return False
        await self.notify(session.uid, create_achievement_unlocked_message(
            achievement.id, achievement.title, achievement.description
        ))
        return True
