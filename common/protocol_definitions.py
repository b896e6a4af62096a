"""
Protocol definitions for the RetroChat relay.

This module defines the record structures and the event payloads exchanged
between client and server. Every frame is a JSON object whose "type" field
carries the event name.
"""

from typing import Dict, Any, Optional, List
from dataclasses import dataclass, asdict
from datetime import datetime

from common.constants import EventTypes


@dataclass
class Account:
    """Durable per-username record."""
    username: str
    password: str
    color: str
    created_at: str
    last_login: str
    total_messages: int


@dataclass
class StoredMessage:
    """A persisted room message."""
    id: int
    room: str
    username: str
    color: Optional[str]
    message: str
    message_type: str
    timestamp: str
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def current_clock_time() -> str:
    """Wall-clock time as HH:MM, the format used for server-stamped events."""
    return datetime.now().strftime('%H:%M')


# ---------------------------------------------------------------------------
# Client to server
# ---------------------------------------------------------------------------

def create_login_message(username: Optional[str] = None, color: Optional[str] = None,
                         password: Optional[str] = None, is_guest: bool = False) -> Dict[str, Any]:
    """Create a login message."""
    return {
        "type": EventTypes.USER_LOGIN,
        "username": username,
        "color": color,
        "password": password,
        "isGuest": is_guest
    }


def create_chat_message(text: str, timestamp: Optional[str] = None) -> Dict[str, Any]:
    """Create a chat message."""
    return {
        "type": EventTypes.CHAT_MESSAGE,
        "message": text,
        "timestamp": timestamp or current_clock_time()
    }


def create_image_upload_message(image_data: str, timestamp: Optional[str] = None) -> Dict[str, Any]:
    """Create an image upload message."""
    return {
        "type": EventTypes.IMAGE_UPLOAD,
        "imageData": image_data,
        "timestamp": timestamp or current_clock_time()
    }


def create_add_reaction_message(message_id: int, reaction: str) -> Dict[str, Any]:
    """Create a reaction message."""
    return {
        "type": EventTypes.ADD_REACTION,
        "messageId": message_id,
        "reaction": reaction
    }


def create_typing_message() -> Dict[str, Any]:
    return {"type": EventTypes.TYPING}


def create_stop_typing_message() -> Dict[str, Any]:
    return {"type": EventTypes.STOP_TYPING}


def create_health_message() -> Dict[str, Any]:
    return {"type": EventTypes.HEALTH}


def create_logout_message() -> Dict[str, Any]:
    return {"type": EventTypes.LOGOUT}


# ---------------------------------------------------------------------------
# Server to client
# ---------------------------------------------------------------------------

def create_error_message(message: str) -> Dict[str, Any]:
    """Create a generic error message."""
    return {
        "type": EventTypes.ERROR,
        "message": message
    }


def create_login_success_message(username: str, color: str, is_guest: bool,
                                 room: str, topic: str) -> Dict[str, Any]:
    """Create a login success message."""
    return {
        "type": EventTypes.LOGIN_SUCCESS,
        "username": username,
        "color": color,
        "isGuest": is_guest,
        "room": room,
        "topic": topic
    }


def create_login_error_message(reason: str) -> Dict[str, Any]:
    return {
        "type": EventTypes.LOGIN_ERROR,
        "message": reason
    }


def create_achievements_update_message(achievements: List[str]) -> Dict[str, Any]:
    """Create the full achievement list sent on login."""
    return {
        "type": EventTypes.ACHIEVEMENTS_UPDATE,
        "achievements": list(achievements)
    }


def create_achievement_unlocked_message(achievement_id: str, title: str, description: str) -> Dict[str, Any]:
    return {
        "type": EventTypes.ACHIEVEMENT_UNLOCKED,
        "achievement": achievement_id,
        "title": title,
        "description": description
    }


def create_message_history_message(room: str, messages: List[StoredMessage]) -> Dict[str, Any]:
    """Create a history replay message, oldest first."""
    return {
        "type": EventTypes.MESSAGE_HISTORY,
        "room": room,
        "messages": [m.to_dict() for m in messages],
        "count": len(messages)
    }


def create_users_update_message(room: str, users: List[str]) -> Dict[str, Any]:
    return {
        "type": EventTypes.USERS_UPDATE,
        "room": room,
        "users": list(users)
    }


def create_room_chat_message(username: str, color: str, text: str,
                             timestamp: str, status: str) -> Dict[str, Any]:
    """Create the chat message fanned out to a room."""
    return {
        "type": EventTypes.CHAT_MESSAGE,
        "username": username,
        "color": color,
        "message": text,
        "timestamp": timestamp,
        "status": status
    }


def create_action_message(username: str, color: str, action: str, timestamp: str) -> Dict[str, Any]:
    return {
        "type": EventTypes.ACTION_MESSAGE,
        "username": username,
        "color": color,
        "action": action,
        "timestamp": timestamp
    }


def create_image_message(username: str, color: str, image_data: str, timestamp: str) -> Dict[str, Any]:
    return {
        "type": EventTypes.IMAGE_MESSAGE,
        "username": username,
        "color": color,
        "imageData": image_data,
        "timestamp": timestamp
    }


def create_image_keyword_message(username: str, color: str, keyword: str,
                                 image_url: str, timestamp: str) -> Dict[str, Any]:
    return {
        "type": EventTypes.IMAGE_KEYWORD,
        "username": username,
        "color": color,
        "keyword": keyword,
        "imageUrl": image_url,
        "timestamp": timestamp
    }


def create_system_message(text: str) -> Dict[str, Any]:
    """Create a server notice stamped with the current time."""
    return {
        "type": EventTypes.SYSTEM_MESSAGE,
        "text": text,
        "timestamp": current_clock_time()
    }


def create_command_error_message(message: str) -> Dict[str, Any]:
    return {
        "type": EventTypes.COMMAND_ERROR,
        "message": message
    }


def create_private_message(from_username: str, color: str, text: str) -> Dict[str, Any]:
    return {
        "type": EventTypes.PRIVATE_MESSAGE,
        "from": from_username,
        "message": text,
        "color": color,
        "timestamp": current_clock_time()
    }


def create_private_message_sent_message(to_username: str, text: str) -> Dict[str, Any]:
    return {
        "type": EventTypes.PRIVATE_MESSAGE_SENT,
        "to": to_username,
        "message": text,
        "timestamp": current_clock_time()
    }


def create_room_changed_message(room: str, topic: str) -> Dict[str, Any]:
    return {
        "type": EventTypes.ROOM_CHANGED,
        "room": room,
        "topic": topic
    }


def create_color_changed_message(color: str) -> Dict[str, Any]:
    return {
        "type": EventTypes.COLOR_CHANGED,
        "color": color
    }


def create_clear_chat_message() -> Dict[str, Any]:
    return {"type": EventTypes.CLEAR_CHAT}


def create_help_message(commands: List[str]) -> Dict[str, Any]:
    return {
        "type": EventTypes.HELP_MESSAGE,
        "commands": list(commands)
    }


def create_status_change_message(username: str, status: str) -> Dict[str, Any]:
    return {
        "type": EventTypes.USER_STATUS_CHANGE,
        "username": username,
        "status": status
    }


def create_user_typing_message(username: str) -> Dict[str, Any]:
    return {
        "type": EventTypes.USER_TYPING,
        "username": username
    }


def create_user_stop_typing_message(username: str) -> Dict[str, Any]:
    return {
        "type": EventTypes.USER_STOP_TYPING,
        "username": username
    }


def create_reaction_added_message(message_id: int, username: str, reaction: str) -> Dict[str, Any]:
    return {
        "type": EventTypes.REACTION_ADDED,
        "messageId": message_id,
        "username": username,
        "reaction": reaction
    }


def create_message_blocked_message() -> Dict[str, Any]:
    return {
        "type": EventTypes.MESSAGE_BLOCKED,
        "message": "Your message contains inappropriate language and was not sent."
    }


def create_rate_limited_message(retry_after: float) -> Dict[str, Any]:
    return {
        "type": EventTypes.RATE_LIMITED,
        "message": "You are sending messages too quickly.",
        "retryAfter": round(retry_after, 3)
    }


def create_health_status_message(uptime: float, online: int) -> Dict[str, Any]:
    """Create the side-channel status reply."""
    return {
        "type": EventTypes.HEALTH_STATUS,
        "status": "OK",
        "uptime": round(uptime, 3),
        "online": online
    }


def create_win95_error_message(text: str) -> Dict[str, Any]:
    return {
        "type": EventTypes.WIN95_ERROR,
        "message": text
    }
