"""
Shared constants for the RetroChat relay.

This module contains all constants used across client and server components.
"""

# Network Configuration
DEFAULT_HOST = 'localhost'
DEFAULT_SERVER_HOST = '0.0.0.0'
DEFAULT_PORT = 3000
MAX_MESSAGE_BYTES = 5 * 1024 * 1024  # image uploads travel as data URLs

# Storage
DEFAULT_DB_PATH = './retrochat.db'
MAX_ROOM_HISTORY = 100  # messages retained per room

# Timing
RATE_LIMIT_INTERVAL = 0.5  # seconds between accepted messages
WELCOME_TIP_DELAY = 2  # seconds
TIP_INTERVAL = 10 * 60  # seconds
ERROR_INTERVAL = 5 * 60  # seconds
VETERAN_SECONDS = 30 * 60

# Logging
LOG_DIR = 'logs'
CHAT_LOG_FILE = 'chat_history.log'

# Sessions
DEFAULT_COLOR = '#ff00ff'
GUEST_PREFIX = 'Guest'
GUEST_SUFFIX_MAX = 9998
MIN_USERNAME_LENGTH = 2
MAX_NICK_LENGTH = 20
MAX_REACTION_LENGTH = 32
STATUSES = ('Online', 'Away', 'Busy')
COMMAND_PREFIX = '/'

# Rooms: name -> topic. Fixed for the lifetime of the process.
DEFAULT_ROOM = 'general'
ROOMS = {
    'general': 'General Discussion',
    'random': 'Random Stuff',
    'images': 'Share Your Images',
    'windows': 'Windows 95 Nostalgia',
}


# Stored message types
class MessageKinds:
    NORMAL = 'normal'
    ACTION = 'action'
    IMAGE = 'image'
    IMAGE_KEYWORD = 'image-keyword'
    IMAGE_UPLOAD = 'image-upload'

    ALL = (NORMAL, ACTION, IMAGE, IMAGE_KEYWORD, IMAGE_UPLOAD)


# Event Types
class EventTypes:
    # Client to Server
    USER_LOGIN = 'user-login'
    CHAT_MESSAGE = 'chat-message'
    IMAGE_UPLOAD = 'image-upload'
    ADD_REACTION = 'add-reaction'
    TYPING = 'typing'
    STOP_TYPING = 'stop-typing'
    HEALTH = 'health'
    LOGOUT = 'logout'

    # Server to Client
    LOGIN_SUCCESS = 'login-success'
    LOGIN_ERROR = 'login-error'
    ACHIEVEMENTS_UPDATE = 'achievements-update'
    ACHIEVEMENT_UNLOCKED = 'achievement-unlocked'
    MESSAGE_HISTORY = 'message-history'
    USERS_UPDATE = 'users-update'
    ACTION_MESSAGE = 'action-message'
    IMAGE_MESSAGE = 'image-message'
    IMAGE_KEYWORD = 'image-keyword'
    SYSTEM_MESSAGE = 'system-message'
    COMMAND_ERROR = 'command-error'
    PRIVATE_MESSAGE = 'private-message'
    PRIVATE_MESSAGE_SENT = 'private-message-sent'
    ROOM_CHANGED = 'room-changed'
    COLOR_CHANGED = 'color-changed'
    CLEAR_CHAT = 'clear-chat'
    HELP_MESSAGE = 'help-message'
    USER_STATUS_CHANGE = 'user-status-change'
    USER_TYPING = 'user-typing'
    USER_STOP_TYPING = 'user-stop-typing'
    REACTION_ADDED = 'reaction-added'
    MESSAGE_BLOCKED = 'message-blocked'
    RATE_LIMITED = 'rate-limited'
    HEALTH_STATUS = 'health-status'
    WIN95_ERROR = 'win95-error'
    ERROR = 'error'


# Image keywords: "!<keyword>" posts the image
IMAGE_KEYWORDS = {
    'dog': 'https://raw.githubusercontent.com/Doopadroopa/retrochatemotes/refs/heads/main/2-20933_cute-puppies-png-background-havanese-dog.png',
    'cat': 'https://raw.githubusercontent.com/Doopadroopa/retrochatemotes/refs/heads/main/cat.png',
    'lol': 'https://raw.githubusercontent.com/Doopadroopa/retrochatemotes/refs/heads/main/laugh.png',
    'windows': 'https://raw.githubusercontent.com/Doopadroopa/retrochatemotes/refs/heads/main/windows95box.0.png',
    'error': 'https://raw.githubusercontent.com/Doopadroopa/retrochatemotes/refs/heads/main/error.png',
    'cool': 'https://raw.githubusercontent.com/Doopadroopa/retrochatemotes/refs/heads/main/Derp-face.png',
    'fire': 'https://raw.githubusercontent.com/Doopadroopa/retrochatemotes/refs/heads/main/pixel-art-fire-icon-png.png',
}

TIPS = [
    "[TIP] Use /help to see all available commands!",
    "[TIP] You can change your color with /color #RRGGBB",
    "[TIP] Try /me to perform an action!",
    "[TIP] Use /msg [username] to send a private message!",
    "[TIP] You can switch rooms with /join [room]",
    "[TIP] Your achievements are saved to your account!",
    "[TIP] Set your status with /status [Online/Away/Busy]",
    "[TIP] Type !dog, !cat, or other keywords for quick images!",
    "[JOKE] Why don't programmers like nature? It has too many bugs!",
    "[JOKE] There are only 10 types of people: those who understand binary and those who don't.",
    "[JOKE] Why did the computer go to the doctor? Because it had a virus!",
    "[JOKE] What's a programmer's favorite hangout place? Foo Bar!",
]

WIN95_ERRORS = [
    "A fatal exception 0E has occurred at 0028:C0011E36",
    "This program has performed an illegal operation and will be shut down",
    "RUNDLL error loading C:\\WINDOWS\\SYSTEM\\BRIDGE.DLL",
    "The system is dangerously low on resources!",
    "Cannot find KERNEL32.DLL",
    "GPF in module MSVCRT.DLL at 0137:BFF9B3BC",
    "Windows protection error. You need to restart your computer.",
    "Not enough memory to complete this operation",
]
