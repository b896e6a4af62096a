"""
Server error taxonomy.

Every per-event failure is one of these. Handlers catch them at their
boundary and turn them into a notification for the acting connection only.
"""


class ChatError(Exception):
    """Base class for errors reported back to the acting connection."""


class ValidationError(ChatError):
    """Malformed user input. No state was changed."""


class UsageError(ValidationError):
    """A command was invoked with bad arguments."""


class ChatPermissionError(ChatError):
    """The action is not allowed for this kind of session."""


class UnknownRoomError(ChatError):
    """The named room does not exist."""

    def __init__(self, room: str):
        super().__init__(f"Unknown room: {room}")
        self.room = room


class NotFoundError(ChatError):
    """A referenced user or record is absent."""


class UnknownCommandError(ChatError):
    """The command prefix was followed by an unrecognised command name."""

    def __init__(self, command: str):
        super().__init__(f"Unknown command: {command}. Type /help for commands.")
        self.command = command


class StoreError(ChatError):
    """The durable store failed to complete an operation."""
