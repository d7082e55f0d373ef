"""Exceptions raised across module boundaries."""


class LeviError(Exception):
    """Base class for Levi errors."""


class MemoryPersistenceError(LeviError):
    """A long-term memory write could not be persisted."""

    def __init__(self, user_id: str, reason: str = "") -> None:
        self.user_id = user_id
        msg = f"Failed to persist memories for user {user_id}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)
