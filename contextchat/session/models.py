"""
Data models for conversation history.

Defines the message record shared by the context window, the history
store and the transport.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any


ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_SYSTEM = "system"

ROLES = (ROLE_USER, ROLE_ASSISTANT, ROLE_SYSTEM)

# Images older than this are dropped from history before selection
DEFAULT_IMAGE_MAX_AGE = timedelta(minutes=30)


@dataclass(frozen=True)
class Message:
    """
    A single conversation turn.

    Messages are never edited once created; eviction only drops
    whole messages and image stripping produces a new copy.
    """
    role: str  # user, assistant, system
    content: str
    timestamp: datetime
    image: str | None = None  # opaque handle, usually a data: URI

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown message role: {self.role!r}")

    @classmethod
    def user(
        cls,
        content: str,
        image: str | None = None,
        timestamp: datetime | None = None,
    ) -> "Message":
        """Create a user turn stamped with the current time."""
        return cls(
            role=ROLE_USER,
            content=content,
            image=image,
            timestamp=timestamp or datetime.now(),
        )

    @classmethod
    def assistant(cls, content: str, timestamp: datetime | None = None) -> "Message":
        """Create an assistant reply stamped with the current time."""
        return cls(
            role=ROLE_ASSISTANT,
            content=content,
            timestamp=timestamp or datetime.now(),
        )

    @property
    def has_image(self) -> bool:
        return bool(self.image)

    def without_image(self) -> "Message":
        """Return a copy of this message with the image removed."""
        if self.image is None:
            return self
        return replace(self, image=None)

    def to_wire(self) -> dict[str, Any]:
        """Convert to the transport shape (no timestamp)."""
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.image:
            data["image"] = self.image
        return data

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "role": self.role,
            "content": self.content,
            "image": self.image,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        """Create Message from dictionary."""
        return cls(
            role=data["role"],
            content=data.get("content", ""),
            image=data.get("image"),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )

    @classmethod
    def from_row(cls, row: tuple) -> "Message":
        """Create Message from database row (role, content, image, timestamp)."""
        return cls(
            role=row[0],
            content=row[1],
            image=row[2],
            timestamp=datetime.fromisoformat(row[3]),
        )


def strip_stale_images(
    messages: list[Message],
    now: datetime | None = None,
    max_age: timedelta = DEFAULT_IMAGE_MAX_AGE,
) -> list[Message]:
    """
    Drop image attachments older than ``max_age``.

    Args:
        messages: Conversation history, oldest first
        now: Reference instant (defaults to the current time)
        max_age: Maximum age an image may reach before it is removed

    Returns:
        New list with the same messages; stale images removed
    """
    reference = now or datetime.now()
    result = []
    for msg in messages:
        if msg.image and reference - msg.timestamp > max_age:
            result.append(msg.without_image())
        else:
            result.append(msg)
    return result
