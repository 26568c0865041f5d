"""Pure view-state derivations over chats, messages and statuses."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TypeVar

from models import ChatData, ChatUser, Message, Status

T = TypeVar("T")

MILLIS_PER_HOUR = 60 * 60 * 1000


@dataclass
class StatusOverview:
    """Status screen data: my latest author snapshot and other authors."""

    mine: ChatUser | None = None
    others: list[ChatUser] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return self.mine is None and not self.others


def status_cutoff_ms(now_ms: int, ttl_hours: int = 24) -> int:
    """Oldest timestamp (exclusive) a status may have and still be shown."""
    return now_ms - ttl_hours * MILLIS_PER_HOUR


def is_digits_only(number: str) -> bool:
    """True for a non-empty string of decimal digits."""
    return bool(number) and all(ch in "0123456789" for ch in number)


def chat_partner(chat: ChatData, my_user_id: str | None) -> ChatUser:
    """The participant on the other side of the chat."""
    if chat.user1.user_id == my_user_id:
        return chat.user2
    return chat.user1


def current_connections(chats: Iterable[ChatData], my_user_id: str | None) -> list[str]:
    """My id followed by every chat partner's id, without duplicates."""
    connections: list[str] = []
    for user_id in [my_user_id, *(chat_partner(c, my_user_id).user_id for c in chats)]:
        if user_id is not None and user_id not in connections:
            connections.append(user_id)
    return connections


def sort_messages(messages: Iterable[Message]) -> list[Message]:
    """Order messages by timestamp; missing timestamps sort first."""
    return sorted(messages, key=lambda m: m.timestamp or "")


def fresh_statuses(statuses: Iterable[Status], cutoff_ms: int) -> list[Status]:
    return [s for s in statuses if s.timestamp is not None and s.timestamp > cutoff_ms]


def split_statuses(
    statuses: Iterable[Status], my_user_id: str | None
) -> tuple[list[Status], list[Status]]:
    """Partition statuses into (mine, others)."""
    mine, others = [], []
    for status in statuses:
        (mine if status.user.user_id == my_user_id else others).append(status)
    return mine, others


def unique_authors(statuses: Iterable[Status]) -> list[ChatUser]:
    """Distinct author snapshots in first-seen order.

    Two snapshots of the same user taken before and after a profile edit
    count as different authors.
    """
    seen: dict[ChatUser, None] = {}
    for status in statuses:
        seen.setdefault(status.user, None)
    return list(seen)


def status_overview(statuses: Iterable[Status], my_user_id: str | None) -> StatusOverview:
    mine, others = split_statuses(statuses, my_user_id)
    return StatusOverview(
        mine=mine[0].user if mine else None,
        others=unique_authors(others),
    )


def statuses_by_author(statuses: Iterable[Status], user_id: str) -> list[Status]:
    """Statuses of one author, oldest first."""
    return sorted(
        (s for s in statuses if s.user.user_id == user_id),
        key=lambda s: s.timestamp or 0,
    )


def chunked(items: list[T], size: int) -> list[list[T]]:
    """Split items into consecutive lists of at most size elements."""
    if size <= 0:
        raise ValueError("size must be positive")
    return [items[i : i + size] for i in range(0, len(items), size)]
