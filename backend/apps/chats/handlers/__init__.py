"""Chat handlers."""

from apps.chats.handlers.add_chat import add_chat
from apps.chats.handlers.close_chat import close_chat
from apps.chats.handlers.list_chats import list_chats
from apps.chats.handlers.open_chat import open_chat
from apps.chats.handlers.send_reply import send_reply

__all__ = [
    "list_chats",
    "add_chat",
    "open_chat",
    "close_chat",
    "send_reply",
]
