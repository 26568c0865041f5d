"""Chats module - contacts, chat threads and messages."""

from apps.chats.routes import router

__all__ = ["router"]
