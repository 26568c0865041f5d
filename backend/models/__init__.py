"""Firestore document schemas shared by the data and state layers."""

from models.chat import ChatData, Message
from models.status import Status
from models.user import ChatUser, UserData

__all__ = ["UserData", "ChatUser", "ChatData", "Message", "Status"]
