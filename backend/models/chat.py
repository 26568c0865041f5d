"""Chat thread and message documents."""

from pydantic import Field

from models.base import FirestoreModel
from models.user import ChatUser


class ChatData(FirestoreModel):
    """Chat thread between two users.

    Path: chats/{chatId}
    """

    chat_id: str | None = Field(None, description="Chat document ID")
    user1: ChatUser = Field(default_factory=ChatUser, description="Creator snapshot")
    user2: ChatUser = Field(default_factory=ChatUser, description="Contact snapshot")


class Message(FirestoreModel):
    """Chat message document.

    Path: chats/{chatId}/message/{messageId}
    """

    sent_by: str | None = Field(None, description="Sender uid")
    message: str | None = Field(None, description="Message text")
    timestamp: str | None = Field(None, description="ISO 8601 UTC send time")
