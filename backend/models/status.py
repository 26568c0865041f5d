"""Image status documents."""

from pydantic import Field

from models.base import FirestoreModel
from models.user import ChatUser


class Status(FirestoreModel):
    """Image status posted by a user, visible to their contacts for a day.

    Path: status/{statusId}
    """

    user: ChatUser = Field(default_factory=ChatUser, description="Author snapshot")
    image_url: str | None = Field(None, description="Image download URL")
    timestamp: int | None = Field(None, description="Epoch milliseconds")
