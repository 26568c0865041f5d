"""User profile documents and their denormalized snapshots."""

from pydantic import ConfigDict, Field

from models.base import FirestoreModel


class UserData(FirestoreModel):
    """User profile document.

    Path: user/{userId}
    """

    user_id: str | None = Field(None, description="Firebase Auth uid")
    name: str | None = Field(None, description="Display name")
    number: str | None = Field(None, description="Phone number, digits only")
    image_url: str | None = Field(None, description="Avatar download URL")


class ChatUser(FirestoreModel):
    """Profile snapshot embedded in chats and statuses.

    Copied at write time and never kept in sync with later profile edits.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str | None = Field(None, description="Firebase Auth uid")
    name: str | None = Field(None, description="Display name at snapshot time")
    image_url: str | None = Field(None, description="Avatar URL at snapshot time")
    number: str | None = Field(None, description="Phone number at snapshot time")

    @classmethod
    def from_user(cls, user: UserData | None) -> "ChatUser":
        """Snapshot a profile; a missing profile gives an empty snapshot."""
        if user is None:
            return cls()
        return cls(
            user_id=user.user_id,
            name=user.name,
            image_url=user.image_url,
            number=user.number,
        )
