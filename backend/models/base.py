"""Base model for documents stored in Firestore.

Field names are camelCase in Firestore so the mobile clients can read the
same documents; Python attributes stay snake_case.
"""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class FirestoreModel(BaseModel):
    """Pydantic model that maps to and from a Firestore document."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_firestore(self) -> dict[str, Any]:
        """Dump to a Firestore-ready dict using camelCase field names."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Self | None:
        """Build from a raw document dict, or None if there is nothing to map."""
        if not data:
            return None
        return cls.model_validate(data)

    @classmethod
    def from_snapshot(cls, snapshot: Any) -> Self | None:
        """Build from a DocumentSnapshot; missing documents map to None."""
        if snapshot is None or not getattr(snapshot, "exists", False):
            return None
        return cls.from_dict(snapshot.to_dict())
