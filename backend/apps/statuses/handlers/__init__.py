"""Status handlers."""

from apps.statuses.handlers.get_user_statuses import get_user_statuses
from apps.statuses.handlers.list_statuses import list_statuses
from apps.statuses.handlers.upload_status import upload_status

__all__ = [
    "list_statuses",
    "get_user_statuses",
    "upload_status",
]
