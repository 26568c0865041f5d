"""Auth handlers."""

from apps.auth.handlers.login import login
from apps.auth.handlers.logout import logout
from apps.auth.handlers.restore import restore
from apps.auth.handlers.signup import signup

__all__ = [
    "signup",
    "login",
    "logout",
    "restore",
]
