"""Firebase Authentication service.

Account creation and token verification go through the Admin SDK.
Password sign-in is not part of the Admin SDK, so it goes to the Auth REST
endpoint (accounts:signInWithPassword) with the project's Web API key.
"""

import asyncio
import logging
from dataclasses import dataclass

import httpx
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from config import Settings, get_settings
from db.firestore import init_firebase_app

logger = logging.getLogger(__name__)

# Provider error codes mapped to user-facing text
AUTH_ERROR_MESSAGES: dict[str, str] = {
    "EMAIL_EXISTS": "The email address is already in use by another account",
    "EMAIL_NOT_FOUND": "There is no user record corresponding to this email",
    "INVALID_PASSWORD": "The password is invalid",
    "INVALID_LOGIN_CREDENTIALS": "The supplied auth credential is incorrect",
    "INVALID_EMAIL": "The email address is badly formatted",
    "USER_DISABLED": "The user account has been disabled",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Try again later",
    "WEAK_PASSWORD": "The password must be 6 characters long or more",
}


class AuthError(Exception):
    """Raised when the auth provider rejects a request."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


@dataclass
class AuthSession:
    """Result of a successful password sign-in."""

    uid: str
    id_token: str
    refresh_token: str | None = None
    email: str | None = None


def _provider_message(code: str) -> str:
    # REST codes can carry a suffix, e.g. "WEAK_PASSWORD : Password should be..."
    key = code.split(":", 1)[0].strip()
    return AUTH_ERROR_MESSAGES.get(key, key.replace("_", " ").capitalize())


class AuthService:
    """Service wrapping Firebase Authentication."""

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._http = http_client

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self.settings.auth_rest_base_url,
                timeout=self.settings.auth_timeout_seconds,
            )
        return self._http

    async def create_user(self, email: str, password: str) -> str:
        """Create an email/password account and return its uid."""
        init_firebase_app()
        try:
            record = await asyncio.to_thread(
                firebase_auth.create_user, email=email, password=password
            )
        except firebase_auth.EmailAlreadyExistsError as e:
            raise AuthError(_provider_message("EMAIL_EXISTS"), "EMAIL_EXISTS") from e
        except ValueError as e:
            # Admin SDK validates email/password format locally
            raise AuthError(str(e), "INVALID_ARGUMENT") from e
        except firebase_exceptions.FirebaseError as e:
            raise AuthError(str(e), getattr(e, "code", None)) from e

        logger.info("Created auth user %s", record.uid)
        return record.uid

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Verify email/password and return the signed-in session."""
        try:
            response = await self._client().post(
                "/accounts:signInWithPassword",
                params={"key": self.settings.firebase_web_api_key},
                json={"email": email, "password": password, "returnSecureToken": True},
            )
        except httpx.HTTPError as e:
            logger.error("Auth REST request failed: %s", e)
            raise AuthError(f"Auth service unreachable: {e}", "NETWORK_ERROR") from e

        payload = response.json() if response.content else {}

        if response.status_code != 200:
            code = payload.get("error", {}).get("message", "UNKNOWN")
            logger.warning("Sign-in rejected for %s: %s", email, code)
            raise AuthError(_provider_message(code), code.split(":", 1)[0].strip())

        return AuthSession(
            uid=payload["localId"],
            id_token=payload["idToken"],
            refresh_token=payload.get("refreshToken"),
            email=payload.get("email"),
        )

    async def verify_id_token(self, id_token: str) -> str:
        """Verify a Firebase ID token and return its uid."""
        init_firebase_app()
        try:
            decoded = await asyncio.to_thread(firebase_auth.verify_id_token, id_token)
        except (ValueError, firebase_auth.InvalidIdTokenError) as e:
            raise AuthError("Invalid ID token", "INVALID_ID_TOKEN") from e
        except firebase_exceptions.FirebaseError as e:
            raise AuthError(str(e), getattr(e, "code", None)) from e
        return decoded["uid"]

    async def close(self) -> None:
        if self._http is not None:
            await self._http.aclose()
