"""Tests for the auth service's password sign-in."""

import httpx
import pytest

from db import AuthError, AuthService


def make_service(mock_settings, handler):
    client = httpx.AsyncClient(
        base_url=mock_settings.auth_rest_base_url,
        transport=httpx.MockTransport(handler),
    )
    return AuthService(settings=mock_settings, http_client=client)


def provider_error(message):
    return httpx.Response(400, json={"error": {"code": 400, "message": message}})


class TestSignIn:
    """Tests for AuthService.sign_in_with_password."""

    @pytest.mark.asyncio
    async def test_success(self, mock_settings):
        """Test a valid login returns the session tokens."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(
                200,
                json={
                    "localId": "uid-me",
                    "idToken": "id-token",
                    "refreshToken": "refresh-token",
                    "email": "me@test.dev",
                },
            )

        service = make_service(mock_settings, handler)
        session = await service.sign_in_with_password("me@test.dev", "secret")
        await service.close()

        assert session.uid == "uid-me"
        assert session.id_token == "id-token"
        assert session.refresh_token == "refresh-token"

        [request] = requests
        assert request.url.path == "/v1/accounts:signInWithPassword"
        assert request.url.params["key"] == "test-web-api-key"

    @pytest.mark.asyncio
    async def test_invalid_credentials(self, mock_settings):
        """Test provider codes are mapped to readable messages."""
        service = make_service(
            mock_settings, lambda request: provider_error("INVALID_LOGIN_CREDENTIALS")
        )

        with pytest.raises(AuthError) as exc_info:
            await service.sign_in_with_password("me@test.dev", "wrong")

        assert exc_info.value.code == "INVALID_LOGIN_CREDENTIALS"
        assert str(exc_info.value) == "The supplied auth credential is incorrect"

    @pytest.mark.asyncio
    async def test_code_with_detail_suffix(self, mock_settings):
        """Test codes carrying a detail suffix still map to the known message."""
        service = make_service(
            mock_settings,
            lambda request: provider_error(
                "TOO_MANY_ATTEMPTS_TRY_LATER : Access to this account has been disabled"
            ),
        )

        with pytest.raises(AuthError) as exc_info:
            await service.sign_in_with_password("me@test.dev", "secret")

        assert exc_info.value.code == "TOO_MANY_ATTEMPTS_TRY_LATER"
        assert str(exc_info.value) == "Too many attempts. Try again later"

    @pytest.mark.asyncio
    async def test_unknown_code(self, mock_settings):
        """Test unmapped codes are turned into text."""
        service = make_service(
            mock_settings, lambda request: provider_error("OPERATION_NOT_ALLOWED")
        )

        with pytest.raises(AuthError, match="Operation not allowed"):
            await service.sign_in_with_password("me@test.dev", "secret")

    @pytest.mark.asyncio
    async def test_network_error(self, mock_settings):
        """Test transport failures become AuthError."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        service = make_service(mock_settings, handler)

        with pytest.raises(AuthError) as exc_info:
            await service.sign_in_with_password("me@test.dev", "secret")

        assert exc_info.value.code == "NETWORK_ERROR"
