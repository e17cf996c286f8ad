"""
Auth token storage and the login REST API.
"""

import logging
import time
from typing import Any, Callable, Optional

from pydantic import ValidationError

from gitboss_ai.errors import APIError, AuthError
from gitboss_ai.models.auth import LoginResponse, RegisterResponse
from gitboss_ai.storage import Storage
from gitboss_ai.transport.http import HttpClient

logger = logging.getLogger("gitboss_ai.auth")

TOKEN_KEY = "auth_token"
EXPIRY_KEY = "token_expiry"
AUTHENTICATED_KEY = "is_authenticated"
USERNAME_KEY = "username"


class TokenStore:
    """Bearer token plus expiry (epoch seconds) kept in a Storage backend."""

    def __init__(self, storage: Storage, clock: Callable[[], float] = time.time):
        self._storage = storage
        self._clock = clock

    def store(self, token: str, expires: int, username: Optional[str] = None) -> None:
        self._storage.set_item(TOKEN_KEY, token)
        self._storage.set_item(EXPIRY_KEY, str(int(expires)))
        if username:
            self._storage.set_item(USERNAME_KEY, username)
        self._storage.set_item(AUTHENTICATED_KEY, "true")

    def clear(self) -> None:
        self._storage.remove_item(TOKEN_KEY)
        self._storage.remove_item(EXPIRY_KEY)
        self._storage.remove_item(USERNAME_KEY)
        self._storage.set_item(AUTHENTICATED_KEY, "false")

    def get(self) -> Optional[str]:
        """Return the token while it is unexpired; an expired token is cleared."""
        try:
            token = self._storage.get_item(TOKEN_KEY)
            raw_expiry = self._storage.get_item(EXPIRY_KEY) or "0"
        except Exception as e:
            logger.error("Token storage unavailable: %s", e)
            return None

        try:
            expiry = int(float(raw_expiry))
        except (ValueError, OverflowError):
            expiry = 0

        if token and expiry > int(self._clock()):
            return token
        if token:
            logger.info("Stored token expired, clearing")
            self.clear()
        return None

    def is_authenticated(self) -> bool:
        return self.get() is not None

    def username(self) -> Optional[str]:
        if self.get() is None:
            return None
        return self._storage.get_item(USERNAME_KEY)

    def authenticated_ws_url(self, base_url: str) -> Optional[str]:
        token = self.get()
        if not token:
            return None
        return f"{base_url}?token={token}"


class AuthAPI:
    def __init__(self, http: HttpClient, tokens: TokenStore):
        self._http = http
        self._tokens = tokens

    async def login(self, username: str, password: str) -> LoginResponse:
        """POST /login and persist the returned token."""
        try:
            data = await self._http.post("/login", {"username": username, "password": password})
        except APIError as e:
            raise AuthError(f"Login failed: {e}")
        try:
            result = LoginResponse.model_validate(data)
        except ValidationError as e:
            raise AuthError(f"Unexpected login response: {e}")
        if not result.token or result.expires is None:
            raise AuthError(result.error or "Invalid login credentials")
        self._tokens.store(result.token, result.expires, username=username)
        self._http.set_token(result.token)
        logger.info("Logged in as %s", username)
        return result

    async def register(self, username: str, password: str, email: Optional[str] = None) -> RegisterResponse:
        body: dict[str, Any] = {"username": username, "password": password}
        if email:
            body["email"] = email
        try:
            data = await self._http.post("/register", body)
        except APIError as e:
            raise AuthError(f"Registration failed: {e}")
        result = RegisterResponse.model_validate(data if isinstance(data, dict) else {})
        if result.error:
            raise AuthError(result.error)
        return result

    def logout(self) -> None:
        self._tokens.clear()
        self._http.set_token(None)
