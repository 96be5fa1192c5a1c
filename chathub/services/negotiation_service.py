"""Issue and verify the connection descriptors handed out by ``/negotiate``."""
from __future__ import annotations

import logging
import time
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode, urlsplit, urlunsplit
from uuid import uuid4

from jose import JWTError, jwt

from ..config import Settings
from ..exceptions import ConfigurationError, InvalidAccessToken
from ..models import NegotiationResult
from ..security.secrets import MissingSecretError, signing_key

logger = logging.getLogger(__name__)

CLIENT_PATH = "/client/"
_WS_SCHEMES = {"http": "ws", "https": "wss", "ws": "ws", "wss": "wss"}


class NegotiationService:
    """Builds the endpoint and access token a client needs before connecting.

    Negotiation never touches the registry; a connection only exists once
    the client opens the socket.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        # jti -> exp (epoch seconds) of tokens already used to open a socket
        self._spent: dict[str, int] = {}

    def client_url(self) -> str:
        base = (self._settings.public_base_url or "").strip()
        if not base:
            raise ConfigurationError("PUBLIC_BASE_URL is not configured")
        parts = urlsplit(base)
        scheme = _WS_SCHEMES.get(parts.scheme.lower())
        if scheme is None or not parts.netloc:
            raise ConfigurationError(f"PUBLIC_BASE_URL {base!r} is not an http(s) or ws(s) URL")
        path = parts.path.rstrip("/") + CLIENT_PATH
        query = urlencode({"hub": self._settings.hub_name})
        return urlunsplit((scheme, parts.netloc, path, query, ""))

    def negotiate(self, user_id: str | None = None) -> NegotiationResult:
        url = self.client_url()
        key = self._signing_key()
        now = datetime.now(timezone.utc)
        claims: dict[str, object] = {
            "aud": url,
            "iat": now,
            "exp": now + timedelta(minutes=self._settings.negotiate_token_minutes),
            "jti": uuid4().hex,
        }
        if user_id:
            claims["sub"] = user_id
        token = jwt.encode(claims, key, algorithm=self._settings.jwt_algorithm)
        return NegotiationResult(url=url, access_token=token, user_id=user_id or None)

    def decode_access_token(self, token: str) -> str:
        """Verify a negotiation token and return its bound user id, or ``""``.

        Each token opens at most one socket; a replayed token is rejected.
        """

        try:
            key = self._signing_key()
            url = self.client_url()
        except ConfigurationError as exc:
            raise InvalidAccessToken(str(exc)) from exc
        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=[self._settings.jwt_algorithm],
                audience=url,
                options={"require_exp": True},
            )
        except JWTError as exc:
            raise InvalidAccessToken("Invalid access token") from exc
        self._spend(payload)
        subject = payload.get("sub")
        return subject if isinstance(subject, str) else ""

    def _spend(self, payload: dict) -> None:
        token_id = payload.get("jti")
        if not isinstance(token_id, str) or not token_id:
            raise InvalidAccessToken("Access token has no id")
        now = int(time.time())
        self._spent = {key: exp for key, exp in self._spent.items() if exp > now}
        if token_id in self._spent:
            raise InvalidAccessToken("Access token was already used")
        self._spent[token_id] = int(payload.get("exp", now))

    @staticmethod
    def _signing_key() -> str:
        try:
            return signing_key()
        except MissingSecretError as exc:
            logger.error("Negotiation unavailable: %s", exc)
            raise ConfigurationError(str(exc)) from exc


__all__ = ["CLIENT_PATH", "NegotiationService"]
