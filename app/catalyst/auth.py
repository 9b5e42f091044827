import time
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from app.catalyst.exceptions import AuthenticationError
from app.logging.logger import Log


@dataclass(frozen=True)
class TokenCache:
    """An access token and the monotonic time after which it must be refreshed."""

    access_token: str
    refresh_after: float

    def is_valid(self, now: float) -> bool:
        return bool(self.access_token) and now < self.refresh_after


class CatalystAuthenticator:
    """Exchanges a refresh token for bearer tokens and caches them until near expiry."""

    DEFAULT_EXPIRES_IN = 3600

    def __init__(
        self,
        *,
        token_url: str,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        http_client: httpx.Client,
        refresh_margin_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._http = http_client
        self._margin = refresh_margin_seconds
        self._clock = clock
        self._cache: TokenCache | None = None

    def get_token(self) -> str:
        """Return a cached token, refreshing it when missing or about to expire."""
        now = self._clock()
        if self._cache is not None and self._cache.is_valid(now):
            return self._cache.access_token
        self._cache = self._refresh(now)
        return self._cache.access_token

    def invalidate(self) -> None:
        self._cache = None

    def _refresh(self, now: float) -> TokenCache:
        for name, value in (
            ("catalyst_client_id", self._client_id),
            ("catalyst_client_secret", self._client_secret),
            ("catalyst_refresh_token", self._refresh_token),
        ):
            if not value:
                raise AuthenticationError(f"Missing required setting {name}")

        try:
            response = self._http.post(
                self._token_url,
                data={"grant_type": "refresh_token", "refresh_token": self._refresh_token},
                auth=(self._client_id, self._client_secret),
            )
        except httpx.HTTPError as exc:
            raise AuthenticationError(f"Token endpoint unreachable: {exc}") from exc

        if response.status_code != 200:
            raise AuthenticationError(
                f"Token refresh failed with HTTP {response.status_code}: {response.text}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthenticationError(f"Token endpoint returned invalid JSON: {exc}") from exc

        access_token = payload.get("access_token")
        if not access_token:
            raise AuthenticationError("Token endpoint returned no access_token")

        rotated = payload.get("refresh_token")
        if rotated and rotated != self._refresh_token:
            # Rotated tokens only live in memory; persist CATALYST_REFRESH_TOKEN manually.
            Log.warning("Remote API rotated the refresh token; using the new one for this process")
            self._refresh_token = rotated

        try:
            expires_in = int(payload.get("expires_in") or self.DEFAULT_EXPIRES_IN)
        except (TypeError, ValueError):
            expires_in = self.DEFAULT_EXPIRES_IN
        Log.debug(f"Obtained remote API access token valid for {expires_in}s")
        return TokenCache(
            access_token=access_token,
            refresh_after=now + max(expires_in - self._margin, 0),
        )
