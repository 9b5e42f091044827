from collections.abc import Callable
from unittest.mock import MagicMock

import httpx
import pytest

from app.catalyst.auth import CatalystAuthenticator
from app.catalyst.client import CatalystClient
from app.catalyst.retry import RetryPolicy

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def no_sleep() -> MagicMock:
    return MagicMock()


@pytest.fixture
def make_client(no_sleep: MagicMock) -> Callable[..., CatalystClient]:
    """Build a CatalystClient whose HTTP traffic is served by a handler function."""

    def _make(handler: Handler, max_attempts: int = 5) -> CatalystClient:
        authenticator = MagicMock(spec=CatalystAuthenticator)
        authenticator.get_token.return_value = "test-token"
        http_client = httpx.Client(
            base_url="https://api.example.test",
            transport=httpx.MockTransport(handler),
        )
        return CatalystClient(
            http_client=http_client,
            authenticator=authenticator,
            retry_policy=RetryPolicy(max_attempts=max_attempts, base_delay=0.01, sleep=no_sleep),
        )

    return _make
