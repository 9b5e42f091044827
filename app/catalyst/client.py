from dataclasses import dataclass
from typing import Any

import httpx

from app.catalyst.auth import CatalystAuthenticator
from app.catalyst.exceptions import RemoteApiError
from app.catalyst.models import ListingPage
from app.catalyst.retry import RetryPolicy

QUOTA_EXCEEDED_MARKER = "Maximum admitted 60 requests per Minute"


def is_quota_exceeded(exc: Exception) -> bool:
    """True when the API signals its per-minute quota through a 401 body."""
    return (
        isinstance(exc, RemoteApiError)
        and exc.status_code == 401
        and QUOTA_EXCEEDED_MARKER in exc.body
    )


@dataclass(frozen=True)
class RawFile:
    """Response of the raw-bytes endpoint."""

    content: bytes
    content_type: str | None
    content_disposition: str | None


class CatalystClient:
    """Thin HTTP client for the remote document API."""

    LIST_PATH = "/v1/Files/FilesByContact"
    RAW_PATH = "/v1/Files/{document_id}"
    PROPERTIES_PATH = "/v1/Files/Properties/{document_id}"

    def __init__(
        self,
        *,
        http_client: httpx.Client,
        authenticator: CatalystAuthenticator,
        retry_policy: RetryPolicy,
    ) -> None:
        self._http = http_client
        self._auth = authenticator
        self._retry = retry_policy

    def list_files(self, customer_id: str, page_number: int, page_size: int) -> ListingPage:
        """Fetch one listing page. Retrying is left to the caller."""
        response = self._request(
            self.LIST_PATH,
            params={
                "contactid": customer_id,
                "dlFileType": "None",
                "pageNumber": page_number,
                "pageSize": page_size,
            },
        )
        payload = self._json(response)
        items = payload.get("Data") if isinstance(payload, dict) else None
        pages_total = payload.get("PagesTotal") if isinstance(payload, dict) else None
        return ListingPage(
            items=[item for item in items if isinstance(item, dict)]
            if isinstance(items, list)
            else [],
            pages_total=pages_total if isinstance(pages_total, int) else None,
        )

    def get_raw(self, document_id: str) -> RawFile:
        """Download a document's raw bytes, retrying transient failures."""
        path = self.RAW_PATH.format(document_id=document_id)
        response = self._retry.call(
            lambda: self._request(
                path,
                headers={"Accept": "application/octet-stream, application/json;q=0.9, */*;q=0.8"},
            ),
            description=f"raw download of {document_id}",
        )
        return RawFile(
            content=response.content,
            content_type=response.headers.get("content-type"),
            content_disposition=response.headers.get("content-disposition"),
        )

    def get_properties(self, document_id: str) -> dict[str, Any]:
        """Fetch a document's properties, which embed its content as base64."""
        path = self.PROPERTIES_PATH.format(document_id=document_id)
        response = self._retry.call(
            lambda: self._request(
                path,
                params={"downloadAs": "Original"},
                headers={"Accept": "application/json"},
            ),
            description=f"properties of {document_id}",
        )
        payload = self._json(response)
        return payload if isinstance(payload, dict) else {}

    def _request(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        merged = {"Authorization": f"Bearer {self._auth.get_token()}"}
        merged.update(headers or {})
        response = self._http.get(path, params=params, headers=merged)
        if response.is_success:
            return response

        body = response.text
        if response.status_code == 401 and QUOTA_EXCEEDED_MARKER not in body:
            self._auth.invalidate()
        raise RemoteApiError(
            f"HTTP {response.status_code} on {path}: {body[:500]}",
            status_code=response.status_code,
            body=body,
        )

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteApiError(
                f"Invalid JSON from {response.request.url.path}: {exc}",
                status_code=response.status_code,
                body=response.text[:500],
            ) from exc
