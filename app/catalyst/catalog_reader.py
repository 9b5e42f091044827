import time
from collections.abc import Callable

from app.catalyst.client import CatalystClient, is_quota_exceeded
from app.catalyst.exceptions import RateLimitExceededError, RemoteApiError
from app.catalyst.models import ListingPage, RemoteDocument, document_id_of
from app.catalyst.retry import RetryPolicy
from app.logging.logger import Log


class RemoteCatalogReader:
    """Pages through a customer's files and returns each document once.

    Paging stops on the first of: a page with no unseen ids, the reported
    page total, or a short page.
    """

    def __init__(
        self,
        client: CatalystClient,
        retry_policy: RetryPolicy,
        *,
        page_size: int = 100,
        cooldown_seconds: float = 65.0,
        max_cooldowns: int = 5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._retry = retry_policy
        self._page_size = page_size
        self._cooldown_seconds = cooldown_seconds
        self._max_cooldowns = max_cooldowns
        self._sleep = sleep

    def list_all_documents(self, customer_id: str) -> list[RemoteDocument]:
        seen: set[str] = set()
        documents: list[RemoteDocument] = []
        page_number = 1
        pages_total: int | None = None

        while True:
            page = self._fetch_page(customer_id, page_number)
            if pages_total is None:
                pages_total = page.pages_total

            new_in_page = 0
            for item in page.items:
                document_id = document_id_of(item)
                if document_id is None or document_id in seen:
                    continue
                seen.add(document_id)
                documents.append(RemoteDocument.from_payload(item))
                new_in_page += 1

            Log.debug(
                f"Customer {customer_id} page {page_number}: "
                f"{len(page.items)} items, {new_in_page} new"
            )
            if (
                new_in_page == 0
                or len(page.items) < self._page_size
                or (pages_total is not None and page_number >= pages_total)
            ):
                break
            page_number += 1

        Log.info(f"Enumerated {len(documents)} remote documents for customer {customer_id}")
        return documents

    def _fetch_page(self, customer_id: str, page_number: int) -> ListingPage:
        """Fetch a page, sitting out quota windows and retrying transient errors."""
        cooldowns = 0
        while True:
            try:
                return self._retry.call(
                    lambda: self._client.list_files(customer_id, page_number, self._page_size),
                    description=f"listing page {page_number} for customer {customer_id}",
                )
            except RemoteApiError as exc:
                if not is_quota_exceeded(exc):
                    raise
                if cooldowns >= self._max_cooldowns:
                    raise RateLimitExceededError(
                        f"Quota still exceeded after {cooldowns} cool-downs "
                        f"on page {page_number} for customer {customer_id}",
                        status_code=exc.status_code,
                        body=exc.body,
                    ) from exc
                cooldowns += 1
                Log.warning(
                    f"Remote API quota exceeded on page {page_number} for customer "
                    f"{customer_id}; waiting {self._cooldown_seconds:.0f}s"
                )
                self._sleep(self._cooldown_seconds)
