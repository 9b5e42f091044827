from dataclasses import dataclass
from pathlib import Path

import httpx

from app.analysis.invoker import AnalysisInvoker
from app.analysis.lambda_client_adapter import LambdaClientAdapter
from app.audit.use_case import AuditPolicyUseCase
from app.catalyst.auth import CatalystAuthenticator
from app.catalyst.catalog_reader import RemoteCatalogReader
from app.catalyst.client import CatalystClient
from app.catalyst.retry import RetryPolicy
from app.config.settings import Settings
from app.database.repositories.catalog_repository import CatalogRepository
from app.database.repositories.policy_repository import PolicyRepository
from app.detection.detector import ApplicationDetector
from app.pdf.factory import PdfExtractorFactory
from app.storage.s3_store import S3ObjectStore
from app.sync.materializer import ContentMaterializer
from app.sync.offloader import ObjectStoreOffloader
from app.sync.orchestrator import SyncOrchestrator


@dataclass
class Components:
    """Wired pipeline objects sharing one HTTP client."""

    http_client: httpx.Client
    orchestrator: SyncOrchestrator
    detector: ApplicationDetector
    audit: AuditPolicyUseCase

    def close(self) -> None:
        self.http_client.close()


def build_components(settings: Settings) -> Components:
    """Build every pipeline component from settings."""
    http_client = httpx.Client(
        base_url=settings.catalyst_base_url.rstrip("/"),
        timeout=settings.catalyst_timeout_seconds,
    )
    retry_policy = RetryPolicy(
        max_attempts=settings.catalyst_max_attempts,
        base_delay=settings.catalyst_retry_base_delay_seconds,
    )
    authenticator = CatalystAuthenticator(
        token_url=settings.catalyst_token_url,
        client_id=settings.catalyst_client_id,
        client_secret=settings.catalyst_client_secret,
        refresh_token=settings.catalyst_refresh_token,
        http_client=http_client,
        refresh_margin_seconds=settings.catalyst_token_refresh_margin_seconds,
    )
    client = CatalystClient(
        http_client=http_client,
        authenticator=authenticator,
        retry_policy=retry_policy,
    )
    reader = RemoteCatalogReader(
        client,
        retry_policy,
        page_size=settings.catalyst_page_size,
        cooldown_seconds=settings.catalyst_rate_limit_cooldown_seconds,
        max_cooldowns=settings.catalyst_rate_limit_max_waits,
    )

    store = S3ObjectStore.from_settings(settings)
    detector = ApplicationDetector(store, PdfExtractorFactory.create(settings))
    catalog = CatalogRepository(settings.catalog_table)
    orchestrator = SyncOrchestrator(
        reader=reader,
        materializer=ContentMaterializer(client),
        offloader=ObjectStoreOffloader(store),
        catalog=catalog,
        detector=detector,
        scratch_root=Path(settings.scratch_root),
        recency_days=settings.sync_recency_days,
    )
    invoker = AnalysisInvoker(
        LambdaClientAdapter(
            function_name=settings.lambda_function_name,
            region=settings.aws_region,
            access_key_id=settings.lambda_aws_access_key_id,
            secret_access_key=settings.lambda_aws_secret_access_key,
            timeout_seconds=settings.lambda_timeout_seconds,
        )
    )
    audit = AuditPolicyUseCase(
        policy_repo=PolicyRepository(settings.policies_table),
        catalog=catalog,
        orchestrator=orchestrator,
        detector=detector,
        invoker=invoker,
    )
    return Components(
        http_client=http_client,
        orchestrator=orchestrator,
        detector=detector,
        audit=audit,
    )
