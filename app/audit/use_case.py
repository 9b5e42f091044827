from app.analysis.exceptions import AnalysisError
from app.analysis.invoker import AnalysisInvoker
from app.audit.models import AuditFailure, AuditResult, AuditState
from app.catalyst.exceptions import CatalystError, RemoteApiError
from app.database.exceptions import PolicyNotFoundError
from app.database.repositories.catalog_repository import CatalogRepository
from app.database.repositories.policy_repository import PolicyRepository
from app.detection.detector import ApplicationDetector
from app.detection.models import DetectionCandidate
from app.logging.logger import Log
from app.sync.orchestrator import SyncOrchestrator


class AuditPolicyUseCase:
    """Policy number -> customer -> sync -> detect application -> analysis.

    States advance strictly forward; every exit is an AuditResult, never an
    exception.
    """

    def __init__(
        self,
        *,
        policy_repo: PolicyRepository,
        catalog: CatalogRepository,
        orchestrator: SyncOrchestrator,
        detector: ApplicationDetector,
        invoker: AnalysisInvoker,
    ) -> None:
        self._policy_repo = policy_repo
        self._catalog = catalog
        self._orchestrator = orchestrator
        self._detector = detector
        self._invoker = invoker

    def execute(self, policy_number: str) -> AuditResult:
        result = AuditResult(success=False, policy_number=policy_number)
        if not policy_number or not policy_number.strip():
            return self._fail(
                result, AuditFailure.POLICY_NOT_FOUND, 400, "policyNumber is required"
            )
        try:
            return self._run(result)
        except RemoteApiError as exc:
            Log.error(f"[audit {policy_number}] Remote API error in {result.state.value}: {exc}")
            status = exc.status_code if 400 <= exc.status_code <= 599 else 502
            return self._fail(
                result, AuditFailure.REMOTE_API_ERROR, status,
                "Error from document provider", error=exc.body or str(exc),
            )
        except CatalystError as exc:
            Log.error(f"[audit {policy_number}] Remote API failure in {result.state.value}: {exc}")
            return self._fail(
                result, AuditFailure.REMOTE_API_ERROR, 502,
                "Error from document provider", error=str(exc),
            )
        except Exception as exc:
            Log.exception(f"[audit {policy_number}] Unexpected failure in {result.state.value}")
            return self._fail(
                result, AuditFailure.INTERNAL_ERROR, 500,
                "Internal error while auditing policy", error=str(exc),
            )

    def _run(self, result: AuditResult) -> AuditResult:
        policy_number = result.policy_number

        result.state = AuditState.RESOLVING_CUSTOMER
        try:
            customer_id = self._policy_repo.find_customer_id(policy_number)
        except PolicyNotFoundError:
            return self._fail(result, AuditFailure.POLICY_NOT_FOUND, 404, "Policy not found")
        if not customer_id.isdigit():
            return self._fail(
                result, AuditFailure.INVALID_CUSTOMER_ID, 400,
                f"customer_id '{customer_id}' is not numeric",
            )
        result.customer_id = customer_id

        result.state = AuditState.SYNCING
        Log.info(f"[audit {policy_number}] Syncing documents for customer {customer_id}")
        result.sync = self._orchestrator.sync(customer_id)

        result.state = AuditState.DETECTING_APPLICATION
        entries = self._catalog.list_for_customer(customer_id)
        Log.info(f"[audit {policy_number}] {len(entries)} catalogued files for customer {customer_id}")
        candidates = [
            candidate
            for candidate in map(DetectionCandidate.from_catalog_entry, entries)
            if candidate is not None
        ]
        application = self._detector.find_application(candidates)
        if not application.found or application.object_url is None:
            return self._fail(
                result, AuditFailure.NO_APPLICATION_FOUND, 200, "No application file found"
            )
        result.application = application

        result.state = AuditState.INVOKING
        try:
            result.analysis_result = self._invoker.invoke(application.object_url)
        except AnalysisError as exc:
            Log.error(f"[audit {policy_number}] Analysis failed: {exc}")
            return self._fail(
                result, AuditFailure.ANALYSIS_ERROR, 500,
                "Error invoking analysis", error=str(exc),
            )

        result.state = AuditState.DONE
        result.success = True
        result.status_code = 200
        Log.info(f"[audit {policy_number}] Audit completed")
        return result

    @staticmethod
    def _fail(
        result: AuditResult,
        failure: AuditFailure,
        status_code: int,
        message: str,
        error: object = None,
    ) -> AuditResult:
        result.success = False
        result.failure = failure
        result.status_code = status_code
        result.message = message
        result.error = error
        return result
