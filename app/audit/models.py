from dataclasses import dataclass
from enum import Enum
from typing import Any

from app.detection.models import DetectionResult
from app.sync.models import SyncReport


class AuditState(str, Enum):
    RESOLVING_CUSTOMER = "resolving_customer"
    SYNCING = "syncing"
    DETECTING_APPLICATION = "detecting_application"
    INVOKING = "invoking"
    DONE = "done"


class AuditFailure(str, Enum):
    POLICY_NOT_FOUND = "policy_not_found"
    INVALID_CUSTOMER_ID = "invalid_customer_id"
    NO_APPLICATION_FOUND = "no_application_found"
    ANALYSIS_ERROR = "analysis_error"
    REMOTE_API_ERROR = "remote_api_error"
    INTERNAL_ERROR = "internal_error"


@dataclass
class AuditResult:
    """Structured outcome of auditing one policy."""

    success: bool
    policy_number: str
    status_code: int = 200
    state: AuditState = AuditState.RESOLVING_CUSTOMER
    failure: AuditFailure | None = None
    message: str = ""
    error: Any = None
    customer_id: str | None = None
    sync: SyncReport | None = None
    application: DetectionResult | None = None
    analysis_result: Any = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "policyNumber": self.policy_number,
            "customerId": self.customer_id,
        }
        if self.sync is not None:
            payload["sync"] = self.sync.to_dict()
        if self.success:
            payload["applicationInfo"] = (
                self.application.to_dict() if self.application is not None else None
            )
            payload["analysisResult"] = self.analysis_result
            return payload

        payload["status"] = self.failure.value if self.failure else None
        payload["message"] = self.message
        if self.error is not None:
            payload["error"] = self.error
        if self.application is not None and self.application.found:
            payload["applicationInfo"] = self.application.to_dict()
        return payload
