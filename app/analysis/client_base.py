from abc import ABC, abstractmethod
from typing import Any


class BaseAnalysisClient(ABC):
    """Contract for provider-specific analysis function clients."""

    @abstractmethod
    def invoke(self, payload: dict[str, Any]) -> bytes:
        """Invoke the function synchronously and return its raw response payload.

        Raises:
            AnalysisError: if the function reports an error.
            AnalysisNetworkError: if the provider cannot be reached.
        """
