"""Submits a detected application to the external analysis function."""

import json
from typing import Any

from app.analysis.client_base import BaseAnalysisClient
from app.analysis.exceptions import AnalysisError
from app.logging.logger import Log


class AnalysisInvoker:
    """Invokes the analysis function with a document reference and unwraps its reply."""

    def __init__(self, client: BaseAnalysisClient) -> None:
        self._client = client

    def invoke(self, document_reference: str) -> Any:
        """Return the analysis result for a stored document.

        Raises:
            AnalysisError: on any invocation or decoding failure.
        """
        if not document_reference:
            raise AnalysisError("A document reference is required for analysis")

        Log.info(f"Invoking analysis for {document_reference}")
        try:
            raw = self._client.invoke({"s3_url": document_reference})
        except AnalysisError:
            raise
        except Exception as exc:
            raise AnalysisError(f"Analysis invocation failed: {exc}") from exc

        result = self._unwrap(self._parse(raw))
        Log.info(f"Analysis completed for {document_reference}")
        return result

    @staticmethod
    def _parse(raw: bytes) -> Any:
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise AnalysisError(f"Analysis returned invalid JSON: {exc}") from exc

    @staticmethod
    def _unwrap(parsed: Any) -> Any:
        """Strip an API-gateway style envelope whose 'body' nests the real result."""
        if not isinstance(parsed, dict) or "body" not in parsed:
            return parsed
        body = parsed["body"]
        if not body:
            return parsed
        if isinstance(body, (bytes, str)):
            try:
                return json.loads(body)
            except json.JSONDecodeError as exc:
                raise AnalysisError(f"Analysis body is not valid JSON: {exc}") from exc
        return body
