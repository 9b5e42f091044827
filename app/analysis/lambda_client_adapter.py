import json
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.analysis.client_base import BaseAnalysisClient
from app.analysis.exceptions import AnalysisError, AnalysisNetworkError


class LambdaClientAdapter(BaseAnalysisClient):
    """Analysis client that calls an AWS Lambda function with RequestResponse."""

    def __init__(
        self,
        *,
        function_name: str,
        region: str,
        access_key_id: str = "",
        secret_access_key: str = "",
        timeout_seconds: int = 120,
        client: Any | None = None,
    ) -> None:
        self._function_name = function_name
        if client is not None:
            self._client = client
            return
        credentials: dict[str, str] = {}
        if access_key_id and secret_access_key:
            credentials = {
                "aws_access_key_id": access_key_id,
                "aws_secret_access_key": secret_access_key,
            }
        self._client = boto3.client(
            "lambda",
            region_name=region or "us-east-1",
            config=Config(read_timeout=timeout_seconds, retries={"max_attempts": 0}),
            **credentials,
        )

    def invoke(self, payload: dict[str, Any]) -> bytes:
        try:
            response = self._client.invoke(
                FunctionName=self._function_name,
                InvocationType="RequestResponse",
                Payload=json.dumps(payload).encode("utf-8"),
            )
        except (BotoCoreError, ClientError) as exc:
            raise AnalysisNetworkError(f"Lambda invocation failed: {exc}") from exc

        stream = response.get("Payload")
        raw = stream.read() if stream is not None else b""
        function_error = response.get("FunctionError")
        if function_error:
            raise AnalysisError(
                f"Lambda {self._function_name} raised {function_error}: "
                f"{raw.decode('utf-8', errors='replace')[:500]}"
            )
        return raw
