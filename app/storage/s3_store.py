import re
from pathlib import Path
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config.settings import Settings
from app.storage.base import BaseObjectStore, StoredObject
from app.storage.exceptions import ObjectStoreError

_URL_KEY_PATTERN = re.compile(r"\.amazonaws\.com/(.+)$")


class S3ObjectStore(BaseObjectStore):
    """Object storage backed by a single S3 bucket."""

    def __init__(self, bucket: str, region: str, client: Any | None = None) -> None:
        if not bucket:
            raise ValueError("aws_s3_bucket is required for S3 object storage")
        self._bucket = bucket
        self._region = region or "us-east-1"
        self._client = client if client is not None else boto3.client(
            "s3",
            region_name=self._region,
            config=Config(connect_timeout=10, read_timeout=60, retries={"max_attempts": 3}),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3ObjectStore":
        return cls(bucket=settings.aws_s3_bucket, region=settings.aws_region)

    def put_file(self, local_path: Path, key: str, content_type: str | None = None) -> str:
        extra: dict[str, Any] = {}
        if content_type:
            extra["ContentType"] = content_type
        try:
            with local_path.open("rb") as body:
                self._client.put_object(Bucket=self._bucket, Key=key, Body=body, **extra)
        except (BotoCoreError, ClientError, OSError) as exc:
            raise ObjectStoreError(f"Upload of {key} failed: {exc}") from exc
        return self.url_for(key)

    def get_bytes(self, key: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=key)
            body = response["Body"]
            try:
                return body.read()
            finally:
                body.close()
        except (BotoCoreError, ClientError) as exc:
            raise ObjectStoreError(f"Download of {key} failed: {exc}") from exc

    def list_objects(self, prefix: str) -> list[StoredObject]:
        objects: list[StoredObject] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
                for item in page.get("Contents", []):
                    objects.append(
                        StoredObject(
                            key=item["Key"],
                            last_modified=item.get("LastModified"),
                            size=item.get("Size"),
                        )
                    )
        except (BotoCoreError, ClientError) as exc:
            raise ObjectStoreError(f"Listing of {prefix} failed: {exc}") from exc
        return objects

    def url_for(self, key: str) -> str:
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"

    def key_from_reference(self, reference: str) -> str | None:
        if not reference:
            return None
        match = _URL_KEY_PATTERN.search(reference)
        if match:
            return match.group(1)
        if reference.startswith(("http://", "https://", "s3://")):
            return None
        return reference
