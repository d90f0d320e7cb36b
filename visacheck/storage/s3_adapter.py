from datetime import UTC, datetime
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from visacheck.logging.logger import Log
from visacheck.storage.base import BaseDocumentStorage, build_storage_key
from visacheck.storage.exceptions import StorageError


class S3DocumentStorage(BaseDocumentStorage):
    """Stores documents in an S3-compatible bucket (AWS S3, Cloudflare R2, MinIO)."""

    def __init__(self, client: Any, bucket: str) -> None:
        self._client = client
        self._bucket = bucket

    @classmethod
    def from_credentials(
        cls,
        *,
        bucket: str,
        endpoint_url: str | None,
        region: str,
        access_key_id: str,
        secret_access_key: str,
    ) -> "S3DocumentStorage":
        client = boto3.client(
            "s3",
            endpoint_url=endpoint_url or None,
            region_name=region,
            aws_access_key_id=access_key_id or None,
            aws_secret_access_key=secret_access_key or None,
        )
        return cls(client, bucket)

    def upload(
        self,
        content: bytes,
        *,
        user_id: int,
        file_name: str,
        mime_type: str,
        extension: str | None = None,
    ) -> str:
        key = build_storage_key(user_id, file_name, extension)
        try:
            self._client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=content,
                ContentType=mime_type,
                Metadata={
                    "originalFileName": _ascii_metadata(file_name),
                    "uploadedBy": str(user_id),
                    "uploadedAt": datetime.now(UTC).isoformat(),
                },
            )
        except (ClientError, BotoCoreError) as exc:
            Log.error(f"Upload to bucket {self._bucket} failed: {exc}")
            raise StorageError(f"Failed to upload file {file_name}: {exc}") from exc
        Log.info(f"Uploaded {file_name} to {self._bucket}/{key}")
        return key

    def signed_url(self, storage_key: str, expires_in: int) -> str:
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self._bucket, "Key": storage_key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageError(f"Failed to generate signed URL: {exc}") from exc


def _ascii_metadata(value: str) -> str:
    # S3 user metadata must be ASCII
    return value.encode("ascii", "replace").decode("ascii")
