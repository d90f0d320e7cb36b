from pathlib import Path

from visacheck.config.exceptions import ConfigurationError
from visacheck.config.settings import Settings
from visacheck.storage.base import BaseDocumentStorage
from visacheck.storage.local_adapter import LocalDocumentStorage
from visacheck.storage.s3_adapter import S3DocumentStorage


class DocumentStorageFactory:
    """Create document storage based on settings.storage_backend."""

    @classmethod
    def create(cls, settings: Settings) -> BaseDocumentStorage:
        backend = settings.storage_backend.lower()
        if backend == "local":
            return LocalDocumentStorage(files_root=Path(settings.files_root))
        if backend == "s3":
            if not settings.s3_bucket:
                raise ConfigurationError("s3_bucket is required for the s3 storage backend")
            return S3DocumentStorage.from_credentials(
                bucket=settings.s3_bucket,
                endpoint_url=settings.s3_endpoint_url,
                region=settings.s3_region,
                access_key_id=settings.s3_access_key_id,
                secret_access_key=settings.s3_secret_access_key,
            )
        raise ConfigurationError(f"Unknown storage backend: {settings.storage_backend}")
