from pathlib import Path

from visacheck.logging.logger import Log
from visacheck.storage.base import BaseDocumentStorage, build_storage_key
from visacheck.storage.exceptions import StorageError


class LocalDocumentStorage(BaseDocumentStorage):
    """Stores documents under a directory on local disk.

    Intended for development; the "signed" URL is a plain file URI.
    """

    FILES_ROOT = Path("/app/files")

    def __init__(self, files_root: Path | None = None) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT

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
        path = self._resolve_path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as exc:
            raise StorageError(f"Failed to store file {file_name}: {exc}") from exc
        Log.debug(f"Stored {len(content)} bytes at {path}")
        return key

    def signed_url(self, storage_key: str, expires_in: int) -> str:
        return self._resolve_path(storage_key).resolve().as_uri()

    def _resolve_path(self, storage_key: str) -> Path:
        path = self._files_root / storage_key
        if ".." in Path(storage_key).parts:
            raise StorageError(f"Invalid storage key: {storage_key}")
        return path
