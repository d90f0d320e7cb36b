import uuid
from abc import ABC, abstractmethod
from pathlib import PurePosixPath

STORAGE_FOLDER = "visa-docs"


def build_storage_key(user_id: int, file_name: str, extension: str | None = None) -> str:
    """Build a unique object key: visa-docs/{user_id}/{uuid}.{ext}

    The extension comes from the original file name unless given explicitly.
    """
    ext = extension or PurePosixPath(file_name).suffix.lstrip(".").lower() or "bin"
    return f"{STORAGE_FOLDER}/{user_id}/{uuid.uuid4()}.{ext}"


class BaseDocumentStorage(ABC):
    """Abstract base for uploaded-document storage backends."""

    @abstractmethod
    def upload(
        self,
        content: bytes,
        *,
        user_id: int,
        file_name: str,
        mime_type: str,
        extension: str | None = None,
    ) -> str:
        """Store the bytes and return the storage key.

        Raises:
            StorageError: if the object cannot be written.
        """

    @abstractmethod
    def signed_url(self, storage_key: str, expires_in: int) -> str:
        """Return a temporary URL for reading a stored object.

        Raises:
            StorageError: if the URL cannot be generated.
        """
