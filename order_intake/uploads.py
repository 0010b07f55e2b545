# order_intake/uploads.py

import logging
import os
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterable, AsyncIterator, Protocol

from order_intake.errors import (
    ErrorKind,
    PayloadTooLarge,
    UnsupportedMediaType,
    UploadStorageError,
)


# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

PAYMENT_FIELD = "paymentScreenshot"
ALLOWED_MIME_TYPES = frozenset({"image/jpeg", "image/png", "image/jpg"})
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
CHUNK_SIZE = 64 * 1024
PUBLIC_PREFIX = "/uploads/"

EXTENSION_PATTERN = re.compile(r"\.[a-z0-9]{1,10}")


class Upload(Protocol):
    filename: str | None
    content_type: str | None

    async def read(self, size: int = -1) -> bytes: ...


@dataclass(frozen=True)
class StoredFile:
    name: str
    path: Path
    extension: str
    size: int

    @property
    def url(self) -> str:
        return f"{PUBLIC_PREFIX}{self.name}"


def file_filter(content_type: str | None) -> ErrorKind | None:
    """
    Decide whether an upload's declared MIME type is accepted.

    Returns:
        None when the type is allowed, otherwise the rejection kind.
    """
    if not content_type:
        return ErrorKind.UNSUPPORTED_MEDIA_TYPE
    mime_type = content_type.split(";", 1)[0].strip().lower()
    if mime_type in ALLOWED_MIME_TYPES:
        return None
    return ErrorKind.UNSUPPORTED_MEDIA_TYPE


def file_extension(original_filename: str | None) -> str:
    extension = os.path.splitext(original_filename or "")[1].lower()
    return extension if EXTENSION_PATTERN.fullmatch(extension) else ""


def generate_storage_name(original_filename: str | None) -> str:
    """Timestamp plus random suffix, keeping the original extension."""
    return f"{time.time_ns()}-{secrets.randbelow(10**9)}{file_extension(original_filename)}"


class UploadStorage:
    """
    Flat directory holding stored payment screenshots.

    Created once at startup and shared by every request.
    """

    def __init__(self, root: str | os.PathLike):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, reference: str) -> Path:
        """Resolve a stored name or public `/uploads/<name>` reference to its file."""
        name = reference[len(PUBLIC_PREFIX):] if reference.startswith(PUBLIC_PREFIX) else reference
        path = (self.root / name).resolve()
        if path.parent != self.root:
            raise ValueError(f"{reference!r} is outside the upload directory")
        return path

    def reserve_name(self, original_filename: str | None) -> str:
        name = generate_storage_name(original_filename)
        while (self.root / name).exists():
            name = generate_storage_name(original_filename)
        return name

    async def write(self, name: str, chunks: AsyncIterable[bytes]) -> Path:
        """
        Write a stream of chunks to `name`, removing the partial file on failure.

        Args:
            name (str): Storage name inside the namespace.
            chunks (AsyncIterable[bytes]): The file content.

        Returns:
            Path: Location of the written file.

        Raises:
            UploadStorageError: If the file cannot be written.
        """
        path = self.path_for(name)
        try:
            handle = open(path, "xb")
        except OSError as e:
            logger.error(f"Could not create upload file {path}: {e}")
            raise UploadStorageError("Failed to store payment screenshot", detail=str(e)) from e

        # Errors raised by the chunk source propagate unchanged
        completed = False
        try:
            with handle:
                async for chunk in chunks:
                    try:
                        handle.write(chunk)
                    except OSError as e:
                        logger.error(f"Could not write upload file {path}: {e}")
                        raise UploadStorageError("Failed to store payment screenshot", detail=str(e)) from e
            completed = True
        finally:
            if not completed:
                self.delete(path)
        return path

    def delete(self, path: str | os.PathLike) -> bool:
        """
        Remove a stored file. Missing files are not an error.

        Returns:
            bool: False if the file exists but could not be removed.
        """
        try:
            os.remove(path)
            logger.info(f"Removed stored upload {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to remove stored upload {path}: {e}")
            return False
        return True


async def _limited_chunks(upload: Upload, max_bytes: int) -> AsyncIterator[bytes]:
    received = 0
    while True:
        chunk = await upload.read(CHUNK_SIZE)
        if not chunk:
            return
        received += len(chunk)
        if received > max_bytes:
            raise PayloadTooLarge(max_bytes)
        yield chunk


async def accept_upload(upload: Upload, storage: UploadStorage, max_bytes: int = MAX_UPLOAD_BYTES) -> StoredFile:
    """
    Check and store a payment screenshot.

    Args:
        upload (Upload): File part of the multipart request.
        storage (UploadStorage): Namespace the file is written to.
        max_bytes (int): Largest accepted file size.

    Returns:
        StoredFile: Descriptor of the stored file.

    Raises:
        UnsupportedMediaType: If the declared type is not an allowed image type.
        PayloadTooLarge: If the file is bigger than max_bytes.
        UploadStorageError: If the file cannot be written.
    """
    if file_filter(upload.content_type) is not None:
        logger.info(f"Rejected upload {upload.filename!r} with type {upload.content_type!r}")
        raise UnsupportedMediaType()

    name = storage.reserve_name(upload.filename)
    path = await storage.write(name, _limited_chunks(upload, max_bytes))
    stored = StoredFile(
        name=name,
        path=path,
        extension=file_extension(upload.filename),
        size=path.stat().st_size,
    )
    logger.info(f"Stored payment screenshot {stored.name} ({stored.size} bytes)")
    return stored
