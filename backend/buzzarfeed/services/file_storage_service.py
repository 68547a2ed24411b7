"""File Storage Service.

Uploaded application files live on local disk below ``settings.UPLOAD_DIR``.
Rows store paths relative to that root, e.g. ``applications/7/bir_9f86d0.pdf``.
Disk I/O runs in a worker thread.
"""

import asyncio
from pathlib import Path

from fastapi import UploadFile

from ..core.config import settings
from ..core.constants import ErrorMessages
from ..core.exceptions import NotFoundError, ValidationError
from ..core.logging import get_logger
from ..utils import generate_file_name

logger = get_logger(__name__)


def _write_file(target: Path, content: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)


def _remove_file(target: Path, root: Path) -> None:
    target.unlink(missing_ok=True)
    folder = target.parent
    if folder != root and folder.is_dir() and not any(folder.iterdir()):
        folder.rmdir()


class FileStorage:
    """Saves, locates and removes uploaded files."""

    @property
    def root(self) -> Path:
        return Path(settings.UPLOAD_DIR).resolve()

    def _resolve(self, relative_path: str) -> Path | None:
        """Absolute path of a stored file, or None if it points outside the root."""
        root = self.root
        path = (root / relative_path).resolve()
        return path if path.is_relative_to(root) else None

    async def save(
        self,
        upload: UploadFile,
        folder: str,
        prefix: str,
        allowed_types: dict[str, str]
    ) -> str:
        """Validate and store an upload.

        Args:
            upload: The multipart file
            folder: Folder below the upload root
            prefix: Start of the generated file name
            allowed_types: Accepted content types mapped to the stored extension

        Returns:
            The stored file's path relative to the upload root

        Raises:
            ValidationError: Unsupported type, empty file or over MAX_UPLOAD_SIZE_MB
        """
        extension = allowed_types.get(upload.content_type or "")
        if extension is None:
            raise ValidationError(
                ErrorMessages.UNSUPPORTED_FILE_TYPE,
                errors={"file": [f"Allowed types: {', '.join(allowed_types)}"]}
            )

        max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
        content = await upload.read(max_bytes + 1)

        if not content:
            raise ValidationError(ErrorMessages.EMPTY_FILE, errors={"file": ["File is empty"]})
        if len(content) > max_bytes:
            raise ValidationError(
                ErrorMessages.FILE_TOO_LARGE,
                errors={"file": [f"Maximum size is {settings.MAX_UPLOAD_SIZE_MB} MB"]}
            )

        relative_path = f"{folder}/{generate_file_name(prefix, extension)}"
        await asyncio.to_thread(_write_file, self._resolve(relative_path), content)

        logger.info(
            "File stored",
            extra={'path': relative_path, 'content_type': upload.content_type, 'size_bytes': len(content)}
        )
        return relative_path

    def locate(self, relative_path: str | None) -> Path:
        """Path of an existing stored file.

        Raises:
            NotFoundError: No path recorded, or the file is gone
        """
        path = self._resolve(relative_path) if relative_path else None
        if path is None or not path.is_file():
            raise NotFoundError(ErrorMessages.DOCUMENT_NOT_FOUND)
        return path

    async def delete(self, *relative_paths: str | None) -> None:
        """Remove stored files and their folder once it is empty.

        A file that cannot be removed is logged and left behind.
        """
        root = self.root
        for relative_path in relative_paths:
            if not relative_path:
                continue

            path = self._resolve(relative_path)
            if path is None:
                logger.warning("Refusing to delete file outside upload root", extra={'path': relative_path})
                continue

            try:
                await asyncio.to_thread(_remove_file, path, root)
            except OSError as e:
                logger.warning("Could not delete stored file", extra={'path': relative_path, 'error': str(e)})
                continue

            logger.info("File deleted", extra={'path': relative_path})


file_storage = FileStorage()
