"""File-based storage for PRD markdown bodies.

Each body lives at ``<base_path>/<owner_id>/<prd_id>.md``. Writes go to a
sibling ``.tmp`` file first and are moved into place with ``os.replace`` so
readers never observe a partially written body.
"""

import os
import re
from pathlib import Path

from prd_tool.core.errors import StorageError
from prd_tool.core.logging import get_logger

logger = get_logger(__name__)

_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE
)


def is_valid_id(value: str) -> bool:
    """Return True when value is a canonical UUID string."""
    return bool(_UUID_RE.fullmatch(str(value)))


class DocumentStore:
    """Atomic read/write of PRD bodies keyed by (owner, document id)."""

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path)

    def create(self, owner_id: str, prd_id: str, initial_content: str = "") -> Path:
        """
        Create a new PRD body file.

        Args:
            owner_id: Owning user UUID
            prd_id: PRD UUID
            initial_content: Markdown to seed the document with

        Returns:
            Path of the created file

        Raises:
            StorageError: If ids are invalid or the file cannot be written
        """
        file_path = self.get_file_path(owner_id, prd_id)
        self._ensure_dir(file_path.parent)
        self._atomic_write(file_path, initial_content)
        logger.info(
            f"Created PRD file for {prd_id}",
            extra={"prd_id": str(prd_id), "owner_id": str(owner_id)},
        )
        return file_path

    def read(self, owner_id: str, prd_id: str) -> str:
        """
        Read the current PRD body.

        A missing file is a valid empty document and reads as "".

        Raises:
            StorageError: If ids are invalid or an existing file cannot be read
        """
        file_path = self.get_file_path(owner_id, prd_id)

        if not file_path.exists():
            logger.warning("PRD file not found", extra={"path": str(file_path)})
            return ""

        try:
            # newline="" keeps the body byte-for-byte (no CRLF translation)
            with open(file_path, encoding="utf-8", newline="") as f:
                return f.read()
        except OSError as e:
            logger.error("Failed to read PRD file", extra={"path": str(file_path)})
            raise StorageError("Failed to read PRD file") from e

    def write(self, owner_id: str, prd_id: str, content: str) -> None:
        """
        Replace the PRD body atomically.

        Raises:
            StorageError: If ids are invalid, the directory cannot be created,
                or the write cannot be finalized
        """
        file_path = self.get_file_path(owner_id, prd_id)
        self._ensure_dir(file_path.parent)
        self._atomic_write(file_path, content)

    def delete(self, owner_id: str, prd_id: str) -> bool:
        """Delete the PRD body. Returns True if it is gone afterwards."""
        file_path = self.get_file_path(owner_id, prd_id)

        if not file_path.exists():
            return True

        try:
            file_path.unlink()
            return True
        except OSError:
            logger.warning("Failed to delete PRD file", extra={"path": str(file_path)})
            return False

    def exists(self, owner_id: str, prd_id: str) -> bool:
        """Check whether a body file exists for the PRD."""
        return self.get_file_path(owner_id, prd_id).exists()

    def size(self, owner_id: str, prd_id: str) -> int:
        """Get body size in bytes (0 when missing)."""
        file_path = self.get_file_path(owner_id, prd_id)

        if not file_path.exists():
            return 0

        return file_path.stat().st_size

    def get_file_path(self, owner_id: str, prd_id: str) -> Path:
        """
        Resolve the body path for a PRD.

        Raises:
            StorageError: If either id is not a canonical UUID
        """
        # Validate ids before touching the filesystem (path traversal)
        if not is_valid_id(owner_id) or not is_valid_id(prd_id):
            raise StorageError("Invalid user or PRD ID")

        return self.base_path / str(owner_id) / f"{prd_id}.md"

    def _ensure_dir(self, directory: Path) -> None:
        try:
            directory.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create user directory", extra={"path": str(directory)})
            raise StorageError("Failed to create user directory") from e

    def _atomic_write(self, file_path: Path, content: str) -> None:
        temp_path = file_path.with_name(f"{file_path.name}.tmp")

        try:
            with open(temp_path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            logger.error("Failed to write PRD file", extra={"path": str(temp_path)})
            raise StorageError("Failed to write PRD file") from e

        try:
            os.replace(temp_path, file_path)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            logger.error("Failed to finalize PRD file", extra={"path": str(file_path)})
            raise StorageError("Failed to finalize PRD file") from e
