"""PRD version management: snapshot, restore, compare."""

import hashlib
import logging
from uuid import UUID

from prd_tool.core.document_store import DocumentStore
from prd_tool.core.errors import NoChangesError, NotFoundError
from prd_tool.core.logging import get_logger, log_with_context
from prd_tool.core.schemas_chat import PrdDocument
from prd_tool.core.schemas_versions import ChangeSource, PrdVersion, VersionComparison
from prd_tool.db.prd_versions import VersionRepository
from prd_tool.db.prds import DocumentRepository

logger = get_logger(__name__)


def content_hash(content: str) -> str:
    """MD5 hex digest of a PRD body, used only for change detection."""
    return hashlib.md5(content.encode("utf-8")).hexdigest()


class VersionManager:
    """
    Numbered, immutable snapshots of PRD bodies.

    Version numbers are max(existing) + 1 per PRD and never reused. Reads and
    writes of the body are not locked: concurrent restores on the same PRD
    are last-writer-wins.
    """

    def __init__(
        self,
        versions: VersionRepository,
        documents: DocumentRepository,
        store: DocumentStore,
    ):
        self.versions = versions
        self.documents = documents
        self.store = store

    def list_versions(self, document: PrdDocument) -> list[PrdVersion]:
        return self.versions.list_for_prd(document.id)

    def get_version(self, document: PrdDocument, version_id: UUID) -> PrdVersion:
        """
        Raises:
            NotFoundError: If the version is not on this PRD
        """
        version = self.versions.get(document.id, version_id)
        if version is None:
            raise NotFoundError("Version not found")
        return version

    def snapshot(
        self,
        document: PrdDocument,
        summary: str | None = None,
        actor_id: UUID | None = None,
    ) -> PrdVersion:
        """
        Save the current PRD body as a new manual version.

        Args:
            document: PRD metadata
            summary: Optional change summary
            actor_id: User creating the version, if any

        Returns:
            The created version

        Raises:
            NoChangesError: If the body hashes equal to the latest version
            StorageError: If the body cannot be read
        """
        content = self.store.read(str(document.user_id), str(document.id))

        latest = self.versions.get_latest(document.id)
        if latest is not None and latest.content_hash == content_hash(content):
            raise NoChangesError()

        version = self._create_version(
            document,
            content,
            title=document.title,
            summary=summary,
            actor_id=actor_id,
            latest=latest,
        )

        logger.info(
            "Manual version created",
            extra={"prd_id": str(document.id), "version_number": version.version_number},
        )
        return version

    def restore(
        self,
        document: PrdDocument,
        version_id: UUID,
        actor_id: UUID | None = None,
    ) -> PrdVersion:
        """
        Restore a previous version of the PRD body.

        Always creates two versions: a backup of the live body, then a record
        of the restored body. The backup is saved even when it duplicates the
        latest version.

        Returns:
            The version recording the restored state

        Raises:
            NotFoundError: If the version is not on this PRD
            StorageError: If the body cannot be read or written
        """
        target = self.get_version(document, version_id)
        owner_id, prd_id = str(document.user_id), str(document.id)

        current_content = self.store.read(owner_id, prd_id)
        self._create_version(
            document,
            current_content,
            title=document.title,
            summary=f"Auto-saved before restore to v{target.version_number}",
            actor_id=actor_id,
        )

        self.store.write(owner_id, prd_id, target.content)

        if document.title != target.title:
            self.documents.update_title(document.id, target.title)

        restored = self._create_version(
            document,
            target.content,
            title=target.title,
            summary=f"Restored from v{target.version_number}",
            actor_id=actor_id,
        )

        log_with_context(
            logger,
            logging.INFO,
            "Version restored",
            prd_id=prd_id,
            restored_from=target.version_number,
            new_version=restored.version_number,
        )
        return restored

    def compare(
        self,
        document: PrdDocument,
        from_version_id: UUID,
        to_version_id: UUID,
    ) -> VersionComparison:
        """
        Fetch two versions of the same PRD for client-side diffing.

        Raises:
            NotFoundError: If either version is not on this PRD
        """
        from_version = self.versions.get(document.id, from_version_id)
        to_version = self.versions.get(document.id, to_version_id)

        if from_version is None or to_version is None:
            raise NotFoundError("One or both versions not found")

        return VersionComparison(from_version=from_version, to_version=to_version)

    def _create_version(
        self,
        document: PrdDocument,
        content: str,
        title: str,
        summary: str | None,
        actor_id: UUID | None,
        latest: PrdVersion | None = None,
    ) -> PrdVersion:
        if latest is None:
            latest = self.versions.get_latest(document.id)
        version_number = (latest.version_number if latest else 0) + 1

        return self.versions.create(
            prd_id=document.id,
            version_number=version_number,
            title=title,
            content=content,
            content_hash=content_hash(content),
            content_size=len(content.encode("utf-8")),
            change_source=ChangeSource.MANUAL,
            change_summary=summary,
            created_by=actor_id,
        )
