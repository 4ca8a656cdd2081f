"""Version-aware synchronization of a built artifact into a repository store.

Decides between three outcomes for a (package, codename) pair:

- not yet published: include the artifact
- published with another version: archive the old files, remove the old
  entry, include the artifact
- published with the same version: skip without touching anything

Versions are compared for equality only. Publishing an older version
replaces a newer one.
"""

from pathlib import Path

from ..common.errors import IndexMutationError
from ..common.logger import get_logger
from .archive import PackageArchive
from .base import PackageArtifact, RepositoryStore, SyncOutcome, SyncResult

logger = get_logger("synchronizer")


class RepositorySynchronizer:
    """Publishes artifacts into a store, archiving superseded versions."""

    def __init__(self, store: RepositoryStore, archive: PackageArchive):
        self.store = store
        self.archive = archive

    def synchronize(self, artifact: PackageArtifact, artifact_path: Path) -> SyncResult:
        """Synchronize one artifact into the store.

        Args:
            artifact: Identity of the built package
            artifact_path: Path to the built .deb file

        Returns:
            SyncResult with outcome PUBLISHED or SKIPPED

        Raises:
            StoreAccessError: If the store cannot be reached (nothing mutated)
            ArchiveError: If archiving the old version fails (old entry kept)
            IndexMutationError: If remove or include fails
        """
        codename = artifact.distribution_codename

        self.store.check_access()
        current = self.store.list_version(codename, artifact.name)

        if current is None:
            logger.info(f"{artifact.name} not yet published in {codename}")
            self._publish(artifact, artifact_path)
            return SyncResult(outcome=SyncOutcome.PUBLISHED, artifact=artifact)

        if current == artifact.version:
            logger.warning(f"Version {artifact.version} already exists, skipping")
            return SyncResult(
                outcome=SyncOutcome.SKIPPED,
                artifact=artifact,
                previous_version=current,
            )

        logger.warning(f"Updating {artifact.name}: {current} -> {artifact.version}")

        # Archive must succeed before the old entry is touched
        old_files = self.store.find_pool_files(artifact.name, current)
        if not old_files:
            logger.warning(f"No pool files found for {artifact.name} {current}, nothing to archive")
        record = self.archive.archive(artifact.name, current, old_files)

        try:
            self.store.remove(codename, artifact.name)
        except IndexMutationError:
            logger.error(
                f"Removing {artifact.name} {current} failed after archiving; "
                f"old entry is still published"
            )
            raise

        self._publish(artifact, artifact_path)

        return SyncResult(
            outcome=SyncOutcome.PUBLISHED,
            artifact=artifact,
            previous_version=current,
            archive=record,
        )

    def _publish(self, artifact: PackageArtifact, artifact_path: Path) -> None:
        """Include the artifact into the store."""
        try:
            self.store.include(artifact.distribution_codename, artifact_path)
        except IndexMutationError:
            logger.error(
                f"Including {artifact.get_key()} failed; "
                f"{artifact.name} may have no published version in "
                f"{artifact.distribution_codename}"
            )
            raise
        logger.info(f"Published {artifact.name} {artifact.version}")
