"""Base classes for repository stores.

Defines the interface that a repository store must implement, along with
the data structures exchanged with the synchronizer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import List, Optional


class SyncOutcome(Enum):
    """Outcome of a synchronize operation."""

    PUBLISHED = auto()
    SKIPPED = auto()


def pool_version(version: str) -> str:
    """Version as it appears in pool filenames (epoch dropped)."""
    return version.split(":", 1)[1] if ":" in version else version


@dataclass(frozen=True)
class PackageArtifact:
    """A built binary package, immutable once built."""

    name: str
    version: str
    architecture: str
    distribution_codename: str

    def get_key(self) -> str:
        """Get the pool key (name_version_arch) for this artifact."""
        return f"{self.name}_{self.version}_{self.architecture}"

    @property
    def filename(self) -> str:
        """Canonical .deb filename."""
        return f"{self.get_key()}.deb"


@dataclass(frozen=True)
class IndexEntry:
    """The store's record of the published version of a package."""

    name: str
    version: str
    architecture: Optional[str] = None


@dataclass
class ArchiveRecord:
    """Retained copies of a superseded artifact."""

    name: str
    version: str
    files: List[Path] = field(default_factory=list)
    archived_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def is_empty(self) -> bool:
        """Check if no files were retained."""
        return not self.files


@dataclass
class SyncResult:
    """Result of synchronizing an artifact into a repository store."""

    outcome: SyncOutcome
    artifact: PackageArtifact
    previous_version: Optional[str] = None
    archive: Optional[ArchiveRecord] = None

    @property
    def is_replacement(self) -> bool:
        """Check if a previously published version was replaced."""
        return self.outcome == SyncOutcome.PUBLISHED and self.previous_version is not None

    @property
    def is_success(self) -> bool:
        """Check if synchronization succeeded (published or skipped)."""
        return self.outcome in (SyncOutcome.PUBLISHED, SyncOutcome.SKIPPED)


class RepositoryStore(ABC):
    """Abstract base class for repository stores.

    A store holds at most one index entry per (codename, package name)
    pair. Replacing a version is remove-then-include; there is no atomic
    swap.
    """

    @property
    @abstractmethod
    def store_name(self) -> str:
        """Return the store identifier (e.g., 'reprepro')."""
        pass

    @abstractmethod
    def check_access(self) -> None:
        """Verify the store is reachable and writable.

        Raises:
            StoreAccessError: If the store cannot be used
        """
        pass

    @abstractmethod
    def list_version(self, codename: str, package_name: str) -> Optional[str]:
        """Return the published version of a package.

        Args:
            codename: Distribution codename (e.g., "noble")
            package_name: Debian package name

        Returns:
            Version string, or None if the package is not published

        Raises:
            StoreAccessError: If the store cannot be queried
        """
        pass

    @abstractmethod
    def remove(self, codename: str, package_name: str) -> None:
        """Remove a package's index entry (and its pool files).

        Raises:
            IndexMutationError: If removal fails
        """
        pass

    @abstractmethod
    def include(self, codename: str, artifact_path: Path) -> None:
        """Add an artifact file to the index.

        Raises:
            IndexMutationError: If inclusion fails
        """
        pass

    @abstractmethod
    def find_pool_files(
        self, package_name: str, version: str, architecture: Optional[str] = None
    ) -> List[Path]:
        """Locate on-disk artifact files for a package version.

        Args:
            package_name: Debian package name
            version: Package version
            architecture: Optional architecture filter (any if None)

        Returns:
            Matching file paths (possibly empty)
        """
        pass

    @abstractmethod
    def list_packages(self, codename: str) -> List[IndexEntry]:
        """List all index entries for a codename.

        Raises:
            StoreAccessError: If the store cannot be queried
        """
        pass
