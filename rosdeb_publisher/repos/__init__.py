"""Repository store abstraction and version-aware synchronization.

Provides the store interface, the reprepro-backed store, the archive of
superseded artifacts and the synchronizer that ties them together.
"""

from .base import (
    ArchiveRecord,
    IndexEntry,
    PackageArtifact,
    RepositoryStore,
    SyncOutcome,
    SyncResult,
    pool_version,
)
from .archive import PackageArchive
from .lock import RepositoryLock
from .reprepro import RepreproStore
from .synchronizer import RepositorySynchronizer

__all__ = [
    "ArchiveRecord",
    "IndexEntry",
    "PackageArchive",
    "PackageArtifact",
    "RepositoryLock",
    "RepositoryStore",
    "RepreproStore",
    "RepositorySynchronizer",
    "SyncOutcome",
    "SyncResult",
    "pool_version",
]
