"""Archive of superseded package artifacts.

Copies pool files of a version that is about to be replaced into a
per-package directory. Archived files are never overwritten or removed.
"""

import os
import shutil
from pathlib import Path
from typing import Iterable, List

from ..common.errors import ArchiveError
from ..common.logger import get_logger
from .base import ArchiveRecord, pool_version

logger = get_logger("archive")

PARTIAL_SUFFIX = ".partial"


class PackageArchive:
    """Filesystem archive rooted at a directory.

    Layout: <root>/<package-name>/<package-name>_<version>_<arch>.deb
    """

    def __init__(self, root: str):
        self.root = Path(os.path.expanduser(root))

    def package_dir(self, package_name: str) -> Path:
        """Directory holding archived files for a package."""
        return self.root / package_name

    def archive(self, package_name: str, version: str, files: Iterable[Path]) -> ArchiveRecord:
        """Copy files into the package's archive directory.

        Each file is copied under a temporary name and renamed into place,
        so a file present under its final name is always a complete copy.

        Args:
            package_name: Debian package name
            version: Version being archived
            files: Pool files to retain

        Returns:
            ArchiveRecord listing the archived copies

        Raises:
            ArchiveError: If the directory cannot be created or a copy fails
        """
        dest_dir = self.package_dir(package_name)
        record = ArchiveRecord(name=package_name, version=version)

        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
            for source in files:
                dest = dest_dir / Path(source).name
                if dest.exists():
                    logger.info(f"{dest.name} already archived, keeping existing copy")
                else:
                    self._copy(Path(source), dest)
                    logger.info(f"Archived {dest.name} to {dest_dir}")
                record.files.append(dest)
        except OSError as e:
            raise ArchiveError(
                f"Failed to archive {package_name} {version} into {dest_dir}: {e}"
            ) from e

        return record

    def _copy(self, source: Path, dest: Path) -> None:
        """Copy source to dest through a temporary file in the same directory."""
        partial = dest.with_name(f".{dest.name}{PARTIAL_SUFFIX}")
        try:
            shutil.copy2(source, partial)
            os.replace(partial, dest)
        except OSError:
            partial.unlink(missing_ok=True)
            raise

    def find(self, package_name: str, version: str) -> List[Path]:
        """List archived files for a package version.

        Args:
            package_name: Debian package name
            version: Package version (an epoch, if any, is not part of filenames)

        Returns:
            Sorted list of archived files
        """
        package_dir = self.package_dir(package_name)
        if not package_dir.is_dir():
            return []
        return sorted(package_dir.glob(f"{package_name}_{pool_version(version)}_*.deb"))
