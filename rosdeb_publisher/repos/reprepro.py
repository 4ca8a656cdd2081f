"""Reprepro repository store for Debian packages.

Wraps the reprepro command-line tool for querying, removing and including
packages in a local APT repository.
"""

import os
import subprocess
from pathlib import Path
from typing import List, Optional, Type

from ..common.errors import IndexMutationError, PublisherError, StoreAccessError
from ..common.logger import get_logger
from .base import IndexEntry, RepositoryStore, pool_version

logger = get_logger("reprepro")


class RepreproStore(RepositoryStore):
    """Repository store backed by a reprepro base directory.

    Layout used by reprepro:
    - conf/distributions: codename definitions
    - db/: package index databases
    - pool/<component>/<letter>/<source>/: package files
    - dists/<codename>/: exported indices

    Commands are run once; failures are surfaced to the caller and never
    retried here.
    """

    def __init__(self, base_dir: str, timeout: int = 600):
        """Initialize reprepro store.

        Args:
            base_dir: Repository base directory (reprepro -b)
            timeout: Command timeout in seconds

        Raises:
            StoreAccessError: If reprepro is not installed
        """
        self.base_dir = Path(os.path.expanduser(base_dir))
        self.timeout = timeout

        self._validate_reprepro()

    @property
    def store_name(self) -> str:
        """Return store identifier."""
        return "reprepro"

    def _validate_reprepro(self) -> None:
        """Validate that reprepro is installed and available."""
        try:
            subprocess.run(
                ["reprepro", "--version"],
                capture_output=True,
                check=True,
                timeout=10,
            )
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            raise StoreAccessError(
                "reprepro not available - install with: apt-get install reprepro"
            ) from e

    def _run_reprepro(
        self,
        args: List[str],
        error_cls: Type[PublisherError] = StoreAccessError,
        timeout: Optional[int] = None,
    ) -> subprocess.CompletedProcess:
        """Run a reprepro command against the base directory.

        Args:
            args: Command arguments (without 'reprepro -b <base>' prefix)
            error_cls: Exception type raised on failure
            timeout: Optional timeout override

        Returns:
            CompletedProcess result

        Raises:
            error_cls: If the command exits non-zero or times out
            StoreAccessError: If reprepro cannot be executed
        """
        cmd = ["reprepro", "-b", str(self.base_dir)] + args
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                timeout=timeout or self.timeout,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode().strip() if e.stderr else str(e)
            raise error_cls(f"reprepro {' '.join(args)} failed: {stderr}") from e
        except subprocess.TimeoutExpired as e:
            raise error_cls(f"reprepro {' '.join(args)} timed out") from e
        except OSError as e:
            raise StoreAccessError(f"Cannot execute reprepro: {e}") from e

    def check_access(self) -> None:
        """Verify the base directory is a writable reprepro repository."""
        if not self.base_dir.is_dir():
            raise StoreAccessError(f"Repository not found: {self.base_dir}")

        if not (self.base_dir / "conf" / "distributions").is_file():
            raise StoreAccessError(
                f"Not a reprepro repository (missing conf/distributions): {self.base_dir}"
            )

        if not os.access(self.base_dir, os.W_OK):
            raise StoreAccessError(f"Repository is not writable: {self.base_dir}")

    def list_version(self, codename: str, package_name: str) -> Optional[str]:
        """Return the published version of a package.

        Args:
            codename: Distribution codename
            package_name: Debian package name

        Returns:
            Version string or None if not published
        """
        result = self._run_reprepro(["list", codename, package_name])
        for entry in self._parse_list_output(result.stdout.decode()):
            if entry.name == package_name:
                return entry.version
        return None

    def list_packages(self, codename: str) -> List[IndexEntry]:
        """List all packages published for a codename.

        Args:
            codename: Distribution codename

        Returns:
            List of IndexEntry objects
        """
        result = self._run_reprepro(["list", codename])
        return self._parse_list_output(result.stdout.decode())

    def _parse_list_output(self, output: str) -> List[IndexEntry]:
        """Parse reprepro list output.

        Args:
            output: reprepro list output

        Returns:
            List of IndexEntry objects
        """
        entries = []

        for line in output.splitlines():
            # Format: "noble|main|amd64: ros-kilted-foo 1.2.3"
            parts = line.split()
            if len(parts) < 3 or not parts[0].endswith(":"):
                continue

            target = parts[0][:-1].split("|")
            architecture = target[2] if len(target) >= 3 else None

            entries.append(
                IndexEntry(name=parts[1], version=parts[2], architecture=architecture)
            )

        return entries

    def remove(self, codename: str, package_name: str) -> None:
        """Remove a package from a codename.

        Args:
            codename: Distribution codename
            package_name: Debian package name
        """
        self._run_reprepro(["remove", codename, package_name], error_cls=IndexMutationError)
        logger.info(f"Removed {package_name} from {codename}")

    def include(self, codename: str, artifact_path: Path) -> None:
        """Include a .deb file into a codename.

        Args:
            codename: Distribution codename
            artifact_path: Path to the .deb file
        """
        self._run_reprepro(
            ["includedeb", codename, str(artifact_path)], error_cls=IndexMutationError
        )
        logger.info(f"Included {Path(artifact_path).name} into {codename}")

    def find_pool_files(
        self, package_name: str, version: str, architecture: Optional[str] = None
    ) -> List[Path]:
        """Find .deb files for a package version in the pool.

        Args:
            package_name: Debian package name
            version: Package version (an epoch, if any, is not part of pool filenames)
            architecture: Optional architecture filter

        Returns:
            Sorted list of matching pool files
        """
        pool_base = self.base_dir / "pool"
        if not pool_base.exists():
            return []

        pattern = f"{package_name}_{pool_version(version)}_{architecture or '*'}.deb"

        return sorted(pool_base.rglob(pattern))
