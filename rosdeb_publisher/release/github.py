"""GitHub release creation for a package version.

Tags the package's git repository and creates a release with the gh CLI.
An existing tag means the release was already made, so the step is skipped.
"""

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List

from ..common.errors import ReleaseError, ValidationError
from ..common.logger import get_logger

logger = get_logger("release")


@dataclass(frozen=True)
class ReleaseRequest:
    """A tagged release to create."""

    tag_name: str
    title: str
    notes: str

    @classmethod
    def for_version(cls, package_name: str, version: str) -> "ReleaseRequest":
        """Standard release for a package version (tag v<version>)."""
        return cls(
            tag_name=f"v{version}",
            title=f"Release {version}",
            notes=f"Release {version} of {package_name}",
        )


class GitHubReleasePublisher:
    """Creates GitHub releases from a package source checkout."""

    def __init__(self, repo_dir: Path, remote: str = "origin", timeout: int = 120):
        """Initialize publisher.

        Args:
            repo_dir: Package source directory inside a git checkout
            remote: Remote the tag is pushed to
            timeout: Per-command timeout in seconds
        """
        self.repo_dir = Path(repo_dir)
        self.remote = remote
        self.timeout = timeout

    def _run(self, cmd: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a git/gh command in the repository.

        Raises:
            subprocess.CalledProcessError: If check is set and the command fails
            ReleaseError: If the command cannot be executed or times out
        """
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            return subprocess.run(
                cmd,
                cwd=self.repo_dir,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=check,
            )
        except FileNotFoundError as e:
            raise ReleaseError(f"{cmd[0]} not available") from e
        except subprocess.TimeoutExpired as e:
            raise ReleaseError(f"{' '.join(cmd[:3])} timed out") from e

    def is_git_repo(self) -> bool:
        """Check if the package directory is inside a git work tree."""
        if (self.repo_dir / ".git").exists():
            return True
        result = self._run(["git", "rev-parse", "--git-dir"], check=False)
        return result.returncode == 0

    def tag_exists(self, tag_name: str) -> bool:
        """Check if a local tag exists."""
        result = self._run(["git", "tag", "-l", tag_name])
        return tag_name in result.stdout.split()

    def publish(self, request: ReleaseRequest) -> bool:
        """Create the tag and the GitHub release.

        Args:
            request: Release to create

        Returns:
            True if a release was created, False if the tag already existed

        Raises:
            ValidationError: If the package directory is not a git repository
            ReleaseError: If tagging, pushing or creating the release fails
        """
        if not self.is_git_repo():
            raise ValidationError(f"Not a git repository: {self.repo_dir}")

        tag = request.tag_name
        logger.info(f"Creating GitHub release {tag}...")

        if self.tag_exists(tag):
            logger.warning(f"Tag {tag} already exists, skipping release creation")
            return False

        logger.info(f"Creating tag {tag}...")
        try:
            self._run(["git", "tag", "-a", tag, "-m", request.title])
        except subprocess.CalledProcessError as e:
            raise ReleaseError(f"Failed to create tag {tag}: {e.stderr or e}") from e

        try:
            self._run(["git", "push", self.remote, tag])
        except (subprocess.CalledProcessError, ReleaseError) as e:
            detail = e.stderr if isinstance(e, subprocess.CalledProcessError) else e
            # Local tag only; the remote never received it
            self._run(["git", "tag", "-d", tag], check=False)
            raise ReleaseError(f"Failed to push tag {tag}: {detail}") from e

        logger.info("Creating GitHub release...")
        try:
            self._run([
                "gh", "release", "create", tag,
                "--title", request.title,
                "--generate-notes",
                "--notes", request.notes,
            ])
        except (subprocess.CalledProcessError, ReleaseError) as e:
            detail = e.stderr if isinstance(e, subprocess.CalledProcessError) else e
            logger.error(f"Failed to create GitHub release: {detail}")
            self._delete_tag(tag)
            raise ReleaseError(f"Failed to create GitHub release {tag}") from e

        logger.info(f"GitHub release {tag} created successfully")
        return True

    def _delete_tag(self, tag: str) -> None:
        """Remove a tag locally and on the remote after a failed release."""
        self._run(["git", "tag", "-d", tag], check=False)
        remote = self._run(["git", "push", self.remote, "--delete", tag], check=False)
        if remote.returncode != 0:
            logger.warning(f"Could not delete remote tag {tag}: {remote.stderr.strip()}")
