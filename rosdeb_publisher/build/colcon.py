"""Colcon build of a single ROS package in an isolated workspace."""

import re
import shlex
import subprocess
from pathlib import Path
from typing import List

from ..common.errors import BuildError
from ..common.logger import get_logger
from ..formats.manifest import PackageManifest

logger = get_logger("colcon")

ERROR_PATTERN = re.compile(r"error:|CMake Error|fatal error:|Failed\s+<<<", re.IGNORECASE)
MAX_REPORTED_ERRORS = 20


class ColconBuilder:
    """Builds one package into a merged install tree.

    The package source is symlinked into a throwaway workspace so the
    source tree itself never receives build/ or install/ directories.
    """

    def __init__(self, ros_distro: str, ros_root: str = "/opt/ros", build_type: str = "Release"):
        self.ros_distro = ros_distro
        self.ros_root = Path(ros_root)
        self.build_type = build_type
        self.build_log: List[str] = []

    @property
    def setup_script(self) -> Path:
        """ROS environment script sourced before building."""
        return self.ros_root / self.ros_distro / "setup.bash"

    def colcon_command(self, package_name: str, install_dir: Path) -> List[str]:
        """Build the colcon invocation for a package."""
        return [
            "colcon", "build",
            "--packages-select", package_name,
            "--allow-overriding", package_name,
            "--install-base", str(install_dir),
            "--merge-install",
            "--cmake-args", f"-DCMAKE_BUILD_TYPE={self.build_type}",
        ]

    def prepare_workspace(self, manifest: PackageManifest, build_dir: Path) -> Path:
        """Create <build_dir>/ws/src/<name> pointing at the package source.

        Returns:
            Workspace directory
        """
        workspace = Path(build_dir) / "ws"
        src_dir = workspace / "src"
        try:
            src_dir.mkdir(parents=True, exist_ok=True)
            link = src_dir / manifest.name
            if not link.exists():
                link.symlink_to(Path(manifest.path).resolve(), target_is_directory=True)
        except OSError as e:
            raise BuildError(f"Failed to prepare workspace in {build_dir}: {e}") from e
        return workspace

    def build(self, manifest: PackageManifest, build_dir: Path) -> Path:
        """Build a package with colcon.

        Args:
            manifest: Parsed package.xml of the package to build
            build_dir: Scratch directory for the workspace and install tree

        Returns:
            Path to the merged install directory

        Raises:
            BuildError: If the ROS environment is missing or colcon fails
        """
        if not self.setup_script.is_file():
            raise BuildError(
                f"ROS {self.ros_distro} environment not found: {self.setup_script}"
            )

        workspace = self.prepare_workspace(manifest, build_dir)
        install_dir = Path(build_dir) / "install"

        colcon = self.colcon_command(manifest.name, install_dir)
        script = f"source {shlex.quote(str(self.setup_script))} && {shlex.join(colcon)}"

        logger.info("Building with colcon...")
        logger.debug(f"Running in {workspace}: {script}")

        self.build_log = []
        try:
            process = subprocess.Popen(
                ["bash", "-c", script],
                cwd=workspace,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                bufsize=1,
            )
        except FileNotFoundError as e:
            raise BuildError("bash not available to run colcon") from e

        try:
            for line in process.stdout:
                line = line.rstrip()
                self.build_log.append(line)
                logger.debug(line)
        except BaseException:
            process.kill()
            raise
        finally:
            process.wait()

        if process.returncode != 0:
            errors = self._parse_build_errors(self.build_log)
            detail = "\n".join(errors) if errors else "\n".join(self.build_log[-MAX_REPORTED_ERRORS:])
            raise BuildError(
                f"colcon build of {manifest.name} failed (exit {process.returncode}):\n{detail}"
            )

        logger.info(f"Built {manifest.name} into {install_dir}")
        return install_dir

    def _parse_build_errors(self, log_lines: List[str]) -> List[str]:
        """Pick error lines out of the build log."""
        errors = [line.strip() for line in log_lines if ERROR_PATTERN.search(line)]
        return errors[:MAX_REPORTED_ERRORS]
