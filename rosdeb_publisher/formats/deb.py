"""Debian package (.deb) creation and inspection.

Stages a colcon install tree under /opt/ros/<distro>, writes the control
file and builds the archive with dpkg-deb.
"""

import shutil
import subprocess
from pathlib import Path
from typing import Dict, List

from ..common.errors import BuildError
from ..common.logger import get_logger
from ..repos.base import PackageArtifact
from .control import ControlDescriptor, parse_control, split_dependencies

logger = get_logger("format.deb")

# Workspace-level files installed by colcon --merge-install. They are owned by
# ros-<distro>-ros-workspace and would conflict with it on install.
WORKSPACE_FILES = (
    "local_setup.bash",
    "local_setup.sh",
    "local_setup.zsh",
    "setup.bash",
    "setup.sh",
    "setup.zsh",
    "local_setup.ps1",
    "setup.ps1",
    "_local_setup_util_sh.py",
    "_local_setup_util_ps1.py",
    "COLCON_IGNORE",
)


class DebPackager:
    """Builds and inspects binary Debian packages with dpkg-deb."""

    def __init__(self, ros_distro: str, install_prefix: str = "/opt/ros", timeout: int = 300):
        """Initialize packager.

        Args:
            ros_distro: ROS distribution the package installs into
            install_prefix: Root of ROS installations inside the package
            timeout: dpkg-deb timeout in seconds
        """
        self.ros_distro = ros_distro
        self.install_prefix = install_prefix
        self.timeout = timeout

    def install_root(self, deb_root: Path) -> Path:
        """Directory inside the staging tree that receives the install tree."""
        return Path(deb_root) / self.install_prefix.lstrip("/") / self.ros_distro

    def stage(self, install_dir: Path, deb_root: Path, control: ControlDescriptor) -> Path:
        """Create the package staging tree.

        Args:
            install_dir: colcon install base
            deb_root: Staging directory (created if missing)
            control: Control descriptor to write

        Returns:
            Path to the written DEBIAN/control file

        Raises:
            BuildError: If the install tree is missing or copying fails
        """
        install_dir = Path(install_dir)
        if not install_dir.is_dir():
            raise BuildError(f"Install tree not found: {install_dir}")

        target = self.install_root(deb_root)
        debian_dir = Path(deb_root) / "DEBIAN"

        logger.info("Creating Debian package structure...")
        try:
            target.mkdir(parents=True, exist_ok=True)
            debian_dir.mkdir(parents=True, exist_ok=True)
            shutil.copytree(install_dir, target, symlinks=True, dirs_exist_ok=True)

            for filename in WORKSPACE_FILES:
                (target / filename).unlink(missing_ok=True)

            control_path = debian_dir / "control"
            control_path.write_text(control.render(), encoding="utf-8")
        except OSError as e:
            raise BuildError(f"Failed to stage package tree: {e}") from e

        return control_path

    def build(self, deb_root: Path, output_dir: Path, control: ControlDescriptor) -> Path:
        """Build the .deb from a staged tree.

        Args:
            deb_root: Staging directory containing DEBIAN/control
            output_dir: Directory for the resulting .deb
            control: Control descriptor (determines the filename)

        Returns:
            Path to the built .deb

        Raises:
            BuildError: If dpkg-deb fails
        """
        deb_file = Path(output_dir) / control.deb_filename

        logger.info("Building .deb...")
        try:
            subprocess.run(
                ["dpkg-deb", "--build", str(deb_root), str(deb_file)],
                capture_output=True,
                check=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode() if e.stderr else str(e)
            raise BuildError(f"dpkg-deb build failed: {stderr}") from e
        except subprocess.TimeoutExpired as e:
            raise BuildError("dpkg-deb build timed out") from e
        except FileNotFoundError as e:
            raise BuildError("dpkg-deb not available") from e

        return deb_file

    def read_fields(self, path: Path) -> Dict[str, str]:
        """Read control fields from a built package.

        Args:
            path: Path to .deb file

        Returns:
            Mapping of control field name to value

        Raises:
            BuildError: If reading fails
        """
        try:
            result = subprocess.run(
                ["dpkg-deb", "-f", str(path)],
                capture_output=True,
                check=True,
                timeout=30,
            )
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode() if e.stderr else str(e)
            raise BuildError(f"Failed to read control file: {stderr}") from e
        except subprocess.TimeoutExpired as e:
            raise BuildError("Reading control file timed out") from e

        return parse_control(result.stdout.decode("utf-8", errors="replace"))

    def read_dependencies(self, path: Path) -> List[str]:
        """Read the Pre-Depends and Depends clauses of a built package."""
        return split_dependencies(self.read_fields(path))

    def list_contents(self, path: Path) -> List[str]:
        """List the files in a built package.

        Args:
            path: Path to .deb file

        Returns:
            dpkg-deb -c output lines

        Raises:
            BuildError: If listing fails
        """
        try:
            result = subprocess.run(
                ["dpkg-deb", "-c", str(path)],
                capture_output=True,
                check=True,
                timeout=60,
            )
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode() if e.stderr else str(e)
            raise BuildError(f"Failed to list package contents: {stderr}") from e
        except subprocess.TimeoutExpired as e:
            raise BuildError("File listing timed out") from e

        output = result.stdout.decode("utf-8", errors="replace")
        return [line for line in output.splitlines() if line.strip()]

    def artifact_for(self, path: Path, codename: str) -> PackageArtifact:
        """Read the identity of a built package.

        Args:
            path: Path to .deb file
            codename: Distribution codename it will be published to

        Returns:
            PackageArtifact

        Raises:
            BuildError: If the package lacks Package, Version or Architecture
        """
        fields = self.read_fields(path)

        missing = [key for key in ("Package", "Version", "Architecture") if not fields.get(key)]
        if missing:
            raise BuildError(f"{Path(path).name} is missing control fields: {', '.join(missing)}")

        return PackageArtifact(
            name=fields["Package"],
            version=fields["Version"],
            architecture=fields["Architecture"],
            distribution_codename=codename,
        )
