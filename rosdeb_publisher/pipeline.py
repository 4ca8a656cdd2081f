"""Build-and-publish pipeline for a single ROS package.

Runs manifest parsing, optional release creation, colcon build, Debian
packaging and repository synchronization in order. Any PublisherError
aborts the run.
"""

import shutil
import tempfile
from contextlib import nullcontext
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .build.colcon import ColconBuilder
from .common.config import PublisherConfig, detect_architecture, detect_codename
from .common.errors import ValidationError
from .common.logger import get_logger
from .formats.control import ControlDescriptor, build_control, debian_name
from .formats.deb import DebPackager
from .formats.manifest import PackageManifest, parse_manifest
from .release.github import GitHubReleasePublisher, ReleaseRequest
from .repos.archive import PackageArchive
from .repos.base import RepositoryStore, SyncOutcome, SyncResult
from .repos.lock import RepositoryLock
from .repos.reprepro import RepreproStore
from .repos.synchronizer import RepositorySynchronizer

logger = get_logger("pipeline")

CONTENTS_PREVIEW_LINES = 20


@dataclass
class PipelineResult:
    """Result of a build-and-publish run."""

    manifest: PackageManifest
    control: ControlDescriptor
    deb_filename: str
    release_created: bool = False
    sync: Optional[SyncResult] = None
    copied_to: Optional[Path] = None

    @property
    def skipped(self) -> bool:
        """Check if the repository already had this version."""
        return self.sync is not None and self.sync.outcome == SyncOutcome.SKIPPED


def resolve_maintainer(config: PublisherConfig, manifest: PackageManifest) -> str:
    """Pick the Maintainer field: configured value, else first manifest maintainer."""
    if config.maintainer:
        return config.maintainer
    if manifest.maintainers:
        return str(manifest.maintainers[0])
    raise ValidationError(f"No maintainer configured and none declared by {manifest.name}")


def publish_package(
    package_dir: Path,
    config: PublisherConfig,
    output_dir: Optional[Path] = None,
    builder: Optional[ColconBuilder] = None,
    packager: Optional[DebPackager] = None,
    releaser: Optional[GitHubReleasePublisher] = None,
    store_factory: Callable[[Path], RepositoryStore] = lambda path: RepreproStore(str(path)),
) -> PipelineResult:
    """Build a ROS package into a .deb and publish it.

    Args:
        package_dir: ROS package source directory
        config: Resolved configuration
        output_dir: Where the .deb is copied when no repository exists (cwd by default)
        builder: Builder override
        packager: Packager override
        releaser: Release publisher override
        store_factory: Creates the repository store for a base directory

    Returns:
        PipelineResult

    Raises:
        PublisherError: On any validation, build, release or synchronization failure
    """
    package_dir = Path(package_dir).resolve()
    manifest = parse_manifest(package_dir)

    ros_distro = config.ros_distro
    codename = config.codename or detect_codename()
    architecture = config.architecture or detect_architecture()
    maintainer = resolve_maintainer(config, manifest)

    logger.info(f"Building package: {manifest.name}")
    logger.info(f"Debian name: {debian_name(manifest.name, ros_distro)}")
    logger.info(f"Version: {manifest.version}")

    release_created = False
    if config.release.enabled:
        if releaser is None:
            releaser = GitHubReleasePublisher(package_dir, remote=config.release.remote)
        release_created = releaser.publish(
            ReleaseRequest.for_version(manifest.name, manifest.version)
        )

    builder = builder or ColconBuilder(ros_distro)
    packager = packager or DebPackager(ros_distro)
    control = build_control(manifest, ros_distro, architecture, maintainer)

    result = PipelineResult(
        manifest=manifest,
        control=control,
        deb_filename=control.deb_filename,
        release_created=release_created,
    )

    with tempfile.TemporaryDirectory(prefix="rosdeb-") as tmp:
        build_dir = Path(tmp)
        logger.info(f"Build directory: {build_dir}")

        install_dir = builder.build(manifest, build_dir)

        deb_root = build_dir / "deb-root"
        packager.stage(install_dir, deb_root, control)
        logger.info("Control file:\n" + control.render().rstrip())

        deb_file = packager.build(deb_root, build_dir, control)

        contents = packager.list_contents(deb_file)
        logger.info(
            "Package contents:\n" + "\n".join(contents[:CONTENTS_PREVIEW_LINES])
        )

        repo_dir = config.repository.base_path
        if repo_dir.is_dir():
            result.sync = _synchronize(
                deb_file, codename, config, packager, store_factory(repo_dir)
            )
        else:
            logger.warning(f"APT repository not found at {repo_dir}")
            logger.warning("Copying .deb to current directory instead")
            destination = Path(output_dir) if output_dir else Path.cwd()
            result.copied_to = Path(shutil.copy2(deb_file, destination / deb_file.name))
            logger.info(f"Created: {deb_file.name}")

    return result


def _synchronize(
    deb_file: Path,
    codename: str,
    config: PublisherConfig,
    packager: DebPackager,
    store: RepositoryStore,
) -> SyncResult:
    """Publish a built .deb into the configured repository."""
    repo_dir = config.repository.base_path
    logger.info(f"Adding to apt repository at {repo_dir}...")

    artifact = packager.artifact_for(deb_file, codename)
    synchronizer = RepositorySynchronizer(
        store, PackageArchive(str(config.repository.archive_path))
    )

    lock = RepositoryLock(str(repo_dir)) if config.repository.lock else nullcontext()
    with lock:
        sync = synchronizer.synchronize(artifact, deb_file)

    if sync.outcome == SyncOutcome.PUBLISHED:
        logger.info("Package added successfully!")
        entries = store.list_packages(codename)
        logger.info(
            "Repository contents:\n"
            + "\n".join(f"{codename}: {e.name} {e.version}" for e in entries)
        )

    return sync
