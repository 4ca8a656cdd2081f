"""Tests for the build-and-publish pipeline."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from rosdeb_publisher.build.colcon import ColconBuilder
from rosdeb_publisher.common.config import PublisherConfig
from rosdeb_publisher.common.errors import BuildError, ValidationError
from rosdeb_publisher.formats.deb import DebPackager
from rosdeb_publisher.formats.manifest import parse_manifest
from rosdeb_publisher.pipeline import publish_package, resolve_maintainer
from rosdeb_publisher.repos.base import PackageArtifact, SyncOutcome
from tests.factories import InMemoryStore, create_artifact, write_manifest


class FakeBuilder(ColconBuilder):
    """Produces a tiny install tree without running colcon."""

    def __init__(self, fail=False):
        super().__init__("kilted")
        self.fail = fail
        self.built = []

    def build(self, manifest, build_dir):
        if self.fail:
            raise BuildError("colcon build of pkg_a failed")
        self.built.append(manifest.name)
        install = Path(build_dir) / "install"
        (install / "share" / manifest.name).mkdir(parents=True)
        (install / "share" / manifest.name / "package.xml").write_text("<package/>")
        (install / "setup.bash").write_text("# workspace")
        return install


class FakePackager(DebPackager):
    """Writes the staged control file as the .deb instead of calling dpkg-deb."""

    def build(self, deb_root, output_dir, control):
        deb = Path(output_dir) / control.deb_filename
        deb.write_text((Path(deb_root) / "DEBIAN" / "control").read_text())
        return deb

    def list_contents(self, path):
        return ["./opt/ros/kilted/share/pkg_a/package.xml"]

    def artifact_for(self, path, codename):
        name, version, arch = Path(path).stem.split("_")
        return PackageArtifact(name, version, arch, codename)


@pytest.fixture
def package_dir(tmp_path):
    source = tmp_path / "src" / "pkg_a"
    write_manifest(source, name="pkg_a", version="1.1.0", depends=["rclcpp", "rclcpp"])
    return source


@pytest.fixture
def config(tmp_path):
    config = PublisherConfig(codename="noble", architecture="amd64")
    config.repository.path = str(tmp_path / "repo")
    config.release.enabled = False
    return config


@pytest.fixture
def repo_store(tmp_path):
    (tmp_path / "repo").mkdir()
    return InMemoryStore(tmp_path / "repo" / "pool")


def run(package_dir, config, store=None, **kwargs):
    kwargs.setdefault("builder", FakeBuilder())
    kwargs.setdefault("packager", FakePackager("kilted"))
    if store is not None:
        kwargs["store_factory"] = lambda path: store
    return publish_package(package_dir, config, **kwargs)


class TestPublishPackage:
    """End-to-end pipeline runs with fake tools."""

    def test_first_publish(self, package_dir, config, repo_store):
        result = run(package_dir, config, repo_store)

        assert result.sync.outcome == SyncOutcome.PUBLISHED
        assert not result.skipped
        assert result.deb_filename == "ros-kilted-pkg-a_1.1.0_amd64.deb"
        assert repo_store.list_version("noble", "ros-kilted-pkg-a") == "1.1.0"
        assert result.control.depends == ["ros-kilted-rclcpp", "ros-kilted-ros-base"]

    def test_control_written_into_package(self, package_dir, config, repo_store):
        run(package_dir, config, repo_store)

        pool_file = repo_store.find_pool_files("ros-kilted-pkg-a", "1.1.0")[0]
        content = pool_file.read_text()
        assert "Package: ros-kilted-pkg-a\n" in content
        assert "Maintainer: Jane Doe <jane@example.com>\n" in content

    def test_rerun_is_skipped(self, package_dir, config, repo_store):
        run(package_dir, config, repo_store)
        result = run(package_dir, config, repo_store)

        assert result.skipped
        assert repo_store.mutations() == ["include"]

    def test_replacement_archives_old_version(self, package_dir, config, repo_store, tmp_path):
        repo_store.seed(create_artifact(version="1.0.0"))

        result = run(package_dir, config, repo_store)

        assert result.sync.is_replacement
        assert (tmp_path / "repo" / "archive" / "ros-kilted-pkg-a" / "ros-kilted-pkg-a_1.0.0_amd64.deb").exists()

    def test_lock_released_after_sync(self, package_dir, config, repo_store, tmp_path):
        run(package_dir, config, repo_store)

        assert (tmp_path / "repo" / ".rosdeb-publish.lock").exists()

    def test_no_repository_copies_deb(self, package_dir, config, tmp_path):
        output = tmp_path / "out"
        output.mkdir()

        result = run(package_dir, config, output_dir=output)

        assert result.sync is None
        assert result.copied_to == output / "ros-kilted-pkg-a_1.1.0_amd64.deb"
        assert result.copied_to.exists()

    def test_build_failure_aborts_before_sync(self, package_dir, config, repo_store):
        with pytest.raises(BuildError):
            run(package_dir, config, repo_store, builder=FakeBuilder(fail=True))

        assert repo_store.calls == []

    def test_release_created_first(self, package_dir, config, repo_store):
        config.release.enabled = True
        releaser = MagicMock()
        releaser.publish.return_value = True

        result = run(package_dir, config, repo_store, releaser=releaser)

        assert result.release_created
        request = releaser.publish.call_args[0][0]
        assert request.tag_name == "v1.1.0"

    def test_release_disabled(self, package_dir, config, repo_store):
        releaser = MagicMock()

        run(package_dir, config, repo_store, releaser=releaser)

        releaser.publish.assert_not_called()

    def test_missing_manifest(self, tmp_path, config):
        with pytest.raises(ValidationError):
            run(tmp_path, config)


class TestResolveMaintainer:
    """Tests for maintainer selection."""

    def test_configured_wins(self, package_dir):
        config = PublisherConfig(maintainer="CI <ci@example.com>")
        assert resolve_maintainer(config, parse_manifest(package_dir)) == "CI <ci@example.com>"

    def test_manifest_fallback(self, package_dir):
        assert resolve_maintainer(PublisherConfig(), parse_manifest(package_dir)) == (
            "Jane Doe <jane@example.com>"
        )

    def test_none_available(self, tmp_path):
        write_manifest(tmp_path, maintainers=[])
        with pytest.raises(ValidationError, match="No maintainer"):
            resolve_maintainer(PublisherConfig(), parse_manifest(tmp_path))
