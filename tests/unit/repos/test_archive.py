"""Tests for the superseded-artifact archive."""

from unittest.mock import patch

import pytest

from rosdeb_publisher.common.errors import ArchiveError
from rosdeb_publisher.repos.archive import PackageArchive


class TestPackageArchive:
    """Tests for PackageArchive."""

    @pytest.fixture
    def pool_file(self, tmp_path):
        path = tmp_path / "pool" / "ros-kilted-pkg-a_1.0.0_amd64.deb"
        path.parent.mkdir(parents=True)
        path.write_bytes(b"old package")
        return path

    def test_archive_copies_into_package_dir(self, archive, pool_file):
        """Files land in <root>/<package>/ and keep their names."""
        record = archive.archive("ros-kilted-pkg-a", "1.0.0", [pool_file])

        dest = archive.root / "ros-kilted-pkg-a" / pool_file.name
        assert record.name == "ros-kilted-pkg-a"
        assert record.version == "1.0.0"
        assert record.files == [dest]
        assert dest.read_bytes() == b"old package"
        assert pool_file.exists()

    def test_archive_never_overwrites(self, archive, pool_file):
        """An existing archived copy is kept as-is."""
        dest_dir = archive.package_dir("ros-kilted-pkg-a")
        dest_dir.mkdir(parents=True)
        (dest_dir / pool_file.name).write_bytes(b"first copy")

        record = archive.archive("ros-kilted-pkg-a", "1.0.0", [pool_file])

        assert (dest_dir / pool_file.name).read_bytes() == b"first copy"
        assert len(record.files) == 1

    def test_archive_missing_source(self, archive, tmp_path):
        """Copy failure raises ArchiveError."""
        with pytest.raises(ArchiveError, match="1.0.0"):
            archive.archive("ros-kilted-pkg-a", "1.0.0", [tmp_path / "gone.deb"])

    def test_archive_empty(self, archive):
        """No files gives an empty record."""
        record = archive.archive("ros-kilted-pkg-a", "1.0.0", [])
        assert record.is_empty

    def test_find(self, archive, pool_file):
        """Find filters by version."""
        archive.archive("ros-kilted-pkg-a", "1.0.0", [pool_file])

        assert len(archive.find("ros-kilted-pkg-a", "1.0.0")) == 1
        assert archive.find("ros-kilted-pkg-a", "2.0.0") == []
        assert archive.find("ros-kilted-other", "1.0.0") == []

    def test_root_expands_user(self, monkeypatch, tmp_path):
        """Tilde in the root is expanded."""
        monkeypatch.setenv("HOME", str(tmp_path))
        assert PackageArchive("~/archive").root == tmp_path / "archive"

    def test_interrupted_copy_leaves_nothing_behind(self, archive, pool_file):
        """A copy failing partway leaves no file under the final name."""

        def partial_copy(src, dst, *args, **kwargs):
            with open(dst, "wb") as f:
                f.write(b"old")
            raise OSError(28, "No space left on device")

        with patch("shutil.copy2", side_effect=partial_copy):
            with pytest.raises(ArchiveError, match="No space left"):
                archive.archive("ros-kilted-pkg-a", "1.0.0", [pool_file])

        assert list(archive.package_dir("ros-kilted-pkg-a").iterdir()) == []

    def test_retry_after_interrupted_copy(self, archive, pool_file):
        """Retrying after a failed copy archives the complete file."""

        def partial_copy(src, dst, *args, **kwargs):
            with open(dst, "wb") as f:
                f.write(b"old")
            raise OSError(28, "No space left on device")

        with patch("shutil.copy2", side_effect=partial_copy):
            with pytest.raises(ArchiveError):
                archive.archive("ros-kilted-pkg-a", "1.0.0", [pool_file])

        record = archive.archive("ros-kilted-pkg-a", "1.0.0", [pool_file])

        assert record.files[0].read_bytes() == b"old package"

    def test_find_with_epoch(self, archive, pool_file):
        """Epochs are not part of archived filenames."""
        archive.archive("ros-kilted-pkg-a", "1:1.0.0", [pool_file])

        assert archive.find("ros-kilted-pkg-a", "1:1.0.0") == [
            archive.package_dir("ros-kilted-pkg-a") / pool_file.name
        ]
