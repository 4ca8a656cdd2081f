"""Pytest configuration and shared fixtures."""

import pytest

from rosdeb_publisher.repos.archive import PackageArchive
from tests.factories import InMemoryStore


@pytest.fixture
def sample_config():
    """Sample configuration dictionary."""
    return {
        "ros_distro": "jazzy",
        "codename": "noble",
        "architecture": "arm64",
        "maintainer": "Build Bot <bot@example.com>",
        "repository": {
            "path": "/srv/apt",
            "archive_dir": "/srv/apt-archive",
            "lock": False,
        },
        "release": {
            "enabled": False,
            "remote": "upstream",
        },
        "logging": {
            "level": "DEBUG",
        },
    }


@pytest.fixture
def memory_store(tmp_path):
    """In-memory repository store with a real pool directory."""
    return InMemoryStore(tmp_path / "pool")


@pytest.fixture
def archive(tmp_path):
    """Archive rooted in a temporary directory."""
    return PackageArchive(str(tmp_path / "archive"))
