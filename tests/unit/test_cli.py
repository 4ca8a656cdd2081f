"""Tests for the command-line interface."""

from unittest.mock import MagicMock, patch

import pytest

from rosdeb_publisher import cli
from rosdeb_publisher.common.config import PublisherConfig
from rosdeb_publisher.common.errors import IndexMutationError, ValidationError


@pytest.fixture
def mock_publish():
    with patch.object(cli, "publish_package") as mock:
        mock.return_value = MagicMock(skipped=False)
        yield mock


@pytest.fixture
def no_config_file(tmp_path, monkeypatch):
    monkeypatch.setattr(
        "rosdeb_publisher.common.config.DEFAULT_CONFIG_PATH", str(tmp_path / "none.yaml")
    )
    monkeypatch.delenv("ROS_DISTRO", raising=False)
    monkeypatch.delenv("ROSDEB_APT_REPO", raising=False)


class TestMain:
    """Tests for cli.main."""

    def test_missing_argument_prints_usage(self, capsys):
        assert cli.main([]) == 1
        assert "usage: rosdeb-publish" in capsys.readouterr().err

    def test_success(self, mock_publish, no_config_file, tmp_path):
        assert cli.main([str(tmp_path)]) == 0
        mock_publish.assert_called_once()

    def test_skipped_is_success(self, mock_publish, no_config_file, tmp_path):
        mock_publish.return_value = MagicMock(skipped=True)
        assert cli.main([str(tmp_path)]) == 0

    def test_validation_error_exits_1(self, mock_publish, no_config_file, tmp_path):
        mock_publish.side_effect = ValidationError("No package.xml found")
        assert cli.main([str(tmp_path)]) == 1

    def test_sync_error_exits_1(self, mock_publish, no_config_file, tmp_path):
        mock_publish.side_effect = IndexMutationError("remove failed")
        assert cli.main([str(tmp_path)]) == 1

    def test_overrides(self, mock_publish, no_config_file, tmp_path, monkeypatch):
        monkeypatch.setenv("ROS_DISTRO", "jazzy")

        cli.main([
            str(tmp_path),
            "--repo", "/srv/apt",
            "--codename", "noble",
            "--arch", "arm64",
            "--skip-release",
        ])

        config = mock_publish.call_args[0][1]
        assert isinstance(config, PublisherConfig)
        assert config.ros_distro == "jazzy"
        assert config.repository.path == "/srv/apt"
        assert config.codename == "noble"
        assert config.architecture == "arm64"
        assert not config.release.enabled

    def test_flag_beats_environment(self, mock_publish, no_config_file, tmp_path, monkeypatch):
        monkeypatch.setenv("ROS_DISTRO", "jazzy")

        cli.main([str(tmp_path), "--ros-distro", "rolling"])

        assert mock_publish.call_args[0][1].ros_distro == "rolling"

    def test_missing_explicit_config(self, mock_publish, tmp_path, capsys):
        assert cli.main([str(tmp_path), "--config", str(tmp_path / "missing.yaml")]) == 1
        assert "Invalid configuration" in capsys.readouterr().err
        mock_publish.assert_not_called()

    def test_invalid_log_level(self, mock_publish, no_config_file, tmp_path):
        assert cli.main([str(tmp_path), "--log-level", "LOUD"]) == 1
        mock_publish.assert_not_called()

    def test_logging_constant_is_not_a_level(self, mock_publish, no_config_file, tmp_path):
        assert cli.main([str(tmp_path), "--log-level", "basic_format"]) == 1
        mock_publish.assert_not_called()

    def test_config_with_empty_section(self, mock_publish, tmp_path, monkeypatch):
        monkeypatch.delenv("ROS_DISTRO", raising=False)
        monkeypatch.delenv("ROSDEB_APT_REPO", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text("repository:\nrelease:\n  enabled: false\n")

        assert cli.main([str(tmp_path), "--config", str(path)]) == 0
        assert not mock_publish.call_args[0][1].release.enabled

    def test_config_section_not_a_mapping(self, mock_publish, tmp_path, capsys):
        path = tmp_path / "config.yaml"
        path.write_text("repository: /srv/apt\n")

        assert cli.main([str(tmp_path), "--config", str(path)]) == 1
        assert "must be a mapping" in capsys.readouterr().err
