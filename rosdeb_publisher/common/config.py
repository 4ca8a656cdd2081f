"""Configuration management for rosdeb-publisher.

Handles loading of the optional YAML configuration file, environment
overrides and host detection for the distribution codename and
architecture.
"""

import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ValidationError


DEFAULT_CONFIG_PATH = "~/.config/rosdeb-publisher/config.yaml"
DEFAULT_ROS_DISTRO = "kilted"
DEFAULT_REPO_PATH = "~/ws/rr-apt"
DEFAULT_LSB_RELEASE = "/etc/lsb-release"

# Environment variables consulted after the config file
ENV_ROS_DISTRO = "ROS_DISTRO"
ENV_REPO_PATH = "ROSDEB_APT_REPO"


@dataclass
class RepositoryConfig:
    """Configuration for the local reprepro repository."""

    path: str = DEFAULT_REPO_PATH
    archive_dir: Optional[str] = None  # defaults to <path>/archive
    lock: bool = True

    @property
    def base_path(self) -> Path:
        """Expanded repository base directory."""
        return Path(os.path.expanduser(self.path))

    @property
    def archive_path(self) -> Path:
        """Expanded archive directory."""
        if self.archive_dir:
            return Path(os.path.expanduser(self.archive_dir))
        return self.base_path / "archive"


@dataclass
class ReleaseConfig:
    """Configuration for tagged release creation."""

    enabled: bool = True
    remote: str = "origin"


@dataclass
class LoggingConfig:
    """Configuration for log output."""

    level: str = "INFO"
    log_dir: Optional[str] = None
    file_logging: bool = False


@dataclass
class PublisherConfig:
    """Top-level configuration for rosdeb-publisher."""

    ros_distro: str = DEFAULT_ROS_DISTRO
    codename: Optional[str] = None  # detected from /etc/lsb-release if unset
    architecture: Optional[str] = None  # detected from dpkg if unset
    maintainer: Optional[str] = None  # taken from package.xml if unset
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def parse_repository_config(repo_dict: Dict[str, Any]) -> RepositoryConfig:
    """Parse a repository configuration dictionary.

    Args:
        repo_dict: Repository configuration dictionary

    Returns:
        RepositoryConfig instance
    """
    return RepositoryConfig(
        path=repo_dict.get("path", DEFAULT_REPO_PATH),
        archive_dir=repo_dict.get("archive_dir"),
        lock=repo_dict.get("lock", True),
    )


def parse_release_config(release_dict: Dict[str, Any]) -> ReleaseConfig:
    """Parse a release configuration dictionary.

    Args:
        release_dict: Release configuration dictionary

    Returns:
        ReleaseConfig instance
    """
    return ReleaseConfig(
        enabled=release_dict.get("enabled", True),
        remote=release_dict.get("remote", "origin"),
    )


def parse_logging_config(logging_dict: Dict[str, Any]) -> LoggingConfig:
    """Parse a logging configuration dictionary.

    Args:
        logging_dict: Logging configuration dictionary

    Returns:
        LoggingConfig instance
    """
    return LoggingConfig(
        level=logging_dict.get("level", "INFO"),
        log_dir=logging_dict.get("log_dir"),
        file_logging=logging_dict.get("file_logging", False),
    )


def _section(config_dict: Dict[str, Any], key: str) -> Dict[str, Any]:
    """Get a nested section; an empty (null) section counts as absent."""
    section = config_dict.get(key) or {}
    if not isinstance(section, dict):
        raise TypeError(
            f"Configuration section '{key}' must be a mapping, got {type(section).__name__}"
        )
    return section


def parse_config(config_dict: Dict[str, Any]) -> PublisherConfig:
    """Parse the full configuration dictionary.

    Args:
        config_dict: Full configuration dictionary

    Returns:
        PublisherConfig instance

    Raises:
        TypeError: If a section is not a mapping
    """
    return PublisherConfig(
        ros_distro=config_dict.get("ros_distro", DEFAULT_ROS_DISTRO),
        codename=config_dict.get("codename"),
        architecture=config_dict.get("architecture"),
        maintainer=config_dict.get("maintainer"),
        repository=parse_repository_config(_section(config_dict, "repository")),
        release=parse_release_config(_section(config_dict, "release")),
        logging=parse_logging_config(_section(config_dict, "logging")),
    )


def apply_environment(
    config: PublisherConfig, environ: Optional[Mapping[str, str]] = None
) -> PublisherConfig:
    """Apply environment variable overrides to a parsed configuration.

    Args:
        config: Parsed configuration
        environ: Environment mapping (defaults to os.environ)

    Returns:
        The same configuration instance, updated in place
    """
    if environ is None:
        environ = os.environ

    if environ.get(ENV_ROS_DISTRO):
        config.ros_distro = environ[ENV_ROS_DISTRO]
    if environ.get(ENV_REPO_PATH):
        config.repository.path = environ[ENV_REPO_PATH]

    return config


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    config_file = Path(os.path.expanduser(config_path))

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_file.open("r") as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise TypeError(
            f"Configuration root must be a mapping, got {type(config).__name__}"
        )

    return _expand_env_vars(config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in configuration.

    Args:
        obj: Configuration object (dict, list, str, etc.)

    Returns:
        Configuration with expanded environment variables
    """
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return os.path.expandvars(obj)
    else:
        return obj


def load_typed_config(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> PublisherConfig:
    """Load and parse configuration into typed dataclass.

    An explicitly given config path must exist. Without one, the default
    location is used if present and built-in defaults otherwise.

    Args:
        config_path: Path to configuration file
        environ: Environment mapping for overrides (defaults to os.environ)

    Returns:
        PublisherConfig instance

    Raises:
        FileNotFoundError: If an explicit config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is not None:
        config_dict = load_config(config_path)
    else:
        try:
            config_dict = load_config(DEFAULT_CONFIG_PATH)
        except FileNotFoundError:
            config_dict = {}

    return apply_environment(parse_config(config_dict), environ)


def detect_codename(lsb_release: str = DEFAULT_LSB_RELEASE) -> str:
    """Read the distribution codename from an lsb-release file.

    Args:
        lsb_release: Path to the lsb-release file

    Returns:
        Codename such as "noble"

    Raises:
        ValidationError: If the file is unreadable or has no codename
    """
    try:
        content = Path(lsb_release).read_text(encoding="utf-8")
    except OSError as e:
        raise ValidationError(f"Cannot read {lsb_release}: {e}") from e

    for line in content.splitlines():
        key, sep, value = line.partition("=")
        if sep and key.strip() == "DISTRIB_CODENAME":
            codename = value.strip().strip('"')
            if codename:
                return codename

    raise ValidationError(f"No DISTRIB_CODENAME found in {lsb_release}")


def detect_architecture() -> str:
    """Ask dpkg for the host's Debian architecture.

    Returns:
        Architecture such as "amd64"

    Raises:
        ValidationError: If dpkg is unavailable or fails
    """
    try:
        result = subprocess.run(
            ["dpkg", "--print-architecture"],
            capture_output=True,
            check=True,
            timeout=10,
        )
    except FileNotFoundError as e:
        raise ValidationError("dpkg not available - cannot detect architecture") from e
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.decode() if e.stderr else str(e)
        raise ValidationError(f"dpkg --print-architecture failed: {stderr}") from e

    return result.stdout.decode().strip()
