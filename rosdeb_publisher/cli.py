"""Command-line interface for rosdeb-publisher."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import yaml

from . import __version__
from .common.config import PublisherConfig, load_typed_config
from .common.errors import PublisherError
from .common.logger import get_logger, setup_logger
from .pipeline import publish_package

logger = get_logger("cli")

EPILOG = """\
Version is extracted from package.xml automatically.
A GitHub release is created before building the debian package.

Example:
  rosdeb-publish ~/ws/rr_mousebot/src/rr_common_base
"""


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="rosdeb-publish",
        description="Build a Debian package from a ROS2 package and publish it to a reprepro repository.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "package_dir",
        nargs="?",
        type=Path,
        help="Path to the ROS2 package source directory",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--repo", help="reprepro base directory (overrides config)")
    parser.add_argument("--codename", help="Distribution codename (default: from /etc/lsb-release)")
    parser.add_argument("--arch", help="Debian architecture (default: dpkg --print-architecture)")
    parser.add_argument("--ros-distro", help="ROS distribution (default: $ROS_DISTRO or kilted)")
    parser.add_argument(
        "--skip-release",
        action="store_true",
        help="Do not create a GitHub release",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def apply_arguments(config: PublisherConfig, args: argparse.Namespace) -> PublisherConfig:
    """Apply command-line overrides on top of file and environment settings."""
    if args.repo:
        config.repository.path = args.repo
    if args.codename:
        config.codename = args.codename
    if args.arch:
        config.architecture = args.arch
    if args.ros_distro:
        config.ros_distro = args.ros_distro
    if args.skip_release:
        config.release.enabled = False
    if args.log_level:
        config.logging.level = args.log_level
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point.

    Returns:
        0 on success or when the version was already published, 1 otherwise
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.package_dir is None:
        parser.print_help(sys.stderr)
        return 1

    try:
        config = apply_arguments(load_typed_config(args.config), args)
    except (FileNotFoundError, TypeError, yaml.YAMLError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    try:
        setup_logger(
            level=config.logging.level,
            log_dir=config.logging.log_dir,
            file_logging=config.logging.file_logging,
        )
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1

    try:
        result = publish_package(args.package_dir, config)
    except PublisherError as e:
        logger.error(str(e))
        return 1

    if not result.skipped:
        logger.info("Done!")
    return 0
