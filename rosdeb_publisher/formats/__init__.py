"""Package descriptor formats.

Reads ROS package manifests and produces Debian control descriptors and
binary packages from them.
"""

from .manifest import Maintainer, PackageManifest, parse_manifest
from .control import (
    ControlDescriptor,
    build_control,
    debian_name,
    parse_control,
    split_dependencies,
)
from .deb import DebPackager

__all__ = [
    "ControlDescriptor",
    "DebPackager",
    "Maintainer",
    "PackageManifest",
    "build_control",
    "debian_name",
    "parse_control",
    "parse_manifest",
    "split_dependencies",
]
