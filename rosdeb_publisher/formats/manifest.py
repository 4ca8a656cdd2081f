"""ROS package manifest (package.xml) parsing.

Parses the manifest into a typed descriptor with an XML parser instead of
matching tags textually.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..common.errors import ValidationError
from ..common.logger import get_logger

logger = get_logger("manifest")

MANIFEST_FILENAME = "package.xml"
DEFAULT_VERSION = "0.1.0"

# Dependency tags that end up as runtime Depends of the binary package
RUNTIME_DEPENDENCY_TAGS = ("depend", "exec_depend")


@dataclass
class Maintainer:
    """A <maintainer> entry."""

    name: str
    email: Optional[str] = None

    def __str__(self) -> str:
        if self.email:
            return f"{self.name} <{self.email}>"
        return self.name


@dataclass
class PackageManifest:
    """Metadata parsed from a package.xml."""

    name: str
    version: str
    path: Path
    description: str = ""
    maintainers: List[Maintainer] = field(default_factory=list)
    depends: List[str] = field(default_factory=list)
    exec_depends: List[str] = field(default_factory=list)

    @property
    def runtime_dependencies(self) -> List[str]:
        """Dependencies needed at runtime, in manifest order."""
        return self.depends + self.exec_depends


def _text(element: Optional[ET.Element]) -> str:
    if element is None or element.text is None:
        return ""
    return " ".join(element.text.split())


def parse_manifest(package_dir: Path) -> PackageManifest:
    """Parse the package.xml of a ROS package source directory.

    Args:
        package_dir: Package source directory

    Returns:
        PackageManifest

    Raises:
        ValidationError: If package.xml is missing, malformed or has no name
    """
    package_dir = Path(package_dir)
    manifest_path = package_dir / MANIFEST_FILENAME

    if not manifest_path.is_file():
        raise ValidationError(f"No {MANIFEST_FILENAME} found in {package_dir}")

    try:
        root = ET.parse(manifest_path).getroot()
    except ET.ParseError as e:
        raise ValidationError(f"Malformed {manifest_path}: {e}") from e

    if root.tag != "package":
        raise ValidationError(f"{manifest_path} has no <package> root element")

    name = _text(root.find("name"))
    if not name:
        raise ValidationError(f"Could not extract package name from {manifest_path}")

    version = _text(root.find("version"))
    if not version:
        logger.warning(
            f"Could not extract version from {manifest_path}, defaulting to {DEFAULT_VERSION}"
        )
        version = DEFAULT_VERSION

    maintainers = [
        Maintainer(name=_text(elem), email=elem.get("email") or None)
        for elem in root.findall("maintainer")
        if _text(elem)
    ]

    dependencies = {
        tag: [_text(elem) for elem in root.findall(tag) if _text(elem)]
        for tag in RUNTIME_DEPENDENCY_TAGS
    }

    return PackageManifest(
        name=name,
        version=version,
        path=package_dir,
        description=_text(root.find("description")),
        maintainers=maintainers,
        depends=dependencies["depend"],
        exec_depends=dependencies["exec_depend"],
    )
