"""Debian control file generation for ROS packages.

Maps ROS package names onto the ros-<distro>-<name> Debian naming scheme
and renders the DEBIAN/control descriptor for the packager.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .manifest import PackageManifest

BASE_DEPENDENCY = "ros-base"


def debian_name(ros_name: str, ros_distro: str) -> str:
    """Convert a ROS package name to its Debian package name.

    Args:
        ros_name: ROS package name (e.g., "rr_common_base")
        ros_distro: ROS distribution (e.g., "kilted")

    Returns:
        Debian name (e.g., "ros-kilted-rr-common-base")
    """
    return f"ros-{ros_distro}-{ros_name.replace('_', '-')}"


def collapse_dependencies(dependencies: Iterable[str]) -> List[str]:
    """Collapse a dependency list to a sorted list without duplicates."""
    return sorted({dep.strip() for dep in dependencies if dep and dep.strip()})


@dataclass
class ControlDescriptor:
    """Fields of a binary package control file."""

    package: str
    version: str
    architecture: str
    maintainer: str
    description: str
    long_description: str = ""
    depends: List[str] = field(default_factory=list)
    section: str = "misc"
    priority: str = "optional"

    def __post_init__(self) -> None:
        self.depends = collapse_dependencies(self.depends)

    def to_fields(self) -> Dict[str, str]:
        """Return control fields in output order."""
        fields = {
            "Package": self.package,
            "Version": self.version,
            "Section": self.section,
            "Priority": self.priority,
            "Architecture": self.architecture,
        }
        if self.depends:
            fields["Depends"] = ", ".join(self.depends)
        fields["Maintainer"] = self.maintainer
        fields["Description"] = self.description
        return fields

    def render(self) -> str:
        """Render as RFC822 control file text."""
        lines = [f"{key}: {value}" for key, value in self.to_fields().items()]
        for line in self.long_description.splitlines():
            lines.append(f" {line}" if line.strip() else " .")
        return "\n".join(lines) + "\n"

    @property
    def deb_filename(self) -> str:
        """Canonical .deb filename for this descriptor."""
        return f"{self.package}_{self.version}_{self.architecture}.deb"


def build_control(
    manifest: PackageManifest,
    ros_distro: str,
    architecture: str,
    maintainer: str,
) -> ControlDescriptor:
    """Build the control descriptor for a ROS package.

    Args:
        manifest: Parsed package.xml
        ros_distro: ROS distribution
        architecture: Debian architecture
        maintainer: Maintainer field value

    Returns:
        ControlDescriptor with deduplicated, sorted Depends
    """
    depends = [debian_name(BASE_DEPENDENCY, ros_distro)]
    depends.extend(debian_name(dep, ros_distro) for dep in manifest.runtime_dependencies)

    return ControlDescriptor(
        package=debian_name(manifest.name, ros_distro),
        version=manifest.version,
        architecture=architecture,
        maintainer=maintainer,
        description=f"ROS2 {ros_distro} package {manifest.name}",
        long_description=f"Auto-generated Debian package for ROS2 package {manifest.name}.",
        depends=depends,
    )


def parse_control(content: str) -> Dict[str, str]:
    """Parse RFC822-style control text into a field dictionary.

    Continuation lines are joined to their field with newlines.

    Args:
        content: Control file content

    Returns:
        Mapping of field name to value
    """
    fields: Dict[str, str] = {}
    current_key = None
    current_value: List[str] = []

    for line in content.split("\n"):
        if line.startswith(" ") or line.startswith("\t"):
            if current_key:
                current_value.append(line.strip())
        elif ":" in line:
            if current_key:
                fields[current_key] = "\n".join(current_value)
            key, value = line.split(":", 1)
            current_key = key.strip()
            current_value = [value.strip()]
        else:
            if current_key:
                fields[current_key] = "\n".join(current_value)
            current_key = None
            current_value = []

    if current_key:
        fields[current_key] = "\n".join(current_value)

    return fields


DEPENDENCY_FIELDS = ("Pre-Depends", "Depends")


def split_dependencies(fields: Dict[str, str]) -> List[str]:
    """Split the dependency fields of parsed control data into a list.

    Args:
        fields: Field mapping from parse_control

    Returns:
        Dependency clauses in field order (Pre-Depends first)
    """
    dependencies = []
    for dep_field in DEPENDENCY_FIELDS:
        if dep_field in fields:
            deps = fields[dep_field].replace("\n", " ").split(",")
            dependencies.extend(d.strip() for d in deps if d.strip())
    return dependencies
