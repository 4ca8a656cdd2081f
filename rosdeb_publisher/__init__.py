"""Build Debian packages from ROS2 packages and publish them to reprepro."""

__version__ = "0.1.0"
