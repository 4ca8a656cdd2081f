"""Common utilities for rosdeb-publisher."""

from .logger import setup_logger, get_logger
from .config import load_config, load_typed_config
from .errors import (
    PublisherError,
    ValidationError,
    BuildError,
    ReleaseError,
    StoreAccessError,
    ArchiveError,
    IndexMutationError,
)

__all__ = [
    "ArchiveError",
    "BuildError",
    "IndexMutationError",
    "PublisherError",
    "ReleaseError",
    "StoreAccessError",
    "ValidationError",
    "get_logger",
    "load_config",
    "load_typed_config",
    "setup_logger",
]
