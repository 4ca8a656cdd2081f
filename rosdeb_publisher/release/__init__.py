"""Tagged release creation ahead of packaging."""

from .github import GitHubReleasePublisher, ReleaseRequest

__all__ = ["GitHubReleasePublisher", "ReleaseRequest"]
