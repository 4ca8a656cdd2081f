"""Exception hierarchy for rosdeb-publisher.

Every failure surfaced to the operator derives from PublisherError so the
CLI can map the whole family to a single non-zero exit code.
"""


class PublisherError(RuntimeError):
    """Base exception for all publisher errors."""


class ValidationError(PublisherError):
    """Package descriptor or input is missing or malformed."""


class BuildError(PublisherError):
    """External builder or packager failed."""


class ReleaseError(PublisherError):
    """Creating the tagged release failed."""


class StoreAccessError(PublisherError):
    """Repository store is unreachable or unwritable."""


class ArchiveError(PublisherError):
    """Copying a superseded artifact into the archive failed."""


class IndexMutationError(PublisherError):
    """Removing or including an index entry failed.

    The repository may be left in a recoverable inconsistent state
    (archived copy present, old entry still indexed, or no entry at all
    after a failed include).
    """
