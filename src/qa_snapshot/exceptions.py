"""
qa_snapshot/exceptions.py

Exceptions raised while capturing and converting page snapshots.

Contains:
- SnapshotError: Base class for everything below
- StructuralIntegrityError: Flat map inconsistent with its own paths
- FrameUnavailableError: Frame context vanished mid-capture
- UnsupportedTargetError: Capture requested for an unknown object type
- ResourceError, ConfigurationError: Bundled assets or config files unusable
"""


class SnapshotError(Exception):
    """
    Base class for snapshot capture errors.
    """


class StructuralIntegrityError(SnapshotError):
    """
    Raised when the flat path map returned by the element query cannot be
    turned into a tree: no unique root, a path whose parent is missing, or a
    malformed path step. Fatal to the document being converted.
    """


class FrameUnavailableError(SnapshotError):
    """
    Raised when a frame's browsing context cannot be reached. Frame recursion
    catches it and drops that frame's subtree.
    """


class UnsupportedTargetError(SnapshotError, TypeError):
    """
    Raised when capture is requested for an object that is neither a page,
    an element handle nor a locator.
    """

    def __init__(self, target: object) -> None:
        self.target_type = type(target)
        super().__init__(
            f"Cannot capture objects of {self.target_type.__module__}.{self.target_type.__qualname__}"
        )


class ResourceError(SnapshotError):
    """
    Raised when a bundled resource (query script, YAML file) cannot be read.
    """


class ConfigurationError(ResourceError):
    """
    Raised when attribute or default-value configuration is missing or invalid.
    """
