"""
Exceptions raised by the volume operations.

All of them derive from VolumeError so that the RPC transport can reconstruct them by
name on the client side. None of them are retried internally, they are all reported to
the caller of the operation that triggered them.
"""

from typing import Any


class VolumeError(Exception):
    """Base class of all volume driver errors."""


class ClusterConnectionError(VolumeError, ConnectionError):
    """The storage cluster can't be reached at startup."""


class BackendError(VolumeError):
    """A remote directory operation failed (not found, already exists, not empty)."""


class MountError(VolumeError):
    """The local mount or unmount of a volume failed."""


class NotFoundError(VolumeError):
    """The volume name is unknown to the relevant source of truth."""


class InvalidNameError(VolumeError, ValueError):
    """The volume name can't be used as a single directory name."""


class ConflictError(VolumeError):
    """
    A stored client ID or local path disagrees with a newly supplied one.

    The conflict is reported after the refcount change that triggered it has already
    been applied. The resulting record is available as the volume attribute.
    """

    def __init__(self, message: str, volume: Any = None) -> None:
        """Instantiate the exception with the reconciled volume record."""
        super().__init__(message)

        self.volume = volume


# Types that can be faithfully transported over RPC
ALL_ERRORS = (
    VolumeError,
    ClusterConnectionError,
    BackendError,
    MountError,
    NotFoundError,
    InvalidNameError,
    ConflictError,
)
