"""Module with the storage backend interface and its CephFS directory implementation."""

from abc import ABC, abstractmethod
import os
import os.path
from typing import Iterator

from cephvol.errors import BackendError, ClusterConnectionError
from cephvol.logger import log


class StorageBackend(ABC):
    """
    Remote directory operations below the base namespace of the cluster.

    Names passed to these functions are single directory names relative to the base
    namespace. The backend is expected to be connected before any of them are used.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the cluster or raise ClusterConnectionError."""

    @abstractmethod
    def ensure_base_directory(self) -> None:
        """Create the base namespace if it doesn't exist yet."""

    @abstractmethod
    def create_directory(self, name: str, mode: int = 0o755) -> None:
        """Create a volume directory or raise BackendError."""

    @abstractmethod
    def remove_directory(self, name: str) -> None:
        """Remove a volume directory or raise BackendError."""

    @abstractmethod
    def list_directory(self) -> Iterator[str]:
        """Iterate over the entries of the base namespace."""

    @abstractmethod
    def directory_exists(self, name: str) -> bool:
        """Check if a volume directory exists."""


class DirectoryBackend(StorageBackend):
    """Backend that works on a locally mounted CephFS file system root."""

    def __init__(self, root: str, base_dir: str):
        """Instantiate a backend for the cluster mounted at root."""
        self._root = root
        self._base_dir = base_dir

    @property
    def base_path(self) -> str:
        """Return the local path of the base namespace."""
        return os.path.join(self._root, self._base_dir.lstrip("/"))

    def connect(self) -> None:
        if not os.path.isdir(self._root):
            raise ClusterConnectionError(f"cluster root {self._root} is not available")

        if not os.path.ismount(self._root):
            log.warning(f"cluster root {self._root} is not a mount point")

    def ensure_base_directory(self) -> None:
        try:
            os.makedirs(self.base_path, mode=0o755, exist_ok=True)
        except OSError as e:
            raise BackendError(f"cannot create base directory {self._base_dir}: {e}")

    def create_directory(self, name: str, mode: int = 0o755) -> None:
        try:
            os.mkdir(self._path(name), mode)
        except OSError as e:
            raise BackendError(f"cannot create directory {name}: {e.strerror}")

    def remove_directory(self, name: str) -> None:
        try:
            os.rmdir(self._path(name))
        except OSError as e:
            raise BackendError(f"cannot remove directory {name}: {e.strerror}")

    def list_directory(self) -> Iterator[str]:
        # Read lazily, every call starts over from the first entry
        try:
            entries = os.scandir(self.base_path)
        except OSError as e:
            raise BackendError(f"cannot list {self._base_dir}: {e.strerror}")

        with entries:
            for entry in entries:
                yield entry.name

    def directory_exists(self, name: str) -> bool:
        # Navigate to the directory and check where we actually ended up
        base = os.path.realpath(self.base_path)
        target = os.path.realpath(self._path(name))

        return os.path.isdir(target) and os.path.dirname(target) == base

    def _path(self, name: str) -> str:
        return os.path.join(self.base_path, name)
