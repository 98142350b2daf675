"""
Modules that manage the remote directories backing the volumes.

Every volume is a directory directly below the base namespace (/docker by default) of
the shared CephFS file system. Creating, removing and listing volumes therefore comes
down to directory operations on the cluster, which are performed through an
administrative mount of the cluster root on the driver host.

The volume logic only depends on the StorageBackend interface, so the directory
operations can be replaced without touching the reference counting.
"""

from .backend import DirectoryBackend, StorageBackend

__all__ = [
    "DirectoryBackend",
    "StorageBackend",
]
