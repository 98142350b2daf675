"""Modules that implement the roles of cephvol: driver daemon and client."""

from .client import ClientOperations
from .common import Operations
from .daemon import DaemonOperations

__all__ = [
    "ClientOperations",
    "DaemonOperations",
    "Operations",
]
