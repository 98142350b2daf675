"""
Modules that keep track of which volumes are mounted and by how many requests.

The container host sends a mount request for a volume every time a container that uses
it starts, and an unmount request every time such a container stops. Multiple
containers can use the same volume at the same time, but the CephFS directory should
only be mounted once on the host. Therefore the driver counts the outstanding mount
requests per volume in a catalog and only performs the actual mount for the first
request and the actual unmount for the last one.

The catalog is kept in memory only. The cluster remains the source of truth for which
volumes exist, the catalog only knows about their local mount state.
"""

from .catalog import Volume, VolumeCatalog
from .common import Capabilities, VolumeInfo
from .coordinator import MountCoordinator
from .service import VolumeDriverService

__all__ = [
    "Capabilities",
    "MountCoordinator",
    "Volume",
    "VolumeCatalog",
    "VolumeDriverService",
    "VolumeInfo",
]
