"""Module that exposes the volume operations as an RPC service."""

from typing import List

from cephvol.constants import PROTOCOL_VERSION
from .common import Capabilities, VolumeInfo
from .coordinator import MountCoordinator


class VolumeDriverService:
    """RPC service that forwards the requests of the container host to the driver."""

    def __init__(self, coordinator: MountCoordinator):
        """Instantiate the service for the given coordinator."""
        self._coordinator = coordinator

    @staticmethod
    def protocol_version() -> str:
        return PROTOCOL_VERSION

    def capabilities(self) -> Capabilities:
        return self._coordinator.capabilities()

    #
    # Volume management
    #

    def create(self, name: str) -> None:
        self._coordinator.create(name)

    def list(self) -> List[VolumeInfo]:
        return self._coordinator.list()

    def get(self, name: str) -> VolumeInfo:
        return self._coordinator.get(name)

    def remove(self, name: str) -> None:
        self._coordinator.remove(name)

    #
    # Mounting
    #

    def mount(self, name: str, client_id: str) -> str:
        return self._coordinator.mount(name, client_id)

    def unmount(self, name: str, client_id: str) -> None:
        self._coordinator.unmount(name, client_id)

    def path(self, name: str) -> str:
        return self._coordinator.path(name)
