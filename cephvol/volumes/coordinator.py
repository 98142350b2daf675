"""Module that decides when volumes are actually mounted and unmounted."""

import os
import os.path
from typing import List

import cephvol.constants as constants
from cephvol.errors import ConflictError, InvalidNameError, MountError, NotFoundError
from cephvol.logger import log
from cephvol.mount import Credentials, MountPrimitive
from cephvol.storage import StorageBackend
from .catalog import VolumeCatalog
from .common import Capabilities, NameLocks, VolumeInfo


class MountCoordinator:
    """
    Implements the volume operations on top of the catalog, backend and mount primitive.

    A volume is only mounted for the first mount request and only unmounted for the
    last matching unmount request, all requests in between just adjust its refcount:

        Absent -> create -> Registered(0) -> mount -> Bound(1) -> mount -> Bound(2)
        Bound(2) -> unmount -> Bound(1) -> unmount -> Registered(0) -> remove -> Absent

    Mounting a volume that was never created registers it on the fly.

    Operations on the same volume name are serialized by a lock per name, which is
    held for the duration of the (potentially slow) backend and mount calls. The
    catalog itself is only locked while a record is read or changed, so a hanging
    mount of one volume doesn't hold up operations on other volumes.

    Some behavior is deliberately left as is:

    * A failed mount leaves the refcount incremented, the caller is expected to
    follow up with an unmount.
    * Removing a volume doesn't check if it is still mounted.
    * A conflicting client ID or mountpoint is logged, but doesn't fail the mount.
    """

    def __init__(
        self,
        catalog: VolumeCatalog,
        backend: StorageBackend,
        mounter: MountPrimitive,
        credentials: Credentials,
        base_dir: str = constants.BASE_DIR,
        mount_root: str = constants.MOUNT_ROOT,
    ):
        """Instantiate the coordinator with its collaborators."""
        self._catalog = catalog
        self._backend = backend
        self._mounter = mounter
        self._credentials = credentials

        self._base_dir = base_dir
        self._mount_root = mount_root

        self._names = NameLocks()

    def capabilities(self) -> Capabilities:
        return Capabilities()

    def create(self, name: str) -> None:
        """Create the remote directory of a volume and register it."""
        log.debug(f"create called: {name}")
        self._check_name(name)

        with self._names.hold(name):
            self._backend.create_directory(name, 0o755)
            self._catalog.touch(name)

    def list(self) -> List[VolumeInfo]:
        """
        List all volumes on the cluster.

        The cluster decides which volumes exist, the catalog only adds the mountpoint
        of the volumes that have been mounted by this driver.
        """
        log.debug("list called")

        known = {v.name: v for v in self._catalog.list()}
        volumes = []

        for name in self._backend.list_directory():
            if name in (".", ".."):
                continue

            volume = known.get(name)
            volumes.append(VolumeInfo(name, volume.local_path if volume else ""))

        return volumes

    def get(self, name: str) -> VolumeInfo:
        """Return a volume with its mountpoint if its remote directory exists."""
        log.debug(f"get called: {name}")
        self._check_name(name)

        with self._names.hold(name):
            if not self._backend.directory_exists(name):
                raise NotFoundError(f"could not find {name} volume")

        return VolumeInfo(name, self.path(name))

    def remove(self, name: str) -> None:
        """Remove the remote directory of a volume and forget about it."""
        log.debug(f"remove called: {name}")
        self._check_name(name)

        with self._names.hold(name):
            volume = self._catalog.get(name)

            if volume is not None and volume.refcount > 0:
                log.warning(
                    f"removing volume {name} while it's mounted {volume.refcount}x"
                )

            self._backend.remove_directory(name)
            self._catalog.forget(name)

    def mount(self, name: str, client_id: str) -> str:
        """Claim a volume for a mount request and return its local mountpoint."""
        log.debug(f"mount called: {name}, {client_id}")
        self._check_name(name)

        with self._names.hold(name):
            try:
                volume = self._catalog.touch(name, client_id, self.path(name), 1)
            except ConflictError as e:
                log.warning(f"mount: {e}")
                volume = e.volume

            # The mountpoint assigned by an earlier mount takes precedence
            mountpoint = volume.local_path

            try:
                os.makedirs(mountpoint, 0o755, exist_ok=True)
            except OSError as e:
                log.error(f"mount: {name} failed to create mountpoint: {e}")
                raise MountError(f"failed to create mountpoint {mountpoint}: {e}")

            if volume.refcount <= 1:
                remote_path = os.path.join(self._base_dir, name)

                try:
                    self._mounter.bind(remote_path, mountpoint, self._credentials)
                except MountError as e:
                    log.error(f"mount: {name} failed: {e}")
                    raise

        return mountpoint

    def unmount(self, name: str, client_id: str) -> None:
        """Release a mount request of a volume and unmount it if it was the last."""
        log.debug(f"unmount called: {name}, {client_id}")
        self._check_name(name)

        with self._names.hold(name):
            volume = self._catalog.get(name)

            if volume is None:
                raise NotFoundError(f"volume {name} is not mounted by this driver")
            elif volume.refcount == 0:
                log.warning(f"unmount: {name} is already unmounted")
                return

            volume = self._catalog.touch(name, delta=-1)

            if volume.refcount == 0:
                try:
                    self._mounter.unbind(volume.local_path or self.path(name))
                except MountError as e:
                    log.error(f"unmount: {name} failed: {e}")
                    raise

    def path(self, name: str) -> str:
        """Return the local mountpoint of a volume."""
        self._check_name(name)

        return os.path.join(self._mount_root, name)

    @staticmethod
    def _check_name(name: str) -> None:
        if not name or name in (".", "..") or "/" in name or "\0" in name:
            raise InvalidNameError(f"invalid volume name '{name}'")
