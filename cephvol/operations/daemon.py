"""Module that implements the volume driver daemon."""

import contextlib
import os
import os.path

import fasteners

from cephvol.logger import log, set_debug
from cephvol.mount import Credentials, KernelMount
import cephvol.rpc as rpc
from cephvol.storage import DirectoryBackend
from cephvol.volumes import MountCoordinator, VolumeCatalog, VolumeDriverService
from .common import Operations


class DaemonOperations(Operations):
    """Class that sets up the driver and serves requests until it is killed."""

    def _run(self, stack: contextlib.ExitStack) -> int:
        """Run the driver daemon."""
        self._config = self._load_config()

        if self._config.debug:
            set_debug(True)

        # Only a single driver may keep track of the mounts on this host
        lock = self._acquire_process_lock(self._config.driver.lock_file)
        stack.callback(lock.release)

        coordinator = self._init_coordinator()

        server = rpc.Server(
            VolumeDriverService(coordinator),
            self._config.driver.token,
            self._config.driver.workers,
        )

        endpoint = self._config.driver.endpoint
        self._prepare_endpoint(endpoint)

        log.info(f"serving volumes of {self._config.ceph.base_dir} on {endpoint}")

        server.serve(endpoint)

    def _init_coordinator(self) -> MountCoordinator:
        """Connect to the cluster and set up the volume logic."""
        ceph = self._config.ceph

        credentials = Credentials(ceph.client_name, ceph.resolve_secret())
        servers = ceph.resolve_servers()

        log.debug(f"connecting to {servers} as client.{ceph.client_name}")

        # Connection failures are fatal, there is no point in running without cluster
        backend = DirectoryBackend(ceph.root, ceph.base_dir)
        backend.connect()
        backend.ensure_base_directory()

        return MountCoordinator(
            catalog=VolumeCatalog(),
            backend=backend,
            mounter=KernelMount(servers),
            credentials=credentials,
            base_dir=ceph.base_dir,
            mount_root=self._config.driver.mount_root,
        )

    @staticmethod
    def _acquire_process_lock(path: str) -> fasteners.InterProcessLock:
        """Take the lock file or fail if another driver holds it."""
        os.makedirs(os.path.dirname(path), exist_ok=True)

        lock = fasteners.InterProcessLock(path)

        if not lock.acquire(blocking=False):
            raise RuntimeError(f"another driver is already running ({path} is locked)")

        return lock

    @staticmethod
    def _prepare_endpoint(endpoint: str) -> None:
        """Create the directory of an IPC endpoint."""
        if endpoint.startswith("ipc://"):
            socket_dir = os.path.dirname(endpoint[len("ipc://") :])

            if socket_dir:
                os.makedirs(socket_dir, exist_ok=True)
