"""Module that binds remote CephFS directories into the local file system."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import subprocess
from typing import List

from cephvol.errors import MountError
from cephvol.logger import log


@dataclass
class Credentials:
    """Ceph client name and its secret key."""

    client_name: str
    secret: str = field(repr=False)

    @property
    def options(self) -> str:
        """Return the credentials as mount options."""
        return f"name={self.client_name},secret={self.secret}"


class MountPrimitive(ABC):
    """Interface of the (blocking) OS facility to mount remote directories."""

    @abstractmethod
    def bind(self, remote_path: str, local_path: str, credentials: Credentials) -> None:
        """Mount the remote path at the local path or raise MountError."""

    @abstractmethod
    def unbind(self, local_path: str) -> None:
        """Unmount the local path or raise MountError."""


class KernelMount(MountPrimitive):
    """Mount through the CephFS kernel client using mount(8) and umount(8)."""

    def __init__(self, servers: str):
        """Instantiate for the given comma separated list of monitors."""
        self._servers = servers

    def bind(self, remote_path: str, local_path: str, credentials: Credentials) -> None:
        source = f"{self._servers}:{remote_path}"

        log.debug(
            f"mount -t ceph {source} {local_path} -o name={credentials.client_name}"
        )

        self._run(
            ["mount", "-t", "ceph", source, local_path, "-o", credentials.options],
            local_path,
        )

    def unbind(self, local_path: str) -> None:
        log.debug(f"umount {local_path}")

        self._run(["umount", local_path], local_path)

    @staticmethod
    def _run(command: List[str], local_path: str) -> None:
        try:
            subprocess.run(
                command,
                check=True,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except subprocess.CalledProcessError as e:
            reason = e.stderr.decode(errors="replace").strip()
            raise MountError(
                f"{command[0]} {local_path} failed: {reason or e.returncode}"
            )
        except OSError as e:
            raise MountError(f"failed to run {command[0]}: {e}")
