"""Module with the in-memory record of the local mount state of each volume."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Dict, List, Optional

import fasteners

from cephvol.errors import ConflictError


@dataclass
class Volume:
    """
    Local mount state of a named volume.

    The client ID is the mount request that first claimed the volume and the local path
    is where it is mounted. Both are empty until the first mount and don't change once
    set. The refcount is the number of outstanding mount requests and is never negative.
    """

    name: str
    client_id: str = ""
    local_path: str = ""
    refcount: int = 0


class VolumeCatalog:
    """
    Mapping of volume names to their mount state, safe to use from multiple threads.

    The catalog only lives in memory. After a restart of the driver every volume is
    considered unmounted again and mounts left behind by the previous process are no
    longer managed.

    Records handed out by the catalog are copies, changes only happen through touch()
    and forget().
    """

    def __init__(self) -> None:
        """Instantiate an empty catalog."""
        self._volumes: Dict[str, Volume] = {}
        self._lock = fasteners.ReaderWriterLock()

    def touch(
        self, name: str, client_id: str = "", local_path: str = "", delta: int = 0
    ) -> Volume:
        """
        Register a volume or adjust its refcount, and return the resulting record.

        A new volume starts with a refcount of delta. For a known volume the refcount is
        changed by delta (but not below zero) and empty fields are filled in with the
        given values. Given values that disagree with already stored values raise a
        ConflictError, but only after all other changes have been applied. The error
        carries the resulting record.
        """
        conflicts = []

        with self._lock.write_lock():
            volume = self._volumes.get(name)

            if volume is None:
                volume = Volume(name, client_id, local_path, max(0, delta))
                self._volumes[name] = volume
            else:
                volume.refcount = max(0, volume.refcount + delta)

                if not volume.client_id:
                    volume.client_id = client_id
                elif client_id and volume.client_id != client_id:
                    conflicts.append(
                        f"client ID doesn't match: stored({volume.client_id}),"
                        f" given({client_id})"
                    )

                if not volume.local_path:
                    volume.local_path = local_path
                elif local_path and volume.local_path != local_path:
                    conflicts.append(
                        f"local path doesn't match: stored({volume.local_path}),"
                        f" given({local_path})"
                    )

            snapshot = dataclasses.replace(volume)

        if conflicts:
            raise ConflictError(f"volume {name}: {', '.join(conflicts)}", snapshot)

        return snapshot

    def get(self, name: str) -> Optional[Volume]:
        """Return the record of a volume or None if it isn't known."""
        with self._lock.read_lock():
            volume = self._volumes.get(name)

            return dataclasses.replace(volume) if volume else None

    def forget(self, name: str) -> None:
        """Remove the record of a volume, regardless of its refcount."""
        with self._lock.write_lock():
            self._volumes.pop(name, None)

    def list(self) -> List[Volume]:
        """Return the records of all known volumes in no particular order."""
        with self._lock.read_lock():
            return [dataclasses.replace(v) for v in self._volumes.values()]

    def __len__(self) -> int:
        """Return the number of known volumes."""
        with self._lock.read_lock():
            return len(self._volumes)
