"""Module that implements the command-line client of the driver daemon."""

import contextlib
import dataclasses
import json
from typing import Any

import semver

import cephvol.constants as constants
from cephvol.logger import log
import cephvol.rpc as rpc
from cephvol.volumes import VolumeDriverService
from .common import Operations


class ClientOperations(Operations):
    """Class that runs a single command against a running driver daemon."""

    def _run(self, stack: contextlib.ExitStack) -> int:
        """Run the command and print its result."""
        self._config = self._load_config()

        client = rpc.Client(
            VolumeDriverService,
            self._config.driver.endpoint,
            self._config.driver.token,
            self._args.timeout,
        )

        try:
            client.ping()
        except IOError:
            raise RuntimeError(
                f"driver is not reachable at {self._config.driver.endpoint}"
            )

        self._check_protocol(client.protocol_version())

        result = self._call(client)

        if result is not None:
            self._print(result)

        return 0

    @staticmethod
    def _check_protocol(version: str) -> None:
        """Check if the driver daemon speaks a compatible protocol."""
        expected = semver.VersionInfo.parse(constants.PROTOCOL_VERSION)

        if semver.VersionInfo.parse(version).major != expected.major:
            raise RuntimeError(f"incompatible protocol ({version} != {expected})")

    def _call(self, client: rpc.Client) -> Any:
        """Invoke the driver call that corresponds to the command."""
        command = self._args.command
        name = self._args.name

        log.debug(f"running command {command}")

        if command == "capabilities":
            return client.capabilities()
        elif command == "create":
            return client.create(name)
        elif command == "ls":
            return client.list()
        elif command == "inspect":
            return client.get(name)
        elif command == "rm":
            return client.remove(name)
        elif command == "mount":
            return client.mount(name, self._args.id)
        elif command == "unmount":
            return client.unmount(name, self._args.id)
        elif command == "path":
            return client.path(name)
        else:
            raise ValueError(f"unknown command {command}")

    @staticmethod
    def _print(result: Any) -> None:
        """Print dataclasses (or lists of them) as JSON and anything else as is."""
        if isinstance(result, list):
            print(json.dumps([_as_json(r) for r in result], indent=2))
        elif dataclasses.is_dataclass(result):
            print(json.dumps(_as_json(result), indent=2))
        else:
            print(result)


def _as_json(obj: Any) -> Any:
    return dataclasses.asdict(obj) if dataclasses.is_dataclass(obj) else obj
