"""Module defining the command-line arguments and providing a parser for them."""

from __future__ import annotations

import argparse
from typing import List, Optional

from cephvol.constants import PROTOCOL_VERSION, VERSION


class Arguments(argparse.Namespace):
    """Parsed command-line arguments."""

    command: str

    name: Optional[str] = None
    id: Optional[str] = None

    config: str

    endpoint: Optional[str]
    token: Optional[str]

    debug: bool
    timeout: int

    @property
    def serve(self) -> bool:
        """Return whether this process should become the driver daemon."""
        return self.command == "serve"

    @classmethod
    def parse(cls, args: Optional[List[str]] = None) -> Arguments:
        """
        Parse command-line arguments from the given list of strings.

        Defaults to sys.argv if none are specified.
        """
        return cls._get_parser().parse_args(args, namespace=cls())

    @classmethod
    def _get_parser(cls) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="Expose CephFS directories as named container volumes.",
            usage="cephvol [option...] command [arg...]",
        )

        parser.add_argument(
            "--version",
            action="version",
            version=f"%(prog)s {VERSION} (protocol {PROTOCOL_VERSION})",
            help="show the program version and protocol version",
        )

        # Path to (optional) config file
        parser.add_argument(
            "--config",
            type=str,
            help="path to config file (default is /etc/cephvol/cephvol.conf)",
            default="/etc/cephvol/cephvol.conf",
        )

        # Overrides of the driver endpoint and its token
        parser.add_argument(
            "--endpoint", type=str, help="endpoint of the driver daemon"
        )
        parser.add_argument("--token", type=str, help="token of the driver daemon")

        # Enable debug output for development
        parser.add_argument(
            "--debug", action="store_true", help="enable debug information"
        )

        # Configure timeout of client calls
        parser.add_argument(
            "--timeout",
            type=cls._parse_timeout,
            help="timeout for calls to the driver daemon in milliseconds",
            default=5000,
        )

        commands = parser.add_subparsers(dest="command", metavar="command")
        commands.required = True

        commands.add_parser("serve", help="run the volume driver daemon")
        commands.add_parser("capabilities", help="show the driver capabilities")
        commands.add_parser("ls", help="list volumes")

        for command, help in [
            ("create", "create a volume"),
            ("inspect", "show a volume"),
            ("rm", "remove a volume"),
            ("path", "show the mountpoint of a volume"),
        ]:
            sub = commands.add_parser(command, help=help)
            sub.add_argument("name", type=str, help="volume name")

        for command, help in [
            ("mount", "claim and mount a volume"),
            ("unmount", "release and unmount a volume"),
        ]:
            sub = commands.add_parser(command, help=help)
            sub.add_argument("name", type=str, help="volume name")
            sub.add_argument("id", type=str, help="ID of the mount request")

        return parser

    @staticmethod
    def _parse_timeout(arg: str) -> int:
        try:
            val = int(arg)
            assert val > 0
            return val
        except (ValueError, AssertionError):
            raise argparse.ArgumentTypeError("expected number > 0")
