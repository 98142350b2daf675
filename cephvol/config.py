"""Module for configuration variables with defaults that are overridable by a file."""

from __future__ import annotations

from configparser import ConfigParser, SectionProxy
from dataclasses import dataclass, field
import os
from typing import Mapping, Optional

import cephvol.constants as constants
from cephvol.logger import log


@dataclass
class CephConfig:
    """Configuration variables related to the connection with the storage cluster."""

    client_name: str = "admin"
    secret: str = ""
    servers: str = ""

    keyring: str = ""
    conf: str = "/etc/ceph/ceph.conf"

    # Local administrative mount of the cluster root
    root: str = "/mnt/cephfs"
    base_dir: str = constants.BASE_DIR

    @staticmethod
    def load(section: SectionProxy) -> CephConfig:
        """Load overridden variables from a section within a config file."""
        config = CephConfig()

        config.client_name = section.get("client_name", fallback=config.client_name)
        config.secret = section.get("secret", fallback=config.secret)
        config.servers = section.get("servers", fallback=config.servers)

        config.keyring = section.get("keyring", fallback=config.keyring)
        config.conf = section.get("conf", fallback=config.conf)

        config.root = section.get("root", fallback=config.root)
        config.base_dir = section.get("base_dir", fallback=config.base_dir)

        return config

    @property
    def keyring_path(self) -> str:
        """Return the keyring file to read the secret from if none is configured."""
        return self.keyring or f"/etc/ceph/ceph.client.{self.client_name}.keyring"

    def resolve_secret(self) -> str:
        """
        Return the configured secret or read it from the client keyring.

        Raises a RuntimeError if no secret can be found, since nothing can be mounted
        without it.
        """
        if self.secret:
            return self.secret

        parser = ConfigParser(interpolation=None)

        try:
            with open(self.keyring_path, "r") as f:
                parser.read_string(f.read(), self.keyring_path)

            return parser[f"client.{self.client_name}"]["key"].strip()
        except Exception as e:
            raise RuntimeError(
                "unable to find the secret key, set CLIENT_NAME and/or SECRET"
                f" ({self.keyring_path}: {e})"
            )

    def resolve_servers(self) -> str:
        """Return the configured monitors, those in ceph.conf, or the fallback."""
        if self.servers:
            return self.servers

        parser = ConfigParser(interpolation=None)

        try:
            with open(self.conf, "r") as f:
                parser.read_string(f.read(), self.conf)

            section = parser["global"]
            servers = section.get("mon host") or section.get("mon_host")
        except Exception as e:
            log.info(f"no monitors found in {self.conf}: {e}")
            servers = None

        return servers.strip() if servers else constants.DEFAULT_SERVERS


@dataclass
class DriverConfig:
    """Configuration variables related to the driver daemon."""

    mount_root: str = constants.MOUNT_ROOT

    endpoint: str = "ipc:///run/cephvol/cephvol.sock"
    token: Optional[str] = None
    workers: int = 4

    lock_file: str = "/run/cephvol/cephvol.lock"

    @staticmethod
    def load(section: SectionProxy) -> DriverConfig:
        """Load overridden variables from a section within a config file."""
        config = DriverConfig()

        config.mount_root = section.get("mount_root", fallback=config.mount_root)

        config.endpoint = section.get("endpoint", fallback=config.endpoint)
        config.token = section.get("token", fallback=config.token)
        config.workers = section.getint("workers", fallback=config.workers)

        config.lock_file = section.get("lock_file", fallback=config.lock_file)

        return config


@dataclass
class Config:
    """Configuration variables."""

    ceph: CephConfig = field(default_factory=CephConfig)
    driver: DriverConfig = field(default_factory=DriverConfig)

    debug: bool = False

    @staticmethod
    def load(filename: str) -> Config:
        """Load overridden configuration variables from a config file."""
        parser = ConfigParser(interpolation=None)

        config = Config()

        try:
            with open(filename, "r") as f:
                parser.read_string(f.read(), filename)

            if "ceph" in parser:
                config.ceph = CephConfig.load(parser["ceph"])
            if "driver" in parser:
                config.driver = DriverConfig.load(parser["driver"])
        except FileNotFoundError:
            log.info(f"no config file at {filename}")
        except Exception as e:
            # An unreadable config file is not considered a fatal error since we can
            # fall back to defaults.
            log.error(f"failed to read config file {filename}: {e}")
        else:
            log.info(f"loaded config from {filename}")

        return config

    def apply_environment(self, environ: Mapping[str, str] = os.environ) -> None:
        """Override variables with the DEBUG, CLIENT_NAME, SECRET, SERVERS variables."""
        if "DEBUG" in environ:
            self.debug = environ["DEBUG"] == "1"

        self.ceph.client_name = environ.get("CLIENT_NAME", self.ceph.client_name)
        self.ceph.secret = environ.get("SECRET", self.ceph.secret)
        self.ceph.servers = environ.get("SERVERS", self.ceph.servers)
