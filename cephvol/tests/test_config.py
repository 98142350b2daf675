from configparser import ConfigParser

import pytest

import cephvol.constants as constants
from cephvol.config import CephConfig, Config, DriverConfig


def test_ceph_config_defaults():
    parser = ConfigParser()
    parser.read_string("[ceph]")

    cfg = CephConfig.load(parser["ceph"])

    assert cfg.client_name == "admin"
    assert cfg.base_dir == constants.BASE_DIR
    assert cfg.keyring_path == "/etc/ceph/ceph.client.admin.keyring"


def test_driver_config_load():
    parser = ConfigParser()
    parser.read_string(
        """
        [driver]
        mount_root = /mnt/volumes
        endpoint = tcp://127.0.0.1:1234
        token = abc
        workers = 8
        """
    )

    cfg = DriverConfig.load(parser["driver"])

    assert cfg.mount_root == "/mnt/volumes"
    assert cfg.endpoint == "tcp://127.0.0.1:1234"
    assert cfg.token == "abc"
    assert cfg.workers == 8


def test_config_defaults(tmpdir):
    cfg = Config.load(str(tmpdir / "nonexistent"))

    assert cfg.ceph.root == "/mnt/cephfs"
    assert cfg.driver.mount_root == constants.MOUNT_ROOT
    assert cfg.driver.token is None


def test_config_load(tmp_path):
    (tmp_path / "config").write_text(
        """
        [ceph]
        client_name = docker
        servers = 10.0.0.1,10.0.0.2
        base_dir = /volumes

        [driver]
        workers = 2
        """
    )

    cfg = Config.load(str(tmp_path / "config"))

    assert cfg.ceph.client_name == "docker"
    assert cfg.ceph.servers == "10.0.0.1,10.0.0.2"
    assert cfg.ceph.base_dir == "/volumes"
    assert cfg.driver.workers == 2


def test_config_load_failure_nonfatal(tmp_path):
    (tmp_path / "config").write_text("blabla")

    cfg = Config.load(str(tmp_path / "config"))

    assert cfg.ceph is not None
    assert cfg.driver is not None


def test_environment_overrides():
    cfg = Config()
    cfg.apply_environment(
        {"DEBUG": "1", "CLIENT_NAME": "docker", "SECRET": "s3cr3t", "SERVERS": "mon1"}
    )

    assert cfg.debug
    assert cfg.ceph.client_name == "docker"
    assert cfg.ceph.secret == "s3cr3t"
    assert cfg.ceph.servers == "mon1"


def test_environment_without_overrides():
    cfg = Config()
    cfg.apply_environment({"DEBUG": "0"})

    assert not cfg.debug
    assert cfg.ceph.client_name == "admin"
    assert cfg.ceph.secret == ""


def test_secret_from_config():
    assert CephConfig(secret="abc").resolve_secret() == "abc"


def test_secret_from_keyring(tmp_path):
    (tmp_path / "keyring").write_text(
        "[client.docker]\n\tkey = AQBvaBFZAAAAABAA9VHgwCggQOe7kL4VPcF6xw==\n"
    )

    cfg = CephConfig(client_name="docker", keyring=str(tmp_path / "keyring"))

    assert cfg.resolve_secret() == "AQBvaBFZAAAAABAA9VHgwCggQOe7kL4VPcF6xw=="


def test_secret_missing_is_fatal(tmp_path):
    (tmp_path / "keyring").write_text("[client.admin]\n\tkey = abc\n")

    cfg = CephConfig(client_name="docker", keyring=str(tmp_path / "keyring"))

    with pytest.raises(RuntimeError) as e:
        cfg.resolve_secret()

    assert "unable to find the secret key" in str(e.value)


def test_servers_from_ceph_conf(tmp_path):
    (tmp_path / "ceph.conf").write_text(
        "[global]\nfsid = 1234\nmon host = 10.0.0.1:6789,10.0.0.2:6789\n"
    )

    cfg = CephConfig(conf=str(tmp_path / "ceph.conf"))

    assert cfg.resolve_servers() == "10.0.0.1:6789,10.0.0.2:6789"


def test_servers_fallback(tmp_path):
    cfg = CephConfig(conf=str(tmp_path / "nonexistent"))

    assert cfg.resolve_servers() == constants.DEFAULT_SERVERS

    cfg.servers = "mon1"
    assert cfg.resolve_servers() == "mon1"
