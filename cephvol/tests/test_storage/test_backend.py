import os

import pytest

from cephvol.errors import BackendError, ClusterConnectionError
from cephvol.storage import DirectoryBackend


@pytest.fixture
def backend(tmp_path):
    backend = DirectoryBackend(str(tmp_path / "cephfs"), "/docker")

    (tmp_path / "cephfs").mkdir()
    backend.connect()
    backend.ensure_base_directory()

    return backend


def test_connect_missing_root(tmp_path):
    backend = DirectoryBackend(str(tmp_path / "nonexistent"), "/docker")

    with pytest.raises(ClusterConnectionError):
        backend.connect()


def test_ensure_base_directory_idempotent(backend, tmp_path):
    backend.ensure_base_directory()
    backend.ensure_base_directory()

    assert backend.base_path == str(tmp_path / "cephfs" / "docker")
    assert os.path.isdir(backend.base_path)


def test_ensure_base_directory_failure(tmp_path):
    (tmp_path / "cephfs").mkdir()
    (tmp_path / "cephfs" / "docker").write_text("not a directory")

    backend = DirectoryBackend(str(tmp_path / "cephfs"), "/docker")

    with pytest.raises(BackendError):
        backend.ensure_base_directory()


def test_create_directory(backend):
    backend.create_directory("data", 0o755)

    assert os.path.isdir(os.path.join(backend.base_path, "data"))

    with pytest.raises(BackendError) as e:
        backend.create_directory("data")

    assert "cannot create directory data" in str(e.value)


def test_remove_directory(backend):
    backend.create_directory("data")
    backend.remove_directory("data")

    assert not os.path.exists(os.path.join(backend.base_path, "data"))

    with pytest.raises(BackendError):
        backend.remove_directory("data")


def test_remove_nonempty_directory(backend):
    backend.create_directory("data")

    with open(os.path.join(backend.base_path, "data", "file"), "w"):
        pass

    with pytest.raises(BackendError):
        backend.remove_directory("data")


def test_list_directory(backend):
    assert list(backend.list_directory()) == []

    backend.create_directory("a")
    backend.create_directory("b")

    entries = backend.list_directory()

    # Lazy and restartable
    assert not isinstance(entries, list)
    assert sorted(entries) == ["a", "b"]
    assert sorted(backend.list_directory()) == ["a", "b"]


def test_list_missing_base(tmp_path):
    (tmp_path / "cephfs").mkdir()
    backend = DirectoryBackend(str(tmp_path / "cephfs"), "/docker")

    with pytest.raises(BackendError):
        list(backend.list_directory())


def test_directory_exists(backend, tmp_path):
    backend.create_directory("data")

    with open(os.path.join(backend.base_path, "file"), "w"):
        pass

    os.symlink(str(tmp_path), os.path.join(backend.base_path, "escape"))

    assert backend.directory_exists("data")
    assert not backend.directory_exists("ghost")
    assert not backend.directory_exists("file")
    assert not backend.directory_exists("escape")
    assert not backend.directory_exists("")
    assert not backend.directory_exists("..")
