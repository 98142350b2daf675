from unittest import mock
import logging

import pytest

import cephvol.constants as constants
from cephvol.__main__ import main
from cephvol.logger import log


def test_no_args():
    with pytest.raises(SystemExit):
        main([])


def test_debug_flag_set():
    with mock.patch("cephvol.operations.ClientOperations"):
        with pytest.raises(SystemExit):
            main(["--debug", "ls"])

        assert log.getEffectiveLevel() == logging.DEBUG


def test_debug_flag_not_set(monkeypatch):
    monkeypatch.delenv("DEBUG", raising=False)

    with mock.patch("cephvol.operations.ClientOperations"):
        with pytest.raises(SystemExit):
            main(["ls"])

        assert log.getEffectiveLevel() == logging.ERROR


def test_debug_environment(monkeypatch):
    monkeypatch.setenv("DEBUG", "1")

    with mock.patch("cephvol.operations.ClientOperations"):
        with pytest.raises(SystemExit):
            main(["ls"])

        assert log.getEffectiveLevel() == logging.DEBUG


def test_client_operations():
    with mock.patch("cephvol.operations.ClientOperations") as mock_operations:
        mock_operations().run.return_value = 0

        with pytest.raises(SystemExit) as e:
            main(["inspect", "data"])

        assert mock_operations().run.called
        assert e.value.code == 0


def test_daemon_operations():
    with mock.patch("cephvol.operations.DaemonOperations") as mock_operations:
        with pytest.raises(SystemExit):
            main(["serve"])

        assert mock_operations().run.called


def test_command_failure(caplog):
    with mock.patch("cephvol.operations.DaemonOperations") as mock_operations:
        mock_operations().run.side_effect = Exception("foo")

        with pytest.raises(SystemExit) as e:
            main(["serve"])

    assert "failed to run command: foo" in caplog.text
    assert e.value.code == constants.CEPHVOL_ERROR_CODE
