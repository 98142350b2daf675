import pytest

from cephvol.args import Arguments


def test_no_args():
    with pytest.raises(SystemExit):
        Arguments.parse([])


def test_serve():
    args = Arguments.parse(["serve"])

    assert args.serve
    assert args.name is None
    assert not args.debug


def test_client_command():
    args = Arguments.parse(["--debug", "mount", "data", "c1"])

    assert not args.serve
    assert args.command == "mount"
    assert args.name == "data"
    assert args.id == "c1"
    assert args.debug


def test_commands_require_name():
    for command in ["create", "inspect", "rm", "path", "mount", "unmount"]:
        with pytest.raises(SystemExit):
            Arguments.parse([command])


def test_unknown_command():
    with pytest.raises(SystemExit):
        Arguments.parse(["format", "data"])


def test_endpoint_and_token():
    args = Arguments.parse(["--endpoint=tcp://127.0.0.1:1234", "--token=abc", "ls"])

    assert args.endpoint == "tcp://127.0.0.1:1234"
    assert args.token == "abc"


def test_timeout():
    args = Arguments.parse(["--timeout=1234", "ls"])
    assert args.timeout == 1234

    with pytest.raises(SystemExit):
        Arguments.parse(["--timeout=-1", "ls"])
