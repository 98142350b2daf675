"""Module that adds flags to pytest to enable certain extra tests."""

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--ceph",
        action="store_true",
        default=False,
        help="Run tests against a real CephFS cluster (requires root)",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "ceph: mark test as requiring a CephFS cluster")


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--ceph"):
        skip_ceph = pytest.mark.skip(reason="only runs with --ceph option")

        for item in items:
            if "ceph" in item.keywords:
                item.add_marker(skip_ceph)
