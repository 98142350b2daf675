"""Shared functionality between the driver daemon and the command-line client."""

from abc import ABC
import contextlib

from cephvol.args import Arguments
from cephvol.config import Config
from cephvol.logger import log


class Operations(ABC):
    """Base class for the logic of one of the roles of cephvol."""

    def __init__(self, args: Arguments):
        """Initialize operations based on command-line arguments."""
        self._args = args
        self._config = Config()

    def run(self) -> int:
        """Run the operations and clean up properly in case of errors."""
        with contextlib.ExitStack() as stack:
            return self._run(stack)

        # https://github.com/python/mypy/issues/7726
        assert False, "unreachable"

    def _run(self, stack: contextlib.ExitStack) -> int:
        """Run the actual operations."""
        raise NotImplementedError()

    def _load_config(self) -> Config:
        """Load the config file with environment and command-line overrides."""
        config = Config.load(self._args.config)
        config.apply_environment()

        if self._args.endpoint:
            config.driver.endpoint = self._args.endpoint
        if self._args.token:
            config.driver.token = self._args.token

        log.debug(f"using driver endpoint {config.driver.endpoint}")

        return config
