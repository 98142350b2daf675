"""
Module implementing the command-line interface and invoking the main logic of cephvol.

cephvol exposes directories of a shared CephFS file system as named volumes to a
container host. It runs as a long-lived driver daemon ("cephvol serve") that receives
the volume requests of the host and mounts and unmounts the volumes on demand. The same
executable doubles as a client for that daemon to create, inspect, mount and remove
volumes by hand.
"""

import os
import signal
import sys
from typing import List, NoReturn, Optional

import cephvol.constants as constants
from cephvol.logger import log, set_debug
import cephvol.operations as operations
from .args import Arguments


def main(arguments: Optional[List[str]] = None) -> NoReturn:
    """
    Run either the driver daemon or a client command with the given arguments.

    Defaults to parsing command-line arguments from sys.argv if none are specified.
    """
    args = Arguments.parse(arguments)

    # Configure debug logging.
    set_debug(args.debug or os.environ.get("DEBUG") == "1")

    ops: operations.Operations

    if args.serve:
        ops = operations.DaemonOperations(args)
    else:
        ops = operations.ClientOperations(args)

    try:
        exit_code = ops.run()
    except KeyboardInterrupt:
        exit_code = 128 + signal.SIGINT
    except Exception as e:
        log.error(f"failed to run command: {e}")
        exit_code = constants.CEPHVOL_ERROR_CODE

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
