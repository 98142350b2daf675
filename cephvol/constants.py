"""Module defining various global constants."""

# cephvol version
VERSION = "1.0.0"

# cephvol protocol between the command-line client and the driver daemon
# The major version must be identical on client and daemon.
PROTOCOL_VERSION = "1.0.0"

# Special exit code for when cephvol itself fails.
CEPHVOL_ERROR_CODE = 254

# Remote directory under which all volume directories live.
BASE_DIR = "/docker"

# Local directory under which volumes are mounted for containers.
MOUNT_ROOT = "/var/lib/docker-volumes"

# Volumes are backed by the shared cluster, so every host sees the same names.
SCOPE = "global"

# Fallback monitor address if neither the config nor ceph.conf provides one.
DEFAULT_SERVERS = "192.168.1.1"
