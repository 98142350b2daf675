"""Docker volume driver for CephFS."""
