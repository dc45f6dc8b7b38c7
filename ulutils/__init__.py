"""Small system administration utilities for Linux: lsmem, lslocks, mcookie, rev, mesg, mountpoint and renice."""

__version__ = "0.0.1"