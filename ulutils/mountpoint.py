"""Report whether a path is a mount point."""

import argparse
import os
import sys

_ROOT_INODE = 2


def is_mountpoint(path: str) -> bool:
    """Return whether ``path`` looks like a mount point.

    A path counts when its inode is the usual filesystem root inode, or when
    ``..`` (relative to the working directory) lies on a different device.
    """
    try:
        info = os.stat(path)
    except OSError:
        return False

    if info.st_ino == _ROOT_INODE:
        return True
    try:
        parent = os.stat("..")
    except OSError:
        return False
    return parent.st_dev != info.st_dev


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="mountpoint", description="See if a directory or file is a mountpoint."
    )
    parser.add_argument("path", metavar="PATH", help="Path to check for mountpoint")
    return parser


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    if is_mountpoint(args.path):
        print(f"{args.path} is a mountpoint")
    else:
        print(f"{args.path} is not a mountpoint")
    return 0


if __name__ == "__main__":
    sys.exit(main())