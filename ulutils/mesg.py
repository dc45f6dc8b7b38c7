"""Show or change whether others may write to your terminal."""

import argparse
import os
import stat
import sys

_GROUP_WRITE = 0o020
_GROUP_OTHER_WRITE = 0o022


class NotATerminalError(OSError):
    """Raised when none of stdin, stdout and stderr is a terminal."""

    def __init__(self):
        super().__init__("stdin/stdout/stderr is not a terminal")


def new_mode(mode: int, enable: str) -> int:
    """Return ``mode`` with write access granted (``"y"``) or revoked (``"n"``).

    Granting only sets the group write bit; revoking clears group and other.
    """
    if enable == "y":
        return mode | _GROUP_WRITE
    return mode & ~_GROUP_OTHER_WRITE


def messages_allowed(mode: int) -> bool:
    """Return whether ``mode`` lets group or others write to the terminal."""
    return bool(mode & _GROUP_OTHER_WRITE)


def find_terminal_fd() -> int:
    """Return the first of stdin, stdout and stderr that is a terminal."""
    for fd in (0, 1, 2):
        if os.isatty(fd):
            return fd
    raise NotATerminalError()


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="mesg", description="Control write access of other users to your terminal."
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Explain what is being done"
    )
    parser.add_argument(
        "enable", nargs="?", choices=("y", "n"),
        help="Whether to allow or disallow messages",
    )
    return parser


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        fd = find_terminal_fd()
        mode = os.fstat(fd).st_mode
        if args.enable is None:
            if messages_allowed(mode):
                print("is y")
                return 0
            print("is n")
            return 1

        os.fchmod(fd, stat.S_IMODE(new_mode(mode, args.enable)))
        if args.verbose:
            state = "allowed" if args.enable == "y" else "denied"
            print(f"write access to your terminal is {state}")
        return 1 if args.enable == "n" else 0
    except OSError as err:
        print(f"mesg: {err}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())