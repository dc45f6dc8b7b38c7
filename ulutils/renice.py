"""Alter the scheduling priority of a running process."""

import argparse
import os
import re
import sys

_INTEGER = re.compile(r"[+-]?[0-9]+")
_I32_MIN = -(1 << 31)
_I32_MAX = (1 << 31) - 1


def _parse_i32(text: str) -> int | None:
    if not _INTEGER.fullmatch(text):
        return None
    value = int(text)
    return value if _I32_MIN <= value <= _I32_MAX else None


def set_nice(pid: int, value: int) -> None:
    """Set the nice value of process ``pid``; raises ``OSError`` on failure."""
    os.setpriority(os.PRIO_PROCESS, pid, value)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="renice", description="Alter priority of running processes."
    )
    parser.add_argument(
        "nice_value", metavar="NICE_VALUE", help="The new nice value for the process"
    )
    parser.add_argument("pid", metavar="PID", help="The PID of the process")
    return parser


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)

    nice_value = _parse_i32(args.nice_value)
    if nice_value is None:
        print("Invalid nice value", file=sys.stderr)
        return 1

    pid = _parse_i32(args.pid)
    if pid is None or pid < 0:
        print("Invalid PID", file=sys.stderr)
        return 1

    try:
        set_nice(pid, nice_value)
    except OSError as err:
        print(f"Failed to set nice value: {err.strerror or err}", file=sys.stderr)
        return 1

    print(f"Nice value of process {pid} set to {nice_value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())