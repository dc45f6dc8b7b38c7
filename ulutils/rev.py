"""Reverse the bytes of every line of files or standard input."""

import argparse
import sys
from typing import BinaryIO, Iterator

_CHUNK = 64 * 1024


def _records(stream: BinaryIO, separator: bytes) -> Iterator[bytes]:
    """Yield records, each ending in ``separator`` except possibly the last."""
    pending = bytearray()
    while chunk := stream.read(_CHUNK):
        first, *rest = chunk.split(separator)
        pending += first
        for part in rest:
            yield bytes(pending) + separator
            pending = bytearray(part)
    if pending:
        yield bytes(pending)


def reverse_stream(stream: BinaryIO, output: BinaryIO, separator: bytes = b"\n") -> None:
    """Write every record of ``stream`` to ``output`` with its bytes reversed."""
    for record in _records(stream, separator):
        if record.endswith(separator):
            output.write(record[:-1][::-1] + separator)
        else:
            output.write(record[::-1])


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="rev", description="Reverse lines characterwise.")
    parser.add_argument("files", nargs="*", metavar="FILE", help="Paths of files to reverse")
    parser.add_argument(
        "-0", "--zero", action="store_true",
        help="Zero termination. Use the byte '\\0' as line separator.",
    )
    return parser


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    separator = b"\0" if args.zero else b"\n"
    output = sys.stdout.buffer
    status = 0

    if not args.files:
        try:
            reverse_stream(sys.stdin.buffer, output, separator)
        except OSError:
            pass
        output.flush()
        return status

    for path in args.files:
        try:
            handle = open(path, "rb")
        except OSError:
            status = 1
            output.flush()
            print(f"rev: cannot open {path}: No such file or directory", file=sys.stderr)
            continue
        with handle:
            try:
                reverse_stream(handle, output, separator)
            except OSError as err:
                status = 1
                output.flush()
                print(f"rev: cannot read {path}: {err.strerror or err}", file=sys.stderr)
    output.flush()
    return status


if __name__ == "__main__":
    sys.exit(main())