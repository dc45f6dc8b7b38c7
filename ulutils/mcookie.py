"""Generate a random 128-bit hexadecimal cookie, optionally seeded from files."""

import argparse
import hashlib
import os
import re
import stat
import sys

RANDOM_BYTES = 128
MAX_DEFAULT = 4096
DEFAULT_SEED_READ_BYTES = 1024

_U64_MAX = (1 << 64) - 1
_NUMBER = re.compile(r"\+?[0-9]+")
_BINARY_UNITS = (("KiB", 1), ("MiB", 2), ("GiB", 3), ("TiB", 4))


class ParseSizeError(ValueError):
    """Raised when a size string cannot be understood."""

    def __init__(self, text: str):
        super().__init__(f"Invalid size format: {text}")
        self.text = text


def _parse_number(digits: str, original: str, multiplier: int = 1) -> int:
    if not _NUMBER.fullmatch(digits):
        raise ParseSizeError(original)
    value = int(digits)
    if value > _U64_MAX or value * multiplier > _U64_MAX:
        raise ParseSizeError(original)
    return value * multiplier


def parse_size(text: str) -> int:
    """Parse a byte count with an optional ``B`` suffix or a KiB/MiB/GiB/TiB unit."""
    s = text.strip()

    if s.endswith("B") and not s.endswith("iB"):
        return _parse_number(s[:-1].strip(), s)

    for suffix, exponent in _BINARY_UNITS:
        if s.endswith(suffix):
            return _parse_number(s[: -len(suffix)].strip(), s, 1024**exponent)

    return _parse_number(s, s)


def read_seed(path: str, max_size: int | None) -> bytes:
    """Read seed data from ``path`` (``-`` is stdin), at most ``max_size`` bytes."""
    if path == "-":
        stream = sys.stdin.buffer
        return stream.read() if max_size is None else stream.read(max_size)

    with open(path, "rb") as handle:
        if max_size is not None:
            return handle.read(max_size)
        if stat.S_ISCHR(os.fstat(handle.fileno()).st_mode):
            return handle.read(DEFAULT_SEED_READ_BYTES)
        return handle.read()


def generate_cookie(seeds, random_data: bytes | None = None) -> str:
    """Return the MD5 hex digest of the seed blocks followed by random data."""
    if random_data is None:
        random_data = os.urandom(RANDOM_BYTES)
    hasher = hashlib.md5(usedforsecurity=False)
    for seed in seeds:
        hasher.update(seed)
    hasher.update(random_data)
    return hasher.hexdigest()


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="mcookie", description="Generate magic cookies for xauth."
    )
    parser.add_argument(
        "-f", "--file", action="append", default=[], metavar="file",
        help="use file as a cookie seed",
    )
    parser.add_argument(
        "-m", "--max-size", metavar="num",
        help="limit how much is read from seed files "
        "(supports B suffix or binary units: KiB, MiB, GiB, TiB)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="explain what is being done"
    )
    return parser


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)

    if args.max_size is None:
        max_size = MAX_DEFAULT
    else:
        try:
            max_size = parse_size(args.max_size) or MAX_DEFAULT
        except ParseSizeError:
            print("mcookie: Failed to parse max-size value", file=sys.stderr)
            return 1

    seeds = []
    for path in args.file:
        try:
            data = read_seed(path, max_size)
        except OSError as err:
            print(f"mcookie: cannot open {path}: {err.strerror or err}", file=sys.stderr)
            continue
        if args.verbose:
            name = "stdin" if path == "-" else path
            print(f"Got {len(data)} bytes from {name}", file=sys.stderr)
        seeds.append(data)

    random_data = os.urandom(RANDOM_BYTES)
    if args.verbose:
        print(f"Got {RANDOM_BYTES} bytes from randomness source", file=sys.stderr)

    print(generate_cookie(seeds, random_data))
    return 0


if __name__ == "__main__":
    sys.exit(main())