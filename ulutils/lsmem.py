"""List the ranges of available memory with their online status."""

import argparse
import enum
import json
import os
import sys
from dataclasses import dataclass

from ulutils.humansize import size_to_human_string
from ulutils.lsmem_blocks import (
    DEFAULT_COLUMNS,
    PATH_SYS_MEMORY,
    SPLIT_COLUMNS,
    Column,
    MemoryInfo,
    MemoryState,
    SplitOptions,
    ZoneId,
    read_memory_info,
)


class Summary(enum.Enum):
    """When to print the summary below the table."""

    NEVER = "never"
    ALWAYS = "always"
    ONLY = "only"


@dataclass
class TableRow:
    """The formatted cells of one memory range."""

    range: str = ""
    size: str = ""
    state: str = ""
    removable: str = ""
    block: str = ""
    node: str = ""
    zones: str = ""

    def value(self, column: Column) -> str:
        """Return the cell shown in ``column``."""
        return getattr(self, column.name.lower())


def create_rows(info: MemoryInfo, in_bytes: bool) -> list:
    """Build one row for every merged block range in ``info``."""
    rows = []
    for block in info.blocks:
        start = block.index * info.block_size
        size = block.count * info.block_size
        row = TableRow(
            range=f"0x{start:016x}-0x{start + size - 1:016x}",
            size=str(size) if in_bytes else size_to_human_string(size),
            state="?" if block.state is MemoryState.UNKNOWN else str(block.state),
            removable="yes" if block.removable else "no",
            block=str(block.index) if block.count == 1
            else f"{block.index}-{block.last_index}",
        )
        if info.have_nodes:
            row.node = str(block.node)
        if info.have_zones:
            row.zones = "/".join(
                str(zone) for zone in block.zones if zone is not ZoneId.UNKNOWN
            )
        rows.append(row)
    return rows


def _align(text: str, column: Column, width: int) -> str:
    return text.rjust(width) if column.float_right() else text.ljust(width)


def format_table(rows, columns, noheadings: bool) -> str:
    """Format ``rows`` as an aligned table, one line per row."""
    widths = [
        max([column.width_hint(), *(len(row.value(column)) for row in rows)])
        for column in columns
    ]
    lines = []
    if not noheadings:
        lines.append(" ".join(
            _align(column.value, column, width) for column, width in zip(columns, widths)
        ))
    for row in rows:
        lines.append(" ".join(
            _align(row.value(column), column, width)
            for column, width in zip(columns, widths)
        ))
    return "".join(line + "\n" for line in lines)


def format_json(rows, columns, in_bytes: bool) -> str:
    """Format ``rows`` as a JSON document under the key ``memory``."""
    records = []
    for row in rows:
        record = {}
        for column in columns:
            value = row.value(column)
            if column is Column.SIZE and in_bytes:
                record[column.value.lower()] = int(value)
            else:
                record[column.value.lower()] = value
        records.append(record)

    text = json.dumps({"memory": records}, indent=2, ensure_ascii=False)
    text = text.replace("  ", "   ").replace("},\n      {", "},{")
    text = text.replace('"yes"', "true").replace('"no"', "false")
    return text + "\n"


def format_pairs(rows, columns) -> str:
    """Format ``rows`` as ``NAME="value"`` pairs, one line per row."""
    return "".join(
        " ".join(f'{column.value}="{row.value(column)}"' for column in columns) + "\n"
        for row in rows
    )


def format_raw(rows, columns, noheadings: bool) -> str:
    """Format ``rows`` as space separated cells without alignment."""
    lines = []
    if not noheadings:
        lines.append(" ".join(column.value for column in columns))
    lines.extend(" ".join(row.value(column) for column in columns) for row in rows)
    return "".join(line + "\n" for line in lines)


def format_summary(info: MemoryInfo, in_bytes: bool) -> str:
    """Format the block size and the online and offline totals."""
    figures = (
        ("Memory block size:", info.block_size),
        ("Total online memory:", info.mem_online),
        ("Total offline memory:", info.mem_offline),
    )
    if in_bytes:
        return "".join(f"{label:<23} {value:>15}\n" for label, value in figures)
    return "".join(
        f"{label:<23} {size_to_human_string(value):>5}\n" for label, value in figures
    )


def _column_list(text: str) -> list:
    columns = []
    for name in text.split(","):
        try:
            columns.append(Column(name.upper()))
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid value '{name}'") from None
    return columns


def _split_list(text: str) -> list:
    allowed = {column.value: column for column in SPLIT_COLUMNS}
    columns = []
    for name in text.split(","):
        try:
            columns.append(allowed[name.upper()])
        except KeyError:
            raise argparse.ArgumentTypeError(f"invalid value '{name}'") from None
    return columns


def _summary(text: str) -> Summary:
    try:
        return Summary(text.lower())
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid value '{text}'") from None


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    """Return the command-line parser of ``lsmem``."""
    epilog = "Available output columns:\n" + "\n".join(
        f"{column.value:>11}  {column.help()}" for column in Column
    )
    parser = _ArgumentParser(
        prog="lsmem",
        description="List the ranges of available memory with their online status.",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    formats = parser.add_mutually_exclusive_group()
    formats.add_argument("-J", "--json", action="store_true",
                         help="use JSON output format")
    formats.add_argument("-P", "--pairs", action="store_true",
                         help='use key="value" output format')
    formats.add_argument("-r", "--raw", action="store_true",
                         help="use raw output format")
    formats.add_argument("--summary", nargs="?", const=Summary.ONLY, type=_summary,
                         metavar="when", help="print summary information")

    merging = parser.add_mutually_exclusive_group()
    merging.add_argument("-a", "--all", action="store_true",
                         help="list each individual memory block")
    merging.add_argument("-S", "--split", type=_split_list, metavar="list",
                         help="split ranges by specified columns")

    parser.add_argument("-b", "--bytes", action="store_true",
                        help="print SIZE in bytes rather than in human readable format")
    parser.add_argument("-n", "--noheadings", action="store_true",
                        help="don't print headings")
    parser.add_argument("-o", "--output", type=_column_list, metavar="list",
                        help="output columns")
    parser.add_argument("--output-all", action="store_true", help="output all columns")
    parser.add_argument("-s", "--sysroot", metavar="dir",
                        help="use the specified directory as system root")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    columns = args.output or (list(Column) if args.output_all else list(DEFAULT_COLUMNS))
    split_columns = args.split or columns
    split = SplitOptions(
        list_all=args.all,
        state=Column.STATE in split_columns,
        removable=Column.REMOVABLE in split_columns,
        node=Column.NODE in split_columns,
        zones=Column.ZONES in split_columns,
    )

    want_summary = not (args.json or args.pairs or args.raw)
    want_table = True
    if args.summary is Summary.NEVER:
        want_summary = False
    elif args.summary is Summary.ONLY:
        want_table = False

    sysmem = PATH_SYS_MEMORY
    if args.sysroot is not None:
        sysmem = args.sysroot.rstrip(os.sep) + os.sep + sysmem.lstrip(os.sep)

    try:
        info = read_memory_info(sysmem, split)
    except (OSError, ValueError) as err:
        print(f"lsmem: {err}", file=sys.stderr)
        return 1

    rows = create_rows(info, args.bytes)
    out = sys.stdout
    if want_table:
        if args.json:
            out.write(format_json(rows, columns, args.bytes))
        elif args.pairs:
            out.write(format_pairs(rows, columns))
        elif args.raw:
            out.write(format_raw(rows, columns, args.noheadings))
        else:
            out.write(format_table(rows, columns, args.noheadings))

    if want_table and want_summary:
        out.write("\n")
    if want_summary:
        out.write(format_summary(info, args.bytes))
    out.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())