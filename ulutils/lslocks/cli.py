"""List the file locks held on the system."""

import argparse
import os
import re
import shutil
import stat
import sys
from pathlib import Path

from ulutils.lslocks.columns import (
    COLUMN_INFOS,
    ColumnFlag,
    JsonType,
    collect_output_columns,
    parse_output_columns,
)
from ulutils.lslocks.display import describe_holders, describe_size
from ulutils.lslocks.errors import LsLocksError, LsLocksIOError
from ulutils.lslocks.procfs import PATH_PROC, parse_lock_line, proc_pid_command_name, read_lines
from ulutils.lslocks.table import OutputMode, Table

_SIGNED = re.compile(r"[+-]?[0-9]+")
_I32_MIN = -(1 << 31)
_I32_MAX = (1 << 31) - 1
_LOCK_PREFIX = b"lock:"


def _parse_i32(text: str):
    if not _SIGNED.fullmatch(text):
        return None
    value = int(text)
    return value if _I32_MIN <= value <= _I32_MAX else None


def _is_dir_or_unknown(entry) -> bool:
    try:
        if entry.is_dir(follow_symlinks=False):
            return True
        if entry.is_file(follow_symlinks=False) or entry.is_symlink():
            return False
        mode = entry.stat(follow_symlinks=False).st_mode
    except OSError as err:
        raise LsLocksIOError("reading directory entry type", err, entry.path) from err
    return not (
        stat.S_ISREG(mode)
        or stat.S_ISLNK(mode)
        or stat.S_ISBLK(mode)
        or stat.S_ISCHR(mode)
        or stat.S_ISFIFO(mode)
        or stat.S_ISSOCK(mode)
    )


def pid_locks_from_fdinfo(fdinfo_dir, process_id, command_name, no_inaccessible=False,
                          proc_root=PATH_PROC):
    """Yield the locks listed in the fdinfo files of one process.

    A directory that cannot be read yields nothing; a file that stops being
    readable ends its own lines only.
    """
    try:
        entries = list(os.scandir(fdinfo_dir))
    except OSError:
        return

    for entry in entries:
        file_descriptor = _parse_i32(entry.name)
        if file_descriptor is None:
            continue
        path = Path(entry.path)
        lines = read_lines(path)
        while True:
            try:
                line = next(lines)
            except StopIteration:
                break
            except LsLocksError:
                break
            if not line.startswith(_LOCK_PREFIX):
                continue
            suffix = line[len(_LOCK_PREFIX):].strip()
            lock = parse_lock_line(
                suffix,
                path,
                no_inaccessible=no_inaccessible,
                process_id=process_id,
                file_descriptor=file_descriptor,
                command_name=command_name,
                pid_locks=None,
                proc_root=proc_root,
            )
            if lock is not None:
                yield lock


def collect_pid_locks(no_inaccessible=False, proc_root=PATH_PROC) -> list:
    """Return the locks every process reports through its fdinfo files."""
    root = Path(proc_root)
    try:
        entries = list(os.scandir(root))
    except OSError as err:
        raise LsLocksIOError("reading directory", err, root) from err

    pid_locks = []
    for entry in entries:
        process_id = _parse_i32(entry.name)
        if process_id is None:
            continue
        if not _is_dir_or_unknown(entry):
            continue
        path = Path(entry.path)
        try:
            command_name = proc_pid_command_name(path)
        except LsLocksError:
            command_name = ""
        try:
            for lock in pid_locks_from_fdinfo(
                path / "fdinfo", process_id, command_name, no_inaccessible, proc_root
            ):
                pid_locks.append(lock)
        except LsLocksError:
            continue
    return pid_locks


def collect_proc_locks(no_inaccessible=False, pid_locks=(), proc_root=PATH_PROC) -> list:
    """Return the locks listed in ``<proc_root>/locks``."""
    path = Path(proc_root) / "locks"
    pid_locks = list(pid_locks)
    proc_locks = []
    for line in read_lines(path):
        lock = parse_lock_line(
            line,
            path,
            no_inaccessible=no_inaccessible,
            process_id=None,
            file_descriptor=-1,
            command_name="",
            pid_locks=pid_locks,
            proc_root=proc_root,
        )
        if lock is not None:
            proc_locks.append(lock)
    return proc_locks


def build_table(columns, mode, in_bytes=False, noheadings=False, no_truncate=False) -> Table:
    """Return an empty table with one column per entry of ``columns``."""
    termwidth = None
    if mode is OutputMode.NONE and sys.stdout.isatty():
        termwidth = shutil.get_terminal_size().columns
    table = Table(
        mode=mode,
        name="locks" if mode is OutputMode.JSON else None,
        headings=not noheadings,
        termwidth=termwidth,
    )
    for info in columns:
        flags = info.flags
        if no_truncate:
            flags &= ~ColumnFlag.TRUNC
        table.add_column(info.id, info.width_hint, flags, info.json_type_for(in_bytes))
    return table


def _blocker(lock, proc_locks):
    if not lock.blocked or lock.id == -1:
        return None
    found = next(
        (other for other in proc_locks if not other.blocked and other.id == lock.id), None
    )
    return str(found.process_id) if found is not None else None


def _cell(column_id, lock, mode, in_bytes, pid_locks, proc_locks):
    if column_id == "PID":
        return str(lock.process_id)
    if column_id == "INODE":
        return str(lock.inode)
    if column_id == "M":
        return "1" if lock.mandatory else "0"
    if column_id == "START":
        return str(lock.start)
    if column_id == "END":
        return str(lock.end)
    if column_id == "SIZE":
        return describe_size(lock.size, in_bytes) if lock.size is not None else None
    if column_id == "TYPE":
        return lock.kind
    if column_id == "MAJ:MIN":
        major = os.major(lock.device_id)
        minor = os.minor(lock.device_id)
        if mode in (OutputMode.JSON, OutputMode.RAW):
            return f"{major}:{minor}"
        return f"{major:3}:{minor:<3}"
    if column_id == "MODE":
        return lock.mode + "*" if lock.blocked else lock.mode
    if column_id == "COMMAND":
        return lock.command_name
    if column_id == "PATH":
        return lock.path
    if column_id == "BLOCKER":
        return _blocker(lock, proc_locks)
    if column_id == "HOLDERS":
        return describe_holders(lock, pid_locks)
    return None


def fill_table(table, columns, mode, target_pid, in_bytes, pid_locks, proc_locks) -> None:
    """Add a row for each lock of ``proc_locks``, newest first."""
    for lock in reversed(proc_locks):
        if target_pid is not None and lock.process_id != target_pid:
            continue
        table.add_row(
            _cell(info.id, lock, mode, in_bytes, pid_locks, proc_locks) for info in columns
        )


def _list_columns(mode) -> str:
    table = Table(mode=mode, name="columns" if mode is OutputMode.JSON else None)
    table.add_column("NAME", 8, ColumnFlag.NONE, JsonType.STRING)
    table.add_column("TYPE", 8, ColumnFlag.NONE, JsonType.STRING)
    for info in COLUMN_INFOS:
        table.add_row([info.id, info.default_json_type.value])
    return table.render()


def _output_type(text: str):
    try:
        return parse_output_columns(text)
    except LsLocksError as err:
        raise argparse.ArgumentTypeError(str(err)) from None


def _pid_type(text: str) -> int:
    value = _parse_i32(text)
    if value is None:
        raise argparse.ArgumentTypeError(f"invalid value '{text}'")
    return value


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    """Return the command-line parser of ``lslocks``."""
    parser = _ArgumentParser(prog="lslocks", description="List local system locks.")
    parser.add_argument("-b", "--bytes", action="store_true",
                        help="print SIZE in bytes rather than in human readable format")
    parser.add_argument("-i", "--noinaccessible", action="store_true",
                        help="ignore locks without read permissions")
    formats = parser.add_mutually_exclusive_group()
    formats.add_argument("-J", "--json", action="store_true", help="use JSON output format")
    formats.add_argument("-r", "--raw", action="store_true",
                         help="use the raw output format")
    parser.add_argument("-H", "--list-columns", action="store_true",
                        help="list the available columns")
    parser.add_argument("-n", "--noheadings", action="store_true",
                        help="don't print headings")
    parser.add_argument("-o", "--output", type=_output_type, metavar="list",
                        help="output columns (see --list-columns)")
    parser.add_argument("--output-all", action="store_true", help="output all columns")
    parser.add_argument("-p", "--pid", type=_pid_type, metavar="pid",
                        help="display only locks held by this process")
    parser.add_argument("-u", "--notruncate", action="store_true",
                        help="don't truncate text in columns")
    return parser


def _conflicts_with_list_columns(args) -> list:
    given = {
        "--bytes": args.bytes,
        "--noinaccessible": args.noinaccessible,
        "--noheadings": args.noheadings,
        "--output": args.output is not None,
        "--output-all": args.output_all,
        "--pid": args.pid is not None,
        "--notruncate": args.notruncate,
    }
    return [name for name, present in given.items() if present]


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.json:
        mode = OutputMode.JSON
    elif args.raw:
        mode = OutputMode.RAW
    else:
        mode = OutputMode.NONE

    if args.list_columns:
        conflicts = _conflicts_with_list_columns(args)
        if conflicts:
            parser.error(
                f"the argument '--list-columns' cannot be used with '{conflicts[0]}'"
            )
        sys.stdout.write(_list_columns(mode))
        sys.stdout.flush()
        return 0

    try:
        columns = collect_output_columns(args.output, args.output_all)
        table = build_table(columns, mode, args.bytes, args.noheadings, args.notruncate)
        pid_locks = collect_pid_locks(args.noinaccessible, PATH_PROC)
        proc_locks = collect_proc_locks(args.noinaccessible, pid_locks, PATH_PROC)
        fill_table(table, columns, mode, args.pid, args.bytes, pid_locks, proc_locks)
        sys.stdout.write(table.render())
        sys.stdout.flush()
    except LsLocksError as err:
        print(f"lslocks: {err}", file=sys.stderr)
        return err.exit_code
    return 0


if __name__ == "__main__":
    sys.exit(main())