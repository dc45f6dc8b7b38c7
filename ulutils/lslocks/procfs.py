"""Reading lock information from the proc filesystem."""

import os
import re
from dataclasses import dataclass
from pathlib import Path

from ulutils.lslocks.errors import LsLocksError, LsLocksIOError

PATH_PROC = "/proc"
PATH_PROC_LOCKS = "/proc/locks"
PATH_PROC_MOUNTINFO = "/proc/self/mountinfo"

_INVALID_DATA = "invalid data"
_NOT_FOUND = "entity not found"

_SIGNED = re.compile(rb"[+-]?[0-9]+")
_UNSIGNED = re.compile(rb"\+?[0-9]+")
_HEX = re.compile(rb"\+?[0-9a-fA-F]+")
_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")

_I32 = (-(1 << 31), (1 << 31) - 1)
_I64 = (-(1 << 63), (1 << 63) - 1)
_U32 = (0, (1 << 32) - 1)
_U64 = (0, (1 << 64) - 1)


@dataclass
class LockInfo:
    """One file lock, as listed in ``/proc/locks`` or a process's fdinfo."""

    command_name: str | None = None
    process_id: int = 0
    path: str | None = None
    kind: str = ""
    mode: str = ""
    start: int = 0
    end: int = 0
    inode: int = 0
    device_id: int = 0
    mandatory: bool = False
    blocked: bool = False
    size: int | None = None
    file_descriptor: int = -1
    id: int = -1

    def same_lock(self, other: "LockInfo") -> bool:
        """Return whether ``other`` describes the same lock on the same file."""
        return (
            self.start == other.start
            and self.end == other.end
            and self.inode == other.inode
            and self.device_id == other.device_id
            and self.mandatory == other.mandatory
            and self.blocked == other.blocked
            and self.kind == other.kind
            and self.mode == other.mode
        )


def read_lines(path):
    """Open ``path`` and return an iterator over its lines as bytes.

    The line ending (``\\n`` or ``\\r\\n``) is removed from every line.
    """
    try:
        handle = open(path, "rb")
    except OSError as err:
        raise LsLocksIOError("opening file", err, path) from err
    return _iter_lines(handle, path)


def _iter_lines(handle, path):
    with handle:
        while True:
            try:
                line = handle.readline()
            except OSError as err:
                raise LsLocksIOError("reading file", err, path) from err
            if not line:
                return
            if line.endswith(b"\n"):
                line = line[:-1]
            if line.endswith(b"\r"):
                line = line[:-1]
            yield line


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="surrogateescape")


def proc_pid_command_name(proc_path) -> str:
    """Return the command name stored in ``<proc_path>/comm``."""
    path = Path(proc_path) / "comm"
    try:
        contents = path.read_bytes()
    except OSError as err:
        raise LsLocksIOError("reading file", err, path) from err
    if contents.endswith(b"\0"):
        contents = contents[:-1]
    if contents.endswith(b"\n"):
        contents = contents[:-1]
    if b"\0" in contents:
        raise LsLocksIOError(_INVALID_DATA, _INVALID_DATA, path)
    return _decode(contents)


def path_and_size_of_inode(pid: int, inode: int, proc_root=PATH_PROC):
    """Return ``(path, size)`` of the file with ``inode`` that ``pid`` has open."""
    fd_dir = Path(proc_root) / str(pid) / "fd"
    try:
        entries = list(os.scandir(fd_dir))
    except OSError as err:
        raise LsLocksIOError("reading directory", err, fd_dir) from err

    for entry in entries:
        if not entry.name.isascii() or not entry.name.isdigit():
            continue
        entry_path = Path(entry.path)
        try:
            info = os.stat(entry_path)
        except OSError as err:
            raise LsLocksIOError("reading file metadata", err, entry_path) from err
        if info.st_ino == inode:
            try:
                target = os.readlink(entry_path)
            except OSError as err:
                raise LsLocksIOError("reading symbolic link", err, entry_path) from err
            return target, info.st_size

    raise LsLocksIOError("looking for inode open in process", _NOT_FOUND)


def _unescape(text: str) -> str:
    return _OCTAL_ESCAPE.sub(lambda match: chr(int(match.group(1), 8)), text)


def _mount_devno(field: str) -> int | None:
    major, sep, minor = field.partition(":")
    if not sep or not major.isdigit() or not minor.isdigit():
        return None
    return os.makedev(int(major), int(minor))


def fall_back_file_name(device_id: int, mountinfo=PATH_PROC_MOUNTINFO) -> str:
    """Return ``<mount point>/...`` for the last mount of ``device_id``."""
    try:
        with open(mountinfo, encoding="utf-8", errors="surrogateescape") as handle:
            lines = handle.read().splitlines()
    except OSError as err:
        raise LsLocksIOError("mnt_new_table_from_file", _INVALID_DATA, mountinfo) from err

    for line in reversed(lines):
        fields = line.split()
        if len(fields) < 5:
            continue
        if _mount_devno(fields[2]) == device_id:
            target = _unescape(fields[4])
            break
    else:
        raise LsLocksIOError("mnt_table_find_devno", _NOT_FOUND)

    try:
        target.encode("utf-8")
    except UnicodeEncodeError:
        raise LsLocksIOError("data is not UTF-8", _INVALID_DATA) from None

    separator = "" if target.endswith("/") else "/"
    return f"{target}{separator}..."


def _number(data: bytes, pattern, bounds, base: int, error) -> int:
    if not pattern.fullmatch(data):
        raise error
    value = int(data, base)
    low, high = bounds
    if not low <= value <= high:
        raise error
    return value


def _text(data: bytes, error) -> str:
    if b"\0" in data:
        raise error
    return _decode(data)


def parse_lock_line(
    line,
    source,
    no_inaccessible=False,
    process_id=None,
    file_descriptor=-1,
    command_name="",
    pid_locks=None,
    proc_root=PATH_PROC,
):
    """Parse one lock line; return ``None`` if it is hidden by ``no_inaccessible``.

    Without ``process_id`` the line comes from ``/proc/locks`` and holds the
    lock id and owner; with it the line comes from a process's fdinfo.
    """
    if isinstance(line, str):
        line = line.encode("utf-8", errors="surrogateescape")
    error = LsLocksIOError("parsing lock information", _INVALID_DATA, source)
    elements = iter(line.split())

    def next_element() -> bytes:
        try:
            return next(elements)
        except StopIteration:
            raise error from None

    first = next_element()
    if process_id is None:
        if not first.endswith(b":"):
            raise error
        lock_id = _number(first[:-1], _SIGNED, _I64, 10, error)
    else:
        lock_id = -1

    blocked = False
    while True:
        element = next_element()
        if element != b"->":
            kind = _text(element, error)
            break
        blocked = True

    mandatory = next_element().startswith(b"M")
    mode = _text(next_element(), error)

    unknown_command_name = False
    owner = next_element()
    if process_id is not None:
        pid = process_id
        command = command_name
    else:
        pid = _number(owner, _SIGNED, _I32, 10, error)
        command = None
        if pid > 0:
            try:
                command = proc_pid_command_name(Path(proc_root) / str(pid))
            except LsLocksError:
                unknown_command_name = True

    parts = iter(next_element().split(b":"))
    try:
        major = _number(next(parts), _HEX, _U32, 16, error)
        minor = _number(next(parts), _HEX, _U32, 16, error)
        inode = _number(next(parts), _UNSIGNED, _U64, 10, error)
    except StopIteration:
        raise error from None
    device_id = os.makedev(major, minor)

    element = next_element()
    start = 0 if element == b"EOF" else _number(element, _UNSIGNED, _U64, 10, error)
    element = next_element()
    end = 0 if element == b"EOF" else _number(element, _UNSIGNED, _U64, 10, error)

    lock = LockInfo(
        command_name=command,
        process_id=pid,
        kind=kind,
        mode=mode,
        start=start,
        end=end,
        inode=inode,
        device_id=device_id,
        mandatory=mandatory,
        blocked=blocked,
        file_descriptor=file_descriptor,
        id=lock_id,
    )

    if pid_locks is not None and lock.command_name is None and not blocked:
        found = next((other for other in pid_locks if other.same_lock(lock)), None)
        if found is not None:
            lock.process_id = found.process_id
            lock.command_name = found.command_name

    if lock.command_name is None:
        lock.command_name = "(unknown)" if unknown_command_name else "(undefined)"

    try:
        lock.path, lock.size = path_and_size_of_inode(lock.process_id, inode, proc_root)
    except LsLocksError:
        lock.path, lock.size = None, None

    if lock.path is None:
        if no_inaccessible:
            return None
        try:
            lock.path = fall_back_file_name(
                device_id, Path(proc_root) / "self" / "mountinfo"
            )
        except LsLocksError:
            lock.path = None

    return lock