"""Reading memory blocks from sysfs and merging them into ranges."""

import enum
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

PATH_SYS_MEMORY = "/sys/devices/system/memory"

_MEMORY_PREFIX = "memory"
_NODE_PREFIX = "node"
_BLOCK_SIZE_BYTES = "block_size_bytes"
_REMOVABLE = "removable"
_STATE = "state"
_VALID_ZONES = "valid_zones"

_UNSIGNED = re.compile(r"\+?[0-9]+")
_SIGNED = re.compile(r"[+-]?[0-9]+")
_HEX = re.compile(r"\+?[0-9a-fA-F]+")
_I32_MIN = -(1 << 31)
_I32_MAX = (1 << 31) - 1
_U64_MAX = (1 << 64) - 1

MAX_NR_ZONES = 8


class Column(enum.Enum):
    """An output column of the memory listing."""

    RANGE = "RANGE"
    SIZE = "SIZE"
    STATE = "STATE"
    REMOVABLE = "REMOVABLE"
    BLOCK = "BLOCK"
    NODE = "NODE"
    ZONES = "ZONES"

    def float_right(self) -> bool:
        """Return whether the column is right aligned."""
        return self is not Column.RANGE

    def width_hint(self) -> int:
        """Return the minimum width of the column."""
        return 5 if self is Column.SIZE else len(self.value)

    def help(self) -> str:
        """Return the one-line description of the column."""
        return _COLUMN_HELP[self]


_COLUMN_HELP = {
    Column.RANGE: "start and end address of the memory range",
    Column.SIZE: "size of the memory range",
    Column.STATE: "online status of the memory range",
    Column.REMOVABLE: "memory is removable",
    Column.BLOCK: "memory block number or blocks range",
    Column.NODE: "numa node of memory",
    Column.ZONES: "valid zones for the memory range",
}

DEFAULT_COLUMNS = (
    Column.RANGE,
    Column.SIZE,
    Column.STATE,
    Column.REMOVABLE,
    Column.BLOCK,
)
SPLIT_COLUMNS = (Column.STATE, Column.REMOVABLE, Column.NODE, Column.ZONES)


class ZoneId(enum.Enum):
    """A memory zone a block may be onlined to."""

    DMA = "DMA"
    DMA32 = "DMA32"
    NORMAL = "Normal"
    HIGHMEM = "Highmem"
    MOVABLE = "Movable"
    DEVICE = "Device"
    NONE = "None"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        return self.value


_ZONES_BY_NAME = {zone.value.lower(): zone for zone in ZoneId}


class MemoryState(enum.Enum):
    """The online state of a memory block."""

    ONLINE = "online"
    OFFLINE = "offline"
    GOING_OFFLINE = "going-offline"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


def parse_zone(text: str) -> ZoneId:
    """Parse a zone name, ignoring case; raises ``ValueError`` if unknown."""
    try:
        return _ZONES_BY_NAME[text.lower()]
    except KeyError:
        raise ValueError(f"unknown memory zone: {text!r}") from None


def parse_state(text: str) -> MemoryState:
    """Parse a block state exactly as sysfs writes it."""
    try:
        return MemoryState(text)
    except ValueError:
        raise ValueError(f"unknown memory state: {text!r}") from None


@dataclass
class MemoryBlock:
    """One memory block, or a run of ``count`` merged adjacent blocks."""

    index: int
    count: int = 1
    state: MemoryState = MemoryState.UNKNOWN
    node: int = 0
    zones: tuple = ()
    removable: bool = True

    @property
    def last_index(self) -> int:
        return self.index + self.count - 1


@dataclass(frozen=True)
class SplitOptions:
    """Which attributes keep adjacent blocks from being merged."""

    list_all: bool = False
    state: bool = False
    removable: bool = False
    node: bool = False
    zones: bool = False


@dataclass
class MemoryInfo:
    """Everything read from the sysfs memory directory."""

    block_size: int
    blocks: list = field(default_factory=list)
    mem_online: int = 0
    mem_offline: int = 0
    have_nodes: bool = False
    have_zones: bool = False


def _read_first_line(path) -> str:
    with open(path, encoding="utf-8") as handle:
        return handle.readline().strip()


def _parse_unsigned(text: str) -> int:
    if not _UNSIGNED.fullmatch(text) or int(text) > _U64_MAX:
        raise ValueError(f"invalid number: {text!r}")
    return int(text)


def _parse_i32(text: str) -> int:
    if not _SIGNED.fullmatch(text):
        raise ValueError(f"invalid number: {text!r}")
    value = int(text)
    if not _I32_MIN <= value <= _I32_MAX:
        raise ValueError(f"number out of range: {text!r}")
    return value


def _parse_hex(text: str) -> int:
    if not _HEX.fullmatch(text) or int(text, 16) > _U64_MAX:
        raise ValueError(f"invalid hexadecimal number: {text!r}")
    return int(text, 16)


def _block_index(path) -> int:
    name = Path(path).name
    return _parse_unsigned(name[len(_MEMORY_PREFIX):])


def block_node(path) -> int:
    """Return the NUMA node of a block directory, or -1 if it names none.

    Raises ``ValueError`` if a ``node*`` directory has no valid number.
    """
    entries = sorted(os.scandir(path), key=lambda entry: entry.name)
    for entry in entries:
        if entry.is_dir() and entry.name.startswith(_NODE_PREFIX):
            return _parse_i32(entry.name[len(_NODE_PREFIX):])
    return -1


def read_block(path, have_nodes: bool, have_zones: bool) -> MemoryBlock:
    """Read the attributes of the block directory ``path``."""
    path = Path(path)
    block = MemoryBlock(index=_block_index(path))

    removable = _read_first_line(path / _REMOVABLE)
    try:
        _parse_i32(removable)
        block.removable = True
    except ValueError:
        block.removable = False

    block.state = parse_state(_read_first_line(path / _STATE))

    if have_nodes:
        block.node = block_node(path)

    if have_zones:
        tokens = _read_first_line(path / _VALID_ZONES).split(" ")
        block.zones = tuple(parse_zone(token) for token in tokens[:MAX_NR_ZONES])

    return block


def is_mergeable(
    previous: MemoryBlock | None,
    block: MemoryBlock,
    split: SplitOptions,
    have_nodes: bool,
    have_zones: bool,
) -> bool:
    """Return whether ``block`` extends the range ``previous`` ends."""
    if previous is None or split.list_all:
        return False
    if previous.index + previous.count != block.index:
        return False
    if split.state and previous.state != block.state:
        return False
    if split.removable and previous.removable != block.removable:
        return False
    if split.node and have_nodes and previous.node != block.node:
        return False
    if split.zones and have_zones:
        if len(previous.zones) != len(block.zones):
            return False
        for mine, theirs in zip(previous.zones, block.zones):
            if mine is ZoneId.UNKNOWN or mine != theirs:
                return False
    return True


def _block_dirs(sysmem) -> list:
    dirs = [
        Path(entry.path)
        for entry in os.scandir(sysmem)
        if entry.is_dir() and entry.name.startswith(_MEMORY_PREFIX)
    ]
    return sorted(dirs, key=_block_index)


def _readable(path: Path) -> bool:
    try:
        path.read_bytes()
    except OSError:
        return False
    return True


def read_memory_info(sysmem, split: SplitOptions) -> MemoryInfo:
    """Read every block under ``sysmem`` and merge them as ``split`` allows."""
    sysmem = Path(sysmem)
    info = MemoryInfo(block_size=_parse_hex(_read_first_line(sysmem / _BLOCK_SIZE_BYTES)))
    dirs = _block_dirs(sysmem)

    for path in dirs:
        try:
            block_node(path)
            info.have_nodes = True
        except ValueError:
            pass
        if _readable(path / _VALID_ZONES):
            info.have_zones = True
        if info.have_nodes and info.have_zones:
            break

    for path in dirs:
        block = read_block(path, info.have_nodes, info.have_zones)
        if block.state is MemoryState.ONLINE:
            info.mem_online += info.block_size
        else:
            info.mem_offline += info.block_size

        previous = info.blocks[-1] if info.blocks else None
        if is_mergeable(previous, block, split, info.have_nodes, info.have_zones):
            previous.count += 1
        else:
            info.blocks.append(block)

    return info