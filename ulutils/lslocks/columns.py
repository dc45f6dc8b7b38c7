"""The columns the lock listing can show, and parsing of column lists."""

import enum
from dataclasses import dataclass

from ulutils.lslocks.errors import InvalidColumnName, InvalidColumnSequence


class JsonType(enum.Enum):
    """How a column's cells are written in JSON output."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY_STRING = "array-string"


class ColumnFlag(enum.IntFlag):
    """Layout flags of a column."""

    NONE = 0
    TRUNC = 1 << 0
    RIGHT = 1 << 2
    WRAP = 1 << 6


@dataclass(frozen=True)
class ColumnInfo:
    """The fixed description of one output column."""

    id: str
    width_hint: float
    flags: ColumnFlag
    default_json_type: JsonType

    def json_type_for(self, in_bytes: bool) -> JsonType:
        """Return the JSON type; SIZE is a number when shown in bytes."""
        if in_bytes and self.id == "SIZE":
            return JsonType.NUMBER
        return self.default_json_type


COLUMN_INFOS = (
    ColumnInfo("COMMAND", 15.0, ColumnFlag.NONE, JsonType.STRING),
    ColumnInfo("PID", 5.0, ColumnFlag.RIGHT, JsonType.NUMBER),
    ColumnInfo("TYPE", 5.0, ColumnFlag.RIGHT, JsonType.STRING),
    ColumnInfo("SIZE", 4.0, ColumnFlag.RIGHT, JsonType.STRING),
    ColumnInfo("INODE", 5.0, ColumnFlag.RIGHT, JsonType.NUMBER),
    ColumnInfo("MAJ:MIN", 6.0, ColumnFlag.NONE, JsonType.STRING),
    ColumnInfo("MODE", 5.0, ColumnFlag.NONE, JsonType.STRING),
    ColumnInfo("M", 1.0, ColumnFlag.NONE, JsonType.BOOLEAN),
    ColumnInfo("START", 10.0, ColumnFlag.RIGHT, JsonType.NUMBER),
    ColumnInfo("END", 10.0, ColumnFlag.RIGHT, JsonType.NUMBER),
    ColumnInfo("PATH", 0.0, ColumnFlag.TRUNC, JsonType.STRING),
    ColumnInfo("BLOCKER", 0.0, ColumnFlag.RIGHT, JsonType.NUMBER),
    ColumnInfo("HOLDERS", 0.0, ColumnFlag.WRAP, JsonType.ARRAY_STRING),
)

ALL = tuple(column.id for column in COLUMN_INFOS)

DEFAULT = ("COMMAND", "PID", "TYPE", "SIZE", "MODE", "M", "START", "END", "PATH")

_BY_NAME = {column.id: column for column in COLUMN_INFOS}


@dataclass(frozen=True)
class OutputColumns:
    """A parsed ``--output`` list; ``append`` adds it to the defaults."""

    append: bool = True
    columns: tuple = ()


def find_column(name: str) -> ColumnInfo:
    """Return the column called ``name``; raises ``InvalidColumnName``."""
    try:
        return _BY_NAME[name]
    except KeyError:
        raise InvalidColumnName(name) from None


def parse_output_columns(text: str) -> OutputColumns:
    """Parse ``NAME,NAME`` or ``+NAME,NAME`` (append to the defaults)."""
    append = text.startswith("+")
    body = text[1:] if append else text
    columns = tuple(find_column(name) for name in body.split(","))
    if not columns:
        raise InvalidColumnSequence(text)
    return OutputColumns(append=append, columns=columns)


def collect_output_columns(output, output_all: bool) -> list:
    """Return the columns to show for an optional ``--output`` value."""
    if output is None:
        output = OutputColumns()
    if not output.append:
        return list(output.columns)
    names = ALL if output_all else DEFAULT
    return [find_column(name) for name in names] + list(output.columns)