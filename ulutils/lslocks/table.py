"""A small column table printer with aligned, raw and JSON output."""

import enum
import json
from dataclasses import dataclass

from ulutils.lslocks.columns import ColumnFlag, JsonType


class OutputMode(enum.Enum):
    """How the table is written."""

    NONE = 0
    RAW = 1
    JSON = 2


@dataclass(frozen=True)
class _Column:
    name: str
    width_hint: float
    flags: ColumnFlag
    json_type: JsonType

    @property
    def right(self) -> bool:
        return bool(self.flags & ColumnFlag.RIGHT)

    @property
    def wraps(self) -> bool:
        return bool(self.flags & ColumnFlag.WRAP)

    @property
    def truncates(self) -> bool:
        return bool(self.flags & ColumnFlag.TRUNC)


def _escape_raw(text: str, safe: str) -> str:
    parts = []
    for ch in text:
        if ch in safe or (ch.isprintable() and not ch.isspace() and ch != "\\"):
            parts.append(ch)
        else:
            parts.extend(f"\\x{byte:02x}" for byte in ch.encode("utf-8"))
    return "".join(parts)


def _json_value(value, json_type: JsonType):
    if json_type is JsonType.ARRAY_STRING:
        return value.split("\n") if value else []
    if json_type is JsonType.BOOLEAN:
        return value not in (None, "", "0", "N", "n")
    if value is None or value == "":
        return None
    if json_type is JsonType.NUMBER:
        try:
            return int(value)
        except ValueError:
            try:
                return float(value)
            except ValueError:
                return value
    return value


class Table:
    """Rows of text cells under named columns."""

    def __init__(self, mode=OutputMode.NONE, name=None, headings=True, termwidth=None):
        self.mode = mode
        self.name = name
        self.headings = headings
        self.termwidth = termwidth
        self._columns = []
        self._rows = []

    def add_column(self, name, width_hint, flags, json_type=JsonType.STRING) -> None:
        """Append a column; flags select alignment, truncation and wrapping."""
        self._columns.append(_Column(name, float(width_hint), ColumnFlag(flags), json_type))

    def add_row(self, cells) -> None:
        """Append a row; ``cells`` holds a string or ``None`` per column."""
        cells = list(cells)
        if len(cells) != len(self._columns):
            raise ValueError(
                f"row has {len(cells)} cells but the table has {len(self._columns)} columns"
            )
        self._rows.append(cells)

    def render(self) -> str:
        """Return the whole table as text, ending in a newline."""
        if self.mode is OutputMode.JSON:
            return self._render_json()
        if self.mode is OutputMode.RAW:
            return self._render_raw()
        return self._render_aligned()

    def _render_json(self) -> str:
        records = [
            {
                column.name.lower(): _json_value(cell, column.json_type)
                for column, cell in zip(self._columns, row)
            }
            for row in self._rows
        ]
        document = {self.name or "table": records}
        return json.dumps(document, indent=3, ensure_ascii=False) + "\n"

    def _render_raw(self) -> str:
        lines = []
        if self.headings:
            lines.append(" ".join(
                _escape_raw(column.name, "") for column in self._columns
            ))
        for row in self._rows:
            lines.append(" ".join(
                _escape_raw(cell or "", "\n" if column.wraps else "")
                for column, cell in zip(self._columns, row)
            ))
        return "".join(line + "\n" for line in lines)

    def _chunks(self, column: _Column, cell) -> list:
        text = cell or ""
        return text.split("\n") if column.wraps else [text]

    def _widths(self, grid) -> list:
        widths = []
        for index, column in enumerate(self._columns):
            lengths = [len(column.name) if self.headings else 0]
            lengths.extend(len(chunk) for row in grid for chunk in row[index])
            widths.append(max(lengths))
        if self.termwidth is None:
            return widths

        excess = sum(widths) + max(len(widths) - 1, 0) - self.termwidth
        for index, column in enumerate(self._columns):
            if excess <= 0:
                break
            if not column.truncates:
                continue
            floor = max(int(column.width_hint), 1)
            cut = min(excess, max(widths[index] - floor, 0))
            widths[index] -= cut
            excess -= cut
        return widths

    def _format_line(self, texts, widths) -> str:
        last = len(self._columns) - 1
        parts = []
        for index, (column, text, width) in enumerate(zip(self._columns, texts, widths)):
            text = text[:width]
            if column.right:
                parts.append(text.rjust(width))
            elif index == last:
                parts.append(text)
            else:
                parts.append(text.ljust(width))
        return " ".join(parts).rstrip()

    def _render_aligned(self) -> str:
        grid = [
            [self._chunks(column, cell) for column, cell in zip(self._columns, row)]
            for row in self._rows
        ]
        widths = self._widths(grid)
        lines = []
        if self.headings:
            lines.append(self._format_line([c.name for c in self._columns], widths))
        for row in grid:
            height = max((len(chunks) for chunks in row), default=1)
            for depth in range(height):
                texts = [chunks[depth] if depth < len(chunks) else "" for chunks in row]
                lines.append(self._format_line(texts, widths))
        return "".join(line + "\n" for line in lines)