"""Formatting of lock cells: sizes and lock holders."""

import functools
import locale

from ulutils.humansize import size_exponent
from ulutils.lslocks.errors import LsLocksIOError

_LETTERS = "BKMGTPE"
_U64_MAX = (1 << 64) - 1


@functools.lru_cache(maxsize=1)
def _locale_decimal_point() -> str:
    try:
        point = locale.localeconv().get("decimal_point")
    except (ValueError, locale.Error):
        point = None
    return point or "."


def size_to_human_string(nbytes: int, decimal_point=None) -> str:
    """Format ``nbytes`` in binary units with a two digit fraction, e.g. ``1.50K``."""
    if decimal_point is None:
        decimal_point = _locale_decimal_point()
    exp = size_exponent(nbytes)
    unit = _LETTERS[exp // 10]
    whole = nbytes >> exp
    frac = nbytes % (1 << exp) if exp else 0

    if frac:
        if frac >= _U64_MAX // 1000:
            frac = ((frac // 1024) * 1000) // (1 << (exp - 10))
        else:
            frac = (frac * 1000) // (1 << exp)
        frac = ((frac + 50) // 100) * 10
        if frac == 100:
            whole += 1
            frac = 0

    if not frac:
        return f"{whole}{unit}"
    return f"{whole}{decimal_point}{frac:02}{unit}"


def describe_size(size: int, in_bytes: bool) -> str:
    """Return the SIZE cell: plain bytes or a human readable size."""
    return str(size) if in_bytes else size_to_human_string(size)


def describe_holders(lock, pid_locks) -> str:
    """Return ``pid,command,fd`` for every process holding ``lock``, one per line."""
    text = "\n".join(
        f"{holder.process_id},{holder.command_name or ''},{holder.file_descriptor}"
        for holder in pid_locks
        if holder.same_lock(lock)
    )
    if "\0" in text:
        raise LsLocksIOError("invalid data", "invalid data")
    return text