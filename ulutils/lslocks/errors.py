"""Errors raised while listing file locks."""

import os


class LsLocksError(Exception):
    """Base class of every error the lock listing reports."""

    exit_code = 1


class InvalidColumnName(LsLocksError):
    """A column name given on the command line is not known."""

    def __init__(self, name: str):
        super().__init__(f"invalid column name: {name}")
        self.name = name


class InvalidColumnSequence(LsLocksError):
    """A column list given on the command line names no column."""

    def __init__(self, sequence: str):
        super().__init__(f"invalid column sequence: {sequence}")
        self.sequence = sequence


def _describe(reason) -> str:
    if isinstance(reason, OSError):
        return reason.strerror or str(reason)
    return str(reason)


class LsLocksIOError(LsLocksError):
    """An input or output failure, optionally tied to a path."""

    def __init__(self, message: str, reason, path=None):
        self.message = message
        self.reason = reason
        self.path = os.fspath(path) if path is not None else None
        detail = _describe(reason)
        if self.path is None:
            text = f"{message}: {detail}"
        else:
            text = f"{message} '{self.path}': {detail}"
        super().__init__(text)