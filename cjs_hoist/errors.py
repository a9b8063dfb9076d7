"""
Exceptions raised by the cjs-hoist engine.
"""

from typing import Optional


class CjsHoistError(Exception):
    """Base class for all cjs-hoist errors."""


class ParseError(CjsHoistError):
    """The source text could not be parsed.

    Attributes:
        line: 1-based line of the first syntax error, if known
        column: 1-based column of the first syntax error, if known
    """

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class EditConflictError(CjsHoistError):
    """Two edits claimed overlapping ranges of the source buffer."""


class ConfigError(CjsHoistError):
    """A configuration file is unreadable or contains unknown settings."""
