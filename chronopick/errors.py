"""
Error taxonomy.

Parse failures and out-of-bounds candidates are recovered locally (absent
marker / refused selection) and never surface as exceptions.  Only caller
contract violations raise.
"""

from __future__ import annotations


class ChronopickError(Exception):
    """Base class for every error raised by the engine."""


class InvalidConfiguration(ChronopickError, ValueError):
    """The caller supplied an inconsistent configuration (e.g. minDate > maxDate)."""


class SessionNotFound(ChronopickError, KeyError):
    """No selection session is registered under the requested id."""

    def __str__(self) -> str:
        return f"Unknown session: {self.args[0]!r}" if self.args else "Unknown session"
