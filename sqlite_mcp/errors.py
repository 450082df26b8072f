"""Error taxonomy for a single operation call.

All three are recoverable: the dispatcher turns them into an error-flagged
envelope and the process keeps serving.
"""
from __future__ import annotations


class SQLiteMCPError(Exception):
    """Base class for errors surfaced to the caller of one operation."""


class ValidationError(SQLiteMCPError):
    """Argument bag does not match the declared shape, or operation is unknown."""

    def __init__(self, operation: str, message: str):
        super().__init__(message)
        self.operation = operation


class CategoryMismatchError(SQLiteMCPError):
    """Statement category conflicts with the category the operation requires."""

    def __init__(self, operation: str, message: str):
        super().__init__(message)
        self.operation = operation


class EngineError(SQLiteMCPError):
    """The SQL engine rejected or failed the statement; message is verbatim."""
