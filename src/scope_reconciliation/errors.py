"""
Exception hierarchy for scope reconciliation.

Precondition errors are raised before any value table is touched; storage
errors abort the current table (and every later one) and keep the
driver exception as ``__cause__``.
"""


class ScopeReconciliationError(Exception):
    """Base exception for the cleanup tool."""


class PreconditionError(ScopeReconciliationError):
    """An input check failed; nothing has been written."""


class InvalidScopeError(PreconditionError):
    """The target scope is the default scope or does not exist."""


class InvalidEntityTypeError(PreconditionError):
    """The entity type is not one of the supported EAV entities."""


class ConfirmationDeclinedError(PreconditionError):
    """A destructive run was neither forced nor confirmed interactively."""


class StorageAccessError(ScopeReconciliationError):
    """A scan or write against a value table failed."""

    def __init__(self, table: str, operation: str, message: str):
        self.table = table
        self.operation = operation
        super().__init__(f"{operation} failed on {table}: {message}")


class CursorConsumedError(ScopeReconciliationError):
    """A ScopedRowCursor was iterated a second time."""
