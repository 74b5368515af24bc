"""
Store-scope cleanup for catalog EAV value tables

Finds store-level attribute values that differ from a stale default value,
promotes them into the default scope and removes the store row; also drops
NULL store values, which only mean "inherit the default".

Components:
- descriptor: value table names and entity correlation columns
- cursor: lazy, forward-only row scans
- reconciler: promotion of differing override values
- pruner: NULL override and (opt-in) duplicate override removal
- report: counters, audit transcript and exports
- engine: runs all passes over an entity's tables in fixed order
- cli: the ``eav-scope-cleanup`` command

Usage:
    from scope_reconciliation import EntityType, resolve_descriptors, run_cleanup

    tables = resolve_descriptors(EntityType.PRODUCT)
    report = run_cleanup(connection, tables, scope_id=2, dry_run=True)
    print(report.summarize())
"""

from .cursor import ScopedRowCursor
from .descriptor import (
    TABLE_CATEGORIES,
    EntityType,
    StorageEdition,
    ValueRow,
    ValueTableDescriptor,
    resolve_descriptors,
)
from .engine import run_cleanup
from .errors import (
    ConfirmationDeclinedError,
    InvalidEntityTypeError,
    InvalidScopeError,
    PreconditionError,
    ScopeReconciliationError,
    StorageAccessError,
)
from .pruner import DuplicateOverridePruner, NullOverridePruner
from .reconciler import ScopeReconciler
from .report import ReconciliationReport

__version__ = "1.0.0"
__all__ = [
    "TABLE_CATEGORIES",
    "EntityType",
    "StorageEdition",
    "ValueRow",
    "ValueTableDescriptor",
    "resolve_descriptors",
    "ScopedRowCursor",
    "ScopeReconciler",
    "NullOverridePruner",
    "DuplicateOverridePruner",
    "ReconciliationReport",
    "run_cleanup",
    "ScopeReconciliationError",
    "PreconditionError",
    "InvalidScopeError",
    "InvalidEntityTypeError",
    "ConfirmationDeclinedError",
    "StorageAccessError",
]
