"""
Value table descriptors for the catalog EAV schema.

Every catalog entity keeps its attribute values in one table per backend
type (``catalog_product_entity_varchar``, ``..._int`` and so on). The
column that links a value to its entity differs between storage editions:
the community edition uses ``entity_id``, the enterprise edition (with
content staging) uses ``row_id``. Descriptors are resolved once at startup
so the reconciler only ever talks about an ``entity_key``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from utils.sql_safety import validate_identifier

from .errors import InvalidEntityTypeError

# Processing order is fixed so audit output is reproducible across runs
TABLE_CATEGORIES = ("varchar", "int", "decimal", "text", "datetime")

# String-typed tables need a binary (case and whitespace sensitive) comparison;
# numeric and datetime values already compare exactly.
BINARY_CATEGORIES = frozenset({"varchar", "text"})

DEFAULT_SCOPE_ID = 0


class EntityType(str, Enum):
    """EAV entities whose value tables can be cleaned up."""

    PRODUCT = "product"
    CATEGORY = "category"

    @classmethod
    def parse(cls, value: str) -> "EntityType":
        try:
            return cls(value)
        except ValueError:
            raise InvalidEntityTypeError(
                "Please specify the entity with --entity. "
                "Possible options are product or category"
            ) from None


class StorageEdition(str, Enum):
    """Storage edition, which decides the entity correlation column."""

    COMMUNITY = "community"
    ENTERPRISE = "enterprise"

    @property
    def identity_column(self) -> str:
        if self is StorageEdition.ENTERPRISE:
            return "row_id"
        return "entity_id"


@dataclass(frozen=True)
class ValueRow:
    """One physical row of a value table."""

    value_id: int
    entity_key: int
    attribute_id: int
    scope_id: int
    value: Any

    @classmethod
    def from_record(cls, record: Sequence[Any]) -> "ValueRow":
        """Build a row from a ``value_id, entity_key, attribute_id, store_id, value`` record."""
        value_id, entity_key, attribute_id, scope_id, value = tuple(record)[:5]
        return cls(value_id, entity_key, attribute_id, scope_id, value)


@dataclass(frozen=True)
class ValueTableDescriptor:
    """
    Static description of one physical value table.

    Attributes:
        table_name: Physical table name (prefix already applied)
        category: Backend type of the table (varchar, int, decimal, text, datetime)
        entity_column: Column correlating a value with its entity instance
        scope_column: Column holding the scope (store) id
    """

    table_name: str
    category: str
    entity_column: str = "entity_id"
    scope_column: str = "store_id"

    def __post_init__(self):
        if self.category not in TABLE_CATEGORIES:
            raise ValueError(
                f"Unknown value table category: {self.category!r}. "
                f"Expected one of: {', '.join(TABLE_CATEGORIES)}"
            )
        validate_identifier(self.table_name)
        validate_identifier(self.entity_column)
        validate_identifier(self.scope_column)

    @property
    def binary_comparison(self) -> bool:
        """Whether values must be compared byte-for-byte rather than by collation."""
        return self.category in BINARY_CATEGORIES

    @classmethod
    def for_category(
        cls,
        category: str,
        entity_type: EntityType,
        edition: StorageEdition = StorageEdition.COMMUNITY,
        table_prefix: str = "",
    ) -> "ValueTableDescriptor":
        return cls(
            table_name=f"{table_prefix}catalog_{entity_type.value}_entity_{category}",
            category=category,
            entity_column=edition.identity_column,
        )


def entity_table_name(entity_type: EntityType, table_prefix: str = "") -> str:
    """Name of the main entity table, e.g. ``catalog_product_entity``."""
    return f"{table_prefix}catalog_{entity_type.value}_entity"


def resolve_descriptors(
    entity_type: EntityType,
    edition: StorageEdition = StorageEdition.COMMUNITY,
    table_prefix: str = "",
) -> list[ValueTableDescriptor]:
    """
    Resolve the value tables of an entity in processing order.

    Args:
        entity_type: Entity whose value tables are cleaned up
        edition: Storage edition deciding the entity correlation column
        table_prefix: Optional installation table prefix

    Returns:
        One descriptor per category, ordered as TABLE_CATEGORIES
    """
    return [
        ValueTableDescriptor.for_category(category, entity_type, edition, table_prefix)
        for category in TABLE_CATEGORIES
    ]
