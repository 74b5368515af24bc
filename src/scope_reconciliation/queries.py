"""
SQL statements for one value table.

All identifiers come from a validated ValueTableDescriptor and are quoted
for the target dialect; every value is a bound parameter.
"""

from .descriptor import ValueTableDescriptor
from .dialect import Dialect


class ValueTableQueries:
    """Builds the statements the reconciler and pruners run against a value table."""

    def __init__(self, descriptor: ValueTableDescriptor, dialect: Dialect):
        self.descriptor = descriptor
        self.dialect = dialect

        q = dialect.quote
        self._table = q(descriptor.table_name)
        self._value_id = q("value_id")
        self._entity = q(descriptor.entity_column)
        self._attribute = q("attribute_id")
        self._scope = q(descriptor.scope_column)
        self._value = q("value")
        self._columns = (
            f"{self._value_id}, {self._entity} AS entity_key, "
            f"{self._attribute}, {self._scope}, {self._value}"
        )

    @property
    def table(self) -> str:
        return self.descriptor.table_name

    def _default_lookup(self, value_predicate: str) -> str:
        ph = self.dialect.placeholder
        return (
            f"SELECT {self._columns} FROM {self._table} "
            f"WHERE {self._attribute} = {ph} AND {self._scope} = {ph} "
            f"AND {self._entity} = {ph} AND {value_predicate}"
        )

    def select_overrides(self) -> str:
        """Non-NULL rows of one override scope. Params: (scope_id,)"""
        ph = self.dialect.placeholder
        return (
            f"SELECT {self._columns} FROM {self._table} "
            f"WHERE {self._scope} = {ph} AND {self._value} IS NOT NULL"
        )

    def select_mismatching_defaults(self) -> str:
        """
        Default rows of an (attribute, entity) pair whose value differs exactly.

        Params: (attribute_id, default_scope_id, entity_key, override_value)
        """
        return self._default_lookup(
            self.dialect.exact_mismatch(self._value, self.descriptor.binary_comparison)
        )

    def select_matching_defaults(self) -> str:
        """
        Default rows of an (attribute, entity) pair holding exactly the same value.

        Params: (attribute_id, default_scope_id, entity_key, override_value)
        """
        return self._default_lookup(
            self.dialect.exact_match(self._value, self.descriptor.binary_comparison)
        )

    def update_value(self) -> str:
        """Params: (value, value_id)"""
        ph = self.dialect.placeholder
        return f"UPDATE {self._table} SET {self._value} = {ph} WHERE {self._value_id} = {ph}"

    def delete_value(self) -> str:
        """Params: (value_id,)"""
        ph = self.dialect.placeholder
        return f"DELETE FROM {self._table} WHERE {self._value_id} = {ph}"

    def count_null_overrides(self) -> str:
        """Params: (scope_id,)"""
        ph = self.dialect.placeholder
        return (
            f"SELECT COUNT(*) FROM {self._table} "
            f"WHERE {self._scope} = {ph} AND {self._value} IS NULL"
        )

    def delete_null_overrides(self) -> str:
        """Params: (scope_id,)"""
        ph = self.dialect.placeholder
        return (
            f"DELETE FROM {self._table} "
            f"WHERE {self._scope} = {ph} AND {self._value} IS NULL"
        )
