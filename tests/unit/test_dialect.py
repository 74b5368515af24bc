"""
Unit tests for SQL dialects, query rendering and identifier safety.
"""

import sqlite3
from unittest.mock import Mock

import pytest

from scope_reconciliation.descriptor import EntityType, StorageEdition, ValueTableDescriptor
from scope_reconciliation.dialect import (
    MYSQL,
    POSTGRESQL,
    SQLITE,
    SQLSERVER,
    detect_dialect,
    get_dialect,
)
from scope_reconciliation.queries import ValueTableQueries
from utils.sql_safety import quote_identifier, validate_identifier, validate_integer_param

VARCHAR = ValueTableDescriptor.for_category("varchar", EntityType.PRODUCT)
INT = ValueTableDescriptor.for_category("int", EntityType.PRODUCT, StorageEdition.ENTERPRISE)


class TestExactComparison:
    """Test that string comparisons are rendered byte-exact per dialect."""

    def test_mysql_uses_binary_operator(self):
        assert MYSQL.exact_mismatch("`value`", binary=True) == "BINARY `value` <> ?"

    def test_postgresql_uses_c_collation(self):
        assert POSTGRESQL.exact_mismatch('"value"', binary=True) == '"value" COLLATE "C" <> %s'

    def test_sqlserver_uses_bin2_collation(self):
        assert (
            SQLSERVER.exact_match("[value]", binary=True)
            == "[value] COLLATE Latin1_General_BIN2 = ?"
        )

    def test_sqlite_is_binary_by_default(self):
        assert SQLITE.exact_mismatch('"value"', binary=True) == '"value" <> ?'

    @pytest.mark.parametrize("dialect", [MYSQL, POSTGRESQL, SQLSERVER, SQLITE])
    def test_non_string_tables_compare_plainly(self, dialect):
        predicate = dialect.exact_mismatch("v", binary=False)
        assert predicate == f"v <> {dialect.placeholder}"


class TestDialectLookup:
    def test_get_dialect(self):
        assert get_dialect("mysql") is MYSQL
        assert get_dialect("postgresql") is POSTGRESQL

    def test_get_dialect_unknown(self):
        with pytest.raises(ValueError, match="Unsupported database type"):
            get_dialect("oracle")

    def test_detect_sqlite(self):
        connection = sqlite3.connect(":memory:")
        try:
            assert detect_dialect(connection) is SQLITE
        finally:
            connection.close()

    def test_detect_postgresql_by_module(self):
        connection_type = type("connection", (), {"__module__": "psycopg2.extensions"})

        assert detect_dialect(connection_type()) is POSTGRESQL

    def test_detect_unknown(self):
        with pytest.raises(ValueError, match="Cannot detect SQL dialect"):
            detect_dialect(Mock())


class TestValueTableQueries:
    """Test statement rendering."""

    def test_select_overrides_mysql(self):
        queries = ValueTableQueries(VARCHAR, MYSQL)

        assert queries.select_overrides() == (
            "SELECT `value_id`, `entity_id` AS entity_key, `attribute_id`, `store_id`, `value` "
            "FROM `catalog_product_entity_varchar` "
            "WHERE `store_id` = ? AND `value` IS NOT NULL"
        )

    def test_mismatch_lookup_uses_binary_for_varchar(self):
        sql = ValueTableQueries(VARCHAR, MYSQL).select_mismatching_defaults()

        assert sql.endswith(
            "WHERE `attribute_id` = ? AND `store_id` = ? "
            "AND `entity_id` = ? AND BINARY `value` <> ?"
        )

    def test_mismatch_lookup_plain_for_int(self):
        sql = ValueTableQueries(INT, POSTGRESQL).select_mismatching_defaults()

        assert '"row_id" AS entity_key' in sql
        assert sql.endswith('AND "row_id" = %s AND "value" <> %s')

    def test_match_lookup(self):
        sql = ValueTableQueries(VARCHAR, SQLSERVER).select_matching_defaults()

        assert sql.endswith("[value] COLLATE Latin1_General_BIN2 = ?")

    def test_writes(self):
        queries = ValueTableQueries(VARCHAR, POSTGRESQL)

        assert queries.update_value() == (
            'UPDATE "catalog_product_entity_varchar" SET "value" = %s WHERE "value_id" = %s'
        )
        assert queries.delete_value() == (
            'DELETE FROM "catalog_product_entity_varchar" WHERE "value_id" = %s'
        )
        assert queries.delete_null_overrides() == (
            'DELETE FROM "catalog_product_entity_varchar" '
            'WHERE "store_id" = %s AND "value" IS NULL'
        )

    def test_table_property(self):
        assert ValueTableQueries(VARCHAR, SQLITE).table == "catalog_product_entity_varchar"


class TestSqlSafety:
    """Test identifier validation and quoting."""

    @pytest.mark.parametrize("identifier", ["store", "catalog_product_entity_int", "_x1"])
    def test_valid_identifiers(self, identifier):
        validate_identifier(identifier)

    @pytest.mark.parametrize("identifier", [
        "users; DROP TABLE users--",
        "users'",
        'users"',
        "a b",
        "1abc",
        "",
    ])
    def test_invalid_identifiers(self, identifier):
        with pytest.raises(ValueError):
            validate_identifier(identifier)

    @pytest.mark.parametrize("db_type,expected", [
        ("postgresql", '"store"'),
        ("sqlite", '"store"'),
        ("mysql", "`store`"),
        ("sqlserver", "[store]"),
    ])
    def test_quote_identifier(self, db_type, expected):
        assert quote_identifier("store", db_type) == expected

    def test_validate_integer_param(self):
        validate_integer_param(5, "chunk_size", min_value=1)
        with pytest.raises(ValueError):
            validate_integer_param(0, "chunk_size", min_value=1)
        with pytest.raises(ValueError):
            validate_integer_param(True, "chunk_size")
