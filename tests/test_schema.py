import logging
import sqlite3

import pytest

from claims_pipeline.schema import (COLUMN_NAMES, TABLE_NAME, columns_of_kind, create_table_sql,
                                    get_table_columns, reset_table, table_exists)


def test_reset_table_creates_declared_columns(conn):
    assert table_exists(conn)
    assert get_table_columns(conn) == COLUMN_NAMES


def test_reset_table_drops_existing_rows(conn, insert_rows):
    insert_rows([{'customer': 'C1'}])
    reset_table(conn)
    assert conn.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}").fetchone()[0] == 0


def test_reset_table_removes_derived_columns(conn):
    conn.execute(f"ALTER TABLE {TABLE_NAME} ADD COLUMN annual_premium REAL")
    reset_table(conn)
    assert 'annual_premium' not in get_table_columns(conn)


def test_customer_is_unique(conn, insert_rows):
    insert_rows([{'customer': 'C1'}])
    with pytest.raises(sqlite3.IntegrityError):
        insert_rows([{'customer': 'C1'}])


def test_customer_is_not_null(conn, insert_rows):
    with pytest.raises(sqlite3.IntegrityError):
        insert_rows([{'customer': None, 'state': 'Oregon'}])


def test_table_exists_false_for_unknown_table(conn):
    assert not table_exists(conn, "no_such_table")


def test_create_table_sql_names_primary_key():
    sql = create_table_sql("claims_copy")
    assert sql.startswith("CREATE TABLE claims_copy (")
    assert "customer TEXT PRIMARY KEY NOT NULL" in sql


def test_columns_of_kind():
    assert columns_of_kind("date") == ['effective_to_date']
    assert 'total_claim_amount' in columns_of_kind("numeric")
    assert 'renew_offer_type' in columns_of_kind("integer")


def test_reset_table_logs_whether_table_existed(tmp_path, caplog):
    connection = sqlite3.connect(str(tmp_path / "fresh.db"))
    try:
        with caplog.at_level(logging.INFO, logger="ClaimsPipeline.Schema"):
            reset_table(connection)
            reset_table(connection)
        messages = [record.getMessage() for record in caplog.records]
        assert f"Table '{TABLE_NAME}' created with 34 columns" in messages
        assert f"Table '{TABLE_NAME}' recreated with 34 columns" in messages
    finally:
        connection.close()
