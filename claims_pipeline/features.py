import sqlite3
from typing import Dict

from claims_pipeline.schema import DERIVED_COLUMNS, TABLE_NAME, get_table_columns
from utils.logger import get_stage_logger

logger = get_stage_logger("Features")

# Upper bounds are inclusive: 30000 is Low, 70000 is Medium
NO_INCOME_MAX = 0
LOW_INCOME_MAX = 30000
MEDIUM_INCOME_MAX = 70000

INCOME_BANDS = ("No Income", "Low", "Medium", "High")

_DERIVED_TYPES = dict(DERIVED_COLUMNS)


def add_column_if_missing(conn: sqlite3.Connection, column: str, sql_type: str,
                          table_name: str = TABLE_NAME) -> bool:
    """
    Add a nullable column unless the table already has it.

    Returns:
        True if the column was added, False if it already existed
    """
    if column in get_table_columns(conn, table_name):
        logger.info(f"Column '{column}' already exists on {table_name}")
        return False
    conn.execute(f"ALTER TABLE {table_name} ADD COLUMN {column} {sql_type}")
    logger.info(f"Added column '{column}' ({sql_type}) to {table_name}")
    return True


def add_annual_premium(conn: sqlite3.Connection, table_name: str = TABLE_NAME) -> int:
    add_column_if_missing(conn, "annual_premium", _DERIVED_TYPES["annual_premium"], table_name)
    cursor = conn.execute(f"UPDATE {table_name} SET annual_premium = monthly_premium_auto * 12")
    return cursor.rowcount


def add_has_claim(conn: sqlite3.Connection, table_name: str = TABLE_NAME) -> int:
    # A null total_claim_amount is not > 0 and lands in the ELSE branch
    add_column_if_missing(conn, "has_claim", _DERIVED_TYPES["has_claim"], table_name)
    cursor = conn.execute(f"""
        UPDATE {table_name}
        SET has_claim = CASE WHEN total_claim_amount > 0 THEN 1 ELSE 0 END
    """)
    return cursor.rowcount


def add_income_band(conn: sqlite3.Connection, table_name: str = TABLE_NAME) -> int:
    add_column_if_missing(conn, "income_band", _DERIVED_TYPES["income_band"], table_name)
    cursor = conn.execute(f"""
        UPDATE {table_name}
        SET income_band = CASE
            WHEN income <= ? THEN ?
            WHEN income <= ? THEN ?
            WHEN income <= ? THEN ?
            ELSE ?
        END
    """, (
        NO_INCOME_MAX, INCOME_BANDS[0],
        LOW_INCOME_MAX, INCOME_BANDS[1],
        MEDIUM_INCOME_MAX, INCOME_BANDS[2],
        INCOME_BANDS[3],
    ))
    return cursor.rowcount


def enrich_features(conn: sqlite3.Connection, table_name: str = TABLE_NAME) -> Dict[str, int]:
    """
    Add and populate the derived feature columns in one transaction.

    Safe to run again: existing columns are reused and every row is
    recomputed from its current source columns.

    Args:
        conn: Open SQLite connection
        table_name: Table holding the loaded claims

    Returns:
        Dictionary mapping each derived column to the number of rows updated
    """
    with conn:
        updated = {
            'annual_premium': add_annual_premium(conn, table_name),
            'has_claim': add_has_claim(conn, table_name),
            'income_band': add_income_band(conn, table_name),
        }
    logger.info(f"Derived features populated: {updated}")
    return updated
