import sqlite3
from typing import List, Tuple

from utils.logger import get_stage_logger

logger = get_stage_logger("Schema")

TABLE_NAME = "motor_insurance_raw"

# (column, SQLite type, loader kind). Order matches the source CSV header.
COLUMNS: List[Tuple[str, str, str]] = [
    ("customer", "TEXT PRIMARY KEY NOT NULL", "text"),
    ("state", "TEXT", "text"),
    ("customer_lifetime_value", "REAL", "numeric"),
    ("response", "TEXT", "text"),
    ("coverage", "TEXT", "text"),
    ("coverage_index", "INTEGER", "integer"),
    ("education", "TEXT", "text"),
    ("education_index", "INTEGER", "integer"),
    ("effective_to_date", "DATE", "date"),
    ("employment_status", "TEXT", "text"),
    ("employment_status_index", "INTEGER", "integer"),
    ("gender", "TEXT", "text"),
    ("income", "REAL", "numeric"),
    ("location", "TEXT", "text"),
    ("location_index", "INTEGER", "integer"),
    ("marital_status", "TEXT", "text"),
    ("marital_status_index", "INTEGER", "integer"),
    ("monthly_premium_auto", "REAL", "numeric"),
    ("months_since_last_claim", "INTEGER", "integer"),
    ("months_since_policy_inception", "INTEGER", "integer"),
    ("number_of_open_complaints", "INTEGER", "integer"),
    ("number_of_policies", "INTEGER", "integer"),
    ("policy_type", "TEXT", "text"),
    ("policy_type_index", "INTEGER", "integer"),
    ("policy", "TEXT", "text"),
    ("policy_index", "INTEGER", "integer"),
    ("renew_offer_type", "INTEGER", "integer"),
    ("sales_channel", "TEXT", "text"),
    ("sales_channel_index", "INTEGER", "integer"),
    ("total_claim_amount", "REAL", "numeric"),
    ("vehicle_class", "TEXT", "text"),
    ("vehicle_class_index", "INTEGER", "integer"),
    ("vehicle_size", "TEXT", "text"),
    ("vehicle_size_index", "INTEGER", "integer"),
]

# Added after the load by the feature enricher
DERIVED_COLUMNS: List[Tuple[str, str]] = [
    ("annual_premium", "REAL"),
    ("has_claim", "INTEGER"),
    ("income_band", "TEXT"),
]

COLUMN_NAMES = [name for name, _, _ in COLUMNS]


def columns_of_kind(kind: str) -> List[str]:
    """Return the names of the raw columns loaded as the given kind."""
    return [name for name, _, column_kind in COLUMNS if column_kind == kind]


def create_table_sql(table_name: str = TABLE_NAME) -> str:
    column_lines = ",\n".join(f"    {name} {sql_type}" for name, sql_type, _ in COLUMNS)
    return f"CREATE TABLE {table_name} (\n{column_lines}\n)"


def reset_table(conn: sqlite3.Connection, table_name: str = TABLE_NAME) -> None:
    """
    Drop the claims table if it exists and create it again, empty.

    Args:
        conn: Open SQLite connection
        table_name: Name of the table to recreate
    """
    existed = table_exists(conn, table_name)
    cursor = conn.cursor()
    cursor.execute(f"DROP TABLE IF EXISTS {table_name}")
    cursor.execute(create_table_sql(table_name))
    conn.commit()
    action = "recreated" if existed else "created"
    logger.info(f"Table '{table_name}' {action} with {len(COLUMNS)} columns")


def table_exists(conn: sqlite3.Connection, table_name: str = TABLE_NAME) -> bool:
    cursor = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (table_name,)
    )
    return cursor.fetchone() is not None


def get_table_columns(conn: sqlite3.Connection, table_name: str = TABLE_NAME) -> List[str]:
    """Return the column names of a table in declaration order."""
    cursor = conn.execute(f"PRAGMA table_info({table_name})")
    return [row[1] for row in cursor.fetchall()]
