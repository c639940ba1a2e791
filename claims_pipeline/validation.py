import sqlite3
from typing import Any, Dict

import pandas as pd

from claims_pipeline.schema import TABLE_NAME
from utils.logger import get_stage_logger

logger = get_stage_logger("Validation")

# Report key -> column checked for nulls
KEY_COLUMNS = {
    'missing_customer': 'customer',
    'missing_claim': 'total_claim_amount',
    'missing_state': 'state',
    'missing_gender': 'gender',
}


def count_rows(conn: sqlite3.Connection, table_name: str = TABLE_NAME) -> int:
    cursor = conn.execute(f"SELECT COUNT(*) FROM {table_name}")
    return cursor.fetchone()[0]


def missing_value_counts(conn: sqlite3.Connection, table_name: str = TABLE_NAME) -> Dict[str, int]:
    """
    Count nulls in the key columns.

    Returns:
        Dictionary with total_rows and one missing_* count per key column
    """
    null_sums = ",\n".join(
        f"COALESCE(SUM(CASE WHEN {column} IS NULL THEN 1 ELSE 0 END), 0) AS {key}"
        for key, column in KEY_COLUMNS.items()
    )
    cursor = conn.execute(f"SELECT COUNT(*) AS total_rows,\n{null_sums}\nFROM {table_name}")
    names = [description[0] for description in cursor.description]
    return dict(zip(names, cursor.fetchone()))


def sample_rows(conn: sqlite3.Connection, limit: int = 10, table_name: str = TABLE_NAME) -> pd.DataFrame:
    query = f"""
        SELECT customer, state, customer_lifetime_value, effective_to_date
        FROM {table_name}
        LIMIT ?
    """
    return pd.read_sql(query, conn, params=(limit,))


def validate_load(conn: sqlite3.Connection, table_name: str = TABLE_NAME) -> Dict[str, Any]:
    """
    Gather the post-load sanity checks into one report.

    Nothing here blocks the pipeline; the counts are logged for the operator,
    with a warning when the table is empty or a key column has nulls.
    """
    report: Dict[str, Any] = missing_value_counts(conn, table_name)
    report['sample'] = sample_rows(conn, table_name=table_name)

    if report['total_rows'] == 0:
        logger.warning(f"Table {table_name} is empty after load")
    missing = {key: report[key] for key in KEY_COLUMNS if report[key]}
    if missing:
        logger.warning(f"Null values found in key columns: {missing}")

    logger.info(f"Validation results: {report['total_rows']} rows, "
                f"{sum(report[key] for key in KEY_COLUMNS)} nulls in key columns")
    return report
