import csv
import os
import re
import sqlite3
from typing import Any, List, Optional

import numpy as np
import pandas as pd

from claims_pipeline.schema import COLUMN_NAMES, TABLE_NAME, columns_of_kind
from utils.logger import get_stage_logger

logger = get_stage_logger("Loader")

DATE_FORMATS = ("%m/%d/%Y", "%m/%d/%y")
STORED_DATE_FORMAT = "%Y-%m-%d"


class IngestionError(Exception):
    """Raised when the claims CSV cannot be loaded; nothing is committed."""


def normalize_column_name(name: str) -> str:
    """
    Map a CSV header to a table column name.

    'Customer Lifetime Value' and 'customer_lifetime_value' both become
    'customer_lifetime_value'.
    """
    return re.sub(r"[\s\-]+", "_", name.strip().lower())


def validate_csv_structure(csv_file: str, required_columns: Optional[List[str]] = None) -> bool:
    """
    Validate the header of the CSV file.

    Args:
        csv_file: Path to the CSV file
        required_columns: Column names that must be present after normalization
            (default: every raw table column)

    Returns:
        True if the CSV structure is valid, False otherwise
    """
    if required_columns is None:
        required_columns = COLUMN_NAMES

    with open(csv_file, newline='', encoding='utf-8-sig') as f:
        reader = csv.DictReader(f)
        csv_columns = reader.fieldnames
        if not csv_columns:
            logger.error("CSV file is empty or has no headers.")
            return False
        normalized = {normalize_column_name(col) for col in csv_columns}
        missing_columns = [col for col in required_columns if col not in normalized]
        if missing_columns:
            logger.error(f"CSV file is missing required columns: {missing_columns}")
            return False
    return True


def parse_mdy_dates(values: pd.Series) -> pd.Series:
    """
    Parse Month/Day/Year strings (4 or 2 digit year) to datetimes.

    Blank values become NaT; values matching neither format also become NaT,
    callers compare against the input to tell the two apart.
    """
    text = values.str.strip()
    parsed = pd.to_datetime(text, format=DATE_FORMATS[0], errors="coerce")
    for fmt in DATE_FORMATS[1:]:
        parsed = parsed.fillna(pd.to_datetime(text, format=fmt, errors="coerce"))
    return parsed


def _bad_rows(mask: pd.Series) -> List[int]:
    # CSV line numbers, counting the header as line 1
    return [int(i) + 2 for i in mask[mask].index[:10]]


def _coerce_numeric(df: pd.DataFrame, column: str, integer: bool = False) -> None:
    converted = pd.to_numeric(df[column], errors="coerce")
    malformed = converted.isna() & df[column].notna()
    if malformed.any():
        raise IngestionError(
            f"Column '{column}' has non-numeric values on lines {_bad_rows(malformed)}"
        )
    if integer:
        fractional = converted.notna() & (converted % 1 != 0)
        if fractional.any():
            raise IngestionError(
                f"Column '{column}' has non-integer values on lines {_bad_rows(fractional)}"
            )
        df[column] = converted.astype("Int64")
    else:
        df[column] = converted.astype(float)


def read_claims_csv(csv_file: str) -> pd.DataFrame:
    """
    Read the claims CSV into a DataFrame typed like the claims table.

    Headers are normalized, text is stripped (blank becomes null), numeric and
    integer columns are coerced, and effective_to_date is stored as ISO text.

    Raises:
        IngestionError: if the file, header, key or any typed field is invalid
    """
    if not os.path.exists(csv_file):
        raise IngestionError(f"CSV file not found: {csv_file}")
    if not validate_csv_structure(csv_file):
        raise IngestionError(f"CSV structure validation failed for {csv_file}")

    df = pd.read_csv(csv_file, dtype=str, keep_default_na=False, na_values=[""], encoding='utf-8-sig')
    df.columns = [normalize_column_name(col) for col in df.columns]

    extra_columns = [col for col in df.columns if col not in COLUMN_NAMES]
    if extra_columns:
        logger.warning(f"Ignoring columns not in the claims table: {extra_columns}")
    df = df[COLUMN_NAMES].copy()

    for column in COLUMN_NAMES:
        df[column] = df[column].str.strip().replace("", np.nan)

    missing_key = df["customer"].isna()
    if missing_key.any():
        raise IngestionError(f"Missing customer key on lines {_bad_rows(missing_key)}")

    duplicated = df["customer"].duplicated(keep=False)
    if duplicated.any():
        duplicates = sorted(df.loc[duplicated, "customer"].unique().tolist())
        raise IngestionError(f"Duplicate customer keys in input file: {duplicates[:10]}")

    for column in columns_of_kind("numeric"):
        _coerce_numeric(df, column)
    for column in columns_of_kind("integer"):
        _coerce_numeric(df, column, integer=True)

    for column in columns_of_kind("date"):
        parsed = parse_mdy_dates(df[column])
        malformed = parsed.isna() & df[column].notna()
        if malformed.any():
            raise IngestionError(
                f"Column '{column}' has dates not in Month/Day/Year form on lines {_bad_rows(malformed)}"
            )
        df[column] = parsed.dt.strftime(STORED_DATE_FORMAT)

    return df


def _to_sql_value(value: Any) -> Any:
    if value is None or value is pd.NA or (isinstance(value, float) and np.isnan(value)):
        return None
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    return value


def ingest_csv(csv_file: str, conn: sqlite3.Connection, table_name: str = TABLE_NAME) -> int:
    """
    Bulk-load the claims CSV into the claims table in a single transaction.

    Args:
        csv_file: Path to the CSV file
        conn: Open SQLite connection; the table must already exist
        table_name: Target table

    Returns:
        Number of rows inserted

    Raises:
        IngestionError: on invalid input or a customer key already in the table
    """
    logger.info(f"Reading claims CSV: {csv_file}")
    df = read_claims_csv(csv_file)

    rows = [
        tuple(_to_sql_value(value) for value in record)
        for record in df.astype(object).itertuples(index=False, name=None)
    ]
    placeholders = ", ".join("?" for _ in COLUMN_NAMES)
    insert_sql = f"INSERT INTO {table_name} ({', '.join(COLUMN_NAMES)}) VALUES ({placeholders})"

    try:
        with conn:
            conn.executemany(insert_sql, rows)
    except sqlite3.IntegrityError as e:
        raise IngestionError(f"Load rejected by {table_name} constraints: {e}") from e

    logger.info(f"Successfully loaded {len(rows)} records into {table_name}")
    return len(rows)
