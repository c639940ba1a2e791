"""
Loss ratio and claims summaries over the enriched claims table.

Every query is read-only. Ratios divide by NULLIF(..., 0) so an empty group or
a zero premium total yields NULL instead of an error, and rounding happens in
the SELECT list only.
"""
import sqlite3
from collections import OrderedDict
from typing import Callable, Dict, Optional, Union

import pandas as pd

from claims_pipeline.schema import TABLE_NAME
from utils.logger import get_stage_logger

logger = get_stage_logger("Analysis")

LOSS_RATIO_SQL = "SUM(total_claim_amount) / NULLIF(SUM(annual_premium), 0)"


def overall_loss_ratio(conn: sqlite3.Connection, table_name: str = TABLE_NAME) -> Optional[float]:
    """Total claims over total annual premium, 4 dp; None when premium sums to zero."""
    cursor = conn.execute(
        f"SELECT ROUND({LOSS_RATIO_SQL}, 4) AS overall_loss_ratio FROM {table_name}"
    )
    return cursor.fetchone()[0]


def loss_ratio_by_coverage(conn: sqlite3.Connection, table_name: str = TABLE_NAME) -> pd.DataFrame:
    query = f"""
        SELECT coverage,
               ROUND({LOSS_RATIO_SQL}, 4) AS loss_ratio
        FROM {table_name}
        GROUP BY coverage
        ORDER BY loss_ratio DESC
    """
    return pd.read_sql(query, conn)


def claims_by_vehicle_class(conn: sqlite3.Connection, table_name: str = TABLE_NAME) -> pd.DataFrame:
    query = f"""
        SELECT vehicle_class,
               ROUND(AVG(total_claim_amount), 2) AS avg_claim,
               COUNT(*) AS policies_count
        FROM {table_name}
        GROUP BY vehicle_class
        ORDER BY avg_claim DESC
    """
    return pd.read_sql(query, conn)


def loss_ratio_by_vehicle_class_and_coverage(conn: sqlite3.Connection,
                                             table_name: str = TABLE_NAME) -> pd.DataFrame:
    query = f"""
        SELECT vehicle_class, coverage,
               ROUND({LOSS_RATIO_SQL}, 4) AS loss_ratio
        FROM {table_name}
        GROUP BY vehicle_class, coverage
        ORDER BY loss_ratio DESC
    """
    return pd.read_sql(query, conn)


def premium_and_claim_by_employment(conn: sqlite3.Connection,
                                    table_name: str = TABLE_NAME) -> pd.DataFrame:
    # Premium is recomputed from the monthly figure, not read from annual_premium
    query = f"""
        SELECT employment_status,
               ROUND(AVG(monthly_premium_auto * 12), 2) AS avg_annual_premium,
               ROUND(AVG(total_claim_amount), 2) AS avg_claim
        FROM {table_name}
        GROUP BY employment_status
        ORDER BY avg_claim DESC
    """
    return pd.read_sql(query, conn)


def policies_by_month(conn: sqlite3.Connection, table_name: str = TABLE_NAME) -> pd.DataFrame:
    query = f"""
        SELECT strftime('%Y-%m', effective_to_date) AS policy_month,
               COUNT(*) AS policy_count
        FROM {table_name}
        GROUP BY policy_month
        ORDER BY policy_month
    """
    return pd.read_sql(query, conn)


def claim_rate_by_income_band(conn: sqlite3.Connection, table_name: str = TABLE_NAME) -> pd.DataFrame:
    query = f"""
        SELECT income_band,
               COUNT(*) AS policy_count,
               ROUND(AVG(has_claim), 4) AS claim_rate,
               ROUND(AVG(total_claim_amount), 2) AS avg_claim
        FROM {table_name}
        GROUP BY income_band
        ORDER BY claim_rate DESC
    """
    return pd.read_sql(query, conn)


ANALYSES: Dict[str, Callable[..., Union[Optional[float], pd.DataFrame]]] = OrderedDict([
    ('overall_loss_ratio', overall_loss_ratio),
    ('loss_ratio_by_coverage', loss_ratio_by_coverage),
    ('claims_by_vehicle_class', claims_by_vehicle_class),
    ('loss_ratio_by_vehicle_class_and_coverage', loss_ratio_by_vehicle_class_and_coverage),
    ('premium_and_claim_by_employment', premium_and_claim_by_employment),
    ('policies_by_month', policies_by_month),
    ('claim_rate_by_income_band', claim_rate_by_income_band),
])


def run_all_analyses(conn: sqlite3.Connection,
                     table_name: str = TABLE_NAME) -> Dict[str, Union[Optional[float], pd.DataFrame]]:
    """
    Run every summary query against the current table state.

    Returns:
        Ordered mapping of report name to its result (a float or None for the
        overall loss ratio, a DataFrame otherwise)
    """
    results: Dict[str, Union[Optional[float], pd.DataFrame]] = OrderedDict()
    for name, analysis in ANALYSES.items():
        results[name] = analysis(conn, table_name)
        if isinstance(results[name], pd.DataFrame):
            logger.info(f"{name}: {len(results[name])} rows")
        else:
            logger.info(f"{name}: {results[name]}")
    return results
