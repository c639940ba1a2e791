import datetime
import os
import sqlite3
from typing import Dict, Optional, Union

import boto3
import pandas as pd
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from claims_pipeline import config
from claims_pipeline.schema import TABLE_NAME
from utils.logger import get_stage_logger

logger = get_stage_logger("Export")

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def export_table_to_parquet(conn: sqlite3.Connection, output_file: str,
                            table_name: str = TABLE_NAME) -> Optional[str]:
    """
    Write a whole table to a Parquet file.

    Returns:
        The output path, or None when the table is empty and nothing was written
    """
    df = pd.read_sql(f"SELECT * FROM {table_name}", conn)
    if df.empty:
        logger.warning(f"Table '{table_name}' is empty. No data to export.")
        return None
    df.to_parquet(output_file, index=False)
    logger.info(f"Exported {len(df)} records from table '{table_name}' to {output_file}")
    return output_file


def export_reports(reports: Dict[str, Union[Optional[float], pd.DataFrame]], output_dir: str,
                   timestamp: Optional[str] = None) -> Dict[str, str]:
    """
    Write each summary report to its own timestamped Parquet file.

    The overall loss ratio scalar is written as a one-row table.

    Args:
        reports: Result of analysis.run_all_analyses()
        output_dir: Directory for the Parquet files
        timestamp: Filename prefix (default: now, %Y-%m-%d_%H-%M-%S)

    Returns:
        Dictionary mapping report name to the file written
    """
    os.makedirs(output_dir, exist_ok=True)
    ts = timestamp or datetime.datetime.now().strftime(TIMESTAMP_FORMAT)

    written = {}
    for name, result in reports.items():
        if isinstance(result, pd.DataFrame):
            df = result
        else:
            df = pd.DataFrame({name: [result]}, dtype=float)
        output_file = os.path.join(output_dir, f"{ts}_{name}.parquet")
        df.to_parquet(output_file, index=False)
        written[name] = output_file
    logger.info(f"Exported {len(written)} reports to {output_dir}")
    return written


def upload_file_to_s3(local_file: str, bucket: str, s3_key: Optional[str] = None) -> bool:
    """
    Upload a local file to S3 using the configured AWS credentials.

    Returns:
        True on success, False if the upload failed (the error is logged)
    """
    if s3_key is None:
        s3_key = os.path.basename(local_file)
    s3_client = boto3.client('s3',
                             aws_access_key_id=config.AWS_ACCESS_KEY_ID,
                             aws_secret_access_key=config.AWS_SECRET_ACCESS_KEY,
                             region_name=config.AWS_REGION)
    try:
        s3_client.upload_file(local_file, bucket, s3_key)
        logger.info(f"Uploaded {local_file} to s3://{bucket}/{s3_key}")
        return True
    except (S3UploadFailedError, ClientError, BotoCoreError) as e:
        logger.error(f"Failed to upload {local_file} to s3://{bucket}/{s3_key}: {e}")
        return False
