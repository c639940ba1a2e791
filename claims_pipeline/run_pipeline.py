#!/usr/bin/env python3
"""
Motor Insurance Claims Pipeline

Runs the claims ETL end to end against a SQLite database:

    schema    -> drop and recreate motor_insurance_raw
    load      -> validate and bulk-load the claims CSV
    validate  -> row and null counts on the key columns
    enrich    -> annual_premium, has_claim, income_band
    analyse   -> loss ratio and claims summaries
    export    -> Parquet files (and optional S3 upload)

Stages run strictly in order; the first failure stops the run.
"""

import argparse
import datetime
import os
import sqlite3
import sys
from typing import Any, Callable, Dict, List, Optional

from claims_pipeline import config
from claims_pipeline.analysis import run_all_analyses
from claims_pipeline.export import (TIMESTAMP_FORMAT, export_reports, export_table_to_parquet,
                                    upload_file_to_s3)
from claims_pipeline.features import enrich_features
from claims_pipeline.loader import ingest_csv
from claims_pipeline.schema import TABLE_NAME, reset_table
from claims_pipeline.validation import count_rows, validate_load
from utils.logger import PIPELINE_LOGGER_NAME, get_stage_logger, setup_logger

logger = get_stage_logger("Runner")


class PipelineError(Exception):
    """A pipeline stage failed; the remaining stages were not run."""

    def __init__(self, stage: str, cause: Exception):
        super().__init__(f"Stage '{stage}' failed: {cause}")
        self.stage = stage
        self.cause = cause


def _run_stage(stage: str, func: Callable[..., Any], *args: Any) -> Any:
    logger.info(f"Running stage: {stage}")
    try:
        return func(*args)
    except Exception as e:
        logger.error(f"Error in stage '{stage}': {e}")
        raise PipelineError(stage, e) from e


class ClaimsPipeline:
    """Runs the motor claims ETL stages over one SQLite database."""

    def __init__(self, db_path: str = config.DB_PATH, export_dir: str = config.EXPORT_DIR,
                 table_name: str = TABLE_NAME):
        """
        Args:
            db_path: Path to the SQLite database file
            export_dir: Directory for Parquet exports
            table_name: Name of the claims table
        """
        self.db_path = db_path
        self.export_dir = export_dir
        self.table_name = table_name
        self._ensure_db_directory()

    def _ensure_db_directory(self) -> None:
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    def connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def export(self, conn: sqlite3.Connection, reports: Dict[str, Any]) -> List[str]:
        """Write the enriched table and every report to Parquet; return the paths."""
        ts = datetime.datetime.now().strftime(TIMESTAMP_FORMAT)
        os.makedirs(self.export_dir, exist_ok=True)

        files = list(export_reports(reports, self.export_dir, timestamp=ts).values())
        table_file = export_table_to_parquet(
            conn, os.path.join(self.export_dir, f"{ts}_{self.table_name}.parquet"), self.table_name
        )
        if table_file:
            files.append(table_file)
        return files

    def run(self, csv_file: str, export: bool = True) -> Dict[str, Any]:
        """
        Run every stage in order.

        Args:
            csv_file: Path to the claims CSV
            export: Write Parquet outputs after the analyses

        Returns:
            Dictionary with loaded_rows, validation, features, reports and exported_files

        Raises:
            PipelineError: naming the stage that failed
        """
        result: Dict[str, Any] = {'exported_files': []}
        conn = self.connect()
        try:
            _run_stage('schema', reset_table, conn, self.table_name)
            result['loaded_rows'] = _run_stage('load', ingest_csv, csv_file, conn, self.table_name)
            result['validation'] = _run_stage('validate', validate_load, conn, self.table_name)
            result['features'] = _run_stage('enrich', enrich_features, conn, self.table_name)
            result['reports'] = _run_stage('analyse', run_all_analyses, conn, self.table_name)
            if export:
                result['exported_files'] = _run_stage('export', self.export, conn, result['reports'])

            logger.info(f"Pipeline completed successfully. "
                        f"{count_rows(conn, self.table_name)} rows in {self.table_name}")
            return result
        finally:
            conn.close()


def upload_outputs(files: List[str], bucket: str) -> int:
    """Upload exported files to S3; return how many succeeded."""
    return sum(1 for local_file in files if upload_file_to_s3(local_file, bucket))


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line entry point for the pipeline."""
    parser = argparse.ArgumentParser(description='Load, enrich and analyse motor insurance claims')
    parser.add_argument('--csv', type=str, required=True, help='Path to the claims CSV file')
    parser.add_argument('--db', type=str, default=config.DB_PATH, help='Path to SQLite database')
    parser.add_argument('--export-dir', type=str, default=config.EXPORT_DIR,
                        help='Directory for exported Parquet files')
    parser.add_argument('--skip-export', action='store_true', help='Do not write Parquet files')
    parser.add_argument('--bucket', type=str, default=config.S3_BUCKET,
                        help='S3 bucket to upload exports to (default: $CLAIMS_S3_BUCKET)')
    parser.add_argument('--log-dir', type=str, default=config.LOG_DIR, help='Directory for log files')

    args = parser.parse_args(argv)

    setup_logger(PIPELINE_LOGGER_NAME, log_file="claims_pipeline.log", log_dir=args.log_dir)

    pipeline = ClaimsPipeline(db_path=args.db, export_dir=args.export_dir)
    try:
        result = pipeline.run(args.csv, export=not args.skip_export)
    except PipelineError as e:
        logger.error(f"Pipeline halted: {e}")
        return 1

    print("Pipeline execution completed:")
    print(f"Rows loaded: {result['loaded_rows']}")
    print(f"Overall loss ratio: {result['reports']['overall_loss_ratio']}")
    for name, report in result['reports'].items():
        if name != 'overall_loss_ratio':
            print(f"\n{name}:")
            print(report.to_string(index=False))

    if result['exported_files']:
        print(f"\nExported {len(result['exported_files'])} files to {args.export_dir}")
        if args.bucket:
            uploaded = upload_outputs(result['exported_files'], args.bucket)
            print(f"Uploaded {uploaded}/{len(result['exported_files'])} files to s3://{args.bucket}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
