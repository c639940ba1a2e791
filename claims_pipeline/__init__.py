"""
Motor Insurance Claims ETL Package

Modules:
    config.py       - Environment driven settings (.env aware).
    schema.py       - Declares and (re)creates the motor_insurance_raw table.
    loader.py       - Validates and bulk-loads the claims CSV into the table.
    validation.py   - Row and null counts used to sanity-check a load.
    features.py     - Adds annual_premium, has_claim and income_band.
    analysis.py     - Loss ratio and claims summary queries.
    export.py       - Writes tables to Parquet and uploads them to S3.
    run_pipeline.py - Orchestrates the full pipeline from the command line.

Version: 1.0.0
"""

__version__ = "1.0.0"
