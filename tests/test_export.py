import os
from unittest import mock

import pandas as pd
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import ClientError

from claims_pipeline.analysis import run_all_analyses
from claims_pipeline.export import export_reports, export_table_to_parquet, upload_file_to_s3
from claims_pipeline.features import enrich_features
from claims_pipeline.loader import ingest_csv


def test_export_reports_writes_one_parquet_per_report(conn, three_policy_csv, tmp_path):
    ingest_csv(three_policy_csv, conn)
    enrich_features(conn)
    reports = run_all_analyses(conn)

    written = export_reports(reports, str(tmp_path / "out"), timestamp="2024-01-01_00-00-00")

    assert set(written) == set(reports)
    assert os.path.basename(written['policies_by_month']) == "2024-01-01_00-00-00_policies_by_month.parquet"
    by_month = pd.read_parquet(written['policies_by_month'])
    assert by_month['policy_count'].tolist() == [1, 2]
    overall = pd.read_parquet(written['overall_loss_ratio'])
    assert overall['overall_loss_ratio'].tolist() == [0.0167]


def test_export_reports_writes_null_overall_ratio(tmp_path):
    written = export_reports({'overall_loss_ratio': None}, str(tmp_path), timestamp="ts")
    overall = pd.read_parquet(written['overall_loss_ratio'])
    assert overall['overall_loss_ratio'].isna().all()


def test_export_table_to_parquet(conn, three_policy_csv, tmp_path):
    ingest_csv(three_policy_csv, conn)
    output_file = str(tmp_path / "table.parquet")
    assert export_table_to_parquet(conn, output_file) == output_file
    df = pd.read_parquet(output_file)
    assert sorted(df['customer']) == ['C1', 'C2', 'C3']


def test_export_empty_table_writes_nothing(conn, tmp_path):
    output_file = tmp_path / "empty.parquet"
    assert export_table_to_parquet(conn, str(output_file)) is None
    assert not output_file.exists()


def test_upload_file_to_s3(tmp_path):
    local_file = tmp_path / "report.parquet"
    local_file.write_bytes(b"data")
    with mock.patch("claims_pipeline.export.boto3") as boto3_mock:
        assert upload_file_to_s3(str(local_file), "claims-bucket") is True
    boto3_mock.client.return_value.upload_file.assert_called_once_with(
        str(local_file), "claims-bucket", "report.parquet"
    )


def test_upload_failure_is_reported(tmp_path):
    local_file = tmp_path / "report.parquet"
    local_file.write_bytes(b"data")
    error = ClientError({'Error': {'Code': '403', 'Message': 'Forbidden'}}, 'PutObject')
    with mock.patch("claims_pipeline.export.boto3") as boto3_mock:
        boto3_mock.client.return_value.upload_file.side_effect = error
        assert upload_file_to_s3(str(local_file), "claims-bucket", "custom/key.parquet") is False


def test_upload_access_denied_is_reported(tmp_path):
    local_file = tmp_path / "report.parquet"
    local_file.write_bytes(b"data")
    error = S3UploadFailedError(
        "Failed to upload report.parquet to claims-bucket/report.parquet: "
        "An error occurred (AccessDenied) when calling the PutObject operation: Access Denied"
    )
    with mock.patch("claims_pipeline.export.boto3") as boto3_mock:
        boto3_mock.client.return_value.upload_file.side_effect = error
        assert upload_file_to_s3(str(local_file), "claims-bucket") is False
