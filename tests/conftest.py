import csv
import sqlite3

import pytest

from claims_pipeline.schema import COLUMN_NAMES, reset_table

BASE_RECORD = {
    'customer': 'BU79786',
    'state': 'Washington',
    'customer_lifetime_value': '2763.52',
    'response': 'No',
    'coverage': 'Basic',
    'coverage_index': '0',
    'education': 'Bachelor',
    'education_index': '2',
    'effective_to_date': '2/24/11',
    'employment_status': 'Employed',
    'employment_status_index': '0',
    'gender': 'F',
    'income': '56274',
    'location': 'Suburban',
    'location_index': '0',
    'marital_status': 'Married',
    'marital_status_index': '0',
    'monthly_premium_auto': '69',
    'months_since_last_claim': '32',
    'months_since_policy_inception': '5',
    'number_of_open_complaints': '0',
    'number_of_policies': '1',
    'policy_type': 'Corporate Auto',
    'policy_type_index': '1',
    'policy': 'Corporate L3',
    'policy_index': '2',
    'renew_offer_type': '1',
    'sales_channel': 'Agent',
    'sales_channel_index': '0',
    'total_claim_amount': '384.81',
    'vehicle_class': 'Two-Door Car',
    'vehicle_class_index': '1',
    'vehicle_size': 'Medsize',
    'vehicle_size_index': '1',
}


@pytest.fixture
def write_csv(tmp_path):
    """Write claim records (overrides of BASE_RECORD) to a CSV and return its path."""
    def _write(records, header=None, filename="claims.csv"):
        header = header or COLUMN_NAMES
        path = tmp_path / filename
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            for overrides in records:
                record = dict(BASE_RECORD, **overrides)
                writer.writerow([record.get(col, '') for col in COLUMN_NAMES])
        return str(path)
    return _write


@pytest.fixture
def conn(tmp_path):
    connection = sqlite3.connect(str(tmp_path / "claims.db"))
    reset_table(connection)
    yield connection
    connection.close()


@pytest.fixture
def insert_rows(conn):
    """Insert rows given as dicts of column -> value straight into the table."""
    def _insert(rows):
        for row in rows:
            columns = ", ".join(row)
            placeholders = ", ".join("?" for _ in row)
            conn.execute(f"INSERT INTO motor_insurance_raw ({columns}) VALUES ({placeholders})",
                         tuple(row.values()))
        conn.commit()
    return _insert


@pytest.fixture
def three_policy_csv(write_csv):
    return write_csv([
        {'customer': 'C1', 'monthly_premium_auto': '100', 'total_claim_amount': '0',
         'coverage': 'Basic', 'vehicle_class': 'SUV', 'employment_status': 'Employed',
         'income': '0', 'effective_to_date': '1/15/2011'},
        {'customer': 'C2', 'monthly_premium_auto': '200', 'total_claim_amount': '50',
         'coverage': 'Premium', 'vehicle_class': 'SUV', 'employment_status': 'Unemployed',
         'income': '45000', 'effective_to_date': '2/3/2011'},
        {'customer': 'C3', 'monthly_premium_auto': '0', 'total_claim_amount': '10',
         'coverage': 'Basic', 'vehicle_class': 'Four-Door Car', 'employment_status': 'Employed',
         'income': '90000', 'effective_to_date': '2/28/11'},
    ])
