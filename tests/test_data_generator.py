import sqlite3

from claims_pipeline.features import enrich_features
from claims_pipeline.loader import ingest_csv
from claims_pipeline.schema import COLUMN_NAMES, reset_table
from data_generator import CATEGORIES, generate_claims_data, write_claims_csv


def test_generated_columns_match_table():
    df = generate_claims_data(50, seed=7)
    assert sorted(df.columns) == sorted(COLUMN_NAMES)
    assert df['customer'].is_unique


def test_generation_is_seeded():
    first = generate_claims_data(20, seed=3)
    second = generate_claims_data(20, seed=3)
    assert first.equals(second)


def test_index_columns_follow_category_order():
    df = generate_claims_data(200, seed=1)
    for column, options in CATEGORIES.items():
        expected = df[column].map({name: i for i, name in enumerate(options)})
        assert (df[f"{column}_index"] == expected).all()


def test_unemployed_have_no_income():
    df = generate_claims_data(300, seed=11)
    assert (df.loc[df['employment_status'] == 'Unemployed', 'income'] == 0).all()


def test_generated_csv_loads_and_enriches(tmp_path):
    path = write_claims_csv(generate_claims_data(100, seed=5), str(tmp_path), "generated.csv")
    conn = sqlite3.connect(str(tmp_path / "claims.db"))
    try:
        reset_table(conn)
        assert ingest_csv(path, conn) == 100
        enrich_features(conn)
        months = {row[0] for row in conn.execute(
            "SELECT DISTINCT strftime('%Y-%m', effective_to_date) FROM motor_insurance_raw")}
        assert months <= {'2011-01', '2011-02'}
        bands = {row[0] for row in conn.execute("SELECT DISTINCT income_band FROM motor_insurance_raw")}
        assert 'No Income' in bands
    finally:
        conn.close()
