"""
Generate a synthetic motor insurance claims CSV in the loader's input format.

Categorical columns come with their matching *_index column, dates are written
Month/Day/Year and unemployed customers have zero income.
"""
import argparse
import os
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from utils.logger import PIPELINE_LOGGER_NAME, get_stage_logger, setup_logger

logger = get_stage_logger("DataGenerator")

DEFAULT_OUTPUT_DIR = os.path.join("data", "sample")
DEFAULT_FILENAME = "motor_insurance_claims.csv"
DEFAULT_NUM_RECORDS = 5000
DATE_START = datetime(2011, 1, 1)
DATE_SPAN_DAYS = 59  # January and February 2011

# Category -> probability weight; the index column is the position in this order
CATEGORIES: Dict[str, Dict[str, float]] = {
    'coverage': {'Basic': 0.6, 'Extended': 0.3, 'Premium': 0.1},
    'education': {'High School or Below': 0.3, 'College': 0.3, 'Bachelor': 0.3,
                  'Master': 0.07, 'Doctor': 0.03},
    'employment_status': {'Employed': 0.62, 'Unemployed': 0.25, 'Medical Leave': 0.05,
                          'Disabled': 0.04, 'Retired': 0.04},
    'location': {'Suburban': 0.63, 'Rural': 0.2, 'Urban': 0.17},
    'marital_status': {'Married': 0.58, 'Single': 0.27, 'Divorced': 0.15},
    'policy_type': {'Personal Auto': 0.74, 'Corporate Auto': 0.22, 'Special Auto': 0.04},
    'sales_channel': {'Agent': 0.38, 'Branch': 0.28, 'Call Center': 0.19, 'Web': 0.15},
    'vehicle_class': {'Four-Door Car': 0.5, 'Two-Door Car': 0.2, 'SUV': 0.2,
                      'Sports Car': 0.05, 'Luxury SUV': 0.025, 'Luxury Car': 0.025},
    'vehicle_size': {'Small': 0.2, 'Medsize': 0.7, 'Large': 0.1},
}
STATES = ['California', 'Oregon', 'Arizona', 'Nevada', 'Washington']
POLICY_LEVELS = {'Personal Auto': 'Personal', 'Corporate Auto': 'Corporate', 'Special Auto': 'Special'}
VEHICLE_PREMIUM_FACTOR = {'Four-Door Car': 1.0, 'Two-Door Car': 1.0, 'SUV': 1.6,
                          'Sports Car': 1.6, 'Luxury SUV': 2.6, 'Luxury Car': 2.6}


def choose_weighted(rng: np.random.Generator, options: Dict[str, float], size: int) -> np.ndarray:
    names = list(options)
    weights = np.array(list(options.values()))
    return rng.choice(names, size=size, p=weights / weights.sum())


def format_mdy(day: datetime) -> str:
    return f"{day.month}/{day.day}/{day.year}"


def generate_claims_data(num_records: int = DEFAULT_NUM_RECORDS, seed: Optional[int] = None) -> pd.DataFrame:
    """
    Build a DataFrame of synthetic policy records.

    Args:
        num_records: Number of policies (one per customer)
        seed: Seed for numpy's random generator

    Returns:
        DataFrame whose columns match the claims table
    """
    rng = np.random.default_rng(seed)
    df = pd.DataFrame({
        'customer': [f"C{i:07d}" for i in range(1, num_records + 1)],
        'state': rng.choice(STATES, size=num_records),
    })

    for column, options in CATEGORIES.items():
        df[column] = choose_weighted(rng, options, num_records)
        index_of = {name: i for i, name in enumerate(options)}
        df[f"{column}_index"] = df[column].map(index_of)

    policy_numbers = rng.integers(1, 4, size=num_records)
    df['policy'] = [f"{POLICY_LEVELS[t]} L{n}" for t, n in zip(df['policy_type'], policy_numbers)]
    policy_names = sorted(df['policy'].unique())
    df['policy_index'] = df['policy'].map({name: i for i, name in enumerate(policy_names)})

    income = rng.integers(10000, 100000, size=num_records)
    df['income'] = np.where(df['employment_status'] == 'Unemployed', 0, income)
    df['gender'] = rng.choice(['F', 'M'], size=num_records)
    df['response'] = choose_weighted(rng, {'No': 0.86, 'Yes': 0.14}, num_records)

    base_premium = rng.integers(61, 100, size=num_records)
    coverage_factor = 1 + df['coverage_index'] * 0.25
    df['monthly_premium_auto'] = (base_premium * coverage_factor
                                  * df['vehicle_class'].map(VEHICLE_PREMIUM_FACTOR)).round().astype(int)

    claim_chance = rng.random(num_records)
    claims = df['monthly_premium_auto'] * rng.uniform(2.0, 8.0, size=num_records)
    df['total_claim_amount'] = np.where(claim_chance < 0.85, claims.round(2), 0.0)

    df['customer_lifetime_value'] = (df['monthly_premium_auto'] * rng.uniform(25, 110, size=num_records)).round(2)
    df['months_since_last_claim'] = rng.integers(0, 36, size=num_records)
    df['months_since_policy_inception'] = rng.integers(0, 100, size=num_records)
    df['number_of_open_complaints'] = choose_weighted(
        rng, {'0': 0.79, '1': 0.11, '2': 0.05, '3': 0.03, '4': 0.02}, num_records).astype(int)
    df['number_of_policies'] = rng.integers(1, 10, size=num_records)
    df['renew_offer_type'] = rng.integers(1, 5, size=num_records)

    day_offsets = rng.integers(0, DATE_SPAN_DAYS, size=num_records)
    df['effective_to_date'] = [format_mdy(DATE_START + timedelta(days=int(d))) for d in day_offsets]

    return df


def write_claims_csv(df: pd.DataFrame, output_dir: str = DEFAULT_OUTPUT_DIR,
                     filename: str = DEFAULT_FILENAME) -> str:
    os.makedirs(output_dir, exist_ok=True)
    output_file = os.path.join(output_dir, filename)
    df.to_csv(output_file, index=False)
    logger.info(f"Wrote {len(df)} records to {output_file}")
    return output_file


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the script."""
    parser = argparse.ArgumentParser(description='Generate synthetic motor insurance claims data')
    parser.add_argument('--records', type=int, default=DEFAULT_NUM_RECORDS,
                        help=f'Number of records to generate (default: {DEFAULT_NUM_RECORDS})')
    parser.add_argument('--seed', type=int, default=None, help='Random seed')
    parser.add_argument('--output-dir', type=str, default=DEFAULT_OUTPUT_DIR,
                        help=f'Output directory (default: {DEFAULT_OUTPUT_DIR})')
    parser.add_argument('--filename', type=str, default=DEFAULT_FILENAME,
                        help=f'Output filename (default: {DEFAULT_FILENAME})')

    args = parser.parse_args(argv)
    setup_logger(PIPELINE_LOGGER_NAME, log_file="data_generator.log")

    output_file = write_claims_csv(generate_claims_data(args.records, args.seed),
                                   args.output_dir, args.filename)
    print(f"Generated CSV file at: {output_file}")


if __name__ == "__main__":
    main()
