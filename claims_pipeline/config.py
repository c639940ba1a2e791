import os
from dotenv import load_dotenv

# Values in a local .env file apply unless already set in the environment
load_dotenv()

DEFAULT_DB_PATH = "data/motor_insurance.db"
DEFAULT_EXPORT_DIR = "data/exports"
DEFAULT_LOG_DIR = "logs"
DEFAULT_AWS_REGION = "us-east-1"

DB_PATH = os.environ.get("CLAIMS_DB_PATH", DEFAULT_DB_PATH)
EXPORT_DIR = os.environ.get("CLAIMS_EXPORT_DIR", DEFAULT_EXPORT_DIR)
LOG_DIR = os.environ.get("CLAIMS_LOG_DIR", DEFAULT_LOG_DIR)
S3_BUCKET = os.environ.get("CLAIMS_S3_BUCKET")

# Read AWS credentials and region from environment variables
AWS_ACCESS_KEY_ID = os.environ.get("AWS_ACCESS_KEY_ID")
AWS_SECRET_ACCESS_KEY = os.environ.get("AWS_SECRET_ACCESS_KEY")
AWS_REGION = os.environ.get("AWS_REGION", DEFAULT_AWS_REGION)
