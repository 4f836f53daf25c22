"""Process-wide configuration for the report relay."""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Base paths
BASE_DIR = Path(__file__).resolve().parent.parent
LOGS_DIR = Path(os.getenv("LOGS_DIR", BASE_DIR / "logs"))
LOGS_DIR.mkdir(parents=True, exist_ok=True)

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
BETTERSTACK_SOURCE_TOKEN = os.getenv("BETTERSTACK_SOURCE_TOKEN")
BETTERSTACK_INGEST_HOST = os.getenv("BETTERSTACK_INGEST_HOST")

# Tenants
TENANTS_FILE = Path(os.getenv("TENANTS_FILE", BASE_DIR / "tenants.json"))
TENANTS_DIR = Path(os.getenv("TENANTS_DIR", BASE_DIR / "tenants"))
ARCHIVE_DIR = Path(os.getenv("ARCHIVE_DIR", BASE_DIR / "archive"))

# Alerting
SLACK_WEBHOOK_URL = os.getenv("SLACK_WEBHOOK_URL")

# Record store (optional)
DATABASE_URL = os.getenv("DATABASE_URL")

# Image mirror (optional)
AWS_S3_BUCKET_NAME = os.getenv("AWS_S3_BUCKET_NAME")
AWS_S3_ACCESS_KEY_ID = os.getenv("AWS_S3_ACCESS_KEY_ID")
AWS_S3_SECRET_ACCESS_KEY = os.getenv("AWS_S3_SECRET_ACCESS_KEY")
AWS_S3_REGION = os.getenv("AWS_S3_REGION")
AWS_S3_ENDPOINT_URL = os.getenv("AWS_S3_ENDPOINT_URL")

# Publish backends
TWITTER_API_URL = os.getenv("TWITTER_API_URL", "https://api.twitter.com")
TWITTER_UPLOAD_URL = os.getenv("TWITTER_UPLOAD_URL", "https://upload.twitter.com")
TWITTER_API_KEY = os.getenv("TWITTER_API_KEY")
TWITTER_API_SECRET = os.getenv("TWITTER_API_SECRET")
TWITTER_ACCESS_TOKEN = os.getenv("TWITTER_ACCESS_TOKEN")
TWITTER_ACCESS_TOKEN_SECRET = os.getenv("TWITTER_ACCESS_TOKEN_SECRET")
MASTODON_API_URL = os.getenv("MASTODON_API_URL")
MASTODON_ACCESS_TOKEN = os.getenv("MASTODON_ACCESS_TOKEN")

# HTTP
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))  # seconds per request
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "3"))


def validate_config(channels=(), alerting=False):
    """Validate configuration required by the given channels."""
    errors = []

    for channel in channels:
        if channel == "twitter":
            for name in ("TWITTER_API_KEY", "TWITTER_API_SECRET", "TWITTER_ACCESS_TOKEN", "TWITTER_ACCESS_TOKEN_SECRET"):
                if not globals()[name]:
                    errors.append(f"{name} is required for the twitter channel")
        elif channel == "mastodon":
            if not MASTODON_API_URL:
                errors.append("MASTODON_API_URL is required for the mastodon channel")
            if not MASTODON_ACCESS_TOKEN:
                errors.append("MASTODON_ACCESS_TOKEN is required for the mastodon channel")

    if alerting and not SLACK_WEBHOOK_URL:
        errors.append("SLACK_WEBHOOK_URL is required when logToSlackChannel is enabled")

    if errors:
        raise ValueError("Config errors:\n  " + "\n  ".join(errors))
