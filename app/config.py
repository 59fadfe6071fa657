import os
from datetime import timedelta
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent  # project root (where wsgi.py is)
load_dotenv(BASE_DIR / ".env")


class ConfigError(RuntimeError):
    """Raised once at startup when required settings are missing."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__("Missing required configuration: " + ", ".join(self.missing))


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(
        minutes=int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES_MIN", "30"))
    )
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(
        days=int(os.getenv("JWT_REFRESH_TOKEN_EXPIRES_DAYS", "7"))
    )

    # Keyed digest for device / network identifiers
    VOTER_HASH_SECRET = os.getenv("VOTER_HASH_SECRET")

    # Voting sessions
    SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", "72"))
    SHARE_TOKEN_LENGTH = int(os.getenv("SHARE_TOKEN_LENGTH", "8"))

    # Photo storage
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", str(BASE_DIR / "uploads"))
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(5 * 1024 * 1024)))

    SWAGGER = {"title": "Peer Rating API", "uiversion": 3}


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-length-for-hs256"
    VOTER_HASH_SECRET = "test-voter-hash-secret"


REQUIRED_KEYS = (
    "SQLALCHEMY_DATABASE_URI",
    "SECRET_KEY",
    "JWT_SECRET_KEY",
    "VOTER_HASH_SECRET",
    "UPLOAD_FOLDER",
)


def validate_config(config) -> None:
    """Fail fast with every missing key at once."""
    missing = [key for key in REQUIRED_KEYS if not config.get(key)]
    if missing:
        raise ConfigError(missing)
