"""Configuration module for the catalog and media sync."""
import os
from dotenv import load_dotenv

load_dotenv()


def _first_env(*names, default=None):
    """Return the first environment variable that is set and non-empty."""
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return default


class Config:
    """Base configuration."""

    # Database configuration
    DATABASE_URL = os.getenv("DATABASE_URL")
    DATABASE_POOL_SIZE = int(os.getenv("DATABASE_POOL_SIZE", "10"))
    DATABASE_MAX_OVERFLOW = int(os.getenv("DATABASE_MAX_OVERFLOW", "20"))
    DATABASE_POOL_RECYCLE = int(os.getenv("DATABASE_POOL_RECYCLE", "3600"))
    DATABASE_ECHO = os.getenv("DATABASE_ECHO", "false").lower() == "true"

    # Logging
    LOG_PATH = os.getenv("LOG_PATH", os.path.join(os.getcwd(), "logs"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # HTTP
    HTTP_TIMEOUT = int(os.getenv("HTTP_TIMEOUT", "30"))
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")

    # Shopify Configuration
    SHOPIFY_SHOP_URL = os.getenv("SHOPIFY_SHOP_URL")
    SHOPIFY_ACCESS_TOKEN = os.getenv("SHOPIFY_ACCESS_TOKEN")
    SHOPIFY_API_VERSION = os.getenv("SHOPIFY_API_VERSION", "2024-10")
    SHOPIFY_PAGE_SIZE = int(os.getenv("SHOPIFY_PAGE_SIZE", "50"))
    SHOPIFY_MAX_RETRIES = int(os.getenv("SHOPIFY_MAX_RETRIES", "3"))

    # Google Drive Configuration
    GOOGLE_DRIVE_SERVICE_ACCOUNT_KEY = os.getenv("GOOGLE_DRIVE_SERVICE_ACCOUNT_KEY")
    GOOGLE_DRIVE_SKU_FOLDER_ID = os.getenv("GOOGLE_DRIVE_SKU_FOLDER_ID")

    # Storj (S3 gateway) Configuration
    STORJ_S3_ENDPOINT = _first_env("STORJ_S3_ENDPOINT", "STORJ_ENDPOINT")
    STORJ_S3_ACCESS_KEY_ID = _first_env("STORJ_S3_ACCESS_KEY_ID", "STORJ_ACCESS_KEY_ID")
    STORJ_S3_SECRET_ACCESS_KEY = _first_env("STORJ_S3_SECRET_ACCESS_KEY", "STORJ_SECRET_ACCESS_KEY")
    STORJ_S3_REGION = os.getenv("STORJ_S3_REGION", "us-east-1")
    STORJ_S3_BUCKET = _first_env("STORJ_S3_BUCKET", "STORJ_BUCKET")
    STORJ_BASE_PATH = _first_env("STORJ_BASE_PATH", "STORJ_PATH_PREFIX", default="")

    # Sync run configuration
    SYNC_PROGRESS_EVERY = int(os.getenv("SYNC_PROGRESS_EVERY", "1"))
    SYNC_ERROR_SAMPLE_SIZE = int(os.getenv("SYNC_ERROR_SAMPLE_SIZE", "50"))
    SYNC_STALE_AFTER_MINUTES = int(os.getenv("SYNC_STALE_AFTER_MINUTES", "120"))


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False

    DATABASE_ECHO = os.getenv("DATABASE_ECHO", "false").lower() == "true"


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False

    DATABASE_ECHO = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = True
    TESTING = True

    DATABASE_URL = "sqlite:///:memory:"
    SYNC_STALE_AFTER_MINUTES = 0


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(name=None):
    """Return the configuration class selected by name or APP_ENV."""
    name = name or os.getenv("APP_ENV", "default")
    return config.get(name, config['default'])
