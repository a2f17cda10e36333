"""Configuration module for the catalog admin backend."""
import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name, default):
    return int(os.getenv(name, str(default)))


class Config:
    """Base configuration."""
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    TESTING = False
    DEBUG = False

    # Supabase configuration
    SUPABASE_URL = os.getenv("SUPABASE_URL")
    SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
    SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")

    # Only verified addresses under this domain may use the dashboard
    ALLOWED_EMAIL_DOMAIN = os.getenv("ALLOWED_EMAIL_DOMAIN", "@grandeclip.com")

    # Product image storage
    PRODUCT_IMAGE_BUCKET = os.getenv("PRODUCT_IMAGE_BUCKET", "products")
    STATIC_ASSET_BASE_URL = os.getenv("STATIC_ASSET_BASE_URL", "")
    PRODUCT_IMAGE_DEFAULT_EXTENSION = "png"

    # Platform assigned to product sets registered from raw links
    DEFAULT_PLATFORM_ID = os.getenv("DEFAULT_PLATFORM_ID", "d7aa0533-ea87-46b5-84d2-aa35ccce9506")

    # Crawl workflow dispatch
    GITHUB_PAT = os.getenv("GITHUB_PAT")
    CRAWL_WORKFLOW_URL = os.getenv(
        "CRAWL_WORKFLOW_URL",
        "https://api.github.com/repos/grandeclip/pick_drop/actions/workflows/crawl.yml/dispatches",
    )
    CRAWL_WORKFLOW_REF = os.getenv("CRAWL_WORKFLOW_REF", "main")

    # Cache invalidation proxy
    CACHE_PROXY_TARGET = os.getenv("CACHE_PROXY_TARGET", "https://pickdrop.shop/api/magpie/cache")
    CACHE_HISTORY_LIMIT = _int_env("CACHE_HISTORY_LIMIT", 50)
    HTTP_TIMEOUT = _int_env("HTTP_TIMEOUT", 30)

    # Redis holds per-user session state
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Home screen category versions
    HOME_CATEGORY_VERSION_LIMIT = _int_env("HOME_CATEGORY_VERSION_LIMIT", 20)
    HIDDEN_CATEGORY_ORDER = 999

    # Product listing
    DEFAULT_PAGE_SIZE = _int_env("DEFAULT_PAGE_SIZE", 20)
    PAGE_SIZE_CHOICES = [20, 100, 500]

    # Logging
    LOG_PATH = os.getenv("LOG_PATH", os.path.join(os.getcwd(), "logs"))
    LOG_TO_FILES = True

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SUPABASE_JWT_SECRET = "test-jwt-secret"
    STATIC_ASSET_BASE_URL = "https://static.example.com/"
    GITHUB_PAT = "test-token"
    LOG_TO_FILES = False


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
