import os


class Config:
    """Base configuration. All values from env vars."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")

    # Backends
    API_BASE_URL = os.environ.get("API_BASE_URL", "http://localhost:3001").rstrip("/")
    API_PRODUCT_BASE_URL = os.environ.get(
        "API_PRODUCT_BASE_URL", "http://localhost:3030"
    ).rstrip("/")
    API_TIMEOUT = float(os.environ.get("API_TIMEOUT", "15"))

    # Token used by CLI commands (the web UI keeps its token in the session)
    CLI_API_TOKEN = os.environ.get("CLI_API_TOKEN", "")

    REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

    # Product form drafts
    DRAFT_TTL_SECONDS = int(os.environ.get("DRAFT_TTL_SECONDS", str(6 * 3600)))

    # Product list
    PRODUCTS_PER_PAGE = int(os.environ.get("PRODUCTS_PER_PAGE", "50"))
    SEARCH_DEBOUNCE_MS = int(os.environ.get("SEARCH_DEBOUNCE_MS", "300"))

    # Uploaded images are re-encoded before being forwarded
    MAX_CONTENT_LENGTH = 40 * 1024 * 1024

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"


class DevelopmentConfig(Config):
    DEBUG = True
    REDIS_URL = os.environ.get("REDIS_URL", "")  # optional in dev


class ProductionConfig(Config):
    DEBUG = False
    PREFERRED_URL_SCHEME = "https"
    SESSION_COOKIE_SECURE = True

    @classmethod
    def init_app(cls, app):
        import logging
        import sys

        assert app.config["SECRET_KEY"] != "dev-secret-change-me", (
            "SECRET_KEY must be set in production"
        )

        # Stream logs to stdout for Railway
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.INFO)
        formatter = logging.Formatter(
            "[%(asctime)s] %(levelname)s in %(module)s: %(message)s"
        )
        handler.setFormatter(formatter)
        app.logger.addHandler(handler)
        app.logger.setLevel(logging.INFO)
        app.logger.info("Chatbot admin dashboard starting in production mode")


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "testing-secret"
    API_BASE_URL = "http://api.test"
    API_PRODUCT_BASE_URL = "http://products.test"
    REDIS_URL = ""
    SEARCH_DEBOUNCE_MS = 0
    CLI_API_TOKEN = ""


config_map = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
