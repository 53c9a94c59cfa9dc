import os


def _flag(name, default="0"):
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    JSON_SORT_KEYS = False
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ALLOWED_ORIGINS = os.getenv("CORS_ALLOWED_ORIGINS", "*")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URL", "memory://")
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "200 per hour")
    ORDER_LIMIT_PER_IP = os.getenv("ORDER_LIMIT_PER_IP", "20 per hour")

    TRACING_ENABLED = _flag("TRACING_ENABLED", "1")
    OTEL_SERVICE_NAME = os.getenv("OTEL_SERVICE_NAME", "bakery-backend")
    OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4318/v1/traces")

    # Carts
    CART_TTL_DAYS = int(os.getenv("CART_TTL_DAYS", 30))
    CART_SESSION_COOKIE = os.getenv("CART_SESSION_COOKIE", "cart_session_id")
    CART_CLEANUP_INTERVAL_SECONDS = int(os.getenv("CART_CLEANUP_INTERVAL_SECONDS", 3600))

    # Inventory. Orders for products without enough recorded stock seed the
    # ledger with this many units first; 0 turns that off.
    INVENTORY_AUTO_PROVISION_QUANTITY = int(os.getenv("INVENTORY_AUTO_PROVISION_QUANTITY", 100))
    INVENTORY_DEFAULT_REORDER_POINT = int(os.getenv("INVENTORY_DEFAULT_REORDER_POINT", 10))
    INVENTORY_DEFAULT_REORDER_QUANTITY = int(os.getenv("INVENTORY_DEFAULT_REORDER_QUANTITY", 20))
    INVENTORY_RESTORE_ONLY_DEDUCTED = _flag("INVENTORY_RESTORE_ONLY_DEDUCTED")

    # Orders
    ORDER_NUMBER_PREFIX = os.getenv("ORDER_NUMBER_PREFIX", "ORD-")
    ORDER_NUMBER_MAX_ATTEMPTS = int(os.getenv("ORDER_NUMBER_MAX_ATTEMPTS", 5))
    RECENT_ORDERS_LIMIT = int(os.getenv("RECENT_ORDERS_LIMIT", 10))

    # Injectable collaborators; None means the built-in default
    CLOCK = None
    ORDER_NUMBER_FACTORY = None
    SESSION_ID_FACTORY = None

class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-insecure-key")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///dev.db")

class TestingConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = "test-key"
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    RATELIMIT_ENABLED = False

class ProductionConfig(BaseConfig):
    DEBUG = False
    TESTING = False
    SECRET_KEY = os.getenv("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL")

    @staticmethod
    def validate():
        missing = []
        if not os.getenv("SECRET_KEY"):
            missing.append("SECRET_KEY")
        if not os.getenv("DATABASE_URL"):
            missing.append("DATABASE_URL")
        if missing:
            raise RuntimeError(
                f"Missing required env vars in production: {', '.join(missing)}"
            )

def get_config_class():
    env = os.getenv("APP_ENV", "development").lower()
    if env == "production":
        ProductionConfig.validate()
        return ProductionConfig
    if env == "testing":
        return TestingConfig
    return DevelopmentConfig
