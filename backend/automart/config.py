import os


def _normalize_database_url(url: str) -> str:
    # Render/Heroku sometimes provide postgres:// which SQLAlchemy expects as postgresql://
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if raw.isdigit():
        return int(raw)
    return default


class Config:
    # Base directory of the backend (one level above this `automart` package)
    BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    INSTANCE_DIR = os.path.join(BACKEND_DIR, "instance")

    ENV = (os.getenv("AUTOMART_ENV", "dev") or "dev").strip().lower()
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")

    _default_sqlite_path = os.path.join(INSTANCE_DIR, "automart.db").replace("\\", "/")
    _db_url = os.getenv("SQLALCHEMY_DATABASE_URI") or os.getenv("DATABASE_URL") or f"sqlite:///{_default_sqlite_path}"
    SQLALCHEMY_DATABASE_URI = _normalize_database_url(_db_url)
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # CORS: comma-separated origins for web builds
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    JSON_SORT_KEYS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    JWT_TTL_SECONDS = _env_int("JWT_TTL_SECONDS", 60 * 60 * 24 * 7)

    # permissive | strict
    ORDER_STATUS_POLICY = os.getenv("ORDER_STATUS_POLICY", "permissive")
    # cosmetic | deduct
    DEPOSIT_FEE_POLICY = os.getenv("DEPOSIT_FEE_POLICY", "cosmetic")

    AUTH_RATE_LIMIT_ATTEMPTS = _env_int("AUTH_RATE_LIMIT_ATTEMPTS", 5)
    AUTH_RATE_LIMIT_WINDOW_SECONDS = _env_int("AUTH_RATE_LIMIT_WINDOW_SECONDS", 15 * 60)
    API_RATE_LIMIT_REQUESTS = _env_int("API_RATE_LIMIT_REQUESTS", 100)
    API_RATE_LIMIT_WINDOW_SECONDS = _env_int("API_RATE_LIMIT_WINDOW_SECONDS", 60)

    SECURITY_LOG_URL = os.getenv("SECURITY_LOG_URL", "")
    SECURITY_LOG_TIMEOUT_SECONDS = _env_float("SECURITY_LOG_TIMEOUT_SECONDS", 3.0)

    WITHDRAWAL_MINIMUM = _env_float("WITHDRAWAL_MINIMUM", 10.0)

    # Disable to run without a Socket.IO server (realtime then stays in-process)
    SOCKETIO_ENABLED = (os.getenv("SOCKETIO_ENABLED", "1") or "1").strip().lower() not in ("0", "false", "no")

    # Order ledger fee schedule
    MEETING_FEE = _env_float("MEETING_FEE", 50.0)
    SETUP_FEE = _env_float("SETUP_FEE", 75.0)
    FOLLOW_UP_FEE = _env_float("FOLLOW_UP_FEE", 25.0)
    SERVICE_FEE_RATE = _env_float("SERVICE_FEE_RATE", 0.05)
    PAYMENT_DUE_DAYS = _env_int("PAYMENT_DUE_DAYS", 30)


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    ENV = "test"
    SECRET_KEY = "test-secret-key-0123456789"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SECURITY_LOG_URL = ""
    ORDER_STATUS_POLICY = "permissive"
    DEPOSIT_FEE_POLICY = "cosmetic"
    SOCKETIO_ENABLED = False
    AUTH_RATE_LIMIT_ATTEMPTS = 5
    AUTH_RATE_LIMIT_WINDOW_SECONDS = 15 * 60
    API_RATE_LIMIT_REQUESTS = 10000
    API_RATE_LIMIT_WINDOW_SECONDS = 60
    WITHDRAWAL_MINIMUM = 10.0
    MEETING_FEE = 50.0
    SETUP_FEE = 75.0
    FOLLOW_UP_FEE = 25.0
    SERVICE_FEE_RATE = 0.05
    PAYMENT_DUE_DAYS = 30


CONFIGS = {
    "dev": DevelopmentConfig,
    "development": DevelopmentConfig,
    "prod": ProductionConfig,
    "production": ProductionConfig,
    "test": TestingConfig,
    "testing": TestingConfig,
}
