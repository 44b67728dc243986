import os
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


class Settings():
    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./movie_booking.db")
    MONGODB_URL: str = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
    MONGODB_DB: str = os.getenv("MONGODB_DB", "movie_booking")

    # Redis stream used for notification events
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    NOTIFICATION_STREAM: str = os.getenv("NOTIFICATION_STREAM", "notification_stream")

    # Seat holds
    HOLD_WINDOW_MINUTES: int = int(os.getenv("HOLD_WINDOW_MINUTES", "10"))
    HOLD_SWEEP_INTERVAL_SECONDS: int = int(os.getenv("HOLD_SWEEP_INTERVAL_SECONDS", "60"))

    # Mongo, Redis consumer and hold sweep; tests switch these off
    ENABLE_BACKGROUND_WORKERS: bool = _as_bool(os.getenv("ENABLE_BACKGROUND_WORKERS", "true"))

    # CORS
    ALLOWED_ORIGINS: list = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # SMTP / Email
    SMTP_HOST: str | None = os.getenv("SMTP_HOST")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER: str | None = os.getenv("SMTP_USER")
    SMTP_PASSWORD: str | None = os.getenv("SMTP_PASSWORD")
    SMTP_FROM: str | None = os.getenv("SMTP_FROM") or os.getenv("SMTP_USER")
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")


settings = Settings()
