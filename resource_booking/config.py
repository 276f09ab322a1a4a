from datetime import time
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Resource booker"

    # Storage
    DATABASE_URL: str = "sqlite:///./data/resource_booking.db"

    # Logging
    LOG_LEVEL: str = "INFO"

    # Booking policy
    BUFFER_MINUTES: int = 10
    MIN_BOOKING_MINUTES: int = 15
    MAX_BOOKING_HOURS: int = 2

    # Business hours used by the slot finder
    BUSINESS_DAY_START: time = time(8, 0)
    BUSINESS_DAY_END: time = time(20, 0)

    # Periodic reconciliation
    RECONCILER_ENABLED: bool = True
    RECONCILE_INTERVAL_SECONDS: int = 60
    SWEEP_INTERVAL_SECONDS: int = 300
    STATS_INTERVAL_SECONDS: int = 3600

    model_config = SettingsConfigDict(env_file=".env", env_prefix="BOOKER_")


settings = Settings()
