from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./morningproof.db"

    LOG_LEVEL: str = "INFO"
    TIMEZONE: str = "UTC"

    MORNING_CUTOFF_MINUTES: int = 540
    ALLOW_STREAK_RECOVERY: bool = True

    SCHEDULER_ENABLED: bool = True
    DECAY_CHECK_MINUTES: int = 30

    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
