from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "MemVocab"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./memvocab.db"
    DATABASE_ECHO: bool = False
    DATABASE_BUSY_TIMEOUT_SECONDS: float = 5.0

    # Seeding (simulated network latency of the built-in data source)
    SEED_DELAY_MIN_SECONDS: float = 0.5
    SEED_DELAY_MAX_SECONDS: float = 1.5

    # Live queries
    LIVE_QUERY_POLL_INTERVAL_SECONDS: float = 0.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "MEMVOCAB_",
    }


settings = Settings()
