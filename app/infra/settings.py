from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    projector_env: str = "dev"

    # required
    projector_db_url: str

    projector_log_level: str = "INFO"

    # --- yfinance dividend profiles ---
    projector_yf_cache_ttl_seconds: int = 3600
    projector_cache_dir: str | None = None

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",  # don't crash on other future vars
    }


settings = Settings()
