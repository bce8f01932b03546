from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./healthcore.db"
    default_tz: str | None = None  # None = host local time; otherwise an IANA name, e.g. "Europe/Moscow"
    log_level: str = "INFO"

    # User store
    max_users: int = 5
    users_storage_key: str = "reformator_users"
    legacy_key_prefix: str = "reformator_bio"  # single-user keys from before per-user namespacing

    # Daily rollover
    history_max_items: int = 100
    water_goal_default_ml: int = 2500

    # Engine input defaults when the profile or the day is missing a value
    calories_target_default: float = 2000.0
    sleep_hours_default: float = 7.5
    age_default: int = 30
    weight_kg_default: float = 70.0
    height_cm_default: float = 170.0

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
