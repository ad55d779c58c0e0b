from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: str = "local"
    debug: bool = True
    log_level: str = "INFO"

    # Roll history kept per table; oldest entries are evicted first.
    history_capacity: int = 50

    # Upper bound on explosions within a single dice group. Explosions do not
    # chain, so a group explodes at most `max_dice` times; keep this below it.
    explosion_limit: int = 50

    # Parser limits per dice group.
    max_dice: int = 100
    max_sides: int = 1000

    # Seed for the default random source. Leave unset for OS entropy;
    # set it to replay identical rolls.
    rng_seed: int | None = None

    # When set, every sent roll is POSTed here as JSON.
    roll_webhook_url: str = ""
    roll_webhook_timeout_seconds: float = 5.0


settings = Settings()
