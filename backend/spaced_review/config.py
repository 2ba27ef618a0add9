from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".spaced_review" / "data"
    sqlite_filename: str = "spaced_review.db"
    xp_recalled: int = 10  # awarded per card rated Good/Easy
    xp_forgotten: int = 5  # awarded per card rated Again/Hard
    due_limit_max: int = 200
    log_level: str = "warning"
    host: str = "127.0.0.1"
    port: int = 0  # 0 picks a free port and announces it on stdout

    model_config = {"env_prefix": "SPACED_REVIEW_"}


settings = Settings()
