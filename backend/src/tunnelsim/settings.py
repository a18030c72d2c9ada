from __future__ import annotations

import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./tunnelsim.sqlite3"
    port: int = 3000
    log_level: str = "INFO"

    # дефолты симуляции для API
    max_rounds: int = 100
    default_iterations: int = 30000
    default_sample_count: int = 5
    workers: int = 1

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("TUNNELSIM_DATABASE_URL", cls.database_url),
            port=_env_int("PORT", cls.port),
            log_level=os.getenv("TUNNELSIM_LOG_LEVEL", cls.log_level).upper(),
            max_rounds=_env_int("TUNNELSIM_MAX_ROUNDS", cls.max_rounds),
            default_iterations=_env_int("TUNNELSIM_ITERATIONS", cls.default_iterations),
            default_sample_count=_env_int("TUNNELSIM_SAMPLE_COUNT", cls.default_sample_count),
            workers=_env_int("TUNNELSIM_WORKERS", cls.workers),
        )


settings = Settings.from_env()
