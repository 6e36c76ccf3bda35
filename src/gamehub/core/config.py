"""Runtime settings, read from the environment."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Self

from gamehub.core.exceptions import ValidationError

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///gamehub.db"
    sql_echo: bool = False
    log_level: str = "INFO"
    solitaire_draw_count: int = 3
    hearts_target_score: int = 100
    default_query_limit: int = 50

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> Self:
        env = os.environ if env is None else env
        settings = cls(
            database_url=env.get("GAMEHUB_DATABASE_URL", cls.database_url),
            sql_echo=env.get("GAMEHUB_SQL_ECHO", "false").strip().lower()
            in _TRUE_VALUES,
            log_level=env.get("GAMEHUB_LOG_LEVEL", cls.log_level).upper(),
            solitaire_draw_count=_env_int(
                env, "GAMEHUB_SOLITAIRE_DRAW_COUNT", cls.solitaire_draw_count
            ),
            hearts_target_score=_env_int(
                env, "GAMEHUB_HEARTS_TARGET_SCORE", cls.hearts_target_score
            ),
            default_query_limit=_env_int(
                env, "GAMEHUB_HISTORY_LIMIT", cls.default_query_limit
            ),
        )
        if settings.solitaire_draw_count not in (1, 3):
            raise ValidationError(
                "GAMEHUB_SOLITAIRE_DRAW_COUNT must be 1 or 3, "
                f"got {settings.solitaire_draw_count}"
            )
        if settings.hearts_target_score < 1:
            raise ValidationError("GAMEHUB_HEARTS_TARGET_SCORE must be positive")
        return settings
