"""Unit tests for gamehub/core/config.py"""

import pytest

from gamehub.core.config import Settings
from gamehub.core.exceptions import ValidationError


def test_defaults_from_empty_environment() -> None:
    settings = Settings.from_env({})
    assert settings == Settings()
    assert settings.solitaire_draw_count == 3
    assert settings.hearts_target_score == 100


def test_values_from_environment() -> None:
    settings = Settings.from_env(
        {
            "GAMEHUB_DATABASE_URL": "sqlite://",
            "GAMEHUB_SQL_ECHO": "Yes",
            "GAMEHUB_LOG_LEVEL": "debug",
            "GAMEHUB_SOLITAIRE_DRAW_COUNT": "1",
            "GAMEHUB_HEARTS_TARGET_SCORE": "50",
            "GAMEHUB_HISTORY_LIMIT": "10",
        }
    )
    assert settings.database_url == "sqlite://"
    assert settings.sql_echo
    assert settings.log_level == "DEBUG"
    assert settings.solitaire_draw_count == 1
    assert settings.hearts_target_score == 50
    assert settings.default_query_limit == 10


@pytest.mark.parametrize(
    "env, message",
    [
        ({"GAMEHUB_SOLITAIRE_DRAW_COUNT": "2"}, "must be 1 or 3"),
        ({"GAMEHUB_SOLITAIRE_DRAW_COUNT": "three"}, "must be an integer"),
        ({"GAMEHUB_HEARTS_TARGET_SCORE": "0"}, "must be positive"),
    ],
)
def test_invalid_environment(env: dict[str, str], message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        Settings.from_env(env)


def test_blank_values_fall_back_to_defaults() -> None:
    assert Settings.from_env({"GAMEHUB_HEARTS_TARGET_SCORE": " "}).hearts_target_score == 100
