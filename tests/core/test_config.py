"""Unit tests for src/core/config.py"""

import pytest
from pydantic import ValidationError

from src.core.config import GameSettings


def test_defaults() -> None:
    settings = GameSettings.from_env({})
    assert settings.timer_sec == 15
    assert settings.max_players == 10
    assert settings.min_players == 2
    assert settings.reconnect_grace_sec == 60


def test_environment_overrides() -> None:
    settings = GameSettings.from_env({"C4_TIMER_SEC": "30", "C4_RECONNECT_GRACE_SEC": "0", "UNRELATED": "x"})
    assert settings.timer_sec == 30
    assert settings.reconnect_grace_sec == 0
    assert settings.max_players == 10


def test_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("C4_MAX_PLAYERS", "6")
    assert GameSettings.from_env().max_players == 6


@pytest.mark.parametrize(
    "environ",
    [
        {"C4_TIMER_SEC": "1"},
        {"C4_TIMER_SEC": "not a number"},
        {"C4_MAX_PLAYERS": "11"},
        {"C4_MIN_PLAYERS": "8", "C4_MAX_PLAYERS": "4"},
    ],
)
def test_invalid_environment(environ: dict[str, str]) -> None:
    with pytest.raises(ValidationError):
        GameSettings.from_env(environ)
