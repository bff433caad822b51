"""
Runtime settings.

Values come from environment variables (prefixed with `C4_`), falling back to the defaults below.
"""

import os
from typing import Mapping, Optional, Self

from pydantic import BaseModel, Field, model_validator

ENV_PREFIX = "C4_"


class GameSettings(BaseModel):
    # Voting window length (seconds) when a room does not ask for anything else
    timer_sec: int = Field(default=15, ge=5, le=120)
    max_players: int = Field(default=10, ge=2, le=10)
    min_players: int = Field(default=2, ge=2)
    # How long a disconnected player keeps their seat (seconds)
    reconnect_grace_sec: int = Field(default=60, ge=0)

    @model_validator(mode="after")
    def check_player_bounds(self) -> Self:
        if self.min_players > self.max_players:
            raise ValueError(
                f"min_players ({self.min_players}) cannot exceed max_players ({self.max_players})."
            )
        return self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> Self:
        """Build settings from environment variables. Only the variables that are set override the defaults."""
        environ = os.environ if environ is None else environ
        overrides = {
            name: environ[f"{ENV_PREFIX}{name.upper()}"]
            for name in cls.model_fields
            if f"{ENV_PREFIX}{name.upper()}" in environ
        }
        return cls.model_validate(overrides)
