"""Process configuration loaded from ``FOURLINE_*`` environment variables."""
from __future__ import annotations

from typing import Annotated, Any, List

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .constants import BOARD_SIZE, EMPTY_ROOM_TTL, WIN_LENGTH, Placement

ENV_PREFIX = "FOURLINE_"


def _check_line_fits(board_size: int, win_length: int) -> None:
    if win_length > board_size:
        raise ValueError("win_length cannot exceed board_size")


class GameRules(BaseModel):
    """Rule set shared by every room of a process."""

    board_size: int = Field(default=BOARD_SIZE, ge=2, le=64)
    win_length: int = Field(default=WIN_LENGTH, ge=2)
    placement: Placement = Placement.GRAVITY

    @model_validator(mode="after")
    def _line_fits_board(self) -> "GameRules":
        _check_line_fits(self.board_size, self.win_length)
        return self


class Settings(BaseSettings):
    """Server settings.

    Every field can be set through the environment, e.g. ``FOURLINE_PORT``.
    ``FOURLINE_CORS_ORIGINS`` takes a comma-separated list. Empty variables
    are treated as unset.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=False,
    )

    board_size: int = Field(default=BOARD_SIZE, ge=2, le=64)
    win_length: int = Field(default=WIN_LENGTH, ge=2)
    placement: Placement = Placement.GRAVITY
    # Seconds an unjoined room created via POST /rooms survives.
    empty_room_ttl: float = Field(default=EMPTY_ROOM_TTL, gt=0)
    cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @model_validator(mode="after")
    def _line_fits_board(self) -> "Settings":
        _check_line_fits(self.board_size, self.win_length)
        return self

    @property
    def rules(self) -> GameRules:
        return GameRules(
            board_size=self.board_size,
            win_length=self.win_length,
            placement=self.placement,
        )


__all__ = ["GameRules", "Settings", "ENV_PREFIX"]
