"""Per-step recorder configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from intoto_recorder.models.link import DEFAULT_STEP_NAME

DEFAULT_EXCLUDE_PATTERNS: list[str] = ["*.link"]


class StepConfig(BaseModel):
    """Configuration for recording one build step.

    Passed explicitly into ``LinkRecorder``; nothing is registered globally.

    Attributes
    ----------
    key_path:
        Hex-encoded Ed25519 seed file.  ``None`` disables signing (with a
        warning); a path that cannot be loaded is a configuration error.
    step_name:
        Link name.  Empty input falls back to ``"step"``.
    transport:
        Destination URI.  ``None`` keeps the link local only.
    link_dir:
        Directory for the local link dump.  Defaults to the workspace root.
    """

    model_config = ConfigDict(frozen=True)

    key_path: Path | None = None
    step_name: str = DEFAULT_STEP_NAME
    transport: str | None = None
    link_dir: Path | None = None
    timeout_seconds: float = Field(default=30.0, gt=0)
    exclude_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS)
    )
    follow_symlinks: bool = False
    max_workers: int = Field(default=1, ge=1)

    @field_validator("step_name", mode="before")
    @classmethod
    def _default_step_name(cls, value: Any) -> Any:
        if value is None or value == "":
            return DEFAULT_STEP_NAME
        return value

    @field_validator("key_path", "transport", "link_dir", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value
