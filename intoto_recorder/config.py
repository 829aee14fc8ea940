"""Environment-driven recorder settings.

Reads ``INTOTO_RECORDER_*`` environment variables and an optional ``.env``
file, then produces the explicit ``StepConfig`` the recorder consumes.

Examples
--------
Override via environment::

    export INTOTO_RECORDER_KEY_PATH=/secrets/builder.key
    export INTOTO_RECORDER_STEP_NAME=compile
    export INTOTO_RECORDER_TRANSPORT="grafeas+https://grafeas.example/v1beta1/projects/p/occurrences?noteName=projects/p/notes/build&resourceUri=git://repo"
    export INTOTO_RECORDER_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from intoto_recorder.models.config import DEFAULT_EXCLUDE_PATTERNS, StepConfig
from intoto_recorder.models.link import DEFAULT_STEP_NAME


class RecorderSettings(BaseSettings):
    """Recorder configuration with environment variable overrides."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="INTOTO_RECORDER_",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
    )

    # Step
    key_path: Path | None = None
    step_name: str = DEFAULT_STEP_NAME
    transport: str | None = None
    link_dir: Path | None = None

    # Collection
    exclude_patterns: list[str] = list(DEFAULT_EXCLUDE_PATTERNS)
    follow_symlinks: bool = False
    max_workers: int = 1

    # Submission
    timeout_seconds: float = 30.0

    # Observability
    log_level: str = "INFO"

    def to_step_config(self, **overrides: object) -> StepConfig:
        """Build a ``StepConfig``; non-``None`` *overrides* win over settings."""
        values = {
            "key_path": self.key_path,
            "step_name": self.step_name,
            "transport": self.transport,
            "link_dir": self.link_dir,
            "timeout_seconds": self.timeout_seconds,
            "exclude_patterns": self.exclude_patterns,
            "follow_symlinks": self.follow_symlinks,
            "max_workers": self.max_workers,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return StepConfig(**values)
