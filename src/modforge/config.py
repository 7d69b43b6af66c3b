"""modforge configuration.

Typed settings for the installer and the log store.  Settings use Pydantic v2
models so they are validated at construction time and can be serialised to
and from JSON or read from environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from modforge.errors import ConfigError
from modforge.logs.store import default_log_dir

_TRUTHY = {"1", "true", "yes", "on"}


class Config(BaseModel):
    """Global modforge configuration.

    Instances are typically created once by the CLI entry point and passed
    to ``ModuleInstaller`` and ``InstructionLogStore``.
    """

    log_dir: Path = Field(default_factory=default_log_dir, description="Instruction log directory")
    log_retention_days: int = Field(
        default=30, ge=1, description="Age in days after which logs are pruned"
    )
    modules_dir: str = Field(
        default=".modules", description="Module catalog directory inside generated projects"
    )
    cleanup_modules_dir: bool = Field(
        default=True, description="Remove the module catalog directory after installing"
    )
    verbose: bool = Field(default=False, description="Print every condition reason")
    list_limit: int = Field(default=20, ge=1, description="Logs shown by 'logs --list'")

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Returns:
            The path where the file was written.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            MODFORGE_LOG_DIR, MODFORGE_LOG_RETENTION_DAYS, MODFORGE_VERBOSE,
            MODFORGE_MODULES_DIR.

        Raises:
            ConfigError: If a variable holds an unusable value.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("MODFORGE_LOG_DIR"):
            kwargs["log_dir"] = Path(os.environ["MODFORGE_LOG_DIR"]).expanduser()
        if os.environ.get("MODFORGE_LOG_RETENTION_DAYS"):
            raw = os.environ["MODFORGE_LOG_RETENTION_DAYS"]
            try:
                kwargs["log_retention_days"] = int(raw)
            except ValueError as exc:
                raise ConfigError(
                    "MODFORGE_LOG_RETENTION_DAYS", f"expected a whole number of days, got {raw!r}"
                ) from exc
        if os.environ.get("MODFORGE_VERBOSE"):
            kwargs["verbose"] = os.environ["MODFORGE_VERBOSE"].strip().lower() in _TRUTHY
        if os.environ.get("MODFORGE_MODULES_DIR"):
            kwargs["modules_dir"] = os.environ["MODFORGE_MODULES_DIR"]
        try:
            return cls(**kwargs)
        except ValidationError as exc:
            fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err["loc"])
            raise ConfigError(fields or "config", "invalid value from environment") from exc
