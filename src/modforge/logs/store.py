"""Durable audit trail of instruction attempts.

Each attempt is written as one JSON file named after its hash inside a
user-scoped directory (``~/.modforge-logs`` by default).  Records are never
modified once written.
"""

from __future__ import annotations

import hashlib
import json
import re
import time
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from modforge.errors import LogStoreError
from modforge.catalog.models import ConditionResult

DEFAULT_LOG_DIR_NAME = ".modforge-logs"

_MS_PER_DAY = 24 * 60 * 60 * 1000
_HASH_RE = re.compile(r"^[0-9a-f]{1,64}$")


class LogStatus(str, Enum):
    """Outcome recorded for an instruction attempt."""
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


def now_ms() -> int:
    """Current wall-clock time as integer epoch milliseconds."""
    return time.time_ns() // 1_000_000


def generate_hash(project_name: str, module_name: str, instruction_index: int, timestamp: int) -> str:
    """Derive the 12-character log identifier for an attempt."""
    data = f"{project_name}_{module_name}_{instruction_index}_{timestamp}"
    return hashlib.md5(data.encode("utf-8")).hexdigest()[:12]


class InstructionLog(BaseModel):
    """Immutable record of one instruction attempt."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    hash: str = Field(..., description="Identifier derived from project, module, index and time")
    timestamp: int = Field(..., description="Epoch milliseconds when the outcome was known")
    project_name: str = Field(..., description="Project the instruction ran against")
    module_name: str = Field(..., description="Module owning the instruction")
    instruction_index: int = Field(..., ge=0, description="0-based index within the module catalog")
    instruction_snapshot: dict[str, Any] = Field(
        default_factory=dict, alias="instruction", description="The instruction as declared"
    )
    status: LogStatus = Field(..., description="success, skipped or failed")
    error: Optional[str] = Field(default=None, description="Failure message, if any")
    condition_results: Optional[list[ConditionResult]] = Field(
        default=None, alias="conditions", description="Guard trace, if the instruction had one"
    )

    @classmethod
    def create(
        cls,
        *,
        project_name: str,
        module_name: str,
        instruction_index: int,
        instruction: dict[str, Any],
        status: LogStatus,
        error: Optional[str] = None,
        condition_results: Optional[list[ConditionResult]] = None,
        timestamp: Optional[int] = None,
    ) -> "InstructionLog":
        """Build a record stamped with the current time."""
        ts = now_ms() if timestamp is None else timestamp
        return cls(
            hash=generate_hash(project_name, module_name, instruction_index, ts),
            timestamp=ts,
            project_name=project_name,
            module_name=module_name,
            instruction_index=instruction_index,
            instruction_snapshot=instruction,
            status=status,
            error=error,
            condition_results=condition_results,
        )


def default_log_dir() -> Path:
    """``~/.modforge-logs``."""
    return Path.home() / DEFAULT_LOG_DIR_NAME


class InstructionLogStore:
    """Reads and writes :class:`InstructionLog` records under *log_dir*."""

    def __init__(self, log_dir: str | Path | None = None) -> None:
        self.log_dir = Path(log_dir) if log_dir is not None else default_log_dir()

    def _path_for(self, log_hash: str) -> Path:
        return self.log_dir / f"{log_hash}.json"

    def save(self, log: InstructionLog) -> Path:
        """Persist *log*, creating the log directory if needed.

        Raises:
            LogStoreError: If the directory or the file cannot be written.
        """
        target = self._path_for(log.hash)
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            target.write_text(
                log.model_dump_json(by_alias=True, indent=2, exclude_none=True), encoding="utf-8"
            )
        except OSError as exc:
            raise LogStoreError(str(target), f"could not write instruction log: {exc}") from exc
        return target

    def _read(self, path: Path) -> InstructionLog:
        try:
            return InstructionLog.model_validate_json(path.read_text(encoding="utf-8"))
        except (ValidationError, ValueError) as exc:
            raise LogStoreError(str(path), f"not a valid instruction log: {exc}") from exc

    def get(self, log_hash: str) -> Optional[InstructionLog]:
        """Return the log stored under *log_hash*, or ``None`` if there is none.

        Raises:
            LogStoreError: If the file exists but is not a valid log.
        """
        if not _HASH_RE.match(log_hash):
            return None
        path = self._path_for(log_hash)
        if not path.is_file():
            return None
        return self._read(path)

    def _scan(self) -> list[tuple[Path, InstructionLog]]:
        """Every readable log with the file it came from, newest first."""
        if not self.log_dir.is_dir():
            return []
        entries: list[tuple[Path, InstructionLog]] = []
        for path in self.log_dir.glob("*.json"):
            try:
                entries.append((path, self._read(path)))
            except (LogStoreError, OSError):
                continue
        entries.sort(key=lambda entry: entry[1].timestamp, reverse=True)
        return entries

    def all_logs(self) -> list[InstructionLog]:
        """Every readable log, newest first.  Corrupt files are skipped."""
        return [log for _, log in self._scan()]

    def list_logs(
        self,
        status: LogStatus | str | None = None,
        project: Optional[str] = None,
        module: Optional[str] = None,
    ) -> list[InstructionLog]:
        """Return logs matching every given filter, newest first.

        Args:
            status: Exact status to keep.
            project: Case-insensitive substring of the project name.
            module: Case-insensitive substring of the module name.
        """
        logs = self.all_logs()
        if status is not None:
            wanted = LogStatus(status)
            logs = [log for log in logs if log.status is wanted]
        if project:
            needle = project.lower()
            logs = [log for log in logs if needle in log.project_name.lower()]
        if module:
            needle = module.lower()
            logs = [log for log in logs if needle in log.module_name.lower()]
        return logs

    def prune(self, max_age_days: int = 30, now: Optional[int] = None) -> int:
        """Delete logs older than *max_age_days*.

        Args:
            max_age_days: Retention window in days.
            now: Reference time in epoch milliseconds (defaults to now).

        Returns:
            Number of log files removed.
        """
        reference = now_ms() if now is None else now
        cutoff = reference - max_age_days * _MS_PER_DAY
        removed = 0
        for path, log in self._scan():
            if log.timestamp < cutoff:
                path.unlink(missing_ok=True)
                removed += 1
        return removed
