"""Instruction execution.

Applies the eight file-mutation actions to a generated project.  Before any
mutation the instruction's guard is evaluated; a failing guard skips the
instruction without touching the tree.  Every attempt, including failures,
is recorded through the configured :class:`InstructionLogStore` before
:meth:`InstructionExecutor.apply` returns or raises.

Mutations are literal and applied one file at a time, so later instructions
observe the effect of earlier ones.  Nothing is rolled back.

``INSERT_PROP`` locates tags with a single regular expression over the raw
text.  Tags spanning several lines, or attribute values containing ``>``,
are not matched reliably.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from modforge.catalog.models import (
    ActionKind,
    ConditionResult,
    ExecutionContext,
    Instruction,
)
from modforge.errors import InstructionError, InstructionIOError, InstructionValidationError
from modforge.logs.store import InstructionLog, InstructionLogStore, LogStatus
from modforge.modifier.conditions import GroupResult, evaluate_group


class InstructionOutcome(str, Enum):
    """Result of an instruction that did not fail."""
    EXECUTED = "executed"
    SKIPPED = "skipped"


class ExecutionResult(BaseModel):
    """What happened when an instruction was applied."""
    outcome: InstructionOutcome = Field(..., description="executed or skipped")
    changed: bool = Field(default=False, description="Whether the target file was modified")
    condition_results: list[ConditionResult] = Field(
        default_factory=list, description="Guard trace, empty when unguarded"
    )
    log_hash: Optional[str] = Field(default=None, description="Hash of the persisted log record")


# ---------------------------------------------------------------------------
# Required fields
# ---------------------------------------------------------------------------

_REQUIRED_FIELDS: dict[ActionKind, tuple[str, ...]] = {
    ActionKind.CREATE_FILE: ("content",),
    ActionKind.DELETE_FILE: (),
    ActionKind.INSERT_IMPORT: ("content",),
    ActionKind.INSERT_AFTER: ("pattern", "content"),
    ActionKind.INSERT_BEFORE: ("pattern", "content"),
    ActionKind.REPLACE_CONTENT: ("pattern", "replacement"),
    ActionKind.APPEND_TO_FILE: ("content",),
    ActionKind.INSERT_PROP: ("component_name", "prop_name"),
}

# Fields that are meaningless when empty; ``content`` and ``replacement`` may be "".
_NON_EMPTY_FIELDS = frozenset({"pattern", "component_name", "prop_name"})

_IMPORT_LINE_RE = re.compile(r"^(import\s|from\s+\S+\s+import\s)")


def validate_instruction(instruction: Instruction) -> None:
    """Raise ``InstructionValidationError`` if a required field is missing."""
    missing = []
    for name in _REQUIRED_FIELDS[instruction.action]:
        value = getattr(instruction, name)
        if value is None or (name in _NON_EMPTY_FIELDS and value == ""):
            missing.append(name)
    if missing:
        raise InstructionValidationError(
            instruction.action.value,
            instruction.path,
            f"missing required field(s): {', '.join(missing)}",
        )


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------

def _read(instruction: Instruction, path: Path) -> str:
    if not path.is_file():
        raise InstructionIOError(instruction.action.value, instruction.path, "file not found")
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise InstructionIOError(instruction.action.value, instruction.path, str(exc)) from exc


def _write(instruction: Instruction, path: Path, content: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise InstructionIOError(instruction.action.value, instruction.path, str(exc)) from exc


def _first_matching_line(lines: list[str], pattern: str) -> Optional[int]:
    for index, line in enumerate(lines):
        if pattern in line:
            return index
    return None


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------
# Each action returns True when it wrote to the tree.

def _create_file(instruction: Instruction, path: Path) -> bool:
    _write(instruction, path, instruction.content or "")
    return True


def _delete_file(instruction: Instruction, path: Path) -> bool:
    if not path.exists():
        return False
    try:
        path.unlink()
    except OSError as exc:
        raise InstructionIOError(instruction.action.value, instruction.path, str(exc)) from exc
    return True


def _insert_import(instruction: Instruction, path: Path) -> bool:
    lines = _read(instruction, path).split("\n")
    last_import = None
    for index, line in enumerate(lines):
        if _IMPORT_LINE_RE.match(line.strip()):
            last_import = index
    position = 0 if last_import is None else last_import + 1
    lines.insert(position, instruction.content or "")
    _write(instruction, path, "\n".join(lines))
    return True


def _insert_relative(instruction: Instruction, path: Path, offset: int) -> bool:
    lines = _read(instruction, path).split("\n")
    match = _first_matching_line(lines, instruction.pattern or "")
    if match is None:
        return False
    lines.insert(match + offset, instruction.content or "")
    _write(instruction, path, "\n".join(lines))
    return True


def _insert_after(instruction: Instruction, path: Path) -> bool:
    return _insert_relative(instruction, path, 1)


def _insert_before(instruction: Instruction, path: Path) -> bool:
    return _insert_relative(instruction, path, 0)


def _replace_content(instruction: Instruction, path: Path) -> bool:
    text = _read(instruction, path)
    pattern = instruction.pattern or ""
    if pattern not in text:
        return False
    _write(instruction, path, text.replace(pattern, instruction.replacement or ""))
    return True


def _append_to_file(instruction: Instruction, path: Path) -> bool:
    text = _read(instruction, path)
    separator = "" if text == "" or text.endswith("\n") else "\n"
    _write(instruction, path, f"{text}{separator}{instruction.content or ''}")
    return True


def _insert_prop(instruction: Instruction, path: Path) -> bool:
    text = _read(instruction, path)
    name = instruction.component_name or ""
    tag_re = re.compile(rf"<{re.escape(name)}(?=[\s/>])([^>]*?)(\s*/)?>")
    if instruction.prop_value:
        new_prop = f"{instruction.prop_name}={{{instruction.prop_value}}}"
    else:
        new_prop = instruction.prop_name or ""

    def _inject(match: re.Match[str]) -> str:
        props = match.group(1).rstrip()
        closing = " />" if match.group(2) else ">"
        return f"<{name}{props} {new_prop}{closing}"

    updated, count = tag_re.subn(_inject, text, count=1)
    if not count:
        return False
    _write(instruction, path, updated)
    return True


_ACTIONS: dict[ActionKind, Callable[[Instruction, Path], bool]] = {
    ActionKind.CREATE_FILE: _create_file,
    ActionKind.DELETE_FILE: _delete_file,
    ActionKind.INSERT_IMPORT: _insert_import,
    ActionKind.INSERT_AFTER: _insert_after,
    ActionKind.INSERT_BEFORE: _insert_before,
    ActionKind.REPLACE_CONTENT: _replace_content,
    ActionKind.APPEND_TO_FILE: _append_to_file,
    ActionKind.INSERT_PROP: _insert_prop,
}

for _table in (_ACTIONS, _REQUIRED_FIELDS):
    _unhandled = set(ActionKind) - set(_table)
    if _unhandled:
        raise RuntimeError(f"actions without a handler: {sorted(a.value for a in _unhandled)}")


# ---------------------------------------------------------------------------
# Executor
# ---------------------------------------------------------------------------

class InstructionExecutor:
    """Applies instructions to a project tree and records each attempt.

    Attributes:
        log_store: Destination for instruction logs.  When ``None`` nothing
            is persisted.
    """

    def __init__(self, log_store: InstructionLogStore | None = None) -> None:
        self.log_store = log_store

    def _record(
        self,
        instruction: Instruction,
        context: ExecutionContext,
        index: int,
        status: LogStatus,
        guard: Optional[GroupResult],
        error: Optional[str] = None,
    ) -> Optional[str]:
        if self.log_store is None:
            return None
        log = InstructionLog.create(
            project_name=context.project_name,
            module_name=context.module_name,
            instruction_index=index,
            instruction=instruction.snapshot(),
            status=status,
            error=error,
            condition_results=guard.results if guard is not None else None,
        )
        self.log_store.save(log)
        return log.hash

    def apply(self, instruction: Instruction, context: ExecutionContext, index: int) -> ExecutionResult:
        """Apply one instruction.

        Args:
            instruction: The mutation to perform.
            context: Selection state and project identity for this module.
            index: Position of the instruction within its module catalog.

        Returns:
            An ``ExecutionResult`` whose outcome is ``SKIPPED`` when the
            guard failed and ``EXECUTED`` otherwise.

        Raises:
            InstructionValidationError: A required field is missing.
            InstructionIOError: A read-dependent action targets a missing
                file, or a read/write failed.
            LogStoreError: The instruction log could not be written.  The
                project may already have been modified.
        """
        guard: Optional[GroupResult] = None
        if instruction.condition is not None:
            guard = evaluate_group(instruction.condition, context, instruction.path)
            if not guard.passed:
                log_hash = self._record(instruction, context, index, LogStatus.SKIPPED, guard)
                return ExecutionResult(
                    outcome=InstructionOutcome.SKIPPED,
                    condition_results=guard.results,
                    log_hash=log_hash,
                )

        try:
            validate_instruction(instruction)
            changed = _ACTIONS[instruction.action](instruction, context.resolve(instruction.path))
        except InstructionError as exc:
            self._record(instruction, context, index, LogStatus.FAILED, guard, error=str(exc))
            raise

        log_hash = self._record(instruction, context, index, LogStatus.SUCCESS, guard)
        return ExecutionResult(
            outcome=InstructionOutcome.EXECUTED,
            changed=changed,
            condition_results=guard.results if guard is not None else [],
            log_hash=log_hash,
        )
