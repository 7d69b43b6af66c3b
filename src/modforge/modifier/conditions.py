"""Guard condition evaluation.

Conditions are evaluated against an :class:`ExecutionContext` and the current
state of the project tree.  Evaluation only ever reads files.  Every result
carries a human-readable reason naming the concrete values compared; the
reasons are shown in verbose mode and persisted in instruction logs.

Read failures are resolved locally: ``PATTERN_NOT_EXISTS`` fails open (passes)
while ``PATTERN_EXISTS``, ``PATTERN_COUNT`` and both file-existence checks fail
closed.
"""

from __future__ import annotations

import operator
from collections.abc import Callable
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from modforge.catalog.models import (
    ComparisonOperator,
    Condition,
    ConditionGroup,
    ConditionKind,
    ConditionResult,
    ExecutionContext,
    LogicOperator,
)
from modforge.errors import ConditionEvaluationError


class GroupResult(BaseModel):
    """Outcome of a condition group, with the trace of every member."""
    passed: bool = Field(..., description="Combined outcome")
    logic: LogicOperator = Field(default=LogicOperator.AND, description="Combinator used")
    results: list[ConditionResult] = Field(
        default_factory=list, description="One entry per member condition, in order"
    )


# ---------------------------------------------------------------------------
# File access
# ---------------------------------------------------------------------------

def _read_target(path: Path) -> Optional[str]:
    """Return the file's text, or ``None`` if it does not exist."""
    try:
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConditionEvaluationError(str(path), exc) from exc


def _target_of(condition: Condition, default_target: Optional[str]) -> Optional[str]:
    return condition.target or default_target


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

def _module_selected(condition: Condition, context: ExecutionContext, _: Optional[str]) -> ConditionResult:
    if not condition.value:
        return ConditionResult(passed=False, reason="no module name given")
    selected = condition.value in context.selected_modules
    state = "is selected" if selected else "is not selected"
    return ConditionResult(passed=selected, reason=f"module '{condition.value}' {state}")


def _module_not_selected(condition: Condition, context: ExecutionContext, target: Optional[str]) -> ConditionResult:
    result = _module_selected(condition, context, target)
    if not condition.value:
        return result
    return ConditionResult(passed=not result.passed, reason=result.reason)


def _pattern_present(
    condition: Condition, context: ExecutionContext, default_target: Optional[str], *, negate: bool
) -> ConditionResult:
    target = _target_of(condition, default_target)
    if not target:
        return ConditionResult(passed=False, reason="no target file to search")
    if not condition.value:
        return ConditionResult(passed=False, reason=f"no pattern given for {target}")

    try:
        text = _read_target(context.resolve(target))
    except ConditionEvaluationError as exc:
        return ConditionResult(passed=negate, reason=f"{exc}; treating pattern as absent")

    if text is None:
        return ConditionResult(
            passed=negate, reason=f"file {target} does not exist; pattern '{condition.value}' is absent"
        )
    found = condition.value in text
    state = "found" if found else "not found"
    return ConditionResult(
        passed=found != negate, reason=f"pattern '{condition.value}' {state} in {target}"
    )


def _pattern_exists(condition: Condition, context: ExecutionContext, target: Optional[str]) -> ConditionResult:
    return _pattern_present(condition, context, target, negate=False)


def _pattern_not_exists(condition: Condition, context: ExecutionContext, target: Optional[str]) -> ConditionResult:
    return _pattern_present(condition, context, target, negate=True)


_COMPARATORS: dict[ComparisonOperator, tuple[Callable[[int, int], bool], str]] = {
    ComparisonOperator.EQUALS: (operator.eq, "=="),
    ComparisonOperator.NOT_EQUALS: (operator.ne, "!="),
    ComparisonOperator.GREATER_THAN: (operator.gt, ">"),
    ComparisonOperator.LESS_THAN: (operator.lt, "<"),
    ComparisonOperator.GREATER_OR_EQUAL: (operator.ge, ">="),
    ComparisonOperator.LESS_OR_EQUAL: (operator.le, "<="),
}


def _pattern_count(condition: Condition, context: ExecutionContext, default_target: Optional[str]) -> ConditionResult:
    target = _target_of(condition, default_target)
    if not target:
        return ConditionResult(passed=False, reason="no target file to search")
    if not condition.value:
        return ConditionResult(passed=False, reason=f"no pattern given for {target}")

    try:
        text = _read_target(context.resolve(target))
    except ConditionEvaluationError as exc:
        return ConditionResult(passed=False, reason=str(exc))
    if text is None:
        return ConditionResult(passed=False, reason=f"file {target} does not exist")

    op = condition.operator or ComparisonOperator.EQUALS
    expected = condition.count if condition.count is not None else 0
    compare, symbol = _COMPARATORS[op]
    actual = text.count(condition.value)
    passed = compare(actual, expected)
    return ConditionResult(
        passed=passed,
        reason=(
            f"pattern '{condition.value}' occurs {actual} time(s) in {target}; "
            f"expected {symbol} {expected}"
        ),
    )


def _file_present(condition: Condition, context: ExecutionContext, *, negate: bool) -> ConditionResult:
    target = condition.target or condition.value
    if not target:
        return ConditionResult(passed=False, reason="no file path given")
    try:
        exists = context.resolve(target).exists()
    except OSError as exc:
        # Both polarities fail when the file's state is unknown.
        return ConditionResult(passed=False, reason=f"could not check {target}: {exc}")
    state = "exists" if exists else "does not exist"
    return ConditionResult(passed=exists != negate, reason=f"file {target} {state}")


def _file_exists(condition: Condition, context: ExecutionContext, _: Optional[str]) -> ConditionResult:
    return _file_present(condition, context, negate=False)


def _file_not_exists(condition: Condition, context: ExecutionContext, _: Optional[str]) -> ConditionResult:
    return _file_present(condition, context, negate=True)


_Handler = Callable[[Condition, ExecutionContext, Optional[str]], ConditionResult]

_HANDLERS: dict[ConditionKind, _Handler] = {
    ConditionKind.MODULE_EXISTS: _module_selected,
    ConditionKind.MODULE_NOT_EXISTS: _module_not_selected,
    ConditionKind.PATTERN_EXISTS: _pattern_exists,
    ConditionKind.PATTERN_NOT_EXISTS: _pattern_not_exists,
    ConditionKind.PATTERN_COUNT: _pattern_count,
    ConditionKind.FILE_EXISTS: _file_exists,
    ConditionKind.FILE_NOT_EXISTS: _file_not_exists,
}

_unhandled = set(ConditionKind) - set(_HANDLERS)
if _unhandled:
    raise RuntimeError(f"condition kinds without a handler: {sorted(k.value for k in _unhandled)}")

_unhandled_ops = set(ComparisonOperator) - set(_COMPARATORS)
if _unhandled_ops:
    raise RuntimeError(f"operators without a comparator: {sorted(o.value for o in _unhandled_ops)}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def evaluate_condition(
    condition: Condition,
    context: ExecutionContext,
    default_target: Optional[str] = None,
) -> ConditionResult:
    """Evaluate one condition.

    Args:
        condition: The predicate to test.
        context: Selection state and project root.
        default_target: File inspected by pattern conditions that do not
            name their own ``target`` (normally the instruction's path).
    """
    return _HANDLERS[condition.kind](condition, context, default_target)


def evaluate_group(
    group: ConditionGroup,
    context: ExecutionContext,
    default_target: Optional[str] = None,
) -> GroupResult:
    """Evaluate every member of *group* and combine the results.

    All members are evaluated even when the outcome is already decided, so
    the returned trace is complete.  AND over no conditions passes; OR over
    no conditions fails.
    """
    results = [evaluate_condition(c, context, default_target) for c in group.conditions]
    if group.logic is LogicOperator.OR:
        passed = any(r.passed for r in results)
    else:
        passed = all(r.passed for r in results)
    return GroupResult(passed=passed, logic=group.logic, results=results)
