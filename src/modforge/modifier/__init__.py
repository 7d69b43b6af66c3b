"""Conditional instruction execution.

Usage::

    from modforge.modifier import InstructionExecutor

    executor = InstructionExecutor(log_store)
    result = executor.apply(instruction, context, index=0)
"""

from modforge.modifier.conditions import GroupResult, evaluate_condition, evaluate_group
from modforge.modifier.executor import (
    ExecutionResult,
    InstructionExecutor,
    InstructionOutcome,
    validate_instruction,
)

__all__ = [
    "ExecutionResult",
    "GroupResult",
    "InstructionExecutor",
    "InstructionOutcome",
    "evaluate_condition",
    "evaluate_group",
    "validate_instruction",
]
