"""Instruction audit logs."""

from modforge.logs.store import (
    InstructionLog,
    InstructionLogStore,
    LogStatus,
    default_log_dir,
    generate_hash,
)

__all__ = [
    "InstructionLog",
    "InstructionLogStore",
    "LogStatus",
    "default_log_dir",
    "generate_hash",
]
