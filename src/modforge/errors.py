"""Exception hierarchy for modforge.

Instruction-scoped failures (``InstructionValidationError``,
``InstructionIOError``) abort a single instruction only; the installer
records them and moves on.  ``ConditionEvaluationError`` never escapes the
condition evaluator.  ``CatalogError`` is raised when a template or module
instruction catalog cannot be read or validated.
"""

from __future__ import annotations


class ModforgeError(Exception):
    """Base class for every error raised by modforge."""


class CatalogError(ModforgeError):
    """Raised when a template definition or module catalog is missing or invalid."""

    def __init__(self, source: str, message: str) -> None:
        self.source = source
        super().__init__(f"{source}: {message}")


class InstructionError(ModforgeError):
    """Base class for failures scoped to a single instruction."""

    def __init__(self, action: str, path: str, message: str) -> None:
        self.action = action
        self.path = path
        super().__init__(f"{action} {path}: {message}")


class InstructionValidationError(InstructionError):
    """A field required by the instruction's action is missing."""


class InstructionIOError(InstructionError):
    """The target file is missing for a read-dependent action, or a write failed."""


class ConditionEvaluationError(ModforgeError):
    """A condition could not read its target file.

    Only raised inside :mod:`modforge.modifier.conditions`, where it is
    converted into a conservative boolean.
    """

    def __init__(self, target: str, cause: Exception) -> None:
        self.target = target
        self.cause = cause
        super().__init__(f"could not read {target}: {cause}")


class LogStoreError(ModforgeError):
    """An instruction log cannot be written, or exists but cannot be parsed."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


class ConfigError(ModforgeError):
    """A configuration setting, usually from the environment, is invalid."""

    def __init__(self, setting: str, message: str) -> None:
        self.setting = setting
        super().__init__(f"{setting}: {message}")
