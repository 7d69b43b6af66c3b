"""modforge -- conditional module installer for scaffolded projects.

Resolves a user's optional-module selection against a template catalog and
applies each module's guarded file-mutation instructions to the generated
project, keeping an audit log of every attempt.

Quick usage::

    from modforge import resolve_modules, process_instructions

    resolution = resolve_modules(["auth"], template.modules)
    summary = process_instructions(instructions, context)
    print(summary.executed, summary.skipped)
"""

from modforge.config import Config
from modforge.installer import ModuleInstaller, ProcessSummary, process_instructions
from modforge.resolver.modules import ResolutionResult, resolve_modules

__version__ = "0.1.0"

__all__ = [
    "Config",
    "ModuleInstaller",
    "ProcessSummary",
    "ResolutionResult",
    "__version__",
    "process_instructions",
    "resolve_modules",
]
