"""Module dependency resolution.

Usage::

    from modforge.resolver import resolve_modules

    result = resolve_modules(["auth"], template.modules)
    for module in result.modules:
        print(module.name)
"""

from modforge.resolver.modules import (
    ResolutionAmbiguity,
    ResolutionResult,
    expand_includes,
    filter_conflicts,
    resolve_modules,
    sort_by_priority,
)

__all__ = [
    "ResolutionAmbiguity",
    "ResolutionResult",
    "expand_includes",
    "filter_conflicts",
    "resolve_modules",
    "sort_by_priority",
]
