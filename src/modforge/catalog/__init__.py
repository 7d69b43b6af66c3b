"""Template and module catalogs.

Models for the template definitions and per-module instruction catalogs the
installer consumes, plus loaders that read them from local files.

Usage::

    from modforge.catalog import load_template, load_module_instructions

    template = load_template("template.json")
    catalog = load_module_instructions(project_root, template.modules[0])
"""

from modforge.catalog.loader import (
    load_module_instructions,
    load_template,
    load_template_catalog,
    parse_module_instructions,
    parse_template,
)
from modforge.catalog.models import (
    ActionKind,
    ComparisonOperator,
    Condition,
    ConditionGroup,
    ConditionKind,
    ConditionResult,
    ExecutionContext,
    Instruction,
    LogicOperator,
    Module,
    ModuleInstructions,
    Template,
)

__all__ = [
    "ActionKind",
    "ComparisonOperator",
    "Condition",
    "ConditionGroup",
    "ConditionKind",
    "ConditionResult",
    "ExecutionContext",
    "Instruction",
    "LogicOperator",
    "Module",
    "ModuleInstructions",
    "Template",
    "load_module_instructions",
    "load_template",
    "load_template_catalog",
    "parse_module_instructions",
    "parse_template",
]
