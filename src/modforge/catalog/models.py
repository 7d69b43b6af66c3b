"""Pydantic v2 models for templates, modules and instruction catalogs.

Defines the vocabularies (actions, condition kinds, operators, logic) and the
immutable records loaded from template definitions and per-module
instruction catalogs.  Catalog documents use camelCase keys on the wire; the
models expose snake_case attributes and accept either spelling.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ActionKind(str, Enum):
    """File mutation performed by an instruction."""
    CREATE_FILE = "CREATE_FILE"
    DELETE_FILE = "DELETE_FILE"
    INSERT_IMPORT = "INSERT_IMPORT"
    INSERT_AFTER = "INSERT_AFTER"
    INSERT_BEFORE = "INSERT_BEFORE"
    REPLACE_CONTENT = "REPLACE_CONTENT"
    APPEND_TO_FILE = "APPEND_TO_FILE"
    INSERT_PROP = "INSERT_PROP"


class ConditionKind(str, Enum):
    """Predicate evaluated by a guard condition."""
    MODULE_EXISTS = "MODULE_EXISTS"
    MODULE_NOT_EXISTS = "MODULE_NOT_EXISTS"
    PATTERN_EXISTS = "PATTERN_EXISTS"
    PATTERN_NOT_EXISTS = "PATTERN_NOT_EXISTS"
    PATTERN_COUNT = "PATTERN_COUNT"
    FILE_EXISTS = "FILE_EXISTS"
    FILE_NOT_EXISTS = "FILE_NOT_EXISTS"


class ComparisonOperator(str, Enum):
    """Comparison applied by ``PATTERN_COUNT``."""
    EQUALS = "EQUALS"
    NOT_EQUALS = "NOT_EQUALS"
    GREATER_THAN = "GREATER_THAN"
    LESS_THAN = "LESS_THAN"
    GREATER_OR_EQUAL = "GREATER_OR_EQUAL"
    LESS_OR_EQUAL = "LESS_OR_EQUAL"


class LogicOperator(str, Enum):
    """How the members of a condition group are combined."""
    AND = "AND"
    OR = "OR"


# ---------------------------------------------------------------------------
# Base model
# ---------------------------------------------------------------------------

class CatalogModel(BaseModel):
    """Immutable model that reads and writes camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------

class Condition(CatalogModel):
    """A single guard predicate."""
    kind: ConditionKind = Field(..., alias="type", description="Predicate kind")
    value: Optional[str] = Field(
        default=None, description="Module name, literal pattern or path, depending on kind"
    )
    operator: Optional[ComparisonOperator] = Field(
        default=None, description="PATTERN_COUNT comparison (defaults to EQUALS)"
    )
    count: Optional[int] = Field(
        default=None, description="PATTERN_COUNT right-hand side (defaults to 0)"
    )
    target: Optional[str] = Field(
        default=None, description="File to inspect, relative to the project root"
    )


class ConditionGroup(CatalogModel):
    """An ordered set of conditions combined with AND or OR."""
    conditions: tuple[Condition, ...] = Field(default=(), description="Member conditions")
    logic: LogicOperator = Field(default=LogicOperator.AND, description="Combinator")

    @model_validator(mode="before")
    @classmethod
    def _coerce_shorthand(cls, data: Any) -> Any:
        # A bare list is an AND group; a lone condition object is a group of one.
        if isinstance(data, (list, tuple)):
            return {"conditions": list(data)}
        if isinstance(data, dict) and "conditions" not in data and "type" in data:
            return {"conditions": [data]}
        return data


# ---------------------------------------------------------------------------
# Instructions
# ---------------------------------------------------------------------------

class Instruction(CatalogModel):
    """A single declarative file mutation with an optional guard."""
    path: str = Field(..., description="Target path, relative to the project root")
    action: ActionKind = Field(..., description="Mutation to perform")
    content: Optional[str] = Field(default=None, description="Text to write or insert")
    pattern: Optional[str] = Field(default=None, description="Literal text to locate")
    replacement: Optional[str] = Field(default=None, description="REPLACE_CONTENT substitute")
    component_name: Optional[str] = Field(default=None, description="INSERT_PROP tag name")
    prop_name: Optional[str] = Field(default=None, description="INSERT_PROP attribute name")
    prop_value: Optional[str] = Field(default=None, description="INSERT_PROP attribute expression")
    condition: Optional[ConditionGroup] = Field(default=None, description="Guard")

    def snapshot(self) -> dict[str, Any]:
        """Return the wire representation recorded in instruction logs."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ModuleInstructions(CatalogModel):
    """The instruction catalog document shipped with each module."""
    instructions: tuple[Instruction, ...] = Field(default=(), description="Ordered instructions")


# ---------------------------------------------------------------------------
# Templates & modules
# ---------------------------------------------------------------------------

class Module(CatalogModel):
    """An optional unit of scaffolding work offered by a template."""
    name: str = Field(..., min_length=1, description="Unique name within the template")
    description: str = Field(default="", description="Shown when selecting modules")
    path: str = Field(..., description="Instruction catalog path inside the generated project")
    includes: tuple[str, ...] = Field(default=(), description="Modules pulled in with this one")
    excludes: tuple[str, ...] = Field(default=(), description="Modules that conflict with this one")
    priority: int = Field(default=0, description="Higher installs first")

    @field_validator("includes", "excludes", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return () if value is None else value


class Template(CatalogModel):
    """A project blueprint and the modules it offers."""
    name: str = Field(..., description="Template name")
    description: str = Field(default="", description="Template description")
    url: str = Field(default="", description="Location of the template sources")
    modules: tuple[Module, ...] = Field(default=(), description="Offered modules, in catalog order")

    @field_validator("modules", mode="before")
    @classmethod
    def _modules_none_as_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @model_validator(mode="after")
    def _unique_module_names(self) -> "Template":
        seen: set[str] = set()
        for module in self.modules:
            if module.name in seen:
                raise ValueError(f"duplicate module name {module.name!r}")
            seen.add(module.name)
        return self

    def module_map(self) -> dict[str, Module]:
        """Return ``{name: module}`` for every offered module."""
        return {module.name: module for module in self.modules}

    def get_module(self, name: str) -> Module | None:
        """Look up a module by name."""
        return self.module_map().get(name)


# ---------------------------------------------------------------------------
# Execution context
# ---------------------------------------------------------------------------

class ExecutionContext(BaseModel):
    """Read-only state shared by condition evaluation and logging for one module pass."""

    model_config = ConfigDict(frozen=True)

    selected_modules: frozenset[str] = Field(
        default_factory=frozenset, description="Names of every resolved module"
    )
    project_root: Path = Field(..., description="Root of the generated project")
    project_name: str = Field(..., description="Project identity recorded in logs")
    module_name: str = Field(..., description="Module whose instructions are running")
    verbose: bool = Field(default=False, description="Report every condition reason")

    def resolve(self, relative: str) -> Path:
        """Resolve a catalog path against the project root."""
        return self.project_root / relative


# ---------------------------------------------------------------------------
# Evaluation results
# ---------------------------------------------------------------------------

class ConditionResult(BaseModel):
    """Outcome of a single condition, as shown in verbose output and logs."""
    passed: bool = Field(..., description="Whether the predicate held")
    reason: str = Field(..., description="What was compared and what was found")
