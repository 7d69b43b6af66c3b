"""Load template definitions and module instruction catalogs from disk.

Retrieval of catalogs over the network happens elsewhere; these helpers only
read files that already exist locally and turn any parse or validation
failure into :class:`~modforge.errors.CatalogError`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from modforge.catalog.models import Module, ModuleInstructions, Template
from modforge.errors import CatalogError


def _read_document(path: Path) -> Any:
    """Parse a JSON or YAML document, chosen by file suffix."""
    if not path.exists():
        raise CatalogError(str(path), "file not found")
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CatalogError(str(path), f"could not be read: {exc}") from exc

    try:
        if path.suffix.lower() in (".yaml", ".yml"):
            return yaml.safe_load(raw)
        return json.loads(raw)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise CatalogError(str(path), f"is not valid: {exc}") from exc


def parse_template(data: Any, source: str = "<template>") -> Template:
    """Validate a template definition mapping."""
    try:
        return Template.model_validate(data)
    except ValidationError as exc:
        raise CatalogError(source, f"invalid template definition: {exc}") from exc


def load_template(path: str | Path) -> Template:
    """Load a single template definition from a ``.json``/``.yaml``/``.yml`` file."""
    file_path = Path(path)
    return parse_template(_read_document(file_path), str(file_path))


def load_template_catalog(path: str | Path) -> dict[str, list[Template]]:
    """Load a ``{category: [template, ...]}`` catalog document.

    Raises:
        CatalogError: If the document is not a mapping of category names to
            template lists, or any template fails validation.
    """
    file_path = Path(path)
    data = _read_document(file_path)
    if not isinstance(data, dict):
        raise CatalogError(str(file_path), "catalog must map categories to template lists")

    catalog: dict[str, list[Template]] = {}
    for category, templates in data.items():
        if not isinstance(templates, list):
            raise CatalogError(str(file_path), f"category {category!r} is not a list")
        catalog[str(category)] = [
            parse_template(entry, f"{file_path}[{category}]") for entry in templates
        ]
    return catalog


def parse_module_instructions(data: Any, source: str = "<module>") -> ModuleInstructions:
    """Validate an instruction catalog mapping."""
    if not isinstance(data, dict):
        raise CatalogError(source, "instruction catalog must be an object")
    try:
        return ModuleInstructions.model_validate(data)
    except ValidationError as exc:
        raise CatalogError(source, f"invalid instruction catalog: {exc}") from exc


def load_module_instructions(project_root: str | Path, module: Module) -> ModuleInstructions:
    """Load the instruction catalog a module declares, relative to *project_root*.

    Raises:
        CatalogError: If the file is missing, is not valid JSON, or does not
            describe a valid instruction list.
    """
    file_path = Path(project_root) / module.path
    return parse_module_instructions(_read_document(file_path), str(file_path))
