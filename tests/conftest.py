"""Shared pytest fixtures for the modforge test suite.

Provides reusable fixtures for:
- Temporary project directories and execution contexts
- An isolated instruction log store
- Sample template definitions and module instruction catalogs
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from modforge.catalog.models import ExecutionContext, Template
from modforge.logs.store import InstructionLogStore


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ``~`` at a temp directory and clear modforge env vars.

    Keeps the default log directory (``~/.modforge-logs``) out of the real
    home directory.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    for name in (
        "MODFORGE_LOG_DIR",
        "MODFORGE_LOG_RETENTION_DAYS",
        "MODFORGE_VERBOSE",
        "MODFORGE_MODULES_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    yield home


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Temporary directory standing in for a generated project."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture
def log_store(tmp_path: Path) -> InstructionLogStore:
    """Instruction log store writing into a temp directory."""
    return InstructionLogStore(tmp_path / "logs")


@pytest.fixture
def make_context(tmp_project_dir: Path) -> Callable[..., ExecutionContext]:
    """Factory for execution contexts rooted at ``tmp_project_dir``."""

    def _make(
        selected: set[str] | None = None,
        module_name: str = "test-module",
        verbose: bool = False,
    ) -> ExecutionContext:
        return ExecutionContext(
            selected_modules=frozenset(selected or ()),
            project_root=tmp_project_dir,
            project_name="test-project",
            module_name=module_name,
            verbose=verbose,
        )

    return _make


@pytest.fixture
def write_file(tmp_project_dir: Path) -> Callable[[str, str], Path]:
    """Write *content* to *relative* inside the project and return the path."""

    def _write(relative: str, content: str) -> Path:
        path = tmp_project_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


# ---------------------------------------------------------------------------
# Sample catalogs
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_template_data() -> dict[str, Any]:
    """A template definition with modules that include and exclude each other."""
    return {
        "name": "react-app",
        "description": "React starter",
        "url": "templates/react-app",
        "modules": [
            {
                "name": "router",
                "description": "Client-side routing",
                "path": ".modules/router.json",
                "priority": 5,
            },
            {
                "name": "auth",
                "description": "Authentication screens",
                "path": ".modules/auth.json",
                "includes": ["router"],
                "priority": 1,
            },
            {
                "name": "redux",
                "description": "Redux state",
                "path": ".modules/redux.json",
                "excludes": ["zustand"],
            },
            {
                "name": "zustand",
                "description": "Zustand state",
                "path": ".modules/zustand.json",
            },
        ],
    }


@pytest.fixture
def sample_template(sample_template_data: dict[str, Any]) -> Template:
    return Template.model_validate(sample_template_data)


@pytest.fixture
def write_module_catalog(tmp_project_dir: Path) -> Callable[[str, list[dict[str, Any]]], Path]:
    """Write a module instruction catalog at *relative* inside the project."""

    def _write(relative: str, instructions: list[dict[str, Any]]) -> Path:
        path = tmp_project_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps({"instructions": instructions}, indent=2), encoding="utf-8")
        return path

    return _write


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Render captured Rich output without wrapping long paths."""
    from modforge.utils import console

    monkeypatch.setattr(console, "width", 200)
