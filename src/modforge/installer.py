"""Module installation orchestrator.

Drives the resolved modules of a template through the instruction executor,
one module and one instruction at a time:

1. Resolve the user's selection (includes, conflicts, priority order).
2. For each module, load its instruction catalog from the generated
   project; a missing or corrupt catalog skips only that module.
3. Feed the instructions to :class:`InstructionExecutor` in catalog order.
   A failing instruction is counted and the batch continues.
4. Remove the project's module catalog directory.

The run is best-effort: it always completes with a summary.
"""

from __future__ import annotations

import shutil
from collections.abc import Sequence
from pathlib import Path

from pydantic import BaseModel, Field
from rich.markup import escape

from modforge.catalog.loader import load_module_instructions
from modforge.catalog.models import ExecutionContext, Instruction, Module, Template
from modforge.config import Config
from modforge.errors import CatalogError, InstructionError, LogStoreError
from modforge.logs.store import InstructionLogStore
from modforge.modifier.executor import InstructionExecutor, InstructionOutcome
from modforge.resolver.modules import ResolutionResult, resolve_modules
from modforge.utils import (
    console,
    print_info,
    print_plain,
    print_success,
    print_warning,
)


class ProcessSummary(BaseModel):
    """Tally of one module's instruction batch."""
    executed: int = Field(default=0, ge=0)
    skipped: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    errors: list[str] = Field(default_factory=list, description="Failure messages, in order")
    log_hashes: list[str] = Field(default_factory=list, description="Logs written for this batch")


class ModuleReport(BaseModel):
    """What happened to one module during installation."""
    name: str
    loaded: bool = Field(default=True, description="Whether its instruction catalog was read")
    error: str | None = Field(default=None, description="Why the catalog could not be read")
    summary: ProcessSummary = Field(default_factory=ProcessSummary)


class InstallReport(BaseModel):
    """Outcome of :meth:`ModuleInstaller.install`."""
    modules: list[ModuleReport] = Field(default_factory=list)

    @property
    def executed(self) -> int:
        return sum(report.summary.executed for report in self.modules)

    @property
    def skipped(self) -> int:
        return sum(report.summary.skipped for report in self.modules)

    @property
    def failed(self) -> int:
        return sum(report.summary.failed for report in self.modules)

    @property
    def unloaded_modules(self) -> list[str]:
        """Modules skipped because their catalog could not be loaded."""
        return [report.name for report in self.modules if not report.loaded]


def process_instructions(
    instructions: Sequence[Instruction],
    context: ExecutionContext,
    executor: InstructionExecutor | None = None,
) -> ProcessSummary:
    """Apply *instructions* in order and tally the outcomes.

    An instruction that raises ``InstructionError``, or whose log cannot be
    written, is counted as failed and processing continues with the next one.
    """
    executor = executor or InstructionExecutor()
    summary = ProcessSummary()

    for index, instruction in enumerate(instructions):
        label = f"#{index + 1} {instruction.action.value} {instruction.path}"
        try:
            result = executor.apply(instruction, context, index)
        except (InstructionError, LogStoreError) as exc:
            summary.failed += 1
            summary.errors.append(str(exc))
            print_warning(f"  {label} failed: {exc}")
            continue

        if result.log_hash:
            summary.log_hashes.append(result.log_hash)
        if result.outcome is InstructionOutcome.SKIPPED:
            summary.skipped += 1
        else:
            summary.executed += 1

        if context.verbose:
            console.print(f"  [dim]{escape(label)}: {result.outcome.value}[/dim]", highlight=False)
            for condition in result.condition_results:
                mark = "[green]+[/green]" if condition.passed else "[red]x[/red]"
                console.print(f"    {mark} {escape(condition.reason)}", highlight=False)

    return summary


class ModuleInstaller:
    """Resolves module selections and installs them into a generated project.

    Attributes:
        config: Installer settings.
        log_store: Where instruction logs are written.
        executor: The instruction executor shared by every module.
    """

    def __init__(self, config: Config | None = None, log_store: InstructionLogStore | None = None) -> None:
        self.config = config or Config()
        self.log_store = log_store or InstructionLogStore(self.config.log_dir)
        self.executor = InstructionExecutor(self.log_store)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, template: Template, selected: Sequence[Module | str]) -> ResolutionResult:
        """Resolve *selected* against *template* and report the diagnostics."""
        result = resolve_modules(selected, template.modules)

        if result.unknown:
            print_warning("The following modules are not offered by this template:")
            for name in result.unknown:
                print_plain(f"  ? {name}")
        if result.included:
            print_info("The following modules were automatically included:")
            for name in result.included:
                print_plain(f"  + {name}")
        if result.excluded:
            print_warning("The following modules will be ignored due to conflicts:")
            for name in result.excluded:
                print_plain(f"  - {name}")
        for ambiguity in result.ambiguities:
            print_warning(ambiguity.describe())

        if result.is_empty:
            if selected:
                print_warning("All selected modules were excluded due to conflicts")
            return result

        print_plain("Modules to be installed (in order):")
        for position, module in enumerate(result.modules, start=1):
            priority = f" [Priority: {module.priority}]" if module.priority else ""
            print_plain(f"  {position}. {module.name}: {module.description}{priority}")
        return result

    # ------------------------------------------------------------------
    # Installation
    # ------------------------------------------------------------------

    def install(
        self,
        project_root: str | Path,
        project_name: str,
        modules: Sequence[Module],
    ) -> InstallReport:
        """Install *modules*, in the given order, into *project_root*."""
        root = Path(project_root)
        selected_names = frozenset(module.name for module in modules)
        report = InstallReport()

        print_info("Processing modules...")
        for module in modules:
            print_info(f"Installing module: {module.name}")
            try:
                catalog = load_module_instructions(root, module)
            except CatalogError as exc:
                print_warning(f"Module configuration not usable, skipping {module.name}: {exc}")
                report.modules.append(ModuleReport(name=module.name, loaded=False, error=str(exc)))
                continue

            context = ExecutionContext(
                selected_modules=selected_names,
                project_root=root,
                project_name=project_name,
                module_name=module.name,
                verbose=self.config.verbose,
            )
            summary = process_instructions(catalog.instructions, context, self.executor)
            report.modules.append(ModuleReport(name=module.name, summary=summary))

            if summary.failed:
                print_warning(
                    f"Module {module.name} installed with {summary.failed} failed instruction(s)"
                )
            else:
                print_success(f"Module {module.name} installed successfully")

        if self.config.cleanup_modules_dir:
            self.cleanup_modules_dir(root)
        return report

    def cleanup_modules_dir(self, project_root: Path) -> bool:
        """Remove the module catalog directory; return ``True`` if it was removed."""
        modules_path = project_root / self.config.modules_dir
        if not modules_path.exists():
            return False
        try:
            shutil.rmtree(modules_path)
        except OSError as exc:
            print_warning(f"Failed to clean up {self.config.modules_dir}: {exc}")
            return False
        print_success("Cleaned up modules configuration")
        return True
