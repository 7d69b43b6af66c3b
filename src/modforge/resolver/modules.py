"""Expand a module selection into the final, ordered install list.

Resolution runs in three passes over a name-keyed lookup table:

1. **Closure** -- every selected module pulls in the modules named by its
   ``includes``, transitively.  A visited-name set bounds the traversal so
   cyclic ``includes`` terminate.
2. **Conflicts** -- any module named in the ``excludes`` of another module
   in the closure is dropped.  A module never excludes itself.  Two modules
   that exclude each other are both dropped and reported as an ambiguity.
3. **Ordering** -- the survivors are sorted by ``priority`` descending; the
   sort is stable, so equal priorities keep selection order.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from pydantic import BaseModel, Field

from modforge.catalog.models import Module


class ResolutionAmbiguity(BaseModel):
    """Two selected modules that exclude each other; both were dropped."""
    first: str = Field(..., description="Module encountered first in the closure")
    second: str = Field(..., description="Module it conflicts with")

    def describe(self) -> str:
        return f"{self.first} and {self.second} exclude each other; both were dropped"


class ResolutionResult(BaseModel):
    """Outcome of :func:`resolve_modules`."""
    modules: list[Module] = Field(default_factory=list, description="Final install order")
    included: list[str] = Field(
        default_factory=list, description="Modules added only because another module includes them"
    )
    excluded: list[str] = Field(
        default_factory=list, description="Modules dropped by conflict filtering"
    )
    ambiguities: list[ResolutionAmbiguity] = Field(
        default_factory=list, description="Mutually-excluding pairs"
    )
    unknown: list[str] = Field(
        default_factory=list, description="Selected names absent from the catalog"
    )

    @property
    def names(self) -> list[str]:
        return [module.name for module in self.modules]

    @property
    def is_empty(self) -> bool:
        """``True`` when there is nothing to install."""
        return not self.modules


def expand_includes(
    selected: Sequence[Module], module_map: dict[str, Module]
) -> tuple[list[Module], list[str]]:
    """Return the include closure of *selected* and the names it added.

    The closure lists the selection first, in order and without duplicates,
    followed by included modules in depth-first discovery order.
    """
    closure: list[Module] = []
    visited: set[str] = set()
    for module in selected:
        if module.name not in visited:
            visited.add(module.name)
            closure.append(module)

    added: list[str] = []
    for root in list(closure):
        stack: list[Iterator[str]] = [iter(root.includes)]
        while stack:
            name = next(stack[-1], None)
            if name is None:
                stack.pop()
                continue
            included = module_map.get(name)
            if included is None or name in visited:
                continue
            visited.add(name)
            added.append(name)
            stack.append(iter(included.includes))

    closure.extend(module_map[name] for name in added)
    return closure, added


def filter_conflicts(
    modules: Sequence[Module],
) -> tuple[list[Module], list[str], list[ResolutionAmbiguity]]:
    """Drop every module excluded by another module in *modules*."""
    present = {module.name: module for module in modules}
    excluded: list[str] = []
    ambiguities: list[ResolutionAmbiguity] = []
    reported: set[frozenset[str]] = set()

    for module in modules:
        for name in module.excludes:
            if name == module.name or name not in present:
                continue
            if name not in excluded:
                excluded.append(name)
            pair = frozenset((module.name, name))
            if module.name in present[name].excludes and pair not in reported:
                reported.add(pair)
                ambiguities.append(ResolutionAmbiguity(first=module.name, second=name))

    dropped = set(excluded)
    return [module for module in modules if module.name not in dropped], excluded, ambiguities


def sort_by_priority(modules: Sequence[Module]) -> list[Module]:
    """Stable sort by ``priority``, highest first."""
    return sorted(modules, key=lambda module: -module.priority)


def resolve_modules(
    selected: Sequence[Module | str], catalog: Sequence[Module]
) -> ResolutionResult:
    """Resolve a user's selection against a template's module catalog.

    Args:
        selected: Chosen modules, as ``Module`` objects or names, in the
            order the user picked them.
        catalog: Every module the template offers.

    Returns:
        A ``ResolutionResult``.  An empty ``modules`` list means nothing is
        to be installed; it is not an error.
    """
    module_map = {module.name: module for module in catalog}
    chosen: list[Module] = []
    unknown: list[str] = []
    for item in selected:
        if isinstance(item, Module):
            module_map.setdefault(item.name, item)
            chosen.append(module_map[item.name])
        elif item in module_map:
            chosen.append(module_map[item])
        elif item not in unknown:
            unknown.append(item)

    closure, included = expand_includes(chosen, module_map)
    remaining, excluded, ambiguities = filter_conflicts(closure)
    return ResolutionResult(
        modules=sort_by_priority(remaining),
        included=included,
        excluded=excluded,
        ambiguities=ambiguities,
        unknown=unknown,
    )
