"""Per-file symbol table: display names and the import list.

An ImportResolver records every class name referenced while a file is
rendered. build() then decides, once per file, how each referenced
top-level class is displayed:

    same package / root package     -> simple name, no import
    same package, shadowed by root  -> fully-qualified name, no import
    unique foreign simple name      -> simple name + import
    conflicting foreign simple name -> import alias from package segments
    no unique alias available       -> fully-qualified name, no import

Classes from default-import packages are displayed by simple name without
an import line unless they need an alias.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from ktpoet.names import escape_if_necessary, escape_segments
from ktpoet.types import ClassName, canonical_lookup

logger = logging.getLogger(__name__)

DEFAULT_IMPORT_PACKAGES = (
    "kotlin",
    "kotlin.annotation",
    "kotlin.collections",
    "kotlin.comparisons",
    "kotlin.io",
    "kotlin.ranges",
    "kotlin.sequences",
    "kotlin.text",
)

ClassKey = tuple[str, tuple[str, ...]]


@dataclass(frozen=True)
class Import:
    qualified_name: str
    alias: str | None = None

    def render(self) -> str:
        line = f"import {escape_segments(self.qualified_name)}"
        if self.alias is not None:
            line += f" as {escape_if_necessary(self.alias)}"
        return line


@dataclass(frozen=True)
class NameTable:
    """Display names for one file, keyed by top-level class identity."""

    display_names: dict = field(default_factory=dict)
    imports: tuple[Import, ...] = ()

    def lookup(self, name: ClassName) -> str:
        top = name.top_level_class_name()
        display = self.display_names.get(top.qualified_key)
        if display is None:
            return canonical_lookup(name)
        nested = [escape_if_necessary(n) for n in name.simple_names[1:]]
        return ".".join([display, *nested])


def _capitalize(segment: str) -> str:
    return segment[:1].upper() + segment[1:]


def import_alias(name: ClassName, depth: int) -> str:
    """Alias built from the last `depth` package segments plus the simple name.

        import_alias(com.a.Foo, 1) -> "AFoo"
        import_alias(com.a.Foo, 2) -> "ComAFoo"
    """
    segments = name.package_name.split(".") if name.package_name else []
    prefix = "".join(_capitalize(s) for s in segments[-depth:]) if depth else ""
    return prefix + name.simple_names[0]


class ImportResolver:
    def __init__(
        self,
        package_name: str,
        default_imports: Iterable[str] = DEFAULT_IMPORT_PACKAGES,
        reserved_names: Iterable[str] = (),
    ):
        self.package_name = package_name
        self.default_imports = frozenset(default_imports)
        self.reserved_names = frozenset(reserved_names)
        self._referenced: dict[ClassKey, ClassName] = {}

    def record(self, name: ClassName) -> str:
        """Remember `name` and return its fully-qualified form.

        Used as the name lookup of the collecting render pass.
        """
        top = name.top_level_class_name()
        self._referenced.setdefault(top.qualified_key, top)
        return canonical_lookup(name)

    @property
    def referenced(self) -> tuple[ClassName, ...]:
        return tuple(self._referenced.values())

    def _is_local(self, name: ClassName) -> bool:
        return name.package_name in ("", self.package_name)

    def _claim_local_names(self, local: list[ClassName], taken: set[str]) -> dict[ClassKey, str]:
        """Give local classes their simple names.

        Root-package classes have no qualified form, so they claim their
        simple name first. A same-package class whose simple name a
        root-package class already holds is written fully qualified.
        """
        display: dict[ClassKey, str] = {}
        rooted: set[str] = set()
        for name in sorted(local, key=lambda n: (n.package_name != "", n.canonical_name)):
            if not name.package_name:
                rooted.add(name.simple_name)
            elif name.simple_name in rooted:
                display[name.qualified_key] = canonical_lookup(name)
                logger.debug("%s is shadowed by a root package class", name)
                continue
            display[name.qualified_key] = escape_if_necessary(name.simple_name)
            taken.add(name.simple_name)
        return display

    def build(self) -> NameTable:
        display: dict[ClassKey, str] = {}
        plain: list[Import] = []
        aliased: list[Import] = []

        local = [n for n in self._referenced.values() if self._is_local(n)]
        foreign = [n for n in self._referenced.values() if not self._is_local(n)]

        taken = set(self.reserved_names)
        display.update(self._claim_local_names(local, taken))

        groups: dict[str, list[ClassName]] = defaultdict(list)
        for name in foreign:
            groups[name.simple_name].append(name)

        # Aliases must not shadow any simple name referenced in this file.
        used = taken | set(groups)

        for simple_name in sorted(groups):
            members = sorted(groups[simple_name], key=lambda n: n.canonical_name)
            if len(members) == 1 and simple_name not in taken:
                name = members[0]
                display[name.qualified_key] = escape_if_necessary(simple_name)
                if name.package_name not in self.default_imports:
                    plain.append(Import(name.canonical_name))
                continue

            for name, alias in self._choose_aliases(members, used).items():
                if alias is None:
                    display[name.qualified_key] = canonical_lookup(name)
                    logger.debug("No free alias for %s, using qualified name", name)
                    continue
                display[name.qualified_key] = escape_if_necessary(alias)
                aliased.append(Import(name.canonical_name, alias))
                used.add(alias)
                logger.debug("Importing %s as %s", name, alias)

        plain.sort(key=lambda i: i.qualified_name)
        aliased.sort(key=lambda i: i.qualified_name)
        return NameTable(display_names=display, imports=tuple(plain + aliased))

    def _choose_aliases(
        self, members: list[ClassName], used: set[str]
    ) -> dict[ClassName, str | None]:
        max_depth = max(len(m.package_name.split(".")) for m in members)
        for depth in range(1, max_depth + 1):
            aliases = [import_alias(m, depth) for m in members]
            if len(set(aliases)) == len(aliases) and not used.intersection(aliases):
                return dict(zip(members, aliases))

        chosen: dict[ClassName, str | None] = {}
        aliases = [import_alias(m, max_depth) for m in members]
        for member, alias in zip(members, aliases):
            free = aliases.count(alias) == 1 and alias not in used
            chosen[member] = alias if free else None
        return chosen
