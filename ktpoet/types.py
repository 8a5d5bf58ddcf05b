"""Structural type references and their rendering.

A TypeRef is one of five frozen variants: ClassName, ParameterizedType,
TypeVariable, WildcardType and FunctionType. Values are immutable; use
copy_type to derive a modified copy. Rendering goes through a lookup
callable that maps a ClassName to its display form, so the same tree can
print with fully-qualified names or with the names chosen by an
ImportResolver.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import Union

from ktpoet.errors import UnsupportedShape
from ktpoet.names import escape_if_necessary, guess_class_parts, split_class_path


NameLookup = Callable[["ClassName"], str]


class Variance(enum.Enum):
    IN = "in"
    OUT = "out"


class BoundKind(enum.Enum):
    IN = "in"
    OUT = "out"
    STAR = "*"


# ===--- Variants ---=== #


@dataclass(frozen=True)
class ClassName:
    """A named class, possibly nested: package + simple-name chain.

    Attributes:
        package_name: Dotted package, "" for the root package.
        simple_names: Outermost-first chain of simple names. Never empty,
            and no segment is empty.
        nullable: True renders a trailing '?'.
        annotations: Type-use annotations, in order.
        alias_expansion: Set when this name refers to a type alias; holds the
            type the alias expands to.
    """

    package_name: str
    simple_names: tuple[str, ...]
    nullable: bool = False
    annotations: tuple = ()
    alias_expansion: TypeRef | None = None

    def __post_init__(self) -> None:
        names = tuple(self.simple_names)
        if not names:
            raise ValueError("ClassName requires at least one simple name")
        if any(not name for name in names):
            raise ValueError(f"Empty simple name in {names!r}")
        object.__setattr__(self, "simple_names", names)
        object.__setattr__(self, "annotations", tuple(self.annotations))

    @classmethod
    def from_path(cls, path: str) -> ClassName:
        package_name, simple_names = split_class_path(path)
        return cls(package_name, simple_names)

    @classmethod
    def best_guess(cls, canonical: str) -> ClassName:
        package_name, simple_names = guess_class_parts(canonical)
        return cls(package_name, simple_names)

    @property
    def simple_name(self) -> str:
        return self.simple_names[-1]

    @property
    def canonical_name(self) -> str:
        if self.package_name:
            return f"{self.package_name}.{'.'.join(self.simple_names)}"
        return ".".join(self.simple_names)

    @property
    def qualified_key(self) -> tuple[str, tuple[str, ...]]:
        """Identity of the class, ignoring nullability and annotations."""
        return self.package_name, self.simple_names

    def top_level_class_name(self) -> ClassName:
        return ClassName(self.package_name, self.simple_names[:1])

    def enclosing_class_name(self) -> ClassName | None:
        if len(self.simple_names) == 1:
            return None
        return ClassName(self.package_name, self.simple_names[:-1])

    def nested_class(self, name: str) -> ClassName:
        return ClassName(self.package_name, self.simple_names + (name,))

    def parameterized_by(self, *type_arguments: TypeRef) -> ParameterizedType:
        return ParameterizedType(self, tuple(type_arguments))

    def __str__(self) -> str:
        return render_type(self, canonical_lookup)


@dataclass(frozen=True)
class ParameterizedType:
    raw_type: ClassName
    type_arguments: tuple[TypeRef, ...]
    nullable: bool = False
    annotations: tuple = ()
    alias_expansion: TypeRef | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type_arguments", tuple(self.type_arguments))
        object.__setattr__(self, "annotations", tuple(self.annotations))

    def __str__(self) -> str:
        return render_type(self, canonical_lookup)


@dataclass(frozen=True)
class TypeVariable:
    name: str
    bounds: tuple[TypeRef, ...] = ()
    variance: Variance | None = None
    reified: bool = False
    nullable: bool = False
    annotations: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "bounds", tuple(self.bounds))
        object.__setattr__(self, "annotations", tuple(self.annotations))

    def __str__(self) -> str:
        return render_type(self, canonical_lookup)


@dataclass(frozen=True)
class WildcardType:
    kind: BoundKind
    bound: TypeRef | None = None
    nullable: bool = False
    annotations: tuple = ()

    def __post_init__(self) -> None:
        if (self.kind is BoundKind.STAR) != (self.bound is None):
            raise ValueError("Only star projections have no bound")
        object.__setattr__(self, "annotations", tuple(self.annotations))

    def __str__(self) -> str:
        return render_type(self, canonical_lookup)


@dataclass(frozen=True)
class FunctionType:
    parameters: tuple[TypeRef, ...]
    return_type: TypeRef
    receiver: TypeRef | None = None
    suspending: bool = False
    nullable: bool = False
    annotations: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "parameters", tuple(self.parameters))
        object.__setattr__(self, "annotations", tuple(self.annotations))

    def __str__(self) -> str:
        return render_type(self, canonical_lookup)


TypeRef = Union[ClassName, ParameterizedType, TypeVariable, WildcardType, FunctionType]
TYPE_REF_VARIANTS = (ClassName, ParameterizedType, TypeVariable, WildcardType, FunctionType)


# ===--- Constructors ---=== #


def class_name(package_name: str, *simple_names: str) -> ClassName:
    return ClassName(package_name, simple_names)


def copy_type(t: TypeRef, **changes: object) -> TypeRef:
    """Return `t` with the given fields replaced."""
    if not isinstance(t, TYPE_REF_VARIANTS):
        raise UnsupportedShape(f"Not a type reference: {t!r}")
    return dataclasses.replace(t, **changes)


def parameterized_by(raw_type: ClassName, *type_arguments: TypeRef) -> ParameterizedType:
    return ParameterizedType(raw_type, tuple(type_arguments))


def producer_of(t: TypeRef) -> WildcardType:
    return WildcardType(BoundKind.OUT, t)


def consumer_of(t: TypeRef) -> WildcardType:
    return WildcardType(BoundKind.IN, t)


def function_type(
    *parameters: TypeRef,
    returns: TypeRef,
    receiver: TypeRef | None = None,
    suspending: bool = False,
) -> FunctionType:
    return FunctionType(tuple(parameters), returns, receiver, suspending)


def is_annotated(t: TypeRef) -> bool:
    return bool(t.annotations)


# ===--- Well-known names ---=== #

ANY = class_name("kotlin", "Any")
NULLABLE_ANY = copy_type(ANY, nullable=True)
UNIT = class_name("kotlin", "Unit")
INT = class_name("kotlin", "Int")
STRING = class_name("kotlin", "String")
CHAR_SEQUENCE = class_name("kotlin", "CharSequence")
ARRAY = class_name("kotlin", "Array")
LIST = class_name("kotlin.collections", "List")
MAP = class_name("kotlin.collections", "Map")
STAR = WildcardType(BoundKind.STAR)


# ===--- Rendering ---=== #


def canonical_lookup(name: ClassName) -> str:
    parts = ([name.package_name] if name.package_name else []) + list(name.simple_names)
    return ".".join(
        escape_if_necessary(segment)
        for part in parts
        for segment in part.split(".")
    )


def _annotation_prefix(t: TypeRef, lookup: NameLookup) -> str:
    return "".join(f"{annotation.render(lookup)} " for annotation in t.annotations)


def _render_core(t: TypeRef, lookup: NameLookup) -> str:
    if isinstance(t, ClassName):
        return lookup(t)
    if isinstance(t, ParameterizedType):
        arguments = ", ".join(render_type(arg, lookup) for arg in t.type_arguments)
        return f"{lookup(t.raw_type)}<{arguments}>"
    if isinstance(t, TypeVariable):
        return escape_if_necessary(t.name)
    if isinstance(t, WildcardType):
        if t.kind is BoundKind.STAR:
            return "*"
        return f"{t.kind.value} {render_type(t.bound, lookup)}"
    if isinstance(t, FunctionType):
        parts: list[str] = []
        if t.suspending:
            parts.append("suspend ")
        if t.receiver is not None:
            receiver = render_type(t.receiver, lookup)
            if is_annotated(t.receiver) or isinstance(t.receiver, FunctionType):
                receiver = f"({receiver})"
            parts.append(f"{receiver}.")
        parameters = ", ".join(render_type(p, lookup) for p in t.parameters)
        parts.append(f"({parameters}) -> ")
        returns = render_type(t.return_type, lookup)
        if isinstance(t.return_type, FunctionType) and not t.return_type.nullable:
            returns = f"({returns})"
        parts.append(returns)
        body = "".join(parts)
        return f"({body})" if t.nullable else body
    raise UnsupportedShape(f"Cannot render type reference of shape {type(t).__name__}")


def render_type(t: TypeRef, lookup: NameLookup = canonical_lookup) -> str:
    """Render `t` in Kotlin syntax, resolving class names through `lookup`."""
    core = _render_core(t, lookup)
    suffix = "?" if t.nullable and not isinstance(t, WildcardType) else ""
    return f"{_annotation_prefix(t, lookup)}{core}{suffix}"
