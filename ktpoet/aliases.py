"""Type alias unwrapping."""

from __future__ import annotations

from collections.abc import Iterable

from ktpoet.errors import UnsupportedShape
from ktpoet.types import (
    ClassName,
    FunctionType,
    ParameterizedType,
    TypeRef,
    TypeVariable,
    WildcardType,
    copy_type,
)


def union_annotations(*groups: Iterable) -> tuple:
    """Deduplicated union of annotation groups, sorted by rendered form."""
    unique = {}
    for group in groups:
        for annotation in group:
            unique.setdefault(str(annotation), annotation)
    return tuple(unique[key] for key in sorted(unique))


def unwrap_type_alias(t: TypeRef) -> TypeRef:
    """Replace alias references in `t` by the types they expand to.

    The result is nullable if the alias reference or its expansion is
    nullable, and carries the sorted union of both annotation sets. Type
    variables have their bounds unwrapped. Unwrapping is idempotent.

    Raises:
        UnsupportedShape: If `t` is not one of the five TypeRef variants.
    """
    if isinstance(t, TypeVariable):
        return copy_type(t, bounds=tuple(unwrap_type_alias(b) for b in t.bounds))
    if isinstance(t, (ClassName, ParameterizedType)):
        if t.alias_expansion is None:
            return t
        expansion = unwrap_type_alias(t.alias_expansion)
        return copy_type(
            expansion,
            nullable=expansion.nullable or t.nullable,
            annotations=union_annotations(expansion.annotations, t.annotations),
        )
    if isinstance(t, (WildcardType, FunctionType)):
        return t
    raise UnsupportedShape(
        f"Cannot unwrap type aliases in {type(t).__name__}",
        "Only ClassName, ParameterizedType, TypeVariable, WildcardType and FunctionType are supported.",
    )
