"""Construction of TypeRefs from raw metadata types."""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from ktpoet.aliases import union_annotations
from ktpoet.annotations import annotation_from_raw
from ktpoet.errors import UnimplementedArity, UnsupportedShape
from ktpoet.metadata import (
    ClassRef,
    ProjectionVariance,
    RawType,
    RawTypeParameter,
    RawTypeProjection,
    TypeAliasRef,
    TypeParameterRef,
)
from ktpoet.resolver import TypeParameterResolver
from ktpoet.types import (
    STAR,
    BoundKind,
    ClassName,
    FunctionType,
    ParameterizedType,
    TypeRef,
    TypeVariable,
    Variance,
    WildcardType,
    consumer_of,
    copy_type,
    producer_of,
)

logger = logging.getLogger(__name__)

_FUNCTION_CLASS_RE = re.compile(r"^kotlin(?:\.jvm\.functions)?\.Function(\d+|N)$")

_DECLARATION_VARIANCE = {
    ProjectionVariance.INVARIANT: None,
    ProjectionVariance.IN: Variance.IN,
    ProjectionVariance.OUT: Variance.OUT,
}


def projection_to_type_ref(
    projection: RawTypeProjection, resolver: TypeParameterResolver
) -> TypeRef:
    if projection.variance is None or projection.type is None:
        return STAR
    type_ref = type_ref_from_raw(projection.type, resolver)
    if projection.variance is ProjectionVariance.IN:
        return consumer_of(type_ref)
    if projection.variance is ProjectionVariance.OUT:
        return producer_of(type_ref)
    return type_ref


def _continuation_result(continuation: TypeRef) -> TypeRef:
    if not isinstance(continuation, ParameterizedType) or len(continuation.type_arguments) != 1:
        raise UnsupportedShape(
            f"Suspending function type must end with a Continuation<T> parameter, got {continuation}"
        )
    result = continuation.type_arguments[0]
    if isinstance(result, WildcardType) and result.kind is BoundKind.IN:
        return result.bound
    return result


def _function_type(
    base: ClassName, arguments: Sequence[TypeRef], raw: RawType
) -> FunctionType:
    match = _FUNCTION_CLASS_RE.match(base.canonical_name)
    if match.group(1) == "N":
        raise UnimplementedArity(
            f"Cannot reconstruct {base.canonical_name}: variadic function arity has no source form",
            "Only kotlin.Function0 through kotlin.Function22 can be rendered as function types.",
        )

    if raw.suspend:
        if len(arguments) < 2:
            raise UnsupportedShape(
                f"Suspending function type {base.canonical_name} is missing its continuation"
            )
        parameters = list(arguments[:-2])
        return_type = _continuation_result(arguments[-2])
    else:
        parameters = list(arguments[:-1])
        return_type = arguments[-1]

    receiver = None
    if raw.extension:
        if not parameters:
            raise UnsupportedShape(
                f"Extension function type {base.canonical_name} has no receiver argument"
            )
        receiver = parameters.pop(0)

    return FunctionType(tuple(parameters), return_type, receiver, suspending=raw.suspend)


def _classifier_to_type_ref(raw: RawType, resolver: TypeParameterResolver) -> TypeRef:
    classifier = raw.classifier
    if isinstance(classifier, TypeParameterRef):
        return resolver[classifier.id]
    if isinstance(classifier, TypeAliasRef):
        return ClassName.from_path(classifier.name)
    if not isinstance(classifier, ClassRef):
        raise UnsupportedShape(f"Unknown classifier: {classifier!r}")

    base = ClassName.from_path(classifier.name)
    if not raw.arguments:
        return base
    arguments = [projection_to_type_ref(arg, resolver) for arg in raw.arguments]
    if _FUNCTION_CLASS_RE.match(base.canonical_name):
        return _function_type(base, arguments, raw)
    return ParameterizedType(base, tuple(arguments))


def type_ref_from_raw(
    raw: RawType, resolver: TypeParameterResolver = TypeParameterResolver.EMPTY
) -> TypeRef:
    """Translate a raw metadata type into exactly one TypeRef.

    Flexible types become `out` wildcards over their upper bound. Inner
    types with an outer type resolve to the outer type. Function classes
    with arguments become FunctionTypes. When the raw type was written
    through a type alias, the alias name is returned with the expansion
    attached as `alias_expansion`.

    Raises:
        UnimplementedArity: For kotlin.FunctionN.
        UnsupportedShape: For unknown classifiers or malformed suspending types.
        MissingTypeArgument: When a type parameter id is not in scope.
    """
    if raw.flexible_upper_bound is not None:
        return producer_of(type_ref_from_raw(raw.flexible_upper_bound, resolver))
    if raw.outer_type is not None:
        return type_ref_from_raw(raw.outer_type, resolver)

    type_ref = _classifier_to_type_ref(raw, resolver)
    annotations = tuple(annotation_from_raw(a) for a in raw.annotations)
    type_ref = copy_type(type_ref, nullable=raw.nullable, annotations=annotations)

    if raw.abbreviated_type is None:
        return type_ref

    alias = type_ref_from_raw(raw.abbreviated_type, resolver)
    if not isinstance(alias, (ClassName, ParameterizedType)):
        raise UnsupportedShape(f"Type alias reference must be a named type, got {alias}")
    logger.debug("Type alias %s expands to %s", alias, type_ref)
    return copy_type(
        alias,
        nullable=alias.nullable or type_ref.nullable,
        annotations=union_annotations(alias.annotations, type_ref.annotations),
        alias_expansion=type_ref,
    )


def type_variable_from_raw(
    parameter: RawTypeParameter, resolver: TypeParameterResolver
) -> TypeVariable:
    return TypeVariable(
        name=parameter.name,
        bounds=tuple(type_ref_from_raw(b, resolver) for b in parameter.upper_bounds),
        variance=_DECLARATION_VARIANCE[parameter.variance],
        reified=parameter.reified,
        annotations=tuple(annotation_from_raw(a) for a in parameter.annotations),
    )


def type_parameter_resolver(
    parameters: Sequence[RawTypeParameter],
    fallback: TypeParameterResolver | None = None,
) -> TypeParameterResolver:
    if not parameters:
        return fallback if fallback is not None else TypeParameterResolver.EMPTY
    return TypeParameterResolver.build(
        parameters,
        type_id=lambda p: p.id,
        name=lambda p: p.name,
        to_variable=type_variable_from_raw,
        fallback=fallback,
    )
