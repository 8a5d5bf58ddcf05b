import pytest

from ktpoet.errors import MissingTypeArgument
from ktpoet.metadata import (
    ClassRef,
    ProjectionVariance,
    RawType,
    RawTypeParameter,
    RawTypeProjection,
    TypeParameterRef,
)
from ktpoet.resolver import TypeParameterResolver
from ktpoet.type_translation import type_parameter_resolver
from ktpoet.types import TypeVariable, Variance


def _make_parameter(type_id: int, name: str, *bounds: RawType) -> RawTypeParameter:
    return RawTypeParameter(id=type_id, name=name, upper_bounds=tuple(bounds))


def _parameter_type(type_id: int) -> RawType:
    return RawType(TypeParameterRef(type_id))


def test_lookup_returns_declared_variable() -> None:
    resolver = TypeParameterResolver({0: TypeVariable("T")})

    assert resolver[0] == TypeVariable("T")
    assert 0 in resolver
    assert 1 not in resolver


def test_miss_without_fallback_raises_missing_type_argument() -> None:
    resolver = TypeParameterResolver({0: TypeVariable("T")})

    with pytest.raises(MissingTypeArgument) as exc_info:
        resolver[7]

    assert exc_info.value.message == "No type argument found for 7!"
    assert exc_info.value.code == "MISSING_TYPE_ARGUMENT"


def test_missing_type_argument_is_a_lookup_error() -> None:
    with pytest.raises(LookupError):
        TypeParameterResolver.EMPTY[0]


def test_miss_falls_back_to_enclosing_resolver() -> None:
    outer = TypeParameterResolver({0: TypeVariable("T")})
    inner = TypeParameterResolver({1: TypeVariable("R")}, fallback=outer)

    assert inner[0] == TypeVariable("T")
    assert inner[1] == TypeVariable("R")
    assert 0 in inner


def test_self_referential_bound_resolves() -> None:
    bound_on_self = RawType(
        ClassRef("kotlin/Comparable"),
        arguments=(RawTypeProjection(ProjectionVariance.INVARIANT, _parameter_type(0)),),
    )

    resolver = type_parameter_resolver([_make_parameter(0, "T", bound_on_self)])

    variable = resolver[0]
    assert variable.name == "T"
    assert str(variable.bounds[0]) == "kotlin.Comparable<T>"


def test_bound_may_refer_to_later_sibling() -> None:
    parameters = [
        _make_parameter(0, "A", _parameter_type(1)),
        _make_parameter(1, "B"),
    ]

    resolver = type_parameter_resolver(parameters)

    assert resolver[0].bounds == (TypeVariable("B"),)
    assert [v.name for v in resolver.type_variables] == ["A", "B"]


def test_declaration_variance_and_reified_are_kept() -> None:
    parameter = RawTypeParameter(
        id=3, name="E", variance=ProjectionVariance.OUT, reified=True
    )

    variable = type_parameter_resolver([parameter])[3]

    assert variable.variance is Variance.OUT
    assert variable.reified


def test_no_parameters_returns_fallback() -> None:
    outer = TypeParameterResolver({0: TypeVariable("T")})

    assert type_parameter_resolver([], fallback=outer) is outer
    assert type_parameter_resolver([]) is TypeParameterResolver.EMPTY
