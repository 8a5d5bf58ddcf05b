import dataclasses

import pytest

from ktpoet.annotations import AnnotationSpec
from ktpoet.errors import UnsupportedShape
from ktpoet.types import (
    INT,
    LIST,
    MAP,
    STAR,
    STRING,
    UNIT,
    BoundKind,
    ClassName,
    FunctionType,
    TypeVariable,
    WildcardType,
    class_name,
    consumer_of,
    copy_type,
    function_type,
    producer_of,
    render_type,
)

NULLABLE_ANNOTATION = AnnotationSpec(class_name("org.example", "Nullable"))


def _short_lookup(name: ClassName) -> str:
    return ".".join(name.simple_names)


def test_class_name_renders_canonical_name_with_escaped_segments() -> None:
    name = class_name("com.example.in", "Box")

    assert str(name) == "com.example.`in`.Box"


def test_parameterized_type_renders_arguments_through_lookup() -> None:
    t = MAP.parameterized_by(STRING, LIST.parameterized_by(producer_of(INT)))

    assert render_type(t, _short_lookup) == "Map<String, List<out Int>>"


def test_nullable_types_render_trailing_question_mark() -> None:
    t = copy_type(LIST.parameterized_by(STAR), nullable=True)

    assert render_type(t, _short_lookup) == "List<*>?"


def test_annotations_render_as_prefix() -> None:
    t = copy_type(STRING, annotations=(NULLABLE_ANNOTATION,), nullable=True)

    assert render_type(t, _short_lookup) == "@Nullable String?"


def test_wildcards_render_variance_and_star() -> None:
    assert render_type(consumer_of(STRING), _short_lookup) == "in String"
    assert render_type(STAR) == "*"
    with pytest.raises(ValueError):
        WildcardType(BoundKind.OUT)


def test_function_type_with_receiver_and_suspend() -> None:
    t = function_type(INT, returns=STRING, receiver=STRING, suspending=True)

    assert render_type(t, _short_lookup) == "suspend String.(Int) -> String"


def test_nullable_function_type_is_parenthesized() -> None:
    t = copy_type(function_type(returns=UNIT), nullable=True)

    assert render_type(t, _short_lookup) == "(() -> Unit)?"


def test_function_returning_function_parenthesizes_return_type() -> None:
    inner = function_type(INT, returns=UNIT)
    t = function_type(returns=inner)

    assert render_type(t, _short_lookup) == "() -> ((Int) -> Unit)"


def test_function_type_receiver_is_parenthesized_when_annotated() -> None:
    receiver = copy_type(STRING, annotations=(NULLABLE_ANNOTATION,))
    t = function_type(returns=UNIT, receiver=receiver)

    assert render_type(t, _short_lookup) == "(@Nullable String).() -> Unit"


def test_type_variable_renders_name_only() -> None:
    t = TypeVariable("T", bounds=(STRING,), nullable=True)

    assert render_type(t) == "T?"


def test_copy_type_returns_new_value_and_leaves_original_unchanged() -> None:
    nullable = copy_type(STRING, nullable=True)

    assert nullable.nullable
    assert not STRING.nullable
    with pytest.raises(dataclasses.FrozenInstanceError):
        STRING.nullable = True  # type: ignore[misc]


def test_copy_type_rejects_values_outside_the_type_model() -> None:
    with pytest.raises(UnsupportedShape):
        copy_type("kotlin.String", nullable=True)  # type: ignore[arg-type]


def test_render_type_rejects_unknown_shapes() -> None:
    with pytest.raises(UnsupportedShape) as exc_info:
        render_type(object())  # type: ignore[arg-type]

    assert exc_info.value.code == "UNSUPPORTED_SHAPE"


def test_class_name_requires_non_empty_simple_names() -> None:
    with pytest.raises(ValueError):
        ClassName("com.example", ())
    with pytest.raises(ValueError):
        ClassName("com.example", ("Outer", ""))


def test_function_type_value_equality() -> None:
    assert function_type(INT, returns=UNIT) == FunctionType((INT,), UNIT)
