import pytest

from ktpoet.aliases import union_annotations, unwrap_type_alias
from ktpoet.annotations import AnnotationSpec
from ktpoet.errors import UnsupportedShape
from ktpoet.types import (
    INT,
    LIST,
    STRING,
    TypeVariable,
    class_name,
    copy_type,
    function_type,
    producer_of,
)

ANNOTATION_A = AnnotationSpec(class_name("com.example", "A"))
ANNOTATION_B = AnnotationSpec(class_name("com.example", "B"))


def _make_alias(name: str, expansion, **changes: object):
    return copy_type(class_name("com.example", name), alias_expansion=expansion, **changes)


def test_type_without_alias_is_unchanged() -> None:
    t = LIST.parameterized_by(STRING)

    assert unwrap_type_alias(t) is t


def test_alias_is_replaced_by_its_expansion() -> None:
    alias = _make_alias("Names", LIST.parameterized_by(STRING))

    assert unwrap_type_alias(alias) == LIST.parameterized_by(STRING)


def test_nested_aliases_are_unwrapped_recursively() -> None:
    inner = _make_alias("Text", STRING)
    outer = _make_alias("Label", inner)

    assert unwrap_type_alias(outer) == STRING


def test_unwrapping_is_idempotent() -> None:
    alias = _make_alias("Count", INT, nullable=True, annotations=(ANNOTATION_A,))

    once = unwrap_type_alias(alias)

    assert unwrap_type_alias(once) == once


@pytest.mark.parametrize(
    "alias_nullable, expansion_nullable",
    [(True, False), (False, True), (True, True)],
)
def test_nullability_is_never_lost(alias_nullable: bool, expansion_nullable: bool) -> None:
    alias = _make_alias(
        "Count", copy_type(INT, nullable=expansion_nullable), nullable=alias_nullable
    )

    assert unwrap_type_alias(alias).nullable


def test_annotations_are_merged_and_sorted() -> None:
    alias = _make_alias(
        "Count",
        copy_type(INT, annotations=(ANNOTATION_B,)),
        annotations=(ANNOTATION_A, ANNOTATION_B),
    )

    assert unwrap_type_alias(alias).annotations == (ANNOTATION_A, ANNOTATION_B)


def test_type_variable_bounds_are_unwrapped() -> None:
    t = TypeVariable("T", bounds=(_make_alias("Text", STRING),))

    assert unwrap_type_alias(t) == TypeVariable("T", bounds=(STRING,))


def test_wildcards_and_function_types_pass_through() -> None:
    wildcard = producer_of(_make_alias("Text", STRING))
    function = function_type(INT, returns=STRING)

    assert unwrap_type_alias(wildcard) is wildcard
    assert unwrap_type_alias(function) is function


def test_unknown_shape_raises() -> None:
    with pytest.raises(UnsupportedShape):
        unwrap_type_alias("kotlin.String")  # type: ignore[arg-type]


def test_union_annotations_deduplicates_by_rendered_form() -> None:
    assert union_annotations((ANNOTATION_B,), (ANNOTATION_A, ANNOTATION_B)) == (
        ANNOTATION_A,
        ANNOTATION_B,
    )
