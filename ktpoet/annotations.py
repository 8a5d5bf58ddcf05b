"""Annotation references and annotation argument rendering."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass

from ktpoet.code import CodeBlock, char_literal, join_to_code
from ktpoet.errors import UnsupportedShape
from ktpoet.metadata import (
    AnnotationValue,
    ArrayValue,
    BooleanValue,
    ByteValue,
    CharValue,
    DoubleValue,
    EnumValue,
    FloatValue,
    IntValue,
    KClassValue,
    LongValue,
    RawAnnotation,
    ShortValue,
    StringValue,
    UByteValue,
    UIntValue,
    ULongValue,
    UShortValue,
)
from ktpoet.types import ARRAY, ClassName, NameLookup, canonical_lookup

INT_MIN = -(2**31)
LONG_MIN = -(2**63)


class UseSiteTarget(enum.Enum):
    FILE = "file"
    PROPERTY = "property"
    FIELD = "field"
    GET = "get"
    SET = "set"
    RECEIVER = "receiver"
    PARAM = "param"
    SETPARAM = "setparam"
    DELEGATE = "delegate"


@dataclass(frozen=True)
class AnnotationSpec:
    """An annotation usage: the annotation class and its rendered members.

    Attributes:
        type_name: The annotation class.
        members: One CodeBlock per argument, e.g. `value = 2L`, in order.
        use_site_target: Optional target prefix, e.g. `@file:`.
    """

    type_name: ClassName
    members: tuple[CodeBlock, ...] = ()
    use_site_target: UseSiteTarget | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "members", tuple(self.members))

    @staticmethod
    def builder(type_name: ClassName) -> AnnotationSpecBuilder:
        return AnnotationSpecBuilder(type_name)

    def to_code(self, as_parameter: bool = False) -> CodeBlock:
        """Return the annotation as a fragment.

        In parameter position (nested inside another annotation) the '@'
        and the use-site target are omitted.
        """
        builder = CodeBlock.builder()
        if not as_parameter:
            builder.add("@")
            if self.use_site_target is not None:
                builder.add("%L:", self.use_site_target.value)
        builder.add("%T", self.type_name)
        if self.members or as_parameter:
            builder.add_code(join_to_code(self.members, ", ", "(", ")"))
        return builder.build()

    def render(self, lookup: NameLookup = canonical_lookup) -> str:
        return self.to_code().render(lookup)

    def __str__(self) -> str:
        return self.render()


class AnnotationSpecBuilder:
    def __init__(self, type_name: ClassName) -> None:
        self.type_name = type_name
        self.members: list[CodeBlock] = []
        self.target: UseSiteTarget | None = None

    def add_member(self, fmt: str, *args: object) -> AnnotationSpecBuilder:
        self.members.append(CodeBlock.of(fmt, *args))
        return self

    def use_site_target(self, target: UseSiteTarget | None) -> AnnotationSpecBuilder:
        self.target = target
        return self

    def build(self) -> AnnotationSpec:
        return AnnotationSpec(self.type_name, tuple(self.members), self.target)


# ===--- Argument literals ---=== #


def _referenced_class(name: str) -> ClassName:
    """Class of a class literal, given as a class path or a dotted qualifier."""
    if "/" in name:
        return ClassName.from_path(name)
    return ClassName.best_guess(name)


def _float_code(value: float, owner: str, suffix: str) -> CodeBlock:
    if math.isnan(value):
        return CodeBlock.of("%L.NaN", owner)
    if math.isinf(value):
        which = "POSITIVE_INFINITY" if value > 0 else "NEGATIVE_INFINITY"
        return CodeBlock.of("%L.%L", owner, which)
    return CodeBlock.of("%L%L", repr(float(value)), suffix)


def _signed_conversion(value: int, conversion: str) -> CodeBlock:
    if value < 0:
        return CodeBlock.of("(%L).%L()", value, conversion)
    return CodeBlock.of("%L.%L()", value, conversion)


def argument_to_code(value: object) -> CodeBlock:
    """Render one annotation argument literal as a source fragment."""
    if isinstance(value, BooleanValue):
        return CodeBlock.of("%L", "true" if value.value else "false")
    if isinstance(value, ByteValue):
        return _signed_conversion(value.value, "toByte")
    if isinstance(value, ShortValue):
        return _signed_conversion(value.value, "toShort")
    if isinstance(value, IntValue):
        if value.value == INT_MIN:
            return CodeBlock.of("Int.MIN_VALUE")
        return CodeBlock.of("%L", value.value)
    if isinstance(value, LongValue):
        if value.value == LONG_MIN:
            return CodeBlock.of("Long.MIN_VALUE")
        return CodeBlock.of("%LL", value.value)
    if isinstance(value, UByteValue):
        return CodeBlock.of("%Lu.toUByte()", value.value)
    if isinstance(value, UShortValue):
        return CodeBlock.of("%Lu.toUShort()", value.value)
    if isinstance(value, UIntValue):
        return CodeBlock.of("%Lu", value.value)
    if isinstance(value, ULongValue):
        return CodeBlock.of("%LuL", value.value)
    if isinstance(value, FloatValue):
        return _float_code(value.value, "Float", "F")
    if isinstance(value, DoubleValue):
        return _float_code(value.value, "Double", "")
    if isinstance(value, CharValue):
        return CodeBlock.of("%L", char_literal(value.value))
    if isinstance(value, StringValue):
        return CodeBlock.of("%S", value.value)
    if isinstance(value, KClassValue):
        type_name = _referenced_class(value.class_name)
        for _ in range(value.array_dimension_count):
            type_name = ARRAY.parameterized_by(type_name)
        return CodeBlock.of("%T::class", type_name)
    if isinstance(value, EnumValue):
        return CodeBlock.of(
            "%T.%N", ClassName.from_path(value.enum_class_name), value.entry_name
        )
    if isinstance(value, AnnotationValue):
        return annotation_from_raw(value.annotation).to_code(as_parameter=True)
    if isinstance(value, ArrayValue):
        return join_to_code(
            (argument_to_code(element) for element in value.elements), ", ", "[", "]"
        )
    raise UnsupportedShape(
        f"Unsupported annotation argument: {type(value).__name__}",
        "Annotation arguments must be one of the literal value types in ktpoet.metadata.",
    )


def annotation_from_raw(raw: RawAnnotation) -> AnnotationSpec:
    builder = AnnotationSpec.builder(ClassName.from_path(raw.class_name))
    for name, value in raw.arguments:
        builder.add_member("%N = %L", name, argument_to_code(value))
    return builder.build()
