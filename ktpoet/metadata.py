"""Raw metadata descriptors.

These mirror what a compiler-metadata reader produces: classifiers by
internal path, type parameters by integer id, and declarations with their
flags. They carry no rendering logic; type_translation and declarations
turn them into TypeRefs and builder specs.

Class names are internal paths ("com/example/Outer.Inner").
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Visibility(enum.Enum):
    PUBLIC = "public"
    PROTECTED = "protected"
    INTERNAL = "internal"
    PRIVATE = "private"


class Modality(enum.Enum):
    FINAL = "final"
    OPEN = "open"
    ABSTRACT = "abstract"
    SEALED = "sealed"


class ClassKind(enum.Enum):
    CLASS = "class"
    INTERFACE = "interface"
    ENUM_CLASS = "enum"
    ANNOTATION_CLASS = "annotation"
    OBJECT = "object"
    COMPANION_OBJECT = "companion"


class ProjectionVariance(enum.Enum):
    INVARIANT = "invariant"
    IN = "in"
    OUT = "out"


# ===--- Annotation argument literals ---=== #


@dataclass(frozen=True)
class BooleanValue:
    value: bool


@dataclass(frozen=True)
class ByteValue:
    value: int


@dataclass(frozen=True)
class ShortValue:
    value: int


@dataclass(frozen=True)
class IntValue:
    value: int


@dataclass(frozen=True)
class LongValue:
    value: int


@dataclass(frozen=True)
class UByteValue:
    value: int


@dataclass(frozen=True)
class UShortValue:
    value: int


@dataclass(frozen=True)
class UIntValue:
    value: int


@dataclass(frozen=True)
class ULongValue:
    value: int


@dataclass(frozen=True)
class FloatValue:
    value: float


@dataclass(frozen=True)
class DoubleValue:
    value: float


@dataclass(frozen=True)
class CharValue:
    value: str


@dataclass(frozen=True)
class StringValue:
    value: str


@dataclass(frozen=True)
class KClassValue:
    class_name: str
    array_dimension_count: int = 0


@dataclass(frozen=True)
class EnumValue:
    enum_class_name: str
    entry_name: str


@dataclass(frozen=True)
class AnnotationValue:
    annotation: RawAnnotation


@dataclass(frozen=True)
class ArrayValue:
    elements: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))


@dataclass(frozen=True)
class RawAnnotation:
    """Annotation usage: class path plus ordered (name, literal) arguments."""

    class_name: str
    arguments: tuple[tuple[str, object], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", tuple(self.arguments))


# ===--- Types ---=== #


@dataclass(frozen=True)
class ClassRef:
    name: str


@dataclass(frozen=True)
class TypeParameterRef:
    id: int


@dataclass(frozen=True)
class TypeAliasRef:
    name: str


@dataclass(frozen=True)
class RawTypeProjection:
    """One type argument. variance None means a star projection."""

    variance: ProjectionVariance | None
    type: RawType | None = None


STAR_PROJECTION = RawTypeProjection(None, None)


@dataclass(frozen=True)
class RawType:
    classifier: object
    arguments: tuple[RawTypeProjection, ...] = ()
    nullable: bool = False
    suspend: bool = False
    extension: bool = False
    annotations: tuple[RawAnnotation, ...] = ()
    abbreviated_type: RawType | None = None
    flexible_upper_bound: RawType | None = None
    outer_type: RawType | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", tuple(self.arguments))
        object.__setattr__(self, "annotations", tuple(self.annotations))


@dataclass(frozen=True)
class RawTypeParameter:
    id: int
    name: str
    variance: ProjectionVariance = ProjectionVariance.INVARIANT
    reified: bool = False
    upper_bounds: tuple[RawType, ...] = ()
    annotations: tuple[RawAnnotation, ...] = ()


# ===--- Declarations ---=== #


@dataclass(frozen=True)
class RawValueParameter:
    name: str
    type: RawType
    vararg_element_type: RawType | None = None
    declares_default_value: bool = False
    crossinline: bool = False
    noinline: bool = False
    annotations: tuple[RawAnnotation, ...] = ()


@dataclass(frozen=True)
class RawFunction:
    name: str
    return_type: RawType
    visibility: Visibility = Visibility.PUBLIC
    modality: Modality = Modality.FINAL
    type_parameters: tuple[RawTypeParameter, ...] = ()
    receiver_type: RawType | None = None
    value_parameters: tuple[RawValueParameter, ...] = ()
    suspend: bool = False
    inline: bool = False
    operator: bool = False
    infix: bool = False
    tailrec: bool = False
    external: bool = False
    override: bool = False
    expect: bool = False
    annotations: tuple[RawAnnotation, ...] = ()


@dataclass(frozen=True)
class RawProperty:
    name: str
    return_type: RawType
    visibility: Visibility = Visibility.PUBLIC
    modality: Modality = Modality.FINAL
    type_parameters: tuple[RawTypeParameter, ...] = ()
    receiver_type: RawType | None = None
    mutable: bool = False
    const: bool = False
    lateinit: bool = False
    setter_visibility: Visibility | None = None
    override: bool = False
    expect: bool = False
    annotations: tuple[RawAnnotation, ...] = ()


@dataclass(frozen=True)
class RawConstructor:
    visibility: Visibility = Visibility.PUBLIC
    value_parameters: tuple[RawValueParameter, ...] = ()
    primary: bool = True
    annotations: tuple[RawAnnotation, ...] = ()


@dataclass(frozen=True)
class RawClass:
    name: str
    kind: ClassKind = ClassKind.CLASS
    visibility: Visibility = Visibility.PUBLIC
    modality: Modality = Modality.FINAL
    data: bool = False
    value: bool = False
    inner: bool = False
    external: bool = False
    fun_interface: bool = False
    type_parameters: tuple[RawTypeParameter, ...] = ()
    supertypes: tuple[RawType, ...] = ()
    interface_names: frozenset[str] = frozenset()
    constructors: tuple[RawConstructor, ...] = ()
    properties: tuple[RawProperty, ...] = ()
    functions: tuple[RawFunction, ...] = ()
    enum_entries: tuple[str, ...] = ()
    nested_classes: tuple[RawClass, ...] = ()
    companion_object: RawClass | None = None
    annotations: tuple[RawAnnotation, ...] = ()

    @property
    def simple_name(self) -> str:
        return self.name.rsplit("/", 1)[-1].rsplit(".", 1)[-1]


@dataclass(frozen=True)
class RawTypeAlias:
    name: str
    underlying_type: RawType
    visibility: Visibility = Visibility.PUBLIC
    type_parameters: tuple[RawTypeParameter, ...] = ()
    annotations: tuple[RawAnnotation, ...] = ()


@dataclass(frozen=True)
class RawPackage:
    """Top-level (facade) declarations of one source file."""

    package_name: str
    file_name: str
    functions: tuple[RawFunction, ...] = ()
    properties: tuple[RawProperty, ...] = ()
    type_aliases: tuple[RawTypeAlias, ...] = ()
    annotations: tuple[RawAnnotation, ...] = ()
