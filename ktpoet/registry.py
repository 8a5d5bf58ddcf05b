"""XML metadata reader.

Reads a <metadata> document into raw descriptors. The document mirrors
the descriptor shapes one to one:

    <metadata source="demo 1.0">
      <class name="com/example/Box" kind="class" data="true">
        <typeParameter id="0" name="T" variance="out"/>
        <supertype interface="true"><type class="com/example/Container"/></supertype>
        <constructor primary="true">
          <valueParameter name="item"><type parameter="0"/></valueParameter>
        </constructor>
        <property name="item"><returnType><type parameter="0"/></returnType></property>
      </class>
      <typeAlias name="com/example/Boxes">
        <underlyingType>...</underlyingType>
      </typeAlias>
      <package name="com.example" file="Utils.kt">...</package>
    </metadata>

A <type> names exactly one classifier through its class, parameter or
typeAlias attribute, and may contain <argument variance="in|out|invariant|star">,
<annotation>, <abbreviatedType>, <flexibleUpperBound> and <outerType>.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

from ktpoet.metadata import (
    AnnotationValue,
    ArrayValue,
    BooleanValue,
    ByteValue,
    CharValue,
    ClassKind,
    ClassRef,
    DoubleValue,
    EnumValue,
    FloatValue,
    IntValue,
    KClassValue,
    LongValue,
    Modality,
    ProjectionVariance,
    RawAnnotation,
    RawClass,
    RawConstructor,
    RawFunction,
    RawPackage,
    RawProperty,
    RawType,
    RawTypeAlias,
    RawTypeParameter,
    RawTypeProjection,
    RawValueParameter,
    STAR_PROJECTION,
    ShortValue,
    StringValue,
    TypeAliasRef,
    TypeParameterRef,
    UByteValue,
    UIntValue,
    ULongValue,
    UShortValue,
    Visibility,
)

logger = logging.getLogger(__name__)

_INTEGER_LITERALS = {
    "byte": ByteValue,
    "short": ShortValue,
    "int": IntValue,
    "long": LongValue,
    "ubyte": UByteValue,
    "ushort": UShortValue,
    "uint": UIntValue,
    "ulong": ULongValue,
}
_FLOAT_LITERALS = {"float": FloatValue, "double": DoubleValue}


@dataclass(frozen=True)
class MetadataRegistry:
    """Everything read from one metadata document.

    Attributes:
        classes: Top-level classes, in document order. Nested classes stay
            inside their parents.
        packages: Package facades, in document order.
        type_aliases: Type aliases declared outside any package facade.
        source_label: Human-readable origin, from the root's source
            attribute or the file name.
    """

    classes: tuple[RawClass, ...]
    packages: tuple[RawPackage, ...]
    type_aliases: tuple[RawTypeAlias, ...]
    source_label: str


# ===--- Attribute helpers ---=== #


def _required(el: ET.Element, attr: str) -> str:
    value = el.get(attr)
    if value is None or value == "":
        raise ValueError(f"<{el.tag}> is missing required attribute '{attr}'")
    return value


def _flag(el: ET.Element, attr: str) -> bool:
    value = el.get(attr, "false")
    if value not in ("true", "false"):
        raise ValueError(f"<{el.tag} {attr}=...> must be 'true' or 'false', got {value!r}")
    return value == "true"


def _enum_attr(el: ET.Element, attr: str, enum_type, default):
    value = el.get(attr)
    if value is None:
        return default
    try:
        return enum_type(value)
    except ValueError as err:
        choices = ", ".join(member.value for member in enum_type)
        raise ValueError(
            f"<{el.tag} {attr}={value!r}> is not one of: {choices}"
        ) from err


def _child_type(el: ET.Element, tag: str) -> RawType | None:
    wrapper = el.find(tag)
    if wrapper is None:
        return None
    type_el = wrapper.find("type")
    if type_el is None:
        raise ValueError(f"<{tag}> in <{el.tag}> must contain a <type>")
    return parse_type(type_el)


def _required_child_type(el: ET.Element, tag: str) -> RawType:
    raw = _child_type(el, tag)
    if raw is None:
        raise ValueError(f"<{el.tag} name={el.get('name')!r}> is missing <{tag}>")
    return raw


# ===--- Annotations ---=== #


def parse_literal(el: ET.Element) -> object:
    tag = el.tag
    text = el.text or ""
    if tag == "boolean":
        if text not in ("true", "false"):
            raise ValueError(f"<boolean> must be true or false, got {text!r}")
        return BooleanValue(text == "true")
    if tag in _INTEGER_LITERALS:
        return _INTEGER_LITERALS[tag](int(text, 0))
    if tag in _FLOAT_LITERALS:
        return _FLOAT_LITERALS[tag](float(text))
    if tag == "char":
        return CharValue(text)
    if tag == "string":
        return StringValue(text)
    if tag == "class":
        return KClassValue(_required(el, "name"), int(el.get("arrayDimensions", "0")))
    if tag == "enum":
        return EnumValue(_required(el, "class"), _required(el, "entry"))
    if tag == "annotation":
        return AnnotationValue(parse_annotation(el))
    if tag == "array":
        return ArrayValue(tuple(parse_literal(child) for child in el))
    raise ValueError(f"Unknown annotation argument literal: <{tag}>")


def parse_annotation(el: ET.Element) -> RawAnnotation:
    arguments = []
    for argument in el.findall("argument"):
        values = list(argument)
        if len(values) != 1:
            raise ValueError(
                f"Annotation argument {argument.get('name')!r} must contain exactly one literal"
            )
        arguments.append((_required(argument, "name"), parse_literal(values[0])))
    return RawAnnotation(_required(el, "class"), tuple(arguments))


def _annotations(el: ET.Element) -> tuple[RawAnnotation, ...]:
    return tuple(parse_annotation(a) for a in el.findall("annotation"))


# ===--- Types ---=== #


def _classifier(el: ET.Element) -> object:
    present = [attr for attr in ("class", "parameter", "typeAlias") if el.get(attr) is not None]
    if len(present) != 1:
        raise ValueError(
            f"<type> must name exactly one of class, parameter or typeAlias, got {present or 'none'}"
        )
    attr = present[0]
    if attr == "class":
        return ClassRef(el.get("class"))
    if attr == "parameter":
        return TypeParameterRef(int(el.get("parameter")))
    return TypeAliasRef(el.get("typeAlias"))


def parse_projection(el: ET.Element) -> RawTypeProjection:
    variance = el.get("variance", "invariant")
    if variance == "star":
        return STAR_PROJECTION
    type_el = el.find("type")
    if type_el is None:
        raise ValueError(f"<argument variance={variance!r}> must contain a <type>")
    return RawTypeProjection(
        _enum_attr(el, "variance", ProjectionVariance, ProjectionVariance.INVARIANT),
        parse_type(type_el),
    )


def parse_type(el: ET.Element) -> RawType:
    return RawType(
        classifier=_classifier(el),
        arguments=tuple(parse_projection(a) for a in el.findall("argument")),
        nullable=_flag(el, "nullable"),
        suspend=_flag(el, "suspend"),
        extension=_flag(el, "extension"),
        annotations=_annotations(el),
        abbreviated_type=_child_type(el, "abbreviatedType"),
        flexible_upper_bound=_child_type(el, "flexibleUpperBound"),
        outer_type=_child_type(el, "outerType"),
    )


def parse_type_parameter(el: ET.Element) -> RawTypeParameter:
    bounds = []
    for bound in el.findall("upperBound"):
        type_el = bound.find("type")
        if type_el is None:
            raise ValueError("<upperBound> must contain a <type>")
        bounds.append(parse_type(type_el))
    return RawTypeParameter(
        id=int(_required(el, "id")),
        name=_required(el, "name"),
        variance=_enum_attr(el, "variance", ProjectionVariance, ProjectionVariance.INVARIANT),
        reified=_flag(el, "reified"),
        upper_bounds=tuple(bounds),
        annotations=_annotations(el),
    )


def _type_parameters(el: ET.Element) -> tuple[RawTypeParameter, ...]:
    return tuple(parse_type_parameter(tp) for tp in el.findall("typeParameter"))


# ===--- Declarations ---=== #


def parse_value_parameter(el: ET.Element) -> RawValueParameter:
    type_el = el.find("type")
    if type_el is None:
        raise ValueError(f"<valueParameter name={el.get('name')!r}> must contain a <type>")
    return RawValueParameter(
        name=_required(el, "name"),
        type=parse_type(type_el),
        vararg_element_type=_child_type(el, "varargElementType"),
        declares_default_value=_flag(el, "default"),
        crossinline=_flag(el, "crossinline"),
        noinline=_flag(el, "noinline"),
        annotations=_annotations(el),
    )


def _value_parameters(el: ET.Element) -> tuple[RawValueParameter, ...]:
    return tuple(parse_value_parameter(p) for p in el.findall("valueParameter"))


def parse_function(el: ET.Element) -> RawFunction:
    return RawFunction(
        name=_required(el, "name"),
        return_type=_required_child_type(el, "returnType"),
        visibility=_enum_attr(el, "visibility", Visibility, Visibility.PUBLIC),
        modality=_enum_attr(el, "modality", Modality, Modality.FINAL),
        type_parameters=_type_parameters(el),
        receiver_type=_child_type(el, "receiverType"),
        value_parameters=_value_parameters(el),
        suspend=_flag(el, "suspend"),
        inline=_flag(el, "inline"),
        operator=_flag(el, "operator"),
        infix=_flag(el, "infix"),
        tailrec=_flag(el, "tailrec"),
        external=_flag(el, "external"),
        override=_flag(el, "override"),
        expect=_flag(el, "expect"),
        annotations=_annotations(el),
    )


def parse_property(el: ET.Element) -> RawProperty:
    return RawProperty(
        name=_required(el, "name"),
        return_type=_required_child_type(el, "returnType"),
        visibility=_enum_attr(el, "visibility", Visibility, Visibility.PUBLIC),
        modality=_enum_attr(el, "modality", Modality, Modality.FINAL),
        type_parameters=_type_parameters(el),
        receiver_type=_child_type(el, "receiverType"),
        mutable=_flag(el, "mutable"),
        const=_flag(el, "const"),
        lateinit=_flag(el, "lateinit"),
        setter_visibility=_enum_attr(el, "setterVisibility", Visibility, None),
        override=_flag(el, "override"),
        expect=_flag(el, "expect"),
        annotations=_annotations(el),
    )


def parse_constructor(el: ET.Element) -> RawConstructor:
    return RawConstructor(
        visibility=_enum_attr(el, "visibility", Visibility, Visibility.PUBLIC),
        value_parameters=_value_parameters(el),
        primary=_flag(el, "primary"),
        annotations=_annotations(el),
    )


def parse_class(el: ET.Element) -> RawClass:
    supertypes = []
    interface_names = set()
    for supertype in el.findall("supertype"):
        type_el = supertype.find("type")
        if type_el is None:
            raise ValueError("<supertype> must contain a <type>")
        raw = parse_type(type_el)
        supertypes.append(raw)
        if _flag(supertype, "interface") and isinstance(raw.classifier, ClassRef):
            interface_names.add(raw.classifier.name)

    nested = [parse_class(child) for child in el.findall("class")]
    companions = [c for c in nested if c.kind is ClassKind.COMPANION_OBJECT]
    if len(companions) > 1:
        raise ValueError(f"Class {el.get('name')!r} declares more than one companion object")

    return RawClass(
        name=_required(el, "name"),
        kind=_enum_attr(el, "kind", ClassKind, ClassKind.CLASS),
        visibility=_enum_attr(el, "visibility", Visibility, Visibility.PUBLIC),
        modality=_enum_attr(el, "modality", Modality, Modality.FINAL),
        data=_flag(el, "data"),
        value=_flag(el, "value"),
        inner=_flag(el, "inner"),
        external=_flag(el, "external"),
        fun_interface=_flag(el, "fun"),
        type_parameters=_type_parameters(el),
        supertypes=tuple(supertypes),
        interface_names=frozenset(interface_names),
        constructors=tuple(parse_constructor(c) for c in el.findall("constructor")),
        properties=tuple(parse_property(p) for p in el.findall("property")),
        functions=tuple(parse_function(f) for f in el.findall("function")),
        enum_entries=tuple(_required(e, "name") for e in el.findall("enumEntry")),
        nested_classes=tuple(c for c in nested if c.kind is not ClassKind.COMPANION_OBJECT),
        companion_object=companions[0] if companions else None,
        annotations=_annotations(el),
    )


def parse_type_alias(el: ET.Element) -> RawTypeAlias:
    return RawTypeAlias(
        name=_required(el, "name"),
        underlying_type=_required_child_type(el, "underlyingType"),
        visibility=_enum_attr(el, "visibility", Visibility, Visibility.PUBLIC),
        type_parameters=_type_parameters(el),
        annotations=_annotations(el),
    )


def parse_package(el: ET.Element) -> RawPackage:
    return RawPackage(
        package_name=el.get("name", ""),
        file_name=_required(el, "file"),
        functions=tuple(parse_function(f) for f in el.findall("function")),
        properties=tuple(parse_property(p) for p in el.findall("property")),
        type_aliases=tuple(parse_type_alias(a) for a in el.findall("typeAlias")),
        annotations=_annotations(el),
    )


# ===--- Entry points ---=== #


def parse_metadata(root: ET.Element, default_label: str = "metadata") -> MetadataRegistry:
    if root.tag != "metadata":
        raise ValueError(f"Expected a <metadata> root element, got <{root.tag}>")
    registry = MetadataRegistry(
        classes=tuple(parse_class(c) for c in root.findall("class")),
        packages=tuple(parse_package(p) for p in root.findall("package")),
        type_aliases=tuple(parse_type_alias(a) for a in root.findall("typeAlias")),
        source_label=root.get("source", default_label),
    )
    logger.debug(
        "Parsed %d class(es), %d package(s), %d type alias(es)",
        len(registry.classes),
        len(registry.packages),
        len(registry.type_aliases),
    )
    return registry


def load_metadata(path: Path) -> MetadataRegistry:
    """Parse a metadata XML file.

    Raises:
        OSError: If the file cannot be read.
        ET.ParseError: If the file is not well-formed XML.
        ValueError: If the document does not follow the metadata schema.
    """
    tree = ET.parse(path)
    return parse_metadata(tree.getroot(), default_label=Path(path).name)
