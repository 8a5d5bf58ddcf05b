"""Declaration specs and their builders.

Specs are immutable; builders collect parts fluently and validate
modifier combinations when a modifier is added or when build() is called.
Invalid combinations raise IllegalModifierCombination immediately, never
at render time.

    TypeSpec.class_builder("Box")
        .add_modifiers(KModifier.DATA)
        .add_type_variable(TypeVariable("T"))
        .primary_constructor(
            FunSpec.constructor_builder().add_parameter("item", T).build()
        )
        .add_property(
            PropertySpec.builder("item", T).initializer("item").build()
        )
        .build()
"""

from __future__ import annotations

import enum
import io
from dataclasses import dataclass
from pathlib import Path

from ktpoet.annotations import AnnotationSpec, UseSiteTarget
from ktpoet.code import EMPTY_CODE, CodeBlock, CodeBlockBuilder
from ktpoet.errors import IllegalModifierCombination
from ktpoet.types import TypeRef, TypeVariable

# ===--- Modifiers ---=== #

CLASS = "class"
FUNCTION = "function"
CONSTRUCTOR = "constructor"
PROPERTY = "property"
PARAMETER = "parameter"
TYPE_ALIAS = "type alias"
TYPE_PARAMETER = "type parameter"
ACCESSOR = "accessor"

_DECLARATIONS = (CLASS, FUNCTION, CONSTRUCTOR, PROPERTY, TYPE_ALIAS, ACCESSOR)


class KModifier(enum.Enum):
    """Modifiers in the order they are written in source."""

    PUBLIC = ("public", _DECLARATIONS)
    PROTECTED = ("protected", _DECLARATIONS)
    PRIVATE = ("private", _DECLARATIONS)
    INTERNAL = ("internal", _DECLARATIONS)
    EXPECT = ("expect", (CLASS, FUNCTION, PROPERTY, TYPE_ALIAS))
    ACTUAL = ("actual", (CLASS, FUNCTION, CONSTRUCTOR, PROPERTY, TYPE_ALIAS))
    FINAL = ("final", (CLASS, FUNCTION, PROPERTY))
    OPEN = ("open", (CLASS, FUNCTION, PROPERTY))
    ABSTRACT = ("abstract", (CLASS, FUNCTION, PROPERTY))
    SEALED = ("sealed", (CLASS,))
    CONST = ("const", (PROPERTY,))
    EXTERNAL = ("external", (CLASS, FUNCTION, PROPERTY, ACCESSOR))
    OVERRIDE = ("override", (FUNCTION, PROPERTY))
    LATEINIT = ("lateinit", (PROPERTY,))
    TAILREC = ("tailrec", (FUNCTION,))
    VARARG = ("vararg", (PARAMETER,))
    SUSPEND = ("suspend", (FUNCTION,))
    INNER = ("inner", (CLASS,))
    ENUM = ("enum", (CLASS,))
    ANNOTATION = ("annotation", (CLASS,))
    VALUE = ("value", (CLASS,))
    FUN = ("fun", (CLASS,))
    COMPANION = ("companion", (CLASS,))
    INLINE = ("inline", (FUNCTION, PROPERTY, ACCESSOR))
    NOINLINE = ("noinline", (PARAMETER,))
    CROSSINLINE = ("crossinline", (PARAMETER,))
    REIFIED = ("reified", (TYPE_PARAMETER,))
    INFIX = ("infix", (FUNCTION,))
    OPERATOR = ("operator", (FUNCTION,))
    DATA = ("data", (CLASS,))
    IN = ("in", (TYPE_PARAMETER,))
    OUT = ("out", (TYPE_PARAMETER,))

    def __init__(self, keyword: str, targets: tuple[str, ...]):
        self.keyword = keyword
        self.targets = frozenset(targets)


VISIBILITY_MODIFIERS = frozenset(
    {KModifier.PUBLIC, KModifier.PROTECTED, KModifier.PRIVATE, KModifier.INTERNAL}
)
_MODIFIER_ORDER = {modifier: index for index, modifier in enumerate(KModifier)}


def sorted_modifiers(modifiers) -> list[KModifier]:
    return sorted(set(modifiers), key=_MODIFIER_ORDER.__getitem__)


def check_modifiers(modifiers, target: str, owner: str) -> None:
    """Raise if `modifiers` cannot appear together on a `target`."""
    for modifier in modifiers:
        if target not in modifier.targets:
            raise IllegalModifierCombination(
                f"'{modifier.keyword}' is not allowed on {target} {owner}"
            )
    visibilities = [m.keyword for m in sorted_modifiers(modifiers) if m in VISIBILITY_MODIFIERS]
    if len(visibilities) > 1:
        raise IllegalModifierCombination(
            f"{owner} has conflicting visibilities: {', '.join(visibilities)}"
        )
    if KModifier.FINAL in modifiers and (
        KModifier.OPEN in modifiers or KModifier.ABSTRACT in modifiers
    ):
        raise IllegalModifierCombination(f"{owner} cannot be final and open or abstract")


def _require_unique(items, owner: str, what: str) -> None:
    seen = set()
    for item in items:
        if item.name in seen:
            raise ValueError(f"{owner} has duplicate {what} '{item.name}'")
        seen.add(item.name)


def _code(fmt: str | CodeBlock, args: tuple) -> CodeBlock:
    if isinstance(fmt, CodeBlock):
        if args:
            raise ValueError("A CodeBlock takes no format arguments")
        return fmt
    return CodeBlock.of(fmt, *args)


class _DocumentedBuilder:
    """Shared kdoc, annotation and modifier handling for declaration builders."""

    target = CLASS

    def __init__(self, name: str | None):
        self.name = name
        self.modifiers: list[KModifier] = []
        self.annotations: list[AnnotationSpec] = []
        self.kdoc = CodeBlock.builder()

    def _owner(self) -> str:
        return f"'{self.name}'"

    def add_modifiers(self, *modifiers: KModifier):
        check_modifiers(set(self.modifiers) | set(modifiers), self.target, self._owner())
        for modifier in modifiers:
            if modifier not in self.modifiers:
                self.modifiers.append(modifier)
        return self

    def add_annotation(self, annotation: AnnotationSpec):
        self.annotations.append(annotation)
        return self

    def add_kdoc(self, fmt: str, *args: object):
        self.kdoc.add(fmt, *args)
        return self


# ===--- Parameters ---=== #


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    type: TypeRef
    modifiers: frozenset = frozenset()
    annotations: tuple[AnnotationSpec, ...] = ()
    default_value: CodeBlock | None = None
    kdoc: CodeBlock = EMPTY_CODE

    @staticmethod
    def builder(name: str, type_ref: TypeRef, *modifiers: KModifier) -> ParameterSpecBuilder:
        return ParameterSpecBuilder(name, type_ref).add_modifiers(*modifiers)

    @staticmethod
    def of(name: str, type_ref: TypeRef, *modifiers: KModifier) -> ParameterSpec:
        return ParameterSpec.builder(name, type_ref, *modifiers).build()


class ParameterSpecBuilder(_DocumentedBuilder):
    target = PARAMETER

    def __init__(self, name: str, type_ref: TypeRef):
        super().__init__(name)
        self.type = type_ref
        self.default = None

    def default_value(self, fmt: str | CodeBlock, *args: object) -> ParameterSpecBuilder:
        self.default = _code(fmt, args)
        return self

    def build(self) -> ParameterSpec:
        return ParameterSpec(
            name=self.name,
            type=self.type,
            modifiers=frozenset(self.modifiers),
            annotations=tuple(self.annotations),
            default_value=self.default,
            kdoc=self.kdoc.build(),
        )


# ===--- Functions ---=== #

CONSTRUCTOR_NAME = "constructor"
GETTER_NAME = "get()"
SETTER_NAME = "set()"


@dataclass(frozen=True)
class FunSpec:
    """A function, constructor or property accessor.

    Attributes:
        delegate_constructor: "this" or "super" for secondary constructors
            that delegate, else None.
        delegate_constructor_arguments: Arguments of the delegation call.
    """

    name: str
    modifiers: frozenset = frozenset()
    annotations: tuple[AnnotationSpec, ...] = ()
    type_variables: tuple[TypeVariable, ...] = ()
    receiver: TypeRef | None = None
    parameters: tuple[ParameterSpec, ...] = ()
    return_type: TypeRef | None = None
    body: CodeBlock = EMPTY_CODE
    kdoc: CodeBlock = EMPTY_CODE
    delegate_constructor: str | None = None
    delegate_constructor_arguments: tuple[CodeBlock, ...] = ()

    @property
    def is_constructor(self) -> bool:
        return self.name == CONSTRUCTOR_NAME

    @property
    def is_accessor(self) -> bool:
        return self.name in (GETTER_NAME, SETTER_NAME)

    @staticmethod
    def builder(name: str) -> FunSpecBuilder:
        return FunSpecBuilder(name)

    @staticmethod
    def constructor_builder() -> FunSpecBuilder:
        return FunSpecBuilder(CONSTRUCTOR_NAME)

    @staticmethod
    def getter_builder() -> FunSpecBuilder:
        return FunSpecBuilder(GETTER_NAME)

    @staticmethod
    def setter_builder() -> FunSpecBuilder:
        return FunSpecBuilder(SETTER_NAME)


class FunSpecBuilder(_DocumentedBuilder):
    def __init__(self, name: str):
        super().__init__(name)
        if name == CONSTRUCTOR_NAME:
            self.target = CONSTRUCTOR
        elif name in (GETTER_NAME, SETTER_NAME):
            self.target = ACCESSOR
        else:
            self.target = FUNCTION
        self.type_variables: list[TypeVariable] = []
        self.receiver_type: TypeRef | None = None
        self.parameters: list[ParameterSpec] = []
        self.return_type: TypeRef | None = None
        self.body = CodeBlockBuilder()
        self.delegate: str | None = None
        self.delegate_arguments: tuple[CodeBlock, ...] = ()

    def add_type_variable(self, type_variable: TypeVariable) -> FunSpecBuilder:
        self.type_variables.append(type_variable)
        return self

    def receiver(self, type_ref: TypeRef) -> FunSpecBuilder:
        if self.target != FUNCTION:
            raise IllegalModifierCombination(f"{self.name} cannot have a receiver")
        self.receiver_type = type_ref
        return self

    def returns(self, type_ref: TypeRef) -> FunSpecBuilder:
        if self.target in (CONSTRUCTOR, ACCESSOR) and self.name != GETTER_NAME:
            raise IllegalModifierCombination(f"{self.name} cannot have a return type")
        self.return_type = type_ref
        return self

    def add_parameter(
        self, parameter: ParameterSpec | str, type_ref: TypeRef | None = None, *modifiers: KModifier
    ) -> FunSpecBuilder:
        if isinstance(parameter, str):
            parameter = ParameterSpec.of(parameter, type_ref, *modifiers)
        self.parameters.append(parameter)
        return self

    def add_code(self, fmt: str | CodeBlock, *args: object) -> FunSpecBuilder:
        self.body.add_code(_code(fmt, args))
        return self

    def add_statement(self, fmt: str, *args: object) -> FunSpecBuilder:
        self.body.add_statement(fmt, *args)
        return self

    def begin_control_flow(self, fmt: str, *args: object) -> FunSpecBuilder:
        self.body.begin_control_flow(fmt, *args)
        return self

    def next_control_flow(self, fmt: str, *args: object) -> FunSpecBuilder:
        self.body.next_control_flow(fmt, *args)
        return self

    def end_control_flow(self) -> FunSpecBuilder:
        self.body.end_control_flow()
        return self

    def _delegate_to(self, keyword: str, args: tuple) -> FunSpecBuilder:
        if self.target != CONSTRUCTOR:
            raise IllegalModifierCombination(
                f"Only constructors can delegate to {keyword}(), not '{self.name}'"
            )
        self.delegate = keyword
        self.delegate_arguments = tuple(
            arg if isinstance(arg, CodeBlock) else CodeBlock.of("%L", arg) for arg in args
        )
        return self

    def call_this_constructor(self, *args: CodeBlock | str) -> FunSpecBuilder:
        return self._delegate_to("this", args)

    def call_super_constructor(self, *args: CodeBlock | str) -> FunSpecBuilder:
        return self._delegate_to("super", args)

    def build(self) -> FunSpec:
        owner = self._owner()
        modifiers = frozenset(self.modifiers)
        check_modifiers(modifiers, self.target, owner)
        body = self.body.build()

        if not body.is_empty() and modifiers & {
            KModifier.ABSTRACT,
            KModifier.EXTERNAL,
            KModifier.EXPECT,
        }:
            raise IllegalModifierCombination(
                f"abstract, external or expect function {owner} cannot have a body"
            )
        if KModifier.INLINE not in modifiers:
            reified = [tv.name for tv in self.type_variables if tv.reified]
            if reified:
                raise IllegalModifierCombination(
                    f"Only inline functions can declare reified type variables: {owner} ({', '.join(reified)})",
                    "Add KModifier.INLINE or drop the reified flag.",
                )
        if self.name == SETTER_NAME and len(self.parameters) > 1:
            raise IllegalModifierCombination(f"Setter {owner} takes at most one parameter")
        if self.name == GETTER_NAME and self.parameters:
            raise IllegalModifierCombination(f"Getter {owner} cannot have parameters")
        _require_unique(self.parameters, owner, "parameter")

        return FunSpec(
            name=self.name,
            modifiers=modifiers,
            annotations=tuple(self.annotations),
            type_variables=tuple(self.type_variables),
            receiver=self.receiver_type,
            parameters=tuple(self.parameters),
            return_type=self.return_type,
            body=body,
            kdoc=self.kdoc.build(),
            delegate_constructor=self.delegate,
            delegate_constructor_arguments=self.delegate_arguments,
        )


# ===--- Properties ---=== #


@dataclass(frozen=True)
class PropertySpec:
    name: str
    type: TypeRef
    mutable: bool = False
    modifiers: frozenset = frozenset()
    annotations: tuple[AnnotationSpec, ...] = ()
    type_variables: tuple[TypeVariable, ...] = ()
    receiver: TypeRef | None = None
    initializer: CodeBlock | None = None
    getter: FunSpec | None = None
    setter: FunSpec | None = None
    kdoc: CodeBlock = EMPTY_CODE

    @staticmethod
    def builder(name: str, type_ref: TypeRef, *modifiers: KModifier) -> PropertySpecBuilder:
        return PropertySpecBuilder(name, type_ref).add_modifiers(*modifiers)

    def initialized_by_parameter(self, parameter: ParameterSpec) -> bool:
        """True when this property can be declared inside the primary constructor."""
        return (
            self.name == parameter.name
            and self.type == parameter.type
            and self.initializer == CodeBlock.of("%N", parameter.name)
            and self.receiver is None
            and self.getter is None
            and self.setter is None
            and not self.type_variables
        )


class PropertySpecBuilder(_DocumentedBuilder):
    target = PROPERTY

    def __init__(self, name: str, type_ref: TypeRef):
        super().__init__(name)
        self.type = type_ref
        self.is_mutable = False
        self.type_variables: list[TypeVariable] = []
        self.receiver_type: TypeRef | None = None
        self.initializer_code: CodeBlock | None = None
        self.getter_spec: FunSpec | None = None
        self.setter_spec: FunSpec | None = None

    def mutable(self, mutable: bool = True) -> PropertySpecBuilder:
        self.is_mutable = mutable
        return self

    def add_type_variable(self, type_variable: TypeVariable) -> PropertySpecBuilder:
        self.type_variables.append(type_variable)
        return self

    def receiver(self, type_ref: TypeRef) -> PropertySpecBuilder:
        self.receiver_type = type_ref
        return self

    def initializer(self, fmt: str | CodeBlock, *args: object) -> PropertySpecBuilder:
        self.initializer_code = _code(fmt, args)
        return self

    def getter(self, getter: FunSpec) -> PropertySpecBuilder:
        if getter.name != GETTER_NAME:
            raise ValueError(f"{getter.name} is not a getter")
        self.getter_spec = getter
        return self

    def setter(self, setter: FunSpec) -> PropertySpecBuilder:
        if setter.name != SETTER_NAME:
            raise ValueError(f"{setter.name} is not a setter")
        self.setter_spec = setter
        return self

    def build(self) -> PropertySpec:
        owner = self._owner()
        modifiers = frozenset(self.modifiers)
        check_modifiers(modifiers, PROPERTY, owner)
        if self.setter_spec is not None and not self.is_mutable:
            raise IllegalModifierCombination(
                f"Only a mutable property can have a setter: {owner}",
                "Call mutable() on the builder or drop the setter.",
            )
        if KModifier.CONST in modifiers and self.is_mutable:
            raise IllegalModifierCombination(f"const property {owner} cannot be mutable")
        if KModifier.LATEINIT in modifiers and not self.is_mutable:
            raise IllegalModifierCombination(f"lateinit property {owner} must be mutable")
        if KModifier.INLINE in modifiers and self.initializer_code is not None:
            raise IllegalModifierCombination(f"inline property {owner} cannot have an initializer")
        return PropertySpec(
            name=self.name,
            type=self.type,
            mutable=self.is_mutable,
            modifiers=modifiers,
            annotations=tuple(self.annotations),
            type_variables=tuple(self.type_variables),
            receiver=self.receiver_type,
            initializer=self.initializer_code,
            getter=self.getter_spec,
            setter=self.setter_spec,
            kdoc=self.kdoc.build(),
        )


# ===--- Types ---=== #


class TypeKind(enum.Enum):
    CLASS = "class"
    INTERFACE = "interface"
    OBJECT = "object"


@dataclass(frozen=True)
class EnumConstant:
    name: str
    arguments: CodeBlock | None = None


@dataclass(frozen=True)
class TypeSpec:
    kind: TypeKind
    name: str | None
    modifiers: frozenset = frozenset()
    annotations: tuple[AnnotationSpec, ...] = ()
    type_variables: tuple[TypeVariable, ...] = ()
    primary_constructor: FunSpec | None = None
    superclass: TypeRef | None = None
    superclass_constructor_arguments: tuple[CodeBlock, ...] = ()
    superinterfaces: tuple[TypeRef, ...] = ()
    enum_constants: tuple[EnumConstant, ...] = ()
    properties: tuple[PropertySpec, ...] = ()
    functions: tuple[FunSpec, ...] = ()
    type_specs: tuple[TypeSpec, ...] = ()
    kdoc: CodeBlock = EMPTY_CODE

    @property
    def is_companion(self) -> bool:
        return KModifier.COMPANION in self.modifiers

    @staticmethod
    def class_builder(name: str) -> TypeSpecBuilder:
        return TypeSpecBuilder(TypeKind.CLASS, name)

    @staticmethod
    def interface_builder(name: str) -> TypeSpecBuilder:
        return TypeSpecBuilder(TypeKind.INTERFACE, name)

    @staticmethod
    def object_builder(name: str) -> TypeSpecBuilder:
        return TypeSpecBuilder(TypeKind.OBJECT, name)

    @staticmethod
    def companion_object_builder(name: str | None = None) -> TypeSpecBuilder:
        return TypeSpecBuilder(TypeKind.OBJECT, name).add_modifiers(KModifier.COMPANION)

    @staticmethod
    def enum_builder(name: str) -> TypeSpecBuilder:
        return TypeSpecBuilder(TypeKind.CLASS, name).add_modifiers(KModifier.ENUM)

    @staticmethod
    def annotation_builder(name: str) -> TypeSpecBuilder:
        return TypeSpecBuilder(TypeKind.CLASS, name).add_modifiers(KModifier.ANNOTATION)

    def declared_names(self) -> set[str]:
        """Names this type introduces: itself, nested types and type variables."""
        names = {tv.name for tv in self.type_variables}
        if self.name is not None:
            names.add(self.name)
        for function in self.functions:
            names.update(tv.name for tv in function.type_variables)
        for nested in self.type_specs:
            names.update(nested.declared_names())
        return names


class TypeSpecBuilder(_DocumentedBuilder):
    target = CLASS

    def __init__(self, kind: TypeKind, name: str | None):
        if name is None and kind is not TypeKind.OBJECT:
            raise ValueError("Only companion objects can be anonymous")
        super().__init__(name)
        self.kind = kind
        self.type_variables: list[TypeVariable] = []
        self.constructor: FunSpec | None = None
        self.superclass_type: TypeRef | None = None
        self.superclass_arguments: list[CodeBlock] = []
        self.superinterfaces: list[TypeRef] = []
        self.enum_constants: list[EnumConstant] = []
        self.properties: list[PropertySpec] = []
        self.functions: list[FunSpec] = []
        self.type_specs: list[TypeSpec] = []

    def _owner(self) -> str:
        return f"'{self.name or 'Companion'}'"

    def add_type_variable(self, type_variable: TypeVariable) -> TypeSpecBuilder:
        self.type_variables.append(type_variable)
        return self

    def primary_constructor(self, constructor: FunSpec | None) -> TypeSpecBuilder:
        if constructor is not None and not constructor.is_constructor:
            raise ValueError(f"Expected a constructor, got function '{constructor.name}'")
        if constructor is not None and self.kind is not TypeKind.CLASS:
            raise IllegalModifierCombination(
                f"{self.kind.value} {self._owner()} cannot have a primary constructor"
            )
        self.constructor = constructor
        return self

    def superclass(self, type_ref: TypeRef) -> TypeSpecBuilder:
        if self.kind is TypeKind.INTERFACE or KModifier.ENUM in self.modifiers:
            raise IllegalModifierCombination(
                f"{self.kind.value} {self._owner()} cannot extend a class",
                "Use add_superinterface instead.",
            )
        self.superclass_type = type_ref
        return self

    def add_superclass_constructor_parameter(
        self, fmt: str | CodeBlock, *args: object
    ) -> TypeSpecBuilder:
        self.superclass_arguments.append(_code(fmt, args))
        return self

    def add_superinterface(self, type_ref: TypeRef) -> TypeSpecBuilder:
        self.superinterfaces.append(type_ref)
        return self

    def add_enum_constant(
        self, name: str, arguments: CodeBlock | None = None
    ) -> TypeSpecBuilder:
        if KModifier.ENUM not in self.modifiers:
            raise IllegalModifierCombination(
                f"{self._owner()} is not an enum and cannot have enum constants"
            )
        self.enum_constants.append(EnumConstant(name, arguments))
        return self

    def add_property(self, property_spec: PropertySpec) -> TypeSpecBuilder:
        self.properties.append(property_spec)
        return self

    def add_function(self, fun_spec: FunSpec) -> TypeSpecBuilder:
        self.functions.append(fun_spec)
        return self

    def add_type(self, type_spec: TypeSpec) -> TypeSpecBuilder:
        self.type_specs.append(type_spec)
        return self

    def build(self) -> TypeSpec:
        owner = self._owner()
        modifiers = frozenset(self.modifiers)
        check_modifiers(modifiers, CLASS, owner)
        if self.kind is not TypeKind.OBJECT and KModifier.COMPANION in modifiers:
            raise IllegalModifierCombination(f"Only objects can be companions: {owner}")
        if self.kind is not TypeKind.CLASS and modifiers & {
            KModifier.ENUM,
            KModifier.ANNOTATION,
            KModifier.DATA,
            KModifier.INNER,
        }:
            raise IllegalModifierCombination(f"{self.kind.value} {owner} has class-only modifiers")
        if KModifier.FUN in modifiers and self.kind is not TypeKind.INTERFACE:
            raise IllegalModifierCombination(f"Only interfaces can be fun interfaces: {owner}")
        if self.enum_constants and KModifier.ENUM not in modifiers:
            raise IllegalModifierCombination(f"{owner} is not an enum and cannot have enum constants")
        if KModifier.DATA in modifiers and (
            self.constructor is None or not self.constructor.parameters
        ):
            raise IllegalModifierCombination(
                f"data class {owner} must have at least one primary constructor parameter"
            )

        may_be_abstract = self.kind is TypeKind.INTERFACE or modifiers & {
            KModifier.ABSTRACT,
            KModifier.SEALED,
        }
        for function in self.functions:
            if KModifier.ABSTRACT in function.modifiers and not may_be_abstract:
                raise IllegalModifierCombination(
                    f"non-abstract type {owner} cannot declare abstract function '{function.name}'"
                )
            if function.is_accessor:
                raise ValueError(f"Accessors belong to properties, not to {owner}")
        if self.kind is TypeKind.INTERFACE:
            for function in self.functions:
                if function.is_constructor:
                    raise IllegalModifierCombination(f"interface {owner} cannot have constructors")
        if sum(1 for t in self.type_specs if t.is_companion) > 1:
            raise IllegalModifierCombination(f"{owner} has more than one companion object")

        _require_unique(self.enum_constants, owner, "enum constant")
        _require_unique(self.properties, owner, "property")

        return TypeSpec(
            kind=self.kind,
            name=self.name,
            modifiers=modifiers,
            annotations=tuple(self.annotations),
            type_variables=tuple(self.type_variables),
            primary_constructor=self.constructor,
            superclass=self.superclass_type,
            superclass_constructor_arguments=tuple(self.superclass_arguments),
            superinterfaces=tuple(self.superinterfaces),
            enum_constants=tuple(self.enum_constants),
            properties=tuple(self.properties),
            functions=tuple(self.functions),
            type_specs=tuple(self.type_specs),
            kdoc=self.kdoc.build(),
        )


# ===--- Type aliases ---=== #


@dataclass(frozen=True)
class TypeAliasSpec:
    name: str
    type: TypeRef
    modifiers: frozenset = frozenset()
    type_variables: tuple[TypeVariable, ...] = ()
    annotations: tuple[AnnotationSpec, ...] = ()
    kdoc: CodeBlock = EMPTY_CODE

    @staticmethod
    def builder(name: str, type_ref: TypeRef) -> TypeAliasSpecBuilder:
        return TypeAliasSpecBuilder(name, type_ref)


class TypeAliasSpecBuilder(_DocumentedBuilder):
    target = TYPE_ALIAS

    def __init__(self, name: str, type_ref: TypeRef):
        super().__init__(name)
        self.type = type_ref
        self.type_variables: list[TypeVariable] = []

    def add_type_variable(self, type_variable: TypeVariable) -> TypeAliasSpecBuilder:
        self.type_variables.append(type_variable)
        return self

    def build(self) -> TypeAliasSpec:
        modifiers = frozenset(self.modifiers)
        check_modifiers(modifiers, TYPE_ALIAS, self._owner())
        return TypeAliasSpec(
            name=self.name,
            type=self.type,
            modifiers=modifiers,
            type_variables=tuple(self.type_variables),
            annotations=tuple(self.annotations),
            kdoc=self.kdoc.build(),
        )


# ===--- Files ---=== #

DEFAULT_INDENT = "    "


@dataclass(frozen=True)
class FileSpec:
    """One source file: package, imports-to-be and top-level members.

    Members keep insertion order and may be TypeSpec, FunSpec, PropertySpec
    or TypeAliasSpec. Imports are not stored on a FileSpec; they are computed
    when the file is rendered.
    """

    package_name: str
    name: str
    members: tuple = ()
    comment: CodeBlock = EMPTY_CODE
    annotations: tuple[AnnotationSpec, ...] = ()
    default_imports: tuple[str, ...] = ()
    indent: str = DEFAULT_INDENT

    @staticmethod
    def builder(package_name: str, name: str) -> FileSpecBuilder:
        return FileSpecBuilder(package_name, name)

    @staticmethod
    def get(package_name: str, type_spec: TypeSpec) -> FileSpec:
        return FileSpec.builder(package_name, type_spec.name).add_type(type_spec).build()

    @property
    def relative_path(self) -> Path:
        parts = self.package_name.split(".") if self.package_name else []
        return Path(*parts, f"{self.name}.kt")

    def declared_names(self) -> set[str]:
        names: set[str] = set()
        for member in self.members:
            if isinstance(member, TypeSpec):
                names.update(member.declared_names())
            elif isinstance(member, TypeAliasSpec):
                names.add(member.name)
                names.update(tv.name for tv in member.type_variables)
            elif isinstance(member, (FunSpec, PropertySpec)):
                names.update(tv.name for tv in member.type_variables)
        return names

    def write_to(self, out: io.TextIOBase) -> None:
        from ktpoet.writer import render_file

        out.write(render_file(self))

    def __str__(self) -> str:
        from ktpoet.writer import render_file

        return render_file(self)


class FileSpecBuilder:
    def __init__(self, package_name: str, name: str):
        if package_name and any(not part for part in package_name.split(".")):
            raise ValueError(f"Invalid package name: {package_name!r}")
        if not name:
            raise ValueError("File name must not be empty")
        self.package_name = package_name
        self.name = name
        self.members: list = []
        self.comment = CodeBlock.builder()
        self.annotations: list[AnnotationSpec] = []
        self.default_imports: list[str] = []
        self.indent_text = DEFAULT_INDENT

    def add_file_comment(self, fmt: str, *args: object) -> FileSpecBuilder:
        self.comment.add(fmt, *args)
        return self

    def add_annotation(self, annotation: AnnotationSpec) -> FileSpecBuilder:
        if annotation.use_site_target not in (None, UseSiteTarget.FILE):
            raise ValueError(
                f"File annotations must target the file, got {annotation.use_site_target.value}"
            )
        self.annotations.append(
            AnnotationSpec(annotation.type_name, annotation.members, UseSiteTarget.FILE)
        )
        return self

    def add_type(self, type_spec: TypeSpec) -> FileSpecBuilder:
        self.members.append(type_spec)
        return self

    def add_function(self, fun_spec: FunSpec) -> FileSpecBuilder:
        if fun_spec.is_constructor or fun_spec.is_accessor:
            raise ValueError(f"Cannot add {fun_spec.name} to a file")
        self.members.append(fun_spec)
        return self

    def add_property(self, property_spec: PropertySpec) -> FileSpecBuilder:
        self.members.append(property_spec)
        return self

    def add_type_alias(self, alias_spec: TypeAliasSpec) -> FileSpecBuilder:
        self.members.append(alias_spec)
        return self

    def add_default_package_import(self, package_name: str) -> FileSpecBuilder:
        self.default_imports.append(package_name)
        return self

    def indent(self, indent: str) -> FileSpecBuilder:
        if indent.strip():
            raise ValueError(f"Indent must be whitespace, got {indent!r}")
        self.indent_text = indent
        return self

    def build(self) -> FileSpec:
        return FileSpec(
            package_name=self.package_name,
            name=self.name,
            members=tuple(self.members),
            comment=self.comment.build(),
            annotations=tuple(self.annotations),
            default_imports=tuple(self.default_imports),
            indent=self.indent_text,
        )
