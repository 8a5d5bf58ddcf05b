"""Translation of raw class, package and alias metadata into specs.

Bodies are not part of metadata, so members that need one get a stub
that throws NotImplementedError("Stub!").
"""

from __future__ import annotations

import logging

from ktpoet.aliases import unwrap_type_alias
from ktpoet.annotations import annotation_from_raw
from ktpoet.code import CodeBlock
from ktpoet.metadata import (
    ClassKind,
    ClassRef,
    Modality,
    RawClass,
    RawConstructor,
    RawFunction,
    RawPackage,
    RawProperty,
    RawType,
    RawTypeAlias,
    RawValueParameter,
    Visibility,
)
from ktpoet.resolver import TypeParameterResolver
from ktpoet.specs import (
    FileSpec,
    FunSpec,
    KModifier,
    ParameterSpec,
    PropertySpec,
    TypeAliasSpec,
    TypeSpec,
    TypeSpecBuilder,
)
from ktpoet.type_translation import type_parameter_resolver, type_ref_from_raw
from ktpoet.types import UNIT, ClassName, TypeRef, class_name

logger = logging.getLogger(__name__)

NOT_IMPLEMENTED_ERROR = class_name("kotlin", "NotImplementedError")
NOT_IMPLEMENTED = CodeBlock.of("throw %T(%S)", NOT_IMPLEMENTED_ERROR, "Stub!")

_VISIBILITY_MODIFIERS = {
    Visibility.PUBLIC: KModifier.PUBLIC,
    Visibility.PROTECTED: KModifier.PROTECTED,
    Visibility.INTERNAL: KModifier.INTERNAL,
    Visibility.PRIVATE: KModifier.PRIVATE,
}
_MODALITY_MODIFIERS = {
    Modality.OPEN: KModifier.OPEN,
    Modality.ABSTRACT: KModifier.ABSTRACT,
    Modality.SEALED: KModifier.SEALED,
}
_IMPLICIT_SUPERTYPES = {
    ClassKind.ENUM_CLASS: "kotlin/Enum",
    ClassKind.ANNOTATION_CLASS: "kotlin/Annotation",
}
_ANY_PATH = "kotlin/Any"


def _visibility(visibility: Visibility) -> list[KModifier]:
    if visibility is Visibility.PUBLIC:
        return []
    return [_VISIBILITY_MODIFIERS[visibility]]


def _classifier_path(raw: RawType) -> str | None:
    if isinstance(raw.classifier, ClassRef):
        return raw.classifier.name
    return None


class DeclarationTranslator:
    """Turns raw declarations into specs.

    Attributes:
        unwrap_aliases: When True, every emitted type has its type aliases
            replaced by their expansions.
    """

    def __init__(self, unwrap_aliases: bool = False):
        self.unwrap_aliases = unwrap_aliases

    def type_ref(self, raw: RawType, resolver: TypeParameterResolver) -> TypeRef:
        type_ref = type_ref_from_raw(raw, resolver)
        if self.unwrap_aliases:
            return unwrap_type_alias(type_ref)
        return type_ref

    def type_variable(self, parameter_id: int, resolver: TypeParameterResolver) -> TypeRef:
        """Look up a declared type parameter, unwrapping aliases in its bounds."""
        type_variable = resolver[parameter_id]
        if self.unwrap_aliases:
            return unwrap_type_alias(type_variable)
        return type_variable

    def _annotations(self, raw_annotations) -> list:
        return [annotation_from_raw(a) for a in raw_annotations]

    # ===--- Members ---=== #

    def parameter_spec(
        self, raw: RawValueParameter, resolver: TypeParameterResolver
    ) -> ParameterSpec:
        modifiers: list[KModifier] = []
        if raw.vararg_element_type is not None:
            type_ref = self.type_ref(raw.vararg_element_type, resolver)
            modifiers.append(KModifier.VARARG)
        else:
            type_ref = self.type_ref(raw.type, resolver)
        if raw.crossinline:
            modifiers.append(KModifier.CROSSINLINE)
        if raw.noinline:
            modifiers.append(KModifier.NOINLINE)

        builder = ParameterSpec.builder(raw.name, type_ref, *modifiers)
        for annotation in self._annotations(raw.annotations):
            builder.add_annotation(annotation)
        if raw.declares_default_value:
            builder.default_value(NOT_IMPLEMENTED)
        return builder.build()

    def constructor_spec(
        self, raw: RawConstructor, resolver: TypeParameterResolver, in_enum: bool = False
    ) -> FunSpec:
        builder = FunSpec.constructor_builder()
        annotations = self._annotations(raw.annotations)
        visibility = _visibility(raw.visibility)
        # Enum constructors are private whether or not it is written.
        if in_enum and not annotations and visibility == [KModifier.PRIVATE]:
            visibility = []
        builder.add_modifiers(*visibility)
        for annotation in annotations:
            builder.add_annotation(annotation)
        for parameter in raw.value_parameters:
            builder.add_parameter(self.parameter_spec(parameter, resolver))
        return builder.build()

    def function_spec(
        self,
        raw: RawFunction,
        class_resolver: TypeParameterResolver | None = None,
        in_interface: bool = False,
    ) -> FunSpec:
        resolver = type_parameter_resolver(raw.type_parameters, fallback=class_resolver)
        builder = FunSpec.builder(raw.name)
        builder.add_modifiers(*_visibility(raw.visibility))

        abstract = raw.modality is Modality.ABSTRACT
        if raw.modality in _MODALITY_MODIFIERS and not in_interface:
            builder.add_modifiers(_MODALITY_MODIFIERS[raw.modality])
        flags = (
            (raw.operator, KModifier.OPERATOR),
            (raw.infix, KModifier.INFIX),
            (raw.inline, KModifier.INLINE),
            (raw.tailrec, KModifier.TAILREC),
            (raw.external, KModifier.EXTERNAL),
            (raw.suspend, KModifier.SUSPEND),
            (raw.override, KModifier.OVERRIDE),
            (raw.expect, KModifier.EXPECT),
        )
        builder.add_modifiers(*(modifier for flag, modifier in flags if flag))

        for annotation in self._annotations(raw.annotations):
            builder.add_annotation(annotation)
        for parameter in raw.type_parameters:
            builder.add_type_variable(self.type_variable(parameter.id, resolver))
        if raw.receiver_type is not None:
            builder.receiver(self.type_ref(raw.receiver_type, resolver))
        for parameter in raw.value_parameters:
            builder.add_parameter(self.parameter_spec(parameter, resolver))

        return_type = self.type_ref(raw.return_type, resolver)
        if return_type != UNIT:
            builder.returns(return_type)
            if not (abstract or raw.external or raw.expect):
                builder.add_statement("%L", NOT_IMPLEMENTED)
        return builder.build()

    def property_spec(
        self,
        raw: RawProperty,
        class_resolver: TypeParameterResolver | None = None,
        in_interface: bool = False,
        constructor_parameter: bool = False,
    ) -> PropertySpec:
        resolver = type_parameter_resolver(raw.type_parameters, fallback=class_resolver)
        type_ref = self.type_ref(raw.return_type, resolver)
        builder = PropertySpec.builder(raw.name, type_ref).mutable(raw.mutable)
        builder.add_modifiers(*_visibility(raw.visibility))

        abstract = raw.modality is Modality.ABSTRACT
        if raw.modality in _MODALITY_MODIFIERS and not in_interface:
            builder.add_modifiers(_MODALITY_MODIFIERS[raw.modality])
        if raw.const:
            builder.add_modifiers(KModifier.CONST)
        if raw.lateinit:
            builder.add_modifiers(KModifier.LATEINIT)
        if raw.override:
            builder.add_modifiers(KModifier.OVERRIDE)
        if raw.expect:
            builder.add_modifiers(KModifier.EXPECT)

        for annotation in self._annotations(raw.annotations):
            builder.add_annotation(annotation)
        for parameter in raw.type_parameters:
            builder.add_type_variable(self.type_variable(parameter.id, resolver))
        if raw.receiver_type is not None:
            builder.receiver(self.type_ref(raw.receiver_type, resolver))

        if constructor_parameter:
            builder.initializer("%N", raw.name)
        elif raw.lateinit or abstract or in_interface or raw.expect:
            pass
        elif raw.receiver_type is not None:
            # Extension properties have no backing field to initialize.
            builder.getter(FunSpec.getter_builder().add_statement("%L", NOT_IMPLEMENTED).build())
        elif type_ref.nullable:
            builder.initializer("null")
        else:
            builder.initializer(NOT_IMPLEMENTED)

        setter_visibility = raw.setter_visibility
        if raw.mutable and setter_visibility not in (None, raw.visibility, Visibility.PUBLIC):
            builder.setter(
                FunSpec.setter_builder().add_modifiers(*_visibility(setter_visibility)).build()
            )
        return builder.build()

    # ===--- Types ---=== #

    def _type_builder(self, raw: RawClass) -> TypeSpecBuilder:
        name = raw.simple_name
        if raw.kind is ClassKind.INTERFACE:
            builder = TypeSpec.interface_builder(name)
            if raw.fun_interface:
                builder.add_modifiers(KModifier.FUN)
            return builder
        if raw.kind is ClassKind.ENUM_CLASS:
            return TypeSpec.enum_builder(name)
        if raw.kind is ClassKind.ANNOTATION_CLASS:
            return TypeSpec.annotation_builder(name)
        if raw.kind is ClassKind.OBJECT:
            return TypeSpec.object_builder(name)
        if raw.kind is ClassKind.COMPANION_OBJECT:
            return TypeSpec.companion_object_builder(None if name == "Companion" else name)
        return TypeSpec.class_builder(name)

    def type_spec(
        self, raw: RawClass, parent_resolver: TypeParameterResolver | None = None
    ) -> TypeSpec:
        """Translate one class declaration, including its nested classes."""
        logger.debug("Translating class %s", raw.name)
        resolver = type_parameter_resolver(raw.type_parameters, fallback=parent_resolver)
        in_interface = raw.kind is ClassKind.INTERFACE
        builder = self._type_builder(raw)

        builder.add_modifiers(*_visibility(raw.visibility))
        if raw.modality in _MODALITY_MODIFIERS and raw.kind in (
            ClassKind.CLASS,
            ClassKind.ENUM_CLASS,
        ):
            builder.add_modifiers(_MODALITY_MODIFIERS[raw.modality])
        elif raw.modality is Modality.SEALED and in_interface:
            builder.add_modifiers(KModifier.SEALED)
        flags = (
            (raw.data, KModifier.DATA),
            (raw.value, KModifier.VALUE),
            (raw.inner, KModifier.INNER),
            (raw.external, KModifier.EXTERNAL),
        )
        builder.add_modifiers(*(modifier for flag, modifier in flags if flag))

        for annotation in self._annotations(raw.annotations):
            builder.add_annotation(annotation)
        for parameter in raw.type_parameters:
            builder.add_type_variable(self.type_variable(parameter.id, resolver))

        self._add_supertypes(builder, raw, resolver)

        constructor_parameters: set[str] = set()
        if raw.kind in (ClassKind.CLASS, ClassKind.ENUM_CLASS, ClassKind.ANNOTATION_CLASS):
            in_enum = raw.kind is ClassKind.ENUM_CLASS
            for constructor in raw.constructors:
                spec = self.constructor_spec(constructor, resolver, in_enum)
                if constructor.primary:
                    builder.primary_constructor(spec)
                    constructor_parameters.update(p.name for p in spec.parameters)
                else:
                    builder.add_function(spec)

        for entry in raw.enum_entries:
            builder.add_enum_constant(entry)
        for raw_property in raw.properties:
            builder.add_property(
                self.property_spec(
                    raw_property,
                    resolver,
                    in_interface=in_interface,
                    constructor_parameter=raw_property.name in constructor_parameters,
                )
            )
        for raw_function in raw.functions:
            builder.add_function(self.function_spec(raw_function, resolver, in_interface))
        for nested in raw.nested_classes:
            builder.add_type(self.type_spec(nested, resolver))
        if raw.companion_object is not None:
            builder.add_type(self.type_spec(raw.companion_object, resolver))
        return builder.build()

    def _add_supertypes(
        self, builder: TypeSpecBuilder, raw: RawClass, resolver: TypeParameterResolver
    ) -> None:
        implicit = _IMPLICIT_SUPERTYPES.get(raw.kind)
        may_extend_class = raw.kind in (
            ClassKind.CLASS,
            ClassKind.OBJECT,
            ClassKind.COMPANION_OBJECT,
        )
        superclass_found = False
        for raw_supertype in raw.supertypes:
            path = _classifier_path(raw_supertype)
            if path in (_ANY_PATH, implicit):
                continue
            supertype = self.type_ref(raw_supertype, resolver)
            if may_extend_class and not superclass_found and path not in raw.interface_names:
                builder.superclass(supertype)
                superclass_found = True
            else:
                builder.add_superinterface(supertype)

    def type_alias_spec(self, raw: RawTypeAlias) -> TypeAliasSpec:
        resolver = type_parameter_resolver(raw.type_parameters)
        name = ClassName.from_path(raw.name).simple_name
        builder = TypeAliasSpec.builder(name, self.type_ref(raw.underlying_type, resolver))
        builder.add_modifiers(*_visibility(raw.visibility))
        for parameter in raw.type_parameters:
            builder.add_type_variable(self.type_variable(parameter.id, resolver))
        for annotation in self._annotations(raw.annotations):
            builder.add_annotation(annotation)
        return builder.build()

    # ===--- Files ---=== #

    def class_file_spec(self, raw: RawClass) -> FileSpec:
        package_name = ClassName.from_path(raw.name).package_name
        return FileSpec.get(package_name, self.type_spec(raw))

    def package_file_spec(self, raw: RawPackage) -> FileSpec:
        file_name = raw.file_name.removesuffix(".kt")
        builder = FileSpec.builder(raw.package_name, file_name)
        for annotation in self._annotations(raw.annotations):
            builder.add_annotation(annotation)
        for alias in raw.type_aliases:
            builder.add_type_alias(self.type_alias_spec(alias))
        for raw_property in raw.properties:
            builder.add_property(self.property_spec(raw_property))
        for raw_function in raw.functions:
            builder.add_function(self.function_spec(raw_function))
        return builder.build()


def class_to_type_spec(raw: RawClass, unwrap_aliases: bool = False) -> TypeSpec:
    return DeclarationTranslator(unwrap_aliases).type_spec(raw)


def class_to_file_spec(raw: RawClass, unwrap_aliases: bool = False) -> FileSpec:
    return DeclarationTranslator(unwrap_aliases).class_file_spec(raw)


def package_to_file_spec(raw: RawPackage, unwrap_aliases: bool = False) -> FileSpec:
    return DeclarationTranslator(unwrap_aliases).package_file_spec(raw)


def type_alias_to_spec(raw: RawTypeAlias, unwrap_aliases: bool = False) -> TypeAliasSpec:
    return DeclarationTranslator(unwrap_aliases).type_alias_spec(raw)
