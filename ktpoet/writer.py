"""Emission engine: renders specs to source text and writes .kt files.

Rendering is two-pass. The first pass emits into a throwaway buffer with
ImportResolver.record as the name lookup, which collects every referenced
class. The resolver then fixes display names and imports for the file, and
the second pass emits the real text with those names.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path

from ktpoet.code import INDENT, UNINDENT, CodeBlock
from ktpoet.imports import DEFAULT_IMPORT_PACKAGES, Import, ImportResolver
from ktpoet.names import escape_if_necessary, escape_segments
from ktpoet.specs import (
    DEFAULT_INDENT,
    GETTER_NAME,
    VISIBILITY_MODIFIERS,
    FileSpec,
    FunSpec,
    KModifier,
    ParameterSpec,
    PropertySpec,
    TypeAliasSpec,
    TypeKind,
    TypeSpec,
    sorted_modifiers,
)
from ktpoet.types import NULLABLE_ANY, UNIT, FunctionType, NameLookup, TypeRef, render_type

logger = logging.getLogger(__name__)

_PUBLIC = frozenset({KModifier.PUBLIC})
_BODYLESS_MODIFIERS = frozenset({KModifier.ABSTRACT, KModifier.EXTERNAL, KModifier.EXPECT})


class CodeWriter:
    """Writes text with lazy indentation.

    Indentation is only written when the first non-newline text of a line
    arrives, so blank lines carry no trailing whitespace.
    """

    def __init__(self, out: io.TextIOBase, lookup: NameLookup, indent: str = DEFAULT_INDENT):
        self.out = out
        self.lookup = lookup
        self.indent_unit = indent
        self.level = 0
        self._line_start = True

    def indent(self, levels: int = 1) -> CodeWriter:
        self.level += levels
        return self

    def unindent(self, levels: int = 1) -> CodeWriter:
        if levels > self.level:
            raise ValueError(f"Cannot unindent {levels} from level {self.level}")
        self.level -= levels
        return self

    def emit(self, text: str) -> CodeWriter:
        for index, line in enumerate(text.split("\n")):
            if index:
                self.out.write("\n")
                self._line_start = True
            if line:
                if self._line_start:
                    self.out.write(self.indent_unit * self.level)
                    self._line_start = False
                self.out.write(line)
        return self

    def emit_code(self, block: CodeBlock) -> CodeWriter:
        for part in block.parts:
            if part is INDENT:
                self.indent()
            elif part is UNINDENT:
                self.unindent()
            elif isinstance(part, str):
                self.emit(part)
            else:
                self.emit_type(part)
        return self

    def emit_type(self, t: TypeRef) -> CodeWriter:
        return self.emit(render_type(t, self.lookup))

    def emit_kdoc(self, kdoc: CodeBlock) -> None:
        if kdoc.is_empty():
            return
        self.emit("/**\n")
        for line in kdoc.render(self.lookup).rstrip("\n").split("\n"):
            self.emit(f" * {line}".rstrip() + "\n")
        self.emit(" */\n")

    def emit_annotations(self, annotations, inline: bool) -> None:
        for annotation in annotations:
            self.emit_code(annotation.to_code())
            self.emit(" " if inline else "\n")

    def emit_modifiers(self, modifiers, implicit=frozenset()) -> None:
        """Emit modifiers in source order, skipping implicit ones.

        `public` is written when given explicitly, or when it is implicit
        and no other visibility is set and the declaration is not an
        override.
        """
        if KModifier.PUBLIC in modifiers or (
            KModifier.PUBLIC in implicit
            and not modifiers & VISIBILITY_MODIFIERS
            and KModifier.OVERRIDE not in modifiers
        ):
            self.emit("public ")
        for modifier in sorted_modifiers(modifiers):
            if modifier is KModifier.PUBLIC or modifier in implicit:
                continue
            self.emit(f"{modifier.keyword} ")

    def emit_type_variables(self, type_variables) -> None:
        if not type_variables:
            return
        self.emit("<")
        for index, type_variable in enumerate(type_variables):
            if index:
                self.emit(", ")
            self.emit_annotations(type_variable.annotations, inline=True)
            if type_variable.variance is not None:
                self.emit(f"{type_variable.variance.value} ")
            if type_variable.reified:
                self.emit("reified ")
            self.emit(escape_if_necessary(type_variable.name))
            bounds = type_variable.bounds
            if len(bounds) == 1 and bounds[0] != NULLABLE_ANY:
                self.emit(" : ")
                self.emit_type(bounds[0])
        self.emit(">")

    def emit_where_block(self, type_variables) -> None:
        first = True
        for type_variable in type_variables:
            if len(type_variable.bounds) < 2:
                continue
            for bound in type_variable.bounds:
                self.emit(" where " if first else ", ")
                self.emit(f"{escape_if_necessary(type_variable.name)} : ")
                self.emit_type(bound)
                first = False

    def emit_receiver(self, receiver: TypeRef) -> None:
        if isinstance(receiver, FunctionType):
            self.emit("(")
            self.emit_type(receiver)
            self.emit(")")
        else:
            self.emit_type(receiver)
        self.emit(".")

    def emit_body(self, body: CodeBlock) -> None:
        self.emit(" {\n").indent()
        self.emit_code(body)
        if not self._line_start:
            self.emit("\n")
        self.unindent().emit("}\n")


# ===--- Declarations ---=== #


def emit_parameter(writer: CodeWriter, parameter: ParameterSpec, property_spec: PropertySpec | None = None) -> None:
    writer.emit_annotations(parameter.annotations, inline=True)
    if property_spec is not None:
        writer.emit_annotations(property_spec.annotations, inline=True)
        writer.emit_modifiers(property_spec.modifiers | parameter.modifiers, _PUBLIC)
        writer.emit("var " if property_spec.mutable else "val ")
    else:
        writer.emit_modifiers(parameter.modifiers)
    writer.emit(f"{escape_if_necessary(parameter.name)}: ")
    writer.emit_type(parameter.type)
    if parameter.default_value is not None:
        writer.emit(" = ")
        writer.emit_code(parameter.default_value)


def _emit_parameter_list(writer: CodeWriter, parameters) -> None:
    writer.emit("(")
    for index, parameter in enumerate(parameters):
        if index:
            writer.emit(", ")
        emit_parameter(writer, parameter)
    writer.emit(")")


def emit_function(writer: CodeWriter, function: FunSpec, implicit=_PUBLIC) -> None:
    writer.emit_kdoc(function.kdoc)
    writer.emit_annotations(function.annotations, inline=False)
    writer.emit_modifiers(function.modifiers, implicit)

    if function.is_constructor:
        writer.emit("constructor")
    else:
        writer.emit("fun ")
        if function.type_variables:
            writer.emit_type_variables(function.type_variables)
            writer.emit(" ")
        if function.receiver is not None:
            writer.emit_receiver(function.receiver)
        writer.emit(escape_if_necessary(function.name))

    _emit_parameter_list(writer, function.parameters)
    if function.return_type is not None and function.return_type != UNIT:
        writer.emit(": ")
        writer.emit_type(function.return_type)
    writer.emit_where_block(function.type_variables)

    if function.delegate_constructor is not None:
        arguments = ", ".join(a.render(writer.lookup) for a in function.delegate_constructor_arguments)
        writer.emit(f" : {function.delegate_constructor}({arguments})")

    bodyless = (function.modifiers | implicit) & _BODYLESS_MODIFIERS
    if function.body.is_empty() and (bodyless or function.is_constructor):
        writer.emit("\n")
    else:
        writer.emit_body(function.body)


def _emit_accessor(writer: CodeWriter, accessor: FunSpec) -> None:
    writer.emit_annotations(accessor.annotations, inline=False)
    writer.emit_modifiers(accessor.modifiers)
    keyword = "get" if accessor.name == GETTER_NAME else "set"
    writer.emit(keyword)
    if accessor.body.is_empty():
        writer.emit("\n")
        return
    if keyword == "get":
        writer.emit("()")
        if accessor.return_type is not None:
            writer.emit(": ")
            writer.emit_type(accessor.return_type)
    else:
        name = accessor.parameters[0].name if accessor.parameters else "value"
        writer.emit(f"({escape_if_necessary(name)})")
    writer.emit_body(accessor.body)


def emit_property(writer: CodeWriter, property_spec: PropertySpec, implicit=_PUBLIC) -> None:
    writer.emit_kdoc(property_spec.kdoc)
    writer.emit_annotations(property_spec.annotations, inline=False)
    writer.emit_modifiers(property_spec.modifiers, implicit)
    writer.emit("var " if property_spec.mutable else "val ")
    if property_spec.type_variables:
        writer.emit_type_variables(property_spec.type_variables)
        writer.emit(" ")
    if property_spec.receiver is not None:
        writer.emit_receiver(property_spec.receiver)
    writer.emit(f"{escape_if_necessary(property_spec.name)}: ")
    writer.emit_type(property_spec.type)
    writer.emit_where_block(property_spec.type_variables)
    if property_spec.initializer is not None:
        writer.emit(" = ")
        writer.emit_code(property_spec.initializer)
    writer.emit("\n")

    accessors = [a for a in (property_spec.getter, property_spec.setter) if a is not None]
    if accessors:
        writer.indent()
        for accessor in accessors:
            _emit_accessor(writer, accessor)
        writer.unindent()


def emit_type_alias(writer: CodeWriter, alias: TypeAliasSpec, implicit=_PUBLIC) -> None:
    writer.emit_kdoc(alias.kdoc)
    writer.emit_annotations(alias.annotations, inline=False)
    writer.emit_modifiers(alias.modifiers, implicit)
    writer.emit(f"typealias {escape_if_necessary(alias.name)}")
    writer.emit_type_variables(alias.type_variables)
    writer.emit(" = ")
    writer.emit_type(alias.type)
    writer.emit("\n")


def _constructor_properties(type_spec: TypeSpec) -> dict[str, PropertySpec]:
    constructor = type_spec.primary_constructor
    if constructor is None:
        return {}
    merged = {}
    for parameter in constructor.parameters:
        for property_spec in type_spec.properties:
            if property_spec.initialized_by_parameter(parameter):
                merged[parameter.name] = property_spec
                break
    return merged


def _emit_primary_constructor(
    writer: CodeWriter, constructor: FunSpec, merged: dict[str, PropertySpec]
) -> None:
    if constructor.modifiers or constructor.annotations:
        writer.emit(" ")
        writer.emit_annotations(constructor.annotations, inline=True)
        writer.emit_modifiers(constructor.modifiers)
        writer.emit("constructor")
    elif not constructor.parameters:
        return

    if not constructor.parameters:
        writer.emit("()")
        return
    writer.emit("(\n").indent()
    for parameter in constructor.parameters:
        emit_parameter(writer, parameter, merged.get(parameter.name))
        writer.emit(",\n")
    writer.unindent().emit(")")


def _emit_supertypes(writer: CodeWriter, type_spec: TypeSpec) -> None:
    supertypes: list[str] = []
    if type_spec.superclass is not None:
        superclass = render_type(type_spec.superclass, writer.lookup)
        has_secondary = any(f.is_constructor for f in type_spec.functions)
        if (
            type_spec.primary_constructor is not None
            or type_spec.superclass_constructor_arguments
            or not has_secondary
        ):
            arguments = ", ".join(
                a.render(writer.lookup) for a in type_spec.superclass_constructor_arguments
            )
            superclass += f"({arguments})"
        supertypes.append(superclass)
    supertypes.extend(render_type(t, writer.lookup) for t in type_spec.superinterfaces)
    if supertypes:
        writer.emit(" : " + ", ".join(supertypes))


def _member_implicit(type_spec: TypeSpec, member) -> frozenset:
    if type_spec.kind is not TypeKind.INTERFACE:
        return _PUBLIC
    if isinstance(member, FunSpec) and member.body.is_empty():
        return _PUBLIC | {KModifier.ABSTRACT}
    if isinstance(member, PropertySpec) and member.initializer is None and member.getter is None:
        return _PUBLIC | {KModifier.ABSTRACT}
    return _PUBLIC


def emit_type(writer: CodeWriter, type_spec: TypeSpec, implicit=_PUBLIC) -> None:
    writer.emit_kdoc(type_spec.kdoc)
    writer.emit_annotations(type_spec.annotations, inline=False)
    writer.emit_modifiers(type_spec.modifiers, implicit)
    writer.emit(type_spec.kind.value)
    if type_spec.name is not None:
        writer.emit(f" {escape_if_necessary(type_spec.name)}")
    writer.emit_type_variables(type_spec.type_variables)

    merged = _constructor_properties(type_spec)
    if type_spec.primary_constructor is not None:
        _emit_primary_constructor(writer, type_spec.primary_constructor, merged)
    _emit_supertypes(writer, type_spec)
    writer.emit_where_block(type_spec.type_variables)

    properties = [p for p in type_spec.properties if merged.get(p.name) is not p]
    constructors = [f for f in type_spec.functions if f.is_constructor]
    functions = [f for f in type_spec.functions if not f.is_constructor]
    members = [*properties, *constructors, *functions, *type_spec.type_specs]

    if not type_spec.enum_constants and not members:
        writer.emit("\n")
        return

    writer.emit(" {\n").indent()
    for constant in type_spec.enum_constants:
        writer.emit(escape_if_necessary(constant.name))
        if constant.arguments is not None:
            writer.emit("(")
            writer.emit_code(constant.arguments)
            writer.emit(")")
        writer.emit(",\n")
    if type_spec.enum_constants and members:
        writer.emit(";\n")

    for index, member in enumerate(members):
        if index or type_spec.enum_constants:
            writer.emit("\n")
        member_implicit = _member_implicit(type_spec, member)
        if isinstance(member, PropertySpec):
            emit_property(writer, member, member_implicit)
        elif isinstance(member, FunSpec):
            emit_function(writer, member, member_implicit)
        else:
            emit_type(writer, member)
    writer.unindent().emit("}\n")


def emit_member(writer: CodeWriter, member) -> None:
    if isinstance(member, TypeSpec):
        emit_type(writer, member)
    elif isinstance(member, FunSpec):
        emit_function(writer, member)
    elif isinstance(member, PropertySpec):
        emit_property(writer, member)
    elif isinstance(member, TypeAliasSpec):
        emit_type_alias(writer, member)
    else:
        raise TypeError(f"Unsupported file member: {type(member).__name__}")


# ===--- Files ---=== #


def _emit_file(writer: CodeWriter, file_spec: FileSpec, imports: tuple[Import, ...]) -> None:
    sections = 0

    def section_break() -> None:
        if sections:
            writer.emit("\n")

    if not file_spec.comment.is_empty():
        for line in file_spec.comment.render(writer.lookup).rstrip("\n").split("\n"):
            writer.emit(f"// {line}".rstrip() + "\n")
        sections += 1

    if file_spec.annotations:
        section_break()
        writer.emit_annotations(file_spec.annotations, inline=False)
        sections += 1

    if file_spec.package_name:
        section_break()
        writer.emit(f"package {escape_segments(file_spec.package_name)}\n")
        sections += 1

    if imports:
        section_break()
        for imp in imports:
            writer.emit(imp.render() + "\n")
        sections += 1

    for member in file_spec.members:
        section_break()
        emit_member(writer, member)
        sections += 1


def render_file(file_spec: FileSpec) -> str:
    """Render a complete source file, resolving imports.

    Returns:
        Source text ending with exactly one newline.
    """
    resolver = ImportResolver(
        file_spec.package_name,
        default_imports=DEFAULT_IMPORT_PACKAGES + file_spec.default_imports,
        reserved_names=file_spec.declared_names(),
    )
    _emit_file(CodeWriter(io.StringIO(), resolver.record, file_spec.indent), file_spec, ())
    table = resolver.build()
    logger.debug(
        "%s: %d referenced class(es), %d import(s)",
        file_spec.relative_path,
        len(resolver.referenced),
        len(table.imports),
    )

    out = io.StringIO()
    _emit_file(CodeWriter(out, table.lookup, file_spec.indent), file_spec, table.imports)
    return out.getvalue()


# ===--- Writer I/O functions ---=== #


@dataclass(frozen=True)
class FileWriteResult:
    """Result of writing a single generated file.

    Attributes:
        filename: Path of the file relative to the output directory,
            e.g. "com/example/Box.kt".
        path: Absolute path of the written file.
        line_count: Number of newline characters in the written content.
        byte_count: Number of bytes written (UTF-8 encoded).
    """

    filename: str
    path: Path
    line_count: int
    byte_count: int


@dataclass(frozen=True)
class PackageWriteResult:
    """Result of writing a batch of generated files, in write order."""

    output_dir: Path
    files: tuple[FileWriteResult, ...]

    @property
    def total_lines(self) -> int:
        """Sum of line_count across all written files."""
        return sum(f.line_count for f in self.files)


def write_file(output_dir: Path, file_spec: FileSpec) -> FileWriteResult:
    """Render `file_spec` and write it under its package directory.

    The file is fully rendered before anything touches the filesystem, so
    a rendering failure leaves no partial output.

    Raises:
        KtPoetError: Propagated from rendering.
        OSError: Propagated directly if the filesystem write fails.
    """
    content = render_file(file_spec)
    file_path = Path(output_dir) / file_spec.relative_path
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(content, encoding="utf-8")
    resolved = file_path.resolve()
    return FileWriteResult(
        filename=file_spec.relative_path.as_posix(),
        path=resolved,
        line_count=content.count("\n"),
        byte_count=len(resolved.read_bytes()),
    )


def write_files(output_dir: Path, file_specs) -> PackageWriteResult:
    files = tuple(write_file(output_dir, spec) for spec in file_specs)
    return PackageWriteResult(output_dir=Path(output_dir), files=files)
