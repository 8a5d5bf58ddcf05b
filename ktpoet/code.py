"""Code fragments with typed placeholders.

A CodeBlock is built from a format string and arguments:

    %L  literal; a CodeBlock argument is spliced in
    %S  string literal, escaped; None renders as null
    %T  type reference, rendered through the file's name lookup
    %N  name, escaped with backticks when it is a keyword
    %%  a literal percent sign

The characters ⇥ and ⇤ in a format string become Indentation markers, which
increase and decrease indentation when a CodeWriter emits the block. Text
supplied through arguments is never scanned for them.
"""

from __future__ import annotations

import enum
import re
from collections.abc import Iterable
from dataclasses import dataclass

from ktpoet.names import escape_if_necessary
from ktpoet.types import TYPE_REF_VARIANTS, NameLookup, canonical_lookup, render_type


class Indentation(enum.Enum):
    INDENT = "⇥"
    UNINDENT = "⇤"


INDENT = Indentation.INDENT
UNINDENT = Indentation.UNINDENT

_MARKER_RE = re.compile("([⇥⇤])")

_ESCAPES = {
    "\\": "\\\\",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
}


def _escape_char(ch: str, quote: str) -> str:
    if ch in _ESCAPES:
        return _ESCAPES[ch]
    if ch == quote:
        return f"\\{quote}"
    if ord(ch) < 0x20:
        return f"\\u{ord(ch):04x}"
    return ch


def string_literal(value: str) -> str:
    body = "".join(
        "${'$'}" if ch == "$" else _escape_char(ch, '"') for ch in value
    )
    return f'"{body}"'


def char_literal(value: str) -> str:
    if len(value) != 1:
        raise ValueError(f"Char literal must be a single character: {value!r}")
    return "'" + _escape_char(value, "'") + "'"


@dataclass(frozen=True)
class CodeBlock:
    """Immutable fragment: a sequence of text, type-reference and Indentation parts."""

    parts: tuple = ()

    @classmethod
    def of(cls, fmt: str, *args: object) -> CodeBlock:
        return CodeBlockBuilder().add(fmt, *args).build()

    @staticmethod
    def builder() -> CodeBlockBuilder:
        return CodeBlockBuilder()

    def is_empty(self) -> bool:
        return not self.parts

    def type_references(self) -> tuple:
        return tuple(part for part in self.parts if isinstance(part, TYPE_REF_VARIANTS))

    def render(self, lookup: NameLookup = canonical_lookup) -> str:
        return "".join(_render_part(part, lookup) for part in self.parts)

    def to_builder(self) -> CodeBlockBuilder:
        builder = CodeBlockBuilder()
        builder.parts.extend(self.parts)
        return builder

    def __str__(self) -> str:
        return self.render()


def _render_part(part: object, lookup: NameLookup) -> str:
    if isinstance(part, str):
        return part
    if isinstance(part, Indentation):
        return part.value
    return render_type(part, lookup)


EMPTY_CODE = CodeBlock()


class CodeBlockBuilder:
    def __init__(self) -> None:
        self.parts: list = []

    def _append_text(self, text: str) -> None:
        if not text:
            return
        if self.parts and isinstance(self.parts[-1], str):
            self.parts[-1] += text
        else:
            self.parts.append(text)

    def _append_format_text(self, text: str) -> None:
        for piece in _MARKER_RE.split(text):
            if piece == INDENT.value:
                self.parts.append(INDENT)
            elif piece == UNINDENT.value:
                self.parts.append(UNINDENT)
            else:
                self._append_text(piece)

    def _append_argument(self, placeholder: str, arg: object) -> None:
        if placeholder == "L":
            if isinstance(arg, CodeBlock):
                self.add_code(arg)
            elif isinstance(arg, TYPE_REF_VARIANTS):
                self.parts.append(arg)
            else:
                self._append_text(str(arg))
        elif placeholder == "S":
            self._append_text("null" if arg is None else string_literal(str(arg)))
        elif placeholder == "N":
            name = getattr(arg, "name", arg)
            if not isinstance(name, str):
                raise ValueError(f"%N expects a name, got {arg!r}")
            self._append_text(escape_if_necessary(name))
        elif placeholder == "T":
            if not isinstance(arg, TYPE_REF_VARIANTS):
                raise ValueError(f"%T expects a type reference, got {arg!r}")
            self.parts.append(arg)
        else:
            raise ValueError(f"Invalid format placeholder: %{placeholder}")

    def add(self, fmt: str, *args: object) -> CodeBlockBuilder:
        index = 0
        consumed = 0
        text_start = 0
        while index < len(fmt):
            if fmt[index] != "%":
                index += 1
                continue
            if index + 1 >= len(fmt):
                raise ValueError(f"Dangling '%' at end of format: {fmt!r}")
            self._append_format_text(fmt[text_start:index])
            placeholder = fmt[index + 1]
            if placeholder == "%":
                self._append_text("%")
            else:
                if consumed >= len(args):
                    raise ValueError(f"Missing argument for %{placeholder} in {fmt!r}")
                self._append_argument(placeholder, args[consumed])
                consumed += 1
            index += 2
            text_start = index
        self._append_format_text(fmt[text_start:])
        if consumed != len(args):
            raise ValueError(
                f"Unused arguments for format {fmt!r}: expected {consumed}, got {len(args)}"
            )
        return self

    def add_statement(self, fmt: str, *args: object) -> CodeBlockBuilder:
        self.add(fmt, *args)
        self._append_text("\n")
        return self

    def add_code(self, block: CodeBlock) -> CodeBlockBuilder:
        for part in block.parts:
            if isinstance(part, str):
                self._append_text(part)
            else:
                self.parts.append(part)
        return self

    def begin_control_flow(self, fmt: str, *args: object) -> CodeBlockBuilder:
        self.add(fmt, *args)
        self._append_text(" {\n")
        self.parts.append(INDENT)
        return self

    def next_control_flow(self, fmt: str, *args: object) -> CodeBlockBuilder:
        self.parts.append(UNINDENT)
        self._append_text("} ")
        self.add(fmt, *args)
        self._append_text(" {\n")
        self.parts.append(INDENT)
        return self

    def end_control_flow(self) -> CodeBlockBuilder:
        self.parts.append(UNINDENT)
        self._append_text("}\n")
        return self

    def indent(self) -> CodeBlockBuilder:
        self.parts.append(INDENT)
        return self

    def unindent(self) -> CodeBlockBuilder:
        self.parts.append(UNINDENT)
        return self

    def is_empty(self) -> bool:
        return not self.parts

    def build(self) -> CodeBlock:
        return CodeBlock(tuple(self.parts))


def join_to_code(
    blocks: Iterable[CodeBlock],
    separator: str = ", ",
    prefix: str = "",
    suffix: str = "",
) -> CodeBlock:
    builder = CodeBlockBuilder()
    builder._append_text(prefix)
    for index, block in enumerate(blocks):
        if index:
            builder._append_text(separator)
        builder.add_code(block)
    builder._append_text(suffix)
    return builder.build()
