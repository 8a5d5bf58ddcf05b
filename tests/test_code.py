import pytest

from ktpoet.code import INDENT, UNINDENT, CodeBlock, char_literal, join_to_code, string_literal
from ktpoet.types import LIST, STRING, ClassName, class_name


def _short_lookup(name: ClassName) -> str:
    return ".".join(name.simple_names)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("plain", '"plain"'),
        ('say "hi"', '"say \\"hi\\""'),
        ("line\nbreak", '"line\\nbreak"'),
        ("cost: $5", "\"cost: ${'$'}5\""),
        ("back\\slash", '"back\\\\slash"'),
    ],
)
def test_string_literal_escapes_quotes_newlines_and_templates(value: str, expected: str) -> None:
    assert string_literal(value) == expected


def test_char_literal_escapes_single_quote_and_requires_one_char() -> None:
    assert char_literal("'") == "'\\''"
    assert char_literal("a") == "'a'"
    with pytest.raises(ValueError):
        char_literal("ab")


def test_code_block_placeholders() -> None:
    block = CodeBlock.of("val %N: %T = %S // 100%%", "in", STRING, "text")

    assert block.render(_short_lookup) == 'val `in`: String = "text" // 100%'
    assert block.type_references() == (STRING,)


def test_code_block_string_placeholder_renders_none_as_null() -> None:
    assert str(CodeBlock.of("%S", None)) == "null"


def test_code_block_literal_splices_nested_blocks() -> None:
    inner = CodeBlock.of("%T()", LIST)
    outer = CodeBlock.of("return %L", inner)

    assert outer.render() == "return kotlin.collections.List()"
    assert outer.type_references() == (LIST,)


@pytest.mark.parametrize(
    "fmt, args",
    [
        ("%L %L", ("only-one",)),
        ("%L", ("one", "two")),
        ("%Q", ("x",)),
        ("trailing %", ()),
        ("%T", ("not a type",)),
    ],
)
def test_code_block_rejects_malformed_formats(fmt: str, args: tuple) -> None:
    with pytest.raises(ValueError):
        CodeBlock.of(fmt, *args)


def test_control_flow_emits_braces_and_indent_markers() -> None:
    block = (
        CodeBlock.builder()
        .begin_control_flow("if (%N)", "ready")
        .add_statement("start()")
        .next_control_flow("else")
        .add_statement("wait()")
        .end_control_flow()
        .build()
    )

    assert block.render() == "if (ready) {\n⇥start()\n⇤} else {\n⇥wait()\n⇤}\n"
    assert block.parts.count(INDENT) == 2
    assert block.parts.count(UNINDENT) == 2


def test_indent_characters_in_format_become_markers() -> None:
    block = CodeBlock.of("run {\n⇥go()\n⇤}\n")

    assert block.parts == ("run {\n", INDENT, "go()\n", UNINDENT, "}\n")


@pytest.mark.parametrize("placeholder", ["%S", "%L"])
def test_indent_characters_in_arguments_stay_text(placeholder: str) -> None:
    block = CodeBlock.of(placeholder, "a⇥b⇤c")

    assert INDENT not in block.parts
    assert UNINDENT not in block.parts
    assert "a⇥b⇤c" in block.render()


def test_join_to_code_uses_separator_prefix_and_suffix() -> None:
    blocks = [CodeBlock.of("%L", 1), CodeBlock.of("%T", class_name("a.b", "C"))]

    joined = join_to_code(blocks, ", ", "[", "]")

    assert joined.render(_short_lookup) == "[1, C]"
    assert join_to_code([]).is_empty()


def test_to_builder_extends_a_copy() -> None:
    original = CodeBlock.of("a")
    extended = original.to_builder().add("b").build()

    assert str(original) == "a"
    assert str(extended) == "ab"
