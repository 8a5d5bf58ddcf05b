"""Identifier handling: internal class paths, keyword escaping, guesses."""

import re

# Hard keywords cannot be used as identifiers without backticks.
KEYWORDS = frozenset(
    {
        "package",
        "as",
        "typealias",
        "class",
        "this",
        "super",
        "val",
        "var",
        "fun",
        "for",
        "null",
        "true",
        "false",
        "is",
        "in",
        "throw",
        "return",
        "break",
        "continue",
        "object",
        "if",
        "try",
        "else",
        "while",
        "do",
        "when",
        "interface",
        "typeof",
    }
)

_IDENTIFIER_RE = re.compile(r"^[\w$]+$")


def is_keyword(name: str) -> bool:
    return name in KEYWORDS


def escape_if_necessary(name: str) -> str:
    """Wrap `name` in backticks when it is a keyword or not a plain identifier."""
    if name.startswith("`") and name.endswith("`"):
        return name
    if is_keyword(name) or not _IDENTIFIER_RE.match(name) or name[0].isdigit():
        return f"`{name}`"
    return name


def escape_segments(dotted: str) -> str:
    return ".".join(escape_if_necessary(part) for part in dotted.split("."))


def split_class_path(path: str) -> tuple[str, tuple[str, ...]]:
    """Split an internal class path into its package and simple-name chain.

    Internal paths separate package segments with '/' and nested classes
    with '.'. A '$' is an ordinary identifier character, not a nesting
    separator.

        some/path/Foo.Nested   -> ("some.path", ("Foo", "Nested"))
        some/path/Nested.$Foo  -> ("some.path", ("Nested", "$Foo"))
        ClassWithNoPackage     -> ("", ("ClassWithNoPackage",))

    Raises:
        ValueError: For local class names (leading '.') or any path that
            would produce an empty segment.
    """
    if not path:
        raise ValueError("Class path must not be empty")
    if path.startswith("."):
        raise ValueError(f"Local class names are not supported: {path!r}")

    slash = path.rfind("/")
    if slash == -1:
        package_name, rest = "", path
    else:
        package_part = path[:slash]
        if any(not segment for segment in package_part.split("/")):
            raise ValueError(f"Empty package segment in class path: {path!r}")
        package_name, rest = package_part.replace("/", "."), path[slash + 1 :]

    simple_names = tuple(rest.split("."))
    if any(not name for name in simple_names):
        raise ValueError(f"Empty simple name in class path: {path!r}")
    return package_name, simple_names


def guess_class_parts(canonical: str) -> tuple[str, tuple[str, ...]]:
    """Split a dotted canonical name, treating the first capitalized segment
    as the start of the class names."""
    parts = canonical.split(".")
    if any(not part for part in parts):
        raise ValueError(f"Couldn't guess a class name from {canonical!r}")
    for index, part in enumerate(parts):
        if part[0].isupper():
            return ".".join(parts[:index]), tuple(parts[index:])
    raise ValueError(f"Couldn't guess a class name from {canonical!r}")
