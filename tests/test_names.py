import pytest

from ktpoet.names import escape_if_necessary, guess_class_parts, split_class_path
from ktpoet.types import ClassName


@pytest.mark.parametrize(
    "path, package_name, simple_names",
    [
        ("some/path/Foo", "some.path", ("Foo",)),
        ("some/path/Foo.Nested", "some.path", ("Foo", "Nested")),
        ("some/path/Foo$", "some.path", ("Foo$",)),
        ("some/path/Nested.$Foo", "some.path", ("Nested", "$Foo")),
        ("ClassWithNoPackage", "", ("ClassWithNoPackage",)),
        ("some/Path/Foo.Nested", "some.Path", ("Foo", "Nested")),
        ("kotlin/collections/Map.Entry", "kotlin.collections", ("Map", "Entry")),
    ],
)
def test_split_class_path_separates_package_and_nesting(
    path: str, package_name: str, simple_names: tuple[str, ...]
) -> None:
    assert split_class_path(path) == (package_name, simple_names)


@pytest.mark.parametrize(
    "path",
    ["", ".LocalClass", "some//path/Foo", "some/path/Foo..Bar", "some/path/"],
)
def test_split_class_path_rejects_local_and_empty_segments(path: str) -> None:
    with pytest.raises(ValueError):
        split_class_path(path)


def test_class_name_from_path_builds_nested_name() -> None:
    name = ClassName.from_path("some/path/Foo.Nested")

    assert name.package_name == "some.path"
    assert name.simple_name == "Nested"
    assert name.canonical_name == "some.path.Foo.Nested"
    assert name.enclosing_class_name() == ClassName("some.path", ("Foo",))
    assert name.top_level_class_name() == ClassName("some.path", ("Foo",))


@pytest.mark.parametrize(
    "name, expected",
    [
        ("value", "value"),
        ("in", "`in`"),
        ("object", "`object`"),
        ("has space", "`has space`"),
        ("1st", "`1st`"),
        ("$dollar", "$dollar"),
        ("`already`", "`already`"),
    ],
)
def test_escape_if_necessary_backticks_keywords_and_odd_names(name: str, expected: str) -> None:
    assert escape_if_necessary(name) == expected


def test_guess_class_parts_starts_class_names_at_first_capital() -> None:
    assert guess_class_parts("java.util.Map.Entry") == ("java.util", ("Map", "Entry"))
    with pytest.raises(ValueError):
        guess_class_parts("java.util.map")
