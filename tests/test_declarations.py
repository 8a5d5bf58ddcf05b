import xml.etree.ElementTree as ET
from pathlib import Path

import pytest

from ktpoet.declarations import (
    NOT_IMPLEMENTED,
    DeclarationTranslator,
    class_to_file_spec,
    class_to_type_spec,
    package_to_file_spec,
    type_alias_to_spec,
)
from ktpoet.errors import MissingTypeArgument
from ktpoet.registry import (
    load_metadata,
    parse_class,
    parse_function,
    parse_package,
    parse_property,
)
from ktpoet.specs import FileSpec, KModifier
from ktpoet.types import class_name
from ktpoet.writer import render_file

STUB = 'throw NotImplementedError("Stub!")'


def _class(xml: str):
    return parse_class(ET.fromstring(xml))


def _render_class(xml: str) -> str:
    return render_file(class_to_file_spec(_class(xml)))


def _body(rendered: str) -> str:
    return rendered.split("\n\n", 1)[1]


@pytest.fixture
def registry(sample_metadata: Path):
    return load_metadata(sample_metadata)


def _find_class(registry, name: str):
    return next(c for c in registry.classes if c.name == name)


def test_stub_body_throws_not_implemented() -> None:
    assert NOT_IMPLEMENTED.render(lambda name: name.simple_name) == STUB


def test_data_class_with_interface_supertype(registry) -> None:
    spec = class_to_file_spec(_find_class(registry, "com/example/Box"))

    assert spec.relative_path.as_posix() == "com/example/Box.kt"
    assert render_file(spec) == (
        "package com.example\n"
        "\n"
        "public data class Box<out T : Any>(\n"
        "    public val item: T,\n"
        ") : Container<T> {\n"
        "    override fun get(): T {\n"
        f"        {STUB}\n"
        "    }\n"
        "}\n"
    )


def test_interface_functions_stay_bodyless(registry) -> None:
    rendered = render_file(class_to_file_spec(_find_class(registry, "com/example/Container")))

    assert _body(rendered) == (
        "public interface Container<out T> {\n"
        "    public fun get(): T\n"
        "}\n"
    )


def test_enum_drops_implicit_supertype_and_private_constructor(registry) -> None:
    rendered = render_file(class_to_file_spec(_find_class(registry, "com/example/Color")))

    assert _body(rendered) == (
        "public enum class Color {\n"
        "    RED,\n"
        "    GREEN,\n"
        "}\n"
    )


def test_event_imports_conflicting_dates_with_aliases(registry) -> None:
    rendered = render_file(class_to_file_spec(_find_class(registry, "com/example/Event")))

    assert rendered == (
        "package com.example\n"
        "\n"
        "import com.example.time.Date as TimeDate\n"
        "import java.util.Date as UtilDate\n"
        "\n"
        '@Deprecated(message = "Use Box")\n'
        "public class Event(\n"
        "    public val created: UtilDate,\n"
        ") {\n"
        "    public var local: TimeDate? = null\n"
        "\n"
        "    public companion object {\n"
        f"        public const val MAX_RETRIES: Int = {STUB}\n"
        "    }\n"
        "}\n"
    )


def test_package_facade_keeps_aliases_before_functions(registry) -> None:
    spec = package_to_file_spec(registry.packages[0])

    assert spec.relative_path.as_posix() == "com/example/Utils.kt"
    assert render_file(spec) == (
        "package com.example\n"
        "\n"
        "public typealias Boxes<T> = List<Box<T>>\n"
        "\n"
        f"public suspend fun String.fetch(retries: Int = {STUB}): List<String> {{\n"
        f"    {STUB}\n"
        "}\n"
    )


def test_standalone_alias_becomes_function_type(registry) -> None:
    alias = type_alias_to_spec(registry.type_aliases[0])

    assert alias.name == "Handler"
    spec = FileSpec.builder("com.example.handlers", "TypeAliases").add_type_alias(alias).build()
    assert _body(render_file(spec)) == "public typealias Handler = (String) -> Unit\n"


def test_unit_function_gets_empty_body() -> None:
    function = DeclarationTranslator().function_spec(
        parse_function(
            ET.fromstring(
                '<function name="close"><returnType><type class="kotlin/Unit"/></returnType></function>'
            )
        )
    )

    assert function.return_type is None
    assert function.body.is_empty()
    assert KModifier.ABSTRACT not in function.modifiers


def test_function_flags_and_generic_parameters() -> None:
    rendered = _render_class(
        """
        <class name="com/example/Ops" kind="object">
          <function name="plus" operator="true" infix="true" visibility="internal">
            <typeParameter id="0" name="R"/>
            <valueParameter name="other"><type parameter="0"/></valueParameter>
            <returnType><type parameter="0"/></returnType>
          </function>
        </class>
        """
    )

    assert "    internal infix operator fun <R> plus(other: R): R {\n" in rendered


def test_vararg_crossinline_and_default_parameters() -> None:
    rendered = _render_class(
        """
        <class name="com/example/Runner" kind="object">
          <function name="run" inline="true">
            <valueParameter name="names">
              <type class="kotlin/Array">
                <argument variance="out"><type class="kotlin/String"/></argument>
              </type>
              <varargElementType><type class="kotlin/String"/></varargElementType>
            </valueParameter>
            <valueParameter name="block" crossinline="true">
              <type class="kotlin/Function0">
                <argument variance="invariant"><type class="kotlin/Unit"/></argument>
              </type>
            </valueParameter>
            <valueParameter name="retries" default="true"><type class="kotlin/Int"/></valueParameter>
            <returnType><type class="kotlin/Unit"/></returnType>
          </function>
        </class>
        """
    )

    assert (
        "    public inline fun run(vararg names: String, crossinline block: () -> Unit, "
        f"retries: Int = {STUB}) {{\n"
    ) in rendered


def test_abstract_class_members() -> None:
    spec = class_to_type_spec(
        _class(
            """
            <class name="com/example/Shape" modality="abstract">
              <property name="area" modality="abstract">
                <returnType><type class="kotlin/Double"/></returnType>
              </property>
              <function name="draw" modality="open">
                <returnType><type class="kotlin/Unit"/></returnType>
              </function>
            </class>
            """
        )
    )

    assert KModifier.ABSTRACT in spec.modifiers
    area = spec.properties[0]
    assert KModifier.ABSTRACT in area.modifiers
    assert area.initializer is None
    assert KModifier.OPEN in spec.functions[0].modifiers


def test_override_members_drop_implicit_public() -> None:
    rendered = _render_class(
        """
        <class name="com/example/Label">
          <property name="text" override="true">
            <returnType><type class="kotlin/String" nullable="true"/></returnType>
          </property>
          <function name="toString" override="true">
            <returnType><type class="kotlin/String"/></returnType>
          </function>
        </class>
        """
    )

    assert "    override val text: String? = null\n" in rendered
    assert "    override fun toString(): String {\n" in rendered
    assert "public override" not in rendered


def test_expect_members_have_no_body_or_initializer() -> None:
    spec = package_to_file_spec(
        parse_package(
            ET.fromstring(
                """
                <package name="com.example" file="Platform.kt">
                  <function name="now" expect="true">
                    <returnType><type class="kotlin/Long"/></returnType>
                  </function>
                  <property name="name" expect="true">
                    <returnType><type class="kotlin/String"/></returnType>
                  </property>
                </package>
                """
            )
        )
    )

    assert _body(render_file(spec)) == (
        "public expect val name: String\n"
        "\n"
        "public expect fun now(): Long\n"
    )


def test_extension_property_gets_getter_stub() -> None:
    property_spec = DeclarationTranslator().property_spec(
        parse_property(
            ET.fromstring(
                """
                <property name="lastIndex">
                  <receiverType><type class="kotlin/String"/></receiverType>
                  <returnType><type class="kotlin/Int"/></returnType>
                </property>
                """
            )
        )
    )

    assert property_spec.initializer is None
    assert property_spec.getter is not None
    assert property_spec.getter.body.render(lambda name: name.simple_name).strip() == STUB


def test_lateinit_property_has_no_initializer() -> None:
    property_spec = DeclarationTranslator().property_spec(
        parse_property(
            ET.fromstring(
                """
                <property name="session" mutable="true" lateinit="true">
                  <returnType><type class="com/example/Session"/></returnType>
                </property>
                """
            )
        )
    )

    assert KModifier.LATEINIT in property_spec.modifiers
    assert property_spec.initializer is None


def test_restricted_setter_visibility_adds_setter() -> None:
    rendered = _render_class(
        """
        <class name="com/example/Counter">
          <property name="count" mutable="true" setterVisibility="private">
            <returnType><type class="kotlin/Int"/></returnType>
          </property>
        </class>
        """
    )

    assert f"    public var count: Int = {STUB}\n        private set\n" in rendered


def test_secondary_constructor_is_a_member() -> None:
    rendered = _render_class(
        """
        <class name="com/example/Point">
          <constructor primary="true">
            <valueParameter name="x"><type class="kotlin/Int"/></valueParameter>
          </constructor>
          <constructor primary="false" visibility="internal"/>
        </class>
        """
    )

    assert _body(rendered) == (
        "public class Point(\n"
        "    x: Int,\n"
        ") {\n"
        "    internal constructor()\n"
        "}\n"
    )


def test_superclass_is_first_non_interface_supertype() -> None:
    spec = class_to_type_spec(
        _class(
            """
            <class name="com/example/Child" modality="open">
              <supertype><type class="com/example/Base"/></supertype>
              <supertype interface="true"><type class="java/io/Serializable"/></supertype>
            </class>
            """
        )
    )

    assert spec.superclass == class_name("com.example", "Base")
    assert spec.superinterfaces == (class_name("java.io", "Serializable"),)
    assert KModifier.OPEN in spec.modifiers


def test_nested_class_sees_outer_type_parameters() -> None:
    spec = class_to_type_spec(
        _class(
            """
            <class name="com/example/Outer">
              <typeParameter id="0" name="T"/>
              <class name="com/example/Outer.Inner" inner="true">
                <property name="value">
                  <returnType><type parameter="0" nullable="true"/></returnType>
                </property>
              </class>
            </class>
            """
        )
    )

    inner = spec.type_specs[0]
    assert inner.name == "Inner"
    assert KModifier.INNER in inner.modifiers
    assert str(inner.properties[0].type) == "T?"


def test_unknown_type_parameter_raises() -> None:
    with pytest.raises(MissingTypeArgument):
        class_to_type_spec(
            _class(
                """
                <class name="com/example/Broken">
                  <property name="value"><returnType><type parameter="3"/></returnType></property>
                </class>
                """
            )
        )


def test_unwrap_aliases_expands_abbreviated_types() -> None:
    xml = """
    <class name="com/example/Holder">
      <property name="names">
        <returnType>
          <type class="kotlin/collections/List">
            <argument variance="invariant"><type class="kotlin/String"/></argument>
            <abbreviatedType><type class="com/example/Names"/></abbreviatedType>
          </type>
        </returnType>
      </property>
    </class>
    """

    kept = class_to_type_spec(_class(xml))
    expanded = class_to_type_spec(_class(xml), unwrap_aliases=True)

    assert str(kept.properties[0].type) == "com.example.Names"
    assert str(expanded.properties[0].type) == "kotlin.collections.List<kotlin.String>"


def test_unwrap_aliases_expands_type_variable_bounds() -> None:
    xml = """
    <class name="com/example/Box">
      <typeParameter id="0" name="T">
        <upperBound>
          <type class="kotlin/String">
            <abbreviatedType><type class="com/example/Name"/></abbreviatedType>
          </type>
        </upperBound>
      </typeParameter>
      <function name="wrap">
        <typeParameter id="1" name="R">
          <upperBound>
            <type class="kotlin/String">
              <abbreviatedType><type class="com/example/Name"/></abbreviatedType>
            </type>
          </upperBound>
        </typeParameter>
        <valueParameter name="value"><type parameter="1"/></valueParameter>
        <returnType><type class="kotlin/Unit"/></returnType>
      </function>
    </class>
    """

    kept = render_file(class_to_file_spec(_class(xml)))
    expanded = render_file(class_to_file_spec(_class(xml), unwrap_aliases=True))

    assert "public class Box<T : Name> {\n" in kept
    assert "public class Box<T : String> {\n" in expanded
    assert "    public fun <R : String> wrap(value: R) {\n" in expanded


def test_fun_interface_and_sealed_interface() -> None:
    fun_spec = class_to_type_spec(_class('<class name="com/example/Action" kind="interface" fun="true"/>'))
    sealed_spec = class_to_type_spec(
        _class('<class name="com/example/State" kind="interface" modality="sealed"/>')
    )

    assert KModifier.FUN in fun_spec.modifiers
    assert KModifier.SEALED in sealed_spec.modifiers
