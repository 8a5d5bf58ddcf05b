"""Kotlin source generation from a type model and compiled metadata."""

__version__ = "0.1.0"

from ktpoet.annotations import AnnotationSpec, UseSiteTarget
from ktpoet.code import CodeBlock
from ktpoet.errors import (
    ConfigError,
    IllegalModifierCombination,
    KtPoetError,
    MissingTypeArgument,
    UnimplementedArity,
    UnsupportedShape,
)
from ktpoet.specs import (
    FileSpec,
    FunSpec,
    KModifier,
    ParameterSpec,
    PropertySpec,
    TypeAliasSpec,
    TypeSpec,
)
from ktpoet.types import (
    ClassName,
    FunctionType,
    ParameterizedType,
    TypeVariable,
    WildcardType,
    render_type,
)
