"""Type parameter lookup scoped to one declaration."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import TypeVar

from ktpoet.errors import MissingTypeArgument
from ktpoet.types import TypeVariable

logger = logging.getLogger(__name__)

P = TypeVar("P")


class TypeParameterResolver:
    """Maps type parameter ids to TypeVariables.

    Lookups that miss fall back to the enclosing declaration's resolver,
    so a method's resolver can see its class's type parameters.
    """

    EMPTY: TypeParameterResolver

    def __init__(
        self,
        parameters: Mapping[int, TypeVariable],
        fallback: TypeParameterResolver | None = None,
    ):
        self._parameters = dict(parameters)
        self.fallback = fallback

    @property
    def parameters(self) -> dict[int, TypeVariable]:
        return dict(self._parameters)

    @property
    def type_variables(self) -> tuple[TypeVariable, ...]:
        """Declared variables in declaration order."""
        return tuple(self._parameters.values())

    def __contains__(self, type_id: int) -> bool:
        if type_id in self._parameters:
            return True
        return self.fallback is not None and type_id in self.fallback

    def __getitem__(self, type_id: int) -> TypeVariable:
        if type_id in self._parameters:
            return self._parameters[type_id]
        if self.fallback is not None:
            return self.fallback[type_id]
        raise MissingTypeArgument(f"No type argument found for {type_id}!")

    @classmethod
    def build(
        cls,
        parameters: Iterable[P],
        type_id: Callable[[P], int],
        name: Callable[[P], str],
        to_variable: Callable[[P, TypeParameterResolver], TypeVariable],
        fallback: TypeParameterResolver | None = None,
    ) -> TypeParameterResolver:
        """Build a resolver whose bounds may refer to any declared parameter.

        Every parameter is first registered as a bare TypeVariable so that
        bounds referring to themselves, or to siblings declared later, can
        be resolved. The placeholders are then replaced one by one with the
        fully translated variables.
        """
        parameters = list(parameters)
        resolver = cls({}, fallback)
        for parameter in parameters:
            resolver._parameters[type_id(parameter)] = TypeVariable(name(parameter))
        for parameter in parameters:
            resolver._parameters[type_id(parameter)] = to_variable(parameter, resolver)
        logger.debug(
            "Resolved %d type parameter(s): %s",
            len(parameters),
            ", ".join(v.name for v in resolver._parameters.values()),
        )
        return resolver


class _EmptyResolver(TypeParameterResolver):
    def __init__(self) -> None:
        super().__init__({})

    def __getitem__(self, type_id: int) -> TypeVariable:
        raise MissingTypeArgument(f"No type argument found for {type_id}!")


TypeParameterResolver.EMPTY = _EmptyResolver()
