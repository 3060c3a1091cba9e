"""
Naming helpers shared by the segments: unique path-parameter names,
qualified/aliased element names and parameter quoting.
"""

from typing import Optional, Set

from .constants import QUOTED_PRIMITIVE_TYPES
from .models import SchemaModel, element_type_name
from .settings import ConvertSettings


def get_unique_name(name: str, parameters: Set[str]) -> str:
    """
    Reserve a path-parameter name, appending 1, 2, ... when it is already taken.

    Args:
        name: The preferred parameter name
        parameters: Names already used on the current path (mutated)

    Returns:
        The reserved, path-unique name
    """
    if name not in parameters:
        parameters.add(name)
        return name

    index = 1
    candidate = f"{name}{index}"
    while candidate in parameters:
        index += 1
        candidate = f"{name}{index}"
    parameters.add(candidate)
    return candidate


def should_quote(type_name: str, settings: ConvertSettings) -> bool:
    """Whether a path parameter of this type is wrapped in single quotes."""
    if not settings.add_single_quotes_for_string_parameters:
        return False
    return element_type_name(type_name) in QUOTED_PRIMITIVE_TYPES


def qualified_name(namespace: str, name: str,
                   model: Optional[SchemaModel] = None, use_alias: bool = False) -> str:
    """
    Render ``Namespace.Name`` or ``Alias.Name`` for an element.

    Args:
        namespace: Namespace the element is declared in
        name: Unqualified element name
        model: Schema model used to look up the namespace alias
        use_alias: Replace the namespace by its alias when one is declared
    """
    if use_alias and model is not None:
        alias = model.namespace_alias(namespace)
        if alias:
            return f"{alias}.{name}"
    return f"{namespace}.{name}"
