"""
Exceptions raised by the path-resolution engine.
"""

from typing import Optional


class PathResolutionError(Exception):
    """Base class for all errors raised while resolving OData paths."""


class InvalidArgumentError(PathResolutionError, ValueError):
    """A required input is missing or a configuration value is invalid."""

    def __init__(self, argument: str, message: Optional[str] = None):
        self.argument = argument
        super().__init__(message or f"Value cannot be None: '{argument}'")


class InvariantViolationError(PathResolutionError, RuntimeError):
    """The traversal broke one of its own invariants (e.g. unbalanced push/pop)."""


class UnsupportedSchemaConstructError(PathResolutionError):
    """The schema graph contains a construct the engine has no rule for."""

    def __init__(self, construct: str, message: Optional[str] = None):
        self.construct = construct
        super().__init__(message or f"Unsupported schema construct: '{construct}'")
