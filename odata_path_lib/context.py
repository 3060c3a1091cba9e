"""
Per-run conversion context: the schema model, the settings and lookup caches
that live exactly as long as one ``get_paths`` call.
"""

import sys
from datetime import datetime
from threading import Lock
from typing import Dict, List, Optional, Set

from .errors import InvalidArgumentError, UnsupportedSchemaConstructError
from .models import EntityType, Operation, SchemaModel
from .settings import ConvertSettings


class ODataContext:
    """
    Holds everything one conversion run needs.

    Args:
        model: The schema graph to convert
        settings: Conversion settings (defaults when None)
        verbose: Print diagnostics to stderr
    """

    def __init__(self, model: SchemaModel, settings: Optional[ConvertSettings] = None, verbose: bool = False):
        if model is None:
            raise InvalidArgumentError("model")
        self.model = model
        self.settings = settings if settings is not None else ConvertSettings()
        self.verbose = verbose

        self._lock = Lock()
        self._derived_types: Dict[str, List[EntityType]] = {}
        self._reachable_entity_types: Optional[Set[str]] = None
        self._bound_operations: Optional[Dict[str, List[Operation]]] = None

    def _log_verbose(self, message: str):
        """Prints message to stderr only if verbose mode is enabled."""
        if self.verbose:
            timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S.%f')[:-3]
            print(f"[{timestamp} Provider VERBOSE] {message}", file=sys.stderr)

    # --- Cached lookups ---

    def derived_entity_types(self, entity_type: EntityType) -> List[EntityType]:
        """All entity types deriving (directly or not) from ``entity_type``."""
        with self._lock:
            cached = self._derived_types.get(entity_type.full_name)
            if cached is None:
                cached = self.model.derived_types(entity_type)
                self._derived_types[entity_type.full_name] = cached
            return cached

    @property
    def reachable_entity_types(self) -> Set[str]:
        """Full names of entity types used by a navigation source or as a navigation target."""
        with self._lock:
            if self._reachable_entity_types is None:
                reachable = {ns.entity_type for ns in self.model.navigation_sources()}
                for entity_type in self.model.entity_types.values():
                    for nav_prop in self.model.declared_navigation_properties(entity_type):
                        reachable.add(nav_prop.target_type)
                self._reachable_entity_types = reachable
            return self._reachable_entity_types

    @property
    def bound_operations(self) -> Dict[str, List[Operation]]:
        """Binding signature (``NS.T`` or ``Collection(NS.T)``) to the operations bound to it."""
        with self._lock:
            if self._bound_operations is None:
                bound: Dict[str, List[Operation]] = {}
                for operation in self.model.operations:
                    if not operation.is_bound:
                        continue
                    if operation.binding_parameter is None:
                        raise UnsupportedSchemaConstructError(
                            operation.full_name, f"Bound operation '{operation.full_name}' has no binding parameter")
                    bound.setdefault(operation.binding_type_name, []).append(operation)
                self._bound_operations = bound
                self._log_verbose(f"Found {sum(len(ops) for ops in bound.values())} bound operations "
                                  f"over {len(bound)} binding types")
            return self._bound_operations

    def applicable_binding_types(self, entity_type: EntityType) -> List[EntityType]:
        """
        The declared binding type plus every derived type that some path can reach.

        Args:
            entity_type: The binding parameter's entity type

        Returns:
            Binding types in order: the declared type first, then derived types
        """
        reachable = self.reachable_entity_types
        types = [entity_type]
        types.extend(d for d in self.derived_entity_types(entity_type) if d.full_name in reachable)
        return types
