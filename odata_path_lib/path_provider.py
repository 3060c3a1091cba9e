"""
Path provider: walks a schema model and produces every addressable OData path.

Enumeration runs in two phases with a hard barrier between them. Phase 1
walks navigation sources and their navigation properties into a ``PathIndex``;
phase 2 attaches bound operations to the indexed paths, then adds operation
imports.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, Tuple

from .constants import CONTENT_PROPERTY_NAME
from .context import ODataContext
from .errors import InvalidArgumentError, UnsupportedSchemaConstructError
from .models import (
    EntitySet,
    EntityType,
    Multiplicity,
    NavigationProperty,
    NavigationRestriction,
    NavigationSource,
    Operation,
    SchemaModel,
    element_type_name,
    is_collection_type,
)
from .path import ODataPath, ODataPathKind
from .path_index import PathIndex, last_navigation_property_segment
from .segments import (
    ComplexPropertySegment,
    DollarCountSegment,
    KeySegment,
    MetadataSegment,
    NavigationPropertySegment,
    NavigationSourceSegment,
    ODataSegment,
    OperationImportSegment,
    OperationSegment,
    RefSegment,
    SegmentKind,
    StreamContentSegment,
    StreamPropertySegment,
    TypeCastSegment,
)
from .settings import ConvertSettings

Branch = Tuple[ODataSegment, ...]

_UNRESTRICTED = NavigationRestriction()

# Path kinds a singular bound operation never attaches to
_NON_ENTITY_KINDS = frozenset({
    ODataPathKind.ENTITY_SET,
    ODataPathKind.MEDIA_ENTITY,
    ODataPathKind.DOLLAR_COUNT,
    ODataPathKind.TYPE_CAST,
    ODataPathKind.COMPLEX_PROPERTY,
})


class ODataPathProvider:
    """
    Enumerates the paths of a schema model.

    Args:
        verbose: Print traversal diagnostics to stderr
        max_workers: Number of threads walking navigation sources in phase 1;
            1 walks them one after the other
    """

    def __init__(self, verbose: bool = False, max_workers: int = 1):
        if max_workers is None or max_workers < 1:
            raise InvalidArgumentError("max_workers", f"max_workers must be at least 1, got {max_workers}")
        self.verbose = verbose
        self.max_workers = max_workers

    def get_paths(self, model: SchemaModel, settings: Optional[ConvertSettings] = None) -> List[ODataPath]:
        """
        Enumerate all paths of the model, sorted by canonical name.

        Args:
            model: The schema graph
            settings: Conversion settings (defaults when None)

        Returns:
            Deduplicated paths sorted by their default canonical name
        """
        index = self.build_index(model, settings)
        return index.merge()

    def build_index(self, model: SchemaModel, settings: Optional[ConvertSettings] = None) -> PathIndex:
        """Run both enumeration phases and return the populated index."""
        context = ODataContext(model, settings, verbose=self.verbose)
        settings = context.settings
        index = PathIndex()

        self._retrieve_navigation_source_paths(context, index)
        context._log_verbose(f"Phase 1 produced {len(index)} paths")

        if settings.enable_operation_path:
            operation_paths = self._retrieve_bound_operation_paths(context, index)
            for path in operation_paths:
                index.append(path)
            context._log_verbose(f"Phase 2 attached {len(operation_paths)} bound operation paths")

        if settings.enable_operation_import_path:
            self._retrieve_operation_import_paths(context, index)

        if settings.show_metadata_path:
            index.append(ODataPath([MetadataSegment()]))

        return index

    # --- Phase 1: navigation sources and navigation properties ---

    def _retrieve_navigation_source_paths(self, context: ODataContext, index: PathIndex):
        sources = context.model.navigation_sources()
        walk = lambda source: self._walk_navigation_source(context, source)  # noqa: E731

        if self.max_workers > 1 and len(sources) > 1:
            context._log_verbose(f"Walking {len(sources)} navigation sources on {self.max_workers} threads")
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                shards = list(executor.map(walk, sources))
        else:
            shards = [walk(source) for source in sources]

        # executor.map keeps input order, so merging stays in declaration order
        for shard in shards:
            index.update(shard)

    def _walk_navigation_source(self, context: ODataContext, navigation_source: NavigationSource) -> PathIndex:
        model, settings = context.model, context.settings
        shard = PathIndex()
        entity_type = model.entity_type_of(navigation_source)
        restriction = navigation_source.restriction or _UNRESTRICTED

        source: Branch = (NavigationSourceSegment(navigation_source, entity_type, model),)
        shard.append(ODataPath(source))

        if isinstance(navigation_source, EntitySet):
            if settings.enable_dollar_count_path and navigation_source.countable:
                shard.append(ODataPath(source + (DollarCountSegment(),)))
            if settings.enable_odata_type_cast:
                self._append_type_cast_paths(context, shard, source, entity_type)

            if not restriction.indexable_by_key:
                context._log_verbose(f"Entity set '{navigation_source.name}' is not indexable by key")
                return shard

            entity: Branch = source + (KeySegment(entity_type, model),)
            shard.append(ODataPath(entity))

            if settings.add_alternate_key_paths:
                for alternate_key in entity_type.alternate_keys:
                    shard.append(ODataPath(source + (
                        KeySegment(entity_type, model, key_mappings=alternate_key, is_alternate_key=True),)))
        else:
            entity = source

        self._append_entity_paths(context, shard, entity, entity_type)

        if not settings.enable_navigation_property_path:
            return shard
        if not restriction.navigable:
            context._log_verbose(f"Navigation source '{navigation_source.name}' is not navigable")
            return shard

        for nav_prop in model.declared_navigation_properties(entity_type):
            self._walk_navigation_property(context, shard, entity, nav_prop)
        return shard

    def _walk_navigation_property(self, context: ODataContext, shard: PathIndex,
                                  branch: Branch, nav_prop: NavigationProperty):
        """
        Emit the paths below one navigation property and recurse into the target type.

        ``branch`` is the immutable prefix leading to the property; each call
        builds its own extended tuple, so sibling properties never share state.
        """
        model, settings = context.model, context.settings

        if ODataPath(branch).get_count(settings.count_key_segment_as_depth) > settings.navigation_property_depth:
            return

        restriction = nav_prop.restriction or _UNRESTRICTED
        if not restriction.navigable:
            context._log_verbose(f"Navigation property '{nav_prop.name}' is not navigable")
            return

        target_type = model.get_entity_type(nav_prop.target_type)
        should_expand = self._should_expand(model, branch, nav_prop, target_type)

        navigation: Branch = branch + (NavigationPropertySegment(nav_prop, target_type, model),)
        shard.append(ODataPath(navigation))

        if nav_prop.target_multiplicity == Multiplicity.MANY:
            if settings.enable_dollar_count_path:
                shard.append(ODataPath(navigation + (DollarCountSegment(),)))
            if settings.enable_odata_type_cast:
                self._append_type_cast_paths(context, shard, navigation, target_type)

            if not nav_prop.contains_target:
                shard.append(ODataPath(navigation + (RefSegment(),)))
                return

            if not restriction.indexable_by_key:
                return
            entity: Branch = navigation + (KeySegment(target_type, model),)
            shard.append(ODataPath(entity))
        else:
            entity = navigation

        self._append_entity_paths(context, shard, entity, target_type)

        if not should_expand:
            return
        for sub_nav_prop in model.declared_navigation_properties(target_type):
            self._walk_navigation_property(context, shard, entity, sub_nav_prop)

    @staticmethod
    def _should_expand(model: SchemaModel, branch: Branch, nav_prop: NavigationProperty,
                       target_type: EntityType) -> bool:
        if not nav_prop.contains_target:
            return False
        # Branch-local cycle guard: only the types reached by navigation on this branch count
        for segment in branch:
            if segment.kind == SegmentKind.NAVIGATION_PROPERTY and model.is_assignable_from(
                    segment.entity_type, target_type):
                return False
        return True

    def _append_entity_paths(self, context: ODataContext, shard: PathIndex,
                             entity: Branch, entity_type: EntityType):
        """Media, complex property and type-cast paths below a single entity."""
        model, settings = context.model, context.settings
        properties = model.structural_properties(entity_type)

        for prop in properties:
            if prop.is_stream():
                shard.append(ODataPath(entity + (StreamPropertySegment(prop.name),)))

        if model.has_stream(entity_type) and not any(
                prop.name.lower() == CONTENT_PROPERTY_NAME for prop in properties):
            shard.append(ODataPath(entity + (StreamContentSegment(),)))

        if settings.enable_complex_property_paths:
            for prop in properties:
                complex_type = model.complex_types.get(prop.element_type())
                if complex_type is not None:
                    shard.append(ODataPath(entity + (ComplexPropertySegment(prop, complex_type, model),)))

        if settings.enable_odata_type_cast:
            self._append_type_cast_paths(context, shard, entity, entity_type)

    @staticmethod
    def _append_type_cast_paths(context: ODataContext, shard: PathIndex,
                                branch: Branch, entity_type: EntityType):
        for derived_type in context.derived_entity_types(entity_type):
            shard.append(ODataPath(branch + (TypeCastSegment(derived_type, context.model),)))

    # --- Phase 2: bound operations ---

    def _retrieve_bound_operation_paths(self, context: ODataContext, index: PathIndex) -> List[ODataPath]:
        """
        Attach every bound operation to the paths indexed in phase 1.

        For each (operation, binding type) pair the attachment strategies are
        tried in a fixed order; the first one producing any path wins and the
        remaining ones are not tried for that pair.
        """
        model = context.model
        strategies: Sequence[Callable[..., List[ODataPath]]] = (
            self._attach_to_navigation_source_paths,
            self._attach_to_navigation_property_paths,
            self._attach_to_derived_navigation_source_paths,
            self._attach_to_derived_navigation_property_paths,
        )

        paths: List[ODataPath] = []
        for binding_type_name, operations in context.bound_operations.items():
            is_collection = is_collection_type(binding_type_name)
            type_name = element_type_name(binding_type_name)
            entity_type = model.find_entity_type(type_name)
            if entity_type is None:
                if model.find_structured_type(type_name) is not None or model.is_primitive_type(type_name):
                    context._log_verbose(f"Skipping operations bound to non-entity type '{binding_type_name}'")
                    continue
                raise UnsupportedSchemaConstructError(
                    type_name, f"Binding type '{binding_type_name}' is not a known entity, complex or primitive type")

            for operation in operations:
                for binding_type in context.applicable_binding_types(entity_type):
                    for strategy in strategies:
                        attached = strategy(context, index, operation, binding_type, is_collection)
                        if attached:
                            paths.extend(attached)
                            break
        return paths

    @staticmethod
    def _operation_segment(context: ODataContext, operation: Operation) -> OperationSegment:
        return OperationSegment(operation, operation.is_url_escape_function, context.model)

    def _attach_to_navigation_source_paths(self, context, index, operation, binding_type, is_collection):
        attached = []
        for path in index.source_paths_of(binding_type.full_name):
            if is_collection:
                if path.kind != ODataPathKind.ENTITY_SET:
                    continue
            elif path.kind in _NON_ENTITY_KINDS:
                continue
            attached.append(path.clone().push(self._operation_segment(context, operation)))
        return attached

    def _attach_to_navigation_property_paths(self, context, index, operation, binding_type, is_collection):
        attached = []
        for path in index.property_paths_of(binding_type.full_name):
            if path.kind == ODataPathKind.REF or not _matches_arity(path, is_collection):
                continue
            attached.append(path.clone().push(self._operation_segment(context, operation)))
        return attached

    def _attach_to_derived_navigation_source_paths(self, context, index, operation, binding_type, is_collection):
        model = context.model
        attached = []
        for base_type in model.base_types(binding_type):
            for navigation_source in model.navigation_sources_of(base_type.full_name):
                is_entity_set = isinstance(navigation_source, EntitySet)
                if is_collection and not is_entity_set:
                    continue
                restriction = navigation_source.restriction or _UNRESTRICTED
                if not restriction.navigable:
                    continue
                # A set that cannot be indexed by key has no entity to bind a singular operation to
                if is_entity_set and not is_collection and not restriction.indexable_by_key:
                    continue
                if not _satisfies_derived_type_constraint(
                        context, navigation_source.derived_type_constraint, binding_type):
                    continue

                path = ODataPath([
                    NavigationSourceSegment(navigation_source, base_type, model),
                    TypeCastSegment(binding_type, model),
                ])
                if is_entity_set and not is_collection:
                    path.push(KeySegment(binding_type, model))
                attached.append(path.push(self._operation_segment(context, operation)))
        return attached

    def _attach_to_derived_navigation_property_paths(self, context, index, operation, binding_type, is_collection):
        attached = []
        for base_type in context.model.base_types(binding_type):
            for path in index.property_paths_of(base_type.full_name):
                if path.kind == ODataPathKind.REF or not _matches_arity(path, is_collection):
                    continue
                nav_segment = last_navigation_property_segment(path)
                if not _satisfies_derived_type_constraint(
                        context, nav_segment.navigation_property.derived_type_constraint, binding_type):
                    continue

                cast_path = path.clone()
                cast_path.push(TypeCastSegment(binding_type, context.model))
                attached.append(cast_path.push(self._operation_segment(context, operation)))
        return attached

    # --- Operation imports ---

    def _retrieve_operation_import_paths(self, context: ODataContext, index: PathIndex):
        model = context.model
        for operation_import in model.operation_imports.values():
            operation = model.find_operation(operation_import.operation)
            if operation is None:
                raise UnsupportedSchemaConstructError(
                    operation_import.operation,
                    f"Operation import '{operation_import.name}' refers to unknown operation "
                    f"'{operation_import.operation}'")
            index.append(ODataPath([OperationImportSegment(operation_import, operation)]))
        context._log_verbose(f"Added {len(model.operation_imports)} operation import paths")


def _matches_arity(path: ODataPath, is_collection: bool) -> bool:
    """Collection operations need an unkeyed many-valued property; singular ones the inverse."""
    nav_segment = last_navigation_property_segment(path)
    if nav_segment is None:
        return False
    ends_in_key = path.last_segment.kind == SegmentKind.KEY
    is_many = nav_segment.navigation_property.target_multiplicity == Multiplicity.MANY
    if is_collection:
        return is_many and not ends_in_key
    return ends_in_key or not is_many


def _satisfies_derived_type_constraint(context: ODataContext, constraint: List[str],
                                       derived_type: EntityType) -> bool:
    if not context.settings.require_derived_types_constraint_for_bound_operations:
        return True
    return derived_type.full_name in constraint
