"""
OData path segments.

The set of segment variants is closed: every ``SegmentKind`` maps to exactly
one class in ``SEGMENT_TYPES``. Segments are immutable once built, so a
cloned path can share them with the path it was copied from.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Set, Type

from .constants import COUNT_SEGMENT, METADATA_SEGMENT, REF_SEGMENT, VALUE_SEGMENT
from .errors import InvalidArgumentError, InvariantViolationError, UnsupportedSchemaConstructError
from .models import (
    ComplexType,
    EdmProperty,
    EntitySet,
    EntityType,
    NavigationProperty,
    NavigationSource,
    Operation,
    OperationImport,
    SchemaModel,
    StructuredType,
)
from .naming import get_unique_name, qualified_name, should_quote
from .settings import ConvertSettings


class SegmentKind(str, Enum):
    NAVIGATION_SOURCE = "NavigationSource"
    KEY = "Key"
    NAVIGATION_PROPERTY = "NavigationProperty"
    TYPE_CAST = "TypeCast"
    OPERATION = "Operation"
    OPERATION_IMPORT = "OperationImport"
    REF = "Ref"
    DOLLAR_COUNT = "DollarCount"
    STREAM_CONTENT = "StreamContent"
    STREAM_PROPERTY = "StreamProperty"
    COMPLEX_PROPERTY = "ComplexProperty"
    METADATA = "Metadata"


def _require(value: Any, name: str) -> Any:
    if value is None:
        raise InvalidArgumentError(name)
    return value


def _with_base_types(structured_type: StructuredType, model: Optional[SchemaModel]) -> List[Any]:
    """The type followed by its base chain (annotations on a base apply to derived paths)."""
    annotatables: List[Any] = [structured_type]
    if model is not None:
        annotatables.extend(model.base_types(structured_type))
    return annotatables


class ODataSegment(ABC):
    """One step of an OData path."""

    kind: ClassVar[SegmentKind]

    @property
    @abstractmethod
    def identifier(self) -> str:
        """Name used when building annotation target paths."""

    @property
    def entity_type(self) -> Optional[EntityType]:
        """Entity type addressed by this segment, if any."""
        return None

    def annotatables(self) -> List[Any]:
        """Schema elements to check for capability/vocabulary annotations."""
        return []

    @abstractmethod
    def get_path_item_name(self, settings: ConvertSettings, parameters: Optional[Set[str]] = None) -> str:
        """
        Render the fragment of the path template contributed by this segment.

        Args:
            settings: Conversion settings
            parameters: Parameter names already used on the path; new names are added to it

        Returns:
            The path fragment (without separators)
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.identifier!r})"

    def __str__(self) -> str:
        return self.identifier


class NavigationSourceSegment(ODataSegment):
    kind = SegmentKind.NAVIGATION_SOURCE

    def __init__(self, navigation_source: NavigationSource, entity_type: EntityType,
                 model: Optional[SchemaModel] = None):
        self.navigation_source = _require(navigation_source, "navigation_source")
        self._entity_type = _require(entity_type, "entity_type")
        self.model = model

    @property
    def is_collection(self) -> bool:
        return isinstance(self.navigation_source, EntitySet)

    @property
    def identifier(self) -> str:
        return self.navigation_source.name

    @property
    def entity_type(self) -> EntityType:
        return self._entity_type

    def annotatables(self) -> List[Any]:
        return [self.navigation_source] + _with_base_types(self._entity_type, self.model)

    def get_path_item_name(self, settings: ConvertSettings, parameters: Optional[Set[str]] = None) -> str:
        _require(settings, "settings")
        return self.navigation_source.name


class KeySegment(ODataSegment):
    kind = SegmentKind.KEY

    def __init__(self, entity_type: EntityType, model: Optional[SchemaModel] = None,
                 key_mappings: Optional[Dict[str, str]] = None, is_alternate_key: bool = False):
        self._entity_type = _require(entity_type, "entity_type")
        self.model = model
        self.key_mappings = dict(key_mappings) if key_mappings is not None else None
        self.is_alternate_key = is_alternate_key
        if is_alternate_key and not self.key_mappings:
            raise InvalidArgumentError("key_mappings", "An alternate key segment needs its key mappings")
        if self.key_mappings is None and not self.key_properties():
            raise UnsupportedSchemaConstructError(
                entity_type.full_name, f"Entity type '{entity_type.full_name}' has no key to address it by")

    @property
    def entity_type(self) -> EntityType:
        return self._entity_type

    def key_properties(self) -> List[EdmProperty]:
        if self.model is not None:
            return self.model.key_properties(self._entity_type)
        by_name = {p.name: p for p in self._entity_type.properties}
        return [by_name[name] for name in self._entity_type.key_properties if name in by_name]

    @property
    def identifier(self) -> str:
        if self.is_alternate_key:
            return ",".join(self.key_mappings.values())
        return ",".join(p.name for p in self.key_properties())

    def get_path_item_name(self, settings: ConvertSettings, parameters: Optional[Set[str]] = None) -> str:
        _require(settings, "settings")
        parameters = parameters if parameters is not None else set()

        if self.key_mappings is not None:
            mapping = self.get_key_name_mapping(settings, parameters)
            if len(mapping) == 1 and not self.is_alternate_key:
                return "{" + next(iter(mapping.values())) + "}"
            return ",".join(f"{key}='{{{name}}}'" for key, name in mapping.items())

        keys = self.key_properties()
        if len(keys) == 1:
            name = get_unique_name(self._single_key_name(keys[0], settings), parameters)
            return "{" + name + "}"

        key_strings = []
        for key in keys:
            name = get_unique_name(key.name, parameters)
            quote = "'" if should_quote(key.type, settings) else ""
            key_strings.append(f"{key.name}={quote}{{{name}}}{quote}")
        return ",".join(key_strings)

    def get_key_name_mapping(self, settings: ConvertSettings, parameters: Set[str]) -> Dict[str, str]:
        """Key property name (or alternate-key alias) to path-template parameter name."""
        mapping: Dict[str, str] = {}
        if self.key_mappings is not None:
            for key, template_name in self.key_mappings.items():
                mapping[key] = get_unique_name(template_name, parameters)
            return mapping

        keys = self.key_properties()
        if len(keys) == 1:
            mapping[keys[0].name] = get_unique_name(self._single_key_name(keys[0], settings), parameters)
        else:
            for key in keys:
                mapping[key.name] = get_unique_name(key.name, parameters)
        return mapping

    def _single_key_name(self, key: EdmProperty, settings: ConvertSettings) -> str:
        if settings.prefix_entity_type_name_before_key:
            return f"{self._entity_type.name}-{key.name}"
        return key.name


class NavigationPropertySegment(ODataSegment):
    kind = SegmentKind.NAVIGATION_PROPERTY

    def __init__(self, navigation_property: NavigationProperty, target_type: EntityType,
                 model: Optional[SchemaModel] = None):
        self.navigation_property = _require(navigation_property, "navigation_property")
        self._target_type = _require(target_type, "target_type")
        self.model = model

    @property
    def identifier(self) -> str:
        return self.navigation_property.name

    @property
    def entity_type(self) -> EntityType:
        return self._target_type

    def annotatables(self) -> List[Any]:
        return [self.navigation_property] + _with_base_types(self._target_type, self.model)

    def get_path_item_name(self, settings: ConvertSettings, parameters: Optional[Set[str]] = None) -> str:
        _require(settings, "settings")
        return self.navigation_property.name


class TypeCastSegment(ODataSegment):
    kind = SegmentKind.TYPE_CAST

    def __init__(self, structured_type: StructuredType, model: Optional[SchemaModel] = None):
        self.structured_type = _require(structured_type, "structured_type")
        self.model = model

    @property
    def identifier(self) -> str:
        return self.structured_type.full_name

    def annotatables(self) -> List[Any]:
        return _with_base_types(self.structured_type, self.model)

    def get_path_item_name(self, settings: ConvertSettings, parameters: Optional[Set[str]] = None) -> str:
        _require(settings, "settings")
        return qualified_name(self.structured_type.namespace, self.structured_type.name,
                              self.model, use_alias=settings.enable_alias_for_type_cast_segments)


class OperationSegment(ODataSegment):
    kind = SegmentKind.OPERATION

    def __init__(self, operation: Operation, is_escaped_function: bool = False,
                 model: Optional[SchemaModel] = None):
        self.operation = _require(operation, "operation")
        # Only a function with a parameter beyond the binding one can be called with escape syntax
        self.is_escaped_function = (is_escaped_function and operation.is_function()
                                    and bool(operation.non_binding_parameters()))
        self.model = model

    @property
    def identifier(self) -> str:
        return self.operation.name

    def annotatables(self) -> List[Any]:
        return [self.operation]

    def uses_escaped_call(self, settings: ConvertSettings) -> bool:
        return self.is_escaped_function and settings.enable_uri_escape_function_call

    def get_path_item_name(self, settings: ConvertSettings, parameters: Optional[Set[str]] = None) -> str:
        _require(settings, "settings")
        parameters = parameters if parameters is not None else set()

        if not self.operation.is_function():
            return self._operation_name(settings)

        if self.uses_escaped_call(settings):
            name = get_unique_name(self.operation.parameters[-1].name, parameters)
            return f"{{{name}}}:" if self.operation.is_composable else f"{{{name}}}"

        arguments = []
        for param in self.operation.non_binding_parameters():
            name = get_unique_name(param.name, parameters)
            quote = "'" if should_quote(param.type, settings) else ""
            if param.optional:
                arguments.append(f"{param.name}={quote}@{name}{quote}")
            else:
                arguments.append(f"{param.name}={quote}{{{name}}}{quote}")
        return f"{self._operation_name(settings)}({','.join(arguments)})"

    def get_name_mapping(self, settings: ConvertSettings, parameters: Set[str]) -> Dict[str, str]:
        """Function parameter name to path-template parameter name; empty for actions."""
        mapping: Dict[str, str] = {}
        if not self.operation.is_function():
            return mapping

        if self.uses_escaped_call(settings):
            last = self.operation.parameters[-1].name
            mapping[last] = get_unique_name(last, parameters)
            return mapping

        for param in self.operation.non_binding_parameters():
            mapping[param.name] = get_unique_name(param.name, parameters)
        return mapping

    def _operation_name(self, settings: ConvertSettings) -> str:
        if settings.enable_unqualified_call:
            return self.operation.name
        return self.operation.full_name


class OperationImportSegment(ODataSegment):
    kind = SegmentKind.OPERATION_IMPORT

    def __init__(self, operation_import: OperationImport, operation: Operation):
        self.operation_import = _require(operation_import, "operation_import")
        self.operation = _require(operation, "operation")

    @property
    def identifier(self) -> str:
        return self.operation_import.name

    def annotatables(self) -> List[Any]:
        return [self.operation_import, self.operation]

    def get_path_item_name(self, settings: ConvertSettings, parameters: Optional[Set[str]] = None) -> str:
        _require(settings, "settings")
        parameters = parameters if parameters is not None else set()

        if not self.operation.is_function():
            return self.operation_import.name

        arguments = []
        for param in self.operation.parameters:
            name = get_unique_name(param.name, parameters)
            quote = "'" if should_quote(param.type, settings) else ""
            arguments.append(f"{param.name}={quote}{{{name}}}{quote}")
        return f"{self.operation_import.name}({','.join(arguments)})"


class _FixedSegment(ODataSegment):
    """Segment whose name never depends on the settings."""

    name: ClassVar[str]

    @property
    def identifier(self) -> str:
        return self.name

    def get_path_item_name(self, settings: ConvertSettings, parameters: Optional[Set[str]] = None) -> str:
        _require(settings, "settings")
        return self.name


class RefSegment(_FixedSegment):
    kind = SegmentKind.REF
    name = REF_SEGMENT


class DollarCountSegment(_FixedSegment):
    kind = SegmentKind.DOLLAR_COUNT
    name = COUNT_SEGMENT


class StreamContentSegment(_FixedSegment):
    kind = SegmentKind.STREAM_CONTENT
    name = VALUE_SEGMENT


class MetadataSegment(_FixedSegment):
    kind = SegmentKind.METADATA
    name = METADATA_SEGMENT


class StreamPropertySegment(ODataSegment):
    kind = SegmentKind.STREAM_PROPERTY

    def __init__(self, stream_property_name: str):
        self.stream_property_name = _require(stream_property_name, "stream_property_name")

    @property
    def identifier(self) -> str:
        return self.stream_property_name

    def get_path_item_name(self, settings: ConvertSettings, parameters: Optional[Set[str]] = None) -> str:
        _require(settings, "settings")
        return self.stream_property_name


class ComplexPropertySegment(ODataSegment):
    kind = SegmentKind.COMPLEX_PROPERTY

    def __init__(self, structural_property: EdmProperty, complex_type: ComplexType,
                 model: Optional[SchemaModel] = None):
        self.structural_property = _require(structural_property, "structural_property")
        self.complex_type = _require(complex_type, "complex_type")
        self.model = model

    @property
    def identifier(self) -> str:
        return self.structural_property.name

    def annotatables(self) -> List[Any]:
        return [self.structural_property] + _with_base_types(self.complex_type, self.model)

    def get_path_item_name(self, settings: ConvertSettings, parameters: Optional[Set[str]] = None) -> str:
        _require(settings, "settings")
        return self.structural_property.name


SEGMENT_TYPES: Dict[SegmentKind, Type[ODataSegment]] = {
    cls.kind: cls for cls in (
        NavigationSourceSegment,
        KeySegment,
        NavigationPropertySegment,
        TypeCastSegment,
        OperationSegment,
        OperationImportSegment,
        RefSegment,
        DollarCountSegment,
        StreamContentSegment,
        StreamPropertySegment,
        ComplexPropertySegment,
        MetadataSegment,
    )
}

if set(SEGMENT_TYPES) != set(SegmentKind):
    raise InvariantViolationError(
        f"Segment kinds without a segment class: {sorted(k.value for k in set(SegmentKind) - set(SEGMENT_TYPES))}")
