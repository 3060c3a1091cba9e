"""
OData Path Library - Enumerates and names the resource paths of an OData schema model.
"""

from .errors import (
    PathResolutionError,
    InvalidArgumentError,
    InvariantViolationError,
    UnsupportedSchemaConstructError
)
from .models import (
    EdmProperty,
    NavigationRestriction,
    NavigationProperty,
    EntityType,
    ComplexType,
    EntitySet,
    Singleton,
    OperationKind,
    OperationParameter,
    Operation,
    OperationImport,
    SchemaModel
)
from .settings import ConvertSettings
from .segments import (
    SegmentKind,
    ODataSegment,
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
    MetadataSegment
)
from .path import ODataPath, ODataPathKind
from .path_index import PathIndex
from .context import ODataContext
from .path_provider import ODataPathProvider

__all__ = [
    'PathResolutionError',
    'InvalidArgumentError',
    'InvariantViolationError',
    'UnsupportedSchemaConstructError',
    'EdmProperty',
    'NavigationRestriction',
    'NavigationProperty',
    'EntityType',
    'ComplexType',
    'EntitySet',
    'Singleton',
    'OperationKind',
    'OperationParameter',
    'Operation',
    'OperationImport',
    'SchemaModel',
    'ConvertSettings',
    'SegmentKind',
    'ODataSegment',
    'NavigationSourceSegment',
    'KeySegment',
    'NavigationPropertySegment',
    'TypeCastSegment',
    'OperationSegment',
    'OperationImportSegment',
    'RefSegment',
    'DollarCountSegment',
    'StreamContentSegment',
    'StreamPropertySegment',
    'ComplexPropertySegment',
    'MetadataSegment',
    'ODataPath',
    'ODataPathKind',
    'PathIndex',
    'ODataContext',
    'ODataPathProvider'
]
