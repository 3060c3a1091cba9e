"""
OData path: an ordered list of segments with a derived kind and a canonical name.
"""

from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Set

from .errors import InvalidArgumentError, InvariantViolationError
from .segments import KeySegment, ODataSegment, OperationSegment, SegmentKind
from .settings import ConvertSettings


class ODataPathKind(str, Enum):
    ENTITY_SET = "EntitySet"              # ~/users
    ENTITY = "Entity"                     # ~/users/{id}
    SINGLETON = "Singleton"               # ~/me
    OPERATION = "Operation"               # ~/users/NS.findRooms(roomId='{roomId}')
    OPERATION_IMPORT = "OperationImport"  # ~/ResetData
    NAVIGATION_PROPERTY = "NavigationProperty"  # ~/users/{id}/onedrive
    REF = "Ref"                           # ~/users/{id}/manager/$ref
    MEDIA_ENTITY = "MediaEntity"          # ~/me/photo/$value
    METADATA = "Metadata"                 # ~/$metadata
    DOLLAR_COUNT = "DollarCount"          # ~/users/$count
    TYPE_CAST = "TypeCast"                # ~/users/NS.Employee
    COMPLEX_PROPERTY = "ComplexProperty"  # ~/users/{id}/homeAddress
    UNKNOWN = "Unknown"


DEFAULT_SETTINGS = ConvertSettings()


class ODataPath:
    """An OData path built from segments."""

    def __init__(self, segments: Iterable[ODataSegment] = ()):
        if segments is None:
            raise InvalidArgumentError("segments")
        self._segments: List[ODataSegment] = list(segments)
        if any(s is None for s in self._segments):
            raise InvalidArgumentError("segments", "A path cannot contain a None segment")
        self._kind: Optional[ODataPathKind] = None
        self._names: Dict[ConvertSettings, str] = {}

    # --- Construction ---

    def push(self, segment: ODataSegment) -> 'ODataPath':
        """Append a segment; returns the path itself."""
        if segment is None:
            raise InvalidArgumentError("segment")
        self._segments.append(segment)
        self._invalidate()
        return self

    def pop(self) -> ODataSegment:
        """Remove and return the last segment."""
        if not self._segments:
            raise InvariantViolationError("Pop a segment is invalid. The segments in the path is empty.")
        segment = self._segments.pop()
        self._invalidate()
        return segment

    def clone(self) -> 'ODataPath':
        """Independent copy; segments are immutable and shared."""
        return ODataPath(self._segments)

    def _invalidate(self):
        self._kind = None
        self._names.clear()

    # --- Accessors ---

    @property
    def segments(self) -> List[ODataSegment]:
        return list(self._segments)

    @property
    def first_segment(self) -> Optional[ODataSegment]:
        return self._segments[0] if self._segments else None

    @property
    def last_segment(self) -> Optional[ODataSegment]:
        return self._segments[-1] if self._segments else None

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self) -> Iterator[ODataSegment]:
        return iter(list(self._segments))

    def __getitem__(self, index: int) -> ODataSegment:
        return self._segments[index]

    def get_count(self, key_segment_as_depth: bool) -> int:
        """Number of segments, optionally ignoring key segments."""
        if key_segment_as_depth:
            return len(self._segments)
        return sum(1 for s in self._segments if s.kind != SegmentKind.KEY)

    # --- Classification ---

    @property
    def kind(self) -> ODataPathKind:
        if self._kind is None:
            self._kind = self._calculate_kind()
        return self._kind

    def _calculate_kind(self) -> ODataPathKind:
        kinds = [s.kind for s in self._segments]
        if not kinds:
            return ODataPathKind.UNKNOWN

        last = kinds[-1]
        if kinds == [SegmentKind.METADATA]:
            return ODataPathKind.METADATA
        if last == SegmentKind.DOLLAR_COUNT:
            return ODataPathKind.DOLLAR_COUNT
        if last == SegmentKind.TYPE_CAST:
            return ODataPathKind.TYPE_CAST
        if last == SegmentKind.COMPLEX_PROPERTY:
            return ODataPathKind.COMPLEX_PROPERTY
        if SegmentKind.STREAM_PROPERTY in kinds or SegmentKind.STREAM_CONTENT in kinds:
            return ODataPathKind.MEDIA_ENTITY
        if SegmentKind.REF in kinds:
            return ODataPathKind.REF
        if SegmentKind.OPERATION_IMPORT in kinds:
            return ODataPathKind.OPERATION_IMPORT
        if last == SegmentKind.OPERATION:
            return ODataPathKind.OPERATION
        if SegmentKind.NAVIGATION_PROPERTY in kinds:
            return ODataPathKind.NAVIGATION_PROPERTY
        if len(kinds) == 1 and last == SegmentKind.NAVIGATION_SOURCE:
            if self._segments[0].is_collection:
                return ODataPathKind.ENTITY_SET
            return ODataPathKind.SINGLETON
        if len(kinds) == 2 and last == SegmentKind.KEY:
            return ODataPathKind.ENTITY
        return ODataPathKind.UNKNOWN

    # --- Naming ---

    def get_path_item_name(self, settings: Optional[ConvertSettings] = None) -> str:
        """
        Render the canonical URL template of this path.

        Path-parameter names are unique across the whole path: one set of used
        names is threaded through every segment.

        Args:
            settings: Conversion settings (defaults when None)

        Returns:
            The path template, e.g. ``/Customers({Id})/Orders({Id1})``
        """
        settings = settings or DEFAULT_SETTINGS
        cached = self._names.get(settings)
        if cached is not None:
            return cached

        parameters: Set[str] = set()
        parts = [_path_prefix(settings)]
        for segment in self._segments:
            name = segment.get_path_item_name(settings, parameters)
            if segment.kind == SegmentKind.KEY and (not settings.enable_key_as_segment or segment.is_alternate_key):
                parts.append(f"({name})")
            elif segment.kind == SegmentKind.OPERATION and segment.uses_escaped_call(settings):
                parts.append(f":/{name}")
            else:
                parts.append(f"/{name}")

        path_item_name = "".join(parts)
        self._names[settings] = path_item_name
        return path_item_name

    def calculate_parameter_mapping(self, settings: Optional[ConvertSettings] = None) -> Dict[ODataSegment, Dict[str, str]]:
        """
        Map, for every key and operation segment, schema names to path-template names.

        The mapping uses the same unique-name rules as ``get_path_item_name``,
        so the names match the ones in the rendered template.
        """
        settings = settings or DEFAULT_SETTINGS
        parameters: Set[str] = set()
        mapping: Dict[ODataSegment, Dict[str, str]] = {}
        for segment in self._segments:
            if isinstance(segment, KeySegment):
                mapping[segment] = segment.get_key_name_mapping(settings, parameters)
            elif isinstance(segment, OperationSegment):
                mapping[segment] = segment.get_name_mapping(settings, parameters)
            else:
                # Operation imports and other segments can still reserve names
                segment.get_path_item_name(settings, parameters)
        return mapping

    # --- Misc ---

    def __lt__(self, other: 'ODataPath') -> bool:
        if not isinstance(other, ODataPath):
            return NotImplemented
        return self.get_path_item_name() < other.get_path_item_name()

    def __str__(self) -> str:
        return "/" + "/".join(str(s) for s in self._segments)

    def __repr__(self) -> str:
        return f"ODataPath({str(self)!r}, kind={self.kind.value})"


def _path_prefix(settings: ConvertSettings) -> str:
    prefix = settings.path_prefix.strip().strip("/")
    return f"/{prefix}" if prefix else ""
