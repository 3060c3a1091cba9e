"""
Path index: completed paths grouped by owning entity type and classification.
"""

from typing import Dict, List, Optional

from .errors import InvariantViolationError
from .path import ODataPath, ODataPathKind
from .segments import NavigationPropertySegment, SegmentKind

NAVIGATION_SOURCE_KINDS = frozenset({
    ODataPathKind.ENTITY_SET,
    ODataPathKind.ENTITY,
    ODataPathKind.SINGLETON,
    ODataPathKind.MEDIA_ENTITY,
    ODataPathKind.DOLLAR_COUNT,
    ODataPathKind.TYPE_CAST,
    ODataPathKind.COMPLEX_PROPERTY,
})

NAVIGATION_PROPERTY_KINDS = frozenset({
    ODataPathKind.NAVIGATION_PROPERTY,
    ODataPathKind.REF,
})

OPERATION_KINDS = frozenset({
    ODataPathKind.OPERATION,
    ODataPathKind.OPERATION_IMPORT,
    ODataPathKind.METADATA,
})


class PathIndex:
    """
    Three buckets of paths built during one conversion run.

    ``navigation_source_paths`` is keyed by the entity type of the root
    navigation source, ``navigation_property_paths`` by the target type of the
    last navigation property on the path. Operation, operation-import and
    metadata paths are kept in a flat list.
    """

    def __init__(self):
        self.navigation_source_paths: Dict[str, List[ODataPath]] = {}
        self.navigation_property_paths: Dict[str, List[ODataPath]] = {}
        self.operation_paths: List[ODataPath] = []

    def append(self, path: ODataPath) -> None:
        """Store a path in the bucket its kind belongs to."""
        kind = path.kind
        if kind in NAVIGATION_SOURCE_KINDS:
            owner = path.first_segment.entity_type
            self.navigation_source_paths.setdefault(owner.full_name, []).append(path)
        elif kind in NAVIGATION_PROPERTY_KINDS:
            segment = last_navigation_property_segment(path)
            if segment is None:
                raise InvariantViolationError(f"Path '{path}' has no navigation property segment")
            owner = segment.entity_type
            self.navigation_property_paths.setdefault(owner.full_name, []).append(path)
        elif kind in OPERATION_KINDS:
            self.operation_paths.append(path)
        else:
            raise InvariantViolationError(f"Cannot index path '{path}' of kind {kind.value}")

    def update(self, other: 'PathIndex') -> None:
        """Merge another index (a per-source shard) into this one, preserving order."""
        for owner, paths in other.navigation_source_paths.items():
            self.navigation_source_paths.setdefault(owner, []).extend(paths)
        for owner, paths in other.navigation_property_paths.items():
            self.navigation_property_paths.setdefault(owner, []).extend(paths)
        self.operation_paths.extend(other.operation_paths)

    def source_paths_of(self, entity_type_name: str) -> List[ODataPath]:
        return self.navigation_source_paths.get(entity_type_name, [])

    def property_paths_of(self, entity_type_name: str) -> List[ODataPath]:
        return self.navigation_property_paths.get(entity_type_name, [])

    def all_paths(self) -> List[ODataPath]:
        paths: List[ODataPath] = []
        for bucket in self.navigation_source_paths.values():
            paths.extend(bucket)
        for bucket in self.navigation_property_paths.values():
            paths.extend(bucket)
        paths.extend(self.operation_paths)
        return paths

    def merge(self) -> List[ODataPath]:
        """
        Flatten all buckets and sort by the default canonical name.

        Paths rendering to a name already seen are dropped, first one wins.
        """
        unique: Dict[str, ODataPath] = {}
        for path in self.all_paths():
            unique.setdefault(path.get_path_item_name(), path)
        return [unique[name] for name in sorted(unique)]

    def __len__(self) -> int:
        return len(self.all_paths())


def last_navigation_property_segment(path: ODataPath) -> Optional[NavigationPropertySegment]:
    """The last navigation property segment on a path, or None."""
    for segment in reversed(path.segments):
        if segment.kind == SegmentKind.NAVIGATION_PROPERTY:
            return segment
    return None
