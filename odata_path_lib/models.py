"""
Data models for the OData schema graph the path provider walks.

Elements reference each other by fully-qualified name (``Namespace.Name``);
``SchemaModel`` resolves those names and answers the inheritance questions
(base chain, derived types, assignability) the enumerator needs.
"""

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel

from .constants import COLLECTION_PREFIX, EDM_PRIMITIVE_TYPES, EDM_STREAM
from .errors import InvalidArgumentError, UnsupportedSchemaConstructError


def is_collection_type(type_name: str) -> bool:
    return type_name.startswith(COLLECTION_PREFIX) and type_name.endswith(")")


def element_type_name(type_name: str) -> str:
    """Strip a ``Collection(...)`` wrapper, if any."""
    if is_collection_type(type_name):
        return type_name[len(COLLECTION_PREFIX):-1]
    return type_name


class Multiplicity(str, Enum):
    ONE = "One"
    MANY = "Many"


class OperationKind(str, Enum):
    ACTION = "Action"
    FUNCTION = "Function"


class EdmProperty(BaseModel):
    name: str
    type: str  # OData type string (e.g., "Edm.String", "NS.Address", "Collection(NS.Address)")
    nullable: bool = True
    description: Optional[str] = None

    def is_collection(self) -> bool:
        return is_collection_type(self.type)

    def element_type(self) -> str:
        return element_type_name(self.type)

    def is_stream(self) -> bool:
        return self.type == EDM_STREAM


class NavigationRestriction(BaseModel):
    """Navigability record attached to a navigation source or navigation property."""
    navigable: bool = True
    indexable_by_key: bool = True


class NavigationProperty(BaseModel):
    name: str
    type: str  # "NS.Order" or "Collection(NS.Order)"
    contains_target: bool = False
    nullable: bool = True
    restriction: Optional[NavigationRestriction] = None
    derived_type_constraint: List[str] = []
    description: Optional[str] = None

    @property
    def target_type(self) -> str:
        return element_type_name(self.type)

    @property
    def target_multiplicity(self) -> Multiplicity:
        return Multiplicity.MANY if is_collection_type(self.type) else Multiplicity.ONE


class StructuredType(BaseModel):
    name: str
    namespace: str
    base_type: Optional[str] = None  # fully-qualified name
    abstract: bool = False
    properties: List[EdmProperty] = []
    navigation_properties: List[NavigationProperty] = []
    description: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.namespace}.{self.name}"


class EntityType(StructuredType):
    key_properties: List[str] = []
    has_stream: bool = False
    # Each alternate key maps a template alias to a property name
    alternate_keys: List[Dict[str, str]] = []


class ComplexType(StructuredType):
    pass


class EntitySet(BaseModel):
    name: str
    entity_type: str  # fully-qualified name
    countable: bool = True
    restriction: Optional[NavigationRestriction] = None
    derived_type_constraint: List[str] = []
    description: Optional[str] = None


class Singleton(BaseModel):
    name: str
    entity_type: str
    restriction: Optional[NavigationRestriction] = None
    derived_type_constraint: List[str] = []
    description: Optional[str] = None


NavigationSource = Union[EntitySet, Singleton]


class OperationParameter(BaseModel):
    name: str
    type: str
    optional: bool = False


class Operation(BaseModel):
    name: str
    namespace: str
    kind: OperationKind = OperationKind.FUNCTION
    is_bound: bool = False
    parameters: List[OperationParameter] = []
    return_type: Optional[str] = None
    is_composable: bool = False
    is_url_escape_function: bool = False
    description: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    def is_function(self) -> bool:
        return self.kind == OperationKind.FUNCTION

    def is_action(self) -> bool:
        return self.kind == OperationKind.ACTION

    @property
    def binding_parameter(self) -> Optional[OperationParameter]:
        if not self.is_bound or not self.parameters:
            return None
        return self.parameters[0]

    @property
    def binding_type_name(self) -> Optional[str]:
        """The binding signature, e.g. ``NS.Customer`` or ``Collection(NS.Customer)``."""
        binding = self.binding_parameter
        return binding.type if binding else None

    def is_collection_bound(self) -> bool:
        binding = self.binding_type_name
        return binding is not None and is_collection_type(binding)

    def non_binding_parameters(self) -> List[OperationParameter]:
        return self.parameters[1:] if self.is_bound else list(self.parameters)


class OperationImport(BaseModel):
    name: str
    operation: str  # fully-qualified name of the imported operation


class SchemaModel(BaseModel):
    """Read-only view of an OData schema graph."""
    container_name: str = "Container"
    namespace_aliases: Dict[str, str] = {}
    entity_types: Dict[str, EntityType] = {}
    complex_types: Dict[str, ComplexType] = {}
    entity_sets: Dict[str, EntitySet] = {}
    singletons: Dict[str, Singleton] = {}
    operations: List[Operation] = []
    operation_imports: Dict[str, OperationImport] = {}
    description: Optional[str] = None

    @classmethod
    def create(cls,
               entity_types: Optional[List[EntityType]] = None,
               complex_types: Optional[List[ComplexType]] = None,
               entity_sets: Optional[List[EntitySet]] = None,
               singletons: Optional[List[Singleton]] = None,
               operations: Optional[List[Operation]] = None,
               operation_imports: Optional[List[OperationImport]] = None,
               namespace_aliases: Optional[Dict[str, str]] = None,
               container_name: str = "Container") -> 'SchemaModel':
        """Build a model from element lists, keying every element by its (qualified) name."""
        return cls(
            container_name=container_name,
            namespace_aliases=namespace_aliases or {},
            entity_types={et.full_name: et for et in entity_types or []},
            complex_types={ct.full_name: ct for ct in complex_types or []},
            entity_sets={es.name: es for es in entity_sets or []},
            singletons={s.name: s for s in singletons or []},
            operations=list(operations or []),
            operation_imports={oi.name: oi for oi in operation_imports or []},
        )

    # --- Type lookups ---

    def find_entity_type(self, full_name: str) -> Optional[EntityType]:
        return self.entity_types.get(full_name)

    def get_entity_type(self, full_name: str) -> EntityType:
        """Resolve an entity type or fail, naming the unresolved reference."""
        entity_type = self.entity_types.get(full_name)
        if entity_type is None:
            raise UnsupportedSchemaConstructError(
                full_name, f"Type '{full_name}' is not an entity type declared in the schema")
        return entity_type

    def find_structured_type(self, full_name: str) -> Optional[StructuredType]:
        return self.entity_types.get(full_name) or self.complex_types.get(full_name)

    def is_primitive_type(self, type_name: str) -> bool:
        return element_type_name(type_name) in EDM_PRIMITIVE_TYPES

    def find_operation(self, full_name: str) -> Optional[Operation]:
        for operation in self.operations:
            if operation.full_name == full_name:
                return operation
        return None

    def namespace_alias(self, namespace: str) -> Optional[str]:
        return self.namespace_aliases.get(namespace)

    # --- Inheritance ---

    def base_types(self, structured_type: StructuredType) -> List[StructuredType]:
        """Walk the base-type chain from the direct base up to the root."""
        chain = []
        seen = {structured_type.full_name}
        base_name = structured_type.base_type
        while base_name:
            if base_name in seen:
                raise UnsupportedSchemaConstructError(
                    base_name, f"Inheritance cycle detected at type '{base_name}'")
            base = self.find_structured_type(base_name)
            if base is None:
                raise UnsupportedSchemaConstructError(
                    base_name, f"Base type '{base_name}' of '{structured_type.full_name}' is not declared")
            chain.append(base)
            seen.add(base_name)
            base_name = base.base_type
        return chain

    def derived_types(self, entity_type: EntityType) -> List[EntityType]:
        """Every entity type that has ``entity_type`` somewhere in its base chain."""
        return [
            candidate for candidate in self.entity_types.values()
            if candidate.full_name != entity_type.full_name
            and any(b.full_name == entity_type.full_name for b in self.base_types(candidate))
        ]

    def is_assignable_from(self, base: StructuredType, derived: Optional[StructuredType]) -> bool:
        """True when ``derived`` is ``base`` or inherits from it."""
        if derived is None:
            return False
        if derived.full_name == base.full_name:
            return True
        return any(b.full_name == base.full_name for b in self.base_types(derived))

    # --- Properties (inheritance aware) ---

    def structural_properties(self, structured_type: StructuredType) -> List[EdmProperty]:
        """Structural properties, base type first."""
        properties: List[EdmProperty] = []
        for base in reversed(self.base_types(structured_type)):
            properties.extend(base.properties)
        properties.extend(structured_type.properties)
        return properties

    def key_properties(self, entity_type: EntityType) -> List[EdmProperty]:
        """Key properties in declaration order; keys are declared on the root of the chain."""
        key_names = entity_type.key_properties
        if not key_names:
            for base in self.base_types(entity_type):
                if isinstance(base, EntityType) and base.key_properties:
                    key_names = base.key_properties
                    break

        by_name = {p.name: p for p in self.structural_properties(entity_type)}
        keys = []
        for key_name in key_names:
            prop = by_name.get(key_name)
            if prop is None:
                raise UnsupportedSchemaConstructError(
                    key_name, f"Key '{key_name}' of '{entity_type.full_name}' is not a structural property")
            keys.append(prop)
        return keys

    def declared_navigation_properties(self, structured_type: StructuredType) -> List[NavigationProperty]:
        return list(structured_type.navigation_properties)

    def has_stream(self, entity_type: EntityType) -> bool:
        if entity_type.has_stream:
            return True
        return any(isinstance(b, EntityType) and b.has_stream for b in self.base_types(entity_type))

    # --- Container ---

    def navigation_sources(self) -> List[NavigationSource]:
        """Entity sets first, then singletons, each in declaration order."""
        return list(self.entity_sets.values()) + list(self.singletons.values())

    def navigation_sources_of(self, entity_type_name: str) -> List[NavigationSource]:
        return [ns for ns in self.navigation_sources() if ns.entity_type == entity_type_name]

    def entity_type_of(self, navigation_source: NavigationSource) -> EntityType:
        if navigation_source is None:
            raise InvalidArgumentError("navigation_source")
        return self.get_entity_type(navigation_source.entity_type)
