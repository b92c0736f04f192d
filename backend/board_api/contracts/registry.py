"""
Schema Registry - Single source of truth for domain and envelope schemas.

Each schema is a declarative field map (name -> FieldSpec). The registry:
- flattens `extends` chains (UserProfile = User + extras)
- attaches discriminated variants to their base (BasePost -> SubletPost)
- rejects references to unknown schemas / enumerations
- rejects reference cycles at registration time (fail fast)
- is frozen after startup (register-then-freeze); stored schemas are immutable

Schemas register on import of board_api.contracts.schemas.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Set, Tuple, Type, Union

from board_api.config import get_contract_mode

from .enums import ENUMS, EnumRegistry
from .errors import RegistryFrozen, SchemaCycleError, SchemaDefinitionError


logger = logging.getLogger('board_api.contracts.registry')


# Placeholder ref for the generic payload of envelope schemas (ApiResponse<T>)
PAYLOAD_REF = "$T"

# Schema tags
CREDENTIAL_BEARING = "credential-bearing"
ENVELOPE = "envelope"


class SchemaMode(Enum):
    """Unknown-field policy."""
    STRICT = "strict"    # Undeclared fields are violations (default)
    LENIENT = "lenient"  # Undeclared fields are dropped


def _get_default_mode() -> SchemaMode:
    """Get schema mode from environment."""
    return SchemaMode.LENIENT if get_contract_mode() == 'lenient' else SchemaMode.STRICT


@dataclass(frozen=True)
class FieldSpec:
    """Specification for a single field. Immutable once built."""
    name: str
    type: Type                          # int, str, float, bool, list, dict, datetime
    required: bool = False
    nullable: bool = False
    default: Any = None
    allowed_values: Optional[Tuple] = None
    description: str = ""
    enum: Optional[str] = None          # Enumeration registry name
    ref: Optional[str] = None           # Nested schema name (type=dict)
    items: Optional["FieldSpec"] = None  # Element spec (type=list)
    unique: bool = False                # List items must be distinct (set semantics)
    format: Optional[str] = None        # "email"
    min_value: Optional[int] = None
    min_length: Optional[int] = None

    def __post_init__(self):
        # Convert string type names to actual types for JSON serialization compat
        if isinstance(self.type, str):
            type_map = {
                'int': int,
                'float': float,
                'str': str,
                'bool': bool,
                'list': list,
                'dict': dict,
                'datetime': datetime,
            }
            object.__setattr__(self, "type", type_map.get(self.type, str))
        if self.allowed_values is not None:
            object.__setattr__(self, "allowed_values", tuple(self.allowed_values))

    def signature(self) -> Tuple:
        """Everything that makes two fields type-identical (not docs or requiredness)."""
        return (
            self.type.__name__,
            self.nullable,
            self.allowed_values,
            self.enum,
            self.ref,
            self.items.signature() if self.items is not None else None,
            self.unique,
            self.format,
            self.min_value,
            self.min_length,
        )

    def references(self) -> List[str]:
        refs = []
        if self.ref:
            refs.append(self.ref)
        if self.items is not None:
            refs.extend(self.items.references())
        return refs

    def enumerations(self) -> List[str]:
        names = []
        if self.enum:
            names.append(self.enum)
        if self.items is not None:
            names.extend(self.items.enumerations())
        return names


@dataclass(frozen=True)
class ObjectSchema:
    """
    Declarative structure of a domain or envelope type.

    Immutable: ``fields`` and ``variants`` are read-only mappings and ``tags``
    is a frozenset, so a registered schema cannot be edited after startup.
    """
    name: str
    fields: Mapping[str, FieldSpec]
    version: str = "v1"
    tags: FrozenSet[str] = frozenset()
    discriminator: Optional[str] = None  # Field that selects a variant
    extends: Optional[str] = None        # Parent schema, flattened on register
    model: Optional[Type] = None         # Pydantic model for typed values
    description: str = ""

    # token -> variant schema name, filled in by the registry
    variants: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        object.__setattr__(self, "tags", frozenset(self.tags))
        # A proxy handed in by the registry stays a live view of its variant map
        if not isinstance(self.variants, MappingProxyType):
            object.__setattr__(self, "variants", MappingProxyType(dict(self.variants)))

    @property
    def is_credential_bearing(self) -> bool:
        return CREDENTIAL_BEARING in self.tags

    @property
    def is_envelope(self) -> bool:
        return ENVELOPE in self.tags

    def get_required_fields(self) -> List[str]:
        """Get list of required field names."""
        return [name for name, spec in self.fields.items() if spec.required]

    def references(self) -> List[str]:
        """Outgoing edges of the schema graph (nested refs and variants)."""
        refs = []
        for spec in self.fields.values():
            refs.extend(r for r in spec.references() if r != PAYLOAD_REF)
        refs.extend(self.variants.values())
        return refs


SchemaLike = Union[str, ObjectSchema]


class SchemaRegistry:
    """Registered schemas keyed by name."""

    def __init__(self, enums: EnumRegistry = None):
        self.enums = enums if enums is not None else ENUMS
        self._schemas: Dict[str, ObjectSchema] = {}
        self._projections: Dict[Tuple[str, str], Any] = {}
        # Writable backing dicts of each schema's read-only ``variants`` view
        self._variant_maps: Dict[str, Dict[str, str]] = {}
        # model class -> schema name, for credential-bearing schemas
        self._credential_models: Optional[Dict[Type, str]] = None
        self._credential_fields: Optional[Dict[str, str]] = None
        self._frozen = False

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._credential_models = self._collect_credential_models()
        self._credential_fields = self._collect_credential_fields()
        self._frozen = True
        logger.debug(f"Schema registry frozen with {len(self._schemas)} schemas")

    def _collect_credential_models(self) -> Dict[Type, str]:
        return {
            schema.model: schema.name
            for schema in self._schemas.values()
            if schema.is_credential_bearing and schema.model is not None
        }

    def _collect_credential_fields(self) -> Dict[str, str]:
        fields = {}
        for schema in self._schemas.values():
            if not schema.is_credential_bearing:
                continue
            parent = self._schemas.get(schema.extends) if schema.extends else None
            for name in schema.fields:
                if parent is None or name not in parent.fields:
                    fields[name] = schema.name
        return fields

    def credential_schema_of(self, value: Any) -> Optional[str]:
        """
        Name of the credential-bearing schema whose model ``value`` is an instance of.

        Typed values carry their schema with them, so a UserAuth model is
        recognised whatever schema name it is passed under.
        """
        models = self._credential_models
        if models is None:
            models = self._collect_credential_models()
        for model, schema_name in models.items():
            if isinstance(value, model):
                return schema_name
        return None

    def credential_fields(self) -> Dict[str, str]:
        """Fields introduced by credential-bearing schemas (e.g. passwordHash -> UserAuth)."""
        if self._credential_fields is None:
            return self._collect_credential_fields()
        return dict(self._credential_fields)

    def register(self, schema: ObjectSchema) -> ObjectSchema:
        """
        Register a schema.

        Args:
            schema: The ObjectSchema to register

        Returns:
            The stored schema (flattened if it extends another)

        Raises:
            RegistryFrozen: If the registry is frozen
            SchemaDefinitionError: Unknown refs/enums, bad field map, bad variant
            SchemaCycleError: If the schema graph would contain a cycle
        """
        if self._frozen:
            raise RegistryFrozen(f"Cannot register schema '{schema.name}': registry is frozen")

        for key, spec in schema.fields.items():
            if key != spec.name:
                raise SchemaDefinitionError(
                    f"Schema '{schema.name}': field key '{key}' does not match FieldSpec name '{spec.name}'"
                )

        fields = dict(schema.fields)
        tags = set(schema.tags)
        # Re-registration (hot reload): keep variants that attached to the old entry
        variant_map = dict(self._variant_maps.get(schema.name, {}))

        parent = None
        if schema.extends:
            parent = self._schemas.get(schema.extends)
            if parent is None:
                raise SchemaDefinitionError(
                    f"Schema '{schema.name}' extends unknown schema '{schema.extends}'"
                )
            fields = {**parent.fields, **fields}
            tags |= parent.tags - {ENVELOPE}

        stored = ObjectSchema(
            name=schema.name,
            fields=fields,
            version=schema.version,
            tags=tags,
            discriminator=schema.discriminator,
            extends=schema.extends,
            model=schema.model,
            description=schema.description,
            variants=MappingProxyType(variant_map),
        )

        variant_token = None
        if parent is not None and parent.discriminator:
            variant_token = self._variant_token(stored, parent)

        if stored.discriminator and stored.discriminator not in stored.fields:
            raise SchemaDefinitionError(
                f"Schema '{schema.name}': discriminator '{stored.discriminator}' is not a field"
            )

        for spec in stored.fields.values():
            for ref in spec.references():
                if ref == PAYLOAD_REF:
                    if not stored.is_envelope:
                        raise SchemaDefinitionError(
                            f"Schema '{schema.name}': field '{spec.name}' uses the envelope payload "
                            f"'{PAYLOAD_REF}' but the schema is not tagged '{ENVELOPE}'"
                        )
                    continue
                if ref == stored.name:
                    continue
                target = self._schemas.get(ref)
                if target is None:
                    raise SchemaDefinitionError(
                        f"Schema '{schema.name}': field '{spec.name}' references unknown schema '{ref}'"
                    )
                if target.is_envelope and not stored.is_envelope:
                    raise SchemaDefinitionError(
                        f"Schema '{schema.name}': field '{spec.name}' embeds envelope schema '{ref}'"
                    )
            for enum_name in spec.enumerations():
                if enum_name not in self.enums:
                    raise SchemaDefinitionError(
                        f"Schema '{schema.name}': field '{spec.name}' uses unknown enumeration '{enum_name}'"
                    )

        graph = {name: s.references() for name, s in self._schemas.items()}
        graph[stored.name] = stored.references()
        if variant_token is not None:
            parent_edges = [e for e in graph[parent.name] if e != stored.name]
            graph[parent.name] = parent_edges + [stored.name]
        cycle = _find_cycle(graph, stored.name)
        if cycle:
            raise SchemaCycleError(cycle)

        self._schemas[stored.name] = stored
        self._variant_maps[stored.name] = variant_map
        if variant_token is not None:
            self._variant_maps[parent.name][variant_token] = stored.name
        logger.debug(f"Registered schema '{stored.name}' ({len(stored.fields)} fields)")
        return stored

    def _variant_token(self, child: ObjectSchema, parent: ObjectSchema) -> str:
        """Token a variant answers to: the single literal its discriminator allows."""
        disc = child.fields[parent.discriminator]
        allowed = disc.allowed_values or []
        if len(allowed) != 1:
            raise SchemaDefinitionError(
                f"Variant '{child.name}' of '{parent.name}' must pin '{parent.discriminator}' "
                f"to exactly one literal value"
            )
        token = allowed[0]
        if isinstance(token, Enum):
            token = token.value
        owner = parent.variants.get(token)
        if owner is not None and owner != child.name:
            raise SchemaDefinitionError(
                f"Discriminator value '{token}' of '{parent.name}' already maps to '{owner}'"
            )
        return token

    def get(self, name: str) -> Optional[ObjectSchema]:
        return self._schemas.get(name)

    def resolve(self, schema: SchemaLike) -> ObjectSchema:
        """Accept a schema name or object; always return the registered schema."""
        name = schema.name if isinstance(schema, ObjectSchema) else schema
        found = self._schemas.get(name)
        if found is None:
            raise SchemaDefinitionError(f"Unknown schema '{name}'")
        return found

    def describe(self, name: str) -> List[FieldSpec]:
        """Field specs of a schema, in declaration order."""
        return list(self.resolve(name).fields.values())

    def variants_of(self, name: str) -> Dict[str, str]:
        return dict(self.resolve(name).variants)

    def names(self) -> List[str]:
        return list(self._schemas.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._schemas

    def cached_projection(self, key: Tuple[str, str]):
        return self._projections.get(key)

    def cache_projection(self, key: Tuple[str, str], spec) -> None:
        # Projections are computed during startup; a frozen registry stays read-only
        if not self._frozen:
            self._projections[key] = spec


def _find_cycle(graph: Dict[str, List[str]], start: str) -> Optional[List[str]]:
    """DFS from ``start``; return the first cycle found as a path, else None."""
    path: List[str] = []
    on_path: Set[str] = set()
    done: Set[str] = set()

    def visit(node: str) -> Optional[List[str]]:
        if node in on_path:
            return path[path.index(node):] + [node]
        if node in done:
            return None
        path.append(node)
        on_path.add(node)
        for nxt in graph.get(node, []):
            found = visit(nxt)
            if found:
                return found
        path.pop()
        on_path.discard(node)
        done.add(node)
        return None

    return visit(start)


# Global registry instance
SCHEMAS = SchemaRegistry(ENUMS)


def register_schema(schema: ObjectSchema) -> ObjectSchema:
    """Register a schema in the global registry."""
    return SCHEMAS.register(schema)


def get_schema(name: str) -> Optional[ObjectSchema]:
    """
    Get a registered schema.

    Args:
        name: The schema name (e.g., "User")

    Returns:
        ObjectSchema if found, None otherwise
    """
    return SCHEMAS.get(name)


def describe(schema_name: str) -> List[FieldSpec]:
    """Field specs for ``schema_name``, used by the validator and projection engine."""
    return SCHEMAS.describe(schema_name)


def list_schemas() -> List[str]:
    """Get list of registered schema names."""
    return SCHEMAS.names()


def freeze_registries() -> None:
    """Freeze enumerations and schemas; called once startup registration is done."""
    ENUMS.freeze()
    SCHEMAS.freeze()
