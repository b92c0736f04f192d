"""
Contract enforcement package.

Provides the enumeration and schema registries, the contract validator and
the projection engine. Importing the package loads every schema module and
freezes the registries.
"""

from .enums import ENUMS, EnumRegistry, is_member
from .errors import (
    ContractViolation,
    SchemaMismatch,
    UnknownVariant,
    PaginationInvalid,
    PageSizeExceeded,
    CredentialLeak,
    SchemaDefinitionError,
    SchemaCycleError,
    RegistryFrozen,
    ProjectionError,
)
from .registry import (
    SchemaMode,
    FieldSpec,
    ObjectSchema,
    SchemaRegistry,
    SCHEMAS,
    register_schema,
    get_schema,
    describe,
    list_schemas,
)
from .validate import Violation, ValidationResult, validate, validate_or_raise
from .projection import ProjectionSpec, project, derive, validate_is_projection
from . import schemas
from .schemas import AUTHOR_PROJECTION

__all__ = [
    'ENUMS',
    'EnumRegistry',
    'is_member',
    'ContractViolation',
    'SchemaMismatch',
    'UnknownVariant',
    'PaginationInvalid',
    'PageSizeExceeded',
    'CredentialLeak',
    'SchemaDefinitionError',
    'SchemaCycleError',
    'RegistryFrozen',
    'ProjectionError',
    'SchemaMode',
    'FieldSpec',
    'ObjectSchema',
    'SchemaRegistry',
    'SCHEMAS',
    'register_schema',
    'get_schema',
    'describe',
    'list_schemas',
    'Violation',
    'ValidationResult',
    'validate',
    'validate_or_raise',
    'ProjectionSpec',
    'project',
    'derive',
    'validate_is_projection',
    'schemas',
    'AUTHOR_PROJECTION',
]
