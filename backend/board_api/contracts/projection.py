"""
Projection Engine - minimal embedded views derived from full entities.

A projection pairs a full schema with a minimal one (User -> PostAuthor).
project() checks, once per pair, that the minimal schema is a strict field
subset of the full one with identical field signatures. Drift between the
two is a schema-definition error, raised at startup rather than per request.

derive() narrows a full value to the subset; validate_is_projection()
checks minimal values that arrive from elsewhere (e.g. a wire payload).
"""

import copy
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel

from .errors import ProjectionError, SchemaMismatch
from .registry import SCHEMAS, FieldSpec, SchemaLike, SchemaMode, SchemaRegistry
from .validate import ValidationResult, validate


logger = logging.getLogger('board_api.contracts.projection')


@dataclass(frozen=True)
class ProjectionSpec:
    """Field subset shared by a full schema and its minimal view."""
    full_schema: str
    minimal_schema: str
    fields: Tuple[str, ...]

    @property
    def key(self) -> Tuple[str, str]:
        return (self.full_schema, self.minimal_schema)


def project(
    full_schema: SchemaLike,
    minimal_schema: SchemaLike,
    registry: Optional[SchemaRegistry] = None,
) -> ProjectionSpec:
    """
    Compute (or fetch the cached) projection of ``full_schema`` onto ``minimal_schema``.

    Raises:
        ProjectionError: If a minimal field is absent from the full schema,
            has a different signature, or the minimal schema is not a
            strict subset
    """
    registry = registry if registry is not None else SCHEMAS
    full = registry.resolve(full_schema)
    minimal = registry.resolve(minimal_schema)

    key = (full.name, minimal.name)
    cached = registry.cached_projection(key)
    if cached is not None:
        return cached

    problems = []
    for name, spec in minimal.fields.items():
        source = full.fields.get(name)
        if source is None:
            problems.append(f"'{name}' is not a field of '{full.name}'")
        elif source.signature() != spec.signature():
            problems.append(
                f"'{name}' differs: {full.name} has {_describe(source)}, "
                f"{minimal.name} has {_describe(spec)}"
            )
    if not problems and len(minimal.fields) >= len(full.fields):
        problems.append(f"'{minimal.name}' must declare fewer fields than '{full.name}'")
    if problems:
        raise ProjectionError(
            f"'{minimal.name}' is not a projection of '{full.name}': " + "; ".join(problems)
        )

    spec = ProjectionSpec(
        full_schema=full.name,
        minimal_schema=minimal.name,
        fields=tuple(minimal.fields.keys()),
    )
    registry.cache_projection(key, spec)
    logger.debug(f"Projection {full.name} -> {minimal.name} over {list(spec.fields)}")
    return spec


def derive(
    full_value: Any,
    spec: ProjectionSpec,
    registry: Optional[SchemaRegistry] = None,
) -> Dict[str, Any]:
    """
    Copy the projected fields out of a full value.

    Accepts a mapping or a pydantic model. Values are deep-copied so the
    minimal view keeps no live link to its source. Absent optional fields
    stay absent.

    Raises:
        SchemaMismatch: If the full value lacks required projected fields
    """
    registry = registry if registry is not None else SCHEMAS
    source = _as_mapping(full_value)
    minimal = registry.resolve(spec.minimal_schema)

    missing = [
        name for name in spec.fields
        if minimal.fields[name].required and source.get(name) is None
    ]
    if missing:
        raise SchemaMismatch(
            message=f"Cannot derive '{spec.minimal_schema}': missing {missing}",
            details={
                "schema": spec.full_schema,
                "violations": [
                    {"path": name, "error": "missing_field",
                     "message": f"Required field '{name}' missing"}
                    for name in missing
                ],
            },
        )

    return {
        name: copy.deepcopy(source[name])
        for name in spec.fields
        if name in source and source[name] is not None
    }


def validate_is_projection(
    minimal_value: Any,
    spec: ProjectionSpec,
    registry: Optional[SchemaRegistry] = None,
) -> ValidationResult:
    """
    Check that ``minimal_value`` is a valid projection.

    Every present field must be one of the projected fields with the declared
    type. Fields outside the subset are always reported, whatever the
    configured unknown-field policy, since they indicate producer/consumer drift.
    """
    registry = registry if registry is not None else SCHEMAS
    if isinstance(minimal_value, BaseModel):
        minimal_value = _as_mapping(minimal_value)
    result = validate(minimal_value, spec.minimal_schema, mode=SchemaMode.STRICT, registry=registry)
    if not result.ok:
        logger.warning(
            f"Projection drift: value is not a valid '{spec.minimal_schema}' "
            f"view of '{spec.full_schema}'",
            extra={
                "event": "projection_drift",
                "projection": list(spec.key),
                "violations": [v.to_dict() for v in result.violations],
            },
        )
    return result


def _as_mapping(value: Any) -> Mapping:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, Mapping):
        return value
    raise TypeError(f"Expected a mapping or pydantic model, got {type(value).__name__}")


def _describe(spec: FieldSpec) -> str:
    parts = [spec.type.__name__]
    if spec.enum:
        parts.append(f"enum={spec.enum}")
    if spec.ref:
        parts.append(f"ref={spec.ref}")
    if spec.nullable:
        parts.append("nullable")
    if spec.min_value is not None:
        parts.append(f">={spec.min_value}")
    if spec.min_length is not None:
        parts.append(f"len>={spec.min_length}")
    return "<" + " ".join(parts) + ">"
