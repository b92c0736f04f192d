"""
Envelope Composer - builds every outbound response body.

- wrap_one:  {"data": {...}, "meta": {...}}
- wrap_many: {"data": [...], "pagination": {...}, "meta": {...}}
- wrap_error: {"code": ..., "message": ..., "details": {...}}

Invariants enforced on every call:
- credential-bearing schemas (UserAuth) are never wrapped (CredentialLeak),
  neither by name nor as a UserAuth model or a value carrying its credential fields
- envelopes are never wrapped in envelopes
- payloads must validate against their schema; all violations are reported
- totalPages / hasMore are always recomputed here
- the finished envelope is validated against its envelope schema

Any violation aborts the call: no partial envelope is ever returned.
"""

import logging
from collections.abc import Mapping
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from flask import g, has_app_context
from pydantic import BaseModel

from board_api.config import get_api_version
from board_api.contracts.enums import ENUMS, token_of
from board_api.contracts.errors import (
    ContractViolation,
    CredentialLeak,
    PageSizeExceeded,
    PaginationInvalid,
    SchemaMismatch,
    UnknownVariant,
)
from board_api.contracts.registry import SCHEMAS, ObjectSchema, SchemaLike
from board_api.contracts.validate import ROOT_PATH, Violation, validate


logger = logging.getLogger('board_api.serializers.response')


def wrap_one(
    value: Any,
    schema: SchemaLike,
    meta: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Wrap a single domain value.

    Args:
        value: Dict or pydantic model conforming to ``schema``
        schema: Payload schema name or ObjectSchema
        meta: Optional extra meta fields (must be declared in ResponseMeta)

    Returns:
        {"data": ..., "meta": {"timestamp", "apiVersion", "requestId"?}}

    Raises:
        CredentialLeak: If ``schema``, the resolved variant or the model of ``value``
            is credential-bearing
        SchemaMismatch / UnknownVariant: If ``value`` does not conform
    """
    target = _payload_schema(schema)
    _guard_value(value)

    result = validate(_to_wire(value), target)
    if not result.ok:
        _log_violation("wrap_one", target.name, result.violations)
        result.raise_for_violations()
    _guard_resolved(result.schema)

    envelope = {
        "data": _to_wire(result.value),
        "meta": build_meta(meta),
    }
    _check_outbound(envelope, "ApiResponse", target)
    return envelope


def wrap_many(
    values: Iterable[Any],
    schema: SchemaLike,
    page: int,
    page_size: int,
    total_items: int,
    total_pages: Optional[int] = None,
    meta: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Wrap one page of domain values.

    Args:
        values: Page of dicts or pydantic models
        schema: Payload schema for every item
        page: Current page number (1-indexed)
        page_size: Items per page
        total_items: Total items across all pages
        total_pages: Ignored; totalPages is always recomputed
        meta: Optional extra meta fields

    Returns:
        {"data": [...], "pagination": {...}, "meta": {...}}

    Raises:
        CredentialLeak: If ``schema`` or any item's model is credential-bearing
        PaginationInvalid: page < 1, page_size < 1, total_items < 0 or non-integers
        PageSizeExceeded: More values than page_size
        SchemaMismatch / UnknownVariant: If any item does not conform
    """
    target = _payload_schema(schema)

    problems = []
    for name, number, minimum in (
        ("page", page, 1),
        ("pageSize", page_size, 1),
        ("totalItems", total_items, 0),
    ):
        if isinstance(number, bool) or not isinstance(number, int):
            problems.append({
                "path": name,
                "error": "type_mismatch",
                "message": f"'{name}' must be an integer",
                "received": type(number).__name__,
            })
        elif number < minimum:
            problems.append({
                "path": name,
                "error": "out_of_range",
                "message": f"'{name}' must be >= {minimum}",
                "received": number,
            })
    if problems:
        raise PaginationInvalid(
            message=f"{len(problems)} pagination error(s)",
            details={"violations": problems},
        )

    values = list(values)
    if len(values) > page_size:
        raise PageSizeExceeded(
            message=f"Page holds {len(values)} items but pageSize is {page_size}",
            details={"pageSize": page_size, "returned": len(values)},
        )

    computed_pages = (total_items + page_size - 1) // page_size
    if total_pages is not None and total_pages != computed_pages:
        logger.warning(
            f"Ignoring caller totalPages={total_pages}; recomputed {computed_pages}",
            extra={"event": "total_pages_mismatch", "schema": target.name},
        )

    data = []
    violations: List[Violation] = []
    for i, value in enumerate(values):
        _guard_value(value)
        result = validate(_to_wire(value), target)
        if not result.ok:
            violations.extend(_prefixed(v, f"data[{i}]") for v in result.violations)
            continue
        _guard_resolved(result.schema)
        data.append(_to_wire(result.value))

    if violations:
        _log_violation("wrap_many", target.name, violations)
        details = {"schema": target.name, "violations": [v.to_dict() for v in violations]}
        message = f"{len(violations)} violation(s) in page of '{target.name}'"
        if any(v.error == "unknown_variant" for v in violations):
            raise UnknownVariant(message=message, details=details)
        raise SchemaMismatch(message=message, details=details)

    envelope = {
        "data": data,
        "pagination": {
            "page": page,
            "pageSize": page_size,
            "totalItems": total_items,
            "totalPages": computed_pages,
            "hasMore": page < computed_pages,
        },
        "meta": build_meta(meta),
    }
    _check_outbound(envelope, "PaginatedResponse", target)
    return envelope


def wrap_error(
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Build an ApiError body.

    Args:
        code: Error code from the closed taxonomy (e.g., "SCHEMA_MISMATCH")
        message: Human-readable error message
        details: Optional field-level details

    Raises:
        ValueError: If ``code`` is not a registered error code
    """
    code = token_of(code)
    if not ENUMS.is_member("error_code", code):
        raise ValueError(f"Unknown error code '{code}'")

    error = {
        "code": code,
        "message": message,
    }
    if details:
        error["details"] = details
    request_id = _request_id()
    if request_id:
        error["requestId"] = request_id

    validate(error, "ApiError").raise_for_violations()
    return error


def error_from_exception(exc: ContractViolation) -> Dict[str, Any]:
    """ApiError body for a contract violation."""
    return wrap_error(exc.code, exc.message, exc.details or None)


def build_meta(meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Envelope meta: timestamp, apiVersion and the request id when available."""
    out = {
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "apiVersion": get_api_version(),
    }
    request_id = _request_id()
    if request_id:
        out["requestId"] = request_id
    if meta:
        out.update(meta)
    return out


def _payload_schema(schema: SchemaLike) -> ObjectSchema:
    target = SCHEMAS.resolve(schema)
    if target.is_credential_bearing:
        _raise_credential_leak(target.name)
    if target.is_envelope:
        raise SchemaMismatch(
            message=f"Envelope '{target.name}' cannot be wrapped in another envelope",
            details={
                "schema": target.name,
                "violations": [{
                    "path": "data",
                    "error": "nested_envelope",
                    "message": "Payload schema must be a domain schema",
                }],
            },
        )
    return target


def _guard_value(value: Any) -> None:
    # Typed values keep their schema: a UserAuth model is refused under any name
    schema_name = SCHEMAS.credential_schema_of(value)
    if schema_name is None:
        schema_name = _credential_field_owner(_to_wire(value), SCHEMAS.credential_fields())
    if schema_name is not None:
        _raise_credential_leak(schema_name)


def _credential_field_owner(value: Any, credential_fields: Dict[str, str]) -> Optional[str]:
    """Schema owning the first credential field found anywhere in ``value``."""
    if isinstance(value, Mapping):
        for key, item in value.items():
            if key in credential_fields:
                return credential_fields[key]
            owner = _credential_field_owner(item, credential_fields)
            if owner is not None:
                return owner
    elif isinstance(value, (list, tuple)):
        for item in value:
            owner = _credential_field_owner(item, credential_fields)
            if owner is not None:
                return owner
    return None


def _guard_resolved(schema_name: Optional[str]) -> None:
    # A discriminated payload may resolve to a credential-bearing variant
    resolved = SCHEMAS.get(schema_name) if schema_name else None
    if resolved is not None and resolved.is_credential_bearing:
        _raise_credential_leak(resolved.name)


def _raise_credential_leak(schema_name: str) -> None:
    logger.error(
        f"Refusing to emit credential-bearing schema '{schema_name}'",
        extra={"event": "credential_leak", "schema": schema_name},
    )
    raise CredentialLeak(
        message=f"Schema '{schema_name}' is credential-bearing and cannot be emitted",
        details={"schema": schema_name},
    )


def _check_outbound(envelope: Dict[str, Any], envelope_schema: str, payload: ObjectSchema) -> None:
    result = validate(envelope, envelope_schema, payload=payload)
    if not result.ok:
        _log_violation(envelope_schema, payload.name, result.violations)
        raise SchemaMismatch(
            message=f"Outbound {envelope_schema} does not match contract",
            details=result.to_details(),
        )


def _to_wire(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, Mapping):
        return dict(value)
    return value


def _prefixed(violation: Violation, prefix: str) -> Violation:
    if violation.path == ROOT_PATH:
        return replace(violation, path=prefix)
    return replace(violation, path=f"{prefix}.{violation.path}")


def _request_id() -> Optional[str]:
    if has_app_context() and hasattr(g, 'request_id'):
        return g.request_id
    return None


def _log_violation(stage: str, schema_name: str, violations: List[Violation]) -> None:
    """Log contract violation for observability."""
    logger.warning(
        f"Contract violation: stage={stage} schema={schema_name} count={len(violations)}",
        extra={
            "event": "contract_violation",
            "stage": stage,
            "schema": schema_name,
            "violations": [v.to_dict() for v in violations],
        },
    )
