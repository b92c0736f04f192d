"""
Envelope schemas, generic over a payload schema T.

- ApiResponse<T>:       {data: T, meta}
- PaginatedResponse<T>: {data: [T], pagination, meta}
- ApiError:             {code, message, details?, requestId?}

``data`` refers to PAYLOAD_REF; validate(envelope, "ApiResponse", payload="User")
binds T. Envelope schemas are tagged so they can never be bound as T.
"""

from datetime import datetime

from ..registry import ENVELOPE, PAYLOAD_REF, FieldSpec, ObjectSchema, register_schema


# =============================================================================
# META
# =============================================================================

RESPONSE_META_SCHEMA = register_schema(ObjectSchema(
    name="ResponseMeta",
    tags={ENVELOPE},
    fields={
        "timestamp": FieldSpec(name="timestamp", type=datetime, required=True),
        "apiVersion": FieldSpec(name="apiVersion", type=str, required=True, min_length=1),
        "requestId": FieldSpec(name="requestId", type=str),
    },
))


PAGINATION_META_SCHEMA = register_schema(ObjectSchema(
    name="PaginationMeta",
    tags={ENVELOPE},
    description="totalPages and hasMore are always derived",
    fields={
        "page": FieldSpec(name="page", type=int, required=True, min_value=1),
        "pageSize": FieldSpec(name="pageSize", type=int, required=True, min_value=1),
        "totalItems": FieldSpec(name="totalItems", type=int, required=True, min_value=0),
        "totalPages": FieldSpec(name="totalPages", type=int, required=True, min_value=0),
        "hasMore": FieldSpec(name="hasMore", type=bool, required=True),
    },
))


# =============================================================================
# ENVELOPES
# =============================================================================

API_RESPONSE_SCHEMA = register_schema(ObjectSchema(
    name="ApiResponse",
    tags={ENVELOPE},
    fields={
        "data": FieldSpec(name="data", type=dict, required=True, ref=PAYLOAD_REF),
        "meta": FieldSpec(name="meta", type=dict, required=True, ref="ResponseMeta"),
    },
))


PAGINATED_RESPONSE_SCHEMA = register_schema(ObjectSchema(
    name="PaginatedResponse",
    tags={ENVELOPE},
    fields={
        "data": FieldSpec(
            name="data", type=list, required=True,
            items=FieldSpec(name="data[]", type=dict, ref=PAYLOAD_REF),
        ),
        "pagination": FieldSpec(name="pagination", type=dict, required=True, ref="PaginationMeta"),
        "meta": FieldSpec(name="meta", type=dict, required=True, ref="ResponseMeta"),
    },
))


API_ERROR_SCHEMA = register_schema(ObjectSchema(
    name="ApiError",
    tags={ENVELOPE},
    fields={
        "code": FieldSpec(name="code", type=str, required=True, enum="error_code"),
        "message": FieldSpec(name="message", type=str, required=True),
        "details": FieldSpec(name="details", type=dict,
                             description="Field-level details, e.g. {'violations': [...]}"),
        "requestId": FieldSpec(name="requestId", type=str),
    },
))
