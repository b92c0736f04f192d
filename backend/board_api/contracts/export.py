#!/usr/bin/env python3
"""
Export the registered contracts as JSON.

Outputs a sorted JSON document with every enumeration and schema plus a
sha256 digest of the blob, so consumers can detect contract drift.

Usage:
    python -m board_api.contracts.export --output contracts.json
    python -m board_api.contracts.export --stdout
"""

import argparse
import hashlib
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from board_api.config import Config, get_api_version

from .enums import ENUMS
from .registry import SCHEMAS, FieldSpec, ObjectSchema


def _normalize_type(type_value) -> str:
    if isinstance(type_value, type):
        return type_value.__name__
    return str(type_value)


def _normalize_value(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_normalize_value(v) for v in value]
    if isinstance(value, dict):
        return {k: _normalize_value(v) for k, v in value.items()}
    return value


def _serialize_field(field_spec: FieldSpec) -> Dict[str, Any]:
    out = {
        "name": field_spec.name,
        "type": _normalize_type(field_spec.type),
        "required": bool(field_spec.required),
        "nullable": bool(field_spec.nullable),
        "default": _normalize_value(field_spec.default),
        "allowed_values": _normalize_value(field_spec.allowed_values),
        "description": field_spec.description,
        "enum": field_spec.enum,
        "ref": field_spec.ref,
        "unique": field_spec.unique,
        "format": field_spec.format,
        "min_value": field_spec.min_value,
        "min_length": field_spec.min_length,
    }
    if field_spec.items is not None:
        out["items"] = _serialize_field(field_spec.items)
    return out


def _serialize_schema(schema: ObjectSchema) -> Dict[str, Any]:
    return {
        "name": schema.name,
        "version": schema.version,
        "description": schema.description,
        "tags": sorted(schema.tags),
        "discriminator": schema.discriminator,
        "extends": schema.extends,
        "variants": dict(schema.variants),
        "fields": {
            name: _serialize_field(spec)
            for name, spec in schema.fields.items()
        },
    }


def build_payload() -> Dict[str, Any]:
    """Registry contents as a JSON-ready dict (without timestamps)."""
    return {
        "apiVersion": get_api_version(),
        "enumerations": {
            name: sorted(ENUMS.get(name))
            for name in ENUMS.names()
        },
        "schemas": {
            name: _serialize_schema(SCHEMAS.get(name))
            for name in sorted(SCHEMAS.names())
        },
    }


def render(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, indent=2, sort_keys=True) + "\n"


def contract_digest(payload: Dict[str, Any]) -> str:
    """sha256 over the rendered payload; stable while the contracts are unchanged."""
    return hashlib.sha256(render(payload).encode("utf-8")).hexdigest()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Export registered API contracts as JSON")
    parser.add_argument("--output", "-o", default=Config.CONTRACT_EXPORT_PATH,
                        help="File to write (default: %(default)s)")
    parser.add_argument("--stdout", action="store_true",
                        help="Print to stdout instead of writing a file")
    args = parser.parse_args(argv)

    payload = build_payload()
    digest = contract_digest(payload)
    document = dict(payload)
    document["digest"] = digest
    document["generated_at"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    blob = render(document)

    if args.stdout:
        sys.stdout.write(blob)
        return 0

    out_path = Path(args.output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(blob)
    print(f"Wrote {out_path} ({len(payload['schemas'])} schemas, sha256 {digest[:12]})")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
