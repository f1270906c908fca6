# hooksheet/validator.py
"""
Flat-record validator: the single gate between untrusted oracle output and the
record store.

This module provides:
- check_flat_record(text) -> FlatRecord        (raises ParseError / ShapeError)
- validate_oracle_output(text) -> { valid, record, errors, error_code }
- is_flat_record(obj) -> bool                   (for already-parsed mappings)

A flat record is a single JSON object whose values are all string, number,
boolean or null. Nested objects and arrays are rejected, never repaired; the
oracle is responsible for flattening.

All functions are pure.
"""

import json
import math
from typing import Any, Dict, List

from jsonschema import Draft7Validator

from hooksheet.errors import ParseError, ShapeError, ValidationError
from hooksheet.schemas import FlatRecord

FLAT_RECORD_SCHEMA = {
    "type": "object",
    "additionalProperties": {"type": ["string", "number", "boolean", "null"]},
}

_FLAT_RECORD_VALIDATOR = Draft7Validator(FLAT_RECORD_SCHEMA)


def reject_non_finite_constant(name: str):
    # json.loads accepts NaN / Infinity / -Infinity by default; they have no canonical decimal form
    raise ValueError(f"non-finite number '{name}' is not valid JSON")


def _non_finite_keys(obj: Dict[str, Any]) -> List[str]:
    # out-of-range literals such as 1e999 parse to inf without going through parse_constant
    return sorted(k for k, v in obj.items() if isinstance(v, float) and not math.isfinite(v))


def _json_kind(obj: Any) -> str:
    if isinstance(obj, list):
        return "array"
    if obj is None:
        return "null"
    if isinstance(obj, bool):
        return "boolean"
    if isinstance(obj, (int, float)):
        return "number"
    return "string"


def _shape_violations(obj: Dict[str, Any]) -> List[str]:
    """Return the keys whose values are nested objects or arrays."""
    keys = set()
    for err in _FLAT_RECORD_VALIDATOR.iter_errors(obj):
        if err.path:
            keys.add(str(err.path[0]))
    return sorted(keys)


def is_flat_record(obj: Any) -> bool:
    return (
        isinstance(obj, dict)
        and all(isinstance(k, str) for k in obj)
        and not _shape_violations(obj)
        and not _non_finite_keys(obj)
    )


def check_flat_record(text: str) -> FlatRecord:
    """
    Parse oracle output and enforce the flat-record contract.

    Raises:
      ParseError  if the text is not JSON, not a single JSON object, or holds a
                  number that overflows to infinity
      ShapeError  if any value is a nested object or an array
    """
    if not isinstance(text, str):
        raise ParseError(f"Oracle output must be text, got {type(text).__name__}.")
    try:
        parsed = json.loads(text, parse_constant=reject_non_finite_constant)
    except ValueError as e:
        raise ParseError(f"Oracle output is not valid JSON: {e}", {"raw_sample": text[:500]}) from e

    if not isinstance(parsed, dict):
        kind = _json_kind(parsed)
        raise ParseError(f"Oracle output must be a single JSON object, got {kind}.", {"kind": kind})

    non_finite = _non_finite_keys(parsed)
    if non_finite:
        raise ParseError(
            f"Oracle output has numbers outside the finite range for keys: {non_finite}",
            {"non_finite_keys": non_finite},
        )

    offending = _shape_violations(parsed)
    if offending:
        raise ShapeError(
            f"Oracle output has nested object/array values for keys: {offending}",
            offending_keys=offending,
        )
    return parsed


def validate_oracle_output(text: str) -> Dict[str, Any]:
    """
    Non-raising wrapper around check_flat_record:
      { valid, record, errors, error_code }
    """
    try:
        record = check_flat_record(text)
    except ValidationError as e:
        return {
            "valid": False,
            "record": None,
            "errors": [e.message],
            "error_code": e.code,
        }
    return {"valid": True, "record": record, "errors": [], "error_code": None}
