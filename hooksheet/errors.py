# hooksheet/errors.py
"""
Error taxonomy for the webhook transformation pipeline.

Every error carries a stable `code` (surfaced in API responses and metrics)
and an optional `details` dict.

  TransformationError
    InputError        E_INPUT_INVALID   raw payload is not JSON; never reaches the oracle
    OracleError       E_ORACLE_FAILED   oracle unreachable, timed out or returned nothing
    ValidationError   E_VALIDATION      oracle answered but broke the flat-record contract
      ParseError      E_PARSE           not a single JSON object
      ShapeError      E_SHAPE           at least one nested object/array value
  ExportError         E_EMPTY_STORE     nothing to export (a no-op, not a failure)
  DuplicateRowError   E_DUPLICATE_ID    row id already used in this store
"""

from typing import Any, Dict, List, Optional

E_INPUT_INVALID = "E_INPUT_INVALID"
E_ORACLE_FAILED = "E_ORACLE_FAILED"
E_VALIDATION = "E_VALIDATION"
E_PARSE = "E_PARSE"
E_SHAPE = "E_SHAPE"
E_EMPTY_STORE = "E_EMPTY_STORE"
E_DUPLICATE_ID = "E_DUPLICATE_ID"


class TransformationError(Exception):
    code = "E_TRANSFORMATION"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InputError(TransformationError):
    code = E_INPUT_INVALID


class OracleError(TransformationError):
    code = E_ORACLE_FAILED


class ValidationError(TransformationError):
    code = E_VALIDATION


class ParseError(ValidationError):
    code = E_PARSE


class ShapeError(ValidationError):
    code = E_SHAPE

    def __init__(self, message: str, offending_keys: Optional[List[str]] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.offending_keys = sorted(offending_keys or [])
        merged = dict(details or {})
        merged.setdefault("offending_keys", self.offending_keys)
        super().__init__(message, merged)


class ExportError(Exception):
    code = E_EMPTY_STORE


class DuplicateRowError(ValueError):
    code = E_DUPLICATE_ID
