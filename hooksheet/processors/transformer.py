# hooksheet/processors/transformer.py
"""
Transformation oracle client.

Functions:
- parse_payload(raw_payload) -> parsed JSON value   (raises InputError)
- build_user_prompt(raw_payload, instructions) -> str
- transform(raw_payload, instructions) -> FlatRecord

The oracle (an LLM) does all flattening and formatting. This client only shapes
the request, detects transport failures and empty answers, and hands the text to
the flat-record validator.
"""

import json
import os
import time
from typing import Any, Dict

from hooksheet import monitoring
from hooksheet.errors import InputError, OracleError, ValidationError
from hooksheet.llm_wrapper import call_llm as _llm_call, DEFAULT_MODEL as _WRAPPER_DEFAULT
from hooksheet.schemas import FlatRecord
from hooksheet.validator import check_flat_record, reject_non_finite_constant

ORACLE_SYSTEM_PROMPT = """
You are a data integration (ETL) specialist for webhooks.
You receive the raw JSON body of a webhook and must turn it into ONE flat JSON object (key/value pairs) that will be inserted as a spreadsheet row.

Rules:
1. Analyze the input JSON.
2. Follow the user's transformation instructions strictly. If there are no instructions, or they are vague, flatten nested objects with compound keys (e.g. customer.address.city becomes customer_address_city) and extract the most salient fields.
3. The output MUST be a single valid JSON object only. No markdown code fences, no explanatory text.
4. Normalize dates and times to ISO 8601 (or YYYY-MM-DD HH:mm) when possible.
5. Every value must be a primitive: string, number, boolean or null. Never return arrays or nested objects as values; convert arrays into a single comma-separated string.
"""

USER_PROMPT_TEMPLATE = """WEBHOOK_PAYLOAD (JSON):
{payload}

TRANSFORMATION_INSTRUCTIONS:
{instructions}
"""

NO_INSTRUCTIONS = "(none provided)"

ORACLE_MODEL = os.getenv("ORACLE_LLM_MODEL", _WRAPPER_DEFAULT)
ORACLE_TEMPERATURE = float(os.getenv("ORACLE_TEMPERATURE", "0.1"))
ORACLE_TIMEOUT_SECONDS = float(os.getenv("ORACLE_TIMEOUT_SECONDS", "30"))
ORACLE_MAX_TOKENS = int(os.getenv("ORACLE_MAX_TOKENS", "2048"))


def parse_payload(raw_payload: str) -> Any:
    """Parse the raw webhook body; anything that is not JSON text is the caller's error."""
    if not isinstance(raw_payload, str) or not raw_payload.strip():
        raise InputError("The webhook payload is empty.")
    try:
        return json.loads(raw_payload, parse_constant=reject_non_finite_constant)
    except ValueError as e:
        raise InputError(f"The webhook payload is not valid JSON: {e}",
                         {"line": getattr(e, "lineno", None), "column": getattr(e, "colno", None)}) from e


def build_user_prompt(raw_payload: str, instructions: str) -> str:
    instr = (instructions or "").strip() or NO_INSTRUCTIONS
    return USER_PROMPT_TEMPLATE.format(payload=raw_payload, instructions=instr)


def _strip_code_fence(text: str) -> str:
    s = text.strip()
    if s.startswith("```") and s.endswith("```"):
        lines = s.splitlines()
        if len(lines) >= 3:
            s = "\n".join(lines[1:-1]).strip()
    return s


# ---------------------------------------------------------------------------
# Mock oracle for dev mode (MOCK_OPENAI=true)
# ---------------------------------------------------------------------------

def _join_sequence(items: list) -> str:
    return ", ".join(i if isinstance(i, str) else json.dumps(i, separators=(",", ":")) for i in items)


def _mock_flatten(obj: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in obj.items():
        key = f"{prefix}_{k}" if prefix else str(k)
        if isinstance(v, dict):
            out.update(_mock_flatten(v, key))
        elif isinstance(v, list):
            out[key] = _join_sequence(v)
        else:
            out[key] = v
    return out


def _mock_oracle_response(user_prompt: str) -> str:
    """Deterministic stand-in: flattens the payload found in the prompt, ignores instructions."""
    after = user_prompt.split("WEBHOOK_PAYLOAD (JSON):", 1)[-1]
    after = after.split("\nTRANSFORMATION_INSTRUCTIONS:", 1)[0]
    payload = json.loads(after.strip())
    if isinstance(payload, dict):
        flat = _mock_flatten(payload)
    elif isinstance(payload, list):
        flat = {"value": _join_sequence(payload)}
    else:
        flat = {"value": payload}
    return json.dumps(flat)


# ---------------------------------------------------------------------------
# LLM call (real or mock)
# ---------------------------------------------------------------------------

def _call_llm(user_prompt: str) -> str:
    """
    Single oracle round trip. Returns the raw response text.
    Isolated so tests can monkeypatch without touching the SDK.
    """
    use_mock = os.getenv("MOCK_OPENAI", "true").lower() in ("1", "true", "yes")
    if use_mock:
        return _mock_oracle_response(user_prompt)

    resp = _llm_call(
        messages=[
            {"role": "system", "content": ORACLE_SYSTEM_PROMPT},
            {"role": "user", "content": user_prompt},
        ],
        model=ORACLE_MODEL,
        max_tokens=ORACLE_MAX_TOKENS,
        temperature=ORACLE_TEMPERATURE,
        timeout=ORACLE_TIMEOUT_SECONDS,
        json_mode=True,
    )
    return resp["text"]


def transform(raw_payload: str, instructions: str) -> FlatRecord:
    """
    Ask the oracle to normalize one webhook payload into a flat record.

    Raises:
      InputError       raw_payload is not JSON (no oracle call is made)
      OracleError      the oracle failed or answered with nothing
      ParseError       the answer is not a single JSON object
      ShapeError       the answer contains nested objects or arrays
    """
    parse_payload(raw_payload)
    user_prompt = build_user_prompt(raw_payload, instructions)

    start = time.time()
    try:
        text = _call_llm(user_prompt)
    except OracleError:
        monitoring.observe_oracle(start, "error")
        raise
    except Exception as e:
        monitoring.observe_oracle(start, "error")
        raise OracleError(f"Transformation oracle call failed: {e}") from e

    if text is None or not text.strip():
        monitoring.observe_oracle(start, "empty")
        raise OracleError("The transformation oracle returned an empty response.")

    try:
        record = check_flat_record(_strip_code_fence(text))
    except ValidationError as e:
        monitoring.observe_oracle(start, "invalid")
        monitoring.inc_validation_failure(e.code)
        raise
    monitoring.observe_oracle(start, "success")
    return record
