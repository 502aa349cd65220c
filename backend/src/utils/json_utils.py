"""
JSON utilities for parsing and validating LLM output.

The model is treated as a fallible transcoder: its text either becomes a
schema-valid Python object here, or an `LLMOutputError` is raised. Nothing
unvalidated leaves this module.
"""

import json
import re
from typing import Any, Dict

from jsonschema import Draft7Validator, ValidationError


_FENCE_RE = re.compile(r"^\s*```[a-zA-Z0-9_-]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)


QUESTIONS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["questions"],
    "properties": {
        "questions": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["question", "answer"],
                "properties": {
                    "question": {"type": "string", "minLength": 1},
                    "answer": {"type": "string", "minLength": 1},
                },
            },
        }
    },
}

EXPLANATION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["title", "explanation"],
    "properties": {
        "title": {"type": "string", "minLength": 1},
        "explanation": {"type": "string", "minLength": 1},
    },
}


class LLMOutputError(ValueError):
    """The model's reply could not be turned into the expected structure."""


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` fence if present."""
    match = _FENCE_RE.match(text)
    return match.group(1).strip() if match else text.strip()


def parse_llm_json(text: str, schema: Dict[str, Any]) -> Any:
    """Decode `text` as JSON and validate it against `schema`.

    A bare JSON array is accepted where the schema expects {"questions": [...]},
    since models sometimes drop the wrapper object.

    Raises:
        LLMOutputError: Empty text, invalid JSON, or schema mismatch
    """
    if not text or not text.strip():
        raise LLMOutputError("empty response")

    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise LLMOutputError(f"invalid JSON: {e.msg} at position {e.pos}")
    except (RecursionError, ValueError) as e:
        # Pathologically nested arrays exhaust the decoder's recursion limit
        raise LLMOutputError(f"invalid JSON: {type(e).__name__}")

    if isinstance(data, list) and "questions" in schema.get("required", []):
        data = {"questions": data}

    try:
        Draft7Validator(schema).validate(data)
    except ValidationError as e:
        field = ".".join(str(x) for x in e.absolute_path) if e.absolute_path else "root"
        raise LLMOutputError(f"schema mismatch at {field}: {e.message}")
    return data
