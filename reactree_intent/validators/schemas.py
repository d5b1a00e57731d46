"""Manifest and intent payload validation against JSON Schema."""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema

CONTRACTS_DIR = Path(__file__).parent.parent / "contracts"
MANIFEST_SCHEMA_PATH = CONTRACTS_DIR / "manifest_schema.json"
INTENT_SCHEMA_PATH = CONTRACTS_DIR / "intent_schema.json"


@lru_cache(maxsize=None)
def _load_schema(path: Path) -> dict:
    """Load a JSON schema from the contracts directory."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _validate(instance: Any, schema_path: Path) -> tuple[bool, list[str]]:
    errors: list[str] = []
    try:
        schema = _load_schema(schema_path)
        jsonschema.validate(instance=instance, schema=schema)
    except jsonschema.ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
    except FileNotFoundError:
        errors.append(f"Schema file not found: {schema_path}")
    except json.JSONDecodeError as e:
        errors.append(f"Schema JSON decode error: {e}")
    return (len(errors) == 0, errors)


def validate_manifest(manifest: Any) -> tuple[bool, list[str]]:
    """
    Validate a decoded manifest ({timestamp, agents, skills}).

    Args:
        manifest: The decoded cache file contents.

    Returns:
        A tuple of (is_valid, list_of_errors).
    """
    return _validate(manifest, MANIFEST_SCHEMA_PATH)


def validate_intent(payload: Any) -> tuple[bool, list[str]]:
    """
    Validate an intent object extracted from Claude output.

    Args:
        payload: The decoded JSON object.

    Returns:
        A tuple of (is_valid, list_of_errors). Invalid means the required
        primary_intent field is missing or not a string.
    """
    return _validate(payload, INTENT_SCHEMA_PATH)
