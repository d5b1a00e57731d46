"""JSON Schema validators."""

from .schemas import validate_intent, validate_manifest

__all__ = ["validate_intent", "validate_manifest"]
