"""Tests for manifest and intent schema validation."""

import json

import pytest

from reactree_intent.models.manifest import Manifest, ManifestEntry
from reactree_intent.validators.schemas import validate_intent, validate_manifest


@pytest.fixture
def valid_manifest():
    """Return a valid decoded manifest."""
    return {
        "timestamp": "2026-10-18T10:00:00Z",
        "agents": [{"name": "file-finder", "type": "agent", "description": "Locate files by pattern"}],
        "skills": [{"name": "RSpec Testing Patterns", "type": "skill", "description": ""}],
    }


class TestValidateManifest:
    """Tests for validate_manifest()."""

    def test_valid_manifest_passes(self, valid_manifest):
        """Valid manifest passes validation."""
        is_valid, errors = validate_manifest(valid_manifest)
        assert is_valid is True
        assert errors == []

    def test_empty_lists_pass(self, valid_manifest):
        """A plugin without descriptors still has a valid manifest."""
        valid_manifest["agents"] = []
        valid_manifest["skills"] = []
        assert validate_manifest(valid_manifest) == (True, [])

    @pytest.mark.parametrize("field", ["timestamp", "agents", "skills"])
    def test_missing_top_level_field(self, valid_manifest, field):
        """Every top-level field is required."""
        del valid_manifest[field]
        is_valid, errors = validate_manifest(valid_manifest)
        assert is_valid is False
        assert any(field in e for e in errors)

    def test_empty_name_fails(self, valid_manifest):
        """Entry names must be non-empty."""
        valid_manifest["agents"][0]["name"] = ""
        is_valid, _ = validate_manifest(valid_manifest)
        assert is_valid is False

    def test_unknown_type_fails(self, valid_manifest):
        """Entry type is agent or skill."""
        valid_manifest["skills"][0]["type"] = "command"
        is_valid, _ = validate_manifest(valid_manifest)
        assert is_valid is False

    def test_not_an_object_fails(self):
        """A JSON array is not a manifest."""
        is_valid, errors = validate_manifest([])
        assert is_valid is False
        assert errors[0].startswith("Schema validation error")

    def test_model_output_validates(self):
        """Serialized Manifest models satisfy the schema."""
        manifest = Manifest(
            timestamp="2026-10-18T10:00:00Z",
            agents=[ManifestEntry(name="file-finder", category="agent", description="Locate files")],
        )
        assert validate_manifest(json.loads(manifest.to_json())) == (True, [])


class TestValidateIntent:
    """Tests for validate_intent()."""

    def test_minimal_intent(self):
        """Only primary_intent is required."""
        assert validate_intent({"primary_intent": "question"}) == (True, [])

    def test_extra_fields_allowed(self):
        """Other fields are not checked here."""
        is_valid, _ = validate_intent({"primary_intent": "feature", "confidence": "high", "extra": [1]})
        assert is_valid is True

    @pytest.mark.parametrize("payload", [{}, {"primary_intent": None}, {"primary_intent": 1}, "feature"])
    def test_invalid_intent(self, payload):
        """A missing or non-string primary_intent fails."""
        is_valid, errors = validate_intent(payload)
        assert is_valid is False
        assert len(errors) == 1
