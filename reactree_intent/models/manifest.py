"""Manifest data models for agent/skill descriptors."""

import json
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Category = Literal["agent", "skill"]


class ManifestEntry(BaseModel):
    """One agent or skill, summarized for the classification prompt."""

    model_config = ConfigDict(populate_by_name=True)
    name: str = Field(..., min_length=1)
    category: Category = Field(..., alias="type")
    description: str = ""


class Manifest(BaseModel):
    """Combined manifest of every available agent and skill.

    Serialized form (one cache file, rewritten whole on every generation):
    {"timestamp": "2026-10-18T10:00:00Z", "agents": [...], "skills": [...]}
    """

    timestamp: str
    agents: list[ManifestEntry] = Field(default_factory=list)
    skills: list[ManifestEntry] = Field(default_factory=list)

    def to_json(self) -> str:
        """Render the manifest the way it is cached and embedded in prompts."""
        return json.dumps(self.model_dump(mode="json", by_alias=True), indent=2, ensure_ascii=False)
