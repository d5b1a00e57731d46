"""Project-local smart detection settings."""

from typing import Literal

from pydantic import BaseModel


class HookSettings(BaseModel):
    """Frontmatter keys of .claude/reactree-rails-dev.local.md used by the prompt hook."""

    smart_detection_enabled: bool = True
    detection_mode: Literal["suggest", "inject", "disabled"] = "suggest"
    annoyance_threshold: Literal["low", "medium", "high"] = "medium"
    ai_detection_enabled: bool = False

    @property
    def enabled(self) -> bool:
        return self.smart_detection_enabled and self.detection_mode != "disabled"
