"""ReAcTree intent detection: descriptor manifests + Claude CLI intent analysis."""

__version__ = "2.1.0"
