"""Data models for manifests, intent results and hook settings."""

from .intent import AgentRecommendation, AnalysisError, ErrorKind, IntentAnalysisResult
from .manifest import Category, Manifest, ManifestEntry
from .settings import HookSettings

__all__ = [
    "AgentRecommendation",
    "AnalysisError",
    "Category",
    "ErrorKind",
    "HookSettings",
    "IntentAnalysisResult",
    "Manifest",
    "ManifestEntry",
]
