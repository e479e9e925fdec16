"""Core domain models, configuration and errors."""

from llm_radar.core.categories import Category, ClassificationResult
from llm_radar.core.config import KnowledgeBaseConfig, ModelInfo, ProviderInfo, RunConfig
from llm_radar.core.errors import (
    ConfigurationError,
    DiscoveryError,
    ProbeError,
    ProbeStartError,
    ProbeTimeoutError,
    RadarError,
)
from llm_radar.core.results import CachedEntry, ModelResult

__all__ = [
    "CachedEntry",
    "Category",
    "ClassificationResult",
    "ConfigurationError",
    "DiscoveryError",
    "KnowledgeBaseConfig",
    "ModelInfo",
    "ModelResult",
    "ProbeError",
    "ProbeStartError",
    "ProbeTimeoutError",
    "ProviderInfo",
    "RadarError",
    "RunConfig",
]
