"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import DEFAULT_SOURCE_URL, PipelineConfig

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "DEFAULT_SOURCE_URL",
    "PipelineConfig",
]
