"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import FieldDescriptor, FieldKind, SourceConfig, WatchConfig

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "FieldDescriptor",
    "FieldKind",
    "SourceConfig",
    "WatchConfig",
]
