"""Core infrastructure: settings and structured logging."""

from infraprop.core.config import (
    HarnessSettings,
    ModuleSettings,
    ProviderSettings,
    TerraformSettings,
    TrialSettings,
    load_default_settings,
    load_settings,
    resolve_settings,
)
from infraprop.core.logging import configure_logging, get_logger

__all__ = [
    "HarnessSettings",
    "ModuleSettings",
    "ProviderSettings",
    "TerraformSettings",
    "TrialSettings",
    "configure_logging",
    "get_logger",
    "load_default_settings",
    "load_settings",
    "resolve_settings",
]
