"""Configuration management for flexvers."""

from __future__ import annotations

from flexvers.config.loader import find_config_file, load_config, parse_config
from flexvers.config.models import (
    BranchConfig,
    CommitsConfig,
    FallbackBranchConfig,
    FlexversConfig,
    ProviderConfig,
    TaggingConfig,
)

__all__ = [
    "BranchConfig",
    "CommitsConfig",
    "FallbackBranchConfig",
    "FlexversConfig",
    "ProviderConfig",
    "TaggingConfig",
    "find_config_file",
    "load_config",
    "parse_config",
]
