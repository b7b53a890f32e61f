"""retrieval_hub.config

Configuration subsystem for the retrieval hub.

This package provides structured access to global and component-level
configuration loaded from YAML files. It exposes validated, documented
interfaces rather than raw configuration dictionaries.

Modules
-------
global_config
    Global configuration loader, cached accessors and hub settings.
"""
from .global_config import GlobalConfig, RetrievalHubConfig

__all__ = ["GlobalConfig", "RetrievalHubConfig"]
