"""Configuration helpers."""

from .loader import expand_env, get_default_config_path, load_config, load_config_with_overrides
from .models import CatalogConfig, DiscoConfig, DnsConfig, NamingConfig

__all__ = [
    "CatalogConfig",
    "DiscoConfig",
    "DnsConfig",
    "NamingConfig",
    "expand_env",
    "get_default_config_path",
    "load_config",
    "load_config_with_overrides",
]
