"""Configuration package exports."""

from .loader import default_config_path, load_settings
from .model import DEFAULT_CAPABILITIES, ClientSettings, split_server_address

__all__ = [
    "ClientSettings",
    "DEFAULT_CAPABILITIES",
    "default_config_path",
    "load_settings",
    "split_server_address",
]
