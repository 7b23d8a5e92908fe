"""
Profile configuration for plimit.
"""

from .profile_config import (
    CONFIG_ENV_VAR,
    LimitProfile,
    ProfileConfigFile,
    ProfileConfigLoader,
    default_config_path,
    load_profiles,
)

__all__ = [
    'CONFIG_ENV_VAR',
    'LimitProfile',
    'ProfileConfigFile',
    'ProfileConfigLoader',
    'default_config_path',
    'load_profiles',
]
