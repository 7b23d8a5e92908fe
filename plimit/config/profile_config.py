"""
YAML Configuration for Limit Profiles

Allows defining named limit profiles in YAML configuration files so that
common limit sets do not have to be spelled out on every invocation.

Configuration Structure:
    version: "1"
    defaults:
      cgroup_root: /sys/fs/cgroup
      default_parent: plimit
      controllers: [cpu, memory, io]
    profiles:
      small:
        description: "Quarter CPU, 256M"
        cpu_percent: 25
        mem_max: 256M
        io_max:
          - "8:0 rbps=1048576"

Usage:
    from plimit.config.profile_config import ProfileConfigLoader

    loader = ProfileConfigLoader()
    loader.load_config("/etc/plimit/profiles.yaml")

    profile = loader.get_profile("small")
    spec = profile.apply_to(LimitSpec(pid=1234))
"""

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from ..cgroups.limits import LimitSpec
from ..cgroups.paths import split_name
from ..constants import Paths, _is_controller_name
from ..exceptions import ArgumentError, ConfigError, ParseError
from ..utils.parsing import parse_byte_size

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PLIMIT_CONFIG"

_PROFILE_FIELDS = frozenset({
    'description', 'cpu_percent', 'cpu_quota', 'cpu_period', 'cpu_max', 'mem_max', 'io_max',
})
_DEFAULT_FIELDS = frozenset({'cgroup_root', 'default_parent', 'controllers'})
_TOP_LEVEL_FIELDS = frozenset({'version', 'defaults', 'profiles'})

# LimitSpec fields that together describe one CPU limit
_CPU_FIELDS = ('cpu_percent', 'cpu_quota', 'cpu_period', 'cpu_max_raw')


def _check_fields(where: str, data: Dict[str, Any], allowed: frozenset) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ConfigError(f"{where}: unknown field(s): {', '.join(map(str, unknown))}")


def _optional_int(where: str, key: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{where}: '{key}' must be an integer, got {value!r}")
    return value


def _optional_str(where: str, key: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{where}: '{key}' must be a string, got {value!r}")
    return value


@dataclass
class LimitProfile:
    """A named set of limits loaded from YAML."""
    name: str
    description: str = ""
    cpu_percent: Optional[int] = None  # 1-100
    cpu_quota: Optional[int] = None  # Microseconds
    cpu_period: Optional[int] = None  # Microseconds
    cpu_max: Optional[str] = None  # e.g., "max 100000"
    mem_max: Optional[int] = None  # Bytes
    io_max: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> 'LimitProfile':
        """Create from dictionary."""
        where = f"profile '{name}'"
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"{where}: expected a mapping")
        _check_fields(where, data, _PROFILE_FIELDS)

        mem_max = data.get('mem_max')
        if isinstance(mem_max, bool):
            raise ConfigError(f"{where}: 'mem_max' must be a size, got {mem_max!r}")
        if isinstance(mem_max, str):
            try:
                mem_max = parse_byte_size(mem_max)
            except ParseError as e:
                raise ConfigError(f"{where}: 'mem_max': {e}") from e
        elif mem_max is not None and not isinstance(mem_max, int):
            raise ConfigError(f"{where}: 'mem_max' must be a size, got {mem_max!r}")

        io_max = data.get('io_max') or ()
        if isinstance(io_max, str):
            io_max = (io_max,)
        if not isinstance(io_max, (list, tuple)) or not all(isinstance(e, str) for e in io_max):
            raise ConfigError(f"{where}: 'io_max' must be a string or a list of strings")

        return cls(
            name=name,
            description=_optional_str(where, 'description', data.get('description')) or "",
            cpu_percent=_optional_int(where, 'cpu_percent', data.get('cpu_percent')),
            cpu_quota=_optional_int(where, 'cpu_quota', data.get('cpu_quota')),
            cpu_period=_optional_int(where, 'cpu_period', data.get('cpu_period')),
            cpu_max=_optional_str(where, 'cpu_max', data.get('cpu_max')),
            mem_max=mem_max,
            io_max=tuple(io_max),
        )

    def to_spec_values(self) -> Dict[str, Any]:
        """Values in LimitSpec field names, unset ones omitted."""
        values = {
            'cpu_percent': self.cpu_percent,
            'cpu_quota': self.cpu_quota,
            'cpu_period': self.cpu_period,
            'cpu_max_raw': self.cpu_max,
            'mem_max': self.mem_max,
            'io_max': self.io_max or None,
        }
        return {k: v for k, v in values.items() if v is not None}

    def apply_to(self, spec: LimitSpec) -> LimitSpec:
        """
        Fill the unset limits of `spec` from this profile.

        Values already present in `spec` win. The CPU limit is taken as a
        whole: if `spec` carries any CPU form, none of the profile's CPU
        fields are used.
        """
        values = self.to_spec_values()
        if spec.has_cpu_limit:
            for key in _CPU_FIELDS:
                values.pop(key, None)
        return spec.with_defaults(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'name': self.name,
            'description': self.description,
            'cpu_percent': self.cpu_percent,
            'cpu_quota': self.cpu_quota,
            'cpu_period': self.cpu_period,
            'cpu_max': self.cpu_max,
            'mem_max': self.mem_max,
            'io_max': list(self.io_max),
        }


@dataclass
class ProfileConfigFile:
    """Complete profile configuration file."""
    version: str = "1"
    profiles: Dict[str, LimitProfile] = field(default_factory=dict)
    defaults: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProfileConfigFile':
        """Create from dictionary."""
        if not isinstance(data, dict):
            raise ConfigError("configuration must be a mapping")
        _check_fields("configuration", data, _TOP_LEVEL_FIELDS)

        defaults = data.get('defaults') or {}
        if not isinstance(defaults, dict):
            raise ConfigError("'defaults' must be a mapping")
        _check_fields("defaults", defaults, _DEFAULT_FIELDS)
        for key in ('cgroup_root', 'default_parent'):
            _optional_str("defaults", key, defaults.get(key))
        cgroup_root = defaults.get('cgroup_root')
        if cgroup_root is not None and not os.path.isabs(cgroup_root):
            raise ConfigError(f"defaults: 'cgroup_root' must be an absolute path, got {cgroup_root!r}")
        default_parent = defaults.get('default_parent')
        if default_parent is not None:
            try:
                segments = split_name(default_parent)
            except ArgumentError as e:
                raise ConfigError(f"defaults: 'default_parent': {e}") from e
            if len(segments) != 1:
                raise ConfigError(
                    f"defaults: 'default_parent' must be a single name, got {default_parent!r}")
        controllers = defaults.get('controllers')
        if controllers is not None:
            if not isinstance(controllers, list) or not all(isinstance(c, str) for c in controllers):
                raise ConfigError("defaults: 'controllers' must be a list of strings")
            invalid = [c for c in controllers if not _is_controller_name(c)]
            if invalid:
                raise ConfigError(f"defaults: invalid controller name(s): {invalid}")
            defaults = dict(defaults, controllers=tuple(controllers))

        profiles_data = data.get('profiles') or {}
        if not isinstance(profiles_data, dict):
            raise ConfigError("'profiles' must be a mapping")

        profiles = {}
        for name, profile_data in profiles_data.items():
            profiles[str(name)] = LimitProfile.from_dict(str(name), profile_data)

        return cls(
            version=str(data.get('version', '1')),
            profiles=profiles,
            defaults=defaults,
        )


class ProfileConfigLoader:
    """
    Loads and manages limit profiles from YAML configuration.

    Supports loading from a single file or from every *.yaml / *.yml file
    in a directory. Later files override profiles of the same name.
    """

    def __init__(self):
        self._profiles: Dict[str, LimitProfile] = {}
        self._defaults: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._loaded_files: List[Path] = []

    @property
    def loaded_files(self) -> List[Path]:
        return list(self._loaded_files)

    @property
    def defaults(self) -> Dict[str, Any]:
        """Merged `defaults` sections, suitable as PlimitSettings overrides."""
        with self._lock:
            return dict(self._defaults)

    def load_config(self, path: Union[str, Path]) -> int:
        """
        Load configuration from file or directory.

        Returns:
            Number of profiles loaded

        Raises:
            ConfigError: path missing, unreadable or malformed
        """
        path = Path(path)

        if path.is_dir():
            return self._load_directory(path)
        return self._load_file(path)

    def _load_file(self, path: Path) -> int:
        """Load a single configuration file."""
        if not path.exists():
            raise ConfigError("config file not found", path=str(path))

        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML: {e}", path=str(path)) from e
        except OSError as e:
            raise ConfigError(f"cannot read config: {e.strerror or e}", path=str(path)) from e

        if not data:
            logger.warning(f"Empty config file: {path}")
            return 0

        try:
            config = ProfileConfigFile.from_dict(data)
        except ConfigError as e:
            raise ConfigError(e.message, path=str(path)) from e

        with self._lock:
            self._loaded_files.append(path)
            self._profiles.update(config.profiles)
            self._defaults.update(config.defaults)

        logger.debug(f"Loaded {len(config.profiles)} profiles from {path}")
        return len(config.profiles)

    def _load_directory(self, path: Path) -> int:
        """Load all YAML files from a directory."""
        count = 0
        for config_file in sorted(list(path.glob("*.yaml")) + list(path.glob("*.yml"))):
            count += self._load_file(config_file)
        return count

    def get_profile(self, name: str) -> Optional[LimitProfile]:
        """Get a profile by name."""
        with self._lock:
            return self._profiles.get(name)

    def require_profile(self, name: str) -> LimitProfile:
        """Get a profile by name, raising ConfigError if unknown."""
        profile = self.get_profile(name)
        if profile is None:
            raise ConfigError(f"unknown profile '{name}'")
        return profile

    def list_profiles(self) -> List[str]:
        """List all available profile names."""
        with self._lock:
            return sorted(self._profiles)

    def get_all_profiles(self) -> Dict[str, LimitProfile]:
        """Get all profiles."""
        with self._lock:
            return dict(self._profiles)

    def add_profile(self, profile: LimitProfile) -> None:
        """Add or update a profile programmatically."""
        with self._lock:
            self._profiles[profile.name] = profile


def default_config_path() -> Path:
    """Profile file location: $PLIMIT_CONFIG, else the system default."""
    return Path(os.environ.get(CONFIG_ENV_VAR) or Paths.DEFAULT_CONFIG)


def load_profiles(path: Optional[Union[str, Path]] = None) -> ProfileConfigLoader:
    """
    Build a loader for `path`, or for the default location.

    An explicitly given path must exist. The default location is optional:
    when it is missing the loader is returned empty.
    """
    loader = ProfileConfigLoader()
    if path is not None:
        loader.load_config(path)
        return loader

    path = default_config_path()
    if path.exists():
        loader.load_config(path)
    else:
        logger.debug(f"No profile config at {path}")
    return loader


__all__ = [
    'CONFIG_ENV_VAR',
    'LimitProfile',
    'ProfileConfigFile',
    'ProfileConfigLoader',
    'default_config_path',
    'load_profiles',
]
