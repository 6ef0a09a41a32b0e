"""
Schedule engine configuration management.
Loaded from config/engine.yaml, environment variables, or a plain dict.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Tuple

import yaml
from decouple import config as env_config

logger = logging.getLogger(__name__)

# Repository root (parent of schedule_engine/)
BASE_DIR = Path(__file__).parent.parent

DEFAULT_SHARED_FACILITY_TYPES = frozenset({'main_pool', 'kids_pool', 'main_spa'})
DEFAULT_TECHNICIAN_ROLES = frozenset({'technician', 'tech', 'staff'})


def _get_config_value(key: str, default: Any = None, cast: type = None) -> Any:
    """
    Get configuration value from the environment (.env supported via decouple).
    """
    value = env_config(key, default=default)
    if value is not None and cast is not None:
        if cast == bool:
            if isinstance(value, str):
                return value.lower() in ('true', '1', 'yes', 'on')
            return bool(value)
        return cast(value)
    return value


def _resolve_env(value: Any) -> Any:
    """Resolve ${VAR_NAME} references in string values."""
    if not isinstance(value, str):
        return value

    pattern = r'\$\{([^}]+)\}'

    def replace(match):
        var_name = match.group(1)
        return str(_get_config_value(var_name, default=''))

    return re.sub(pattern, replace, value)


def _as_tuple(value: Any, default: Tuple[str, ...]) -> Tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str):
        return tuple(v.strip() for v in value.split(',') if v.strip())
    return tuple(str(v) for v in value)


@dataclass
class EngineConfig:
    """
    Main schedule engine configuration.
    Can be loaded from YAML files or environment variables.
    """
    # Worker pool for per-property resolution
    max_workers: int = 8

    # Fallback times when a schedule does not set one
    default_service_time: str = '09:00'
    default_plant_check_times: Tuple[str, ...] = ('09:00', '15:00')
    default_equipment_times: Tuple[str, ...] = ('11:00',)

    # Unit kinds handed over to property rules when a rule targets them
    shared_facility_types: FrozenSet[str] = field(
        default_factory=lambda: DEFAULT_SHARED_FACILITY_TYPES
    )

    # Profile roles listed as technicians
    technician_roles: FrozenSet[str] = field(
        default_factory=lambda: DEFAULT_TECHNICIAN_ROLES
    )

    # Upper bound for random_selection rule counts
    max_selection_count: int = 50

    # Logging
    log_level: str = 'INFO'
    log_file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'EngineConfig':
        """
        Load configuration from dictionary.

        Args:
            data: Dictionary with configuration values (the ``engine:`` section)

        Returns:
            EngineConfig: Configuration loaded from dictionary
        """
        config = cls()
        if not data:
            return config

        config.max_workers = int(data.get('max_workers', config.max_workers))
        config.default_service_time = str(
            data.get('default_service_time', config.default_service_time)
        )
        config.default_plant_check_times = _as_tuple(
            data.get('default_plant_check_times'), config.default_plant_check_times
        )
        config.default_equipment_times = _as_tuple(
            data.get('default_equipment_times'), config.default_equipment_times
        )
        if data.get('shared_facility_types') is not None:
            config.shared_facility_types = frozenset(
                _as_tuple(data['shared_facility_types'], ())
            )
        if data.get('technician_roles') is not None:
            config.technician_roles = frozenset(
                r.lower() for r in _as_tuple(data['technician_roles'], ())
            )
        config.max_selection_count = int(
            data.get('max_selection_count', config.max_selection_count)
        )

        logging_conf = data.get('logging') or {}
        config.log_level = str(_resolve_env(logging_conf.get('level', config.log_level)))
        log_file = _resolve_env(logging_conf.get('file', config.log_file))
        config.log_file = log_file or None

        return config

    @classmethod
    def from_yaml(cls, config_path: str = None) -> 'EngineConfig':
        """
        Load configuration from a YAML file.
        Environment variables can be referenced as ${VAR_NAME}.
        Path defaults to config/engine.yaml under BASE_DIR.
        """
        config_file = Path(config_path) if config_path else BASE_DIR / 'config' / 'engine.yaml'

        if not config_file.exists():
            logger.warning(f"Engine config not found at {config_file}, using defaults")
            return cls()

        with open(config_file) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data.get('engine'))

    @classmethod
    def from_env(cls) -> 'EngineConfig':
        """
        Load configuration from environment variables.
        Useful for simple deployments without YAML files.
        """
        config = cls()

        config.max_workers = _get_config_value(
            'SCHEDULE_ENGINE_MAX_WORKERS', default=config.max_workers, cast=int
        )
        config.default_service_time = _get_config_value(
            'SCHEDULE_ENGINE_DEFAULT_TIME', default=config.default_service_time
        )
        config.max_selection_count = _get_config_value(
            'SCHEDULE_ENGINE_MAX_SELECTION', default=config.max_selection_count, cast=int
        )

        shared = _get_config_value('SCHEDULE_ENGINE_SHARED_FACILITIES', default=None)
        if shared:
            config.shared_facility_types = frozenset(_as_tuple(shared, ()))

        roles = _get_config_value('SCHEDULE_ENGINE_TECHNICIAN_ROLES', default=None)
        if roles:
            config.technician_roles = frozenset(r.lower() for r in _as_tuple(roles, ()))

        config.log_level = _get_config_value('SCHEDULE_ENGINE_LOG_LEVEL', default=config.log_level)
        config.log_file = _get_config_value('SCHEDULE_ENGINE_LOG_FILE', default=None) or None

        return config

    def worker_count(self, property_count: int) -> int:
        """
        Size of the per-property worker pool.

        Bounded by the configured maximum, available cores and the number
        of properties to resolve; never below 1.
        """
        cores = os.cpu_count() or 1
        return max(1, min(self.max_workers, cores, property_count))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for display."""
        return {
            'max_workers': self.max_workers,
            'default_service_time': self.default_service_time,
            'default_plant_check_times': list(self.default_plant_check_times),
            'default_equipment_times': list(self.default_equipment_times),
            'shared_facility_types': sorted(self.shared_facility_types),
            'technician_roles': sorted(self.technician_roles),
            'max_selection_count': self.max_selection_count,
            'log_level': self.log_level,
            'log_file': self.log_file,
        }
