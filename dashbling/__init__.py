"""Per-project configuration loading and validation for dashbling hosts."""

from dashbling.config import ClientConfig, JobSpec, env_var_name, parse
from dashbling.errors import ConfigLoadError, DashblingError, ValidationError
from dashbling.loader import CONFIG_FILENAME, load, resolve_config_path

__all__ = [
    "CONFIG_FILENAME",
    "ClientConfig",
    "ConfigLoadError",
    "DashblingError",
    "JobSpec",
    "ValidationError",
    "env_var_name",
    "load",
    "parse",
    "resolve_config_path",
]
