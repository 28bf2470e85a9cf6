"""
config.py

Schema validation and coercion for a dashbling project configuration.

A raw record (mapping, module or plain object) is checked field by field,
environment overrides are applied to the server settings, and every violated
constraint is collected before a single ValidationError is raised.
"""

from __future__ import annotations

import logging
import math
import os
import re
import types
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from dashbling.cron import is_valid_cron
from dashbling.errors import ValidationError

logger = logging.getLogger("dashbling.config")

DEFAULT_PORT = 3000
DEFAULT_FORCE_HTTPS = False
EVENT_STORAGE_DIRNAME = "dashbling-events"
KNOWN_KEYS = {"jobs", "onStart", "forceHttps", "port", "eventStoragePath"}
UPPERCASE_BOUNDARY_RE = re.compile(r"(?<!^)(?=[A-Z])")

SendEvent = Callable[..., Any]


def _noop(*_: Any) -> None:
    return None


def default_event_storage_path() -> str:
    return os.path.join(os.getcwd(), EVENT_STORAGE_DIRNAME)


@dataclass(frozen=True)
class JobSpec:
    schedule: str
    action: Callable[[], Any]


@dataclass(frozen=True)
class ClientConfig:
    project_path: str
    jobs: Tuple[JobSpec, ...] = ()
    on_start: Callable[[SendEvent], Any] = _noop
    force_https: bool = DEFAULT_FORCE_HTTPS
    port: Union[int, float] = DEFAULT_PORT
    event_storage_path: str = field(default_factory=default_event_storage_path)


def error(name: str, expectation: str, actual_value: Any) -> str:
    return (
        f"Invalid '{name}' configuration. "
        f"Expected '{name}' to be {expectation}, but was '{actual_value}'."
    )


def env_var_name(option: str) -> str:
    """``forceHttps`` -> ``FORCE_HTTPS``."""
    return UPPERCASE_BOUNDARY_RE.sub("_", option).upper()


def try_parse_bool(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
    return value


def try_parse_number(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    text = value.strip()
    if "_" in text:
        return value
    try:
        return int(text)
    except ValueError:
        pass
    try:
        parsed = float(text)
    except ValueError:
        return value
    return parsed if math.isfinite(parsed) else value


def _identity(value: Any) -> Any:
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_record(raw: Any) -> Dict[str, Any]:
    """Copy a raw config value into a plain dict without mutating the caller's object."""
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, types.ModuleType):
        return {key: getattr(raw, key) for key in KNOWN_KEYS if hasattr(raw, key)}
    if hasattr(raw, "__dict__") and not isinstance(raw, (str, bytes, type)):
        return {key: value for key, value in vars(raw).items() if not key.startswith("_")}
    return {}


def _job_field(job: Any, name: str) -> Any:
    if isinstance(job, Mapping):
        return job.get(name)
    return getattr(job, name, None)


def _job_action(job: Any) -> Any:
    action = _job_field(job, "fn")
    if action is None:
        action = _job_field(job, "action")
    return action


def resolve_override(
    option: str,
    env: Mapping[str, str],
    record: Dict[str, Any],
    coerce: Callable[[Any], Any] = _identity,
) -> None:
    """Apply an environment override for ``option`` and coerce the result in place."""
    name = env_var_name(option)
    value = env.get(name)
    if value is not None:
        logger.debug("Using %s from environment for '%s'.", name, option)
    else:
        value = record.get(option)
    if value is None:
        return
    record[option] = coerce(value)


def validate_jobs(jobs: Any, errors: List[str]) -> None:
    if not isinstance(jobs, (list, tuple)):
        errors.append(error("jobs", "a list", jobs))
        return
    for job in jobs:
        action = _job_action(job)
        if not callable(action):
            errors.append(error("job.fn", "a function", action))
        schedule = _job_field(job, "schedule")
        if not is_valid_cron(schedule):
            errors.append(error("job.schedule", "a valid cron expression", schedule))


def parse(
    raw: Any,
    project_path: str,
    env: Optional[Mapping[str, str]] = None,
) -> ClientConfig:
    if env is None:
        env = os.environ
    record = _as_record(raw)
    errors: List[str] = []

    unknown = set(record.keys()) - KNOWN_KEYS
    if unknown:
        logger.warning("Ignoring unknown configuration keys: %s", sorted(unknown))

    validate_jobs(record.get("jobs"), errors)

    on_start = record.get("onStart")
    if on_start is not None and not callable(on_start):
        errors.append(error("onStart", "a function", on_start))

    resolve_override("forceHttps", env, record, try_parse_bool)
    force_https = record.get("forceHttps")
    if force_https is not None and not isinstance(force_https, bool):
        errors.append(error("forceHttps", "a boolean", force_https))

    resolve_override("port", env, record, try_parse_number)
    port = record.get("port")
    if port is not None and not _is_number(port):
        errors.append(error("port", "a number", port))

    resolve_override("eventStoragePath", env, record)
    event_storage_path = record.get("eventStoragePath")
    if event_storage_path is not None and not isinstance(event_storage_path, str):
        errors.append(error("eventStoragePath", "a string", event_storage_path))

    if errors:
        raise ValidationError(errors)

    overrides: Dict[str, Any] = {
        "jobs": tuple(
            JobSpec(schedule=_job_field(job, "schedule"), action=_job_action(job))
            for job in record["jobs"]
        ),
    }
    if on_start is not None:
        overrides["on_start"] = on_start
    if force_https is not None:
        overrides["force_https"] = force_https
    if port is not None:
        overrides["port"] = port
    if event_storage_path is not None:
        overrides["event_storage_path"] = event_storage_path

    return ClientConfig(project_path=project_path, **overrides)
