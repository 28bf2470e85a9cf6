"""
loader.py

Locates a project's configuration source, obtains the raw record from it and
hands it to the validator.

Two source formats are understood: ``dashbling.config.py`` is executed as a
module, ``dashbling.config.yaml`` is read as data with callables given as
``"module:attribute"`` references.
"""

from __future__ import annotations

import importlib
import importlib.util
import logging
import sys
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Union

import yaml

from dashbling.config import ClientConfig, parse
from dashbling.errors import ConfigLoadError, ValidationError

logger = logging.getLogger("dashbling.loader")

CONFIG_FILENAME = "dashbling.config.py"
CONFIG_CANDIDATES = (
    CONFIG_FILENAME,
    "dashbling.config.yaml",
    "dashbling.config.yml",
)
CONFIG_MODULE_NAME = "dashbling_project_config"
REFERENCE_SEPARATOR = ":"
ACTION_KEYS = ("fn", "action")

SourceLoader = Callable[[Path], Any]


def resolve_config_path(project_path: Union[str, Path]) -> Path:
    """Return the first existing config candidate, or the default ``.py`` path."""
    project_dir = Path(project_path)
    for candidate in CONFIG_CANDIDATES:
        path = project_dir / candidate
        if path.is_file():
            return path
    return project_dir / CONFIG_FILENAME


_IMPORT_LOCK = threading.RLock()


def _is_within(module: Any, root: Path) -> bool:
    filename = getattr(module, "__file__", None)
    if not filename:
        return False
    try:
        Path(filename).resolve().relative_to(root)
    except ValueError:
        return False
    return True


@contextmanager
def _project_imports(directory: Path) -> Iterator[None]:
    """Make ``directory`` importable for the duration of one load.

    Modules imported from the directory are evicted from ``sys.modules``
    afterwards, so another project's ``tasks.py`` is never served from cache.
    """
    root = directory.resolve()
    entry = str(directory)
    with _IMPORT_LOCK:
        before = set(sys.modules)
        added = entry not in sys.path
        if added:
            sys.path.insert(0, entry)
        try:
            yield
        finally:
            if added and entry in sys.path:
                sys.path.remove(entry)
            for name in set(sys.modules) - before:
                if _is_within(sys.modules.get(name), root):
                    del sys.modules[name]


def load_python_source(config_path: Path) -> Any:
    spec = importlib.util.spec_from_file_location(CONFIG_MODULE_NAME, config_path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot import configuration source {config_path}")
    module = importlib.util.module_from_spec(spec)
    with _project_imports(config_path.parent):
        spec.loader.exec_module(module)
    return getattr(module, "config", module)


def _resolve(value: Any) -> Any:
    if not isinstance(value, str) or REFERENCE_SEPARATOR not in value:
        return value
    module_name, _, attr_path = value.partition(REFERENCE_SEPARATOR)
    if not module_name or not attr_path:
        return value
    try:
        target: Any = importlib.import_module(module_name)
        for attr in attr_path.split("."):
            target = getattr(target, attr)
    except Exception as exc:
        logger.warning('Unable to resolve reference "%s": %s', value, exc)
        return value
    return target


def resolve_reference(value: Any, project_dir: Path) -> Any:
    """Resolve ``"package.module:attribute"`` to the named object.

    Anything that is not a reference, or that fails to import or resolve, is
    returned unchanged so that validation reports it.
    """
    with _project_imports(project_dir):
        return _resolve(value)


def load_yaml_source(config_path: Path) -> Any:
    payload = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        return payload

    with _project_imports(config_path.parent):
        if "onStart" in payload:
            payload["onStart"] = _resolve(payload["onStart"])
        jobs = payload.get("jobs")
        if isinstance(jobs, list):
            for job in jobs:
                if not isinstance(job, dict):
                    continue
                for key in ACTION_KEYS:
                    if key in job:
                        job[key] = _resolve(job[key])
    return payload


SOURCE_LOADERS: Dict[str, SourceLoader] = {
    ".py": load_python_source,
    ".yaml": load_yaml_source,
    ".yml": load_yaml_source,
}


def _source_loader_for(config_path: Path) -> SourceLoader:
    return SOURCE_LOADERS.get(config_path.suffix, load_python_source)


def load(
    project_path: Union[str, Path],
    source_loader: Optional[SourceLoader] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ClientConfig:
    """Load and validate the configuration of the project at ``project_path``.

    Raises ValidationError unchanged when the record is invalid, and
    ConfigLoadError naming the resolved path for any other failure.
    """
    config_path = resolve_config_path(project_path)
    loader = source_loader or _source_loader_for(config_path)
    logger.info("Loading configuration from %s", config_path)

    try:
        raw_config = loader(config_path)
        config = parse(raw_config, str(project_path), env)
    except ValidationError as exc:
        logger.error("Invalid configuration at %s:", config_path)
        for message in exc.errors:
            logger.error("  %s", message)
        raise
    except Exception as exc:
        logger.error("Failed to load configuration at %s: %s", config_path, exc, exc_info=True)
        raise ConfigLoadError(str(config_path)) from None

    logger.info("Configuration loaded: %s job(s), port=%s", len(config.jobs), config.port)
    return config
