"""Project configuration loaded from pyproject.toml."""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import tomli

from qa_matrix.errors import ConfigurationError
from qa_matrix.logging import get_logger

logger = get_logger(__name__)

CONFIG_TABLE = "qa-matrix"
LOG_LEVEL_VAR = "QA_MATRIX_LOG_LEVEL"


@dataclass(frozen=True)
class QAConfig:
    """Settings for one project"""
    project_root: Path
    environments: Tuple[str, ...] = ("39", "310", "311", "312", "313")
    venv_root: Optional[Path] = None
    venv_prefix: str = ".venv"
    interpreters: Dict[str, str] = field(default_factory=dict)
    requirements: Tuple[str, ...] = ("requirements.txt", "test-requirements.txt")
    upgrade_pip: bool = True
    unit_target: str = "src"
    integration_target: str = "qa"
    style_targets: Tuple[str, ...] = ("src", "qa")
    lint_targets: Tuple[str, ...] = ("src", "qa")
    clean_targets: Tuple[str, ...] = ("src", "qa")
    flake8_ignore: Tuple[str, ...] = ()
    flake8_exclude: Tuple[str, ...] = ("*settings.py", "*.venv/*.py")
    max_line_length: int = 120
    pylintrc: str = ".pylintrc"
    stats_package: str = "src"

    def env_root(self, identifier: str) -> Path:
        base = self.venv_root or self.project_root
        return base / f"{self.venv_prefix}{identifier}"


def _coerce(name: str, default: Any, value: Any) -> Any:
    """Check a raw TOML value against the type of the field default."""
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
    elif isinstance(default, int):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif isinstance(default, str):
        if isinstance(value, str):
            return value
    elif isinstance(default, tuple):
        if isinstance(value, list) and all(isinstance(v, str) for v in value):
            return tuple(value)
    elif isinstance(default, dict):
        if isinstance(value, dict) and all(isinstance(v, str) for v in value.values()):
            return {str(k): v for k, v in value.items()}
    raise ConfigurationError(
        f"Invalid value for tool.{CONFIG_TABLE}.{name}: {value!r}",
        details={"key": name, "value": value},
    )


def load_config(project_root: Path) -> QAConfig:
    """Load configuration from the project's pyproject.toml, if any."""
    project_root = Path(project_root).resolve()
    config = QAConfig(project_root=project_root)

    pyproject = project_root / "pyproject.toml"
    if not pyproject.exists():
        logger.debug({"event": "config_defaults", "project_root": str(project_root)})
        return config

    try:
        with open(pyproject, "rb") as f:
            data = tomli.load(f)
    except tomli.TOMLDecodeError as e:
        raise ConfigurationError(
            f"Cannot parse {pyproject}: {e}", details={"path": str(pyproject)}
        ) from e

    table = data.get("tool", {}).get(CONFIG_TABLE, {})
    if not table:
        return config

    defaults = {f.name: getattr(config, f.name) for f in fields(QAConfig)}
    overrides: Dict[str, Any] = {}
    for key, value in table.items():
        name = key.replace("-", "_")
        if name not in defaults or name == "project_root":
            raise ConfigurationError(
                f"Unknown key tool.{CONFIG_TABLE}.{key}", details={"key": key}
            )
        if name == "venv_root":
            if not isinstance(value, str):
                _coerce(name, "", value)
            overrides[name] = (project_root / value).resolve()
            continue
        if name == "environments" and isinstance(value, list):
            value = [str(v) for v in value]
        overrides[name] = _coerce(name, defaults[name], value)

    logger.debug({"event": "config_loaded", "path": str(pyproject), "keys": sorted(overrides)})
    return replace(config, **overrides)


def log_level() -> str:
    return os.environ.get(LOG_LEVEL_VAR, "WARNING")
