import logging
from pathlib import Path
from typing import Dict, Optional
from unittest.mock import AsyncMock

import pytest

from qa_matrix.checkers.checker import Checker, TaskContext
from qa_matrix.config import QAConfig
from qa_matrix.environments.lifecycle import EnvironmentManager

SYSTEM_PATH = "/usr/local/bin:/usr/bin:/bin"


class RecordingChecker(Checker):
    """Test double that records the environment it ran in"""

    def __init__(self, outcomes: Optional[Dict[str, int]] = None, interrupt_on=(), name="recording"):
        self.outcomes = dict(outcomes or {})
        self.interrupt_on = dict(interrupt_on) if isinstance(interrupt_on, dict) else {
            env: KeyboardInterrupt for env in interrupt_on
        }
        self.name = name
        self.calls = []

    async def run(self, context: TaskContext, argument: Optional[str] = None) -> int:
        virtual_env = context.env_vars.get("VIRTUAL_ENV")
        env_name = Path(virtual_env).name if virtual_env else None
        self.calls.append((env_name, argument))
        if env_name in self.interrupt_on:
            raise self.interrupt_on[env_name]()
        return self.outcomes.get(env_name, 0)


def make_venv(config: QAConfig, identifier: str) -> Path:
    """Lay out a minimal virtualenv on disk."""
    root = config.env_root(identifier)
    (root / "bin").mkdir(parents=True, exist_ok=True)
    (root / "bin" / "python").write_text("")
    return root


@pytest.fixture
def config(tmp_path: Path) -> QAConfig:
    return QAConfig(
        project_root=tmp_path,
        environments=("26", "27", "33", "34", "35"),
        upgrade_pip=False,
    )


@pytest.fixture
def base_env(tmp_path: Path) -> Dict[str, str]:
    return {"PATH": SYSTEM_PATH, "HOME": str(tmp_path)}


@pytest.fixture
def manager(config: QAConfig, base_env: Dict[str, str]) -> EnvironmentManager:
    """Manager whose interpreter report does not spawn processes"""
    manager = EnvironmentManager(config, base_env)
    manager.describe = AsyncMock(return_value="### PYTHON (Python 3.12.0, python) ###")
    return manager


@pytest.fixture
def context(config: QAConfig, base_env: Dict[str, str]) -> TaskContext:
    return TaskContext(config=config, env_vars=base_env)


@pytest.fixture(autouse=True)
def reset_app_logger():
    """Drop handlers bound to a previous test's captured stderr"""
    yield
    app_logger = logging.getLogger("qa_matrix")
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
    app_logger.setLevel(logging.NOTSET)
    app_logger.propagate = True
