"""Tests for the environment matrix orchestration."""

import asyncio
import os
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from qa_matrix.checkers.registry import build_registry
from qa_matrix.environments.lifecycle import EnvironmentManager
from qa_matrix.errors import ConfigurationError, EnvironmentInstallError, InterruptedRunError
from qa_matrix.orchestrator import run_matrix
from qa_matrix.types import Environment, RunRequest, TaskSpec

from tests.conftest import SYSTEM_PATH, RecordingChecker, make_venv


def _registry(checker: RecordingChecker):
    registry = build_registry()
    registry[TaskSpec.UNIT] = checker
    registry[TaskSpec.STYLE] = checker
    return registry


@pytest.fixture
def ambient_manager(config, tmp_path: Path) -> EnvironmentManager:
    ambient = tmp_path / ".venvamb"
    base_env = {"PATH": f"{ambient / 'bin'}{os.pathsep}{SYSTEM_PATH}", "VIRTUAL_ENV": str(ambient)}
    manager = EnvironmentManager(config, base_env)
    manager.describe = AsyncMock(return_value="### PYTHON ###")
    return manager


@pytest.mark.asyncio
async def test_default_selector_runs_once_without_switching(manager):
    checker = RecordingChecker()

    state = await run_matrix(RunRequest(), manager, _registry(checker))

    assert checker.calls == [(None, None)]
    assert state.outcomes == [("default", 0)]
    assert state.exit_code == 0
    assert state.success
    manager.describe.assert_awaited_once()


@pytest.mark.asyncio
async def test_all_environments_in_order(manager, config):
    for identifier in config.environments:
        make_venv(config, identifier)
    checker = RecordingChecker()

    state = await run_matrix(RunRequest(selector="all", argument="tests/x.py"), manager, _registry(checker))

    assert [env for env, _ in checker.calls] == [".venv26", ".venv27", ".venv33", ".venv34", ".venv35"]
    assert all(arg == "tests/x.py" for _, arg in checker.calls)
    assert state.exit_code == 0


@pytest.mark.asyncio
async def test_outcomes_are_summed(manager, config):
    make_venv(config, "26")
    make_venv(config, "34")
    checker = RecordingChecker({".venv26": 2, ".venv34": 3})

    state = await run_matrix(RunRequest(task=TaskSpec.STYLE, selector="26,34,26"), manager, _registry(checker))

    assert state.outcomes == [("26", 2), ("34", 3), ("26", 2)]
    assert state.exit_code == 7
    assert not state.success


@pytest.mark.asyncio
async def test_missing_environment_fails_but_matrix_continues(manager, config):
    make_venv(config, "34")
    checker = RecordingChecker()

    state = await run_matrix(RunRequest(selector="26,34"), manager, _registry(checker))

    assert checker.calls == [(".venv34", None)]
    assert state.outcomes == [("26", 1), ("34", 0)]
    assert state.exit_code == 1


@pytest.mark.asyncio
async def test_ambient_restored_after_success_and_failure(ambient_manager, config, tmp_path):
    make_venv(config, "34")
    ambient = Environment(id="amb", root=tmp_path / ".venvamb")

    for outcome in (0, 1):
        checker = RecordingChecker({".venv34": outcome})
        state = await run_matrix(RunRequest(selector="34"), ambient_manager, _registry(checker))

        assert checker.calls == [(".venv34", None)]
        assert state.active == ambient
        assert state.restored == 1
        assert ambient_manager.environ(state) == ambient_manager.base_env


@pytest.mark.asyncio
async def test_default_after_failed_switch_runs_deactivated(ambient_manager, config, tmp_path):
    checker = RecordingChecker()

    state = await run_matrix(RunRequest(selector="99,default"), ambient_manager, _registry(checker))

    assert checker.calls == [(None, None)]
    assert state.outcomes == [("99", 1), ("default", 0)]
    assert state.exit_code == 1
    assert state.restored == 1
    assert state.active == Environment(id="amb", root=tmp_path / ".venvamb")


@pytest.mark.asyncio
@pytest.mark.parametrize("interrupt", [KeyboardInterrupt, asyncio.CancelledError])
async def test_interrupt_stops_matrix_and_restores(ambient_manager, config, tmp_path, interrupt):
    for identifier in ("a", "b", "c"):
        make_venv(config, identifier)
    checker = RecordingChecker({".venva": 2}, interrupt_on={".venvb": interrupt})

    with pytest.raises(InterruptedRunError) as exc_info:
        await run_matrix(RunRequest(selector="a,b,c"), ambient_manager, _registry(checker))

    state = exc_info.value.state
    assert [env for env, _ in checker.calls] == [".venva", ".venvb"]
    assert state.interrupted
    assert state.outcomes == [("a", 2), ("b", 1)]
    assert state.exit_code == 3
    assert state.restored == 1
    assert state.active == Environment(id="amb", root=tmp_path / ".venvamb")


@pytest.mark.asyncio
@pytest.mark.parametrize("task", [TaskSpec.INSTALL, TaskSpec.UNINSTALL])
@pytest.mark.parametrize("selector", ["default", "all", "34,all"])
async def test_lifecycle_tasks_need_concrete_envs(manager, config, task, selector):
    manager.install = AsyncMock()
    manager.uninstall = AsyncMock()

    with pytest.raises(ConfigurationError):
        await run_matrix(RunRequest(task=task, selector=selector), manager)

    manager.install.assert_not_awaited()
    manager.uninstall.assert_not_awaited()
    assert list(config.project_root.iterdir()) == []


@pytest.mark.asyncio
async def test_install_each_environment(manager):
    manager.install = AsyncMock()

    state = await run_matrix(RunRequest(task=TaskSpec.INSTALL, selector="33,34"), manager)

    assert [call.args[1] for call in manager.install.await_args_list] == ["33", "34"]
    assert state.exit_code == 0
    assert state.restored == 1


@pytest.mark.asyncio
async def test_install_error_aborts_run(manager):
    manager.install = AsyncMock(side_effect=EnvironmentInstallError("33", "interpreter python3.3 not found"))

    with pytest.raises(EnvironmentInstallError):
        await run_matrix(RunRequest(task=TaskSpec.INSTALL, selector="33,34"), manager)

    assert manager.install.await_count == 1


@pytest.mark.asyncio
async def test_uninstall_missing_environment_succeeds(manager, config):
    state = await run_matrix(RunRequest(task=TaskSpec.UNINSTALL, selector="33"), manager)

    assert state.exit_code == 0
    assert not config.env_root("33").exists()


@pytest.mark.asyncio
async def test_switch_task_reports_each_environment(manager, config):
    make_venv(config, "26")
    make_venv(config, "27")

    state = await run_matrix(RunRequest(task=TaskSpec.SWITCH, selector="26,27"), manager)

    assert state.exit_code == 0
    assert manager.describe.await_count == 2
