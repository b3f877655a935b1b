"""Environment matrix orchestration."""

import asyncio
from typing import Optional

from qa_matrix.checkers.checker import TaskContext
from qa_matrix.checkers.registry import Registry, build_registry
from qa_matrix.environments.descriptors import assert_specific_envs, resolve_selector
from qa_matrix.environments.lifecycle import EnvironmentManager
from qa_matrix.errors import EnvironmentActivationError, InterruptedRunError, log_error
from qa_matrix.logging import get_logger
from qa_matrix.outcomes import total
from qa_matrix.types import OutcomeCode, RunRequest, RunState, TaskSpec

logger = get_logger(__name__)


async def run_task(
    request: RunRequest,
    state: RunState,
    identifier: str,
    manager: EnvironmentManager,
    registry: Registry,
) -> OutcomeCode:
    """Run the requested task for one environment."""
    if request.task == TaskSpec.INSTALL:
        await manager.install(state, identifier)
        return 0
    if request.task == TaskSpec.UNINSTALL:
        await manager.uninstall(state, identifier)
        return 0

    try:
        await manager.switch_to(state, identifier)
    except EnvironmentActivationError as e:
        log_error(e, {"run_id": state.run_id}, logger)
        return 1

    context = TaskContext(
        config=manager.config,
        env_vars=manager.environ(state),
        coverage_enabled=request.coverage_enabled,
    )
    return await registry[request.task].run(context, request.argument)


async def run_matrix(
    request: RunRequest,
    manager: EnvironmentManager,
    registry: Optional[Registry] = None,
) -> RunState:
    """Run ``request`` once per selected environment and aggregate the outcomes.

    Environments are processed one at a time. The environment active before
    the run is restored on every exit path. Interrupts stop the matrix at the
    current environment and surface as InterruptedRunError.
    """
    registry = registry or build_registry()
    identifiers = resolve_selector(request.selector, manager.config.environments)
    if request.task.manages_environments:
        assert_specific_envs(request.selector, identifiers)

    state = RunState.begin(manager.capture_ambient())
    logger.info(
        {
            "event": "matrix_start",
            "run_id": state.run_id,
            "task": request.task.value,
            "envs": identifiers,
        }
    )

    try:
        for identifier in identifiers:
            try:
                code = await run_task(request, state, identifier, manager, registry)
            except (KeyboardInterrupt, asyncio.CancelledError):
                state.interrupted = True
                state.outcomes.append((identifier, 1))
                state.exit_code = total(c for _, c in state.outcomes)
                logger.warning({"event": "matrix_interrupted", "run_id": state.run_id, "env_id": identifier})
                raise InterruptedRunError(state) from None

            state.outcomes.append((identifier, code))
            state.exit_code = total(c for _, c in state.outcomes)
            logger.info(
                {
                    "event": "environment_complete",
                    "run_id": state.run_id,
                    "env_id": identifier,
                    "outcome": code,
                    "aggregate": state.exit_code,
                }
            )
    finally:
        manager.restore(state)

    logger.info({"event": "matrix_complete", "run_id": state.run_id, "exit_code": state.exit_code})
    return state
