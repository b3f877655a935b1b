"""Unit and integration test checkers backed by pytest"""

from typing import Optional

from qa_matrix.checkers.checker import Checker, TaskContext
from qa_matrix.checkers.clean import clean_project
from qa_matrix.logging import get_logger
from qa_matrix.types import OutcomeCode

logger = get_logger(__name__)


class UnitChecker(Checker):
    name = "unit"

    async def run(self, context: TaskContext, argument: Optional[str] = None) -> OutcomeCode:
        clean_project(context.config)
        target = argument or context.config.unit_target

        # -s shows print output, -rw lists warnings
        cmd = ["python", "-m", "coverage", "run", "-m", "pytest", "-rw", "-s", target]
        logger.debug({"event": "running_unit_tests", "cmd": cmd})
        returncode, _, _ = await self.execute(context, cmd)

        if context.coverage_enabled:
            report_code, _, _ = await self.execute(context, ["python", "-m", "coverage", "report", "-m"])
            if report_code != 0:
                logger.warning({"event": "coverage_report_failed", "returncode": report_code})

        return returncode


class IntegrationChecker(Checker):
    name = "integration"

    async def run(self, context: TaskContext, argument: Optional[str] = None) -> OutcomeCode:
        clean_project(context.config)
        target = argument or context.config.integration_target

        # Git hooks run by the integration tests must use the active interpreter,
        # so git gets the same search path as the tests.
        extra_env = {"GIT_EXEC_PATH": context.env_vars.get("PATH", "")}

        cmd = ["python", "-m", "pytest", "-s", target]
        logger.debug({"event": "running_integration_tests", "cmd": cmd})
        returncode, _, _ = await self.execute(context, cmd, extra_env=extra_env)
        return returncode
