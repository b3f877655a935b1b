"""Project statistics reporter."""

from typing import Optional

from qa_matrix.checkers.checker import Checker, TaskContext
from qa_matrix.logging import get_logger
from qa_matrix.types import OutcomeCode

logger = get_logger(__name__)

RADON_SUMMARY_LINES = 6


def count_collected(output: str) -> int:
    """Count test ids in ``pytest --collect-only -q`` output."""
    return sum(1 for line in output.splitlines() if "::" in line)


def count_authors(output: str) -> int:
    return len({line.strip() for line in output.splitlines() if line.strip()})


class StatsChecker(Checker):
    name = "stats"

    async def _collect(self, context: TaskContext, target: str) -> int:
        returncode, stdout, _ = await self.execute(
            context, ["python", "-m", "pytest", target, "--collect-only", "-q"], capture=True
        )
        if returncode not in (0, 5):  # 5: nothing collected
            logger.warning({"event": "collect_failed", "target": target, "returncode": returncode})
        return count_collected(stdout.decode(errors="replace"))

    async def _git(self, context: TaskContext, *args: str) -> str:
        returncode, stdout, stderr = await self.execute(context, ["git", *args], capture=True)
        if returncode != 0:
            logger.warning({"event": "git_failed", "args": list(args), "stderr": stderr.decode(errors="replace")})
            return ""
        return stdout.decode(errors="replace")

    async def run(self, context: TaskContext, argument: Optional[str] = None) -> OutcomeCode:
        config = context.config

        print("*** Code ***")
        returncode, stdout, stderr = await self.execute(
            context, ["radon", "raw", "-s", config.stats_package], capture=True
        )
        lines = (stdout or stderr).decode(errors="replace").splitlines()
        for line in lines[-RADON_SUMMARY_LINES:]:
            print(line)

        print("*** Tests ***")
        unit_tests = await self._collect(context, config.unit_target)
        integration_tests = await self._collect(context, config.integration_target)
        print(f"    Unit Tests: {unit_tests}")
        print(f"    Integration Tests: {integration_tests}")

        print("*** Git ***")
        commits = (await self._git(context, "rev-list", "--all", "--count")).strip() or "0"
        authors = count_authors(await self._git(context, "log", "--format=%aN"))
        print(f"    Number of commits: {commits}")
        print(f"    Number of authors: {authors}")

        return returncode
