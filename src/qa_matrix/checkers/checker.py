"""Checker interface shared by all QA tasks."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from qa_matrix.commands import run_command, which
from qa_matrix.config import QAConfig
from qa_matrix.logging import get_logger, subtitle
from qa_matrix.outcomes import aggregate
from qa_matrix.types import OutcomeCode

logger = get_logger(__name__)


@dataclass(frozen=True)
class TaskContext:
    """Everything a checker needs to run inside the active environment"""
    config: QAConfig
    env_vars: Dict[str, str]
    coverage_enabled: bool = True


class Checker(ABC):
    """A single QA task backed by an external tool."""

    name = "checker"

    @abstractmethod
    async def run(self, context: TaskContext, argument: Optional[str] = None) -> OutcomeCode:
        """Run the task in the active environment and return its outcome."""

    async def execute(
        self,
        context: TaskContext,
        args: Sequence[str],
        extra_env: Optional[Dict[str, str]] = None,
        capture: bool = False,
    ) -> Tuple[int, bytes, bytes]:
        """Run a collaborator from the project root with the active environment."""
        env_vars = {**context.env_vars, **(extra_env or {})}
        program = which(args[0], env_vars) or args[0]
        return await run_command(
            [program, *args[1:]], context.config.project_root, env_vars, capture=capture
        )


class CompositeChecker(Checker):
    """Runs several checkers in order and sums their outcomes.

    Every step runs even when an earlier one failed.
    """

    name = "all"

    def __init__(self, steps: Sequence[Tuple[Optional[str], Checker]]):
        self.steps = list(steps)

    async def run(self, context: TaskContext, argument: Optional[str] = None) -> OutcomeCode:
        exit_code = 0
        for heading, checker in self.steps:
            if heading:
                subtitle(heading)
            code = await checker.run(context, argument)
            logger.info({"event": "composite_step_complete", "checker": checker.name, "outcome": code})
            exit_code = aggregate(exit_code, code)
        return exit_code


class SwitchChecker(Checker):
    """Only switches environments; the switch itself reports the interpreter."""

    name = "switch"

    async def run(self, context: TaskContext, argument: Optional[str] = None) -> OutcomeCode:
        return 0
