"""Style and lint checkers"""

import sys
from typing import Optional

from qa_matrix.checkers.checker import Checker, TaskContext
from qa_matrix.logging import ColorCodes
from qa_matrix.types import OutcomeCode


class StyleChecker(Checker):
    name = "style"

    async def run(self, context: TaskContext, argument: Optional[str] = None) -> OutcomeCode:
        config = context.config
        print("Running flake8...", flush=True)

        cmd = ["flake8"]
        if config.flake8_ignore:
            cmd.append(f"--ignore={','.join(config.flake8_ignore)}")
        cmd.append(f"--max-line-length={config.max_line_length}")
        if config.flake8_exclude:
            cmd.append(f"--exclude={','.join(config.flake8_exclude)}")
        cmd.extend(config.style_targets)

        returncode, _, _ = await self.execute(context, cmd)
        return returncode


class LintChecker(Checker):
    name = "lint"

    async def run(self, context: TaskContext, argument: Optional[str] = None) -> OutcomeCode:
        config = context.config
        print(f"Running pylint...{ColorCodes.RED}", flush=True)
        try:
            cmd = ["pylint", *config.lint_targets, f"--rcfile={config.pylintrc}", "-r", "n"]
            returncode, _, _ = await self.execute(context, cmd)
        finally:
            sys.stdout.write(ColorCodes.RESET)
            sys.stdout.flush()
        return returncode
