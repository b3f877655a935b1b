"""Commit message convention checker"""

import sys
from typing import Optional

from qa_matrix.checkers.checker import Checker, TaskContext
from qa_matrix.logging import ColorCodes
from qa_matrix.types import OutcomeCode


class ConventionChecker(Checker):
    name = "convention"

    async def run(self, context: TaskContext, argument: Optional[str] = None) -> OutcomeCode:
        print(f"Running gitlint...{ColorCodes.RED}", flush=True)
        try:
            returncode, _, _ = await self.execute(context, ["gitlint"])
        finally:
            sys.stdout.write(ColorCodes.RESET)
            sys.stdout.flush()
        return returncode
