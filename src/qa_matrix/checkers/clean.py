"""Removal of build and bytecode artifacts."""

import shutil
from typing import Optional

from qa_matrix.checkers.checker import Checker, TaskContext
from qa_matrix.config import QAConfig
from qa_matrix.logging import ColorCodes, get_logger
from qa_matrix.types import OutcomeCode

logger = get_logger(__name__)

BUILD_DIRS = ("site", "dist", "build")


def clean_project(config: QAConfig) -> None:
    print("Cleaning the site, build, dist and all __pycache__ directories...", end="", flush=True)
    root = config.project_root

    for target in config.clean_targets:
        target_dir = root / target
        if not target_dir.is_dir():
            continue
        for path in sorted(target_dir.rglob("__pycache__"), reverse=True):
            if path.is_dir():
                shutil.rmtree(path, ignore_errors=True)

    for name in BUILD_DIRS:
        shutil.rmtree(root / name, ignore_errors=True)

    logger.debug({"event": "project_cleaned", "root": str(root)})
    print(f"{ColorCodes.GREEN}DONE{ColorCodes.RESET}")


class CleanChecker(Checker):
    name = "clean"

    async def run(self, context: TaskContext, argument: Optional[str] = None) -> OutcomeCode:
        clean_project(context.config)
        return 0
