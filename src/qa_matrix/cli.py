"""Command line interface."""

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from qa_matrix.config import load_config, log_level
from qa_matrix.environments.descriptors import ALL, DEFAULT
from qa_matrix.environments.lifecycle import EnvironmentManager
from qa_matrix.errors import (
    ConfigurationError,
    EnvironmentInstallError,
    InterruptedRunError,
    log_error,
)
from qa_matrix.logging import configure_logging, fatal, get_logger, status_banner
from qa_matrix.orchestrator import run_matrix
from qa_matrix.outcomes import exit_status
from qa_matrix.types import RunRequest, RunState, TaskSpec

logger = get_logger("cli")

# First set flag wins
TASK_PRIORITY = (
    ("pep8", TaskSpec.STYLE),
    ("stats", TaskSpec.STATS),
    ("integration", TaskSpec.INTEGRATION),
    ("git", TaskSpec.CONVENTION),
    ("lint", TaskSpec.LINT),
    ("all", TaskSpec.ALL),
    ("clean", TaskSpec.CLEAN),
    ("uninstall", TaskSpec.UNINSTALL),
    ("install", TaskSpec.INSTALL),
    ("switch", TaskSpec.SWITCH),
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qa-matrix",
        description="Run the project's test suite(s) and checks, optionally across python environments.",
        allow_abbrev=False,
    )
    parser.add_argument("-c", "--clean", action="store_true", help="Clean the project of temporary files")
    parser.add_argument("-p", "--pep8", action="store_true", help="Run pep8 (flake8) checks")
    parser.add_argument("-l", "--lint", action="store_true", help="Run pylint checks")
    parser.add_argument("-g", "--git", action="store_true", help="Run gitlint checks")
    parser.add_argument("-i", "--integration", action="store_true", help="Run integration tests")
    parser.add_argument(
        "-a", "--all", action="store_true", help="Run all tests and checks (unit, integration, pep8, lint, git)"
    )
    parser.add_argument(
        "-e",
        "--envs",
        dest="selector",
        default=DEFAULT,
        metavar="ENV1,ENV2",
        help="Run against the specified python environments (e.g. 311,312). "
        "Also works for integration, pep8 and lint tests.",
    )
    parser.add_argument(
        "--all-env",
        dest="selector",
        action="store_const",
        const=ALL,
        help="Run against all configured python environments",
    )
    parser.add_argument("--install", action="store_true", help="Install virtualenvs for the --envs specified")
    parser.add_argument("--uninstall", action="store_true", help="Remove virtualenvs for the --envs specified")
    parser.add_argument("--switch", action="store_true", help="Switch environments (as per --envs)")
    parser.add_argument("-s", "--stats", action="store_true", help="Show some project stats")
    parser.add_argument(
        "--no-coverage", dest="coverage", action="store_false", help="Don't make a unit test coverage report"
    )
    parser.add_argument("target", nargs="*", help="Test path or identifier overriding the default target")
    return parser


def select_task(args: argparse.Namespace) -> TaskSpec:
    return next((task for flag, task in TASK_PRIORITY if getattr(args, flag)), TaskSpec.UNIT)


def parse_request(argv: Sequence[str]) -> RunRequest:
    """Interpret command line tokens.

    Tokens that are neither known flags nor flag values are candidates for
    the free argument; the last one given wins.
    """
    argv = list(argv)
    args, extras = build_parser().parse_known_args(argv)

    leftovers = set(args.target) | set(extras)
    argument = next((token for token in reversed(argv) if token in leftovers), None)

    request = RunRequest(
        task=select_task(args),
        selector=args.selector,
        coverage_enabled=args.coverage,
        argument=argument,
    )
    logger.debug(
        {
            "event": "request_parsed",
            "task": request.task.value,
            "selector": request.selector,
            "coverage": request.coverage_enabled,
            "argument": request.argument,
        }
    )
    return request


async def run_interruptible(request: RunRequest, manager: EnvironmentManager) -> RunState:
    """Run the matrix with SIGINT delivered as a cancellation of the run.

    The matrix then stops at the current environment and reports the
    partial aggregate, whichever way the event loop would otherwise surface
    the interrupt.
    """
    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(run_matrix(request, manager))
    try:
        loop.add_signal_handler(signal.SIGINT, task.cancel)
    except (NotImplementedError, RuntimeError) as e:
        # No loop signal support here; SIGINT stays a KeyboardInterrupt
        logger.debug({"event": "sigint_handler_unavailable", "error": str(e)})
        return await task

    try:
        return await task
    finally:
        loop.remove_signal_handler(signal.SIGINT)


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging(log_level())
    request = parse_request(sys.argv[1:] if argv is None else argv)

    try:
        config = load_config(Path.cwd())
        manager = EnvironmentManager(config)
        state = asyncio.run(run_interruptible(request, manager))
    except InterruptedRunError as e:
        status_banner(False)
        return exit_status(max(e.state.exit_code, 1))
    except (ConfigurationError, EnvironmentInstallError) as e:
        log_error(e, logger=logger)
        fatal(f"ERROR: {e}")
        return 1
    except KeyboardInterrupt:
        status_banner(False)
        return 130

    status_banner(state.success)
    return exit_status(state.exit_code)


def run() -> None:
    sys.exit(main())
