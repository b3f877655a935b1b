"""Task registry mapping each task to its checker."""

from typing import Dict

from qa_matrix.checkers.checker import Checker, CompositeChecker, SwitchChecker
from qa_matrix.checkers.clean import CleanChecker
from qa_matrix.checkers.convention import ConventionChecker
from qa_matrix.checkers.pytest import IntegrationChecker, UnitChecker
from qa_matrix.checkers.stats import StatsChecker
from qa_matrix.checkers.style import LintChecker, StyleChecker
from qa_matrix.types import TaskSpec

Registry = Dict[TaskSpec, Checker]


def run_all_checker(registry: Registry) -> CompositeChecker:
    """Unit, integration, style, lint and convention checks, in that order."""
    return CompositeChecker(
        [
            ("# UNIT TESTS #", registry[TaskSpec.UNIT]),
            ("# INTEGRATION TESTS #", registry[TaskSpec.INTEGRATION]),
            ("# STYLE CHECKS #", registry[TaskSpec.STYLE]),
            (None, registry[TaskSpec.LINT]),
            (None, registry[TaskSpec.CONVENTION]),
        ]
    )


def build_registry() -> Registry:
    registry: Registry = {
        TaskSpec.UNIT: UnitChecker(),
        TaskSpec.INTEGRATION: IntegrationChecker(),
        TaskSpec.STYLE: StyleChecker(),
        TaskSpec.LINT: LintChecker(),
        TaskSpec.CONVENTION: ConventionChecker(),
        TaskSpec.STATS: StatsChecker(),
        TaskSpec.CLEAN: CleanChecker(),
        TaskSpec.SWITCH: SwitchChecker(),
    }
    registry[TaskSpec.ALL] = run_all_checker(registry)
    return registry
