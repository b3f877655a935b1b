"""Core type definitions"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from fuuid import b58_fuuid

OutcomeCode = int


class TaskSpec(Enum):
    UNIT = "unit"
    INTEGRATION = "integration"
    STYLE = "style"
    LINT = "lint"
    CONVENTION = "convention"
    STATS = "stats"
    CLEAN = "clean"
    SWITCH = "switch"
    INSTALL = "install"
    UNINSTALL = "uninstall"
    ALL = "all"

    @property
    def manages_environments(self) -> bool:
        return self in (TaskSpec.INSTALL, TaskSpec.UNINSTALL)


@dataclass(frozen=True)
class Environment:
    """Virtualenv identified by a descriptor"""
    id: str
    root: Path

    @property
    def bin_dir(self) -> Path:
        return self.root / "bin"

    @property
    def python(self) -> Path:
        return self.bin_dir / "python"


@dataclass(frozen=True)
class RunRequest:
    """Parsed command line"""
    task: TaskSpec = TaskSpec.UNIT
    selector: str = "default"
    coverage_enabled: bool = True
    argument: Optional[str] = None


@dataclass
class RunState:
    """State owned by a single orchestrator invocation"""
    ambient: Optional[Environment]
    active: Optional[Environment]
    exit_code: OutcomeCode = 0
    outcomes: List[Tuple[str, OutcomeCode]] = field(default_factory=list)
    interrupted: bool = False
    restored: int = 0
    run_id: str = field(default_factory=b58_fuuid)

    @classmethod
    def begin(cls, ambient: Optional[Environment]) -> "RunState":
        return cls(ambient=ambient, active=ambient)

    @property
    def success(self) -> bool:
        return self.exit_code == 0
