"""Error types for the QA matrix runner."""

import logging
from typing import Any, Dict, Optional

from qa_matrix.logging import get_logger

logger = get_logger(__name__)


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Log an error with context."""
    logger = logger or get_logger(__name__)

    error_info = {
        "error_type": error.__class__.__name__,
        "error_message": str(error),
    }
    if context:
        error_info["context"] = context
    if isinstance(error, QAMatrixError):
        error_info["details"] = error.details

    logger.error("QA matrix error occurred", extra={"data": error_info})


class QAMatrixError(Exception):
    """Base error class for the QA matrix runner."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(QAMatrixError):
    """Invalid command line or project configuration."""


class EnvironmentActivationError(QAMatrixError):
    """Environment missing or unusable."""

    def __init__(self, env_id: str, root: str):
        super().__init__(
            f"Environment {env_id} not found at {root}",
            details={"env_id": env_id, "root": root},
        )


class EnvironmentInstallError(QAMatrixError):
    """Environment could not be created or removed."""

    def __init__(self, env_id: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Environment {env_id}: {message}",
            details={"env_id": env_id, **(details or {})},
        )


class InterruptedRunError(QAMatrixError):
    """Run cancelled by an interrupt after restoring the ambient environment."""

    def __init__(self, state):
        super().__init__(
            "Run interrupted",
            details={"run_id": state.run_id, "exit_code": state.exit_code},
        )
        self.state = state
