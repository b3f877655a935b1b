"""Environment selectors and descriptor expansion."""

from typing import List, Sequence

from qa_matrix.errors import ConfigurationError
from qa_matrix.logging import get_logger

logger = get_logger(__name__)

DEFAULT = "default"
ALL = "all"
SENTINELS = (DEFAULT, ALL)


def resolve_selector(selector: str, descriptors: Sequence[str]) -> List[str]:
    """Expand a selector into an ordered list of environment identifiers.

    ``all`` expands to ``descriptors`` in their canonical order. Anything else
    is split on commas, keeping order and duplicates; ``default`` stays as the
    single pseudo-identifier meaning "do not switch".
    """
    selector = selector.strip()
    if selector == ALL:
        identifiers = list(descriptors)
    else:
        identifiers = [part.strip() for part in selector.split(",") if part.strip()]

    logger.debug({"event": "selector_resolved", "selector": selector, "envs": identifiers})
    return identifiers


def assert_specific_envs(selector: str, identifiers: Sequence[str]) -> None:
    """Reject selectors that do not name concrete environments."""
    if selector.strip() in SENTINELS or not identifiers:
        raise ConfigurationError(
            "Please specify one or more environments using --envs",
            details={"selector": selector},
        )

    for identifier in identifiers:
        if identifier in SENTINELS or "/" in identifier or "\\" in identifier or identifier in (".", ".."):
            raise ConfigurationError(
                f"Invalid environment identifier: {identifier!r}",
                details={"selector": selector, "env_id": identifier},
            )
