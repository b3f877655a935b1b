"""Collaborator process execution."""

import asyncio
import logging
import shutil
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

from qa_matrix.logging import get_logger, log_with_data
from qa_matrix.outcomes import COMMAND_NOT_FOUND, normalize

logger = get_logger(__name__)

# Seconds a cancelled collaborator gets to exit after SIGTERM
TERMINATE_GRACE = 5.0


async def _stop_process(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    process.terminate()
    try:
        await asyncio.wait_for(process.wait(), TERMINATE_GRACE)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()


async def run_command(
    args: Sequence[str],
    cwd: Path,
    env_vars: Dict[str, str],
    capture: bool = False,
) -> Tuple[int, bytes, bytes]:
    """Run a collaborator and return (returncode, stdout, stderr).

    Output goes straight to the terminal unless ``capture`` is set. A
    cancelled run terminates the child before re-raising.
    """
    cmd = [str(a) for a in args]
    log_with_data(logger, logging.DEBUG, "cmd_exec", {"cmd": cmd, "cwd": str(cwd), "capture": capture})

    pipe = asyncio.subprocess.PIPE if capture else None
    try:
        process = await asyncio.create_subprocess_exec(
            *cmd, cwd=cwd, env=env_vars, stdout=pipe, stderr=pipe
        )
    except FileNotFoundError as e:
        logger.error({"event": "cmd_not_found", "cmd": cmd, "error": str(e)})
        return COMMAND_NOT_FOUND, b"", str(e).encode()

    try:
        stdout, stderr = await process.communicate()
    except BaseException:
        await _stop_process(process)
        logger.warning({"event": "cmd_cancelled", "cmd": cmd, "pid": process.pid})
        raise

    returncode = normalize(process.returncode)
    logger.debug({"event": "cmd_complete", "cmd": cmd, "returncode": returncode})

    return returncode, stdout or b"", stderr or b""


def which(cmd: str, env_vars: Dict[str, str]) -> Optional[str]:
    """Locate an executable on the PATH collaborators will see."""
    return shutil.which(cmd, path=env_vars.get("PATH"))
