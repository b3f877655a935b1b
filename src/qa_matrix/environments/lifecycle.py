"""Environment lifecycle management."""

import os
import shutil
from pathlib import Path
from typing import Dict, Mapping, Optional

from qa_matrix.commands import run_command, which
from qa_matrix.config import QAConfig
from qa_matrix.environments.descriptors import DEFAULT
from qa_matrix.errors import EnvironmentActivationError, EnvironmentInstallError
from qa_matrix.logging import ColorCodes, get_logger, title
from qa_matrix.types import Environment, RunState

logger = get_logger(__name__)


def _strip_path(path_var: str, directory: Path) -> str:
    return os.pathsep.join(p for p in path_var.split(os.pathsep) if p and Path(p) != directory)


def deactivate_vars(env_vars: Mapping[str, str], env: Environment) -> Dict[str, str]:
    """Child environment with ``env`` deactivated, as ``deactivate`` would leave it."""
    result = dict(env_vars)
    result["PATH"] = _strip_path(result.get("PATH", ""), env.bin_dir)
    result.pop("VIRTUAL_ENV", None)
    return result


def activate_vars(env_vars: Mapping[str, str], env: Environment) -> Dict[str, str]:
    """Child environment with ``env`` activated, as ``bin/activate`` would leave it."""
    result = dict(env_vars)
    current_path = result.get("PATH", "")
    result["PATH"] = f"{env.bin_dir}{os.pathsep}{current_path}" if current_path else str(env.bin_dir)
    result["VIRTUAL_ENV"] = str(env.root)
    result.pop("PYTHONHOME", None)
    return result


class EnvironmentManager:
    """Creates, removes and switches between project virtualenvs.

    The manager never touches ``os.environ``. Activation only changes the
    environment variables handed to collaborator processes, computed from the
    ``RunState`` passed in.
    """

    def __init__(self, config: QAConfig, base_env: Optional[Mapping[str, str]] = None):
        self.config = config
        self.base_env = dict(os.environ if base_env is None else base_env)

    def environment(self, identifier: str) -> Environment:
        return Environment(id=identifier, root=self.config.env_root(identifier))

    def capture_ambient(self) -> Optional[Environment]:
        """Environment active in the calling shell, if any."""
        virtual_env = self.base_env.get("VIRTUAL_ENV")
        if not virtual_env:
            return None

        root = Path(virtual_env)
        name = root.name
        prefix = self.config.venv_prefix
        identifier = name[len(prefix):] if prefix and name.startswith(prefix) and name != prefix else name
        ambient = Environment(id=identifier, root=root)
        logger.debug({"event": "ambient_environment", "env_id": ambient.id, "root": str(root)})
        return ambient

    def environ(self, state: RunState) -> Dict[str, str]:
        """Variables for collaborators given the currently active environment."""
        if state.active == state.ambient:
            return dict(self.base_env)

        env_vars = dict(self.base_env)
        if state.ambient:
            env_vars = deactivate_vars(env_vars, state.ambient)
        if state.active:
            env_vars = activate_vars(env_vars, state.active)
        return env_vars

    def deactivate(self, state: RunState) -> None:
        if state.active:
            logger.debug({"event": "environment_deactivated", "env_id": state.active.id})
        state.active = None

    def activate(self, state: RunState, identifier: str) -> Environment:
        env = self.environment(identifier)
        if not env.python.exists():
            logger.error(
                {"event": "environment_missing", "env_id": identifier, "root": str(env.root)}
            )
            raise EnvironmentActivationError(identifier, str(env.root))

        state.active = env
        logger.info({"event": "environment_activated", "env_id": identifier, "root": str(env.root)})
        return env

    async def switch_to(self, state: RunState, identifier: str) -> Optional[Environment]:
        """Make ``identifier`` the active environment and report its interpreter.

        The previous environment is deactivated before the new one is checked,
        so a failed switch leaves no environment active. ``default`` keeps
        whatever is active at that point, which after a failed switch is none.
        """
        if identifier != DEFAULT:
            self.deactivate(state)
            self.activate(state, identifier)

        await self.describe(state)
        return state.active

    def restore(self, state: RunState) -> None:
        """Reactivate whatever was active before the run started."""
        state.active = state.ambient
        state.restored += 1
        logger.debug(
            {
                "event": "environment_restored",
                "run_id": state.run_id,
                "env_id": state.ambient.id if state.ambient else None,
            }
        )

    async def describe(self, state: RunState) -> str:
        """Print and return the identity of the active interpreter."""
        env_vars = self.environ(state)
        python = which("python", env_vars) or which("python3", env_vars)
        if python:
            _, stdout, stderr = await run_command(
                [python, "--version"], self.config.project_root, env_vars, capture=True
            )
            version = (stdout or stderr).decode(errors="replace").strip()
        else:
            python, version = "not found", "unknown"

        identity = f"### PYTHON ({version}, {python}) ###"
        title(identity)
        return identity

    def interpreter_for(self, identifier: str) -> str:
        """Resolve the interpreter used to build environment ``identifier``.

        The first character of the identifier is the major version and the
        rest the minor version: ``311`` means ``python3.11``.
        """
        name = self.config.interpreters.get(identifier)
        if not name:
            if len(identifier) > 1 and identifier.isdigit():
                name = f"python{identifier[0]}.{identifier[1:]}"
            else:
                name = f"python{identifier}"

        search_env = dict(self.base_env)
        ambient = self.capture_ambient()
        if ambient:
            search_env = deactivate_vars(search_env, ambient)

        interpreter = which(name, search_env)
        if not interpreter:
            raise EnvironmentInstallError(
                identifier, f"interpreter {name} not found", details={"interpreter": name}
            )
        return interpreter

    async def _provision(self, env: Environment, args, env_vars: Dict[str, str]) -> None:
        returncode, _, _ = await run_command(args, self.config.project_root, env_vars)
        if returncode != 0:
            raise EnvironmentInstallError(
                env.id,
                f"command failed with code {returncode}",
                details={"cmd": [str(a) for a in args], "returncode": returncode},
            )

    async def install(self, state: RunState, identifier: str) -> Environment:
        """(Re)create environment ``identifier`` and install project requirements.

        Existing environments are cleared and rebuilt. No environment is left
        active afterwards.
        """
        self.deactivate(state)
        env = self.environment(identifier)
        interpreter = self.interpreter_for(identifier)

        title(f"### INSTALLING {env.root.name} ({interpreter}) ###")
        logger.info(
            {"event": "environment_install", "env_id": identifier, "root": str(env.root), "interpreter": interpreter}
        )

        base_vars = self.environ(state)
        await self._provision(env, [interpreter, "-m", "venv", "--clear", env.root], base_vars)

        env_vars = activate_vars(base_vars, env)
        if self.config.upgrade_pip:
            await self._provision(env, [env.python, "-m", "pip", "install", "-U", "pip"], env_vars)

        for requirements in self.config.requirements:
            path = self.config.project_root / requirements
            if not path.exists():
                logger.debug({"event": "requirements_missing", "path": str(path)})
                continue
            await self._provision(env, [env.python, "-m", "pip", "install", "-r", path], env_vars)

        logger.info({"event": "environment_installed", "env_id": identifier})
        return env

    async def uninstall(self, state: RunState, identifier: str) -> None:
        """Remove environment ``identifier``; a missing environment is not an error."""
        self.deactivate(state)
        env = self.environment(identifier)

        print(f"Uninstalling {env.root.name}...", end="", flush=True)
        if env.root.exists():
            try:
                shutil.rmtree(env.root)
            except OSError as e:
                raise EnvironmentInstallError(identifier, f"cannot remove {env.root}: {e}") from e
        print(f"{ColorCodes.GREEN}DONE{ColorCodes.RESET}")

        logger.info({"event": "environment_uninstalled", "env_id": identifier, "root": str(env.root)})
