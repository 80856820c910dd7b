"""Dependency installation for acquired projects."""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .reconcile.error_types import InstallError


@dataclass
class InstallOutcome:
    """Result of one install command run."""
    success: bool
    output: str
    returncode: Optional[int] = None


class DependencyInstaller:
    """Runs the install command (``npm install`` by default) inside a project directory."""

    def __init__(self, command: Optional[List[str]] = None, timeout: Optional[float] = None):
        self.command = list(command or ["npm", "install"])
        self.timeout = timeout
        self.logger = logging.getLogger('gitporter.installer')

    def install(self, path: Path) -> InstallOutcome:
        """Run the install command in ``path``; failures are reported, not raised."""
        self.logger.info(f"Running {' '.join(self.command)} in {path}")
        try:
            completed = subprocess.run(
                self.command,
                cwd=str(path),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=self.timeout,
                check=False
            )
        except FileNotFoundError as e:
            return InstallOutcome(success=False, output=f"Install command not found: {e}")
        except subprocess.TimeoutExpired as e:
            output = e.output if isinstance(e.output, str) else ""
            return InstallOutcome(success=False, output=f"{output}\nInstall timed out after {self.timeout}s".strip())

        success = completed.returncode == 0
        if not success:
            self.logger.warning(f"Install failed in {path} with exit code {completed.returncode}")
        return InstallOutcome(success=success, output=completed.stdout or "", returncode=completed.returncode)

    def install_or_raise(self, path: Path) -> InstallOutcome:
        outcome = self.install(path)
        if not outcome.success:
            raise InstallError(
                f"Dependency installation failed in {path}",
                output=outcome.output,
                path=path,
                returncode=outcome.returncode
            )
        return outcome
