"""Vite project scaffolding."""

import logging
import re
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import Config
from .platform import get_npm_executable
from .project_files import ensure_helper_script
from .reconcile.error_types import GitPorterError, ValidationError

_PROJECT_NAME = re.compile(r'^[A-Za-z0-9][A-Za-z0-9._-]*$')


class ScaffoldError(GitPorterError):
    """The project generator failed."""

    def __init__(self, message: str, output: str = "", path=None):
        super().__init__(message, operation="scaffold_project", path=path)
        self.output = output


class ProjectExistsError(GitPorterError):
    """The target project directory already exists."""


def build_scaffold_command(project_name: str, template: str) -> List[str]:
    return [get_npm_executable(), "create", "vite@latest", project_name, "--", "--template", template]


def scaffold_project(
    config: Config,
    project_name: str,
    template: str = "react",
    timeout: Optional[float] = None
) -> Dict[str, Any]:
    """
    Generate a new Vite project under the scaffolds directory.

    Returns:
        Dict with the project ``path`` and the generator ``output``

    Raises:
        ValidationError: invalid project name or template
        ProjectExistsError: the project directory already exists
        ScaffoldError: the generator failed
        ConfigurationError: no helper script template is configured
    """
    logger = logging.getLogger('gitporter.scaffold')

    if not project_name or not _PROJECT_NAME.match(project_name):
        raise ValidationError(f"Invalid project name: {project_name!r}", operation="scaffold_project",
                              details={"field": "project_name"})
    if not template or not _PROJECT_NAME.match(template):
        raise ValidationError(f"Invalid template: {template!r}", operation="scaffold_project",
                              details={"field": "template"})

    base_dir = config.scaffolds_dir
    base_dir.mkdir(parents=True, exist_ok=True)
    project_path = base_dir / project_name

    if project_path.exists():
        raise ProjectExistsError(
            f"Project directory '{project_name}' already exists. Choose a different name or delete it first.",
            operation="scaffold_project",
            path=project_path
        )

    command = build_scaffold_command(project_name, template)
    logger.info(f"Running {' '.join(command)} in {base_dir}")
    try:
        completed = subprocess.run(
            command,
            cwd=str(base_dir),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=timeout if timeout is not None else config.install_timeout,
            check=False
        )
    except FileNotFoundError as e:
        raise ScaffoldError(f"Project generator not found: {e}", path=project_path) from e
    except subprocess.TimeoutExpired as e:
        raise ScaffoldError(f"Project generator timed out after {e.timeout}s", path=project_path) from e

    output = completed.stdout or ""
    if completed.returncode != 0 or not project_path.is_dir():
        raise ScaffoldError(
            f"Failed to scaffold project '{project_name}' (exit code {completed.returncode})",
            output=output,
            path=project_path
        )

    script = ensure_helper_script(project_path, config)
    logger.info(f"Scaffolded {project_path} with {script.name}")

    return {"path": str(project_path), "output": output}
