"""Project manifest checks and the bundled helper script."""

import logging
import os
import shutil
from pathlib import Path

from .config import Config
from .reconcile.error_types import ConfigurationError, ValidationError

EXECUTABLE_MODE = 0o755


def require_local_path(value, operation: str) -> Path:
    """
    Convert a caller-supplied local path, rejecting blank values.

    ``Path("")`` collapses to the current directory, so emptiness is checked
    on the raw value and on the parsed path alike.
    """
    if value is None or (isinstance(value, str) and not value.strip()) or not Path(value).parts:
        raise ValidationError(
            "local_path must not be empty",
            operation=operation,
            details={"field": "local_path"}
        )
    return Path(value)


def require_project_directory(path: Path, manifest_name: str = "package.json") -> Path:
    """
    Check that ``path`` is an existing directory holding the project manifest.

    Raises:
        ValidationError: the path is missing, not a directory, or has no manifest
    """
    path = Path(path)
    if not path.exists():
        raise ValidationError(f"Directory not found: {path}", operation="validate_project", path=path)
    if not path.is_dir():
        raise ValidationError(f"Not a directory: {path}", operation="validate_project", path=path)
    if not (path / manifest_name).is_file():
        raise ValidationError(
            f"Directory does not appear to be a project ({manifest_name} missing): {path}",
            operation="validate_project",
            path=path,
            details={"manifest": manifest_name}
        )
    return path


def ensure_helper_script(project_dir: Path, config: Config, make_executable: bool = True) -> Path:
    """
    Make sure the helper script exists in ``project_dir``.

    A missing script is copied from the configured template. With
    ``make_executable`` the script ends up with mode 0755 whether it was
    copied or already shipped with the project.

    Raises:
        ConfigurationError: the script is missing and no usable template is configured
    """
    logger = logging.getLogger('gitporter.project_files')
    script_path = Path(project_dir) / config.helper_script_name

    if not script_path.exists():
        template = config.helper_script_template
        if template is None or not template.is_file():
            raise ConfigurationError(
                f"Helper script template not available: {template}",
                operation="ensure_helper_script",
                path=script_path
            )
        shutil.copyfile(template, script_path)
        logger.info(f"Copied {config.helper_script_name} into {project_dir}")

    if make_executable:
        os.chmod(script_path, EXECUTABLE_MODE)

    return script_path
