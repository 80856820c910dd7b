"""Configuration management for the gitporter server."""

import os
import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List

from dotenv import load_dotenv

from .platform import get_platform_specific_defaults, normalize_path


@dataclass
class Config:
    """Configuration class for gitporter with validation and defaults."""

    # GitHub account
    github_username: Optional[str] = None
    github_token: Optional[str] = None
    git_host: str = "github.com"
    api_base_url: str = "https://api.github.com"

    # Storage
    cloned_repos_dir: Path = field(default_factory=lambda: Path.home() / "cloned_repos")
    scaffolds_dir: Path = field(default_factory=lambda: Path.home() / "vite_scaffolds")

    # Project conventions
    helper_script_template: Optional[Path] = None
    helper_script_name: str = "run-vite-project.sh"
    manifest_name: str = "package.json"
    install_command: List[str] = field(default_factory=lambda: ["npm", "install"])
    install_timeout: Optional[float] = 600.0

    # Git
    default_branch: str = "main"
    commit_author_name: str = "gitporter"
    commit_author_email: str = "gitporter@localhost"

    # Concurrency
    serialize_per_path: bool = True
    path_lock_timeout: float = 30.0

    # Logging
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate configuration after initialization."""
        self.cloned_repos_dir = normalize_path(self.cloned_repos_dir)
        self.scaffolds_dir = normalize_path(self.scaffolds_dir)
        if self.helper_script_template is not None:
            self.helper_script_template = normalize_path(self.helper_script_template)

        if isinstance(self.install_command, str):
            self.install_command = shlex.split(self.install_command)
        if not self.install_command:
            raise ValueError("install_command must not be empty")

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level.upper() not in valid_log_levels:
            raise ValueError(f"Invalid log level: {self.log_level}. Must be one of {valid_log_levels}")
        self.log_level = self.log_level.upper()

        if not self.default_branch.strip():
            raise ValueError("default_branch must not be empty")

        if not self.git_host.strip() or "/" in self.git_host:
            raise ValueError(f"Invalid git host: {self.git_host!r}")

        if self.install_timeout is not None and self.install_timeout <= 0:
            raise ValueError("install_timeout must be positive")

        if self.path_lock_timeout <= 0:
            raise ValueError("path_lock_timeout must be positive")

    @property
    def web_prefix(self) -> str:
        """Browser URL prefix of the hosting service."""
        return f"https://{self.git_host}/"

    @property
    def ssh_prefix(self) -> str:
        """Canonical SSH transport prefix of the hosting service."""
        return f"git@{self.git_host}:"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def load_configuration() -> Config:
    """Load configuration from environment variables with platform-specific defaults."""
    load_dotenv()  # Load .env file if it exists

    try:
        defaults = get_platform_specific_defaults()

        template = os.getenv("GITPORTER_HELPER_SCRIPT_TEMPLATE")
        install_timeout = os.getenv("GITPORTER_INSTALL_TIMEOUT", str(defaults['install_timeout']))

        return Config(
            github_username=os.getenv("GITPORTER_GITHUB_USERNAME") or os.getenv("GITHUB_USERNAME"),
            github_token=os.getenv("GITPORTER_GITHUB_TOKEN") or os.getenv("GITHUB_PAT"),
            git_host=os.getenv("GITPORTER_GIT_HOST", "github.com"),
            api_base_url=os.getenv("GITPORTER_API_BASE_URL", "https://api.github.com"),
            cloned_repos_dir=Path(os.getenv("GITPORTER_CLONED_REPOS_DIR", str(defaults['cloned_repos_dir']))),
            scaffolds_dir=Path(os.getenv("GITPORTER_SCAFFOLDS_DIR", str(defaults['scaffolds_dir']))),
            helper_script_template=Path(template) if template else None,
            helper_script_name=os.getenv("GITPORTER_HELPER_SCRIPT_NAME", "run-vite-project.sh"),
            manifest_name=os.getenv("GITPORTER_MANIFEST_NAME", "package.json"),
            install_command=os.getenv("GITPORTER_INSTALL_COMMAND", defaults['install_command']),
            install_timeout=float(install_timeout) if install_timeout else None,
            default_branch=os.getenv("GITPORTER_DEFAULT_BRANCH", "main"),
            commit_author_name=os.getenv("GITPORTER_COMMIT_AUTHOR_NAME", "gitporter"),
            commit_author_email=os.getenv("GITPORTER_COMMIT_AUTHOR_EMAIL", "gitporter@localhost"),
            serialize_per_path=_env_flag("GITPORTER_SERIALIZE_PER_PATH", "true"),
            path_lock_timeout=float(os.getenv("GITPORTER_PATH_LOCK_TIMEOUT", str(defaults['path_lock_timeout']))),
            log_level=os.getenv("GITPORTER_LOG_LEVEL", defaults['log_level']).upper(),
        )
    except (ValueError, TypeError) as e:
        raise ValueError(f"Configuration error: {e}")


def validate_configuration(config: Config) -> List[str]:
    """Validate configuration and return any errors or warnings."""
    issues = []

    if not config.github_token:
        issues.append("WARNING: GitHub token is not configured; repository listing and creation are disabled")

    if not config.github_username:
        issues.append("WARNING: GitHub username is not configured; uploads need a full repository reference")

    if config.helper_script_template is None:
        issues.append("WARNING: Helper script template is not configured; projects without the script cannot be prepared")
    elif not config.helper_script_template.is_file():
        issues.append(f"ERROR: Helper script template not found: {config.helper_script_template}")

    for label, directory in (("cloned repositories", config.cloned_repos_dir),
                             ("scaffolds", config.scaffolds_dir)):
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            issues.append(f"ERROR: No write permission for {label} directory: {directory}")
        except OSError as e:
            issues.append(f"ERROR: Cannot access {label} directory {directory}: {e}")

    if not config.api_base_url.startswith(("http://", "https://")):
        issues.append(f"WARNING: GitHub API base URL may be invalid: {config.api_base_url}")

    logging.getLogger('gitporter.config').debug(f"Configuration validated with {len(issues)} issue(s)")
    return issues
