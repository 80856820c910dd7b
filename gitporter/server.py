"""Main server implementation for the gitporter MCP server."""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from mcp.server.fastmcp import FastMCP

from .config import Config, load_configuration, validate_configuration
from .errors import error_handler
from .github_api import GitHubClient
from .platform import normalize_path, validate_git_availability
from .reconcile import AcquisitionRequest, ReconciliationEngine, SyncRequest
from .reconcile.error_types import GitPorterError, ValidationError
from .scaffold import scaffold_project


def setup_logging(config: Config) -> None:
    """Setup logging with a formatter that tags records carrying an operation."""
    class StructuredFormatter(logging.Formatter):
        def format(self, record):
            message = super().format(record)
            operation = getattr(record, 'operation', None)
            if operation:
                return f"[{operation}] {message}"
            return message

    # stdout carries the MCP protocol
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        stream=sys.stderr
    )

    formatter = StructuredFormatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    logger = logging.getLogger('gitporter')
    logger.setLevel(getattr(logging, config.log_level))
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.propagate = False


def repository_name(reference: str) -> str:
    """Last path segment of a repository reference without ``.git``."""
    name = reference.strip().rstrip("/").replace(":", "/").split("/")[-1]
    return name[:-len(".git")] if name.endswith(".git") else name


def _require(value: Optional[str], field: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field} is required", details={"field": field})
    return value.strip()


class GitPorterTools:
    """
    Implementations behind the MCP tools.

    Every method returns a success response dict or an error response dict;
    exceptions never escape to the MCP layer.
    """

    def __init__(self, config: Config, engine: Optional[ReconciliationEngine] = None, github_transport=None):
        self.config = config
        self.engine = engine or ReconciliationEngine(config)
        self._github_transport = github_transport
        self.logger = logging.getLogger('gitporter.tools')

    def _github(self) -> GitHubClient:
        return GitHubClient(self.config.github_token, self.config.api_base_url, transport=self._github_transport)

    def _local_path(self, value: str, base: Path) -> Path:
        """Absolute paths are used as given; relative ones are placed under ``base``."""
        path = Path(value).expanduser()
        if not path.is_absolute():
            path = base / path
        return normalize_path(path)

    def _failure(self, error: Exception, tool: str, context: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(error, GitPorterError):
            self.logger.error(f"Unexpected error in {tool}: {error}", exc_info=True)
        return error_handler.handle_error(error, dict(context, tool=tool)).to_dict()

    def list_repositories(self, username: str = "") -> Dict[str, Any]:
        context = {"username": username or self.config.github_username}
        try:
            owner = _require(username or self.config.github_username, "username")
            repos = self._github().list_repositories(owner)
        except Exception as e:
            return self._failure(e, "list_repositories", context)
        return error_handler.create_success_response("list_repositories", {"repositories": repos}, context)

    def create_repository(self, name: str, description: str = "") -> Dict[str, Any]:
        context = {"name": name}
        try:
            repo = self._github().create_repository(_require(name, "name"), description or None)
        except Exception as e:
            return self._failure(e, "create_repository", context)
        return error_handler.create_success_response("create_repository", {"repository": repo}, context)

    def scaffold_project(self, project_name: str, template: str = "react") -> Dict[str, Any]:
        context = {"project_name": project_name, "template": template}
        try:
            result = scaffold_project(self.config, project_name, template)
        except Exception as e:
            return self._failure(e, "scaffold_project", context)
        return error_handler.create_success_response("scaffold_project", result, context)

    def upload_project(self, local_path: str, target_repo: str, commit_message: str,
                       branch_name: str = "") -> Dict[str, Any]:
        context = {"target_repo": target_repo, "branch": branch_name or self.config.default_branch}
        try:
            request = SyncRequest(
                local_path=self._local_path(_require(local_path, "local_path"), self.config.scaffolds_dir),
                target_repo=target_repo,
                commit_message=commit_message,
                branch_name=branch_name or self.config.default_branch
            )
            result = self.engine.synchronize_upload(request)
        except Exception as e:
            return self._failure(e, "upload_project", context)
        return error_handler.create_success_response("upload_project", result.to_dict(), context)

    def download_project(self, repo_url: str, local_path: str = "", branch_name: str = "") -> Dict[str, Any]:
        context = {"repo_url": repo_url, "branch": branch_name or self.config.default_branch}
        try:
            reference = _require(repo_url, "repo_url")
            target = local_path.strip() if local_path and local_path.strip() else repository_name(reference)
            request = AcquisitionRequest(
                remote_reference=reference,
                local_path=self._local_path(target, self.config.cloned_repos_dir),
                branch_name=branch_name or self.config.default_branch
            )
            result = self.engine.acquire_project(request)
        except Exception as e:
            return self._failure(e, "download_project", context)
        return error_handler.create_success_response("download_project", result.to_dict(), context)


def register_tools(server: FastMCP, tools: GitPorterTools) -> None:
    """Register MCP tools with the server instance."""

    @server.tool()
    def list_repositories(username: str = "") -> dict:
        """
        List the GitHub repositories of an account.

        Args:
            username: GitHub account name (defaults to the configured account)

        Returns:
            Dictionary with the repositories as returned by the GitHub API
        """
        return tools.list_repositories(username)

    @server.tool()
    def create_repository(name: str, description: str = "") -> dict:
        """
        Create a GitHub repository under the configured account, initialized with a README.

        Args:
            name: Repository name
            description: Optional repository description
        """
        return tools.create_repository(name, description)

    @server.tool()
    def scaffold_project(project_name: str, template: str = "react") -> dict:
        """
        Generate a new Vite project in the scaffolds directory.

        Args:
            project_name: Directory name of the new project (must not exist yet)
            template: Vite template, e.g. "react", "vue", "svelte-ts"
        """
        return tools.scaffold_project(project_name, template)

    @server.tool()
    def upload_project(local_path: str, target_repo: str, commit_message: str, branch_name: str = "") -> dict:
        """
        Commit a local project and push it to a branch of a remote repository.

        The directory is initialized as a git repository if needed, its
        'origin' remote is pointed at the target, and the branch is created
        when it does not exist yet.

        Args:
            local_path: Project directory; relative paths are resolved in the scaffolds directory
            target_repo: Repository name under the configured account, or a full repository URL
            commit_message: Commit message for the upload
            branch_name: Target branch (defaults to the configured default branch)

        Returns:
            Dictionary with the commit, remote URL and browser URL of the branch
        """
        return tools.upload_project(local_path, target_repo, commit_message, branch_name)

    @server.tool()
    def download_project(repo_url: str, local_path: str = "", branch_name: str = "") -> dict:
        """
        Clone or update a repository branch locally and install its dependencies.

        An existing checkout is updated in place; if that fails it is deleted
        and cloned again.

        Args:
            repo_url: Repository URL (https URLs are converted to SSH)
            local_path: Target directory; relative paths are resolved in the cloned repositories directory
            branch_name: Branch to check out (defaults to the configured default branch)
        """
        return tools.download_project(repo_url, local_path, branch_name)

    logging.getLogger('gitporter.init').info("MCP tools registered successfully")


def initialize_server(config: Optional[Config] = None) -> FastMCP:
    """Initialize the MCP server with stdio transport."""
    server_config = config or load_configuration()
    setup_logging(server_config)
    init_logger = logging.getLogger('gitporter.init')

    validation_issues = validate_configuration(server_config)
    for issue in validation_issues:
        if issue.startswith("ERROR:"):
            init_logger.error(issue[7:])
        elif issue.startswith("WARNING:"):
            init_logger.warning(issue[9:])

    error_count = sum(1 for issue in validation_issues if issue.startswith("ERROR:"))
    if error_count > 0:
        init_logger.critical(f"Server startup failed due to {error_count} configuration error(s)")
        sys.exit(1)

    git_available, git_error = validate_git_availability()
    if not git_available:
        init_logger.critical(f"Git is required: {git_error}")
        sys.exit(1)

    init_logger.info("Configuration loaded successfully")

    server = FastMCP("gitporter")
    register_tools(server, GitPorterTools(server_config))

    init_logger.info("gitporter MCP server initialized successfully")
    return server


def main():
    """Main entry point for the gitporter server with stdio transport."""
    startup_logger = logging.getLogger('gitporter.startup')

    try:
        server = initialize_server()
        startup_logger.info("Ready to accept MCP connections via stdio transport")
        server.run(transport="stdio")
    except KeyboardInterrupt:
        startup_logger.info("Server stopped by user (Ctrl+C)")
    except ValueError as e:
        # load_configuration reports invalid settings as ValueError
        logging.basicConfig(level=logging.ERROR, stream=sys.stderr)
        startup_logger.critical(f"Server failed to start: {e}")
        sys.exit(1)
