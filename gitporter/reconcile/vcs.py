"""Git command surface for the reconciliation engine, built on GitPython.

Every git failure leaving this module is a VcsOperationError carrying a
VcsFailureKind, so callers branch on the kind instead of on git's output.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

from git import Repo, GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from .error_types import BranchNotFound, VcsFailureKind, VcsOperationError

T = TypeVar('T')

ORIGIN = "origin"

# Ordered: the first matching pattern wins.
_FAILURE_PATTERNS: List[Tuple[str, VcsFailureKind]] = [
    ("nothing to commit", VcsFailureKind.NOTHING_TO_COMMIT),
    ("no changes added to commit", VcsFailureKind.NOTHING_TO_COMMIT),
    ("nothing added to commit", VcsFailureKind.NOTHING_TO_COMMIT),

    ("[rejected]", VcsFailureKind.REJECTED),
    ("non-fast-forward", VcsFailureKind.REJECTED),
    ("[remote rejected]", VcsFailureKind.REJECTED),
    ("updates were rejected", VcsFailureKind.REJECTED),

    ("authentication failed", VcsFailureKind.AUTHENTICATION),
    ("permission denied", VcsFailureKind.AUTHENTICATION),
    ("could not read username", VcsFailureKind.AUTHENTICATION),
    ("invalid username or password", VcsFailureKind.AUTHENTICATION),
    ("host key verification failed", VcsFailureKind.AUTHENTICATION),
    ("the requested url returned error: 403", VcsFailureKind.AUTHENTICATION),
    ("the requested url returned error: 401", VcsFailureKind.AUTHENTICATION),

    ("could not resolve host", VcsFailureKind.NETWORK),
    ("connection refused", VcsFailureKind.NETWORK),
    ("connection timed out", VcsFailureKind.NETWORK),
    ("operation timed out", VcsFailureKind.NETWORK),
    ("network is unreachable", VcsFailureKind.NETWORK),
    ("no route to host", VcsFailureKind.NETWORK),
    ("temporary failure in name resolution", VcsFailureKind.NETWORK),
    ("connection reset", VcsFailureKind.NETWORK),

    ("repository not found", VcsFailureKind.REMOTE_NOT_FOUND),
    ("does not appear to be a git repository", VcsFailureKind.REMOTE_NOT_FOUND),
    ("could not read from remote repository", VcsFailureKind.REMOTE_NOT_FOUND),
    ("no such remote", VcsFailureKind.REMOTE_NOT_FOUND),

    ("not a git repository", VcsFailureKind.NOT_A_REPOSITORY),
]


def _error_text(error: GitCommandError) -> str:
    parts = [str(error), getattr(error, "stdout", "") or "", getattr(error, "stderr", "") or ""]
    return "\n".join(parts).lower()


def classify_git_error(error: GitCommandError) -> VcsFailureKind:
    """Map a failed git command onto a VcsFailureKind."""
    text = _error_text(error)
    for pattern, kind in _FAILURE_PATTERNS:
        if pattern in text:
            return kind
    return VcsFailureKind.UNKNOWN


def _git_message(error: GitCommandError) -> str:
    stderr = (getattr(error, "stderr", "") or "").strip()
    stdout = (getattr(error, "stdout", "") or "").strip()
    body = stderr or stdout or str(error)
    # GitPython prefixes captured output with "stderr: '...'"
    for prefix in ("stderr: ", "stdout: "):
        if body.startswith(prefix):
            body = body[len(prefix):]
    return body.strip().strip("'").strip()


class GitCommandSurface:
    """
    The git operations the engine needs, each addressed by working copy path.

    Network operations run with prompts disabled so a missing credential
    fails fast instead of blocking the request.
    """

    def __init__(self, env: Optional[Dict[str, str]] = None):
        self.logger = logging.getLogger('gitporter.reconcile.vcs')
        self.env = {"GIT_TERMINAL_PROMPT": "0"}
        if env:
            self.env.update(env)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _run(self, operation: str, path: Path, func: Callable[[], T]) -> T:
        """Run a GitPython call, translating failures into VcsOperationError."""
        self.logger.debug(f"git {operation} in {path}")
        try:
            return func()
        except GitCommandError as e:
            kind = classify_git_error(e)
            message = f"git {operation} failed: {_git_message(e)}"
            self.logger.debug(f"{message} (kind: {kind.value})")
            raise VcsOperationError(message, kind=kind, operation=operation, path=path) from e

    def _repo(self, path: Path) -> Repo:
        repo = self.open_repo(path)
        if repo is None:
            raise VcsOperationError(
                f"Not a git repository: {path}",
                kind=VcsFailureKind.NOT_A_REPOSITORY,
                operation="open_repository",
                path=path
            )
        return repo

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def open_repo(self, path: Path) -> Optional[Repo]:
        """Open ``path`` itself as a repository, or None if it is not one."""
        try:
            return Repo(path)
        except (InvalidGitRepositoryError, NoSuchPathError):
            return None

    def current_branch(self, repo: Repo) -> Optional[str]:
        """Checked-out branch name, including an unborn one; None when detached."""
        if repo.head.is_detached:
            return None
        return repo.active_branch.name

    def remote_urls(self, repo: Repo, name: str = ORIGIN) -> Tuple[str, ...]:
        if name not in repo.remotes:
            return ()
        return tuple(self._run("remote get-url", Path(repo.working_dir),
                               lambda: list(repo.remote(name).urls)))

    def _ref_exists(self, repo: Repo, ref_path: str) -> bool:
        return any(ref.path == ref_path for ref in repo.refs)

    # ------------------------------------------------------------------
    # Repository and remote setup
    # ------------------------------------------------------------------

    def init(self, path: Path) -> Repo:
        return self._run("init", path, lambda: Repo.init(path))

    def add_remote(self, path: Path, url: str, name: str = ORIGIN) -> None:
        repo = self._repo(path)
        self._run("remote add", path, lambda: repo.create_remote(name, url))

    def remove_remote(self, path: Path, name: str = ORIGIN) -> None:
        repo = self._repo(path)
        self._run("remote remove", path, lambda: repo.git.remote("remove", name))

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def checkout(self, path: Path, branch: str) -> None:
        """
        Switch to an existing branch.

        Raises:
            BranchNotFound: neither ``branch`` nor ``origin/branch`` exists
            VcsOperationError: any other checkout failure
        """
        repo = self._repo(path)
        if not (self._ref_exists(repo, f"refs/heads/{branch}")
                or self._ref_exists(repo, f"refs/remotes/{ORIGIN}/{branch}")):
            raise BranchNotFound(branch, path=path)
        self._run("checkout", path, lambda: repo.git.checkout(branch))

    def create_and_checkout(self, path: Path, branch: str) -> None:
        """Create ``branch`` at the current position and switch to it."""
        repo = self._repo(path)
        self._run("checkout -b", path, lambda: repo.git.checkout("-b", branch))

    # ------------------------------------------------------------------
    # Staging, committing, publishing
    # ------------------------------------------------------------------

    def stage_all(self, path: Path) -> None:
        repo = self._repo(path)
        self._run("add", path, lambda: repo.git.add(A=True))

    def ensure_commit_identity(self, path: Path, name: str, email: str) -> None:
        """Set a repository-level author when no user identity is configured at any level."""
        repo = self._repo(path)
        with repo.config_reader() as reader:
            has_name = reader.get_value("user", "name", default="")
            has_email = reader.get_value("user", "email", default="")
        if has_name and has_email:
            return
        with repo.config_writer() as writer:
            if not has_name:
                writer.set_value("user", "name", name)
            if not has_email:
                writer.set_value("user", "email", email)
        self.logger.debug(f"Configured commit identity for {path}")

    def commit(self, path: Path, message: str) -> str:
        """Commit the staged set and return the new commit's hexsha."""
        repo = self._repo(path)
        self._run("commit", path, lambda: repo.git.commit("-m", message))
        return repo.head.commit.hexsha

    def push(self, path: Path, branch: str, set_upstream: bool = False, remote: str = ORIGIN) -> None:
        repo = self._repo(path)
        args = ["--set-upstream", remote, branch] if set_upstream else [remote, branch]
        operation = "push --set-upstream" if set_upstream else "push"
        with repo.git.custom_environment(**self.env):
            self._run(operation, path, lambda: repo.git.push(*args))

    def clone(self, url: str, path: Path, branch: str) -> Repo:
        return self._run("clone", path,
                         lambda: Repo.clone_from(url, str(path), branch=branch, env=self.env))

    def pull(self, path: Path, branch: str, remote: str = ORIGIN) -> None:
        repo = self._repo(path)
        with repo.git.custom_environment(**self.env):
            self._run("pull", path, lambda: repo.git.pull(remote, branch))

    def fetch(self, path: Path, remote: str = ORIGIN) -> None:
        repo = self._repo(path)
        with repo.git.custom_environment(**self.env):
            self._run("fetch", path, lambda: repo.git.fetch(remote))
