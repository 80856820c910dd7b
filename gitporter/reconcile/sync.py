"""Upload pipeline: stage, commit and publish a local project to a remote branch."""

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from ..config import Config
from ..project_files import ensure_helper_script, require_local_path, require_project_directory
from .branch import BranchReconciler
from .endpoint import EndpointResolver
from .error_types import ConfigurationError, ValidationError, VcsFailureKind, VcsOperationError
from .models import RemoteEndpoint, SyncRequest, SyncResult
from .probe import WorkingCopyProbe
from .remote import RemoteReconciler
from .vcs import GitCommandSurface


class PushStage(Enum):
    """Stages of the publish step."""
    UPSTREAM = "upstream"  # push --set-upstream origin <branch>
    PLAIN = "plain"        # push origin <branch>


_NEXT_PUSH_STAGE: Dict[PushStage, Optional[PushStage]] = {
    PushStage.UPSTREAM: PushStage.PLAIN,
    PushStage.PLAIN: None,
}

# A plain push cannot succeed where these failed.
_NO_FALLBACK_KINDS = frozenset({VcsFailureKind.AUTHENTICATION, VcsFailureKind.NETWORK})


class SyncExecutor:
    """
    Publishes the current contents of a local project to a branch of a
    remote repository.

    Steps run strictly in order and each must succeed before the next:
    validate, reconcile remote, reconcile branch, stage everything, commit,
    push. A completed push is never rolled back.
    """

    def __init__(
        self,
        config: Config,
        vcs: Optional[GitCommandSurface] = None,
        resolver: Optional[EndpointResolver] = None
    ):
        self.config = config
        self.vcs = vcs or GitCommandSurface()
        self.resolver = resolver or EndpointResolver(config.git_host)
        self.probe = WorkingCopyProbe(self.vcs)
        self.remotes = RemoteReconciler(self.vcs, self.probe)
        self.branches = BranchReconciler(self.vcs, self.probe)
        self.logger = logging.getLogger('gitporter.reconcile.sync')

    def resolve_target(self, target_repo: str) -> RemoteEndpoint:
        """
        Resolve the upload target.

        Accepted shapes: a bare repository name under the configured account,
        ``account/name``, a URL or scp-style reference, or a filesystem path
        that is absolute or starts with ``.``.

        Raises:
            ConfigurationError: a bare name with no configured account
            ValidationError: any other shape
        """
        target = target_repo.strip()
        if ":" in target or Path(target).is_absolute() or target.startswith("."):
            return self.resolver.resolve(target)
        if "/" in target:
            account, _, name = target.partition("/")
            if not account or not name or "/" in name.rstrip("/"):
                raise ValidationError(
                    f"Cannot interpret repository target '{target}'; "
                    f"expected a name, account/name or a repository URL",
                    operation="resolve_target",
                    details={"field": "target_repo"}
                )
            return self.resolver.for_repository(account, name)
        if not self.config.github_username:
            raise ConfigurationError(
                f"GitHub username is not configured; cannot resolve repository '{target}'",
                operation="resolve_target"
            )
        return self.resolver.for_repository(self.config.github_username, target)

    def _validate(self, request: SyncRequest) -> Path:
        for field_name in ("target_repo", "commit_message", "branch_name"):
            value = getattr(request, field_name)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(
                    f"{field_name} must be a non-empty string",
                    operation="synchronize_upload",
                    path=request.local_path,
                    details={"field": field_name}
                )
        path = require_local_path(request.local_path, "synchronize_upload")
        return require_project_directory(path, self.config.manifest_name)

    def push(self, path: Path, branch: str) -> PushStage:
        """
        Publish ``branch`` to ``origin``, falling back from an upstream push to
        a plain push once. Returns the stage that succeeded.
        """
        stage: Optional[PushStage] = PushStage.UPSTREAM
        while True:
            try:
                self.vcs.push(path, branch, set_upstream=stage is PushStage.UPSTREAM)
                return stage
            except VcsOperationError as e:
                next_stage = _NEXT_PUSH_STAGE[stage]
                if next_stage is None or e.kind in _NO_FALLBACK_KINDS:
                    raise
                self.logger.warning(
                    f"Push stage '{stage.value}' failed for {path} ({e.kind.value}); "
                    f"retrying as '{next_stage.value}'"
                )
                stage = next_stage

    def execute(self, request: SyncRequest) -> SyncResult:
        path = self._validate(request)
        branch = request.branch_name.strip()

        if self.config.helper_script_template is not None:
            ensure_helper_script(path, self.config)

        endpoint = self.resolve_target(request.target_repo)
        self.remotes.reconcile(path, endpoint)
        self.branches.reconcile(path, branch)

        self.vcs.stage_all(path)
        self.vcs.ensure_commit_identity(path, self.config.commit_author_name, self.config.commit_author_email)
        commit = self.vcs.commit(path, request.commit_message)
        self.logger.info(f"Committed {commit[:8]} on '{branch}' in {path}")

        stage = self.push(path, branch)
        self.logger.info(f"Pushed '{branch}' to {endpoint.canonical_url} ({stage.value})")

        return SyncResult(
            path=path,
            remote_url=endpoint.canonical_url,
            branch=branch,
            commit=commit,
            web_url=self.resolver.web_url(endpoint, branch)
        )
