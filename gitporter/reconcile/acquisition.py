"""Download pipeline: update, clone or re-clone a project and prepare it for use."""

import logging
from pathlib import Path
from typing import Optional

from ..config import Config
from ..installer import DependencyInstaller
from ..project_files import ensure_helper_script, require_local_path
from .endpoint import EndpointResolver
from .error_types import AcquisitionFailure, GitPorterError, ValidationError
from .models import AcquisitionRequest, AcquisitionResult, RemoteEndpoint
from .probe import WorkingCopyProbe
from .recovery import RecoveryCoordinator
from .remote import RemoteReconciler
from .vcs import GitCommandSurface


class AcquisitionPipeline:
    """
    Produces a ready-to-use working copy of a remote branch at a local path.

    An existing directory is reused and updated in place. If that fails for
    any reason the directory is deleted and the branch cloned fresh. The
    result then gets its dependencies installed and the helper script made
    executable. A failure past the update attempt removes whatever was
    created before it is reported.
    """

    def __init__(
        self,
        config: Config,
        vcs: Optional[GitCommandSurface] = None,
        resolver: Optional[EndpointResolver] = None,
        installer: Optional[DependencyInstaller] = None,
        recovery: Optional[RecoveryCoordinator] = None
    ):
        self.config = config
        self.vcs = vcs or GitCommandSurface()
        self.resolver = resolver or EndpointResolver(config.git_host)
        self.installer = installer or DependencyInstaller(config.install_command, config.install_timeout)
        self.recovery = recovery or RecoveryCoordinator()
        self.probe = WorkingCopyProbe(self.vcs)
        self.remotes = RemoteReconciler(self.vcs, self.probe)
        self.logger = logging.getLogger('gitporter.reconcile.acquisition')

    def _validate(self, request: AcquisitionRequest) -> Path:
        for field_name in ("remote_reference", "branch_name"):
            value = getattr(request, field_name)
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(
                    f"{field_name} must be a non-empty string",
                    operation="acquire_project",
                    path=request.local_path,
                    details={"field": field_name}
                )
        return require_local_path(request.local_path, "acquire_project")

    def _try_update(self, path: Path, endpoint: RemoteEndpoint, branch: str) -> bool:
        """Reconcile and pull an existing directory; False when it has to be re-cloned."""
        state = self.probe.probe(path)
        if not state.is_version_controlled:
            self.logger.warning(f"{path} exists but is not a git working copy, re-cloning")
            return False
        try:
            self.remotes.reconcile(path, endpoint, state)
            if state.current_branch != branch:
                self.vcs.fetch(path)
                self.vcs.checkout(path, branch)
            self.vcs.pull(path, branch)
        except GitPorterError as e:
            self.logger.warning(f"Updating {path} in place failed, re-cloning: {e.message}")
            return False
        self.logger.info(f"Updated {path} from {endpoint.canonical_url} ({branch})")
        return True

    def _fail(self, path: Path, message: str, cause: Exception) -> AcquisitionFailure:
        warning = self.recovery.cleanup(path)
        details = {"cause": type(cause).__name__}
        output = getattr(cause, "output", None)
        if output:
            details["output"] = output
        return AcquisitionFailure(f"{message}: {cause}", path=path, recovery_warning=warning, details=details)

    def acquire(self, request: AcquisitionRequest) -> AcquisitionResult:
        path = self._validate(request)
        branch = request.branch_name.strip()
        endpoint = self.resolver.resolve(request.remote_reference.strip())

        path.parent.mkdir(parents=True, exist_ok=True)

        updated = False
        if self.probe.probe(path).exists:
            updated = self._try_update(path, endpoint, branch)
            if not updated:
                warning = self.recovery.cleanup(path)
                if warning is not None and path.exists():
                    raise AcquisitionFailure(
                        f"Could not remove {path} before re-cloning",
                        path=path,
                        recovery_warning=warning
                    )

        if not updated:
            try:
                self.vcs.clone(endpoint.canonical_url, path, branch)
            except GitPorterError as e:
                raise self._fail(path, f"Failed to clone {endpoint.canonical_url}", e) from e
            self.logger.info(f"Cloned {endpoint.canonical_url} ({branch}) into {path}")

        try:
            outcome = self.installer.install_or_raise(path)
            ensure_helper_script(path, self.config)
        except (GitPorterError, OSError) as e:
            raise self._fail(path, f"Failed to prepare {path}", e) from e

        return AcquisitionResult(
            path=path,
            remote_url=endpoint.canonical_url,
            branch=branch,
            updated_in_place=updated,
            install_output=outcome.output
        )
