"""Entry points of the repository reconciliation engine."""

import logging
from typing import Optional

from ..config import Config
from ..file_lock import PathLockRegistry, path_lock
from ..installer import DependencyInstaller
from .acquisition import AcquisitionPipeline
from .endpoint import EndpointResolver
from .models import AcquisitionRequest, AcquisitionResult, SyncRequest, SyncResult
from .recovery import RecoveryCoordinator
from .sync import SyncExecutor
from .vcs import GitCommandSurface


class ReconciliationEngine:
    """
    Facade over the upload and acquisition pipelines.

    Built once from a Config; holds no per-request state. When
    ``config.serialize_per_path`` is set, requests on the same local path
    are serialized.
    """

    def __init__(
        self,
        config: Config,
        vcs: Optional[GitCommandSurface] = None,
        installer: Optional[DependencyInstaller] = None,
        locks: Optional[PathLockRegistry] = None
    ):
        self.config = config
        self.vcs = vcs or GitCommandSurface()
        self.resolver = EndpointResolver(config.git_host)
        self.sync_executor = SyncExecutor(config, self.vcs, self.resolver)
        self.acquisition = AcquisitionPipeline(
            config,
            self.vcs,
            self.resolver,
            installer=installer,
            recovery=RecoveryCoordinator()
        )
        self.locks = locks or PathLockRegistry(config.path_lock_timeout)
        self.logger = logging.getLogger('gitporter.reconcile.engine')

    def synchronize_upload(self, request: SyncRequest) -> SyncResult:
        """Publish a local project to a branch of a remote repository."""
        self.logger.info(f"Uploading {request.local_path} to {request.target_repo} ({request.branch_name})")
        with path_lock(self.locks, request.local_path, self.config.serialize_per_path):
            return self.sync_executor.execute(request)

    def acquire_project(self, request: AcquisitionRequest) -> AcquisitionResult:
        """Obtain a ready-to-use working copy of a remote branch."""
        self.logger.info(f"Acquiring {request.remote_reference} ({request.branch_name}) into {request.local_path}")
        with path_lock(self.locks, request.local_path, self.config.serialize_per_path):
            return self.acquisition.acquire(request)
