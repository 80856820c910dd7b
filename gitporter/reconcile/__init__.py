"""
Repository reconciliation engine.

Drives a local directory and a remote git endpoint into a consistent state
for two request types: uploading a project and acquiring one.
"""

from .models import (
    ProtocolKind,
    RemoteEndpoint,
    WorkingCopyState,
    SyncRequest,
    AcquisitionRequest,
    SyncResult,
    AcquisitionResult,
)
from .error_types import (
    VcsFailureKind,
    GitPorterError,
    ConfigurationError,
    ValidationError,
    RemoteConfigError,
    VcsOperationError,
    BranchNotFound,
    InstallError,
    RecoveryWarning,
    AcquisitionFailure,
    PathBusyError,
)
from .endpoint import EndpointResolver, resolve_reference
from .vcs import GitCommandSurface, classify_git_error
from .probe import WorkingCopyProbe
from .remote import RemoteReconciler, RemoteAction
from .branch import BranchReconciler, BranchAction
from .sync import SyncExecutor, PushStage
from .recovery import RecoveryCoordinator
from .acquisition import AcquisitionPipeline
from .engine import ReconciliationEngine

__all__ = [
    'ProtocolKind',
    'RemoteEndpoint',
    'WorkingCopyState',
    'SyncRequest',
    'AcquisitionRequest',
    'SyncResult',
    'AcquisitionResult',
    'VcsFailureKind',
    'GitPorterError',
    'ConfigurationError',
    'ValidationError',
    'RemoteConfigError',
    'VcsOperationError',
    'BranchNotFound',
    'InstallError',
    'RecoveryWarning',
    'AcquisitionFailure',
    'PathBusyError',
    'EndpointResolver',
    'resolve_reference',
    'GitCommandSurface',
    'classify_git_error',
    'WorkingCopyProbe',
    'RemoteReconciler',
    'RemoteAction',
    'BranchReconciler',
    'BranchAction',
    'SyncExecutor',
    'PushStage',
    'RecoveryCoordinator',
    'AcquisitionPipeline',
    'ReconciliationEngine',
]
