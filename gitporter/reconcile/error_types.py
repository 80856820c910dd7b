"""Error types raised by the repository reconciliation engine."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Dict, Any, Union


class VcsFailureKind(Enum):
    """Typed failure categories reported by the VCS command surface."""
    BRANCH_NOT_FOUND = "branch_not_found"
    NOTHING_TO_COMMIT = "nothing_to_commit"
    AUTHENTICATION = "authentication"
    NETWORK = "network"
    REJECTED = "rejected"
    REMOTE_NOT_FOUND = "remote_not_found"
    NOT_A_REPOSITORY = "not_a_repository"
    UNKNOWN = "unknown"


class GitPorterError(Exception):
    """Base exception carrying the failing operation and path."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        path: Optional[Union[str, Path]] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.path = str(path) if path is not None else None
        self.details = details or {}

    def context(self) -> Dict[str, Any]:
        """Diagnostic context for error responses and logs."""
        context = {"operation": self.operation, "path": self.path}
        context.update(self.details)
        return {key: value for key, value in context.items() if value is not None}


class ConfigurationError(GitPorterError):
    """Required configuration is missing or invalid."""


class ValidationError(GitPorterError):
    """Request fields are missing or the source path is not a project."""


class RemoteConfigError(GitPorterError):
    """Resolving or reconciling the remote endpoint failed."""


class VcsOperationError(GitPorterError):
    """A git command failed."""

    def __init__(
        self,
        message: str,
        kind: VcsFailureKind = VcsFailureKind.UNKNOWN,
        operation: Optional[str] = None,
        path: Optional[Union[str, Path]] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, operation=operation, path=path, details=details)
        self.kind = kind

    def context(self) -> Dict[str, Any]:
        context = super().context()
        context["kind"] = self.kind.value
        return context


class BranchNotFound(VcsOperationError):
    """The requested branch does not exist locally.

    Only BranchReconciler handles this; it turns it into a branch creation.
    """

    def __init__(self, branch_name: str, path: Optional[Union[str, Path]] = None):
        super().__init__(
            f"Branch '{branch_name}' does not exist locally",
            kind=VcsFailureKind.BRANCH_NOT_FOUND,
            operation="checkout",
            path=path,
            details={"branch": branch_name}
        )
        self.branch_name = branch_name


class InstallError(GitPorterError):
    """The dependency installation step failed."""

    def __init__(self, message: str, output: str = "", path=None, returncode: Optional[int] = None):
        super().__init__(message, operation="install_dependencies", path=path,
                         details={"returncode": returncode})
        self.output = output
        self.returncode = returncode


@dataclass
class RecoveryWarning:
    """Record of a cleanup that did not complete.

    Logged and attached to the surfaced failure; never raised.
    """
    path: str
    message: str


class AcquisitionFailure(GitPorterError):
    """Acquiring a ready-to-use working copy failed after cleanup."""

    def __init__(
        self,
        message: str,
        path=None,
        recovery_warning: Optional[RecoveryWarning] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, operation="acquire_project", path=path, details=details)
        self.recovery_warning = recovery_warning

    def context(self) -> Dict[str, Any]:
        context = super().context()
        if self.recovery_warning is not None:
            context["recovery_warning"] = self.recovery_warning.message
        return context


class PathBusyError(GitPorterError):
    """Another request holds the per-path lock."""
