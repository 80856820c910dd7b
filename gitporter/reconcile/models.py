"""Requests, results and state snapshots used by the reconciliation engine."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


class ProtocolKind(Enum):
    """Transport protocol of a remote URL."""
    SSH = "ssh"
    HTTPS = "https"
    LOCAL = "local"
    OTHER = "other"


@dataclass(frozen=True)
class RemoteEndpoint:
    """A remote repository in canonical transport form."""
    canonical_url: str
    protocol_kind: ProtocolKind


@dataclass(frozen=True)
class WorkingCopyState:
    """Snapshot of a local path's version-control state."""
    local_path: Path
    exists: bool
    is_version_controlled: bool
    current_branch: Optional[str] = None
    configured_remote_url: Optional[str] = None
    remote_urls: Tuple[str, ...] = ()

    @property
    def has_origin(self) -> bool:
        return bool(self.remote_urls)


@dataclass
class SyncRequest:
    """Upload a local project to a remote branch."""
    local_path: Path
    target_repo: str
    commit_message: str
    branch_name: str = "main"


@dataclass
class AcquisitionRequest:
    """Obtain a ready-to-use working copy of a remote repository."""
    remote_reference: str
    local_path: Path
    branch_name: str = "main"


@dataclass
class SyncResult:
    """Outcome of a successful upload."""
    path: Path
    remote_url: str
    branch: str
    commit: str
    web_url: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "remote_url": self.remote_url,
            "branch": self.branch,
            "commit": self.commit,
            "web_url": self.web_url,
        }


@dataclass
class AcquisitionResult:
    """Outcome of a successful acquisition."""
    path: Path
    remote_url: str
    branch: str
    updated_in_place: bool = False
    install_output: str = field(default="", repr=False)

    def to_dict(self) -> dict:
        return {
            "path": str(self.path),
            "remote_url": self.remote_url,
            "branch": self.branch,
            "updated_in_place": self.updated_in_place,
            "install_output": self.install_output,
        }
