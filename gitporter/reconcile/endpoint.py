"""Normalization of remote repository references."""

from pathlib import PurePath
from typing import Optional

from .models import ProtocolKind, RemoteEndpoint


def detect_protocol_kind(url: str) -> ProtocolKind:
    """Classify a remote URL by its shape."""
    if url.startswith(("git@", "ssh://")):
        return ProtocolKind.SSH
    if url.startswith(("https://", "http://")):
        return ProtocolKind.HTTPS
    if url.startswith(("file://", "./", "../")) or PurePath(url).is_absolute():
        return ProtocolKind.LOCAL
    return ProtocolKind.OTHER


class EndpointResolver:
    """
    Rewrites web-viewable repository URLs of one hosting service into the
    canonical SSH transport form.

    ``https://github.com/acct/repo`` and ``https://github.com/acct/repo.git/``
    both become ``git@github.com:acct/repo.git``. Anything else passes
    through unchanged, so resolving is idempotent. No I/O is performed.
    """

    def __init__(self, host: str = "github.com"):
        self.host = host
        self.web_prefix = f"https://{host}/"
        self.ssh_prefix = f"git@{host}:"

    def resolve(self, reference: str) -> RemoteEndpoint:
        if reference.startswith(self.web_prefix):
            repo_path = reference[len(self.web_prefix):].rstrip("/")
            if not repo_path.endswith(".git"):
                repo_path += ".git"
            return RemoteEndpoint(self.ssh_prefix + repo_path, ProtocolKind.SSH)
        return RemoteEndpoint(reference, detect_protocol_kind(reference))

    def for_repository(self, account: str, name: str) -> RemoteEndpoint:
        """Canonical endpoint of ``name`` under ``account``."""
        name = name.strip().rstrip("/")
        if not name.endswith(".git"):
            name += ".git"
        return RemoteEndpoint(f"{self.ssh_prefix}{account.strip()}/{name}", ProtocolKind.SSH)

    def web_url(self, endpoint: RemoteEndpoint, branch: str) -> Optional[str]:
        """Browser URL of ``branch``, or None for endpoints on other hosts."""
        if not endpoint.canonical_url.startswith(self.ssh_prefix):
            return None
        repo_path = endpoint.canonical_url[len(self.ssh_prefix):]
        if repo_path.endswith(".git"):
            repo_path = repo_path[:-len(".git")]
        return f"{self.web_prefix}{repo_path}/tree/{branch}"


def resolve_reference(reference: str, host: str = "github.com") -> RemoteEndpoint:
    """Resolve ``reference`` against ``host`` (see EndpointResolver.resolve)."""
    return EndpointResolver(host).resolve(reference)
