"""Bring a working copy's ``origin`` in line with a resolved endpoint."""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from .error_types import RemoteConfigError, VcsOperationError
from .models import RemoteEndpoint, WorkingCopyState
from .probe import WorkingCopyProbe
from .vcs import GitCommandSurface


class RemoteAction(Enum):
    """What RemoteReconciler did to the working copy."""
    INITIALIZED = "initialized"
    ADDED = "added"
    REPOINTED = "repointed"
    UNCHANGED = "unchanged"


class RemoteReconciler:
    """
    Ensures ``origin`` of the working copy at a path points at one endpoint.

    Running it twice with the same endpoint leaves a single ``origin`` with
    that URL; a mismatching ``origin`` is replaced, never appended to.
    """

    def __init__(self, vcs: Optional[GitCommandSurface] = None, probe: Optional[WorkingCopyProbe] = None):
        self.vcs = vcs or GitCommandSurface()
        self.probe = probe or WorkingCopyProbe(self.vcs)
        self.logger = logging.getLogger('gitporter.reconcile.remote')

    def reconcile(
        self,
        path: Path,
        desired: RemoteEndpoint,
        state: Optional[WorkingCopyState] = None
    ) -> RemoteAction:
        """
        Reconcile ``origin`` at ``path`` with ``desired``.

        Args:
            path: Existing directory to reconcile
            desired: Canonical endpoint ``origin`` must point at
            state: A fresh probe of ``path``; probed here when omitted

        Returns:
            The action taken

        Raises:
            RemoteConfigError: initializing or editing the remote failed
        """
        path = Path(path)
        if state is None:
            state = self.probe.probe(path)
        url = desired.canonical_url

        try:
            if not state.is_version_controlled:
                self.vcs.init(path)
                self.vcs.add_remote(path, url)
                action = RemoteAction.INITIALIZED
            elif not state.has_origin:
                self.vcs.add_remote(path, url)
                action = RemoteAction.ADDED
            elif url not in state.remote_urls or len(state.remote_urls) > 1:
                self.vcs.remove_remote(path)
                self.vcs.add_remote(path, url)
                action = RemoteAction.REPOINTED
            else:
                action = RemoteAction.UNCHANGED
        except VcsOperationError as e:
            raise RemoteConfigError(
                f"Failed to configure remote 'origin' as {url}: {e.message}",
                operation="reconcile_remote",
                path=path,
                details={"remote_url": url, "kind": e.kind.value}
            ) from e

        if action is RemoteAction.UNCHANGED:
            self.logger.debug(f"Remote 'origin' of {path} already points at {url}")
        else:
            self.logger.info(f"Remote 'origin' of {path} {action.value}: {url}")
        return action
