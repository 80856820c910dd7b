"""Read-only inspection of a local path's version-control state."""

import logging
from pathlib import Path
from typing import Optional

from .models import WorkingCopyState
from .vcs import GitCommandSurface


class WorkingCopyProbe:
    """
    Reports what is at a local path: nothing, a plain directory, or a
    working copy with its checked-out branch and ``origin`` URLs.

    A missing path or a directory that is not a repository is a normal
    answer, never an error. Nothing is cached between calls.
    """

    def __init__(self, vcs: Optional[GitCommandSurface] = None):
        self.vcs = vcs or GitCommandSurface()
        self.logger = logging.getLogger('gitporter.reconcile.probe')

    def probe(self, path: Path) -> WorkingCopyState:
        path = Path(path)
        if not path.exists():
            return WorkingCopyState(local_path=path, exists=False, is_version_controlled=False)

        repo = self.vcs.open_repo(path) if path.is_dir() else None
        if repo is None:
            return WorkingCopyState(local_path=path, exists=True, is_version_controlled=False)

        try:
            branch = self.vcs.current_branch(repo)
            urls = self.vcs.remote_urls(repo)
        finally:
            repo.close()

        state = WorkingCopyState(
            local_path=path,
            exists=True,
            is_version_controlled=True,
            current_branch=branch,
            configured_remote_url=urls[0] if urls else None,
            remote_urls=urls,
        )
        self.logger.debug(f"Probed {path}: branch={branch}, origin={state.configured_remote_url}")
        return state
