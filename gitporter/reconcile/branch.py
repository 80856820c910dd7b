"""Ensure a named branch is checked out, creating it when absent."""

import logging
from enum import Enum
from pathlib import Path
from typing import Optional

from .error_types import BranchNotFound
from .probe import WorkingCopyProbe
from .vcs import GitCommandSurface


class BranchAction(Enum):
    UNCHANGED = "unchanged"
    SWITCHED = "switched"
    CREATED = "created"


class BranchReconciler:
    """Checks out a branch, creating it from the current position if it does not exist."""

    def __init__(self, vcs: Optional[GitCommandSurface] = None, probe: Optional[WorkingCopyProbe] = None):
        self.vcs = vcs or GitCommandSurface()
        self.probe = probe or WorkingCopyProbe(self.vcs)
        self.logger = logging.getLogger('gitporter.reconcile.branch')

    def reconcile(self, path: Path, branch_name: str) -> BranchAction:
        path = Path(path)
        state = self.probe.probe(path)
        if state.current_branch == branch_name:
            self.logger.debug(f"{path} is already on branch '{branch_name}'")
            return BranchAction.UNCHANGED

        try:
            self.vcs.checkout(path, branch_name)
        except BranchNotFound:
            # Any other checkout failure propagates unchanged.
            self.vcs.create_and_checkout(path, branch_name)
            self.logger.info(f"Created branch '{branch_name}' in {path}")
            return BranchAction.CREATED

        self.logger.info(f"Switched {path} to branch '{branch_name}'")
        return BranchAction.SWITCHED
