"""Best-effort removal of partially materialized working copies."""

import logging
import os
import shutil
import stat
import sys
from pathlib import Path
from typing import Optional

from .error_types import RecoveryWarning


def _clear_readonly(func, path, _exc):
    # git marks pack files read-only, which blocks removal on Windows
    os.chmod(path, stat.S_IWRITE)
    func(path)


class RecoveryCoordinator:
    """
    Deletes local state left behind by a failed acquisition.

    Cleanup never raises: a failure is logged and returned as a
    RecoveryWarning so the caller can attach it to the error it surfaces.
    """

    def __init__(self):
        self.logger = logging.getLogger('gitporter.reconcile.recovery')

    def cleanup(self, path: Path) -> Optional[RecoveryWarning]:
        path = Path(path)
        if not path.exists() and not path.is_symlink():
            return None

        try:
            if path.is_dir() and not path.is_symlink():
                if sys.version_info >= (3, 12):
                    shutil.rmtree(path, onexc=_clear_readonly)
                else:
                    shutil.rmtree(path, onerror=_clear_readonly)
            else:
                path.unlink()
        except OSError as e:
            warning = RecoveryWarning(path=str(path), message=f"Failed to remove {path}: {e}")
            self.logger.warning(warning.message, extra={'operation': 'cleanup', 'path': str(path)})
            return warning

        self.logger.info(f"Removed {path}")
        return None
