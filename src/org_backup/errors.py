from __future__ import annotations


class BackupError(Exception):
    """Base class for failures that abort a backup run."""
