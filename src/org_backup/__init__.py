"""Organization backup: git mirrors plus issue and pull request archives."""

from __future__ import annotations

from .config import BackupConfig, ConfigurationError, load_config  # noqa: F401
from .orchestrator import BackupOrchestrator, RunState  # noqa: F401
