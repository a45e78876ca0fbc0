from __future__ import annotations

import enum
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Protocol

from .archiver import IssueSource, archive_issues_and_prs
from .config import BackupConfig, ConfigurationError
from .mirror import GitRunner, clone_mirror
from .models import Repository

LOG = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%y%m%d_%H%M%S"


class RemoteClient(IssueSource, Protocol):
    def list_org_repositories(self, organization: str) -> List[Repository]:
        ...


class RunState(enum.Enum):
    INIT = "init"
    RESOLVE_DESTINATION = "resolve_destination"
    LIST_REPOS = "list_repos"
    PROCESS_REPO = "process_repo"
    DONE = "done"
    FAILED = "failed"


def default_backup_dir(project_root: Path, organization: str, now: datetime) -> Path:
    return project_root / f"backup__{now.strftime(TIMESTAMP_FORMAT)}__{organization}"


def safe_delete(root: Path, path: Path) -> None:
    """Remove ``path`` only when it lies strictly inside ``root``."""
    root = root.resolve()
    target = path.resolve()
    if target == root or root not in target.parents:
        raise ConfigurationError(f"Refusing to delete {path}: not inside {root}")

    if not path.exists() and not path.is_symlink():
        return
    LOG.info("Removing existing path %s", path)
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def resolve_backup_dir(config: BackupConfig, now: Optional[datetime] = None) -> Path:
    if config.backup_dir is not None:
        return config.backup_dir

    backup_dir = default_backup_dir(
        config.project_root,
        config.target_organization_name,
        now or datetime.now(),
    )
    safe_delete(config.project_root, backup_dir)
    return backup_dir


class BackupOrchestrator:
    """Mirrors every repository of an organization and archives its issues.

    Repositories are processed one after another in listing order. The first
    error stops the run and is re-raised unchanged.
    """

    def __init__(self, config: BackupConfig, client: RemoteClient, runner: GitRunner) -> None:
        self._config = config
        self._client = client
        self._runner = runner
        self.state = RunState.INIT
        self.backup_dir: Optional[Path] = None
        self.current_index: Optional[int] = None

    def run(self, now: Optional[datetime] = None) -> Path:
        organization = self._config.target_organization_name
        try:
            self.state = RunState.RESOLVE_DESTINATION
            backup_dir = resolve_backup_dir(self._config, now)
            backup_dir.mkdir(parents=True, exist_ok=True)
            self.backup_dir = backup_dir
            LOG.info("Backing up %s organization to %s", organization, backup_dir)

            self.state = RunState.LIST_REPOS
            repositories = self._client.list_org_repositories(organization)
            LOG.info("Found %d repositories in %s", len(repositories), organization)

            self.state = RunState.PROCESS_REPO
            for index, repo in enumerate(repositories):
                self.current_index = index
                self._process_repository(repo, backup_dir)
        except Exception:
            self.state = RunState.FAILED
            raise

        self.state = RunState.DONE
        LOG.info("Backup of %s completed in %s", organization, backup_dir)
        return backup_dir

    def _process_repository(self, repo: Repository, backup_dir: Path) -> None:
        LOG.info("Working with %s", repo.full_name)
        clone_mirror(repo, backup_dir, self._runner, ssh_key_path=self._config.ssh_key_path)
        count = archive_issues_and_prs(self._client, repo, backup_dir)
        LOG.info("Archived %d issues and pull requests for %s", count, repo.full_name)
