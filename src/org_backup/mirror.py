from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence

from .errors import BackupError
from .models import Repository

LOG = logging.getLogger(__name__)

FETCH_JOBS = 8


class CloneError(BackupError):
    """Raised when the git mirror clone fails."""


@dataclass
class CommandResult:
    returncode: int
    output: str


class GitRunner(Protocol):
    def run(self, args: Sequence[str], env: Optional[Dict[str, str]] = None) -> CommandResult:
        ...


class SubprocessGitRunner:
    """Runs git as a blocking child process with stdout and stderr combined."""

    def __init__(self, executable: str = "git") -> None:
        self._executable = executable

    def run(self, args: Sequence[str], env: Optional[Dict[str, str]] = None) -> CommandResult:
        cmd = [self._executable, *args]
        try:
            completed = subprocess.run(
                cmd,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=False,
            )
        except OSError as exc:
            raise CloneError(f"Unable to start {self._executable}: {exc}") from exc
        return CommandResult(
            returncode=completed.returncode,
            output=completed.stdout.decode("utf-8", "ignore"),
        )


def mirror_path(repo: Repository, dest_dir: Path) -> Path:
    return dest_dir / f"{repo.name}.git"


def build_clone_args(repo: Repository, destination: Path) -> List[str]:
    return [
        "clone",
        "--mirror",
        "--recurse-submodules",
        f"-j{FETCH_JOBS}",
        repo.ssh_url,
        str(destination),
    ]


def clone_mirror(
    repo: Repository,
    dest_dir: Path,
    runner: GitRunner,
    ssh_key_path: Optional[Path] = None,
) -> Path:
    destination = mirror_path(repo, dest_dir)
    env: Optional[Dict[str, str]] = None
    if ssh_key_path:
        env = os.environ.copy()
        env["GIT_SSH_COMMAND"] = f"ssh -i {ssh_key_path} -o IdentitiesOnly=yes"

    LOG.info("Cloning %s to %s", repo.ssh_url, destination)
    result = runner.run(build_clone_args(repo, destination), env=env)
    if result.returncode != 0:
        LOG.error("git clone failed: %s", result.output)
        raise CloneError(
            f"Failed to mirror {repo.full_name} (exit code {result.returncode}): {result.output.strip()}"
        )
    return destination
