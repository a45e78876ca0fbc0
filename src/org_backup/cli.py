from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from .config import BackupConfig, ConfigurationError, load_config
from .errors import BackupError
from .github_api import GitHubAPI
from .logger import configure_logging, get_logger
from .mirror import SubprocessGitRunner
from .orchestrator import BackupOrchestrator

LOG = get_logger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Mirror every repository of a GitHub organization and archive its issues and pull requests.",
    )
    parser.add_argument(
        "-git_access_token",
        help="REQUIRED: GitHub OAuth2 access token.",
    )
    parser.add_argument(
        "-target_organization_name",
        help="REQUIRED: Name of the GitHub organization to back up.",
    )
    parser.add_argument(
        "-backup_dir",
        help="OPTIONAL: Backup directory. Defaults to backup__<timestamp>__<org> in the project root.",
    )
    parser.add_argument(
        "--config",
        default=os.getenv("ORG_BACKUP_CONFIG"),
        help="Optional YAML file providing defaults for the flags above.",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL"),
        help="Log level (default INFO).",
    )
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> BackupConfig:
    config_path = Path(args.config).expanduser() if args.config else None
    return load_config(
        {
            "git_access_token": args.git_access_token,
            "target_organization_name": args.target_organization_name,
            "backup_dir": args.backup_dir,
            "log_level": args.log_level,
        },
        path=config_path,
    )


def run_backup(config: BackupConfig) -> int:
    try:
        client = GitHubAPI(config.git_access_token, base_url=config.api_url)
        orchestrator = BackupOrchestrator(config=config, client=client, runner=SubprocessGitRunner())
        orchestrator.run()
    except BackupError as exc:
        LOG.error("Backup failed: %s", exc)
        return 1
    except OSError as exc:
        LOG.error("Backup failed writing to disk: %s", exc)
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_level or "INFO")

    try:
        config = build_config(args)
    except ConfigurationError as exc:
        LOG.error("Configuration error: %s", exc)
        return 1

    configure_logging(config.log_level)
    return run_backup(config)


if __name__ == "__main__":
    sys.exit(main())
