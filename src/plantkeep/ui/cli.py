# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from plantkeep.app import create_user, export_backup_file, import_backup_file
from plantkeep.config import ConfigurationError, configure_logging
from plantkeep.domain.model import ImportMode

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Back up and restore plantkeep data")
    subparsers = parser.add_subparsers(dest="command", required=True)

    user = subparsers.add_parser("user", help="User management commands")
    user_sub = user.add_subparsers(dest="user_command", required=True)
    user_create = user_sub.add_parser("create", help="Create a user")
    user_create.add_argument(
        "--username",
        type=str,
        required=True,
        help="Unique username for the account",
    )

    import_ = subparsers.add_parser("import", help="Import a backup archive")
    import_.add_argument("archive", type=Path, help="Path to the backup ZIP archive")
    import_.add_argument(
        "--user-id",
        type=str,
        required=True,
        help="Account that receives the imported data",
    )
    import_.add_argument(
        "--mode",
        choices=[mode.value for mode in ImportMode],
        default=ImportMode.MERGE.value,
        help="merge into existing data or replace it (default: %(default)s)",
    )

    export = subparsers.add_parser("export", help="Export a backup archive")
    export.add_argument("output", type=Path, help="Where to write the backup ZIP archive")
    export.add_argument(
        "--user-id",
        type=str,
        required=True,
        help="Account whose data is exported",
    )

    return parser.parse_args(list(argv))


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    try:
        configure_logging()
    except ConfigurationError:
        configure_logging(level=logging.INFO)
        log.exception("Invalid logging configuration")
        sys.exit(2)
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        user_id = _parse_uuid(parsed_args.user_id) if "user_id" in parsed_args else None
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "user" and parsed_args.user_command == "create":
            user = create_user(username=parsed_args.username)
            print(user.id)
        elif parsed_args.command == "import" and user_id is not None:
            summary = import_backup_file(
                parsed_args.archive,
                user_id=user_id,
                mode=ImportMode(parsed_args.mode),
            )
            print(json.dumps(summary.to_payload(), indent=2))
        elif parsed_args.command == "export" and user_id is not None:
            path = export_backup_file(parsed_args.output, user_id=user_id)
            print(path)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
