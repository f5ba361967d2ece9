"""Command line interface for mediadrop package."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence

from rich.logging import RichHandler

from .cli_progress import CommitProgressDisplay, render_configuration_summary, render_link
from .errors import UploadError
from .models import LocalFile, UploadConfig
from .orchestrator import UploadOrchestrator
from .services import InMemoryBlobStore, InMemoryMetadataStore


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Default behavior is silent unless --debug or --log-level is provided.
    Returns a string describing effective mode.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    logging.disable(logging.NOTSET)

    if silent or (not debug and not log_level):
        logging.disable(logging.CRITICAL)
        root_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, log_level.upper(), logging.INFO)

    handler = RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    return logging.getLevelName(level)


def _strip_optional_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def _load_env_file(path: Path, override: bool = False) -> None:
    if not path.exists():
        raise CLIError(f"env file not found: {path}")
    if not path.is_file():
        raise CLIError(f"env path is not a file: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"could not read env file {path}: {exc}") from exc

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        value = _strip_optional_quotes(value.strip())
        if override or key not in os.environ:
            os.environ[key] = value


def _resolve_default_env_file() -> Optional[Path]:
    default_env = Path(".env")
    return default_env if default_env.exists() and default_env.is_file() else None


def _parse_date(value: Optional[str]) -> date:
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise CLIError(f"invalid date (expected YYYY-MM-DD): {value}") from exc


def _build_config(bucket: Optional[str], retention_days: Optional[int]) -> UploadConfig:
    config = UploadConfig()
    bucket = bucket or os.getenv("MEDIADROP_BUCKET")
    if bucket:
        config = replace(config, bucket=bucket)

    if retention_days is None:
        env_days = os.getenv("MEDIADROP_RETENTION_DAYS")
        if env_days:
            try:
                retention_days = int(env_days)
            except ValueError as exc:
                raise CLIError(f"MEDIADROP_RETENTION_DAYS is not an integer: {env_days}") from exc
    if retention_days is not None:
        if retention_days < 0:
            raise CLIError("retention days must be >= 0")
        config = replace(config, retention_days=retention_days)
    return config


def _collect_candidates(paths: Sequence[Path]) -> List[LocalFile]:
    candidates = []
    for path in paths:
        path = Path(path).expanduser()
        if not path.is_file():
            raise CLIError(f"not a file: {path}")
        candidates.append(LocalFile.from_path(path))
    return candidates


async def _run_commit(
    candidates: Sequence[LocalFile],
    context_date: date,
    config: UploadConfig,
    dry_run: bool,
    base_url: Optional[str],
) -> int:
    if dry_run:
        orchestrator = UploadOrchestrator(
            blob_store=InMemoryBlobStore(),
            metadata_store=InMemoryMetadataStore(),
            config=config,
        )
    else:
        api_url = os.getenv("MEDIADROP_API_URL")
        if not api_url:
            raise CLIError("MEDIADROP_API_URL environment variable is not set")
        orchestrator = UploadOrchestrator(
            api_url=api_url,
            api_key=os.getenv("MEDIADROP_API_KEY"),
            config=config,
        )

    async with orchestrator:
        staged = orchestrator.add_files(candidates)
        rejected = len(candidates) - len(staged)
        if rejected:
            print(f"Skipped {rejected} file(s): only images/videos up to 100 MiB are accepted.")
        if not staged:
            raise CLIError("nothing to upload")

        display = CommitProgressDisplay()
        display.attach(orchestrator.events)
        try:
            link = await orchestrator.commit(context_date)
        except UploadError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    if link is None:
        return 1
    render_link(link, base_url)
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediadrop",
        description="Upload photos and videos and print a shareable download link.",
    )
    parser.add_argument("files", nargs="*", type=Path, help="Media files to upload")
    parser.add_argument(
        "-d",
        "--date",
        default=None,
        help="Event date used for the storage prefix and link expiry (YYYY-MM-DD, default today)",
    )
    parser.add_argument("-b", "--bucket", default=None, help="Storage bucket (default from MEDIADROP_BUCKET)")
    parser.add_argument(
        "-r",
        "--retention-days",
        type=int,
        default=None,
        help="Days the download link stays valid (default from MEDIADROP_RETENTION_DAYS or 7)",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="Public site URL used to print the share link (default from MEDIADROP_BASE_URL)",
    )
    parser.add_argument("-n", "--dry-run", action="store_true", help="Use in-memory stores")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Only print errors")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument("--version", action="version", version="mediadrop")
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    used_env_file = args.env_file or _resolve_default_env_file()
    if used_env_file is not None:
        try:
            _load_env_file(Path(used_env_file))
        except CLIError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    effective_log_mode = _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level,
    )

    if not args.files:
        parser.print_help()
        return 0

    try:
        context_date = _parse_date(args.date)
        config = _build_config(args.bucket, args.retention_days)
        candidates = _collect_candidates(args.files)
    except CLIError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    base_url = args.base_url or os.getenv("MEDIADROP_BASE_URL")
    render_configuration_summary(
        {
            "Files": len(candidates),
            "Date": context_date.isoformat(),
            "Bucket": config.bucket,
            "Retention": f"{config.retention_days} day(s)",
            "Storage API": "(dry run)" if args.dry_run else os.getenv("MEDIADROP_API_URL") or "(missing)",
            "Env File": str(used_env_file) if used_env_file else "-",
            "Logging": effective_log_mode,
        }
    )

    try:
        return asyncio.run(
            _run_commit(
                candidates,
                context_date=context_date,
                config=config,
                dry_run=args.dry_run,
                base_url=base_url,
            )
        )
    except CLIError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
