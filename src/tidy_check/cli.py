"""Command line entrypoint."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import TextIO

from tidy_check import __version__
from tidy_check.config import CliOverrides, ConfigError, ToolConfig, load_effective_config
from tidy_check.container import remap_container_paths, running_in_action_container
from tidy_check.errors import TidyCheckError
from tidy_check.logging import NULL_DEBUG_LOG, DebugLog, JsonlAuditLogger, StreamDebugLog
from tidy_check.runner import MultiTargetRunner
from tidy_check.verify import ExternalNormalizer, TidinessVerifier

DESCRIPTION = "tidy-check checks if your modules are tidy."


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for a check run."""
    parser = argparse.ArgumentParser(prog="tidy-check", description=DESCRIPTION)
    parser.add_argument("paths", nargs="*", metavar="PATH", help="module directories to check")
    parser.add_argument("-v", "--verbose", action="store_true", help="verbose debug output")
    parser.add_argument("-d", "--diff", action="store_true", default=None, help="print diffs")
    parser.add_argument("--version", action="store_true", help="print version and exit")
    parser.add_argument("--config", default=None, help="path to a tidy_check.toml file")
    parser.add_argument("--timeout", type=float, default=None, help="overall deadline in seconds")
    parser.add_argument(
        "--require-clean",
        action="store_true",
        default=None,
        help="refuse to run when the git working tree has local changes",
    )
    parser.add_argument("--audit-log", default=None, help="append JSONL audit events to this path")
    return parser


def build_runner(config: ToolConfig, out: TextIO, log: DebugLog) -> MultiTargetRunner:
    """Wire normalizer, verifier and runner from an effective config."""
    normalizer = ExternalNormalizer(
        command=config.normalizer.command,
        max_output_bytes=config.normalizer.max_output_bytes,
        log=log,
    )
    verifier = TidinessVerifier(
        normalizer=normalizer,
        descriptor_name=config.files.descriptor,
        lock_name=config.files.lock,
        log=log,
        require_clean_worktree=config.check.require_clean_worktree,
    )
    audit_logger = JsonlAuditLogger(config.audit_path) if config.audit_path is not None else None
    return MultiTargetRunner(
        verifier=verifier,
        timeout_seconds=config.normalizer.timeout_seconds,
        want_diff=config.check.diff,
        out=out,
        log=log,
        audit_logger=audit_logger,
    )


def run(
    argv: list[str] | None = None,
    out: TextIO | None = None,
    environ: Mapping[str, str] | None = None,
) -> bool:
    """Run a check and return True when any target needs normalization."""
    stream = out if out is not None else sys.stdout
    args = build_arg_parser().parse_args(argv)
    if args.version:
        stream.write(f"tidy-check {__version__}\n")
        return False

    log: DebugLog = StreamDebugLog(stream) if args.verbose else NULL_DEBUG_LOG
    overrides = CliOverrides(
        timeout_seconds=args.timeout,
        diff=args.diff,
        require_clean_worktree=args.require_clean,
        audit_path=Path(args.audit_log) if args.audit_log is not None else None,
    )
    config = load_effective_config(
        config_path=Path(args.config) if args.config is not None else None,
        overrides=overrides,
    )
    log.log(f"effective config: {config.to_public_dict()}")

    paths: list[str] = list(args.paths)
    if running_in_action_container(environ if environ is not None else os.environ):
        try:
            paths = remap_container_paths(paths, log=log)
        except OSError as error:
            raise TidyCheckError(f"getting paths inside container: {error}") from error

    report = build_runner(config, stream, log).run(paths)
    return report.needs_normalization


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the tidy-check process."""
    try:
        untidy = run(argv)
    except (TidyCheckError, ConfigError, OSError) as error:
        print(f"Error: {error}")
        return 1
    return 1 if untidy else 0


if __name__ == "__main__":
    raise SystemExit(main())
