"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import math
import tomllib
from dataclasses import dataclass
from pathlib import Path

DEFAULT_CONFIG_FILE = "tidy_check.toml"
DEFAULT_COMMAND = ("go", "mod", "tidy")
DEFAULT_DESCRIPTOR = "go.mod"
DEFAULT_LOCK = "go.sum"
DEFAULT_TIMEOUT_SECONDS = 300.0
DEFAULT_MAX_OUTPUT_BYTES = 64 * 1024

MAX_TIMEOUT_SECONDS_CAP = 24 * 60 * 60
MAX_OUTPUT_BYTES_CAP = 16 * 1024 * 1024

KNOWN_SECTIONS = ("normalizer", "files", "check", "audit")


class ConfigError(ValueError):
    """Raised when a config file or override has an invalid shape or value."""


@dataclass(slots=True, frozen=True)
class NormalizerConfig:
    """External normalization command settings."""

    command: tuple[str, ...]
    timeout_seconds: float
    max_output_bytes: int


@dataclass(slots=True, frozen=True)
class FilesConfig:
    """Names of the tracked files inside each target directory."""

    descriptor: str
    lock: str | None


@dataclass(slots=True, frozen=True)
class CheckConfig:
    """Verification behavior toggles."""

    diff: bool
    require_clean_worktree: bool


@dataclass(slots=True, frozen=True)
class ToolConfig:
    """Fully merged configuration."""

    normalizer: NormalizerConfig
    files: FilesConfig
    check: CheckConfig
    audit_path: Path | None

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for audit metadata and debug output."""
        return {
            "normalizer": {
                "command": list(self.normalizer.command),
                "timeout_seconds": self.normalizer.timeout_seconds,
                "max_output_bytes": self.normalizer.max_output_bytes,
            },
            "files": {
                "descriptor": self.files.descriptor,
                "lock": self.files.lock,
            },
            "check": {
                "diff": self.check.diff,
                "require_clean_worktree": self.check.require_clean_worktree,
            },
            "audit": {
                "path": str(self.audit_path) if self.audit_path is not None else None,
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional command line overrides applied at highest precedence."""

    timeout_seconds: float | None = None
    diff: bool | None = None
    require_clean_worktree: bool | None = None
    audit_path: Path | None = None


def default_config() -> ToolConfig:
    """Build the built-in defaults."""
    return ToolConfig(
        normalizer=NormalizerConfig(
            command=DEFAULT_COMMAND,
            timeout_seconds=DEFAULT_TIMEOUT_SECONDS,
            max_output_bytes=DEFAULT_MAX_OUTPUT_BYTES,
        ),
        files=FilesConfig(descriptor=DEFAULT_DESCRIPTOR, lock=DEFAULT_LOCK),
        check=CheckConfig(diff=False, require_clean_worktree=False),
        audit_path=None,
    )


def load_config_file(config_path: Path) -> dict[str, object]:
    """Load an optional TOML config file; a missing file yields an empty payload."""
    if not config_path.exists():
        return {}
    try:
        with config_path.open("rb") as handle:
            payload = tomllib.load(handle)
    except tomllib.TOMLDecodeError as error:
        raise ConfigError(f"{config_path.name} is not valid TOML: {error}") from error
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ConfigError(f"Config section '{key}' must be a table.")
    return value


def _optional_bool(value: object, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigError(f"Config field '{name}' must be a boolean.")
    return value


def _optional_name(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str):
        raise ConfigError(f"Config field '{name}' must be a string.")
    return value


def _optional_command(value: object, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None:
        return default
    if not isinstance(value, list) or not value:
        raise ConfigError("Config field 'normalizer.command' must be a non-empty list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item:
            raise ConfigError("Config field 'normalizer.command' must contain only strings.")
        output.append(item)
    return tuple(output)


def _optional_positive_number_with_cap(
    value: object,
    name: str,
    default: float,
    cap: float,
) -> float:
    if value is None:
        return default
    if (
        isinstance(value, bool)
        or not isinstance(value, (int, float))
        or not math.isfinite(value)
        or value <= 0
    ):
        raise ConfigError(f"Config field '{name}' must be a positive number.")
    if value > cap:
        raise ConfigError(f"Config field '{name}' must be <= {cap}.")
    return float(value)


def _optional_positive_int_with_cap(value: object, name: str, default: int, cap: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"Config field '{name}' must be a positive integer.")
    if value > cap:
        raise ConfigError(f"Config field '{name}' must be <= {cap}.")
    return value


def merge_config(base: ToolConfig, payload: dict[str, object], base_dir: Path) -> ToolConfig:
    """Merge a parsed config file payload over ``base``."""
    for key in sorted(payload.keys()):
        if key not in KNOWN_SECTIONS:
            raise ConfigError(f"Unknown config section '{key}'.")
    normalizer_payload = _get_table(payload, "normalizer")
    files_payload = _get_table(payload, "files")
    check_payload = _get_table(payload, "check")
    audit_payload = _get_table(payload, "audit")

    descriptor = _optional_name(
        files_payload.get("descriptor"), "files.descriptor", base.files.descriptor
    )
    if not descriptor:
        raise ConfigError("Config field 'files.descriptor' must not be empty.")
    lock: str | None = base.files.lock
    if "lock" in files_payload:
        lock = _optional_name(files_payload["lock"], "files.lock", "") or None

    audit_path = base.audit_path
    if "path" in audit_payload:
        raw_audit_path = _optional_name(audit_payload["path"], "audit.path", "")
        audit_path = (base_dir / raw_audit_path).resolve() if raw_audit_path else None

    return ToolConfig(
        normalizer=NormalizerConfig(
            command=_optional_command(normalizer_payload.get("command"), base.normalizer.command),
            timeout_seconds=_optional_positive_number_with_cap(
                normalizer_payload.get("timeout_seconds"),
                "normalizer.timeout_seconds",
                base.normalizer.timeout_seconds,
                MAX_TIMEOUT_SECONDS_CAP,
            ),
            max_output_bytes=_optional_positive_int_with_cap(
                normalizer_payload.get("max_output_bytes"),
                "normalizer.max_output_bytes",
                base.normalizer.max_output_bytes,
                MAX_OUTPUT_BYTES_CAP,
            ),
        ),
        files=FilesConfig(descriptor=descriptor, lock=lock),
        check=CheckConfig(
            diff=_optional_bool(check_payload.get("diff"), "check.diff", base.check.diff),
            require_clean_worktree=_optional_bool(
                check_payload.get("require_clean_worktree"),
                "check.require_clean_worktree",
                base.check.require_clean_worktree,
            ),
        ),
        audit_path=audit_path,
    )


def apply_cli_overrides(config: ToolConfig, overrides: CliOverrides) -> ToolConfig:
    """Apply command line overrides at highest precedence."""
    timeout_seconds = _optional_positive_number_with_cap(
        overrides.timeout_seconds,
        "overrides.timeout_seconds",
        config.normalizer.timeout_seconds,
        MAX_TIMEOUT_SECONDS_CAP,
    )
    return ToolConfig(
        normalizer=NormalizerConfig(
            command=config.normalizer.command,
            timeout_seconds=timeout_seconds,
            max_output_bytes=config.normalizer.max_output_bytes,
        ),
        files=config.files,
        check=CheckConfig(
            diff=overrides.diff if overrides.diff is not None else config.check.diff,
            require_clean_worktree=(
                overrides.require_clean_worktree
                if overrides.require_clean_worktree is not None
                else config.check.require_clean_worktree
            ),
        ),
        audit_path=(
            overrides.audit_path.resolve()
            if overrides.audit_path is not None
            else config.audit_path
        ),
    )


def load_effective_config(
    config_path: Path | None = None, overrides: CliOverrides | None = None
) -> ToolConfig:
    """Load effective config using merge order defaults -> config file -> overrides.

    An explicitly given ``config_path`` must exist; the default file is optional.
    """
    if config_path is not None and not config_path.exists():
        raise ConfigError(f"Config file '{config_path}' does not exist.")
    resolved_path = (config_path or Path(DEFAULT_CONFIG_FILE)).resolve()
    payload = load_config_file(resolved_path)
    merged = merge_config(default_config(), payload, base_dir=resolved_path.parent)
    return apply_cli_overrides(merged, overrides or CliOverrides())
