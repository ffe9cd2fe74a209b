"""Load gateway configuration from YAML/JSON and environment variables."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shellgate.core.errors import ConfigError
from shellgate.security.paths import normalize_allowed_paths, normalize_path

# Default config lives next to this module
_DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"


class ShellKind(str, Enum):
    CMD = "cmd"
    POWERSHELL = "powershell"
    GITBASH = "gitbash"
    WSL = "wsl"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _default_allowed_paths() -> list[str]:
    return normalize_allowed_paths([str(Path.home()), os.getcwd()])


class SecurityPolicy(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    max_command_length: int = Field(default=2000, gt=0)
    command_timeout: int = Field(default=30, ge=1)
    enable_injection_protection: bool = True
    restrict_working_directory: bool = True


class RestrictionsPolicy(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    blocked_commands: list[str] = Field(
        default_factory=lambda: [
            "rm", "del", "rmdir", "format",
            "shutdown", "restart",
            "reg", "regedit",
            "net", "netsh",
            "takeown", "icacls",
        ]
    )
    blocked_arguments: list[str] = Field(
        default_factory=lambda: [
            "--exec", "-e", "/c", "-enc", "-encodedcommand",
            "-command", "--interactive", "-i", "--login", "--system",
        ]
    )
    blocked_operators: list[str] = Field(default_factory=lambda: ["&", "|", ";", "`"])


class PathsPolicy(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    allowed_paths: list[str] = Field(default_factory=_default_allowed_paths)
    initial_dir: Optional[str] = None


class GlobalPolicy(BaseModel):
    """Security policy shared by every shell unless a shell overrides a group."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    security: SecurityPolicy = Field(default_factory=SecurityPolicy)
    restrictions: RestrictionsPolicy = Field(default_factory=RestrictionsPolicy)
    paths: PathsPolicy = Field(default_factory=PathsPolicy)


class SecurityOverrides(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    max_command_length: Optional[int] = Field(default=None, gt=0)
    command_timeout: Optional[int] = Field(default=None, ge=1)
    enable_injection_protection: Optional[bool] = None
    restrict_working_directory: Optional[bool] = None


class RestrictionsOverrides(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    blocked_commands: Optional[list[str]] = None
    blocked_arguments: Optional[list[str]] = None
    blocked_operators: Optional[list[str]] = None


class PathsOverrides(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    allowed_paths: Optional[list[str]] = None
    initial_dir: Optional[str] = None


class ShellOverrides(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    security: Optional[SecurityOverrides] = None
    restrictions: Optional[RestrictionsOverrides] = None
    paths: Optional[PathsOverrides] = None


class ExecutableConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    command: str = ""
    args: list[str] = Field(default_factory=list)


class WslMountConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    mount_point: str = "/mnt/"
    inherit_global_paths: bool = True
    instance_name: Optional[str] = None

    @field_validator("mount_point")
    @classmethod
    def _absolute_mount_point(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("mount_point must be an absolute POSIX path")
        return value if value.endswith("/") else value + "/"


class ShellDefinition(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: bool = True
    executable: ExecutableConfig = Field(default_factory=ExecutableConfig)
    overrides: Optional[ShellOverrides] = None
    wsl_config: Optional[WslMountConfig] = None

    @model_validator(mode="after")
    def _enabled_needs_executable(self) -> "ShellDefinition":
        if self.enabled and not self.executable.command:
            raise ValueError("enabled shell is missing executable.command")
        return self


DEFAULT_SHELLS: dict[str, dict[str, Any]] = {
    "powershell": {
        "enabled": True,
        "executable": {
            "command": "powershell.exe",
            "args": ["-NoProfile", "-NonInteractive", "-Command"],
        },
    },
    "cmd": {
        "enabled": True,
        "executable": {"command": "cmd.exe", "args": ["/c"]},
    },
    "gitbash": {
        "enabled": True,
        "executable": {"command": "C:\\Program Files\\Git\\bin\\bash.exe", "args": ["-c"]},
    },
    "wsl": {
        "enabled": True,
        "executable": {"command": "wsl.exe", "args": ["-e"]},
        "wsl_config": {"mount_point": "/mnt/", "inherit_global_paths": True},
    },
}


class ShellsConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    cmd: ShellDefinition = Field(
        default_factory=lambda: ShellDefinition(**DEFAULT_SHELLS["cmd"])
    )
    powershell: ShellDefinition = Field(
        default_factory=lambda: ShellDefinition(**DEFAULT_SHELLS["powershell"])
    )
    gitbash: ShellDefinition = Field(
        default_factory=lambda: ShellDefinition(**DEFAULT_SHELLS["gitbash"])
    )
    wsl: ShellDefinition = Field(
        default_factory=lambda: ShellDefinition(**DEFAULT_SHELLS["wsl"])
    )

    def get(self, kind: ShellKind) -> ShellDefinition:
        return getattr(self, kind.value)

    def items(self) -> Iterator[tuple[ShellKind, ShellDefinition]]:
        for kind in ShellKind:
            yield kind, self.get(kind)


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SHELLGATE_LOG_", extra="ignore")
    level: str = "INFO"
    json_format: bool = True


class HttpSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SHELLGATE_HTTP_", extra="ignore")
    host: str = "127.0.0.1"
    port: int = 8765
    token: str = ""


class GatewayConfig(BaseSettings):
    """Gateway config: YAML/JSON file + env. Immutable once loaded."""

    model_config = SettingsConfigDict(
        env_prefix="SHELLGATE_", env_nested_delimiter="__", extra="ignore", frozen=True
    )

    global_policy: GlobalPolicy = Field(default_factory=GlobalPolicy)
    shells: ShellsConfig = Field(default_factory=ShellsConfig)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)

    @classmethod
    def find_config_file(cls, config_path: str | Path | None = None) -> Path:
        candidates = [
            Path(config_path) if config_path else None,
            Path(os.environ["SHELLGATE_CONFIG"]) if os.getenv("SHELLGATE_CONFIG") else None,
            Path.cwd() / "shellgate.yaml",
            Path.home() / ".shellgate" / "config.yaml",
        ]
        for candidate in candidates:
            if candidate is not None and candidate.exists():
                return candidate
        if config_path:
            raise ConfigError(f"Config file not found: {config_path}")
        return _DEFAULT_CONFIG_PATH

    @classmethod
    def load(cls, config_path: str | Path | None = None) -> "GatewayConfig":
        path = cls.find_config_file(config_path)
        data = _load_yaml(path)
        if "global" in data:
            data["global_policy"] = data.pop("global")
        data["shells"] = _deep_merge(DEFAULT_SHELLS, data.get("shells") or {})

        global_data = data.setdefault("global_policy", {}) or {}
        data["global_policy"] = global_data
        allowed = os.getenv("SHELLGATE_ALLOWED_PATHS")
        if allowed:
            paths = [p.strip() for p in allowed.split(",") if p.strip()]
            global_data.setdefault("paths", {})["allowed_paths"] = paths
        initial_dir = os.getenv("SHELLGATE_INITIAL_DIR")
        if initial_dir:
            global_data.setdefault("paths", {})["initial_dir"] = initial_dir
        restrict = os.getenv("SHELLGATE_RESTRICT_WORKING_DIRECTORY")
        if restrict:
            global_data.setdefault("security", {})["restrict_working_directory"] = (
                restrict.lower() in ("1", "true", "yes")
            )
        timeout = os.getenv("SHELLGATE_COMMAND_TIMEOUT")
        if timeout:
            global_data.setdefault("security", {})["command_timeout"] = timeout

        log_level = os.getenv("SHELLGATE_LOG_LEVEL")
        if log_level:
            data.setdefault("logging", {})["level"] = log_level
        http_token = os.getenv("SHELLGATE_HTTP_TOKEN")
        if http_token:
            data.setdefault("http", {})["token"] = http_token

        paths_data = global_data.get("paths") or {}
        if paths_data.get("allowed_paths") is not None:
            paths_data["allowed_paths"] = normalize_allowed_paths(paths_data["allowed_paths"])
        if paths_data.get("initial_dir"):
            paths_data["initial_dir"] = normalize_path(paths_data["initial_dir"])

        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def get_config(config_path: str | Path | None = None) -> GatewayConfig:
    return GatewayConfig.load(config_path)


def create_default_config(config_path: str | Path) -> Path:
    """Write the built-in defaults as YAML (used by --init-config)."""
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    config = GatewayConfig()
    document = {
        "global": config.global_policy.model_dump(mode="json"),
        "shells": config.shells.model_dump(mode="json", exclude_none=True),
    }
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(document, f, sort_keys=False, allow_unicode=True)
    return path
