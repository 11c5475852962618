from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path

from devspace_core.errors import ConfigError

DEFAULT_RUN_COMMAND = "~/che/ws-agent/bin/catalina.sh run"
DEFAULT_TIMEOUT_MESSAGE = (
    "Timeout reached. Workspace agent has not been started"
)


def _load_toml(path: Path) -> dict:
    """Load a TOML file, returning empty dict if missing or unreadable."""
    if not path.exists():
        return {}
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into base (1 level deep for TOML sections)."""
    merged = dict(base)
    for key, val in override.items():
        if (
            key in merged
            and isinstance(merged[key], dict)
            and isinstance(val, dict)
        ):
            merged[key] = {**merged[key], **val}
        else:
            merged[key] = val
    return merged


@dataclass(frozen=True, slots=True)
class AgentLaunchConfig:
    """Timing and command settings for launching the workspace agent."""
    max_start_time_ms: int = 60_000
    ping_delay_ms: int = 2_000
    ping_timeout_ms: int = 1_000
    run_command: str | None = None
    ping_timed_out_message: str = DEFAULT_TIMEOUT_MESSAGE
    server_ref: str = "4401/tcp"

    def __post_init__(self) -> None:
        for name in ("max_start_time_ms", "ping_delay_ms", "ping_timeout_ms"):
            if getattr(self, name) < 0:
                raise ConfigError(f"agent.{name} must be >= 0")

    @property
    def effective_run_command(self) -> str:
        return self.run_command or DEFAULT_RUN_COMMAND


@dataclass(frozen=True, slots=True)
class MachineBackendConfig:
    backend: str = "local"  # local | docker
    shell: str = "/bin/sh"
    docker_binary: str = "docker"


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    level: str = "INFO"
    json_output: bool = False


@dataclass(frozen=True, slots=True)
class DevspaceConfig:
    """Top-level configuration, parsed from devspace.toml."""
    project_name: str = "devspace-project"
    agent: AgentLaunchConfig = field(default_factory=AgentLaunchConfig)
    machine: MachineBackendConfig = field(default_factory=MachineBackendConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_toml(
        cls, path: Path | str = "devspace.toml"
    ) -> DevspaceConfig:
        path = Path(path)
        raw = _load_toml(path)
        return cls._from_raw(raw)

    @classmethod
    def load(
        cls, project_dir: Path | str | None = None
    ) -> DevspaceConfig:
        """Load config with global → project layering.

        Resolution order (later wins):
        1. Built-in defaults
        2. ~/.devspace/config.toml (global)
        3. .devspace/config.toml or devspace.toml (project)
        """
        global_path = Path.home() / ".devspace" / "config.toml"

        project_dir = (
            Path.cwd() if project_dir is None else Path(project_dir)
        )

        project_path = project_dir / ".devspace" / "config.toml"
        if not project_path.exists():
            project_path = project_dir / "devspace.toml"

        merged = _deep_merge(
            _load_toml(global_path), _load_toml(project_path)
        )
        return cls._from_raw(merged)

    @classmethod
    def _from_raw(cls, raw: dict) -> DevspaceConfig:
        """Build DevspaceConfig from a raw TOML dict."""

        def _pick(section: dict, dc: type) -> dict:
            names = {f.name for f in fields(dc)}
            return {k: v for k, v in section.items() if k in names}

        return cls(
            project_name=raw.get("project", {}).get(
                "name", "devspace-project"
            ),
            agent=AgentLaunchConfig(
                **_pick(raw.get("agent", {}), AgentLaunchConfig)
            ),
            machine=MachineBackendConfig(
                **_pick(raw.get("machine", {}), MachineBackendConfig)
            ),
            logging=LoggingConfig(
                **_pick(raw.get("logging", {}), LoggingConfig)
            ),
        )
