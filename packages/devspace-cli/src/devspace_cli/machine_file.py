"""Load a machine description from a TOML file.

Example::

    workspace_id = "workspace-1"
    machine_id = "dev-machine"
    kind = "docker"

    [servers."4401/tcp"]
    address = "localhost:32768"
    protocol = "http"
    internal_url = "http://localhost:32768/api"
"""
from __future__ import annotations

import tomllib
from dataclasses import fields
from pathlib import Path

from devspace_core.errors import ConfigError
from devspace_core.types import Machine, MachineRuntime, Server

_SERVER_FIELDS = {f.name for f in fields(Server)}


def load_machine(path: Path | str) -> Machine:
    path = Path(path)
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except OSError as exc:
        raise ConfigError(f"Cannot read machine file {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid machine file {path}: {exc}") from exc
    return machine_from_dict(raw)


def machine_from_dict(raw: dict) -> Machine:
    for key in ("workspace_id", "machine_id"):
        if not raw.get(key):
            raise ConfigError(f"Machine description is missing {key!r}")

    servers: dict[str, Server] = {}
    for ref, section in raw.get("servers", {}).items():
        if "address" not in section:
            raise ConfigError(f"Server {ref!r} has no address")
        picked = {k: v for k, v in section.items() if k in _SERVER_FIELDS}
        picked.setdefault("ref", ref)
        servers[ref] = Server(**picked)

    return Machine(
        workspace_id=raw["workspace_id"],
        machine_id=raw["machine_id"],
        kind=raw.get("kind", "docker"),
        runtime=MachineRuntime(servers=servers),
        name=raw.get("name"),
    )
