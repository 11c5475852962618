from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from devspace_core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from devspace_runtime.protocols.macro import MacroProvider

logger = get_logger("macros.registry")


class MacroRegistry:
    """Command macro providers keyed by macro name.

    Registration is first-wins: a provider whose name is already taken is
    dropped with a warning, so independent contributors can register
    without coordinating. Removal is by name only.
    """

    def __init__(self) -> None:
        self._providers: dict[str, MacroProvider] = {}
        self._lock = threading.Lock()

    def register(self, providers: Iterable[MacroProvider]) -> None:
        with self._lock:
            for provider in providers:
                key = provider.name
                if key in self._providers:
                    logger.warning(
                        "Command macro %r is already registered", key
                    )
                    continue
                self._providers[key] = provider

    def unregister(self, provider: MacroProvider) -> None:
        with self._lock:
            self._providers.pop(provider.name, None)

    def get_provider(self, name: str) -> MacroProvider | None:
        with self._lock:
            return self._providers.get(name)

    def get_providers(self) -> list[MacroProvider]:
        with self._lock:
            return list(self._providers.values())

    def get_keys(self) -> set[str]:
        with self._lock:
            return set(self._providers)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._providers

    def __len__(self) -> int:
        with self._lock:
            return len(self._providers)
