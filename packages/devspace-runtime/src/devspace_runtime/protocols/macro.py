from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MacroProvider(Protocol):
    """A named source of one command macro's current value."""

    @property
    def name(self) -> str: ...
    @property
    def description(self) -> str: ...
    async def expand(self) -> str: ...
