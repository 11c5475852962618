"""
MacroResolver
=============
Expands ``${...}`` command macros in a command line.

Every token that names a registered provider is expanded; all of them are
evaluated concurrently and spliced back in their original positions once
the last one completes. Tokens with no provider are left as they are,
since a command line may carry shell ``${VAR}`` expansions meant for the
remote machine.
"""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING

from devspace_core.errors import MacroExpansionError
from devspace_core.logging import get_logger

if TYPE_CHECKING:
    from devspace_runtime.macros.registry import MacroRegistry
    from devspace_runtime.protocols.macro import MacroProvider

logger = get_logger("macros.resolver")

# ${name} with no nested braces; names may contain dots, slashes, dashes.
_MACRO_PATTERN = re.compile(r"\$\{[^${}]+\}")


def find_macros(template: str) -> list[str]:
    """Return every ``${...}`` token in *template*, in order."""
    return _MACRO_PATTERN.findall(template)


class MacroResolver:
    """Expand command macros against a :class:`MacroRegistry`.

    Usage::

        resolver = MacroResolver(registry)
        line = await resolver.expand("curl ${server.8080/tcp}api")

    The resolver holds no state between calls. Repeated occurrences of one
    macro are expanded independently, so a provider whose value changes
    between calls may yield different values within one command line.
    """

    def __init__(self, registry: MacroRegistry) -> None:
        self._registry = registry

    async def expand(self, template: str) -> str:
        if not template:
            return template

        parts: list[str] = []
        pending: list[tuple[int, str, MacroProvider]] = []
        last_end = 0

        for match in _MACRO_PATTERN.finditer(template):
            token = match.group(0)
            provider = self._registry.get_provider(token)
            if provider is None:
                continue
            parts.append(template[last_end:match.start()])
            pending.append((len(parts), token, provider))
            parts.append(token)
            last_end = match.end()

        if not pending:
            return template

        parts.append(template[last_end:])

        values = await asyncio.gather(
            *(self._expand_one(token, provider) for _, token, provider in pending)
        )
        for (index, _, _), value in zip(pending, values, strict=True):
            parts[index] = value

        return "".join(parts)

    async def _expand_one(self, token: str, provider: MacroProvider) -> str:
        """Expand one token, falling back to the token text on failure."""
        try:
            return await provider.expand()
        except Exception as exc:
            error = MacroExpansionError(token, exc)
            logger.warning("%s; leaving it unexpanded", error)
            return token
