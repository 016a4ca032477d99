"""blockgen/registry.py – Shared helper functions and keyed declarations.

Rules never emit helper bodies inline.  They ask the pass's
:class:`FunctionRegistry` for a helper by its logical key and get a name
back straight away; the body is recorded once and flushed ahead of the
program in registration order.  Imports and other top-of-file declarations
go through :class:`DefinitionTable` with the same first-one-wins policy.

Helper templates are written with two-space indentation and the
:data:`FUNCTION_NAME_PLACEHOLDER` where the function's name belongs::

    name = ctx.provide_function("first_index", [
        f"def {FUNCTION_NAME_PLACEHOLDER}(my_list, elem):",
        "  try:",
        "    return my_list.index(elem) + 1",
        "  except ValueError:",
        "    return 0",
    ])
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Sequence

from blockgen.names import NameDB

__all__ = [
    "FUNCTION_NAME_PLACEHOLDER",
    "FunctionRegistry",
    "DefinitionTable",
    "reindent",
]

logger = logging.getLogger(__name__)

FUNCTION_NAME_PLACEHOLDER = "{__blockgen_function_name__}"

_IMPORT = re.compile(r"^(from\s+\S+\s+)?import\s+\S+")


def reindent(lines: Sequence[str], indent: str) -> List[str]:
    """Replace every two leading spaces of each template line by *indent*."""
    result = []
    for line in lines:
        stripped = line.lstrip(" ")
        width = len(line) - len(stripped)
        result.append(indent * (width // 2) + " " * (width % 2) + stripped)
    return result


class FunctionRegistry:
    """Key → (name, body) cache for helper definitions of one pass."""

    def __init__(self, names: NameDB, indent: str = "    ") -> None:
        self._names = names
        self._indent = indent
        self._functions: Dict[str, str] = {}
        self._bodies: Dict[str, str] = {}

    def provide(self, key: str, lines: Sequence[str]) -> str:
        """Return the helper name for *key*, registering *lines* on first use."""
        name = self._functions.get(key)
        if name is not None:
            return name
        name = self._names.get_distinct_name(key)
        body = "\n".join(reindent(lines, self._indent))
        self._functions[key] = name
        self._bodies[key] = body.replace(FUNCTION_NAME_PLACEHOLDER, name)
        logger.debug("helper %r registered as %s", key, name)
        return name

    def get(self, key: str) -> Optional[str]:
        return self._functions.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._functions

    def __len__(self) -> int:
        return len(self._functions)

    @property
    def names(self) -> Dict[str, str]:
        return dict(self._functions)

    def bodies(self) -> List[str]:
        """Helper bodies in registration order."""
        return list(self._bodies.values())


class DefinitionTable:
    """Keyed imports and declarations; duplicate keys collapse."""

    def __init__(self) -> None:
        self._entries: Dict[str, str] = {}

    def add(self, key: str, text: str) -> bool:
        """Record *text* under *key*.  Returns False when *key* was known."""
        if key in self._entries:
            return False
        self._entries[key] = text
        return True

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def imports(self) -> List[str]:
        return [text for text in self._entries.values() if _IMPORT.match(text)]

    def declarations(self) -> List[str]:
        return [text for text in self._entries.values() if not _IMPORT.match(text)]
