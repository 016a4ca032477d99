"""blockgen/names.py – Collision-free identifier allocation.

Two consumers share one :class:`NameDB` per generation pass:

* **Variables** – :meth:`NameDB.get_name` maps a workspace
  :class:`~blockgen.nodes.Variable` (by identity) to one identifier that is
  reused at every reference for the rest of the pass.
* **Temporaries and helpers** – :meth:`NameDB.get_distinct_name` mints a
  fresh identifier on every call (loop counters, cached list expressions,
  shared helper functions).

A candidate is rejected while it is a reserved word, is bound in any scope
of the active chain, or was already issued during the pass; the rejected
candidate gets a numeric suffix (``count``, ``count2``, ``count3``, ...).
The suffix grows without bound, so allocation always terminates with a name
nobody else holds.
"""

from __future__ import annotations

import builtins
import contextlib
import itertools
import keyword
import logging
import re
from typing import Dict, FrozenSet, Iterable, Iterator, List, Set

from blockgen.nodes import Variable

__all__ = [
    "RESERVED_WORDS",
    "Scope",
    "NameDB",
    "safe_name",
]

logger = logging.getLogger(__name__)

#: Python keywords, builtins, and the modules generated code imports.
RESERVED_WORDS: FrozenSet[str] = frozenset(
    set(keyword.kwlist)
    | set(getattr(keyword, "softkwlist", ()))
    | {name for name in dir(builtins) if not name.startswith("__")}
    | {"math", "random", "sys", "Number"}
)

_NON_WORD = re.compile(r"[^A-Za-z0-9_]")


def safe_name(name: str) -> str:
    """Turn arbitrary user text into a legal Python identifier.

    Spaces and other non-word characters become ``_``; a leading digit gets
    a ``my_`` prefix; empty text becomes ``unnamed``.
    """
    if not name:
        return "unnamed"
    result = _NON_WORD.sub("_", name.replace(" ", "_"))
    if result[0].isdigit():
        result = "my_" + result
    return result


class Scope:
    """One name-allocation context (global, function or loop)."""

    __slots__ = ("kind", "names")

    def __init__(self, kind: str = "global") -> None:
        self.kind = kind
        self.names: Set[str] = set()

    def __contains__(self, name: str) -> bool:
        return name in self.names

    def __repr__(self) -> str:
        return f"Scope({self.kind!r}, {len(self.names)} names)"


class NameDB:
    """Per-pass identifier table with a scope stack."""

    def __init__(self, reserved: Iterable[str] = RESERVED_WORDS) -> None:
        self._reserved: FrozenSet[str] = frozenset(reserved)
        self._scopes: List[Scope] = [Scope("global")]
        self._issued: Set[str] = set()
        self._variables: Dict[Variable, str] = {}

    # -- scopes ----------------------------------------------------------

    @property
    def current(self) -> Scope:
        return self._scopes[-1]

    @property
    def depth(self) -> int:
        return len(self._scopes)

    def push_scope(self, kind: str) -> Scope:
        scope = Scope(kind)
        self._scopes.append(scope)
        return scope

    def pop_scope(self) -> Scope:
        if len(self._scopes) == 1:
            raise IndexError("cannot pop the global scope")
        return self._scopes.pop()

    @contextlib.contextmanager
    def scope(self, kind: str) -> Iterator[Scope]:
        """Run a block of generation inside a nested scope."""
        pushed = self.push_scope(kind)
        try:
            yield pushed
        finally:
            self.pop_scope()

    def is_bound(self, name: str) -> bool:
        """True when *name* is bound in the active scope chain."""
        return any(name in scope for scope in self._scopes)

    def bind(self, name: str) -> None:
        """Bind a user-chosen identifier in the current scope as-is."""
        self.current.names.add(name)
        self._issued.add(name)

    # -- allocation ------------------------------------------------------

    def is_taken(self, name: str) -> bool:
        return name in self._reserved or name in self._issued or self.is_bound(name)

    def get_distinct_name(self, base: str) -> str:
        """Return a fresh identifier derived from *base*.

        Never returns the same name twice in a pass.
        """
        stem = safe_name(base)
        candidate = stem
        if self.is_taken(candidate):
            for suffix in itertools.count(2):
                candidate = f"{stem}{suffix}"
                if not self.is_taken(candidate):
                    break
        self.bind(candidate)
        return candidate

    def get_name(self, variable: Variable) -> str:
        """Return the stable identifier for *variable*."""
        name = self._variables.get(variable)
        if name is None:
            name = self.get_distinct_name(variable.name)
            self._variables[variable] = name
            logger.debug("variable %r -> %s", variable.name, name)
        return name

    def reserve_variables(self, variables: Iterable[Variable]) -> List[str]:
        """Allocate names for *variables* up front, in order."""
        return [self.get_name(var) for var in variables]

    def variable_names(self) -> List[str]:
        """Identifiers issued to variables, in allocation order."""
        return list(self._variables.values())
