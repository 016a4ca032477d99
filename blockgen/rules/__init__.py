"""blockgen/rules – Per-kind translation rules.

Each submodule registers its rules in :data:`RULES` through the
:func:`rule` decorator at import time::

    @rule("logic_null")
    def logic_null(node, ctx):
        return "None", Order.ATOMIC

A rule may be registered under several kinds (``controls_if`` and
``controls_ifelse`` share one).  :func:`default_rules` returns a copy of
the table for a :class:`~blockgen.generator.Generator` to own.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict

if TYPE_CHECKING:  # pragma: no cover
    from blockgen.generator import Rule

__all__ = ["RULES", "rule", "default_rules"]

# Populated by the ``@rule`` decorator in the submodules below.
RULES: Dict[str, "Rule"] = {}


def rule(kind: str, *aliases: str) -> Callable[["Rule"], "Rule"]:
    """Decorator: register a rule under *kind* and any *aliases*."""
    def deco(fn: "Rule") -> "Rule":
        for tag in (kind,) + aliases:
            if tag in RULES:
                raise ValueError(f"duplicate rule for node kind {tag!r}")
            RULES[tag] = fn
        return fn
    return deco


def default_rules() -> Dict[str, "Rule"]:
    """A fresh kind → rule mapping with every built-in rule."""
    return dict(RULES)


from blockgen.rules import lists, logic, loops, math, text, variables  # noqa: E402,F401
