"""blockgen/looptrap.py – Loop-body instrumentation ("loop traps").

Every loop rule passes its generated body through
:meth:`GenerationContext.add_loop_trap` before joining it to the loop
header.  The configured :class:`LoopTrap` decides what that means:

``NullLoopTrap``
    Identity.  Plain Python has native ``break``/``continue``.

``InfiniteLoopTrap``
    Prepends a host-supplied guard statement to the body, e.g. a counter
    that raises after too many iterations.  ``%1`` in the template becomes
    the quoted loop node id.

``SignalLoopTrap``
    For hosts that run the body through another control path (stepping
    runtimes, bodies moved into callbacks) where a bare ``break`` would
    escape the wrong construct.  Every ``break``/``continue`` owned by this
    loop is replaced by raising a shared ``loop_exit`` signal carrying the
    loop id, and the body is wrapped in a handler that turns the signal
    back into the real statement.  Signals carrying another loop's id are
    re-raised.  Exits inside nested loops are left alone: those loops were
    generated first and already own their traps.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import TYPE_CHECKING, List, Sequence

from blockgen.registry import FUNCTION_NAME_PLACEHOLDER

if TYPE_CHECKING:  # pragma: no cover
    from blockgen.generator import GenerationContext, GeneratorConfig

__all__ = [
    "LoopExit",
    "LoopTrap",
    "NullLoopTrap",
    "InfiniteLoopTrap",
    "SignalLoopTrap",
    "ChainedLoopTrap",
    "build_loop_trap",
    "owned_exits",
]

_LOOP_HEADER = re.compile(r"^(async\s+)?(for|while)\b.*:$")
_EXITS = ("break", "continue")


class LoopExit(Enum):
    """How loop bodies leave their loop."""

    DIRECT = "direct"
    SIGNAL = "signal"


def owned_exits(lines: Sequence[str]) -> List[int]:
    """Indices of ``break``/``continue`` lines not inside a nested loop."""
    exits = []
    nested: List[int] = []
    for index, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            continue
        width = len(line) - len(line.lstrip())
        while nested and width <= nested[-1]:
            nested.pop()
        if not nested and stripped in _EXITS:
            exits.append(index)
        if _LOOP_HEADER.match(stripped):
            nested.append(width)
    return exits


class LoopTrap:
    """Base strategy: returns the body unchanged."""

    def instrument(self, branch: str, loop_id: str, ctx: "GenerationContext") -> str:
        return branch


class NullLoopTrap(LoopTrap):
    pass


class InfiniteLoopTrap(LoopTrap):
    """Prefix the body with a guard statement built from *template*."""

    def __init__(self, template: str) -> None:
        self.template = template if template.endswith("\n") else template + "\n"

    def instrument(self, branch: str, loop_id: str, ctx: "GenerationContext") -> str:
        guard = self.template.replace("%1", ctx.quote(loop_id))
        return ctx.prefix_lines(guard, ctx.indent) + branch


class SignalLoopTrap(LoopTrap):
    """Route this loop's exits through a keyed ``loop_exit`` signal."""

    def instrument(self, branch: str, loop_id: str, ctx: "GenerationContext") -> str:
        lines = branch.split("\n")
        exits = owned_exits(lines)
        if not exits:
            return branch
        signal = ctx.provide_function("loop_exit", [
            f"class {FUNCTION_NAME_PLACEHOLDER}(Exception):",
            "  def __init__(self, loop_id, action):",
            "    super().__init__(loop_id, action)",
            "    self.loop_id = loop_id",
            "    self.action = action",
        ])
        quoted = ctx.quote(loop_id)
        for index in exits:
            line = lines[index]
            width = len(line) - len(line.lstrip())
            action = line.strip()
            lines[index] = f"{line[:width]}raise {signal}({quoted}, '{action}')"
        caught = ctx.names.get_distinct_name("loop_signal")
        indent = ctx.indent
        body = ctx.prefix_lines("\n".join(lines), indent)
        return (
            f"{indent}try:\n"
            f"{body}"
            f"{indent}except {signal} as {caught}:\n"
            f"{indent * 2}if {caught}.loop_id != {quoted}:\n"
            f"{indent * 3}raise\n"
            f"{indent * 2}if {caught}.action == 'break':\n"
            f"{indent * 3}break\n"
            f"{indent * 2}continue\n"
        )


class ChainedLoopTrap(LoopTrap):
    """Apply several traps in order."""

    def __init__(self, traps: Sequence[LoopTrap]) -> None:
        self.traps = list(traps)

    def instrument(self, branch: str, loop_id: str, ctx: "GenerationContext") -> str:
        for trap in self.traps:
            branch = trap.instrument(branch, loop_id, ctx)
        return branch


def build_loop_trap(config: "GeneratorConfig") -> LoopTrap:
    """Build the trap a configuration asks for."""
    traps: List[LoopTrap] = []
    if config.loop_exit is LoopExit.SIGNAL:
        traps.append(SignalLoopTrap())
    if config.infinite_loop_trap:
        traps.append(InfiniteLoopTrap(config.infinite_loop_trap))
    if not traps:
        return NullLoopTrap()
    if len(traps) == 1:
        return traps[0]
    return ChainedLoopTrap(traps)
