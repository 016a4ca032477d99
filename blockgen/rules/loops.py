"""Rules for loops and loop-exit statements.

Every loop body goes through :meth:`GenerationContext.loop_body`, which
generates it inside a ``loop`` scope and applies the configured loop trap
before the header is attached.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Union

from blockgen.indexing import format_number, is_number
from blockgen.order import Order
from blockgen.registry import FUNCTION_NAME_PLACEHOLDER
from blockgen.rules import rule

if TYPE_CHECKING:  # pragma: no cover
    from blockgen.generator import GenerationContext
    from blockgen.nodes import Node

_WORD = re.compile(r"^\w+$")


@rule("controls_repeat_ext", "controls_repeat")
def controls_repeat_ext(node: "Node", ctx: "GenerationContext") -> str:
    if node.has_field("TIMES"):
        try:
            repeats = str(int(float(node.get_field_value("TIMES"))))
        except (TypeError, ValueError, OverflowError):
            raise ctx.unhandled(node, "TIMES") from None
    else:
        repeats = ctx.value_to_code(node, "TIMES", Order.NONE) or "0"
    if is_number(repeats):
        repeats = str(int(float(repeats)))
    else:
        repeats = f"int({repeats})"
    counter = ctx.distinct_name("count")
    branch = ctx.loop_body(node)
    return f"for {counter} in range({repeats}):\n{branch}"


@rule("controls_whileUntil")
def controls_while_until(node: "Node", ctx: "GenerationContext") -> str:
    mode = node.get_field_value("MODE")
    if mode not in ("WHILE", "UNTIL"):
        raise ctx.unhandled(node, "MODE", ("WHILE", "UNTIL"))
    until = mode == "UNTIL"
    condition = ctx.value_to_code(
        node, "BOOL", Order.LOGICAL_NOT if until else Order.NONE
    ) or "False"
    branch = ctx.loop_body(node)
    if until:
        condition = "not " + condition
    return f"while {condition}:\n{branch}"


def _up_range(ctx: "GenerationContext") -> str:
    return ctx.provide_function("upRange", [
        f"def {FUNCTION_NAME_PLACEHOLDER}(start, stop, step):",
        "  while start <= stop:",
        "    yield start",
        "    start += abs(step)",
    ])


def _down_range(ctx: "GenerationContext") -> str:
    return ctx.provide_function("downRange", [
        f"def {FUNCTION_NAME_PLACEHOLDER}(start, stop, step):",
        "  while start >= stop:",
        "    yield start",
        "    start -= abs(step)",
    ])


def _constant_range(start: float, stop: float, step: float, ctx: "GenerationContext") -> str:
    step = abs(step)
    if start.is_integer() and stop.is_integer() and step.is_integer():
        first, last, inc = int(start), int(stop), int(step)
        if first <= last:
            last += 1
            args = str(last) if first == 0 and inc == 1 else f"{first}, {last}"
            if inc != 1:
                args += f", {inc}"
        else:
            last -= 1
            args = f"{first}, {last}, -{inc}"
        return f"range({args})"
    helper = _up_range(ctx) if start < stop else _down_range(ctx)
    return f"{helper}({format_number(start)}, {format_number(stop)}, {format_number(step)})"


@rule("controls_for")
def controls_for(node: "Node", ctx: "GenerationContext") -> str:
    """Counted loop.

    Constant bounds fold into ``range(...)``; fractional constants use the
    ``upRange``/``downRange`` generators; anything else is converted with
    ``float`` once, through temporaries where the expression is not a
    plain name, and the direction is chosen at run time.
    """
    variable = ctx.variable_name(node, "VAR")
    start = ctx.value_to_code(node, "FROM", Order.NONE) or "0"
    stop = ctx.value_to_code(node, "TO", Order.NONE) or "0"
    step = ctx.value_to_code(node, "BY", Order.NONE) or "1"
    branch = ctx.loop_body(node)

    if is_number(start) and is_number(stop) and is_number(step):
        loop_range = _constant_range(float(start), float(stop), float(step), ctx)
        return f"for {variable} in {loop_range}:\n{branch}"

    code = ""

    def cache(arg: str, suffix: str) -> Union[float, str]:
        nonlocal code
        if is_number(arg):
            return float(arg)
        if _WORD.match(arg):
            return f"float({arg})"
        temp = ctx.distinct_name(variable + suffix)
        code += f"{temp} = float({arg})\n"
        return temp

    start_var = cache(start, "_start")
    stop_var = cache(stop, "_end")
    step_var = cache(step, "_inc")
    rendered = [
        format_number(v) if isinstance(v, float) else v
        for v in (start_var, stop_var, step_var)
    ]
    args = ", ".join(rendered)
    if isinstance(start_var, float) and isinstance(stop_var, float):
        helper = _up_range(ctx) if start_var < stop_var else _down_range(ctx)
        loop_range = f"{helper}({args})"
    else:
        loop_range = (
            f"{_up_range(ctx)}({args}) if {rendered[0]} <= {rendered[1]} "
            f"else {_down_range(ctx)}({args})"
        )
    return code + f"for {variable} in {loop_range}:\n{branch}"


@rule("controls_forEach")
def controls_for_each(node: "Node", ctx: "GenerationContext") -> str:
    variable = ctx.variable_name(node, "VAR")
    items = ctx.value_to_code(node, "LIST", Order.RELATIONAL) or "[]"
    branch = ctx.loop_body(node)
    return f"for {variable} in {items}:\n{branch}"


@rule("controls_flow_statements")
def controls_flow_statements(node: "Node", ctx: "GenerationContext") -> str:
    flow = node.get_field_value("FLOW")
    if flow == "BREAK":
        return "break\n"
    if flow == "CONTINUE":
        return "continue\n"
    raise ctx.unhandled(node, "FLOW", ("BREAK", "CONTINUE"))
