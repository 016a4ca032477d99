"""Rules for conditionals, comparisons and boolean logic."""

from __future__ import annotations

from typing import TYPE_CHECKING, Tuple

from blockgen.order import Order
from blockgen.rules import rule

if TYPE_CHECKING:  # pragma: no cover
    from blockgen.generator import GenerationContext
    from blockgen.nodes import Node

_COMPARISONS = {
    "EQ": "==",
    "NEQ": "!=",
    "LT": "<",
    "LTE": "<=",
    "GT": ">",
    "GTE": ">=",
}


@rule("controls_if", "controls_ifelse")
def controls_if(node: "Node", ctx: "GenerationContext") -> str:
    """``if``/``elif``/``else`` over the ``IF<n>``/``DO<n>`` input pairs.

    ``IF0`` is always generated; further pairs while ``IF<n>`` exists.
    """
    code = ""
    n = 0
    while True:
        condition = ctx.value_to_code(node, f"IF{n}", Order.NONE) or "False"
        branch = ctx.statement_to_code(node, f"DO{n}")
        code += ("if " if n == 0 else "elif ") + condition + ":\n" + branch
        n += 1
        if not node.has_input(f"IF{n}"):
            break
    if node.has_input("ELSE"):
        code += "else:\n" + ctx.statement_to_code(node, "ELSE")
    return code


@rule("logic_compare")
def logic_compare(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    op = _COMPARISONS.get(node.get_field_value("OP"))
    if op is None:
        raise ctx.unhandled(node, "OP", _COMPARISONS)
    order = Order.RELATIONAL
    left = ctx.value_to_code(node, "A", order) or "0"
    right = ctx.value_to_code(node, "B", order) or "0"
    return f"{left} {op} {right}", order


@rule("logic_operation")
def logic_operation(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    mode = node.get_field_value("OP")
    if mode == "AND":
        op, order, default = "and", Order.LOGICAL_AND, "True"
    elif mode == "OR":
        op, order, default = "or", Order.LOGICAL_OR, "False"
    else:
        raise ctx.unhandled(node, "OP", ("AND", "OR"))
    left = ctx.value_to_code(node, "A", order)
    right = ctx.value_to_code(node, "B", order)
    if not left and not right:
        # Nothing connected at all: the result is false either way.
        left = right = "False"
    else:
        # A single missing operand must not change the result.
        left = left or default
        right = right or default
    return f"{left} {op} {right}", order


@rule("logic_negate")
def logic_negate(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    operand = ctx.value_to_code(node, "BOOL", Order.LOGICAL_NOT) or "True"
    return "not " + operand, Order.LOGICAL_NOT


@rule("logic_boolean")
def logic_boolean(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    value = node.get_field_value("BOOL")
    if value == "TRUE":
        return "True", Order.ATOMIC
    if value == "FALSE":
        return "False", Order.ATOMIC
    raise ctx.unhandled(node, "BOOL", ("TRUE", "FALSE"))


@rule("logic_null")
def logic_null(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    return "None", Order.ATOMIC


@rule("logic_ternary")
def logic_ternary(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    order = Order.CONDITIONAL
    condition = ctx.value_to_code(node, "IF", order) or "False"
    then = ctx.value_to_code(node, "THEN", order) or "None"
    otherwise = ctx.value_to_code(node, "ELSE", order) or "None"
    return f"{then} if {condition} else {otherwise}", order
