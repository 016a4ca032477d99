"""Rules for numbers and arithmetic."""

from __future__ import annotations

from typing import TYPE_CHECKING, Tuple

from blockgen.indexing import format_number
from blockgen.order import Order, tighter
from blockgen.rules import rule

if TYPE_CHECKING:  # pragma: no cover
    from blockgen.generator import GenerationContext
    from blockgen.nodes import Node

_ARITHMETIC = {
    "ADD": (" + ", Order.ADDITIVE),
    "MINUS": (" - ", Order.ADDITIVE),
    "MULTIPLY": (" * ", Order.MULTIPLICATIVE),
    "DIVIDE": (" / ", Order.MULTIPLICATIVE),
    "POWER": (" ** ", Order.EXPONENTIATION),
}

# Operator -> call template around the operand.
_CALLS = {
    "ROOT": "math.sqrt({})",
    "ABS": "math.fabs({})",
    "LN": "math.log({})",
    "LOG10": "math.log10({})",
    "EXP": "math.exp({})",
    "POW10": "math.pow(10, {})",
    "ROUND": "round({})",
    "ROUNDUP": "math.ceil({})",
    "ROUNDDOWN": "math.floor({})",
}

# Trigonometry works in degrees.
_TRIG = {
    "SIN": "math.sin({} / 180.0 * math.pi)",
    "COS": "math.cos({} / 180.0 * math.pi)",
    "TAN": "math.tan({} / 180.0 * math.pi)",
}

_INVERSE_TRIG = {
    "ASIN": "math.asin({}) / math.pi * 180",
    "ACOS": "math.acos({}) / math.pi * 180",
    "ATAN": "math.atan({}) / math.pi * 180",
}


@rule("math_number")
def math_number(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    raw = node.get_field_value("NUM")
    try:
        value = float(raw if raw not in (None, "") else 0)
    except (TypeError, ValueError):
        raise ctx.unhandled(node, "NUM") from None
    if value != value:
        raise ctx.unhandled(node, "NUM")
    if value == float("inf"):
        return 'float("inf")', Order.FUNCTION_CALL
    if value == float("-inf"):
        return '-float("inf")', Order.UNARY_SIGN
    code = format_number(value)
    return code, Order.UNARY_SIGN if value < 0 else Order.ATOMIC


@rule("math_arithmetic")
def math_arithmetic(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    """Binary arithmetic.

    The right operand of ``+ - * /`` is requested one level tighter so
    ``a - (b - c)`` keeps its grouping; ``**`` groups to the right, so its
    left operand is requested at ``MEMBER`` instead.
    """
    entry = _ARITHMETIC.get(node.get_field_value("OP"))
    if entry is None:
        raise ctx.unhandled(node, "OP", _ARITHMETIC)
    op, order = entry
    if order is Order.EXPONENTIATION:
        left_order, right_order = Order.MEMBER, Order.UNARY_SIGN
    else:
        left_order, right_order = order, tighter(order)
    left = ctx.value_to_code(node, "A", left_order) or "0"
    right = ctx.value_to_code(node, "B", right_order) or "0"
    return left + op + right, order


@rule("math_single")
def math_single(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    op = node.get_field_value("OP")
    if op == "NEG":
        operand = ctx.value_to_code(node, "NUM", Order.UNARY_SIGN) or "0"
        if operand.startswith("-"):
            operand = f"({operand})"
        return "-" + operand, Order.UNARY_SIGN
    if op in _TRIG:
        operand = ctx.value_to_code(node, "NUM", Order.MULTIPLICATIVE) or "0"
    else:
        operand = ctx.value_to_code(node, "NUM", Order.NONE) or "0"

    if op in _CALLS:
        code, order = _CALLS[op].format(operand), Order.FUNCTION_CALL
    elif op in _TRIG:
        code, order = _TRIG[op].format(operand), Order.FUNCTION_CALL
    elif op in _INVERSE_TRIG:
        code, order = _INVERSE_TRIG[op].format(operand), Order.MULTIPLICATIVE
    else:
        raise ctx.unhandled(node, "OP")
    if "math." in code:
        ctx.add_import("math")
    return code, order


@rule("math_change")
def math_change(node: "Node", ctx: "GenerationContext") -> str:
    ctx.add_import("numbers", "Number")
    name = ctx.variable_name(node, "VAR")
    delta = ctx.value_to_code(node, "DELTA", tighter(Order.ADDITIVE)) or "0"
    return f"{name} = ({name} if isinstance({name}, Number) else 0) + {delta}\n"
