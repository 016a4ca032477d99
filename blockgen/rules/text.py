"""Rules for text values and string operations."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Tuple

from blockgen.order import Order
from blockgen.registry import FUNCTION_NAME_PLACEHOLDER
from blockgen.rules import rule
from blockgen.rules.lists import sublist_bounds

if TYPE_CHECKING:  # pragma: no cover
    from blockgen.generator import GenerationContext
    from blockgen.nodes import Node

_STRING_LITERAL = re.compile(r"""^\s*('([^'\\]|\\.)*'|"([^"\\]|\\.)*")\s*$""")

_CASES = {
    "UPPERCASE": ".upper()",
    "LOWERCASE": ".lower()",
    "TITLECASE": ".title()",
}

_TRIMS = {
    "LEFT": ".lstrip()",
    "RIGHT": ".rstrip()",
    "BOTH": ".strip()",
}


def force_string(value: str) -> str:
    """Wrap *value* in ``str(...)`` unless it is already a string literal."""
    if _STRING_LITERAL.match(value):
        return value
    return f"str({value})"


@rule("text")
def text(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    return ctx.quote(node.get_field_value("TEXT") or ""), Order.ATOMIC


@rule("text_join")
def text_join(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    count = node.item_count
    if count == 0:
        return "''", Order.ATOMIC
    if count == 1:
        element = ctx.value_to_code(node, "ADD0", Order.NONE) or "''"
        # A literal stays as it is; anything else becomes str(...).
        code = force_string(element)
        return code, Order.ATOMIC if code == element else Order.FUNCTION_CALL
    if count == 2:
        first = ctx.value_to_code(node, "ADD0", Order.NONE) or "''"
        second = ctx.value_to_code(node, "ADD1", Order.NONE) or "''"
        return f"{force_string(first)} + {force_string(second)}", Order.ADDITIVE
    elements = [
        ctx.value_to_code(node, f"ADD{i}", Order.NONE) or "''"
        for i in range(count)
    ]
    temp = ctx.distinct_name("x")
    code = f"''.join([str({temp}) for {temp} in [{', '.join(elements)}]])"
    return code, Order.FUNCTION_CALL


@rule("text_append")
def text_append(node: "Node", ctx: "GenerationContext") -> str:
    name = ctx.variable_name(node, "VAR")
    value = ctx.value_to_code(node, "TEXT", Order.NONE) or "''"
    return f"{name} = str({name}) + {force_string(value)}\n"


@rule("text_length")
def text_length(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    value = ctx.value_to_code(node, "VALUE", Order.NONE) or "''"
    return f"len({value})", Order.FUNCTION_CALL


@rule("text_isEmpty")
def text_is_empty(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    value = ctx.value_to_code(node, "VALUE", Order.NONE) or "''"
    return f"not len({value})", Order.LOGICAL_NOT


@rule("text_indexOf")
def text_index_of(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    end = node.get_field_value("END")
    if end == "FIRST":
        method = "find"
    elif end == "LAST":
        method = "rfind"
    else:
        raise ctx.unhandled(node, "END")
    sub = ctx.value_to_code(node, "FIND", Order.NONE) or "''"
    value = ctx.value_to_code(node, "VALUE", Order.MEMBER) or "''"
    code = f"{value}.{method}({sub})"
    if ctx.config.one_based_index:
        return code + " + 1", Order.ADDITIVE
    return code, Order.FUNCTION_CALL


@rule("text_charAt")
def text_char_at(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    where = node.get_field_value("WHERE") or "FROM_START"
    value = ctx.value_to_code(node, "VALUE", Order.MEMBER) or "''"
    if where == "FIRST":
        return f"{value}[0]", Order.MEMBER
    if where == "LAST":
        return f"{value}[-1]", Order.MEMBER
    if where == "FROM_START":
        return f"{value}[{ctx.get_adjusted_int(node, 'AT')}]", Order.MEMBER
    if where == "FROM_END":
        at = ctx.get_adjusted_int(node, "AT", 1, negate=True)
        return f"{value}[{at}]", Order.MEMBER
    if where == "RANDOM":
        ctx.add_import("random")
        name = ctx.provide_function("text_random_letter", [
            f"def {FUNCTION_NAME_PLACEHOLDER}(text):",
            "  x = int(random.random() * len(text))",
            "  return text[x]",
        ])
        return f"{name}({value})", Order.FUNCTION_CALL
    raise ctx.unhandled(node, "WHERE")


@rule("text_getSubstring")
def text_get_substring(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    value = ctx.value_to_code(node, "STRING", Order.MEMBER) or "''"
    at1, at2 = sublist_bounds(node, ctx)
    return f"{value}[{at1} : {at2}]", Order.MEMBER


@rule("text_changeCase")
def text_change_case(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    method = _CASES.get(node.get_field_value("CASE"))
    if method is None:
        raise ctx.unhandled(node, "CASE", _CASES)
    value = ctx.value_to_code(node, "TEXT", Order.MEMBER) or "''"
    return value + method, Order.FUNCTION_CALL


@rule("text_trim")
def text_trim(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    method = _TRIMS.get(node.get_field_value("MODE"))
    if method is None:
        raise ctx.unhandled(node, "MODE", _TRIMS)
    value = ctx.value_to_code(node, "TEXT", Order.MEMBER) or "''"
    return value + method, Order.FUNCTION_CALL


@rule("text_print")
def text_print(node: "Node", ctx: "GenerationContext") -> str:
    message = ctx.value_to_code(node, "TEXT", Order.NONE) or "''"
    return f"print({message})\n"


@rule("text_prompt_ext", "text_prompt")
def text_prompt_ext(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    """Ask the user for a line of input, optionally as a number."""
    if node.has_field("TEXT"):
        message = ctx.quote(node.get_field_value("TEXT") or "")
    else:
        message = ctx.value_to_code(node, "TEXT", Order.NONE) or "''"
    kind = node.get_field_value("TYPE") or "TEXT"
    if kind not in ("TEXT", "NUMBER"):
        raise ctx.unhandled(node, "TYPE", ("TEXT", "NUMBER"))
    code = f"input({message})"
    if kind == "NUMBER":
        code = f"float({code})"
    return code, Order.FUNCTION_CALL


@rule("text_count")
def text_count(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    value = ctx.value_to_code(node, "TEXT", Order.MEMBER) or "''"
    sub = ctx.value_to_code(node, "SUB", Order.NONE) or "''"
    return f"{value}.count({sub})", Order.FUNCTION_CALL


@rule("text_replace")
def text_replace(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    value = ctx.value_to_code(node, "TEXT", Order.MEMBER) or "''"
    old = ctx.value_to_code(node, "FROM", Order.NONE) or "''"
    new = ctx.value_to_code(node, "TO", Order.NONE) or "''"
    return f"{value}.replace({old}, {new})", Order.FUNCTION_CALL


@rule("text_reverse")
def text_reverse(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    value = ctx.value_to_code(node, "TEXT", Order.MEMBER) or "''"
    return f"{value}[::-1]", Order.MEMBER
