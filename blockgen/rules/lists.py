"""Rules for list construction, access and transformation.

User-facing positions go through :meth:`GenerationContext.get_adjusted_int`
so that one-based and from-the-end indices become plain Python indices.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Tuple, Union

from blockgen.indexing import is_number
from blockgen.order import Order, tighter
from blockgen.registry import FUNCTION_NAME_PLACEHOLDER
from blockgen.rules import rule

if TYPE_CHECKING:  # pragma: no cover
    from blockgen.generator import GenerationContext
    from blockgen.nodes import Node

_WORD = re.compile(r"^\w+$")

_SORT_TYPES = ("NUMERIC", "TEXT", "IGNORE_CASE")


@rule("lists_create_empty")
def lists_create_empty(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    return "[]", Order.ATOMIC


@rule("lists_create_with")
def lists_create_with(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    elements = [
        ctx.value_to_code(node, f"ADD{i}", Order.NONE) or "None"
        for i in range(node.item_count)
    ]
    return "[" + ", ".join(elements) + "]", Order.ATOMIC


@rule("lists_repeat")
def lists_repeat(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    item = ctx.value_to_code(node, "ITEM", Order.NONE) or "None"
    times = ctx.value_to_code(node, "NUM", tighter(Order.MULTIPLICATIVE)) or "0"
    return f"[{item}] * {times}", Order.MULTIPLICATIVE


@rule("lists_length")
def lists_length(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    items = ctx.value_to_code(node, "VALUE", Order.NONE) or "[]"
    return f"len({items})", Order.FUNCTION_CALL


@rule("lists_isEmpty")
def lists_is_empty(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    items = ctx.value_to_code(node, "VALUE", Order.NONE) or "[]"
    return f"not len({items})", Order.LOGICAL_NOT


@rule("lists_indexOf")
def lists_index_of(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    """Position of the first or last occurrence, or the "not found" index."""
    item = ctx.value_to_code(node, "FIND", Order.NONE) or "[]"
    items = ctx.value_to_code(node, "VALUE", Order.NONE) or "''"
    if ctx.config.one_based_index:
        missing, first_adjust, last_adjust = "0", " + 1", ""
    else:
        missing, first_adjust, last_adjust = "-1", "", " - 1"
    end = node.get_field_value("END")
    if end == "FIRST":
        name = ctx.provide_function("first_index", [
            f"def {FUNCTION_NAME_PLACEHOLDER}(my_list, elem):",
            "  try:",
            f"    return my_list.index(elem){first_adjust}",
            "  except ValueError:",
            f"    return {missing}",
        ])
    elif end == "LAST":
        name = ctx.provide_function("last_index", [
            f"def {FUNCTION_NAME_PLACEHOLDER}(my_list, elem):",
            "  try:",
            f"    return len(my_list) - my_list[::-1].index(elem){last_adjust}",
            "  except ValueError:",
            f"    return {missing}",
        ])
    else:
        raise ctx.unhandled(node, "END")
    return f"{name}({items}, {item})", Order.FUNCTION_CALL


def _remove_random_item(ctx: "GenerationContext") -> str:
    ctx.add_import("random")
    return ctx.provide_function("lists_remove_random_item", [
        f"def {FUNCTION_NAME_PLACEHOLDER}(my_list):",
        "  x = int(random.random() * len(my_list))",
        "  return my_list.pop(x)",
    ])


@rule("lists_getIndex")
def lists_get_index(node: "Node", ctx: "GenerationContext") -> Union[str, Tuple[str, int]]:
    """Read, remove, or read-and-remove one element.

    ``REMOVE`` yields a statement; ``GET`` and ``GET_REMOVE`` yield
    expressions.
    """
    mode = node.get_field_value("MODE") or "GET"
    where = node.get_field_value("WHERE") or "FROM_START"
    if mode not in ("GET", "GET_REMOVE", "REMOVE"):
        raise ctx.unhandled(node, "MODE", ("GET", "GET_REMOVE", "REMOVE"))
    list_order = Order.NONE if where == "RANDOM" else Order.MEMBER
    items = ctx.value_to_code(node, "VALUE", list_order) or "[]"

    if where == "RANDOM":
        if mode == "GET":
            ctx.add_import("random")
            return f"random.choice({items})", Order.FUNCTION_CALL
        code = f"{_remove_random_item(ctx)}({items})"
        if mode == "GET_REMOVE":
            return code, Order.FUNCTION_CALL
        return code + "\n"

    if where == "FIRST":
        at = "0"
    elif where == "LAST":
        at = "-1"
    elif where == "FROM_START":
        at = ctx.get_adjusted_int(node, "AT")
    elif where == "FROM_END":
        at = ctx.get_adjusted_int(node, "AT", 1, negate=True)
    else:
        raise ctx.unhandled(node, "WHERE")

    if mode == "GET":
        return f"{items}[{at}]", Order.MEMBER
    # pop() with no argument already takes the last element
    pop_arg = "" if where == "LAST" else at
    if mode == "GET_REMOVE":
        return f"{items}.pop({pop_arg})", Order.FUNCTION_CALL
    return f"{items}.pop({pop_arg})\n"


@rule("lists_setIndex")
def lists_set_index(node: "Node", ctx: "GenerationContext") -> str:
    items = ctx.value_to_code(node, "LIST", Order.MEMBER) or "[]"
    mode = node.get_field_value("MODE") or "SET"
    where = node.get_field_value("WHERE") or "FROM_START"
    if mode not in ("SET", "INSERT"):
        raise ctx.unhandled(node, "MODE", ("SET", "INSERT"))
    value = ctx.value_to_code(node, "TO", Order.NONE) or "None"

    if where == "FIRST":
        if mode == "SET":
            return f"{items}[0] = {value}\n"
        return f"{items}.insert(0, {value})\n"
    if where == "LAST":
        if mode == "SET":
            return f"{items}[-1] = {value}\n"
        return f"{items}.append({value})\n"
    if where in ("FROM_START", "FROM_END"):
        if where == "FROM_START":
            at = ctx.get_adjusted_int(node, "AT")
        else:
            at = ctx.get_adjusted_int(node, "AT", 1, negate=True)
        if mode == "SET":
            return f"{items}[{at}] = {value}\n"
        return f"{items}.insert({at}, {value})\n"
    if where == "RANDOM":
        ctx.add_import("random")
        code = ""
        # The list expression is used twice, so evaluate it once.
        if not _WORD.match(items):
            cached = ctx.distinct_name("tmp_list")
            code += f"{cached} = {items}\n"
            items = cached
        x = ctx.distinct_name("tmp_x")
        code += f"{x} = int(random.random() * len({items}))\n"
        if mode == "SET":
            return code + f"{items}[{x}] = {value}\n"
        return code + f"{items}.insert({x}, {value})\n"
    raise ctx.unhandled(node, "WHERE")


def sublist_bounds(node: "Node", ctx: "GenerationContext") -> Tuple[str, str]:
    """Slice bounds for the ``WHERE1``/``AT1`` .. ``WHERE2``/``AT2`` range."""
    where1 = node.get_field_value("WHERE1")
    where2 = node.get_field_value("WHERE2")

    if where1 == "FROM_START":
        at1 = ctx.get_adjusted_int(node, "AT1")
        if at1 == "0":
            at1 = ""
    elif where1 == "FROM_END":
        at1 = ctx.get_adjusted_int(node, "AT1", 1, negate=True)
    elif where1 == "FIRST":
        at1 = ""
    else:
        raise ctx.unhandled(node, "WHERE1")

    if where2 == "FROM_START":
        at2 = ctx.get_adjusted_int(node, "AT2", 1)
    elif where2 == "FROM_END":
        at2 = ctx.get_adjusted_int(node, "AT2", 0, negate=True)
        # A computed end of 0 must still mean "through the last element".
        if not is_number(at2):
            ctx.add_import("sys")
            at2 += " or sys.maxsize"
        elif at2 == "0":
            at2 = ""
    elif where2 == "LAST":
        at2 = ""
    else:
        raise ctx.unhandled(node, "WHERE2")
    return at1, at2


@rule("lists_getSublist")
def lists_get_sublist(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    items = ctx.value_to_code(node, "LIST", Order.MEMBER) or "[]"
    at1, at2 = sublist_bounds(node, ctx)
    return f"{items}[{at1} : {at2}]", Order.MEMBER


@rule("lists_sort")
def lists_sort(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    items = ctx.value_to_code(node, "LIST", Order.NONE) or "[]"
    sort_type = node.get_field_value("TYPE")
    if sort_type not in _SORT_TYPES:
        raise ctx.unhandled(node, "TYPE", _SORT_TYPES)
    direction = str(node.get_field_value("DIRECTION"))
    if direction not in ("1", "-1"):
        raise ctx.unhandled(node, "DIRECTION", ("1", "-1"))
    reverse = "False" if direction == "1" else "True"
    name = ctx.provide_function("lists_sort", [
        f"def {FUNCTION_NAME_PLACEHOLDER}(my_list, type, reverse):",
        "  def try_float(s):",
        "    try:",
        "      return float(s)",
        "    except (TypeError, ValueError):",
        "      return 0",
        "  key_funcs = {",
        "    'NUMERIC': try_float,",
        "    'TEXT': str,",
        "    'IGNORE_CASE': lambda s: str(s).lower(),",
        "  }",
        "  return sorted(list(my_list), key=key_funcs[type], reverse=reverse)",
    ])
    return f"{name}({items}, {ctx.quote(sort_type)}, {reverse})", Order.FUNCTION_CALL


@rule("lists_split")
def lists_split(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    """Split text into a list, or join a list into text."""
    mode = node.get_field_value("MODE")
    if mode == "SPLIT":
        value = ctx.value_to_code(node, "INPUT", Order.MEMBER) or "''"
        delim = ctx.value_to_code(node, "DELIM", Order.NONE)
        code = f"{value}.split({delim})"
    elif mode == "JOIN":
        value = ctx.value_to_code(node, "INPUT", Order.NONE) or "[]"
        delim = ctx.value_to_code(node, "DELIM", Order.MEMBER) or "''"
        code = f"{delim}.join({value})"
    else:
        raise ctx.unhandled(node, "MODE")
    return code, Order.FUNCTION_CALL


@rule("lists_reverse")
def lists_reverse(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    items = ctx.value_to_code(node, "LIST", Order.NONE) or "[]"
    return f"list(reversed({items}))", Order.FUNCTION_CALL
