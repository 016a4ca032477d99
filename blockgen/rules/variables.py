"""Rules for reading and assigning workspace variables."""

from __future__ import annotations

from typing import TYPE_CHECKING, Tuple

from blockgen.order import Order
from blockgen.rules import rule

if TYPE_CHECKING:  # pragma: no cover
    from blockgen.generator import GenerationContext
    from blockgen.nodes import Node


@rule("variables_get")
def variables_get(node: "Node", ctx: "GenerationContext") -> Tuple[str, int]:
    return ctx.variable_name(node, "VAR"), Order.ATOMIC


@rule("variables_set")
def variables_set(node: "Node", ctx: "GenerationContext") -> str:
    value = ctx.value_to_code(node, "VALUE", Order.NONE) or "0"
    return f"{ctx.variable_name(node, 'VAR')} = {value}\n"
