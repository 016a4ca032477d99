"""blockgen/order.py – Operator precedence table and expression compositor.

Every expression rule returns ``(code, order)`` where *order* is the
binding strength of the outermost operator in *code*.  Lower numbers bind
tighter: ``ATOMIC`` is a literal or a name, ``NONE`` is the context of a
whole expression (a call argument, an assignment's right-hand side).

A parent asks for each operand at the order its own operator requires;
:func:`compose` adds parentheses only when the operand binds looser than
that.  Python's levels, loosest last::

    ATOMIC             0   literals, names
    COLLECTION         1   tuple / list / dict displays, str(...)
    MEMBER             2   x.attr  x[i]  f(x)
    EXPONENTIATION     3   **
    UNARY_SIGN         4   +x  -x  ~x
    MULTIPLICATIVE     5   *  /  //  %
    ADDITIVE           6   +  -
    BITWISE_SHIFT      7   <<  >>
    BITWISE_AND        8   &
    BITWISE_XOR        9   ^
    BITWISE_OR        10   |
    RELATIONAL        11   in, not in, is, is not, <, <=, >, >=, !=, ==
    LOGICAL_NOT       12   not
    LOGICAL_AND       13   and
    LOGICAL_OR        14   or
    CONDITIONAL       15   x if c else y
    LAMBDA            16   lambda
    NONE              99   whole expression
"""

from __future__ import annotations

from enum import IntEnum
from typing import FrozenSet, Tuple

__all__ = [
    "Order",
    "NON_CHAINING",
    "compose",
    "needs_parens",
    "tighter",
]


class Order(IntEnum):
    """Binding strength of an emitted Python expression."""

    ATOMIC = 0
    COLLECTION = 1
    STRING_CONVERSION = 1
    MEMBER = 2
    FUNCTION_CALL = 2
    EXPONENTIATION = 3
    UNARY_SIGN = 4
    BITWISE_NOT = 4
    MULTIPLICATIVE = 5
    ADDITIVE = 6
    BITWISE_SHIFT = 7
    BITWISE_AND = 8
    BITWISE_XOR = 9
    BITWISE_OR = 10
    RELATIONAL = 11
    LOGICAL_NOT = 12
    LOGICAL_AND = 13
    LOGICAL_OR = 14
    CONDITIONAL = 15
    LAMBDA = 16
    NONE = 99


#: Levels whose operators cannot be nested at the same level without
#: parentheses: ``a < b < c`` is a chained comparison and ``a if b if c
#: else d else e`` does not parse.
NON_CHAINING: FrozenSet[Order] = frozenset({Order.RELATIONAL, Order.CONDITIONAL})

#: Levels in ascending order, used to step one level tighter.
_LEVELS: Tuple[int, ...] = tuple(sorted({int(o) for o in Order}))


def needs_parens(inner: int, outer: int) -> bool:
    """True when an expression at *inner* must be grouped inside *outer*."""
    if inner > outer:
        return True
    return inner == outer and outer in NON_CHAINING


def compose(code: str, inner: int, outer: int) -> str:
    """Embed *code* (emitted at order *inner*) into a context at *outer*."""
    if needs_parens(inner, outer):
        return f"({code})"
    return code


def tighter(order: int) -> Order:
    """The next level that binds tighter than *order*.

    Rules use it for operands that must not re-associate, e.g. the right
    operand of ``-``: ``a - (b - c)`` keeps its parentheses because the
    right side is requested at ``tighter(ADDITIVE)``.
    """
    for level in reversed(_LEVELS):
        if level < order:
            return Order(level)
    return Order.ATOMIC
