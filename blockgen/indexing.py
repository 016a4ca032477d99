"""blockgen/indexing.py – Index adjustment for user-facing indices.

Nodes carry indices the way the user sees them: one-based or zero-based,
counted from the start or from the end.  Generated Python always indexes
zero-based, with negative indices counting from the end.  A constant index
is folded into a single literal; anything else keeps the arithmetic in the
emitted text, wrapped in ``int(...)`` so float-valued expressions still
index.
"""

from __future__ import annotations

import re
from typing import Union

__all__ = ["is_number", "adjust_index", "format_number"]

_NUMBER = re.compile(r"^\s*-?\d+(\.\d+)?\s*$")


def is_number(text: str) -> bool:
    """True when *text* is a plain decimal literal such as ``3`` or ``-2.5``."""
    return bool(_NUMBER.match(str(text)))


def format_number(value: Union[int, float]) -> str:
    """Render a number the way the editor shows it: ``2`` not ``2.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def adjust_index(fragment: str, delta: int = 0, negate: bool = False) -> str:
    """Normalise an index expression.

    ``fragment`` is already-generated expression text.  A literal is folded
    to the value of ``int(fragment) + delta`` (negated when *negate*); other
    text becomes ``int(fragment + delta)``, ``int(fragment - |delta|)`` or
    ``int(fragment)``, with a leading ``-`` when *negate*.  Callers
    request *fragment* at ``ADDITIVE`` order whenever *delta* is non-zero.

    >>> adjust_index("3", 0, negate=True)
    '-3'
    >>> adjust_index("i", 1)
    'int(i + 1)'
    """
    if is_number(fragment):
        value = int(float(fragment)) + delta
        if negate:
            value = -value
        return str(value)
    if delta > 0:
        at = f"int({fragment} + {delta})"
    elif delta < 0:
        at = f"int({fragment} - {-delta})"
    else:
        at = f"int({fragment})"
    if negate:
        at = "-" + at
    return at
