"""blockgen/nodes.py – Node tree data model.

The visual editor produces a forest of *nodes* ("blocks").  Each node has

* a ``kind`` tag that selects the generator rule,
* named **fields** holding literal configuration (enum strings, numbers,
  text, or a reference to a :class:`Variable`),
* named **inputs**, each either a value slot (one expression node) or a
  statement slot (the first node of a chain linked through ``next``),
* an optional ``next`` successor, a ``disabled`` flag, a ``comment`` and a
  free-form ``mutation`` dict for shape information (e.g. item counts).

Design invariants
-----------------
* Nodes never form cycles; the only sharing is the non-owning reference
  from a field to a workspace :class:`Variable`.
* Identity, not structure, is equality: two nodes with identical content
  are still different nodes (``eq=False``).
* The generator only ever *reads* nodes.  The builder helpers below exist
  for the editor side (and for tests).
"""

from __future__ import annotations

import itertools
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Union

__all__ = [
    "InputType",
    "Variable",
    "Input",
    "Node",
    "Workspace",
    "FieldValue",
]

_ids = itertools.count(1)

_ADD_INPUT = re.compile(r"^ADD\d+$")


def _next_id() -> str:
    return f"n{next(_ids)}"


class InputType(Enum):
    """Kind of connection an input slot accepts."""

    VALUE = "value"
    STATEMENT = "statement"


@dataclass(eq=False)
class Variable:
    """A named, workspace-scoped storage location.

    Nodes refer to a variable by identity; the generator maps each
    variable to one identifier for the whole pass.
    """

    name: str
    id: str = field(default_factory=_next_id)
    type: str = ""

    def __str__(self) -> str:
        return self.name


FieldValue = Union[str, int, float, Variable]


@dataclass(eq=False)
class Input:
    """A named input slot.  ``target`` is ``None`` when disconnected."""

    name: str
    type: InputType = InputType.VALUE
    target: Optional["Node"] = None

    @property
    def connected(self) -> bool:
        return self.target is not None


@dataclass(eq=False)
class Node:
    """One element of the visual-program tree."""

    kind: str
    id: str = field(default_factory=_next_id)
    fields: Dict[str, FieldValue] = field(default_factory=dict)
    inputs: Dict[str, Input] = field(default_factory=dict)
    next: Optional["Node"] = None
    disabled: bool = False
    comment: str = ""
    mutation: Dict[str, Any] = field(default_factory=dict)
    _item_count: Optional[int] = field(default=None, repr=False)

    # -- fields ----------------------------------------------------------

    def get_field_value(self, name: str) -> Optional[FieldValue]:
        return self.fields.get(name)

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def set_field(self, name: str, value: FieldValue) -> "Node":
        self.fields[name] = value
        return self

    # -- inputs ----------------------------------------------------------

    def get_input(self, name: str) -> Optional[Input]:
        return self.inputs.get(name)

    def has_input(self, name: str) -> bool:
        return name in self.inputs

    def input_target(self, name: str) -> Optional["Node"]:
        slot = self.get_input(name)
        return slot.target if slot is not None else None

    def add_input(self, name: str, type: InputType = InputType.VALUE) -> Input:
        """Declare an input slot (left disconnected)."""
        slot = self.inputs.get(name)
        if slot is None:
            slot = Input(name=name, type=type)
            self.inputs[name] = slot
            self._item_count = None
        return slot

    def set_value(self, name: str, target: Optional["Node"]) -> "Node":
        """Connect *target* to the value input *name* (declaring it)."""
        self.add_input(name, InputType.VALUE).target = target
        return self

    def set_statement(self, name: str, *chain: "Node") -> "Node":
        """Connect a chain of statement nodes to the input *name*.

        The nodes are linked through ``next`` in the order given.  With no
        nodes the input is declared but left empty.
        """
        slot = self.add_input(name, InputType.STATEMENT)
        for prev, succ in zip(chain, chain[1:]):
            prev.next = succ
        slot.target = chain[0] if chain else None
        return self

    @property
    def item_count(self) -> int:
        """Number of ``ADD<n>`` items on a variadic node.

        The mutation's ``items`` entry wins when present; otherwise the
        declared ``ADD<n>`` inputs are counted.  Memoized until the shape
        changes through :meth:`add_input`.
        """
        if self._item_count is None:
            items = self.mutation.get("items")
            if items is None:
                items = sum(1 for name in self.inputs if _ADD_INPUT.match(name))
            self._item_count = int(items)
        return self._item_count

    # -- traversal -------------------------------------------------------

    def chain(self) -> Iterator["Node"]:
        """Yield this node and its ``next`` successors."""
        node: Optional[Node] = self
        while node is not None:
            yield node
            node = node.next

    def children(self) -> Iterator["Node"]:
        """Yield the nodes connected to this node's inputs, in slot order."""
        for slot in self.inputs.values():
            if slot.connected:
                yield slot.target

    def walk(self, skip_disabled: bool = False) -> Iterator["Node"]:
        """Depth-first walk over this node, its inputs and its successors.

        With *skip_disabled* a disabled node is left out together with
        everything connected to its inputs; its successors are still walked.
        """
        for node in self.chain():
            if skip_disabled and node.disabled:
                continue
            yield node
            for child in node.children():
                yield from child.walk(skip_disabled)

    def variables(self) -> Iterator[Variable]:
        """Yield every variable referenced from a field in this subtree."""
        for node in self.walk():
            for value in node.fields.values():
                if isinstance(value, Variable):
                    yield value

    def __repr__(self) -> str:
        return f"Node({self.kind!r}, id={self.id!r})"


@dataclass
class Workspace:
    """Top-level nodes plus the variables they share."""

    top_nodes: List[Node] = field(default_factory=list)
    variables: List[Variable] = field(default_factory=list)

    def add(self, node: Node) -> Node:
        self.top_nodes.append(node)
        return node

    def variable(self, name: str, create: bool = True) -> Optional[Variable]:
        """Return the variable called *name*, creating it when asked."""
        for var in self.variables:
            if var.name == name:
                return var
        if not create:
            return None
        var = Variable(name=name)
        self.variables.append(var)
        return var

    def all_nodes(self) -> Iterator[Node]:
        for top in self.top_nodes:
            yield from top.walk()

    def all_variables(self) -> List[Variable]:
        """Declared variables followed by any only referenced from fields."""
        seen = {id(v) for v in self.variables}
        result = list(self.variables)
        for top in self.top_nodes:
            for var in top.variables():
                if id(var) not in seen:
                    seen.add(id(var))
                    result.append(var)
        return result
