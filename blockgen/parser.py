"""blockgen/parser.py – S-expression → node tree loader.

Hosts that are not a live editor (the CLI, tests, batch jobs) describe a
workspace as an S-expression and load it with :func:`parse_workspace`.
The output of ``sexpdata.loads`` (nested lists, :class:`sexpdata.Symbol`,
strings, ints, floats) is mapped onto :mod:`blockgen.nodes`.

Surface syntax
--------------
::

    (workspace
      (variables (variable "x" :id "v1") ...)
      (block KIND [:id "b1"] [:disabled true] [:comment "text"]
        (field NAME VALUE)          ;; string, number, symbol or (var "x")
        (value NAME [BLOCK])        ;; expression input, may be empty
        (statement NAME BLOCK ...)  ;; chained statements, may be empty
        (mutation (items 3) ...)    ;; shape information
        (next BLOCK))               ;; chain successor
      ...)

A lone ``(block ...)`` form is accepted as a workspace with one stack.
Blocks inside ``(statement ...)`` are linked through ``next`` in order.
Blocks without ``:id`` get ``b1``, ``b2``, ... skipping ids used
explicitly anywhere in the text.  Variables referenced with ``(var ...)``
but not declared are added to the workspace.

Public API
----------
``parse_workspace(text, filename="<string>") -> Workspace``
``parse_file(path) -> Workspace``
``dump_workspace(workspace) -> str``
"""

from __future__ import annotations

import itertools
import pathlib
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple

import sexpdata
from sexpdata import Symbol

from blockgen.errors import E, NodeLocation, ParseError
from blockgen.nodes import FieldValue, InputType, Node, Variable, Workspace

__all__ = ["parse_workspace", "parse_file", "dump_workspace"]

Sexp = Any  # Union[list, Symbol, str, int, float]


# ═══════════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════════

def _sym_name(s: Sexp) -> str:
    """Extract the string name from a ``sexpdata.Symbol``, or raise."""
    if isinstance(s, Symbol):
        return str(s)
    raise ParseError(f"Expected symbol, got {type(s).__name__}: {s!r}")


def _head(s: Sexp) -> str:
    """Return the head symbol name of a list form ``(tag ...)``."""
    if not isinstance(s, list) or not s:
        raise ParseError(f"Expected a form (tag ...), got {s!r}")
    return _sym_name(s[0])


def _expect_list(s: Sexp, *, min_len: int = 0, tag: Optional[str] = None) -> list:
    """Assert that *s* is a list, optionally with a minimum length and head tag."""
    if not isinstance(s, list):
        raise ParseError(
            f"Expected list{f' ({tag} ...)' if tag else ''}, "
            f"got {type(s).__name__}: {s!r}"
        )
    if len(s) < min_len:
        raise ParseError(
            f"List too short: expected at least {min_len} elements, "
            f"got {len(s)}: {sexpdata.dumps(s)}"
        )
    if tag is not None and _head(s) != tag:
        raise ParseError(f"Expected ({tag} ...), got ({_head(s)} ...)")
    return s


def _as_str(s: Sexp) -> str:
    """Coerce *s* to a Python ``str`` – accepts Symbol or string literal."""
    if isinstance(s, Symbol):
        return str(s)
    if isinstance(s, str):
        return s
    raise ParseError(f"Expected string or symbol, got {type(s).__name__}: {s!r}")


def _as_bool(s: Sexp) -> bool:
    if isinstance(s, bool):
        return s
    if isinstance(s, Symbol):
        v = str(s).lower()
        if v in ("true", "#t", "t"):
            return True
        if v in ("false", "#f", "nil"):
            return False
    raise ParseError(
        f"Expected boolean, got {type(s).__name__}: {s!r}", code=E.INVALID_VALUE
    )


def _is_keyword(s: Sexp) -> bool:
    return isinstance(s, Symbol) and str(s).startswith(":")


def _split_keywords(items: List[Sexp]) -> Tuple[Dict[str, Sexp], List[Sexp]]:
    """Separate ``:key value`` pairs from the remaining positional items."""
    keywords: Dict[str, Sexp] = {}
    rest: List[Sexp] = []
    it = iter(items)
    for item in it:
        if _is_keyword(item):
            key = str(item)[1:]
            try:
                keywords[key] = next(it)
            except StopIteration:
                raise ParseError(f"Keyword :{key} has no value") from None
        else:
            rest.append(item)
    return keywords, rest


def _explicit_ids(s: Sexp) -> Iterator[str]:
    """Every ``:id`` value given on a ``(block ...)`` form inside *s*."""
    if not isinstance(s, list) or not s:
        return
    if isinstance(s[0], Symbol) and str(s[0]) == "block":
        for key, value in zip(s, s[1:]):
            if isinstance(key, Symbol) and str(key) == ":id" and isinstance(value, str):
                yield _as_str(value)
    for child in s:
        yield from _explicit_ids(child)


# ═══════════════════════════════════════════════════════════════════════
#  Block body dispatch
# ═══════════════════════════════════════════════════════════════════════

# Maps a block sub-form tag to its handler.
# Populated by the ``@_register`` decorator below.
_BLOCK_ITEM_DISPATCH: Dict[str, Callable[["_TreeBuilder", Node, list], None]] = {}


def _register(table: dict, tag: str):
    """Decorator: register a handler function under *tag* in *table*."""
    def deco(fn):
        table[tag] = fn
        return fn
    return deco


class _TreeBuilder:
    """Builds one :class:`Workspace` from raw S-expression data."""

    def __init__(self, filename: str, reserved_ids: Set[str]) -> None:
        self.filename = filename
        self.workspace = Workspace()
        self._reserved = reserved_ids
        self._seen: Set[str] = set()
        self._counter = itertools.count(1)

    def location(self, kind: str = "", node_id: str = "", slot: str = "") -> NodeLocation:
        return NodeLocation(kind=kind, node_id=node_id, slot=slot, file=self.filename)

    def _fresh_id(self) -> str:
        for n in self._counter:
            candidate = f"b{n}"
            if candidate not in self._reserved and candidate not in self._seen:
                return candidate
        raise AssertionError("unreachable")  # pragma: no cover

    # -- workspace -------------------------------------------------------

    def build(self, raw: Sexp) -> Workspace:
        tag = _head(raw)
        if tag == "block":
            self.workspace.add(self.block(raw))
            return self.workspace
        if tag != "workspace":
            raise ParseError(
                f"Expected (workspace ...) or (block ...), got ({tag} ...)",
                location=self.location(),
            )
        for item in raw[1:]:
            head = _head(item)
            if head == "variables":
                for decl in item[1:]:
                    self.variable_decl(decl)
            elif head == "block":
                self.workspace.add(self.block(item))
            else:
                raise ParseError(
                    f"Unknown workspace form: ({head} ...)", location=self.location()
                )
        return self.workspace

    def variable_decl(self, s: Sexp) -> Variable:
        _expect_list(s, min_len=2, tag="variable")
        keywords, rest = _split_keywords(s[1:])
        if len(rest) != 1:
            raise ParseError(f"Expected (variable NAME ...), got {sexpdata.dumps(s)}")
        name = _as_str(rest[0])
        if self.workspace.variable(name, create=False) is not None:
            raise ParseError(
                f"Variable {name!r} declared twice",
                code=E.DUPLICATE_ID, location=self.location(),
            )
        var = Variable(name=name, type=_as_str(keywords.get("type", "")))
        if "id" in keywords:
            var.id = _as_str(keywords["id"])
        self.workspace.variables.append(var)
        return var

    # -- blocks ----------------------------------------------------------

    def block(self, s: Sexp) -> Node:
        _expect_list(s, min_len=2, tag="block")
        kind = _as_str(s[1])
        keywords, rest = _split_keywords(s[2:])
        node_id = _as_str(keywords["id"]) if "id" in keywords else self._fresh_id()
        if node_id in self._seen:
            raise ParseError(
                f"Duplicate block id {node_id!r}",
                code=E.DUPLICATE_ID, location=self.location(kind, node_id),
            )
        self._seen.add(node_id)
        node = Node(kind=kind, id=node_id)
        if "disabled" in keywords:
            node.disabled = _as_bool(keywords["disabled"])
        if "comment" in keywords:
            node.comment = _as_str(keywords["comment"])
        for item in rest:
            head = _head(item)
            handler = _BLOCK_ITEM_DISPATCH.get(head)
            if handler is None:
                raise ParseError(
                    f"Unknown block form: ({head} ...)",
                    location=self.location(kind, node_id),
                )
            try:
                handler(self, node, item)
            except ParseError as e:
                if e.location.kind:
                    raise
                raise ParseError(
                    e.error_message.message, code=e.code,
                    location=self.location(kind, node_id), cause=e.cause,
                ) from e
        return node

    def field_value(self, s: Sexp) -> FieldValue:
        if isinstance(s, list):
            _expect_list(s, min_len=2, tag="var")
            return self.workspace.variable(_as_str(s[1]))
        if isinstance(s, bool):
            return "TRUE" if s else "FALSE"
        if isinstance(s, (int, float)):
            return s
        return _as_str(s)


@_register(_BLOCK_ITEM_DISPATCH, "field")
def _parse_field(builder: _TreeBuilder, node: Node, s: list) -> None:
    _expect_list(s, min_len=3)
    node.set_field(_as_str(s[1]), builder.field_value(s[2]))


@_register(_BLOCK_ITEM_DISPATCH, "value")
def _parse_value(builder: _TreeBuilder, node: Node, s: list) -> None:
    _expect_list(s, min_len=2)
    if len(s) > 3:
        raise ParseError(f"Value input takes at most one block: {sexpdata.dumps(s)}")
    target = builder.block(s[2]) if len(s) == 3 else None
    node.set_value(_as_str(s[1]), target)


@_register(_BLOCK_ITEM_DISPATCH, "statement")
def _parse_statement(builder: _TreeBuilder, node: Node, s: list) -> None:
    _expect_list(s, min_len=2)
    chain = [builder.block(item) for item in s[2:]]
    node.set_statement(_as_str(s[1]), *chain)


@_register(_BLOCK_ITEM_DISPATCH, "mutation")
def _parse_mutation(builder: _TreeBuilder, node: Node, s: list) -> None:
    for entry in s[1:]:
        if isinstance(entry, Symbol):
            node.mutation[str(entry)] = True
            continue
        _expect_list(entry, min_len=2)
        value = entry[1]
        if isinstance(value, Symbol):
            value = _as_bool(value)
        node.mutation[_head(entry)] = value


@_register(_BLOCK_ITEM_DISPATCH, "next")
def _parse_next(builder: _TreeBuilder, node: Node, s: list) -> None:
    _expect_list(s, min_len=2)
    if node.next is not None:
        raise ParseError("Block has more than one (next ...)")
    node.next = builder.block(s[1])


# ═══════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════

def parse_workspace(text: str, *, filename: str = "<string>") -> Workspace:
    """Parse a workspace from an S-expression string.

    Raises
    ------
    ParseError
        If the text is not a well-formed S-expression or does not describe
        a node tree.

    Example
    -------
    >>> ws = parse_workspace('''
    ... (workspace
    ...   (block text_print
    ...     (value TEXT (block text (field TEXT "hi")))))
    ... ''')
    >>> ws.top_nodes[0].kind
    'text_print'
    """
    # Keep nil/true/false as symbols; _as_bool interprets them.
    try:
        raw = sexpdata.loads(text, nil=None, true=None, false=None)
    except Exception as e:
        raise ParseError(
            f"S-expression syntax error: {e}",
            code=E.SEXP_SYNTAX, location=NodeLocation(file=filename), cause=e,
        ) from e
    builder = _TreeBuilder(filename, set(_explicit_ids(raw)))
    try:
        return builder.build(raw)
    except ParseError as e:
        if e.location.file:
            raise
        raise ParseError(
            e.error_message.message, code=e.code,
            location=NodeLocation(file=filename), cause=e.cause,
        ) from e


def parse_file(path: str) -> Workspace:
    """Read and parse a workspace file."""
    p = pathlib.Path(path)
    return parse_workspace(p.read_text(encoding="utf-8"), filename=str(p))


# ═══════════════════════════════════════════════════════════════════════
#  Workspace → S-expression
# ═══════════════════════════════════════════════════════════════════════

def _dump_value(value: Any) -> Sexp:
    if isinstance(value, Variable):
        return [Symbol("var"), value.name]
    if isinstance(value, bool):
        return Symbol("true" if value else "false")
    return value


def _block_sexp(node: Node, with_next: bool = True) -> list:
    form: List[Sexp] = [Symbol("block"), Symbol(node.kind), Symbol(":id"), node.id]
    if node.disabled:
        form += [Symbol(":disabled"), Symbol("true")]
    if node.comment:
        form += [Symbol(":comment"), node.comment]
    for name, value in node.fields.items():
        form.append([Symbol("field"), Symbol(name), _dump_value(value)])
    for slot in node.inputs.values():
        if slot.type is InputType.STATEMENT:
            chain = list(slot.target.chain()) if slot.target else []
            form.append(
                [Symbol("statement"), Symbol(slot.name)]
                + [_block_sexp(child, with_next=False) for child in chain]
            )
        else:
            entry: List[Sexp] = [Symbol("value"), Symbol(slot.name)]
            if slot.target is not None:
                entry.append(_block_sexp(slot.target))
            form.append(entry)
    if node.mutation:
        form.append(
            [Symbol("mutation")]
            + [[Symbol(k), _dump_value(v)] for k, v in node.mutation.items()]
        )
    if with_next and node.next is not None:
        form.append([Symbol("next"), _block_sexp(node.next)])
    return form


def dump_workspace(workspace: Workspace) -> str:
    """Serialise *workspace* back to the surface syntax.

    Each top-level stack goes on its own line; the result parses back to
    an equivalent tree.
    """
    lines = ["(workspace"]
    if workspace.variables:
        decls = [Symbol("variables")]
        for var in workspace.variables:
            decl: List[Sexp] = [Symbol("variable"), var.name, Symbol(":id"), var.id]
            if var.type:
                decl += [Symbol(":type"), var.type]
            decls.append(decl)
        lines.append("  " + sexpdata.dumps(decls))
    for top in workspace.top_nodes:
        lines.append("  " + sexpdata.dumps(_block_sexp(top)))
    return "\n".join(lines) + ")\n"
