#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
blockgen/generator.py
=====================

Generation driver and statement accumulator.

A :class:`Generator` owns the kind → rule table and a
:class:`GeneratorConfig`.  Each call to :meth:`Generator.generate` builds a
fresh :class:`GenerationContext` (name table, helper registry, keyed
declarations, loop trap), walks the workspace depth-first and returns a
:class:`GeneratedProgram`.  Nothing survives between passes.

Rule contract
-------------
A rule is a plain function ``rule(node, ctx)`` returning either

* ``(code, order)`` for an expression node: ``code`` holds no line
  terminator and ``order`` is the :class:`~blockgen.order.Order` of its
  outermost operator, or
* ``code`` for a statement node: zero or more complete lines, each ending
  in ``\\n``, without a trailing blank line.

Rules read their node and call back into the context for everything else:
:meth:`GenerationContext.value_to_code` for operands,
:meth:`GenerationContext.statement_to_code` for nested bodies,
:meth:`GenerationContext.provide_function` for shared helpers, and the
name table for temporaries.

Output layout
-------------
::

    imports                 (import random, from numbers import Number, ...)

    declarations            (x = None, ...)

    helper definitions      (registration order)


    program                 (top-level stacks separated by one blank line)
"""

from __future__ import annotations

import logging
import re
import textwrap
from dataclasses import dataclass, field
from datetime import datetime
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Set,
    Tuple,
    Union,
)

from blockgen.errors import (
    ConfigError,
    NodeLocation,
    RuleContractError,
    UnhandledCombinationError,
    UnknownKindError,
)
from blockgen.indexing import adjust_index
from blockgen.looptrap import LoopExit, LoopTrap, build_loop_trap
from blockgen.names import NameDB
from blockgen.nodes import InputType, Node, Variable, Workspace
from blockgen.order import Order, compose
from blockgen.registry import DefinitionTable, FunctionRegistry

__all__ = [
    "GeneratorConfig",
    "GeneratedProgram",
    "GenerationContext",
    "Generator",
    "Rule",
    "RuleResult",
    "generate",
    "quote_string",
]

logger = logging.getLogger(__name__)

RuleResult = Union[str, Tuple[str, int]]
Rule = Callable[[Node, "GenerationContext"], RuleResult]

_TRAILING_SPACE = re.compile(r"[ \t]+\n")
_LEADING_BLANK = re.compile(r"^\s+\n")
_TRAILING_BLANK = re.compile(r"\n\s+$")
_BLANK_RUNS = re.compile(r"\n\n+")


# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class GeneratorConfig:
    """Options for a generator.  Validated on construction."""

    one_based_index: bool = True
    indent: str = "    "
    infinite_loop_trap: Optional[str] = None
    loop_exit: LoopExit = LoopExit.DIRECT
    statement_prefix: Optional[str] = None
    comment_wrap: int = 60
    declare_variables: bool = True

    def __post_init__(self) -> None:
        if isinstance(self.loop_exit, str):
            try:
                self.loop_exit = LoopExit(self.loop_exit)
            except ValueError:
                choices = ", ".join(e.value for e in LoopExit)
                raise ConfigError(
                    "loop_exit", f"expected one of {choices}, got {self.loop_exit!r}"
                ) from None
        if not isinstance(self.loop_exit, LoopExit):
            raise ConfigError("loop_exit", f"not a LoopExit: {self.loop_exit!r}")
        if not self.indent or self.indent.strip(" \t"):
            raise ConfigError("indent", "must be a non-empty run of spaces or tabs")
        if self.comment_wrap < 10:
            raise ConfigError("comment_wrap", "must be at least 10 columns")


# ═══════════════════════════════════════════════════════════════════════════
# RESULT
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class GeneratedProgram:
    """Generated program text plus what went into it."""

    code: str
    imports: List[str] = field(default_factory=list)
    helpers: Dict[str, str] = field(default_factory=dict)
    variables: List[str] = field(default_factory=list)
    kinds: List[str] = field(default_factory=list)
    generation_time: str = ""

    def write_to_file(self, path: str, with_header: bool = False) -> None:
        """Write the generated code to a file."""
        with open(path, "w", encoding="utf-8") as f:
            if with_header:
                f.write(self.get_metadata_comment())
                f.write("\n")
            f.write(self.code)

    def get_metadata_comment(self) -> str:
        """A comment block describing this program."""
        return (
            "# Generated by blockgen\n"
            f"# Generated: {self.generation_time}\n"
            f"# Kinds: {', '.join(self.kinds)}\n"
            f"# Helpers: {', '.join(self.helpers.values())}\n"
        )


# ═══════════════════════════════════════════════════════════════════════════
# TEXT UTILITIES
# ═══════════════════════════════════════════════════════════════════════════

def quote_string(text: str) -> str:
    """Render *text* as a Python string literal."""
    text = text.replace("\\", "\\\\").replace("\n", "\\n").replace("\r", "\\r")
    text = "".join(
        f"\\x{ord(ch):02x}" if ord(ch) < 32 and ch != "\t" else ch for ch in text
    )
    quote = "'"
    if "'" in text:
        if '"' not in text:
            quote = '"'
        else:
            text = text.replace("'", "\\'")
    return quote + text + quote


def prefix_lines(text: str, prefix: str) -> str:
    """Prepend *prefix* to every line of *text*.

    A trailing line terminator does not start a new line.
    """
    trailing = text.endswith("\n")
    lines = text.split("\n")
    if trailing:
        lines.pop()
    result = "\n".join(prefix + line for line in lines)
    return result + "\n" if trailing else result


# ═══════════════════════════════════════════════════════════════════════════
# PER-PASS CONTEXT
# ═══════════════════════════════════════════════════════════════════════════

class GenerationContext:
    """All mutable state of one generation pass.

    Rules receive the context as their second argument.  A context is never
    reused: :meth:`Generator.generate` creates one, drains it into a
    :class:`GeneratedProgram` and drops it.
    """

    def __init__(
        self,
        rules: Mapping[str, Rule],
        config: GeneratorConfig,
        workspace: Optional[Workspace] = None,
    ) -> None:
        self.config = config
        self.workspace = workspace
        self.names = NameDB()
        self.functions = FunctionRegistry(self.names, config.indent)
        self.definitions = DefinitionTable()
        self.trap: LoopTrap = build_loop_trap(config)
        self.kinds_seen: Set[str] = set()
        self._rules = rules
        self._loose_variables: Dict[str, Variable] = {}

    # -- text helpers ----------------------------------------------------

    @property
    def indent(self) -> str:
        return self.config.indent

    @property
    def PASS(self) -> str:
        """Placeholder for an empty statement body."""
        return self.config.indent + "pass\n"

    def quote(self, text: Any) -> str:
        return quote_string(str(text))

    def prefix_lines(self, text: str, prefix: str) -> str:
        return prefix_lines(text, prefix)

    def location(self, node: Node, slot: str = "") -> NodeLocation:
        return NodeLocation.from_node(node, slot)

    def unhandled(
        self, node: Node, field_name: str, accepted: Iterable[Any] = ()
    ) -> UnhandledCombinationError:
        """Build the error for a field value a rule cannot translate.

        *accepted* lists the values the rule does handle; they are attached
        to the error as a note.
        """
        error = UnhandledCombinationError(
            node.kind,
            field=field_name,
            value=node.get_field_value(field_name),
            location=self.location(node, field_name),
        )
        accepted = [str(value) for value in accepted]
        if accepted:
            error.add_note("accepted values: " + ", ".join(accepted))
        return error

    # -- declarations ----------------------------------------------------

    def provide_function(self, key: str, lines: Iterable[str]) -> str:
        """Return the name of the shared helper *key*, defining it once."""
        return self.functions.provide(key, list(lines))

    def add_definition(self, key: str, text: str) -> bool:
        """Record an import or top-level declaration under *key*."""
        return self.definitions.add(key, text)

    def add_import(self, module: str, name: Optional[str] = None) -> None:
        if name is None:
            self.definitions.add(f"import_{module}", f"import {module}")
        else:
            self.definitions.add(
                f"from_{module}_import_{name}", f"from {module} import {name}"
            )

    # -- names -----------------------------------------------------------

    def distinct_name(self, base: str) -> str:
        return self.names.get_distinct_name(base)

    def variable_name(self, node: Node, field_name: str = "VAR") -> str:
        """Identifier for the variable referenced by *field_name*.

        The field normally holds a :class:`Variable`.  A plain string is
        looked up by name in the workspace, without creating anything there.
        """
        value = node.get_field_value(field_name)
        if isinstance(value, Variable):
            return self.names.get_name(value)
        if value is None or value == "":
            raise self.unhandled(node, field_name)
        var = None
        if self.workspace is not None:
            var = self.workspace.variable(str(value), create=False)
        if var is None:
            var = self._loose_variables.setdefault(str(value), Variable(name=str(value)))
        return self.names.get_name(var)

    # -- dispatch --------------------------------------------------------

    def block_to_code(self, node: Optional[Node], this_only: bool = False) -> RuleResult:
        """Generate *node* (and, unless *this_only*, its chain successors)."""
        if node is None:
            return ""
        if node.disabled:
            return "" if this_only else self.block_to_code(node.next)

        rule = self._rules.get(node.kind)
        if rule is None:
            raise UnknownKindError(node.kind, location=self.location(node))
        self.kinds_seen.add(node.kind)

        result = rule(node, self)
        if isinstance(result, tuple):
            if len(result) != 2:
                raise RuleContractError(
                    f"Expression rule for {node.kind!r} must return (code, order)",
                    location=self.location(node),
                )
            code, order = result
            if "\n" in code:
                raise RuleContractError(
                    f"Expression from {node.kind!r} contains a line terminator",
                    location=self.location(node),
                )
            return code, order
        if not isinstance(result, str):
            raise RuleContractError(
                f"Rule for {node.kind!r} returned {type(result).__name__}",
                location=self.location(node),
            )
        if result and (not result.endswith("\n") or result.endswith("\n\n")):
            raise RuleContractError(
                f"Statement from {node.kind!r} must end with exactly one line terminator",
                location=self.location(node),
            )
        if result and self.config.statement_prefix:
            result = self._inject_id(self.config.statement_prefix, node) + result
        return self._scrub(node, result, this_only)

    def value_to_code(self, node: Node, name: str, outer_order: int) -> str:
        """Code for the value input *name*, grouped for *outer_order*.

        Returns ``""`` when the input is missing, disconnected or disabled.
        """
        target = node.input_target(name)
        if target is None:
            return ""
        result = self.block_to_code(target)
        if result == "":
            return ""
        if not isinstance(result, tuple):
            raise RuleContractError(
                f"Expecting (code, order) from value node {target.kind!r}",
                location=self.location(target),
            )
        code, inner_order = result
        if not code:
            return ""
        return compose(code, inner_order, outer_order)

    def statement_to_code(self, node: Node, name: str, allow_empty: bool = False) -> str:
        """Indented code of the statement chain in input *name*.

        An empty chain gives :attr:`PASS` unless *allow_empty*.
        """
        target = node.input_target(name)
        code = self.block_to_code(target)
        if isinstance(code, tuple):
            raise RuleContractError(
                f"Expecting code from statement node {target.kind!r}",
                location=self.location(target, name),
            )
        if code:
            return prefix_lines(code, self.indent)
        return "" if allow_empty else self.PASS

    def loop_body(self, node: Node, name: str = "DO") -> str:
        """Generate a loop body in a fresh loop scope and trap it."""
        with self.names.scope("loop"):
            branch = self.statement_to_code(node, name)
        return self.add_loop_trap(branch, node)

    def add_loop_trap(self, branch: str, node: Node) -> str:
        return self.trap.instrument(branch, node.id, self) or self.PASS

    def get_adjusted_int(
        self, node: Node, name: str, delta: int = 0, negate: bool = False
    ) -> str:
        """Zero-based index expression for the user index in input *name*."""
        default = "1" if self.config.one_based_index else "0"
        if self.config.one_based_index:
            delta -= 1
        order = Order.ADDITIVE if delta else Order.NONE
        at = self.value_to_code(node, name, order) or default
        return adjust_index(at, delta, negate)

    # -- comments --------------------------------------------------------

    def _inject_id(self, template: str, node: Node) -> str:
        text = template.replace("%1", self.quote(node.id))
        return text if text.endswith("\n") else text + "\n"

    def _wrap(self, comment: str) -> str:
        width = max(self.config.comment_wrap - 3, 1)
        return "\n".join(
            textwrap.fill(line, width) if line.strip() else ""
            for line in comment.splitlines()
        )

    def comments_for(self, node: Node) -> str:
        """``#`` lines for *node*'s comment and those of its value inputs."""
        text = ""
        if node.comment:
            text += prefix_lines(self._wrap(node.comment) + "\n", "# ")
        for slot in node.inputs.values():
            if slot.type is not InputType.VALUE or slot.target is None:
                continue
            nested = "".join(
                self._wrap(child.comment) + "\n"
                for child in slot.target.walk(skip_disabled=True)
                if child.comment
            )
            if nested:
                text += prefix_lines(nested, "# ")
        return text

    def _scrub(self, node: Node, code: str, this_only: bool) -> str:
        comment = self.comments_for(node)
        next_code = "" if this_only else self.block_to_code(node.next)
        if isinstance(next_code, tuple):
            raise RuleContractError(
                f"Expression node {node.next.kind!r} chained after a statement",
                location=self.location(node.next),
            )
        return comment + code + next_code

    # -- whole workspace -------------------------------------------------

    def workspace_to_code(self, workspace: Workspace) -> str:
        """Generate every top-level stack and assemble the final text."""
        self.workspace = workspace
        for node in workspace.all_nodes():
            value = node.get_field_value("VAR")
            if not isinstance(value, str) or not value:
                continue
            if workspace.variable(value, create=False) is None:
                self._loose_variables.setdefault(value, Variable(name=value))
        declared = self.names.reserve_variables(
            workspace.all_variables() + list(self._loose_variables.values())
        )
        if self.config.declare_variables and declared:
            self.add_definition("variables", "\n".join(f"{n} = None" for n in declared))

        parts: List[str] = []
        for top in workspace.top_nodes:
            result = self.block_to_code(top)
            if isinstance(result, tuple):
                result = self.comments_for(top) + result[0] + "\n"
            if result:
                parts.append(result)
        return self.finish("\n".join(parts))

    def finish(self, code: str) -> str:
        """Prepend imports, declarations and helpers; tidy whitespace."""
        imports = self.definitions.imports()
        rest = self.definitions.declarations() + self.functions.bodies()
        header = "\n".join(imports) + "\n\n" + "\n\n".join(rest)
        header = _BLANK_RUNS.sub("\n\n", header).rstrip("\n") + "\n\n\n"
        code = header + code
        code = _LEADING_BLANK.sub("", code)
        code = _TRAILING_BLANK.sub("\n", code)
        return _TRAILING_SPACE.sub("\n", code)


# ═══════════════════════════════════════════════════════════════════════════
# GENERATOR
# ═══════════════════════════════════════════════════════════════════════════

class Generator:
    """Kind-dispatching tree-to-Python generator."""

    def __init__(
        self,
        rules: Optional[Mapping[str, Rule]] = None,
        config: Optional[GeneratorConfig] = None,
    ) -> None:
        if rules is None:
            from blockgen.rules import default_rules
            rules = default_rules()
        self._rules: Dict[str, Rule] = dict(rules)
        self.config = config or GeneratorConfig()

    @property
    def kinds(self) -> List[str]:
        return sorted(self._rules)

    def rule_for(self, kind: str) -> Optional[Rule]:
        return self._rules.get(kind)

    def new_context(self, workspace: Optional[Workspace] = None) -> GenerationContext:
        return GenerationContext(self._rules, self.config, workspace)

    def generate(self, workspace: Union[Workspace, Iterable[Node]]) -> GeneratedProgram:
        """Run one generation pass over *workspace*."""
        if not isinstance(workspace, Workspace):
            workspace = Workspace(top_nodes=list(workspace))
        logger.debug(
            "generation pass started: %d top-level nodes, %d variables",
            len(workspace.top_nodes), len(workspace.variables),
        )
        ctx = self.new_context(workspace)
        code = ctx.workspace_to_code(workspace)
        program = GeneratedProgram(
            code=code,
            imports=ctx.definitions.imports(),
            helpers=ctx.functions.names,
            variables=ctx.names.variable_names(),
            kinds=sorted(ctx.kinds_seen),
            generation_time=datetime.now().isoformat(timespec="seconds"),
        )
        logger.debug(
            "generation pass finished: %d lines, %d helpers",
            code.count("\n"), len(program.helpers),
        )
        return program


def generate(
    workspace: Union[Workspace, Iterable[Node]],
    config: Optional[GeneratorConfig] = None,
) -> str:
    """Generate Python source for *workspace* with the default rules."""
    return Generator(config=config).generate(workspace).code
