# tests/conftest.py
"""
Shared builders, runners and S-expression workspace constants for the
blockgen test-suite.
"""

import contextlib
import io

from blockgen.generator import Generator, GeneratorConfig
from blockgen.nodes import Node, Variable, Workspace


# ═══════════════════════════════════════════════════════════════════════════
# Node builders
# ═══════════════════════════════════════════════════════════════════════════

def num(value) -> Node:
    return Node("math_number").set_field("NUM", value)


def text(value: str) -> Node:
    return Node("text").set_field("TEXT", value)


def boolean(value: bool) -> Node:
    return Node("logic_boolean").set_field("BOOL", "TRUE" if value else "FALSE")


def get(var: Variable) -> Node:
    return Node("variables_get").set_field("VAR", var)


def assign(var: Variable, value: Node) -> Node:
    return Node("variables_set").set_field("VAR", var).set_value("VALUE", value)


def arith(op: str, a: Node, b: Node) -> Node:
    return Node("math_arithmetic").set_field("OP", op).set_value("A", a).set_value("B", b)


def compare(op: str, a: Node, b: Node) -> Node:
    return Node("logic_compare").set_field("OP", op).set_value("A", a).set_value("B", b)


def logic(op: str, a: Node, b: Node) -> Node:
    return Node("logic_operation").set_field("OP", op).set_value("A", a).set_value("B", b)


def show(value: Node) -> Node:
    return Node("text_print").set_value("TEXT", value)


def list_of(*items: Node) -> Node:
    node = Node("lists_create_with")
    for i, item in enumerate(items):
        node.set_value(f"ADD{i}", item)
    return node


def flow(kind: str) -> Node:
    return Node("controls_flow_statements").set_field("FLOW", kind)


def if_then(condition, *body: Node) -> Node:
    return Node("controls_if").set_value("IF0", condition).set_statement("DO0", *body)


# ═══════════════════════════════════════════════════════════════════════════
# Runners
# ═══════════════════════════════════════════════════════════════════════════

def gen(*tops: Node, variables=(), **options) -> str:
    """Generate code for the given top-level nodes."""
    ws = Workspace(top_nodes=list(tops), variables=list(variables))
    return Generator(config=GeneratorConfig(**options)).generate(ws).code


def expr(node: Node, **options):
    """Generate one expression node, returning ``(code, order)``."""
    ctx = Generator(config=GeneratorConfig(**options)).new_context()
    return ctx.block_to_code(node)


def run(code: str):
    """Compile and exec *code*; return ``(namespace, stdout)``."""
    ns = {}
    out = io.StringIO()
    with contextlib.redirect_stdout(out):
        exec(compile(code, "<test>", "exec"), ns)
    return ns, out.getvalue()


# ═══════════════════════════════════════════════════════════════════════════
# S-expression workspaces
# ═══════════════════════════════════════════════════════════════════════════

HELLO_SEXP = '''
(workspace
  (block text_print :id "p1"
    (value TEXT (block text (field TEXT "Hello, world")))))
'''

IF_ELSE_SEXP = '''
(workspace
  (variables (variable "x" :id "vx"))
  (block variables_set :id "s1"
    (field VAR (var "x"))
    (value VALUE (block math_number (field NUM 7)))
    (next
      (block controls_if :id "if1"
        (value IF0 (block logic_compare (field OP LT)
                     (value A (block variables_get (field VAR (var "x"))))
                     (value B (block math_number (field NUM 5)))))
        (statement DO0 (block text_print (value TEXT (block text (field TEXT "small")))))
        (value IF1 (block logic_compare (field OP LT)
                     (value A (block variables_get (field VAR (var "x"))))
                     (value B (block math_number (field NUM 10)))))
        (statement DO1 (block text_print (value TEXT (block text (field TEXT "medium")))))
        (statement ELSE (block text_print (value TEXT (block text (field TEXT "large")))))))))
'''

COUNTING_SEXP = '''
(workspace
  (block variables_set
    (field VAR (var "total"))
    (value VALUE (block math_number (field NUM 0))))
  (block controls_for :id "loop1"
    (field VAR (var "i"))
    (value FROM (block math_number (field NUM 1)))
    (value TO (block math_number (field NUM 10)))
    (value BY (block math_number (field NUM 1)))
    (statement DO
      (block math_change
        (field VAR (var "total"))
        (value DELTA (block variables_get (field VAR (var "i")))))))
  (block text_print
    (value TEXT (block variables_get (field VAR (var "total"))))))
'''

LIST_SEXP = '''
(workspace
  (block variables_set
    (field VAR (var "items"))
    (value VALUE
      (block lists_create_with
        (mutation (items 3))
        (value ADD0 (block text (field TEXT "b")))
        (value ADD1 (block text (field TEXT "c")))
        (value ADD2 (block text (field TEXT "a"))))))
  (block lists_setIndex
    (field MODE INSERT) (field WHERE FIRST)
    (value LIST (block variables_get (field VAR (var "items"))))
    (value TO (block text (field TEXT "z"))))
  (block text_print
    (value TEXT
      (block lists_split (field MODE JOIN)
        (value INPUT
          (block lists_sort (field TYPE TEXT) (field DIRECTION 1)
            (value LIST (block variables_get (field VAR (var "items"))))))
        (value DELIM (block text (field TEXT ","))))))
  (block text_print
    (value TEXT
      (block lists_getIndex (field MODE GET) (field WHERE FROM_END)
        (value VALUE (block variables_get (field VAR (var "items"))))
        (value AT (block math_number (field NUM 1)))))))
'''

NESTED_LOOPS_SEXP = '''
(workspace
  (block controls_forEach :id "outer"
    (field VAR (var "x"))
    (value LIST
      (block lists_create_with
        (value ADD0 (block math_number (field NUM 1)))
        (value ADD1 (block math_number (field NUM 2)))
        (value ADD2 (block math_number (field NUM 3)))))
    (statement DO
      (block controls_repeat_ext :id "inner"
        (value TIMES (block math_number (field NUM 5)))
        (statement DO
          (block controls_if
            (value IF0 (block logic_boolean (field BOOL TRUE)))
            (statement DO0 (block controls_flow_statements (field FLOW BREAK))))))
      (block controls_if
        (value IF0 (block logic_compare (field OP EQ)
                     (value A (block variables_get (field VAR (var "x"))))
                     (value B (block math_number (field NUM 2)))))
        (statement DO0 (block controls_flow_statements (field FLOW CONTINUE))))
      (block text_print (value TEXT (block variables_get (field VAR (var "x"))))))))
'''

BROKEN_SEXP = '''
(workspace
  (block text_print
    (value TEXT (block text (field TEXT "unterminated")))
'''
