# tests/test_rules_logic.py
"""Tests for conditional, comparison and boolean rules."""

import pytest

from blockgen.errors import UnhandledCombinationError
from blockgen.nodes import Node, Variable
from blockgen.order import Order
from tests.conftest import (
    arith,
    assign,
    boolean,
    compare,
    expr,
    gen,
    get,
    if_then,
    logic,
    num,
    run,
    show,
    text,
)


def negate(value=None):
    node = Node("logic_negate")
    if value is not None:
        node.set_value("BOOL", value)
    return node


def ternary(condition, then, otherwise):
    return (
        Node("logic_ternary")
        .set_value("IF", condition)
        .set_value("THEN", then)
        .set_value("ELSE", otherwise)
    )


class TestControlsIf:

    def test_if_else(self):
        node = if_then(boolean(True), show(num(1)))
        node.set_statement("ELSE", show(num(2)))
        assert gen(node) == "if True:\n    print(1)\nelse:\n    print(2)\n"

    def test_elif_chain(self):
        x = Variable("x")
        node = if_then(compare("EQ", get(x), num(1)), show(text("one")))
        node.set_value("IF1", compare("EQ", get(x), num(2)))
        node.set_statement("DO1", show(text("two")))
        node.set_value("IF2", compare("EQ", get(x), num(3)))
        node.set_statement("DO2", show(text("three")))
        code = gen(assign(x, num(3)), node, variables=[x])
        assert "elif x == 2:\n    print('two')\nelif x == 3:\n" in code
        assert run(code)[1] == "three\n"

    def test_disconnected_elif_condition(self):
        node = if_then(boolean(False), show(num(1)))
        node.set_value("IF1", None)
        node.set_statement("DO1", show(num(2)))
        assert gen(node) == "if False:\n    print(1)\nelif False:\n    print(2)\n"

    def test_ifelse_alias(self):
        node = Node("controls_ifelse").set_value("IF0", boolean(True))
        node.set_statement("DO0", show(num(1)))
        node.set_statement("ELSE")
        assert gen(node) == "if True:\n    print(1)\nelse:\n    pass\n"

    def test_nested_if_indents(self):
        inner = if_then(boolean(True), show(num(1)))
        outer = if_then(boolean(True), inner)
        assert gen(outer) == "if True:\n    if True:\n        print(1)\n"


class TestLogicCompare:

    @pytest.mark.parametrize("op, symbol", [
        ("EQ", "=="), ("NEQ", "!="), ("LT", "<"),
        ("LTE", "<="), ("GT", ">"), ("GTE", ">="),
    ])
    def test_operators(self, op, symbol):
        code, order = expr(compare(op, num(1), num(2)))
        assert code == f"1 {symbol} 2"
        assert order == Order.RELATIONAL

    def test_unknown_operator(self):
        with pytest.raises(UnhandledCombinationError):
            expr(compare("APPROX", num(1), num(2)))


class TestLogicOperation:

    def test_and_or(self):
        assert expr(logic("AND", boolean(True), boolean(False)))[0] == "True and False"
        assert expr(logic("OR", boolean(True), boolean(False)))[0] == "True or False"

    def test_both_missing_is_false(self):
        for op in ("AND", "OR"):
            code, _ = expr(Node("logic_operation").set_field("OP", op))
            assert eval(code) is False

    def test_missing_operand_is_neutral(self):
        code, _ = expr(Node("logic_operation").set_field("OP", "AND").set_value("A", boolean(False)))
        assert code == "False and True"
        code, _ = expr(Node("logic_operation").set_field("OP", "OR").set_value("B", boolean(True)))
        assert code == "False or True"

    def test_unknown_operator(self):
        with pytest.raises(UnhandledCombinationError) as exc_info:
            expr(logic("XOR", boolean(True), boolean(True)))
        assert exc_info.value.field == "OP"


class TestNegateBooleanNull:

    def test_negate(self):
        assert expr(negate(boolean(False))) == ("not False", Order.LOGICAL_NOT)

    def test_negate_default(self):
        assert expr(negate())[0] == "not True"

    def test_negate_comparison_without_parens(self):
        assert expr(negate(compare("EQ", num(1), num(2))))[0] == "not 1 == 2"

    def test_negate_and_wraps(self):
        code, _ = expr(negate(logic("AND", boolean(True), boolean(False))))
        assert code == "not (True and False)"

    def test_boolean_values(self):
        assert expr(boolean(True)) == ("True", Order.ATOMIC)
        assert expr(boolean(False)) == ("False", Order.ATOMIC)

    def test_null(self):
        assert expr(Node("logic_null")) == ("None", Order.ATOMIC)


class TestTernary:

    def test_basic(self):
        code, order = expr(ternary(boolean(True), num(1), num(2)))
        assert code == "1 if True else 2"
        assert order == Order.CONDITIONAL

    def test_nested_ternary_wrapped(self):
        inner = ternary(boolean(False), num(2), num(3))
        code, _ = expr(ternary(boolean(True), num(1), inner))
        assert code == "1 if True else (2 if False else 3)"
        assert eval(code) == 1

    def test_defaults(self):
        assert expr(Node("logic_ternary"))[0] == "None if False else None"

    def test_inside_arithmetic(self):
        code, _ = expr(arith("ADD", num(1), ternary(boolean(True), num(2), num(3))))
        assert code == "1 + (2 if True else 3)"
        assert eval(code) == 3
