# tests/test_indexing.py
"""Tests for user-index adjustment, standalone and through list access."""

import pytest

from blockgen.indexing import adjust_index, format_number, is_number
from blockgen.nodes import Node, Variable
from tests.conftest import arith, expr, gen, get, list_of, num, run, show


def get_index(items, where, at=None, mode="GET"):
    node = (
        Node("lists_getIndex")
        .set_field("MODE", mode)
        .set_field("WHERE", where)
        .set_value("VALUE", items)
    )
    if at is not None:
        node.set_value("AT", at)
    return node


def sublist(items, where1, at1, where2, at2):
    node = (
        Node("lists_getSublist")
        .set_field("WHERE1", where1)
        .set_field("WHERE2", where2)
        .set_value("LIST", items)
    )
    if at1 is not None:
        node.set_value("AT1", at1)
    if at2 is not None:
        node.set_value("AT2", at2)
    return node


class TestAdjustIndex:

    @pytest.mark.parametrize("fragment, delta, negate, expected", [
        ("3", 0, False, "3"),
        ("3", -1, False, "2"),
        ("3", 0, True, "-3"),
        ("1", 0, True, "-1"),
        ("2.0", -1, False, "1"),
        ("i", 0, False, "int(i)"),
        ("i", 1, False, "int(i + 1)"),
        ("i", -1, False, "int(i - 1)"),
        ("i", 0, True, "-int(i)"),
        ("i + j", -1, True, "-int(i + j - 1)"),
    ])
    def test_folding_and_wrapping(self, fragment, delta, negate, expected):
        assert adjust_index(fragment, delta, negate) == expected

    def test_is_number(self):
        assert is_number("12")
        assert is_number("-2.5")
        assert not is_number("x")
        assert not is_number("1 + 2")

    def test_format_number(self):
        assert format_number(2.0) == "2"
        assert format_number(2.5) == "2.5"
        assert format_number(7) == "7"


class TestOneBasedAccess:

    def setup_method(self):
        self.x = Variable("x")
        self.i = Variable("i")

    def test_from_start_literal(self):
        code, _ = expr(get_index(get(self.x), "FROM_START", num(2)))
        assert code == "x[1]"

    def test_from_end_literal(self):
        code, _ = expr(get_index(get(self.x), "FROM_END", num(1)))
        assert code == "x[-1]"

    def test_from_start_expression(self):
        code, _ = expr(get_index(get(self.x), "FROM_START", get(self.i)))
        assert code == "x[int(i - 1)]"

    def test_from_end_expression(self):
        code, _ = expr(get_index(get(self.x), "FROM_END", get(self.i)))
        assert code == "x[-int(i)]"

    def test_sum_index_keeps_grouping(self):
        code, _ = expr(get_index(get(self.x), "FROM_START", arith("MINUS", get(self.i), num(1))))
        assert code == "x[int(i - 1 - 1)]"

    def test_missing_index_defaults_to_first(self):
        code, _ = expr(get_index(get(self.x), "FROM_START"))
        assert code == "x[0]"

    def test_first_and_last(self):
        assert expr(get_index(get(self.x), "FIRST"))[0] == "x[0]"
        assert expr(get_index(get(self.x), "LAST"))[0] == "x[-1]"

    def test_sublist_from_end_expression(self):
        code, _ = expr(sublist(get(self.x), "FIRST", None, "FROM_END", get(self.i)))
        assert code == "x[ : -int(i - 1) or sys.maxsize]"

    def test_sublist_literal_bounds(self):
        code, _ = expr(sublist(get(self.x), "FROM_START", num(2), "FROM_START", num(3)))
        assert code == "x[1 : 3]"
        code, _ = expr(sublist(get(self.x), "FROM_START", num(1), "FROM_END", num(1)))
        assert code == "x[ : ]"

    def test_generated_access_runs(self):
        items = Variable("items")
        code = gen(
            Node("variables_set").set_field("VAR", items).set_value(
                "VALUE", list_of(num(10), num(20), num(30))
            ),
            show(get_index(get(items), "FROM_START", num(1))),
            show(get_index(get(items), "FROM_END", num(1))),
            show(sublist(get(items), "FROM_START", num(2), "LAST", None)),
            variables=[items],
        )
        _, out = run(code)
        assert out == "10\n30\n[20, 30]\n"


class TestZeroBasedAccess:

    def test_from_start_literal_unchanged(self):
        x = Variable("x")
        code, _ = expr(get_index(get(x), "FROM_START", num(2)), one_based_index=False)
        assert code == "x[2]"

    def test_from_end_literal(self):
        x = Variable("x")
        code, _ = expr(get_index(get(x), "FROM_END", num(0)), one_based_index=False)
        assert code == "x[-1]"

    def test_from_start_expression(self):
        x, i = Variable("x"), Variable("i")
        code, _ = expr(get_index(get(x), "FROM_START", get(i)), one_based_index=False)
        assert code == "x[int(i)]"
