# tests/test_rules_lists.py
"""Tests for list rules."""

import pytest

from blockgen.errors import UnhandledCombinationError
from blockgen.nodes import Node, Variable
from blockgen.order import Order
from tests.conftest import arith, assign, expr, gen, get, list_of, num, run, show, text


def items_node(kind, items, slot="VALUE", **fields):
    node = Node(kind).set_value(slot, items)
    for name, value in fields.items():
        node.set_field(name, value)
    return node


def get_index(items, mode, where, at=None):
    node = items_node("lists_getIndex", items, MODE=mode, WHERE=where)
    if at is not None:
        node.set_value("AT", at)
    return node


def set_index(items, mode, where, value, at=None):
    node = items_node("lists_setIndex", items, slot="LIST", MODE=mode, WHERE=where)
    node.set_value("TO", value)
    if at is not None:
        node.set_value("AT", at)
    return node


def run_with_list(statements, values=(1, 2, 3)):
    """Generate and run ``items = [values...]`` followed by
    ``statements(items)``; return ``(code, stdout)``."""
    items = Variable("items")
    setup = assign(items, list_of(*[num(v) for v in values]))
    code = gen(setup, *statements(items), variables=[items])
    return code, run(code)[1]


class TestCreate:

    def test_empty(self):
        assert expr(Node("lists_create_empty")) == ("[]", Order.ATOMIC)

    def test_with_items(self):
        assert expr(list_of(num(1), text("a"))) == ("[1, 'a']", Order.ATOMIC)

    def test_with_gaps(self):
        node = Node("lists_create_with")
        node.mutation["items"] = 3
        node.set_value("ADD1", num(5))
        assert expr(node)[0] == "[None, 5, None]"

    def test_repeat(self):
        node = Node("lists_repeat").set_value("ITEM", text("x")).set_value("NUM", num(3))
        assert expr(node) == ("['x'] * 3", Order.MULTIPLICATIVE)

    def test_repeat_sum_count_wrapped(self):
        node = Node("lists_repeat").set_value("ITEM", num(0))
        node.set_value("NUM", arith("ADD", num(1), num(2)))
        assert expr(node)[0] == "[0] * (1 + 2)"


class TestQueries:

    def test_length(self):
        assert expr(items_node("lists_length", list_of(num(1))))[0] == "len([1])"

    def test_is_empty(self):
        assert expr(items_node("lists_isEmpty", Node("lists_create_empty"))) == (
            "not len([])", Order.LOGICAL_NOT,
        )

    @pytest.mark.parametrize("end, find, one_based, expected", [
        ("FIRST", 2, True, "2\n"),
        ("FIRST", 9, True, "0\n"),
        ("LAST", 1, True, "3\n"),
        ("FIRST", 2, False, "1\n"),
        ("FIRST", 9, False, "-1\n"),
        ("LAST", 1, False, "2\n"),
    ])
    def test_index_of(self, end, find, one_based, expected):
        node = items_node("lists_indexOf", list_of(num(1), num(2), num(1)), END=end)
        node.set_value("FIND", num(find))
        code = gen(show(node), one_based_index=one_based)
        assert run(code)[1] == expected

    def test_index_of_bad_end(self):
        with pytest.raises(UnhandledCombinationError):
            expr(items_node("lists_indexOf", list_of(), END="MIDDLE"))


class TestGetIndex:

    def test_get_forms(self):
        x = Variable("x")
        assert expr(get_index(get(x), "GET", "FIRST"))[0] == "x[0]"
        assert expr(get_index(get(x), "GET_REMOVE", "FIRST"))[0] == "x.pop(0)"
        assert expr(get_index(get(x), "GET_REMOVE", "LAST"))[0] == "x.pop()"
        assert expr(get_index(get(x), "REMOVE", "FROM_START", num(2)))[0] == "x.pop(1)\n"

    def test_list_expression_wrapped_for_subscript(self):
        node = get_index(arith("ADD", get(Variable("a")), get(Variable("b"))), "GET", "FIRST")
        assert expr(node)[0] == "(a + b)[0]"

    def test_random_get(self):
        code = gen(show(get_index(list_of(num(7)), "GET", "RANDOM")))
        assert code.startswith("import random\n\n\n")
        assert "print(random.choice([7]))" in code
        assert run(code)[1] == "7\n"

    def test_random_remove_uses_helper(self):
        code, out = run_with_list(
            lambda items: [
                get_index(get(items), "REMOVE", "RANDOM"),
                show(Node("lists_length").set_value("VALUE", get(items))),
            ],
        )
        assert "def lists_remove_random_item(my_list):" in code
        assert "lists_remove_random_item(items)\n" in code
        assert out == "2\n"

    def test_remove_runs(self):
        _, out = run_with_list(
            lambda items: [
                get_index(get(items), "REMOVE", "FIRST"),
                show(get_index(get(items), "GET_REMOVE", "LAST")),
                show(get(items)),
            ],
        )
        assert out == "3\n[2]\n"

    def test_bad_where(self):
        with pytest.raises(UnhandledCombinationError) as exc_info:
            expr(get_index(get(Variable("x")), "GET", "MIDDLE"))
        assert exc_info.value.field == "WHERE"

    def test_bad_mode(self):
        with pytest.raises(UnhandledCombinationError):
            expr(get_index(get(Variable("x")), "PEEK", "FIRST"))


class TestSetIndex:

    @pytest.mark.parametrize("mode, where, at, expected", [
        ("SET", "FIRST", None, "[9, 2, 3]\n"),
        ("SET", "LAST", None, "[1, 2, 9]\n"),
        ("SET", "FROM_START", 2, "[1, 9, 3]\n"),
        ("SET", "FROM_END", 3, "[9, 2, 3]\n"),
        ("INSERT", "FIRST", None, "[9, 1, 2, 3]\n"),
        ("INSERT", "LAST", None, "[1, 2, 3, 9]\n"),
        ("INSERT", "FROM_START", 2, "[1, 9, 2, 3]\n"),
    ])
    def test_modes(self, mode, where, at, expected):
        _, out = run_with_list(
            lambda items: [
                set_index(get(items), mode, where, num(9), num(at) if at else None),
                show(get(items)),
            ],
        )
        assert out == expected

    def test_random_caches_list_expression(self):
        code = gen(set_index(Node("lists_create_empty"), "SET", "RANDOM", Node("logic_null")))
        assert "tmp_list = []\n" in code
        assert "tmp_x = int(random.random() * len(tmp_list))\n" in code
        assert "tmp_list[tmp_x] = None\n" in code

    def test_random_on_name_not_cached(self):
        _, out = run_with_list(
            lambda items: [
                set_index(get(items), "INSERT", "RANDOM", num(9)),
                show(Node("lists_length").set_value("VALUE", get(items))),
            ],
        )
        assert out == "4\n"

    def test_bad_mode(self):
        with pytest.raises(UnhandledCombinationError):
            gen(set_index(get(Variable("x")), "APPEND", "FIRST", num(1)))


class TestSublist:

    def make(self, items, where1, at1, where2, at2):
        node = items_node("lists_getSublist", items, slot="LIST", WHERE1=where1, WHERE2=where2)
        if at1 is not None:
            node.set_value("AT1", at1)
        if at2 is not None:
            node.set_value("AT2", at2)
        return node

    @pytest.mark.parametrize("where1, at1, where2, at2, expected", [
        ("FIRST", None, "LAST", None, "[1, 2, 3, 4]\n"),
        ("FROM_START", 2, "FROM_START", 3, "[2, 3]\n"),
        ("FROM_END", 2, "LAST", None, "[3, 4]\n"),
        ("FIRST", None, "FROM_END", 2, "[1, 2, 3]\n"),
    ])
    def test_slices(self, where1, at1, where2, at2, expected):
        _, out = run_with_list(
            lambda items: [
                show(self.make(
                    get(items), where1, num(at1) if at1 else None,
                    where2, num(at2) if at2 else None,
                )),
            ],
            values=(1, 2, 3, 4),
        )
        assert out == expected

    def test_computed_end_through_last(self):
        n = Variable("n")
        code, out = run_with_list(
            lambda items: [
                assign(n, num(1)),
                show(self.make(get(items), "FROM_START", num(2), "FROM_END", get(n))),
            ],
        )
        assert code.startswith("import sys\n")
        assert out == "[2, 3]\n"

    def test_bad_where(self):
        with pytest.raises(UnhandledCombinationError):
            expr(self.make(get(Variable("x")), "MIDDLE", None, "LAST", None))


class TestSortSplitReverse:

    def sort(self, items, sort_type, direction):
        return items_node("lists_sort", items, slot="LIST", TYPE=sort_type, DIRECTION=direction)

    @pytest.mark.parametrize("sort_type, direction, expected", [
        ("NUMERIC", "1", "[1, 2, 10]\n"),
        ("NUMERIC", "-1", "[10, 2, 1]\n"),
        ("TEXT", "1", "[1, 10, 2]\n"),
    ])
    def test_sort(self, sort_type, direction, expected):
        _, out = run_with_list(
            lambda items: [show(self.sort(get(items), sort_type, direction))],
            values=(10, 1, 2),
        )
        assert out == expected

    def test_sort_ignore_case(self):
        node = self.sort(list_of(text("b"), text("A"), text("c")), "IGNORE_CASE", 1)
        assert run(gen(show(node)))[1] == "['A', 'b', 'c']\n"

    def test_sort_bad_type(self):
        with pytest.raises(UnhandledCombinationError):
            expr(self.sort(list_of(), "RANDOM", "1"))

    @pytest.mark.parametrize("direction", ["UP", 0, None])
    def test_sort_bad_direction(self, direction):
        with pytest.raises(UnhandledCombinationError) as exc_info:
            expr(self.sort(list_of(), "TEXT", direction))
        assert exc_info.value.field == "DIRECTION"
        assert "accepted values: 1, -1" in exc_info.value.to_gcc_format()

    def test_sort_integer_direction(self):
        assert ", False)" in expr(self.sort(list_of(), "TEXT", 1))[0]
        assert ", True)" in expr(self.sort(list_of(), "TEXT", -1))[0]

    def test_split_and_join(self):
        split = Node("lists_split").set_field("MODE", "SPLIT")
        split.set_value("INPUT", text("a,b")).set_value("DELIM", text(","))
        assert expr(split)[0] == "'a,b'.split(',')"
        join = Node("lists_split").set_field("MODE", "JOIN")
        join.set_value("INPUT", list_of(text("a"), text("b"))).set_value("DELIM", text("-"))
        assert expr(join)[0] == "'-'.join(['a', 'b'])"
        assert eval(expr(join)[0]) == "a-b"

    def test_split_bad_mode(self):
        with pytest.raises(UnhandledCombinationError):
            expr(Node("lists_split").set_field("MODE", "ZIP"))

    def test_reverse(self):
        node = items_node("lists_reverse", list_of(num(1), num(2)), slot="LIST")
        assert expr(node)[0] == "list(reversed([1, 2]))"
