# tests/test_registry.py
"""Tests for shared helper registration and keyed declarations."""

import pytest

from blockgen.names import NameDB
from blockgen.nodes import Node, Variable
from blockgen.registry import (
    FUNCTION_NAME_PLACEHOLDER,
    DefinitionTable,
    FunctionRegistry,
    reindent,
)
from tests.conftest import gen, get, list_of, num, run, show

HELPER = [
    f"def {FUNCTION_NAME_PLACEHOLDER}(a):",
    "  if a:",
    "    return a",
    "  return 0",
]


def index_of(items, find, end="FIRST"):
    return (
        Node("lists_indexOf")
        .set_field("END", end)
        .set_value("VALUE", items)
        .set_value("FIND", find)
    )


class TestReindent:

    def test_two_space_levels_become_indent(self):
        assert reindent(["a", "  b", "    c"], "\t") == ["a", "\tb", "\t\tc"]

    def test_odd_width_keeps_remainder(self):
        assert reindent(["   x"], "    ") == ["     x"]


class TestFunctionRegistry:

    def test_name_and_body(self):
        registry = FunctionRegistry(NameDB())
        name = registry.provide("helper", HELPER)
        assert name == "helper"
        assert registry.bodies() == [
            "def helper(a):\n    if a:\n        return a\n    return 0"
        ]

    @pytest.mark.parametrize("calls", [1, 5, 100])
    def test_repeated_requests_define_once(self, calls):
        registry = FunctionRegistry(NameDB())
        names = {registry.provide("helper", HELPER) for _ in range(calls)}
        assert names == {"helper"}
        assert len(registry.bodies()) == 1

    def test_name_collision_with_variable(self):
        db = NameDB()
        db.reserve_variables([Variable("helper")])
        registry = FunctionRegistry(db)
        name = registry.provide("helper", HELPER)
        assert name == "helper2"
        assert registry.bodies()[0].startswith("def helper2(a):")

    def test_registration_order(self):
        registry = FunctionRegistry(NameDB())
        registry.provide("b", [f"def {FUNCTION_NAME_PLACEHOLDER}(): pass"])
        registry.provide("a", [f"def {FUNCTION_NAME_PLACEHOLDER}(): pass"])
        assert registry.names == {"b": "b", "a": "a"}
        assert [body.split("(")[0] for body in registry.bodies()] == ["def b", "def a"]

    def test_configured_indent(self):
        registry = FunctionRegistry(NameDB(), indent="  ")
        registry.provide("helper", HELPER)
        assert "\n  if a:\n    return a" in registry.bodies()[0]


class TestDefinitionTable:

    def test_duplicate_keys_collapse(self):
        table = DefinitionTable()
        assert table.add("import_math", "import math")
        assert not table.add("import_math", "import math")
        assert len(table) == 1

    def test_imports_split_from_declarations(self):
        table = DefinitionTable()
        table.add("variables", "x = None")
        table.add("import_random", "import random")
        table.add("from_numbers_import_Number", "from numbers import Number")
        assert table.imports() == ["import random", "from numbers import Number"]
        assert table.declarations() == ["x = None"]


class TestHelpersInGeneratedCode:

    def test_helper_emitted_once_for_many_uses(self):
        items = Variable("items")
        statements = [
            show(index_of(get(items), num(i))) for i in range(5)
        ]
        code = gen(*statements, variables=[items])
        assert code.count("def first_index(") == 1
        assert code.count("first_index(items, ") == 5

    def test_helper_renamed_around_user_variable(self):
        first_index = Variable("first_index")
        code = gen(
            show(index_of(list_of(num(1), num(2)), num(2))),
            variables=[first_index],
        )
        assert "def first_index2(my_list, elem):" in code
        assert "print(first_index2([1, 2], 2))" in code
        _, out = run(code)
        assert out == "2\n"

    def test_helpers_precede_program(self):
        code = gen(show(index_of(list_of(num(1)), num(1))))
        assert code.index("def first_index") < code.index("print(")
        assert "    return 0\n\n\nprint(" in code
