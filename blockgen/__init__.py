"""blockgen – generate Python source from visual-program node trees.

Quick start::

    from blockgen import Node, Workspace, generate

    ws = Workspace()
    hello = Node("text_print").set_value("TEXT", Node("text").set_field("TEXT", "hi"))
    ws.add(hello)
    print(generate(ws))          # print('hi')

See :mod:`blockgen.generator` for the rule contract and
:mod:`blockgen.parser` for the S-expression workspace format.
"""

__version__ = "0.1.0"

from blockgen.errors import (
    BlockgenError,
    ConfigError,
    GenerationError,
    ParseError,
    RuleContractError,
    UnhandledCombinationError,
    UnknownKindError,
)
from blockgen.generator import (
    GeneratedProgram,
    GenerationContext,
    Generator,
    GeneratorConfig,
    generate,
)
from blockgen.looptrap import LoopExit
from blockgen.nodes import Input, InputType, Node, Variable, Workspace
from blockgen.order import Order
from blockgen.parser import dump_workspace, parse_file, parse_workspace

__all__ = [
    "__version__",
    "BlockgenError",
    "ConfigError",
    "GenerationError",
    "ParseError",
    "RuleContractError",
    "UnhandledCombinationError",
    "UnknownKindError",
    "GeneratedProgram",
    "GenerationContext",
    "Generator",
    "GeneratorConfig",
    "generate",
    "LoopExit",
    "Input",
    "InputType",
    "Node",
    "Variable",
    "Workspace",
    "Order",
    "dump_workspace",
    "parse_file",
    "parse_workspace",
]
