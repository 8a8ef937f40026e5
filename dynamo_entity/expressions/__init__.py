"""
Filter expressions: the operator tree and its compiler.
"""

from .compiler import Clause, ClauseState, CompilePass, ExpressionCompiler
from .nodes import (
    OPERATORS,
    And,
    AttributeOperators,
    Attributes,
    Condition,
    Node,
    Not,
    Or,
)

__all__ = [
    # Tree
    "Node",
    "Condition",
    "And",
    "Or",
    "Not",
    "OPERATORS",
    "AttributeOperators",
    "Attributes",
    # Compiler
    "Clause",
    "ClauseState",
    "CompilePass",
    "ExpressionCompiler",
]
