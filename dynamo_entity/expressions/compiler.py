"""
Filter expression compiler.

Compiles user predicate functions into parameterized filter expressions.
Placeholder counters live in ``ClauseState`` and are carried across every
clause applied to the same chain, so filtering on the same attribute twice
produces ``:rent1`` and then ``:rent2``, never a collision.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..exceptions import InvalidChainError, ValidationError
from ..schema.attribute import Attribute
from .nodes import OPERATORS, And, Attributes, Condition, Node, Not, Or

logger = logging.getLogger(__name__)

Clause = Callable[..., "ClauseState"]


@dataclass
class ClauseState:
    """Accumulated filter state for one chain.

    Attributes:
        names: ``#attr`` -> physical field name
        values: ``:attrN`` -> operand value
        value_count: attr -> next unused placeholder number (starts at 1)
        clauses: Rendered text of each applied clause, in order
    """

    names: dict[str, str] = field(default_factory=dict)
    values: dict[str, Any] = field(default_factory=dict)
    value_count: dict[str, int] = field(default_factory=dict)
    clauses: list[str] = field(default_factory=list)

    @property
    def expression(self) -> str:
        """All clauses AND-joined; each is parenthesized once there are several."""
        if len(self.clauses) == 1:
            return self.clauses[0]
        return " AND ".join(f"({clause})" for clause in self.clauses)

    def copy(self) -> ClauseState:
        return copy.deepcopy(self)

    def to_params(self) -> dict[str, Any]:
        if not self.clauses:
            return {}
        return {
            "FilterExpression": self.expression,
            "ExpressionAttributeNames": dict(self.names),
            "ExpressionAttributeValues": dict(self.values),
        }


class CompilePass:
    """Renders nodes into text, minting names and placeholders into a state."""

    def __init__(
        self,
        state: ClauseState,
        attributes: Mapping[str, Attribute],
        strict: bool = False,
    ) -> None:
        self.state = state
        self.attributes = attributes
        self.strict = strict
        self._rendered: dict[int, str] = {}
        # rendered nodes stay referenced so their ids are not reused
        self._keep: list[Node] = []

    def _name(self, attribute: str) -> str:
        field = self.attributes[attribute].field
        placeholder = f"#{attribute}"
        suffix = 0
        # a placeholder already bound to another field (e.g. a key condition's #pk) gets an alias
        while self.state.names.get(placeholder, field) != field:
            suffix += 1
            placeholder = f"#{attribute}_{suffix}"
        self.state.names[placeholder] = field
        return placeholder

    def _value(self, attribute: str, value: Any) -> str:
        if self.strict:
            valid, reason = self.attributes[attribute].is_valid(value)
            if not valid:
                raise ValidationError(attribute, reason, None if value is None else str(value))
        count = self.state.value_count.get(attribute, 1)
        while f":{attribute}{count}" in self.state.values:
            count += 1
        placeholder = f":{attribute}{count}"
        self.state.value_count[attribute] = count + 1
        self.state.values[placeholder] = value
        return placeholder

    def _render_condition(self, node: Condition) -> str:
        if node.attribute not in self.attributes:
            raise InvalidChainError(f"Unknown attribute in filter: {node.attribute}")
        template, arity = OPERATORS[node.op]
        if len(node.operands) != arity:
            raise InvalidChainError(
                f"Operator {node.op} on {node.attribute} expects {arity} value(s), got {len(node.operands)}"
            )
        name = self._name(node.attribute)
        values = {f"v{i}": self._value(node.attribute, value) for i, value in enumerate(node.operands)}
        return template.format(name=name, **values)

    def _wrap(self, node: Node) -> str:
        text = self.render(node)
        if isinstance(node, (And, Or)) and len(node.children) > 1:
            return f"({text})"
        return text

    def render(self, node: Node) -> str:
        """Render a node once; later renders of the same node reuse its text."""
        key = id(node)
        if key in self._rendered:
            return self._rendered[key]
        if isinstance(node, Condition):
            text = self._render_condition(node)
        elif isinstance(node, And):
            text = " AND ".join(self._wrap(child) for child in node.children)
        elif isinstance(node, Or):
            text = " OR ".join(self._wrap(child) for child in node.children)
        elif isinstance(node, Not):
            text = f"NOT ({self.render(node.child)})"
        else:
            raise InvalidChainError(f"Unsupported expression node: {type(node).__name__}")
        self._rendered[key] = text
        self._keep.append(node)
        return text


class ExpressionCompiler:
    """Builds clauses from predicate functions over one entity's attributes.

    Args:
        attributes: Attribute models keyed by attribute name
        strict: Validate operand values against their attribute when True
    """

    def __init__(self, attributes: Mapping[str, Attribute], strict: bool = False) -> None:
        self.attributes = attributes
        self.strict = strict

    def compile(
        self,
        fn: Callable[..., Any],
        state: ClauseState | None = None,
        *args: Any,
        **kwargs: Any,
    ) -> ClauseState:
        """Apply ``fn`` to a copy of ``state`` and return the new state."""
        new_state = state.copy() if state is not None else ClauseState()
        compile_pass = CompilePass(new_state, self.attributes, self.strict)
        surface = Attributes(tuple(self.attributes), compile_pass)

        result = fn(surface, *args, **kwargs)
        if isinstance(result, Node):
            text = compile_pass.render(result)
        elif isinstance(result, str):
            text = result
        else:
            raise InvalidChainError(
                f"Filter {getattr(fn, '__name__', fn)!r} must return an expression or a string, "
                f"got {type(result).__name__}"
            )

        text = text.strip()
        if text:
            new_state.clauses.append(text)
        logger.debug("Compiled filter clause %r", text)
        return new_state

    def build_clause(self, fn: Callable[..., Any]) -> Clause:
        """Wrap ``fn`` as ``clause(state, *args) -> new_state``."""

        def clause(state: ClauseState | None = None, *args: Any, **kwargs: Any) -> ClauseState:
            return self.compile(fn, state, *args, **kwargs)

        clause.__name__ = getattr(fn, "__name__", "clause")
        clause.__doc__ = getattr(fn, "__doc__", None)
        return clause
