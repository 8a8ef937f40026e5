"""
Filter expression tree.

Operator calls on an attribute produce ``Condition`` nodes; ``&``, ``|`` and
``~`` combine them into ``And``/``Or``/``Not`` nodes. Nodes carry no
placeholder state of their own. A compile pass renders them, and nodes
created through an attribute surface are bound to that pass, so they can also
be composed with f-strings:

    def by_rent(attr, low):
        return attr.rent.gte(low) & attr.mall.exists()

    def by_rent_text(attr, low):
        return f"{attr.rent.gte(low)} AND {attr.mall.exists()}"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .compiler import CompilePass

# op -> (template, operand count); {name} is the name placeholder, {v0}/{v1} value placeholders
OPERATORS: dict[str, tuple[str, int]] = {
    "eq": ("{name} = {v0}", 1),
    "ne": ("{name} <> {v0}", 1),
    "gt": ("{name} > {v0}", 1),
    "gte": ("{name} >= {v0}", 1),
    "lt": ("{name} < {v0}", 1),
    "lte": ("{name} <= {v0}", 1),
    "between": ("({name} between {v0} and {v1})", 2),
    "begins_with": ("begins_with({name}, {v0})", 1),
    "contains": ("contains({name}, {v0})", 1),
    "not_contains": ("not contains({name}, {v0})", 1),
    "exists": ("attribute_exists({name})", 0),
    "not_exists": ("attribute_not_exists({name})", 0),
}


class Node:
    """Base class for expression nodes."""

    _pass: CompilePass | None = None

    def __and__(self, other: Node) -> And:
        if not isinstance(other, Node):
            return NotImplemented
        return _bind(And(_flatten(And, self, other)), self, other)

    def __or__(self, other: Node) -> Or:
        if not isinstance(other, Node):
            return NotImplemented
        return _bind(Or(_flatten(Or, self, other)), self, other)

    def __invert__(self) -> Not:
        return _bind(Not(self), self)

    def __str__(self) -> str:
        if self._pass is None:
            return repr(self)
        return self._pass.render(self)

    def __add__(self, other: Any) -> str:
        if isinstance(other, (str, Node)):
            return str(self) + str(other)
        return NotImplemented

    def __radd__(self, other: Any) -> str:
        if isinstance(other, str):
            return other + str(self)
        return NotImplemented


def _flatten(kind: type, *nodes: Node) -> tuple[Node, ...]:
    children: list[Node] = []
    for node in nodes:
        if type(node) is kind:
            children.extend(node.children)
        else:
            children.append(node)
    return tuple(children)


def _bind(node: Node, *sources: Node) -> Any:
    for source in sources:
        if source._pass is not None:
            node._pass = source._pass
            break
    return node


@dataclass(eq=False)
class Condition(Node):
    """A single operator applied to one attribute."""

    op: str
    attribute: str
    operands: tuple[Any, ...] = ()


@dataclass(eq=False)
class And(Node):
    children: tuple[Node, ...] = field(default_factory=tuple)


@dataclass(eq=False)
class Or(Node):
    children: tuple[Node, ...] = field(default_factory=tuple)


@dataclass(eq=False)
class Not(Node):
    child: Node | None = None


class AttributeOperators:
    """The operator surface for one attribute inside a filter function."""

    def __init__(self, attribute: str, compile_pass: CompilePass | None = None) -> None:
        self._attribute = attribute
        self._pass = compile_pass

    def _condition(self, op: str, *operands: Any) -> Condition:
        node = Condition(op, self._attribute, operands)
        node._pass = self._pass
        return node

    def eq(self, value: Any) -> Condition:
        return self._condition("eq", value)

    def ne(self, value: Any) -> Condition:
        return self._condition("ne", value)

    def gt(self, value: Any) -> Condition:
        return self._condition("gt", value)

    def gte(self, value: Any) -> Condition:
        return self._condition("gte", value)

    def lt(self, value: Any) -> Condition:
        return self._condition("lt", value)

    def lte(self, value: Any) -> Condition:
        return self._condition("lte", value)

    def between(self, start: Any, end: Any) -> Condition:
        return self._condition("between", start, end)

    def begins_with(self, value: Any) -> Condition:
        return self._condition("begins_with", value)

    def contains(self, value: Any) -> Condition:
        return self._condition("contains", value)

    def not_contains(self, value: Any) -> Condition:
        return self._condition("not_contains", value)

    def exists(self) -> Condition:
        return self._condition("exists")

    def not_exists(self) -> Condition:
        return self._condition("not_exists")

    def __repr__(self) -> str:
        return f"AttributeOperators({self._attribute!r})"


class Attributes:
    """Attribute-name lookup handed to filter functions as their first argument."""

    def __init__(self, names: tuple[str, ...], compile_pass: CompilePass | None = None) -> None:
        self._operators = {name: AttributeOperators(name, compile_pass) for name in names}

    def __getattr__(self, name: str) -> AttributeOperators:
        try:
            return self.__dict__["_operators"][name]
        except KeyError:
            raise AttributeError(f"Unknown attribute in filter: {name}") from None

    def __getitem__(self, name: str) -> AttributeOperators:
        try:
            return self._operators[name]
        except KeyError:
            raise KeyError(f"Unknown attribute in filter: {name}") from None

    def __contains__(self, name: object) -> bool:
        return name in self._operators

    def __iter__(self):
        return iter(self._operators)
