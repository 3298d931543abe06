"""
Recursive-descent parser of filter expressions.

Expressions are parsed into a small syntax tree, which is then expanded into disjunctive
normal form: a list of branches, each being a list of comparisons joined with `and`.
Branches are finally translated into expression objects, mapping attribute paths to
`[comparator, value]` lists, e.g. `{"name": {"familyName": ["eq", "Test"]}}`.

Negation of a group is applied to every comparison within it, while the logical structure
of the group is kept, e.g. `not (a or b)` expands to `not a or not b`.
"""

from dataclasses import dataclass
from typing import Any, NamedTuple, Optional, Union

from scimkit.data.lexer import (
    VALUE_TOKEN_TYPES,
    Token,
    TokenType,
    split_path,
    split_value_filter,
    tokenize,
)
from scimkit.error import ScimError, ScimErrorType

PRESENCE_COMPARATORS = ("pr", "np")


class _NoValue:
    def __repr__(self) -> str:
        return "NoValue"


NO_VALUE = _NoValue()


@dataclass(frozen=True)
class Comparison:
    path: str
    comparator: Optional[str] = None
    value: Any = NO_VALUE


@dataclass(frozen=True)
class Not:
    operand: "Node"


@dataclass(frozen=True)
class And:
    operands: tuple["Node", ...]


@dataclass(frozen=True)
class Or:
    operands: tuple["Node", ...]


Node = Union[Comparison, Not, And, Or]


class Leaf(NamedTuple):
    negate: bool
    path: str
    comparator: str
    value: Any = NO_VALUE


def _error(message: str) -> ScimError:
    return ScimError(400, ScimErrorType.INVALID_FILTER, message)


def _has_value_filter(path: str) -> bool:
    return any(split_value_filter(part)[1] is not None for part in split_path(path))


class Parser:
    """
    Parses tokens into syntax tree. `and` binds tighter than `or`, and `not` applies
    to the directly following comparison or group.
    """

    def __init__(self, tokens: list[Token]):
        self._tokens = tokens
        self._pos = 0

    def parse(self) -> Node:
        if not self._tokens:
            raise _error("Missing expression in filter")
        node = self._parse_or()
        if self._pos < len(self._tokens):
            raise _error(f"Unexpected token '{self._tokens[self._pos].value}' in filter")
        return node

    def _peek(self) -> Optional[Token]:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _accept_operator(self, name: str) -> bool:
        token = self._peek()
        if token is not None and token.is_operator(name):
            self._pos += 1
            return True
        return False

    def _parse_or(self) -> Node:
        operands = [self._parse_and()]
        while self._accept_operator("or"):
            operands.append(self._parse_and())
        return operands[0] if len(operands) == 1 else Or(tuple(operands))

    def _parse_and(self) -> Node:
        operands = [self._parse_unary()]
        while self._accept_operator("and"):
            operands.append(self._parse_unary())
        return operands[0] if len(operands) == 1 else And(tuple(operands))

    def _parse_unary(self) -> Node:
        if self._accept_operator("not"):
            return Not(self._parse_unary())

        token = self._peek()
        if token is None:
            previous = self._tokens[self._pos - 1]
            raise _error(f"Unexpected end of filter after '{previous.value}'")
        self._pos += 1
        if token.type == TokenType.GROUP:
            if not token.value.strip():
                raise _error("Unexpected empty group '()' in filter")
            return Parser(tokenize(token.value)).parse()
        if token.type == TokenType.WORD:
            return self._parse_comparison(token.value)
        raise _error(f"Unexpected token '{token.value}' in filter")

    def _parse_comparison(self, path: str) -> Comparison:
        token = self._peek()
        if token is None or token.type != TokenType.COMPARATOR:
            parts = split_path(path) or [path]
            if split_value_filter(parts[-1])[1] is not None:
                return Comparison(path)
            raise _error(f"Missing comparator for attribute '{path}' in filter")

        self._pos += 1
        comparator = token.value.lower()
        if comparator in PRESENCE_COMPARATORS:
            return Comparison(path, comparator)

        value = self._peek()
        if value is None or value.type not in VALUE_TOKEN_TYPES:
            raise _error(
                f"Missing expected value for '{comparator}' comparator "
                f"of attribute '{path}' in filter"
            )
        self._pos += 1
        return Comparison(path, comparator, value.value)


def parse(query: str) -> Node:
    """Tokenizes and parses filter expression into syntax tree."""
    return Parser(tokenize(query)).parse()


def _cross(left: list[list[Leaf]], right: list[list[Leaf]]) -> list[list[Leaf]]:
    return [[*a, *b] for a in left for b in right]


def _expand_value_path(node: Comparison, negate: bool) -> list[list[Leaf]]:
    parts = split_path(node.path)
    results: list[list[Leaf]] = []
    spent: list[str] = []
    for i, part in enumerate(parts):
        name, value_filter = split_value_filter(part)
        spent.append(name)
        if value_filter is not None:
            if i == len(parts) - 1 and node.comparator is not None:
                raise _error(
                    f"Unexpected comparator '{node.comparator}' following "
                    f"value filter of attribute '{node.path}' in filter"
                )
            prefix = ".".join(spent)
            branches = [
                [leaf._replace(path=f"{prefix}.{leaf.path}") for leaf in branch]
                for branch in to_branches(parse(value_filter), negate)
            ]
            results = branches if not results else _cross(results, branches)
        elif i == len(parts) - 1:
            if node.comparator is None:
                raise _error(f"Missing comparator for attribute '{node.path}' in filter")
            leaf = Leaf(negate, ".".join(spent), node.comparator, node.value)
            results = [[*result, leaf] for result in results]
    return results


def to_branches(node: Node, negate: bool = False) -> list[list[Leaf]]:
    """
    Expands syntax tree into disjunctive normal form. Branches of `and` operands are
    crossed, with the left-most operand varying slowest.
    """
    if isinstance(node, Comparison):
        if _has_value_filter(node.path):
            return _expand_value_path(node, negate)
        return [[Leaf(negate, node.path, node.comparator, node.value)]]
    if isinstance(node, Not):
        return to_branches(node.operand, not negate)
    if isinstance(node, Or):
        return [branch for operand in node.operands for branch in to_branches(operand, negate)]
    results: list[list[Leaf]] = [[]]
    for operand in node.operands:
        results = _cross(results, to_branches(operand, negate))
    return results


def attribute_name(part: str) -> str:
    return f"{part[0].lower()}{part[1:]}"


def leaf_expression(leaf: Leaf) -> list[Any]:
    expression: list[Any] = ["not"] if leaf.negate else []
    expression.append(leaf.comparator.lower())
    if leaf.value is not NO_VALUE:
        expression.append(leaf.value)
    return expression


def objectify(branch: list[Leaf]) -> dict[str, Any]:
    """
    Translates a branch into an expression object. Expressions for the same attribute are
    collected into a list of expressions.
    """
    result: dict[str, Any] = {}
    for leaf in branch:
        parts = [attribute_name(part) for part in split_path(leaf.path)]
        target = result
        for name in parts[:-1]:
            target = target.setdefault(name, {})
            if not isinstance(target, dict):
                raise _error(
                    f"Attribute '{name}' is both compared and traversed in filter"
                )
        name = parts[-1]
        expression = leaf_expression(leaf)
        existing = target.get(name)
        if existing is None:
            target[name] = expression
        elif isinstance(existing, dict):
            raise _error(f"Attribute '{name}' is both compared and traversed in filter")
        elif all(isinstance(item, list) for item in existing):
            existing.append(expression)
        else:
            target[name] = [existing, expression]
    return result


def _is_simple(tokens: list[Token]) -> bool:
    if not 2 <= len(tokens) <= 3:
        return False
    path, comparator, *rest = tokens
    if path.type != TokenType.WORD or comparator.type != TokenType.COMPARATOR:
        return False
    if _has_value_filter(path.value):
        return False
    if comparator.value.lower() in PRESENCE_COMPARATORS:
        return not rest
    return bool(rest) and rest[0].type in VALUE_TOKEN_TYPES


def parse_expressions(query: str) -> list[dict[str, Any]]:
    """
    Parses filter expression into a list of expression objects, one per `or` branch.

    Raises:
        ScimError: If the expression is not valid.
    """
    tokens = tokenize(query)
    if _is_simple(tokens):
        path, comparator, *rest = tokens
        leaf = Leaf(False, path.value, comparator.value, rest[0].value if rest else NO_VALUE)
        return [objectify([leaf])]
    return [objectify(branch) for branch in to_branches(Parser(tokens).parse())]


__all__ = [
    "And",
    "Comparison",
    "Leaf",
    "NO_VALUE",
    "Not",
    "Or",
    "Parser",
    "objectify",
    "parse",
    "parse_expressions",
    "to_branches",
]
