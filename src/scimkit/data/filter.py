import logging
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from typing import Any, Iterator, Union

from scimkit.data.operator import COMPARATORS
from scimkit.data.parser import parse_expressions
from scimkit.data.utils import get_value, is_collection, parse_datetime, serialize_datetime

logger = logging.getLogger(__name__)

_PRESENCE_COMPARATORS = ("pr", "np")


def _immutable_error(key: Any) -> TypeError:
    return TypeError(f"Cannot modify property {key} of immutable Filter instance")


class FrozenList(tuple):
    """
    Immutable expression list, e.g. `("eq", "Test")`. Compares equal to lists with
    the same items.
    """

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, list):
            other = tuple(other)
        return tuple.__eq__(self, other)

    def __ne__(self, other: Any) -> bool:
        result = self.__eq__(other)
        return result if result is NotImplemented else not result

    __hash__ = tuple.__hash__

    def __setitem__(self, key: Any, value: Any) -> None:
        raise _immutable_error(key)

    def __delitem__(self, key: Any) -> None:
        raise _immutable_error(key)

    def __repr__(self) -> str:
        return repr(list(self))


class FrozenExpression(Mapping):
    """
    Immutable expression object, mapping attribute names to expression lists
    or nested expression objects.
    """

    def __init__(self, data: Mapping[str, Any]):
        self._data = {key: _freeze(value) for key, value in data.items()}

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __setitem__(self, key: str, value: Any) -> None:
        raise _immutable_error(key)

    def __delitem__(self, key: str) -> None:
        raise _immutable_error(key)

    def __repr__(self) -> str:
        return repr(self._data)

    def to_dict(self) -> dict[str, Any]:
        return _thaw(self)


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return FrozenExpression(value)
    if isinstance(value, (list, tuple)):
        return FrozenList(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


def _is_expression_list(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _expressions_of(value: Sequence) -> list[Sequence]:
    if len(value) and all(_is_expression_list(item) for item in value):
        return list(value)
    return [value]


def _split_expression(expression: Sequence) -> tuple[bool, list[Any]]:
    negate = bool(expression) and isinstance(expression[0], str)
    negate = negate and expression[0].lower() == "not"
    return negate, list(expression[1:] if negate else expression)


def validate(expression: Union[Mapping, Sequence[Mapping]]) -> list[Mapping]:
    """
    Checks expression objects are well-formed.

    Raises:
        TypeError: If any of the expression objects is not valid.
    """
    expressions = list(expression) if isinstance(expression, (list, tuple)) else [expression]
    for index, item in enumerate(expressions, start=1):
        _validate_object(item, index)
    return expressions


def _validate_object(expression: Any, index: int, prefix: str = "") -> None:
    if not isinstance(expression, Mapping):
        raise TypeError(f"Expected plain object for Filter expression object #{index}")
    if not expression:
        if not prefix:
            raise TypeError(f"Missing expression properties for Filter expression object #{index}")
        raise TypeError(
            f"Missing expressions for property '{prefix[:-1]}' "
            f"of Filter expression object #{index}"
        )

    for attr, expr in expression.items():
        name = f"{prefix}{attr}"
        suffix = f"in property '{name}' of Filter expression object #{index}"
        if _is_expression_list(expr):
            nested = any(_is_expression_list(item) for item in expr)
            if nested and not all(_is_expression_list(item) for item in expr):
                raise TypeError(f"Unexpected nested array {suffix}")
            for item in expr if nested else [expr]:
                _, parts = _split_expression(item)
                comparator = parts[0] if parts else None
                if not comparator:
                    raise TypeError(f"Missing comparator {suffix}")
                has_expected = len(parts) > 1
                if str(comparator).lower() in _PRESENCE_COMPARATORS and has_expected:
                    raise TypeError(
                        f"Unexpected comparison value for '{comparator}' comparator {suffix}"
                    )
                if str(comparator).lower() not in _PRESENCE_COMPARATORS and not has_expected:
                    raise TypeError(
                        f"Missing expected comparison value for '{comparator}' comparator {suffix}"
                    )
        elif isinstance(expr, Mapping):
            _validate_object(expr, index, f"{name}.")
        else:
            raise TypeError(
                f"Expected plain object or expression array in property '{name}' "
                f"of Filter expression object #{index}"
            )


def _stringify_value(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        value = serialize_datetime(parse_datetime(value))
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _stringify_attribute(prefix: str, attr: str, expr: Any) -> list[str]:
    if isinstance(expr, Mapping):
        return [
            part
            for sub_attr, sub_expr in expr.items()
            for part in _stringify_attribute(f"{prefix}{attr}.", sub_attr, sub_expr)
        ]
    output = []
    for item in _expressions_of(expr):
        negate, parts = _split_expression(item)
        words = ["not"] if negate else []
        words.extend([f"{prefix}{attr}", parts[0]])
        if len(parts) > 1:
            words.append(_stringify_value(parts[1]))
        output.append(" ".join(words))
    return output


def stringify(expressions: Sequence[Mapping]) -> str:
    """
    Translates expression objects back into filter expression string.
    """
    return " or ".join(
        " and ".join(
            part for attr, expr in expression.items()
            for part in _stringify_attribute("", attr, expr)
        )
        for expression in expressions
    )


def is_excluded_attributes_filter(value: Any) -> bool:
    """
    Checks whether the expression only excludes attributes, i.e. consists of `np` comparisons.
    """
    if _is_expression_list(value):
        return len(value) > 0 and value[0] == "np"
    if isinstance(value, Mapping):
        return all(is_excluded_attributes_filter(item) for item in value.values())
    return all(is_excluded_attributes_filter(item) for item in value)


def _resolve(definition: Any, attr: str) -> Any:
    if definition is None or not hasattr(definition, "attribute"):
        return None
    try:
        return definition.attribute(attr)
    except TypeError:
        return None


class Filter(Sequence):
    """
    Parsed filter expression. Consists of expression objects, one per `or` branch, mapping
    attribute names to lists of `[comparator, expected]`, or to nested expression objects.

    Comparison of expressions for the same attribute are joined with `and`, so that multiple
    of them are represented as a list of lists.

    Args:
        expression: Filter expression string, e.g. `userName eq "Test"`, or already parsed
            expression object, or a list of them.
        definition: Schema definition or complex attribute that describes the matched values.
            Used to determine case-sensitivity of string comparisons.

    Raises:
        TypeError: If the expression is of invalid type, or expression objects are
            not well-formed.
        ScimError: If the expression string is not valid.

    Examples:
        >>> Filter('name.familyName eq "Test" or emails co "example.com"')
        [{'name': {'familyName': ['eq', 'Test']}}, {'emails': ['co', 'example.com']}]
    """

    def __init__(
        self,
        expression: Union[str, Mapping, Sequence[Mapping]],
        definition: Any = None,
    ):
        is_string = isinstance(expression, str)
        items = expression if isinstance(expression, (list, tuple)) else [expression]
        if not is_string and not all(isinstance(item, Mapping) for item in items):
            raise TypeError(
                "Expected 'expression' parameter to be a string, object, "
                "or array of objects in Filter constructor"
            )
        if is_string and not expression.strip():
            raise TypeError(
                "Expected 'expression' parameter string value to not be empty "
                "in Filter constructor"
            )

        if is_string:
            parsed = parse_expressions(expression)
            logger.debug("Parsed filter '%s' into %r", expression, parsed)
        else:
            parsed = validate(expression)
        self._expressions = tuple(FrozenExpression(item) for item in parsed)
        self._expression = expression if is_string else stringify(self._expressions)
        self._definition = definition

    @property
    def expression(self) -> str:
        """
        Original expression string, or string representation of expression objects.
        """
        return self._expression

    @property
    def definition(self) -> Any:
        return self._definition

    def __getitem__(self, index):
        return self._expressions[index]

    def __len__(self) -> int:
        return len(self._expressions)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Filter):
            return self._expressions == other._expressions
        if isinstance(other, (list, tuple)):
            return list(self._expressions) == list(other)
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        return repr(list(self._expressions))

    def to_list(self) -> list[dict[str, Any]]:
        """Returns expression objects as plain dicts and lists."""
        return [expression.to_dict() for expression in self._expressions]

    def match(self, values: Sequence[Any]) -> list[Any]:
        """
        Returns values that match any of the filter's expression objects.
        """
        return [
            value
            for value in values
            if any(
                isinstance(expression, Mapping)
                and _match_object(expression, value, self._definition)
                for expression in self._expressions
            )
        ]


def _match_object(expression: Mapping, value: Any, definition: Any) -> bool:
    for attr, expressions in expression.items():
        actual = get_value(value, attr) if isinstance(value, Mapping) else None
        attr_definition = _resolve(definition, attr)
        if isinstance(expressions, Mapping):
            if is_collection(actual):
                matched = any(
                    _match_object(expressions, item, attr_definition) for item in actual
                )
            else:
                matched = _match_object(expressions, actual, attr_definition)
        else:
            matched = _match_expressions(expressions, actual, attr_definition)
        if not matched:
            return False
    return True


def _match_expressions(expressions: Sequence, actual: Any, attr: Any) -> bool:
    for expression in _expressions_of(expressions):
        negate, parts = _split_expression(expression)
        comparator = parts[0] if parts else None
        expected = parts[1] if len(parts) > 1 else None
        comparator_cls = COMPARATORS.get(str(comparator).lower())
        if comparator_cls is None:
            result = False
        elif is_collection(actual) and comparator_cls.op not in _PRESENCE_COMPARATORS:
            result = any(
                comparator_cls.compare(get_value(item, "value"), expected, _resolve(attr, "value"))
                if isinstance(item, Mapping)
                else comparator_cls.compare(item, expected, attr)
                for item in actual
            )
        else:
            result = comparator_cls.compare(actual, expected, attr)
        if negate:
            result = not result
        if not result:
            return False
    return True
