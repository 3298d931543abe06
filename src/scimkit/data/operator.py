import abc
import operator
from typing import Any, Optional

from scimkit.data.attrs import Attribute, String
from scimkit.data.utils import is_date_like, parse_datetime, type_name


class Comparator(abc.ABC):
    """
    Base class for filter comparators. Every subclass which is not an abstract must specify
    `op` class attribute.
    """

    op: str

    @staticmethod
    @abc.abstractmethod
    def operator(actual: Any, expected: Any) -> bool:
        """
        Implements comparator's logic for matching the provided values.
        """

    @classmethod
    def compare(cls, actual: Any, expected: Any, attr: Optional[Attribute] = None) -> bool:
        """
        Compares the actual value with the expected one, taking into account characteristics
        of the attribute that describes the actual value.

        Args:
            actual: The attribute's value (left operand).
            expected: The comparator's value (right operand).
            attr: Attribute that describes the actual value. Values of unknown attributes
                are compared case-sensitively.

        Returns:
            Flag indicating whether the values match.
        """
        return cls.operator(actual, expected)


class UnaryComparator(Comparator, abc.ABC):
    @staticmethod
    @abc.abstractmethod
    def operator(actual: Any, expected: Any = None) -> bool:
        """
        Implements comparator's logic for matching the provided value.
        """


class Present(UnaryComparator):
    """
    Represents `pr` SCIM comparator. Matches if the value is defined.
    """

    op = "pr"

    @staticmethod
    def operator(actual: Any, expected: Any = None) -> bool:
        return actual is not None


class NotPresent(UnaryComparator):
    """
    Represents `np` SCIM comparator. Matches if the value is not defined.
    """

    op = "np"

    @staticmethod
    def operator(actual: Any, expected: Any = None) -> bool:
        return actual is None


def _normalise(value: Any, attr: String) -> Any:
    if not isinstance(value, str):
        return value
    try:
        value = attr.precis.enforce(value)
    except UnicodeEncodeError:
        # PRECIS profiles reject empty strings and disallowed code points
        pass
    return value if attr.config.case_exact else value.lower()


class BinaryComparator(Comparator, abc.ABC):
    """
    Base class for comparators with an expected value. String values of `string` attributes
    are normalised with the attribute's PRECIS profile, and lower-cased if the attribute
    is not case-exact.
    """

    @classmethod
    def _prepare(cls, actual: Any, expected: Any, attr: Optional[Attribute]) -> tuple:
        if not isinstance(attr, String) or not isinstance(actual, str):
            return actual, expected
        return _normalise(actual, attr), _normalise(expected, attr)

    @classmethod
    def compare(cls, actual: Any, expected: Any, attr: Optional[Attribute] = None) -> bool:
        try:
            return cls.operator(*cls._prepare(actual, expected, attr))
        except (AttributeError, TypeError):
            return False


class _Equality(BinaryComparator, abc.ABC):
    @classmethod
    def _prepare(cls, actual: Any, expected: Any, attr: Optional[Attribute]) -> tuple:
        if isinstance(actual, bool) and isinstance(expected, str):
            if expected.lower() == "true":
                expected = True
            elif expected.lower() == "false":
                expected = False
        return super()._prepare(actual, expected, attr)


def _strict_eq(actual: Any, expected: Any) -> bool:
    if isinstance(actual, bool) != isinstance(expected, bool):
        return False
    return operator.eq(actual, expected)


class Equal(_Equality):
    """
    Represents `eq` SCIM comparator.
    """

    op = "eq"

    @staticmethod
    def operator(actual: Any, expected: Any) -> bool:
        return _strict_eq(actual, expected)


class NotEqual(_Equality):
    """
    Represents `ne` SCIM comparator.
    """

    op = "ne"

    @staticmethod
    def operator(actual: Any, expected: Any) -> bool:
        return not _strict_eq(actual, expected)


class Contains(BinaryComparator):
    """
    Represents `co` SCIM comparator.
    """

    op = "co"

    @staticmethod
    def operator(actual: Any, expected: Any) -> bool:
        if actual is None:
            return False
        return operator.contains(_text(actual), _text(expected))


class StartsWith(BinaryComparator):
    """
    Represents `sw` SCIM comparator.
    """

    op = "sw"

    @staticmethod
    def operator(actual: Any, expected: Any) -> bool:
        if actual is None:
            return False
        return _text(actual).startswith(_text(expected))


class EndsWith(BinaryComparator):
    """
    Represents `ew` SCIM comparator.
    """

    op = "ew"

    @staticmethod
    def operator(actual: Any, expected: Any) -> bool:
        if actual is None:
            return False
        return _text(actual).endswith(_text(expected))


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


class _Ordering(BinaryComparator, abc.ABC):
    """
    Date-like values are compared chronologically. Other values are compared only if they are
    of the same type.
    """

    @staticmethod
    @abc.abstractmethod
    def _order(actual: Any, expected: Any) -> bool:
        """Compares values of the same type."""

    @classmethod
    def operator(cls, actual: Any, expected: Any) -> bool:
        if is_date_like(actual):
            expected_date = parse_datetime(expected)
            if expected_date is None:
                return False
            return cls._order(parse_datetime(actual), expected_date)
        if actual is None or type_name(actual) != type_name(expected):
            return False
        return cls._order(actual, expected)


class GreaterThan(_Ordering):
    """
    Represents `gt` SCIM comparator.
    """

    op = "gt"
    _order = staticmethod(operator.gt)


class GreaterThanOrEqual(_Ordering):
    """
    Represents `ge` SCIM comparator.
    """

    op = "ge"
    _order = staticmethod(operator.ge)


class LesserThan(_Ordering):
    """
    Represents `lt` SCIM comparator.
    """

    op = "lt"
    _order = staticmethod(operator.lt)


class LesserThanOrEqual(_Ordering):
    """
    Represents `le` SCIM comparator.
    """

    op = "le"
    _order = staticmethod(operator.le)


COMPARATORS: dict[str, type[Comparator]] = {
    comparator.op: comparator
    for comparator in [
        Equal,
        NotEqual,
        Contains,
        StartsWith,
        EndsWith,
        GreaterThan,
        GreaterThanOrEqual,
        LesserThan,
        LesserThanOrEqual,
        Present,
        NotPresent,
    ]
}
