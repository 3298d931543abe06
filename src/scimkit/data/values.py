from collections.abc import Mapping, MutableMapping, Sequence
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Optional, Union

from scimkit.constants import Direction
from scimkit.error import UndeclaredAttributeError, extend_message

if TYPE_CHECKING:
    from scimkit.data.attrs import Attribute, Complex


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (Mapping, list, tuple, MultiValue)) and len(value) == 0:
        return True
    return False


def dump(value: Any) -> Any:
    """
    Converts coerced values to plain Python data. `None` values, empty mappings and empty
    collections nested in mappings are dropped.
    """
    if isinstance(value, ComplexValue):
        return value.to_dict()
    if isinstance(value, MultiValue):
        return value.to_list()
    if isinstance(value, Mapping):
        output = {}
        for key, item in value.items():
            item = dump(item)
            if not _is_empty(item):
                output[key] = item
        return output
    if isinstance(value, (list, tuple)):
        return [dump(item) for item in value if item is not None]
    return value


class ComplexValue(MutableMapping):
    """
    Value of a complex attribute. Only sub-attributes declared by the attribute can be
    read or written, names are matched case-insensitively, and every write is coerced
    by the sub-attribute.

    Reading a declared sub-attribute that has no value returns `None`.

    Args:
        attribute: The complex attribute the value belongs to.
        direction: Direction in which written values are coerced.
        source: Initial data. Each declared sub-attribute is assigned, so missing required
            sub-attributes are reported.

    Raises:
        TypeError: If the source data does not conform to the attribute's sub-attributes.

    Examples:
        >>> name = Complex("name", sub_attributes=[String("givenName")])
        >>> value = ComplexValue(name, source={"GivenName": "Bjarne"})
        >>> value["givenname"]
        'Bjarne'
    """

    def __init__(
        self,
        attribute: "Complex",
        direction: Union[str, Direction] = Direction.BOTH,
        source: Optional[Mapping[str, Any]] = None,
    ):
        self._attribute = attribute
        self._direction = str(direction)
        self._data: dict[str, Any] = {}
        if source is None:
            return

        for key, value in source.items():
            self[key] = value

        for sub_attr in attribute.sub_attributes:
            if sub_attr.name not in self._data:
                self._set(sub_attr, None)

    @property
    def attribute(self) -> "Complex":
        return self._attribute

    @property
    def direction(self) -> str:
        return self._direction

    def _sub_attribute(self, key: str) -> "Attribute":
        sub_attr = self._attribute.sub_attributes.get(key) if isinstance(key, str) else None
        if sub_attr is None:
            raise UndeclaredAttributeError(
                key,
                f"Complex attribute '{self._attribute.name}' does not declare "
                f"subAttribute '{key}'",
            )
        return sub_attr

    def _set(self, sub_attr: "Attribute", value: Any) -> None:
        try:
            coerced = sub_attr.coerce(value, self._direction)
        except TypeError as e:
            raise extend_message(e, f" from complex attribute '{self._attribute.name}'")
        if coerced is None:
            self._data.pop(sub_attr.name, None)
        else:
            self._data[sub_attr.name] = coerced

    def __getitem__(self, key: str) -> Any:
        sub_attr = self._sub_attribute(key)
        return self._data.get(sub_attr.name)

    def __setitem__(self, key: str, value: Any) -> None:
        self._set(self._sub_attribute(key), value)

    def __delitem__(self, key: str) -> None:
        sub_attr = self._sub_attribute(key)
        self._data.pop(sub_attr.name, None)

    def __contains__(self, key: Any) -> bool:
        if not isinstance(key, str):
            return False
        sub_attr = self._attribute.sub_attributes.get(key)
        return sub_attr is not None and sub_attr.name in self._data

    def __iter__(self) -> Iterator[str]:
        return (
            sub_attr.name for sub_attr in self._attribute.sub_attributes
            if sub_attr.name in self._data
        )

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._data})"

    def subset(self, names: Iterable[str]) -> "ComplexValue":
        """
        Returns new value with already coerced values of the provided sub-attributes only.
        """
        value = ComplexValue(self._attribute, self._direction)
        for name in names:
            if name in self:
                sub_attr = self._attribute.sub_attributes.get(name)
                value._data[sub_attr.name] = self._data[sub_attr.name]
        return value

    def to_dict(self) -> dict[str, Any]:
        """
        Returns plain representation of the value. Sub-attributes that are never returned,
        and sub-attributes without value, are omitted.
        """
        output = {}
        for name in self:
            sub_attr = self._attribute.sub_attributes.get(name)
            if sub_attr.config.never_returned:
                continue
            value = dump(self._data[name])
            if not _is_empty(value):
                output[name] = value
        return output


class MultiValue(Sequence):
    """
    Collection of values of a multi-valued attribute. Values can only be added through
    `append`, `extend`, and `replace_at`, so every value in the collection is coerced
    by the attribute.

    Args:
        attribute: The multi-valued attribute the collection belongs to.
        values: Already coerced values.
        direction: Direction in which new values are coerced.
    """

    def __init__(
        self,
        attribute: "Attribute",
        values: Optional[Iterable[Any]] = None,
        direction: Union[str, Direction] = Direction.BOTH,
    ):
        self._attribute = attribute
        self._values = list(values or [])
        self._direction = str(direction)

    @property
    def attribute(self) -> "Attribute":
        return self._attribute

    def _coerce(self, value: Any) -> Any:
        return self._attribute.coerce_item(value, self._direction)

    def append(self, value: Any) -> None:
        """
        Coerces and appends the value.

        Raises:
            TypeError: If the value is not valid for the attribute.
        """
        self._values.append(self._coerce(value))

    def extend(self, values: Iterable[Any]) -> None:
        """
        Coerces and appends all values. Nothing is appended if any of the values is invalid.
        """
        coerced = [self._coerce(value) for value in values]
        self._values.extend(coerced)

    def replace_at(self, index: int, value: Any) -> None:
        self._values[index] = self._coerce(value)

    def remove(self, value: Any) -> None:
        """
        Removes the first item that is, or is equal to, the provided value.

        Raises:
            ValueError: If the value is not present.
        """
        for i, item in enumerate(self._values):
            if item is value:
                del self._values[i]
                return
        self._values.remove(value)

    def __getitem__(self, index):
        return self._values[index]

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, MultiValue):
            return self._values == other._values
        if isinstance(other, (list, tuple)):
            return self._values == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._values})"

    def to_list(self) -> list[Any]:
        return [dump(item) for item in self._values if item is not None]


def unwrap(value: Any) -> Any:
    """
    Converts coerced values to plain Python data, keeping every value that is set,
    including values of attributes that are never returned. Complex values with nothing
    set are dropped.
    """
    if isinstance(value, MultiValue):
        return [unwrap(item) for item in value]
    if isinstance(value, Mapping):
        output = {}
        for key, item in value.items():
            item = unwrap(item)
            if item != {}:
                output[key] = item
        return output
    if isinstance(value, (list, tuple)):
        return [unwrap(item) for item in value]
    return value
