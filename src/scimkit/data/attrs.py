import abc
import base64
import binascii
import logging
import re
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Iterable,
    Iterator,
    Optional,
    Union,
    final,
)
from urllib.parse import urlparse

import precis_i18n.profile
from precis_i18n import get_profile

from scimkit.constants import Direction, SCIMType
from scimkit.data.utils import (
    is_collection,
    parse_datetime,
    serialize_datetime,
    type_name,
)

if TYPE_CHECKING:
    from scimkit.data.values import ComplexValue, MultiValue


logger = logging.getLogger(__name__)

_NAME_LEADING_REGEX = re.compile(r"^[^-$\w]", flags=re.ASCII)
_NAME_INVALID_CHAR_REGEX = re.compile(r"[^-$\w]", flags=re.ASCII)
_NUMBER_REGEX = re.compile(r"^-?\d+?(\.\d+)?$")


class AttributeMutability(str, Enum):
    READ_WRITE = "readWrite"
    READ_ONLY = "readOnly"
    WRITE_ONLY = "writeOnly"
    IMMUTABLE = "immutable"


class AttributeReturn(str, Enum):
    DEFAULT = "default"
    ALWAYS = "always"
    NEVER = "never"
    REQUEST = "request"


class AttributeUniqueness(str, Enum):
    NONE = "none"
    SERVER = "server"
    GLOBAL = "global"


_AttributeValidator = Callable[[Any], Optional[str]]


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


class AttributeConfig:
    """
    Characteristics of an attribute, as specified in
    [RFC-7643, section 2.2](https://www.rfc-editor.org/rfc/rfc7643#section-2.2).

    Every write is validated, and no other characteristics can be added.

    Args:
        error_suffix: Context appended to validation error messages.
        multi_valued: Whether the attribute expects a collection of values.
        required: Whether the attribute is required for the instance to be valid.
        canonical_values: Values the attribute's contents must be set to, or `False`.
        case_exact: Whether the attribute's contents are case-sensitive.
        mutable: `True`, `False` or one of `AttributeMutability` values.
        returned: `True`, `False` or one of `AttributeReturn` values.
        reference_types: Referenced types if the attribute is a reference, or `False`.
        uniqueness: `False` or one of `AttributeUniqueness` values.
        direction: Whether the attribute is present for inbound, outbound, or both flows.
        shadow: Whether the attribute is hidden from the presented schema definition.
        description: Human-readable description of the attribute.
    """

    __slots__ = (
        "_error_suffix",
        "_multi_valued",
        "_required",
        "_canonical_values",
        "_case_exact",
        "_mutable",
        "_returned",
        "_reference_types",
        "_uniqueness",
        "_direction",
        "_shadow",
        "_description",
    )

    def __init__(
        self,
        error_suffix: str = "attribute definition",
        *,
        multi_valued: bool = False,
        required: bool = False,
        canonical_values: Union[bool, Iterable[str]] = False,
        case_exact: bool = False,
        mutable: Union[bool, str, AttributeMutability] = True,
        returned: Union[bool, str, AttributeReturn] = True,
        reference_types: Union[bool, Iterable[str]] = False,
        uniqueness: Union[bool, str, AttributeUniqueness] = AttributeUniqueness.NONE,
        direction: Union[str, Direction] = Direction.BOTH,
        shadow: bool = False,
        description: str = "",
    ):
        self._error_suffix = error_suffix
        self.multi_valued = multi_valued
        self.required = required
        self.canonical_values = canonical_values
        self.case_exact = case_exact
        self.mutable = mutable
        self.returned = returned
        self.reference_types = reference_types
        self.uniqueness = uniqueness
        self.direction = direction
        self.shadow = shadow
        self.description = description

    def _check_bool(self, key: str, value: Any) -> bool:
        if not isinstance(value, bool):
            raise TypeError(
                f"Attribute '{key}' value must be either 'true' or 'false' in {self._error_suffix}"
            )
        return value

    def _check_collection(self, key: str, value: Any) -> Union[bool, list[str]]:
        if value is False:
            return False
        if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple, set)):
            raise TypeError(
                f"Attribute '{key}' value must be either a collection or 'false' "
                f"in {self._error_suffix}"
            )
        return list(value)

    def _check_characteristic(self, label: str, value: Any, valid: type[Enum]) -> Any:
        value = _plain(value)
        if isinstance(value, str):
            if value not in {item.value for item in valid}:
                raise TypeError(
                    f"Attribute '{label}' value '{value}' not recognised in {self._error_suffix}"
                )
        elif not isinstance(value, bool):
            raise TypeError(
                f"Attribute '{label}' value must be either string or boolean "
                f"in {self._error_suffix}"
            )
        return value

    @property
    def multi_valued(self) -> bool:
        """Whether the attribute expects a collection of values."""
        return self._multi_valued

    @multi_valued.setter
    def multi_valued(self, value: bool) -> None:
        self._multi_valued = self._check_bool("multiValued", value)

    @property
    def required(self) -> bool:
        """Whether the attribute is required."""
        return self._required

    @required.setter
    def required(self, value: bool) -> None:
        self._required = self._check_bool("required", value)

    @property
    def canonical_values(self) -> Union[bool, list[str]]:
        """Values the attribute's contents must be set to, or `False` if unrestricted."""
        return self._canonical_values

    @canonical_values.setter
    def canonical_values(self, value: Union[bool, Iterable[str]]) -> None:
        self._canonical_values = self._check_collection("canonicalValues", value)

    @property
    def case_exact(self) -> bool:
        """Whether the attribute's contents are case-sensitive."""
        return self._case_exact

    @case_exact.setter
    def case_exact(self, value: bool) -> None:
        self._case_exact = self._check_bool("caseExact", value)

    @property
    def mutable(self) -> Union[bool, str]:
        return self._mutable

    @mutable.setter
    def mutable(self, value: Union[bool, str]) -> None:
        self._mutable = self._check_characteristic("mutability", value, AttributeMutability)

    @property
    def returned(self) -> Union[bool, str]:
        return self._returned

    @returned.setter
    def returned(self, value: Union[bool, str]) -> None:
        self._returned = self._check_characteristic("returned", value, AttributeReturn)

    @property
    def reference_types(self) -> Union[bool, list[str]]:
        """Referenced types, if attribute is a reference."""
        return self._reference_types

    @reference_types.setter
    def reference_types(self, value: Union[bool, Iterable[str]]) -> None:
        self._reference_types = self._check_collection("referenceTypes", value)

    @property
    def uniqueness(self) -> Union[bool, str]:
        return self._uniqueness

    @uniqueness.setter
    def uniqueness(self, value: Union[bool, str]) -> None:
        self._uniqueness = self._check_characteristic("uniqueness", value, AttributeUniqueness)

    @property
    def direction(self) -> str:
        """One of `in`, `out`, or `both`."""
        return self._direction

    @direction.setter
    def direction(self, value: Union[str, Direction]) -> None:
        value = _plain(value)
        if value not in {item.value for item in Direction}:
            raise TypeError(
                f"Attribute 'direction' value '{value}' not recognised in {self._error_suffix}"
            )
        self._direction = value

    @property
    def shadow(self) -> bool:
        """Whether the attribute is hidden from the presented schema definition."""
        return self._shadow

    @shadow.setter
    def shadow(self, value: bool) -> None:
        self._shadow = self._check_bool("shadow", value)

    @property
    def description(self) -> str:
        return self._description

    @description.setter
    def description(self, value: str) -> None:
        if not isinstance(value, str):
            raise TypeError(
                f"Attribute 'description' value must be a string in {self._error_suffix}"
            )
        self._description = value

    @property
    def mutability(self) -> AttributeMutability:
        """Mutability characteristic, derived from `mutable` and `direction`."""
        if isinstance(self._mutable, str):
            return AttributeMutability(self._mutable)
        if not self._mutable:
            return AttributeMutability.READ_ONLY
        if self._direction == Direction.IN:
            return AttributeMutability.WRITE_ONLY
        return AttributeMutability.READ_WRITE

    @property
    def returned_characteristic(self) -> AttributeReturn:
        """Returned characteristic, derived from `returned`."""
        if isinstance(self._returned, str):
            return AttributeReturn(self._returned)
        return AttributeReturn.DEFAULT if self._returned else AttributeReturn.NEVER

    @property
    def never_returned(self) -> bool:
        return self._returned is False or self._returned == AttributeReturn.NEVER

    def __repr__(self) -> str:
        items = ", ".join(f"{name[1:]}={getattr(self, name)!r}" for name in self.__slots__[1:])
        return f"{self.__class__.__name__}({items})"


class Attribute(abc.ABC):
    """
    Base class for all attributes. Defines a single field's contract and coerces arbitrary input
    into a value conforming to it.

    Args:
        name: Name of the attribute. Must be valid attribute name, according to RFC-7643.
        validators: Soft validators run for every coerced value. Each returns an optional
            warning text, which is logged and never raised.
        config: Attribute characteristics, see `AttributeConfig`.
    """

    def __init__(
        self,
        name: str,
        *,
        validators: Optional[list[_AttributeValidator]] = None,
        **config: Any,
    ):
        if not isinstance(name, str):
            raise TypeError("Required parameter 'name' missing from Attribute instantiation")

        error_suffix = f"attribute definition '{name}'"
        if match := _NAME_LEADING_REGEX.search(name):
            raise TypeError(
                f"Invalid leading character '{match.group()}' in name of {error_suffix}"
            )
        if match := _NAME_INVALID_CHAR_REGEX.search(name):
            raise TypeError(f"Invalid character '{match.group()}' in name of {error_suffix}")

        self._name = name
        self._config = AttributeConfig(error_suffix, **config)
        self._validators = list(validators or [])

    @classmethod
    @abc.abstractmethod
    def scim_type(cls) -> SCIMType:
        """Returns type of the attribute, as defined in RFC-7643."""

    @property
    def type(self) -> str:
        """Type of the attribute, as defined in RFC-7643."""
        return self.scim_type().value

    @property
    def name(self) -> str:
        """Name of the attribute."""
        return self._name

    @property
    def config(self) -> AttributeConfig:
        """Characteristics of the attribute."""
        return self._config

    @property
    def validators(self) -> list[_AttributeValidator]:
        """Soft validators, run for every successfully coerced value."""
        return self._validators

    @property
    def sub_attributes(self) -> Optional["Attrs"]:
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._name})"

    def _type_error(self, value: Any) -> TypeError:
        if is_collection(value):
            return TypeError(
                f"Attribute '{self._name}' expected single value of type '{self.type}'"
            )
        return TypeError(
            f"Attribute '{self._name}' expected value type '{self.type}' "
            f"but found type '{type_name(value)}'"
        )

    @abc.abstractmethod
    def _validate(self, value: Any) -> None:
        """Raises `TypeError` if the value can not be safely cast to the attribute's type."""

    def _cast(self, value: Any) -> Any:
        return value

    def _run_validators(self, value: Any) -> None:
        for validator in self._validators:
            if (warning := validator(value)) is not None:
                logger.warning("Attribute '%s': %s", self._name, warning)

    def _coerce_item(self, value: Any, direction: str = "both") -> Any:
        self._validate(value)
        cast = self._cast(value)
        if cast is not None:
            self._run_validators(cast)
        return cast

    def coerce_item(self, value: Any, direction: str = "both") -> Any:
        """
        Coerces a single value written to a collection of the multi-valued attribute.

        Raises:
            TypeError: If the value is not canonical or is not valid for the attribute's type.
        """
        canonical_values = self._config.canonical_values
        if isinstance(canonical_values, list) and value not in canonical_values:
            raise TypeError(
                f"Attribute '{self._name}' does not include canonical value '{value}'"
            )
        return self._coerce_item(value, direction)

    def participates(self, direction: str) -> bool:
        """
        Whether the attribute takes part in coercion for the provided `direction`.
        """
        own = self._config.direction
        return direction in (Direction.BOTH, own) or own == Direction.BOTH

    def coerce(
        self,
        source: Any,
        direction: Union[str, Direction] = Direction.BOTH,
        is_complex_multi_value: bool = False,
    ) -> Any:
        """
        Coerces the provided value, making sure it conforms to the attribute's characteristics.

        Args:
            source: Value to coerce.
            direction: Whether the value is inbound (`in`), outbound (`out`), or both.
            is_complex_multi_value: Whether the coercion is for a single complex value
                in a collection of complex values.

        Returns:
            Coerced value. Collections of multi-valued attributes are returned as `MultiValue`,
            and complex values as `ComplexValue`. `None` if the attribute does not participate
            in the `direction`, or if there is no value.

        Raises:
            TypeError: If the value does not conform to the attribute's characteristics.
        """
        from scimkit.data.values import MultiValue

        direction = _plain(direction)
        if not self.participates(direction):
            return None

        config = self._config
        multi_valued = config.multi_valued
        if (
            source is None
            and config.required
            and (direction != Direction.BOTH or config.direction == direction)
        ):
            raise TypeError(f"Required attribute '{self._name}' is missing")
        if (
            source is not None
            and not is_complex_multi_value
            and multi_valued
            and not is_collection(source)
        ):
            raise TypeError(f"Attribute '{self._name}' expected to be a collection")
        if not multi_valued and is_collection(source):
            raise TypeError(
                f"Attribute '{self._name}' is not multi-valued and must not be a collection"
            )
        canonical_values = config.canonical_values
        if source is not None and isinstance(canonical_values, list):
            items = source if multi_valued and not is_complex_multi_value else [source]
            if not all(item in canonical_values for item in items):
                raise TypeError(f"Attribute '{self._name}' contains non-canonical value")

        if source is None:
            return self._empty(direction)

        if is_complex_multi_value or not multi_valued:
            return self._coerce_item(source, direction)

        for item in source:
            self._validate(item)
        return MultiValue(self, [self._coerce_item(item, direction) for item in source], direction)

    def _empty(self, direction: str) -> Any:
        return None

    def to_dict(self) -> dict[str, Any]:
        """
        Converts the attribute to a dictionary. The contents meet the requirements
        of the schema definition, as per RFC-7643, section 7.
        """
        config = self._config
        output: dict[str, Any] = {"name": self._name, "type": self.type}
        if self.scim_type() == SCIMType.REFERENCE:
            output["referenceTypes"] = config.reference_types
        output["multiValued"] = config.multi_valued
        output["description"] = config.description
        output["required"] = config.required
        if self.sub_attributes is not None:
            output["subAttributes"] = [
                attr.to_dict() for attr in self.sub_attributes if not attr.config.shadow
            ]
        if config.case_exact or self.scim_type() in (
            SCIMType.STRING,
            SCIMType.REFERENCE,
            SCIMType.BINARY,
        ):
            output["caseExact"] = config.case_exact
        if isinstance(config.canonical_values, list):
            output["canonicalValues"] = config.canonical_values
        output["mutability"] = config.mutability.value
        output["returned"] = config.returned_characteristic.value
        if self.scim_type() != SCIMType.BOOLEAN and config.uniqueness is not False:
            output["uniqueness"] = config.uniqueness
        return output


@final
class Boolean(Attribute):
    """
    Represents **boolean** attribute, as specified in RFC-7643. Case-insensitive strings
    `"true"` and `"false"` are accepted and cast to booleans.
    """

    @classmethod
    def scim_type(cls) -> SCIMType:
        return SCIMType.BOOLEAN

    def _validate(self, value: Any) -> None:
        if isinstance(value, bool) or value is None:
            return
        if isinstance(value, str) and value.lower() in ("true", "false"):
            return
        raise self._type_error(value)

    def _cast(self, value: Any) -> Optional[bool]:
        if value is None:
            return None
        return coerce_boolean(value)


class _Number(Attribute, abc.ABC):
    def _validate(self, value: Any) -> None:
        if value is not None and not isinstance(value, (str, int, float)):
            raise self._type_error(value)

        if isinstance(value, bool) or value is None:
            text = str(value).lower()
        else:
            text = str(value)
        is_num = bool(_NUMBER_REGEX.match(text))
        is_int = is_num and "." not in text
        if not is_num:
            raise TypeError(
                f"Attribute '{self._name}' expected value type '{self.type}' "
                f"but found type '{type_name(value)}'"
            )
        if self.scim_type() == SCIMType.DECIMAL and is_int:
            raise TypeError(
                f"Attribute '{self._name}' expected value type 'decimal' but found type 'integer'"
            )
        is_whole = is_int or (isinstance(value, float) and value.is_integer())
        if self.scim_type() == SCIMType.INTEGER and not is_whole:
            raise TypeError(
                f"Attribute '{self._name}' expected value type 'integer' but found type 'decimal'"
            )


@final
class Decimal(_Number):
    """
    Represents **decimal** attribute, as specified in RFC-7643.
    """

    @classmethod
    def scim_type(cls) -> SCIMType:
        return SCIMType.DECIMAL

    def _cast(self, value: Any) -> float:
        return float(value)


@final
class Integer(_Number):
    """
    Represents **integer** attribute, as specified in RFC-7643.
    """

    @classmethod
    def scim_type(cls) -> SCIMType:
        return SCIMType.INTEGER

    def _cast(self, value: Any) -> int:
        return int(value)


@final
class String(Attribute):
    """
    Represents **string** attribute, as specified in RFC-7643.

    Args:
        name: The name of the attribute
        precis: PRECIS profile that should be applied for the string attribute, when
            comparing values. By default, **OpaqueString** profile is used
        kwargs: The same keyword arguments base class receives
    """

    def __init__(
        self,
        name: str,
        *,
        precis: precis_i18n.profile.Profile = get_profile("OpaqueString"),
        **kwargs: Any,
    ):
        super().__init__(name, **kwargs)
        self._precis = precis

    @classmethod
    def scim_type(cls) -> SCIMType:
        return SCIMType.STRING

    @property
    def precis(self) -> precis_i18n.profile.Profile:
        """
        Returns PRECIS profile of the attribute.
        """
        return self._precis

    def _validate(self, value: Any) -> None:
        if not isinstance(value, str) and value is not None:
            raise self._type_error(value)

    def _cast(self, value: Any) -> Optional[str]:
        return value


@final
class DateTime(Attribute):
    """
    Represents **dateTime** attribute, as specified in RFC-7643. Values are cast to
    UTC ISO-8601 strings.
    """

    @classmethod
    def scim_type(cls) -> SCIMType:
        return SCIMType.DATETIME

    def _validate(self, value: Any) -> None:
        if isinstance(value, str):
            if parse_datetime(value) is None:
                raise TypeError(f"Attribute '{self._name}' expected value to be a valid date")
            return
        if parse_datetime(value) is None:
            raise self._type_error(value)

    def _cast(self, value: Any) -> str:
        return serialize_datetime(parse_datetime(value))


@final
class Binary(Attribute):
    """
    Represents **binary** attribute, as specified in RFC-7643. Accepts base64-encoded strings
    (padding can be omitted) and raw octets, which are encoded.
    """

    @classmethod
    def scim_type(cls) -> SCIMType:
        return SCIMType.BINARY

    def _validate(self, value: Any) -> None:
        if isinstance(value, (bytes, bytearray)):
            return
        if is_collection(value) or (value is not None and not isinstance(value, (str, int, float))):
            raise self._type_error(value)
        message = (
            f"Attribute '{self._name}' expected value type 'binary' "
            "to be base64 encoded string or binary octet stream"
        )
        if not isinstance(value, str):
            raise TypeError(message)
        if (padding := len(value) % 4) != 0:
            value += "=" * (4 - padding)
        try:
            base64.b64decode(value, validate=True)
        except binascii.Error:
            raise TypeError(message)

    def _cast(self, value: Any) -> str:
        if isinstance(value, (bytes, bytearray)):
            return base64.b64encode(value).decode()
        return value


@final
class Reference(Attribute):
    """
    Represents **reference** attribute, as specified in RFC-7643. Referenced types are taken
    from `reference_types` characteristic: `external` requires URL with a host, `uri` accepts
    any URI or relative path, and resource type names require the value to refer to them.
    """

    @classmethod
    def scim_type(cls) -> SCIMType:
        return SCIMType.REFERENCE

    def _validate(self, value: Any) -> None:
        config = self._config
        if value is None and not config.required:
            return
        if not isinstance(value, str) and value is not None:
            raise self._type_error(value)

        reference_types = config.reference_types or []
        if not reference_types:
            raise TypeError(
                f"Attribute '{self._name}' with type 'reference' does not specify any "
                "referenceTypes"
            )

        value = "" if value is None else value
        type_references = [t for t in reference_types if t not in ("uri", "external")]
        if any(value.startswith(t) or f"/{t}" in value for t in type_references):
            return
        parsed = urlparse(value)
        if "external" in reference_types and parsed.scheme and parsed.netloc:
            return
        if "uri" in reference_types and (parsed.scheme or value.startswith("/")):
            return
        listed = ", ".join(f"'{t}'" for t in reference_types)
        raise TypeError(
            f"Attribute '{self._name}' expected value type 'reference' to refer to one of: "
            f"{listed}"
        )


@final
class Complex(Attribute):
    """
    Represents **complex** attribute, as specified in RFC-7643.

    Args:
        name: Name of the attribute.
        sub_attributes: Complex sub-attributes.
        kwargs: The same keyword arguments the base class receives
    """

    def __init__(
        self,
        name: str,
        *,
        sub_attributes: Optional[Iterable[Attribute]] = None,
        **kwargs: Any,
    ):
        super().__init__(name, **kwargs)
        sub_attributes = list(sub_attributes or [])
        if not all(isinstance(attr, Attribute) for attr in sub_attributes):
            raise TypeError(
                "Expected 'subAttributes' to be an array of Attribute instances "
                f"in attribute definition '{name}'"
            )
        self._sub_attributes = Attrs(sub_attributes, owner=name)

    @classmethod
    def scim_type(cls) -> SCIMType:
        return SCIMType.COMPLEX

    @property
    def sub_attributes(self) -> "Attrs":
        """
        Complex sub-attributes.
        """
        return self._sub_attributes

    def attribute(self, name: str) -> Optional[Attribute]:
        """
        Returns a sub-attribute by its name, ignoring case. Dotted paths descend into nested
        complex sub-attributes.
        """
        target: Optional[Attribute] = self
        for part in name.split("."):
            if target is None or target.sub_attributes is None:
                return None
            target = target.sub_attributes.get(part)
        return target

    def truncate(self, *sub_attributes: Union[str, Attribute]) -> "Complex":
        """
        Removes sub-attributes, specified by name or instance. Unknown targets are ignored.

        Returns:
            The attribute itself, for chaining.
        """
        for item in sub_attributes:
            if isinstance(item, str):
                item = self._sub_attributes.get(item)
            if item is not None and item in self._sub_attributes:
                self._sub_attributes.remove(item)
        return self

    def _validate(self, value: Any) -> None:
        from collections.abc import Mapping

        if not isinstance(value, Mapping):
            raise TypeError(
                f"Complex attribute '{self._name}' expected complex value "
                f"but found type '{type_name(value)}'"
            )

    def _coerce_item(self, value: Any, direction: str = "both") -> "ComplexValue":
        from scimkit.data.values import ComplexValue

        self._validate(value)
        target = ComplexValue(self, direction=direction, source=value)
        self._run_validators(target)
        return target

    def coerce_item(self, value: Any, direction: str = "both") -> "ComplexValue":
        return self._coerce_item(value, direction)

    def _empty(self, direction: str) -> Optional["ComplexValue"]:
        from scimkit.data.values import ComplexValue

        if len(self._sub_attributes) and not self._config.multi_valued:
            return ComplexValue(self, direction=direction)
        return None


class Attrs:
    """
    Collection of attributes, e.g. sub-attributes of a complex attribute. Names are looked up
    case-insensitively, and only `Attribute` instances can be added.

    Examples:
        >>> attrs = Attrs([String("myString"), Integer("myInteger")])
        >>> for attr in attrs:
        >>>     print(attr)
    """

    def __init__(self, attrs: Optional[Iterable[Attribute]] = None, owner: str = ""):
        self._attrs: list[Attribute] = []
        self._owner = owner
        for attr in attrs or []:
            self.append(attr)

    def __iter__(self) -> Iterator[Attribute]:
        return iter(list(self._attrs))

    def __len__(self) -> int:
        return len(self._attrs)

    def __contains__(self, item: Any) -> bool:
        return any(item is attr for attr in self._attrs)

    def __getitem__(self, index: int) -> Attribute:
        return self._attrs[index]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._attrs})"

    def get(self, name: str) -> Optional[Attribute]:
        """
        Returns an attribute by its name. Since attribute names are case-insensitive, it also
        applies here.

        Returns:
            Attribute, if found, None otherwise.
        """
        name = name.lower()
        for attr in self._attrs:
            if attr.name.lower() == name:
                return attr
        return None

    def append(self, attr: Attribute) -> None:
        """
        Adds new attribute to the collection.

        Raises:
            TypeError: If provided value is not an `Attribute`.
        """
        if not isinstance(attr, Attribute):
            raise TypeError(
                f"Complex attribute '{self._owner}' expected new subAttributes "
                "to be Attribute instances"
            )
        if attr not in self:
            self._attrs.append(attr)

    def remove(self, attr: Attribute) -> None:
        """Removes the attribute instance from the collection."""
        for i, item in enumerate(self._attrs):
            if item is attr:
                del self._attrs[i]
                return
        raise ValueError(f"{attr!r} not in {self!r}")


def coerce_boolean(value: Any) -> bool:
    if isinstance(value, str):
        if value.lower() == "true":
            return True
        if value.lower() == "false":
            return False
    return bool(value)


_TYPES: dict[str, type[Attribute]] = {
    attr_cls.scim_type().value: attr_cls
    for attr_cls in [Boolean, Decimal, Integer, String, DateTime, Binary, Reference, Complex]
}


def create_attribute(
    type: str,
    name: str,
    sub_attributes: Optional[Iterable[Attribute]] = None,
    **config: Any,
) -> Attribute:
    """
    Creates attribute of the provided SCIM type.

    Args:
        type: SCIM type of the attribute, e.g. `string`.
        name: Name of the attribute.
        sub_attributes: Sub-attributes, if the attribute is complex.
        config: Attribute characteristics and type-specific options.

    Raises:
        TypeError: If the type is not recognised, or sub-attributes are specified
            for non-complex attribute.

    Examples:
        >>> create_attribute("string", "userName", required=True, uniqueness="server")
        String(userName)
    """
    if not isinstance(type, str):
        raise TypeError("Required parameter 'type' missing from Attribute instantiation")
    if not isinstance(name, str):
        raise TypeError("Required parameter 'name' missing from Attribute instantiation")

    error_suffix = f"attribute definition '{name}'"
    attr_cls = _TYPES.get(type)
    if attr_cls is None:
        raise TypeError(f"Type '{type}' not recognised in {error_suffix}")
    if sub_attributes and attr_cls is not Complex:
        raise TypeError(
            f"Attribute type must be 'complex' when subAttributes are specified in {error_suffix}"
        )
    if attr_cls is Complex:
        return Complex(name, sub_attributes=sub_attributes, **config)
    return attr_cls(name, **config)
