import logging
from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass
from typing import Any, ClassVar, Iterable, Iterator, Optional, Union

from typing_extensions import Self

from scimkit.constants import SCHEMA_URN_PREFIX, Direction
from scimkit.data.attrs import (
    Attribute,
    AttributeMutability,
    AttributeReturn,
    Complex,
    DateTime,
    Reference,
    String,
)
from scimkit.data.filter import is_excluded_attributes_filter
from scimkit.data.utils import find_key, get_value, is_collection
from scimkit.data.values import ComplexValue, MultiValue, dump, unwrap
from scimkit.error import ScimError, ScimErrorType, UndeclaredAttributeError, extend_message

logger = logging.getLogger(__name__)

_IMMUTABLE = (AttributeMutability.READ_ONLY, AttributeMutability.IMMUTABLE)

SCHEMA_DEFINITION_SCHEMA = "urn:ietf:params:scim:schemas:core:2.0:Schema"


def _common_attrs() -> list[Attribute]:
    return [
        Reference(
            "schemas", shadow=True, returned="always", multi_valued=True, reference_types=["uri"]
        ),
        String(
            "id",
            shadow=True,
            direction="out",
            returned="always",
            required=True,
            mutable=False,
            case_exact=True,
            uniqueness="global",
        ),
        String("externalId", shadow=True, direction="in", case_exact=True),
        Complex(
            "meta",
            shadow=True,
            returned="always",
            required=True,
            mutable=False,
            sub_attributes=[
                String("resourceType", required=True, mutable=False, case_exact=True),
                DateTime("created", direction="out", mutable=False),
                DateTime("lastModified", direction="out", mutable=False),
                String("location", direction="out", mutable=False),
                String("version", direction="out", mutable=False),
            ],
        ),
    ]


@dataclass(frozen=True)
class ExtensionBinding:
    """
    Schema extension bound to a parent schema definition. The same definition can be bound to
    multiple parents, each binding deciding on its own whether the extension is required.
    """

    definition: "SchemaDefinition"
    required: bool = False

    @property
    def id(self) -> str:
        return self.definition.id


def _merge(target: dict[str, Any], source: Mapping[str, Any]) -> dict[str, Any]:
    target = {key.lower(): value for key, value in target.items()}
    for key, value in source.items():
        key = key.lower()
        if isinstance(value, (list, tuple)):
            if isinstance(target.get(key), list):
                target[key] = [*target[key], *value]
            else:
                target[key] = list(value)
        elif not isinstance(value, Mapping):
            target[key] = value
        else:
            existing = target.get(key)
            target[key] = _merge(dict(existing) if isinstance(existing, Mapping) else {}, value)
    return target


def _nest(values: Mapping[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for name, value in values.items():
        *parents, leaf = name.lower().split(".")
        parent = result
        for path in parents:
            parent = parent.setdefault(path, {})
        parent[leaf] = value
    return result


class SchemaDefinition:
    """
    Definition of SCIM schema: its URN, friendly name, description, and the attributes and
    schema extensions that make up the schema. Common attributes (`schemas`, `id`,
    `externalId`, and `meta`) are added to every definition.

    Args:
        name: Friendly name of the schema, e.g. `User`.
        id: URN namespace of the schema.
        description: Human-readable description of the schema.
        attributes: Attributes that make up the schema.

    Raises:
        TypeError: If any of the parameters is missing or invalid.
    """

    def __init__(
        self,
        name: str,
        id: str,
        description: str = "",
        attributes: Optional[Iterable[Attribute]] = None,
    ):
        for param, value in (("name", name), ("id", id), ("description", description)):
            if value is None:
                raise TypeError(
                    f"Required parameter '{param}' missing from SchemaDefinition instantiation"
                )
            if not isinstance(value, str) or (param != "description" and not value):
                expected = "a string" if param == "description" else "a non-empty string"
                raise TypeError(
                    f"Expected '{param}' to be {expected} in SchemaDefinition instantiation"
                )
        if not id.startswith(SCHEMA_URN_PREFIX):
            raise TypeError(
                f"Invalid SCIM schema URN namespace '{id}' in SchemaDefinition instantiation"
            )

        self._name = name
        self._id = id
        self._description = description
        self._attributes: list[Union[Attribute, ExtensionBinding]] = [
            *_common_attrs(),
            *[attr for attr in attributes or [] if isinstance(attr, Attribute)],
        ]

    @property
    def name(self) -> str:
        return self._name

    @property
    def id(self) -> str:
        """URN namespace of the schema."""
        return self._id

    @property
    def description(self) -> str:
        return self._description

    @property
    def attributes(self) -> list[Union[Attribute, ExtensionBinding]]:
        """Attributes and extension bindings, in the order they were declared."""
        return list(self._attributes)

    @property
    def attrs(self) -> list[Attribute]:
        """Attributes of the schema, without extensions."""
        return [attr for attr in self._attributes if isinstance(attr, Attribute)]

    @property
    def own_attrs(self) -> list[Attribute]:
        """Attributes that belong to the schema directly, without common attributes."""
        return [attr for attr in self.attrs if not attr.config.shadow]

    @property
    def extensions(self) -> list[ExtensionBinding]:
        return [item for item in self._attributes if isinstance(item, ExtensionBinding)]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._id})"

    def describe(self, basepath: str = "") -> dict[str, Any]:
        """
        Returns the schema as SCIM `Schema` resource, as specified in RFC-7643, section 7.
        """
        return {
            "schemas": [SCHEMA_DEFINITION_SCHEMA],
            "id": self._id,
            "name": self._name,
            "description": self._description,
            "attributes": [attr.to_dict() for attr in self.own_attrs],
            "meta": {"resourceType": "Schema", "location": f"{basepath}/{self._id}"},
        }

    def _split_namespace(self, name: str) -> tuple["SchemaDefinition", str, bool]:
        lowered = name.lower()
        for binding in self.extensions:
            if lowered.startswith(binding.id.lower()):
                return binding.definition, name[len(binding.id) + 1 :], True
        if lowered == self._id.lower() or lowered.startswith(f"{self._id.lower()}:"):
            return self, name[len(self._id) + 1 :], False
        raise TypeError(
            f"Schema definition '{self._id}' does not declare schema extension "
            f"for namespaced target '{name}'"
        )

    def attribute(self, name: str) -> Union[Attribute, "SchemaDefinition"]:
        """
        Returns attribute, or schema extension, by its name. Dotted names refer to
        sub-attributes, and names prefixed with schema URN refer to attributes of the schema,
        or of its extensions. Names are case-insensitive.

        Raises:
            TypeError: If the schema does not declare the attribute.

        Examples:
            >>> definition.attribute("name.familyName")
            String(familyName)
            >>> definition.attribute("urn:ietf:params:scim:schemas:core:2.0:User:userName")
            String(userName)
        """
        if name.lower().startswith("urn:"):
            definition, rest, is_extension = self._split_namespace(name)
            if not rest:
                return definition
            return definition._attribute(rest, own_only=is_extension)
        return self._attribute(name)

    def _attribute(self, name: str, own_only: bool = False) -> Attribute:
        path = name.split(".")
        target = path.pop(0)
        spent = [target]
        candidates = self.own_attrs if own_only else self.attrs
        attribute = next((a for a in candidates if a.name.lower() == target.lower()), None)
        if attribute is None:
            raise TypeError(f"Schema definition '{self._id}' does not declare attribute '{target}'")

        while path:
            if attribute.sub_attributes is None:
                raise TypeError(
                    f"Attribute '{'.'.join(spent)}' of schema '{self._id}' is not of type "
                    "'complex' and does not define any subAttributes"
                )
            target = path.pop(0)
            attribute = attribute.sub_attributes.get(target)
            if attribute is None:
                raise TypeError(
                    f"Attribute '{'.'.join(spent)}' of schema '{self._id}' does not declare "
                    f"subAttribute '{target}'"
                )
            spent.append(target)
        return attribute

    def extend(
        self,
        extension: Union["SchemaDefinition", Attribute, Iterable[Attribute]],
        required: Optional[bool] = None,
    ) -> Self:
        """
        Adds schema extension, or attributes, to the schema definition. Extensions bound to
        the provided extension are bound directly to this definition as well.

        Args:
            extension: Schema extension definition, or attributes to add.
            required: Whether the schema extension is required.

        Raises:
            TypeError: If extension, or any of the attributes, is already declared, or
                the provided value is neither a schema definition nor attributes.

        Returns:
            The definition itself, for chaining.
        """
        if isinstance(extension, SchemaDefinition):
            bound = [binding.definition for binding in self.extensions]
            if not any(extension is definition for definition in bound):
                if any(definition.id == extension.id for definition in bound):
                    raise TypeError(
                        f"Schema definition '{self._id}' already declares extension "
                        f"'{extension.id}'"
                    )
                self._attributes.append(ExtensionBinding(extension, bool(required)))
                logger.debug("Bound extension %r to schema %r", extension.id, self._id)
            for binding in extension.extensions:
                self.extend(binding.definition, binding.required)
            return self

        extensions = list(extension) if isinstance(extension, (list, tuple)) else [extension]
        if not all(isinstance(attr, Attribute) for attr in extensions):
            raise TypeError(
                "Expected 'extension' to be a SchemaDefinition or collection "
                "of Attribute instances"
            )
        for attr in extensions:
            if any(attr is item for item in self._attributes):
                continue
            if any(attr.name.lower() == item.name.lower() for item in self.attrs):
                raise TypeError(
                    f"Schema definition '{self._id}' already declares attribute '{attr.name}'"
                )
            self._attributes.append(attr)
        return self

    def _remove(self, target: Union[Attribute, ExtensionBinding]) -> None:
        for i, item in enumerate(self._attributes):
            if item is target:
                del self._attributes[i]
                return

    def truncate(self, *targets: Union[str, Attribute, "SchemaDefinition"]) -> Self:
        """
        Removes attributes, sub-attributes, or schema extensions from the definition.
        Targets are specified by name, dotted path, or instance.

        Raises:
            TypeError: If a target specified by name is not declared.

        Returns:
            The definition itself, for chaining.
        """
        for target in targets:
            if isinstance(target, (list, tuple)):
                self.truncate(*target)
            elif isinstance(target, Attribute) and any(target is item for item in self._attributes):
                self._remove(target)
            elif isinstance(target, str):
                found = self.attribute(target)
                if isinstance(found, SchemaDefinition):
                    self.truncate(found)
                    continue
                definition, path = self, target
                if target.lower().startswith("urn:"):
                    definition, path, _ = self._split_namespace(target)
                if "." not in path:
                    definition._remove(found)
                else:
                    parent = definition.attribute(path.rsplit(".", 1)[0])
                    parent.truncate(found)
            elif isinstance(target, SchemaDefinition):
                found = self.attribute(target.id)
                for binding in self.extensions:
                    if binding.definition is found:
                        self._remove(binding)
        return self

    def coerce(
        self,
        data: Mapping[str, Any],
        direction: Union[str, Direction] = Direction.BOTH,
        basepath: Optional[str] = None,
        filters: Optional[Sequence[Mapping[str, Any]]] = None,
    ) -> dict[str, Any]:
        """
        Coerces the data, making sure it conforms to the schema's attributes and extensions.

        Args:
            data: Data to coerce.
            direction: Whether the data is inbound (`in`), outbound (`out`), or both.
            basepath: Base path of the resource, used to populate `meta.location`.
            filters: Attribute filters, e.g. parsed `attributes` query parameter. Only
                the first expression is used.

        Returns:
            Coerced data, keyed by attribute names and extension URNs.

        Raises:
            TypeError: If the data does not conform to the definition.
        """
        return self._coerce(data, direction, basepath, filters, self._attributes)

    def _coerce(
        self,
        data: Any,
        direction: Union[str, Direction],
        basepath: Optional[str],
        filters: Optional[Sequence[Mapping[str, Any]]],
        attributes: list[Union[Attribute, ExtensionBinding]],
    ) -> dict[str, Any]:
        if not isinstance(data, Mapping) or is_collection(data):
            raise TypeError(
                "Expected 'data' parameter to be an object in SchemaDefinition instance"
            )

        direction = str(direction)
        expression_filter = filters[0] if filters else None
        keys = [key.lower() for key in data if isinstance(key, str)]
        extension_ids = [
            binding.id
            for binding in self.extensions
            if get_value(data, binding.id)
            or any(key.startswith(f"{binding.id.lower()}:") for key in keys)
        ]
        listed = get_value(data, "schemas")
        schemas = list(
            dict.fromkeys(
                [self._id, *extension_ids, *(listed if isinstance(listed, (list, tuple)) else [])]
            )
        )
        meta = get_value(data, "meta")
        meta = {**(meta if isinstance(meta, Mapping) else {}), "resourceType": self._name}
        if isinstance(basepath, str):
            resource_id = get_value(data, "id")
            meta["location"] = f"{basepath}/{resource_id}" if resource_id else basepath
        source = {key.lower(): value for key, value in data.items() if isinstance(key, str)}
        source["schemas"] = schemas
        source["meta"] = meta

        target: dict[str, Any] = {}
        for item in attributes:
            if isinstance(item, Attribute):
                value = item.coerce(source.get(item.name.lower()), direction)
                if value is not None:
                    target[item.name] = value
                continue

            prefix = f"{item.id.lower()}:"
            namespaced = _nest(
                {k[len(prefix) :]: v for k, v in source.items() if k.startswith(prefix)}
            )
            value = source.get(item.id.lower())
            if value is not None and not isinstance(value, Mapping):
                raise TypeError(
                    "Expected 'data' parameter to be an object in SchemaDefinition instance "
                    f"in schema extension '{item.id}'"
                )
            mixed = _merge(_merge({}, value or {}), namespaced)
            if item.required and not mixed:
                raise TypeError(f"Missing values for required schema extension '{item.id}'")
            if item.required or mixed:
                extension_filter = None
                if expression_filter:
                    extension_filter = [
                        {
                            key[len(item.id) + 1 :]: expr
                            for key, expr in expression_filter.items()
                            if key.lower().startswith(f"{item.id.lower()}:")
                        }
                    ]
                try:
                    target[item.id] = item.definition.coerce_extension(
                        mixed, direction, basepath, extension_filter
                    )
                except TypeError as e:
                    raise extend_message(e, f" in schema extension '{item.id}'")

        if not expression_filter:
            return target
        return self._filter(dict(expression_filter), target, attributes)

    def coerce_extension(
        self,
        data: Mapping[str, Any],
        direction: Union[str, Direction] = Direction.BOTH,
        basepath: Optional[str] = None,
        filters: Optional[Sequence[Mapping[str, Any]]] = None,
    ) -> dict[str, Any]:
        """
        Coerces the data as a schema extension, i.e. only with attributes that belong
        to the schema directly.
        """
        return self._coerce(data, direction, basepath, filters, list(self.own_attrs))

    def _filter(
        self,
        expression: Mapping[str, Any],
        data: Any,
        attributes: list[Union[Attribute, ExtensionBinding]],
        prefix: str = "",
    ) -> Any:
        if not expression:
            return data

        inclusions: list[str] = []
        exclusions: list[str] = []
        for key, expr in expression.items():
            try:
                attribute = self.attribute(f"{prefix}.{key}" if prefix else key)
            except TypeError:
                continue
            is_extension = isinstance(attribute, SchemaDefinition)
            is_urn = key.lower().startswith("urn:")
            if isinstance(expr, (list, tuple)) and (is_extension or not is_urn):
                name = attribute.id if is_extension else attribute.name
                conditions = [c[0] if isinstance(c, (list, tuple)) else c for c in expr]
                if "pr" in conditions:
                    inclusions.append(name)
                elif "np" in conditions:
                    exclusions.append(name)

        if not inclusions and is_excluded_attributes_filter(expression):
            if prefix:
                candidates = list(self.attribute(prefix).sub_attributes)
            else:
                candidates = [item for item in attributes if isinstance(item, Attribute)]
            inclusions.extend(attr.name for attr in candidates if attr.name not in exclusions)

        target: dict[str, Any] = {}
        for key, value in data.items():
            attribute = self.attribute(f"{prefix}.{key}" if prefix else key)
            expr_key = find_key(expression, key)
            expr = expression[expr_key] if expr_key is not None else None
            if isinstance(attribute, SchemaDefinition):
                if (len(value) and not isinstance(expr, (list, tuple))) or (
                    expr is not None and key in inclusions
                ):
                    target[key] = value
                continue

            config = attribute.config
            if config.returned == AttributeReturn.ALWAYS:
                target[key] = value
            elif config.never_returned:
                continue
            elif isinstance(expr, Mapping) and isinstance(attribute, Complex):
                filtered = self._filter_complex(expr, value, attributes, key)
                if filtered is not None and (not config.multi_valued or len(filtered)):
                    target[key] = filtered
            elif attribute.name in inclusions and value is not None:
                target[key] = value
        return target

    def _filter_complex(
        self,
        expression: Mapping[str, Any],
        value: Any,
        attributes: list[Union[Attribute, ExtensionBinding]],
        key: str,
    ) -> Any:
        if isinstance(value, MultiValue):
            items = []
            for item in value:
                kept = self._filter(expression, item, attributes, key)
                if kept:
                    items.append(item.subset(kept))
            return MultiValue(value.attribute, items)
        if isinstance(value, ComplexValue):
            return value.subset(self._filter(expression, value, attributes, key))
        return value


class ExtensionValue(MutableMapping):
    """
    Value of a schema extension within a schema instance. Only attributes declared by
    the extension can be read or written, and every write is coerced.
    """

    def __init__(
        self,
        definition: SchemaDefinition,
        data: Mapping[str, Any],
        direction: str = Direction.BOTH,
    ):
        self._definition = definition
        self._direction = str(direction)
        self._data = dict(data)

    @property
    def definition(self) -> SchemaDefinition:
        return self._definition

    def _attr(self, key: str) -> Attribute:
        attr = next(
            (
                a
                for a in self._definition.own_attrs
                if isinstance(key, str) and a.name.lower() == key.lower()
            ),
            None,
        )
        if attr is None:
            raise UndeclaredAttributeError(
                key,
                f"Schema extension '{self._definition.id}' does not declare attribute '{key}'",
            )
        return attr

    def __getitem__(self, key: str) -> Any:
        return self._data.get(self._attr(key).name)

    def __setitem__(self, key: str, value: Any) -> None:
        attr = self._attr(key)
        _check_mutability(attr, self._data.get(attr.name), value)
        try:
            coerced = attr.coerce(value, self._direction)
        except TypeError as e:
            raise ScimError(400, ScimErrorType.INVALID_VALUE, str(e))
        if coerced is None:
            self._data.pop(attr.name, None)
        else:
            self._data[attr.name] = coerced

    def __delitem__(self, key: str) -> None:
        self[key] = None

    def __contains__(self, key: Any) -> bool:
        if not isinstance(key, str):
            return False
        return find_key(self._data, key) is not None

    def __iter__(self) -> Iterator[str]:
        return (attr.name for attr in self._definition.own_attrs if attr.name in self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._data})"

    def to_dict(self) -> dict[str, Any]:
        return _to_dict(self._definition, self)


def _to_dict(definition: SchemaDefinition, values: Mapping[str, Any]) -> dict[str, Any]:
    output = {}
    for name, value in values.items():
        attribute = definition.attribute(name)
        if isinstance(attribute, Attribute) and attribute.config.never_returned:
            continue
        value = dump(value)
        if value is not None and value != {} and value != []:
            output[name] = value
    return output


def _check_mutability(attr: Attribute, current: Any, value: Any) -> None:
    if isinstance(current, ComplexValue) and not current:
        current = None
    if attr.config.mutability in _IMMUTABLE and current is not None and current != value:
        raise ScimError(
            400,
            ScimErrorType.MUTABILITY,
            f"Attribute '{attr.name}' already defined and is not mutable",
        )


class Schema(MutableMapping):
    """
    Instance of a schema, e.g. a single user. Subclasses specify `definition` class attribute.

    Values are read and written by attribute name, extension URN, or URN-prefixed attribute
    name of an extension, all case-insensitive. Every write is coerced by the attribute, and
    checked against its mutability. Reading a declared attribute that has no value
    returns `None`.

    Args:
        data: Data of the instance. Can be another instance of the same schema.
        direction: Whether the data is inbound (`in`), outbound (`out`), or both.
        basepath: Base path of the resource, used to populate `meta.location`.
        filters: Attribute filters, e.g. parsed `attributes` query parameter.

    Raises:
        ScimError: If `schemas` in the data do not include the schema, or any of required
            schema extensions.
        TypeError: If the data does not conform to the definition.

    Examples:
        >>> class User(Schema):
        >>>     definition = SchemaDefinition("User", "urn:ietf:params:scim:schemas:core:2.0:User")
        >>> user = User({"userName": "bjensen"})
        >>> user["USERNAME"]
        'bjensen'
    """

    definition: ClassVar[SchemaDefinition]

    def __init__(
        self,
        data: Optional[Mapping[str, Any]] = None,
        direction: Union[str, Direction] = Direction.BOTH,
        basepath: Optional[str] = None,
        filters: Optional[Sequence[Mapping[str, Any]]] = None,
    ):
        definition = getattr(type(self), "definition", None)
        if not isinstance(definition, SchemaDefinition):
            raise TypeError(
                f"Class attribute 'definition' must be specified by schema '{type(self).__name__}'"
            )
        if isinstance(data, Schema):
            data = unwrap(data)
        data = {} if data is None else data

        schemas = get_value(data, "schemas") if isinstance(data, Mapping) else None
        if isinstance(schemas, (list, tuple)) and schemas:
            if definition.id not in schemas:
                raise ScimError(
                    400,
                    ScimErrorType.INVALID_SYNTAX,
                    "The request body supplied a schema type that is incompatible "
                    "with this resource",
                )
            for binding in definition.extensions:
                if binding.required and binding.id not in schemas:
                    raise ScimError(
                        400,
                        ScimErrorType.INVALID_VALUE,
                        f"The request body is missing schema extension '{binding.id}' "
                        "required by this resource type",
                    )

        self._definition = definition
        self._direction = str(direction)
        self._data: dict[str, Any] = {}
        for key, value in definition.coerce(data, direction, basepath, filters).items():
            if isinstance(value, Mapping) and not isinstance(value, ComplexValue):
                value = self._extension_value(key, value)
            self._data[key] = value

    @classmethod
    def extend(
        cls,
        extension: Union[type["Schema"], SchemaDefinition, Attribute, Iterable[Attribute]],
        required: bool = False,
    ) -> None:
        """
        Adds schema extension, or attributes, to the schema's definition.
        """
        if isinstance(extension, type) and issubclass(extension, Schema):
            extension = extension.definition
        elif not isinstance(extension, SchemaDefinition):
            items = list(extension) if isinstance(extension, (list, tuple)) else [extension]
            if not all(isinstance(item, Attribute) for item in items):
                raise TypeError(
                    "Expected 'extension' to be a Schema class, SchemaDefinition instance, "
                    "or collection of Attribute instances"
                )
        cls.definition.extend(extension, required)

    @classmethod
    def truncate(cls, *targets: Union[str, Attribute, SchemaDefinition, type["Schema"]]) -> None:
        """
        Removes attributes, or schema extensions, from the schema's definition.
        """
        cls.definition.truncate(
            *[
                (
                    target.definition
                    if isinstance(target, type) and issubclass(target, Schema)
                    else target
                )
                for target in targets
            ]
        )

    @property
    def direction(self) -> str:
        return self._direction

    def _extension_value(self, extension_id: str, value: Mapping[str, Any]) -> ExtensionValue:
        binding = next(b for b in self._definition.extensions if b.id == extension_id)
        return ExtensionValue(binding.definition, value, self._direction)

    def _resolve(self, key: str) -> tuple[str, Any, str]:
        if isinstance(key, str):
            lowered = key.lower()
            for binding in self._definition.extensions:
                if lowered == binding.id.lower():
                    return "extension", binding, ""
                if lowered.startswith(f"{binding.id.lower()}:"):
                    return "namespaced", binding, key[len(binding.id) + 1 :]
            if lowered.startswith(f"{self._definition.id.lower()}:"):
                key = key[len(self._definition.id) + 1 :]
                lowered = key.lower()
            for attr in self._definition.attrs:
                if attr.name.lower() == lowered and "." not in key:
                    return "attribute", attr, ""
        raise UndeclaredAttributeError(
            key, f"Schema '{self._definition.id}' does not declare attribute '{key}'"
        )

    def __getitem__(self, key: str) -> Any:
        kind, item, path = self._resolve(key)
        if kind == "attribute":
            return self._data.get(item.name)
        if kind == "extension":
            return self._data.get(item.id)
        target = self._data.get(item.id)
        for part in path.split("."):
            if target is None:
                return None
            target = target[part]
        return target

    def __setitem__(self, key: str, value: Any) -> None:
        kind, item, path = self._resolve(key)
        if kind == "attribute":
            _check_mutability(item, self._data.get(item.name), value)
            try:
                coerced = item.coerce(value, self._direction)
            except TypeError as e:
                raise ScimError(400, ScimErrorType.INVALID_VALUE, str(e))
            self._store(item.name, coerced)
        elif kind == "extension":
            if value is None:
                self._data.pop(item.id, None)
                return
            try:
                coerced = item.definition.coerce_extension(value, self._direction)
            except TypeError as e:
                raise ScimError(400, ScimErrorType.INVALID_VALUE, str(e))
            self._store(item.id, ExtensionValue(item.definition, coerced, self._direction))
        else:
            data = unwrap(self._data.get(item.id)) or {}
            *parents, leaf = path.split(".")
            target = data
            for part in parents:
                found = find_key(target, part)
                nested = target.get(found) if found is not None else None
                nested = dict(nested) if isinstance(nested, Mapping) else {}
                target[found or part] = nested
                target = nested
            found = find_key(target, leaf)
            target[found or leaf] = value
            self[item.id] = data

    def _store(self, key: str, value: Any) -> None:
        if value is None:
            self._data.pop(key, None)
        else:
            self._data[key] = value

    def __delitem__(self, key: str) -> None:
        self[key] = None

    def __contains__(self, key: Any) -> bool:
        try:
            return self[key] is not None
        except KeyError:
            return False

    def __iter__(self) -> Iterator[str]:
        names = [attr.name for attr in self._definition.attrs]
        names.extend(binding.id for binding in self._definition.extensions)
        return (name for name in names if name in self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._data})"

    def to_dict(self) -> dict[str, Any]:
        """
        Returns plain representation of the instance. Attributes that are never returned,
        and attributes without value, are omitted.
        """
        return _to_dict(self._definition, self)
