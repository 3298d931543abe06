import inspect
import logging
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, NamedTuple, Optional, Union

from scimkit.data.attrs import Attribute
from scimkit.data.filter import Filter
from scimkit.data.lexer import split_path, split_value_filter
from scimkit.data.schemas import Schema, SchemaDefinition
from scimkit.data.utils import is_collection
from scimkit.data.values import MultiValue, dump, unwrap
from scimkit.error import ScimError, ScimErrorType, UndeclaredAttributeError, extend_message

logger = logging.getLogger(__name__)

VALID_OPS = ("add", "remove", "replace")

Finalise = Callable[[Schema], Union[Mapping[str, Any], Awaitable[Mapping[str, Any]]]]


class _Resolved(NamedTuple):
    targets: list[Any]
    property: Optional[str]
    multi_valued: bool
    complex: bool


def _suffix(op: str, index: int) -> str:
    return f" for '{op}' op of operation {index} in PatchOp request body"


def _snapshot(resource: Schema) -> Any:
    data = unwrap(resource)
    data.pop("meta", None)
    return dump(data)


class PatchOp:
    """
    SCIM PatchOp message, identified by `urn:ietf:params:scim:api:messages:2.0:PatchOp` URI,
    as specified in [RFC-7644, section 3.5.2](https://www.rfc-editor.org/rfc/rfc7644#section-3.5.2).

    The request body is validated when the message is created. Operations are applied to
    a copy of the resource, so the resource itself is never modified.

    Args:
        request: PatchOp request body.

    Raises:
        ScimError: If the request body is not a valid PatchOp message.

    Examples:
        >>> message = PatchOp({
        >>>     "schemas": ["urn:ietf:params:scim:api:messages:2.0:PatchOp"],
        >>>     "Operations": [{"op": "add", "path": "emails", "value": {"value": "a@b.com"}}],
        >>> })
        >>> patched = await message.apply(user)
    """

    id = "urn:ietf:params:scim:api:messages:2.0:PatchOp"

    def __init__(self, request: Mapping[str, Any]):
        if not isinstance(request, Mapping):
            raise ScimError(
                400,
                ScimErrorType.INVALID_SYNTAX,
                "PatchOp request body must be a single complex object value",
            )
        schemas = request.get("schemas") or []
        operations = request.get("Operations") or []
        if not isinstance(schemas, (list, tuple)) or list(schemas) != [self.id]:
            raise ScimError(
                400,
                ScimErrorType.INVALID_SYNTAX,
                f"PatchOp request body messages must exclusively specify schema as '{self.id}'",
            )
        if not isinstance(operations, (list, tuple)) or not operations:
            raise ScimError(
                400,
                ScimErrorType.INVALID_VALUE,
                "PatchOp request body must contain 'Operations' attribute with at least "
                "one operation",
            )

        for index, operation in enumerate(operations, start=1):
            if not isinstance(operation, Mapping):
                raise ScimError(
                    400,
                    ScimErrorType.INVALID_SYNTAX,
                    f"Expected operation {index} to be a single complex object value "
                    "in PatchOp request body",
                )
            op = operation.get("op")
            path = operation.get("path")
            if op is None:
                raise ScimError(
                    400,
                    ScimErrorType.INVALID_VALUE,
                    f"Missing required attribute 'op' from operation {index} "
                    "in PatchOp request body",
                )
            if not isinstance(op, str) or op.lower() not in VALID_OPS:
                raise ScimError(
                    400,
                    ScimErrorType.INVALID_SYNTAX,
                    f"Invalid operation '{op}' for operation {index} in PatchOp request body",
                )
            if op.lower() == "add" and "value" not in operation:
                raise ScimError(
                    400,
                    ScimErrorType.INVALID_VALUE,
                    f"Missing required attribute 'value'{_suffix('add', index)}",
                )
            if op.lower() == "remove" and path is None:
                raise ScimError(
                    400,
                    ScimErrorType.NO_TARGET,
                    f"Missing required attribute 'path'{_suffix('remove', index)}",
                )
            if path is not None and (not isinstance(path, str) or not path):
                raise ScimError(
                    400,
                    ScimErrorType.INVALID_PATH,
                    f"Invalid path '{path}' for operation {index} in PatchOp request body",
                )

        self._operations = [dict(operation) for operation in operations]
        self._definition: Optional[SchemaDefinition] = None
        self._target: Optional[Schema] = None

    @property
    def operations(self) -> list[dict[str, Any]]:
        return self._operations

    def to_dict(self) -> dict[str, Any]:
        return {"schemas": [self.id], "Operations": [dict(op) for op in self._operations]}

    async def apply(
        self, resource: Schema, finalise: Optional[Finalise] = None
    ) -> Optional[Schema]:
        """
        Applies the operations to a copy of the resource.

        Args:
            resource: The resource to patch.
            finalise: Called with the patched resource once all operations are applied.
                Returned data, e.g. the resource after it is persisted, is coerced again and
                used as the final representation. Can be a coroutine function.

        Returns:
            The patched resource, or `None` if the operations did not change the resource,
            ignoring its `meta` attribute.

        Raises:
            TypeError: If the resource is not a schema instance.
            ScimError: If any of the operations can not be applied.
        """
        if not isinstance(resource, Schema):
            raise TypeError("PatchOp expected 'resource' to be an instance of Schema")

        self._definition = type(resource).definition
        self._target = type(resource)(resource, resource.direction)

        for index, operation in enumerate(self._operations, start=1):
            op = operation["op"].lower()
            path = operation.get("path")
            logger.debug("Applying '%s' op of operation %d with path %r", op, index, path)
            if op == "add":
                self._add(index, path, operation.get("value"))
            elif op == "remove":
                self._remove(index, path, operation.get("value"))
            else:
                self._replace(index, path, operation.get("value"))

        if finalise is not None:
            data = finalise(self._target)
            if inspect.isawaitable(data):
                data = await data
            self._target = type(resource)(data, "out")

        if _snapshot(resource) == _snapshot(self._target):
            logger.debug("PatchOp operations did not change the resource")
            return None
        return self._target

    def _attribute(self, index: int, path: str, op: str) -> Union[Attribute, SchemaDefinition]:
        stripped = ".".join(split_value_filter(part)[0] for part in split_path(path))
        try:
            return self._definition.attribute(stripped)
        except TypeError:
            raise ScimError(
                400,
                ScimErrorType.INVALID_PATH,
                f"Invalid path '{path}'{_suffix(op, index)}",
            )

    def _resolve(self, index: int, path: str, op: str) -> _Resolved:
        parts = split_path(path) or [path]
        attribute = self._attribute(index, path, op)
        multi_valued = isinstance(attribute, Attribute) and attribute.config.multi_valued
        targets: list[Any] = [self._target]
        spent: list[str] = []
        property_: Optional[str] = None

        for i, part in enumerate(parts):
            key, value_filter = split_value_filter(part)
            spent.append(key)
            is_last = i == len(parts) - 1
            if is_last:
                property_ = key if value_filter is None else None
                multi_valued = multi_valued and value_filter is None

            matcher = None
            if value_filter is not None:
                try:
                    matcher = Filter(value_filter, self._definition.attribute(".".join(spent)))
                except ScimError as ex:
                    raise extend_message(ex, _suffix(op, index))

            current, targets = targets, []
            for target in current:
                if matcher is not None:
                    values = target.get(key)
                    if is_collection(values):
                        targets.extend(matcher.match(values))
                elif is_last:
                    targets.append(target)
                else:
                    value = target.get(key)
                    if value is None and op == "add":
                        try:
                            target[key] = {}
                        except (ScimError, TypeError):
                            continue
                        value = target.get(key)
                    if isinstance(value, MultiValue):
                        targets.extend(value)
                    elif value is not None:
                        targets.append(value)

        if not targets and op != "remove":
            raise ScimError(
                400,
                ScimErrorType.NO_TARGET,
                f"Filter '{path}' does not match any values{_suffix(op, index)}",
            )
        return _Resolved(
            targets=targets,
            property=property_,
            multi_valued=multi_valued,
            complex=isinstance(attribute, SchemaDefinition) or attribute.type == "complex",
        )

    def _add(self, index: int, path: Optional[str], value: Any) -> None:
        if path is None:
            if not isinstance(value, Mapping):
                raise ScimError(
                    400,
                    ScimErrorType.INVALID_VALUE,
                    "Attribute 'value' must be an object when 'path' is empty"
                    f"{_suffix('add', index)}",
                )
            for key, item in value.items():
                if isinstance(item, (Mapping, list, tuple)):
                    self._add(index, key, item)
                    continue
                try:
                    self._target[key] = item
                except UndeclaredAttributeError as ex:
                    raise ScimError(
                        400,
                        ScimErrorType.INVALID_PATH,
                        f"Invalid attribute '{ex.name}'{_suffix('add', index)}",
                    )
                except ScimError as ex:
                    raise extend_message(ex, _suffix("add", index))
            return

        resolved = self._resolve(index, path, "add")
        for target in resolved.targets:
            try:
                self._add_to(target, resolved, value)
            except UndeclaredAttributeError as ex:
                raise ScimError(
                    400,
                    ScimErrorType.INVALID_PATH,
                    f"Invalid attribute '{ex.name}' of path '{path}'{_suffix('add', index)}",
                )
            except ScimError as ex:
                raise extend_message(ex, _suffix("add", index))
            except TypeError as ex:
                raise ScimError(400, ScimErrorType.INVALID_VALUE, f"{ex}{_suffix('add', index)}")

    @staticmethod
    def _add_to(target: Any, resolved: _Resolved, value: Any) -> None:
        property_ = resolved.property
        if resolved.multi_valued:
            values = list(value) if isinstance(value, (list, tuple)) else [value]
            current = target.get(property_)
            if isinstance(current, MultiValue):
                current.extend(values)
            else:
                target[property_] = values
        elif resolved.complex and property_ is None:
            if not isinstance(value, Mapping):
                raise TypeError(
                    f"Attribute 'value' must be an object when targeting complex values, "
                    f"found type '{type(value).__name__}'"
                )
            for key, item in value.items():
                target[key] = item
        elif resolved.complex:
            current = target.get(property_)
            if isinstance(current, Mapping) and isinstance(value, Mapping):
                for key, item in value.items():
                    current[key] = item
            else:
                target[property_] = value
        else:
            target[property_] = value

    def _remove(self, index: int, path: str, value: Any = None) -> None:
        resolved = self._resolve(index, path, "remove")
        if resolved.property is None:
            parts = split_path(path) or [path]
            parts[-1] = split_value_filter(parts[-1])[0]
            if resolved.targets:
                self._remove(index, ".".join(parts), resolved.targets)
            return

        for target in resolved.targets:
            try:
                self._remove_from(target, resolved, value)
            except UndeclaredAttributeError as ex:
                raise ScimError(
                    400,
                    ScimErrorType.INVALID_PATH,
                    f"Invalid attribute '{ex.name}' of path '{path}'{_suffix('remove', index)}",
                )
            except ScimError as ex:
                raise extend_message(ex, _suffix("remove", index))
            except TypeError as ex:
                raise ScimError(
                    400, ScimErrorType.INVALID_VALUE, f"{ex}{_suffix('remove', index)}"
                )

    @staticmethod
    def _remove_from(target: Any, resolved: _Resolved, value: Any) -> None:
        property_ = resolved.property
        if value is None or not resolved.multi_valued:
            target[property_] = None
            return

        current = list(target.get(property_) or [])
        values = list(value) if isinstance(value, (list, tuple)) else [value]
        is_known = all(any(item is existing for existing in current) for item in values)
        if not resolved.complex or is_known:
            removals = values
        else:
            expressions = [
                {key: ["eq", item] for key, item in dict(v).items() if item is not None}
                for v in values
                if isinstance(v, Mapping)
            ]
            expressions = [expression for expression in expressions if expression]
            removals = Filter(expressions).match(current) if expressions else []

        kept = [
            item
            for item in current
            if not any(item is removal or item == removal for removal in removals)
        ]
        target[property_] = kept or None

    def _replace(self, index: int, path: Optional[str], value: Any) -> None:
        try:
            if path is not None:
                try:
                    self._remove(index, path)
                except ScimError:
                    pass
            try:
                self._add(index, path, value)
            except ScimError as ex:
                if ex.scim_type != ScimErrorType.NO_TARGET or path is None:
                    raise
                if not self._add_to_parent(index, path, value):
                    raise
        except ScimError as ex:
            message = ex.message.replace("for 'add' op", "for 'replace' op")
            message = message.replace("for 'remove' op", "for 'replace' op")
            ex.message = message
            ex.args = (message,)
            raise

    def _add_to_parent(self, index: int, path: str, value: Any) -> bool:
        """
        Adds new value to the multi-valued attribute targeted by the filtered path,
        built from equality comparisons of the filter, e.g. replacing
        `emails[type eq "work"].value` adds `{"type": "work", "value": ...}` to `emails`.
        Only filters consisting of equality comparisons are supported.
        """
        parts = split_path(path) or [path]
        position = next(
            (i for i in reversed(range(len(parts))) if split_value_filter(parts[i])[1] is not None),
            None,
        )
        if position is None:
            return False

        name, value_filter = split_value_filter(parts[position])
        expressions = Filter(value_filter).to_list()
        if len(expressions) != 1:
            return False
        base: dict[str, Any] = {}
        for key, expression in expressions[0].items():
            if not isinstance(expression, list) or len(expression) != 2 or expression[0] != "eq":
                return False
            base[key] = expression[1]

        rest = parts[position + 1 :]
        if len(rest) == 1:
            item = {**base, rest[0]: value}
        elif not rest and isinstance(value, Mapping):
            item = {**base, **value}
        else:
            return False
        self._add(index, ".".join([*parts[:position], name]), [item])
        return True
