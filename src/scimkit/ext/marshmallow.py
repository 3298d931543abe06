from collections.abc import Mapping
from typing import Any, Iterable, Optional, Union

import marshmallow

from scimkit.constants import Direction
from scimkit.data import attrs
from scimkit.data.attrs import Attribute
from scimkit.data.schemas import Schema, SchemaDefinition
from scimkit.error import ScimError

_marshmallow_field_by_attr_type: dict[type[attrs.Attribute], type[marshmallow.fields.Field]] = {
    attrs.Boolean: marshmallow.fields.Boolean,
    attrs.Integer: marshmallow.fields.Integer,
    attrs.Decimal: marshmallow.fields.Float,
    attrs.DateTime: marshmallow.fields.String,
    attrs.Binary: marshmallow.fields.String,
    attrs.Reference: marshmallow.fields.String,
    attrs.String: marshmallow.fields.String,
}
_initialized = False


def initialize(
    fields_by_attrs: Optional[dict[type[attrs.Attribute], type[marshmallow.fields.Field]]] = None,
):
    """
    Initializes the `marshmallow` extension. Used to specify mapping of scimkit attributes to
    marshmallow fields, used during data loading.

    Default mapping is as follows:

        scimkit.data.Boolean    ---> marshmallow.fields.Boolean
        scimkit.data.Integer    ---> marshmallow.fields.Integer
        scimkit.data.Decimal    ---> marshmallow.fields.Float
        scimkit.data.DateTime   ---> marshmallow.fields.String
        scimkit.data.Binary     ---> marshmallow.fields.String
        scimkit.data.Reference  ---> marshmallow.fields.String
        scimkit.data.String     ---> marshmallow.fields.String

    `scimkit.data.Complex` is always converted to `marshmallow.fields.Nested`.

    Raises:
        RuntimeError: When attempt to initialize the extension second time.
    """
    global _initialized
    if _initialized:
        raise RuntimeError("marshmallow extension has been already initialized")

    if fields_by_attrs is not None:
        _marshmallow_field_by_attr_type.update(fields_by_attrs)
    _initialized = True


def _get_fields(
    attrs_: Iterable[Attribute], direction: str
) -> dict[str, marshmallow.fields.Field]:
    fields_: dict[str, marshmallow.fields.Field] = {}
    for attr in attrs_:
        if not attr.participates(direction):
            continue
        fields_[attr.name] = _get_field(attr, direction)
    return fields_


def _get_field(attr: Attribute, direction: str) -> marshmallow.fields.Field:
    kwargs = {
        "data_key": attr.name,
        "required": attr.config.required and not attr.config.shadow,
        "allow_none": True,
    }
    if attr.config.multi_valued:
        return marshmallow.fields.List(_get_item_field(attr, direction), **kwargs)
    if isinstance(attr, attrs.Complex):
        return marshmallow.fields.Nested(
            _get_fields(attr.sub_attributes, direction), unknown=marshmallow.EXCLUDE, **kwargs
        )
    return _marshmallow_field_by_attr_type[type(attr)](**kwargs)


def _get_item_field(attr: Attribute, direction: str) -> marshmallow.fields.Field:
    if isinstance(attr, attrs.Complex):
        return marshmallow.fields.Nested(
            _get_fields(attr.sub_attributes, direction), unknown=marshmallow.EXCLUDE
        )
    return _marshmallow_field_by_attr_type[type(attr)](allow_none=True)


def _get_extension_fields(
    definition: SchemaDefinition, direction: str
) -> dict[str, marshmallow.fields.Field]:
    fields_: dict[str, marshmallow.fields.Field] = {}
    for binding in definition.extensions:
        fields_[binding.id] = marshmallow.fields.Nested(
            _get_fields(binding.definition.own_attrs, direction),
            data_key=binding.id,
            unknown=marshmallow.EXCLUDE,
        )
    return fields_


def _canonical_keys(attrs_: Iterable[Attribute], data: Any) -> Any:
    if not isinstance(data, Mapping):
        return data
    by_name = {attr.name.lower(): attr for attr in attrs_}
    output = {}
    for key, value in data.items():
        attr = by_name.get(key.lower()) if isinstance(key, str) else None
        if attr is None:
            output[key] = value
            continue
        if isinstance(attr, attrs.Complex):
            if isinstance(value, (list, tuple)):
                value = [_canonical_keys(attr.sub_attributes, item) for item in value]
            else:
                value = _canonical_keys(attr.sub_attributes, value)
        output[attr.name] = value
    return output


def _to_validation_error(error: Union[TypeError, ScimError]) -> marshmallow.ValidationError:
    return marshmallow.ValidationError(str(error))


def create_schema(
    schema_cls: type[Schema],
    direction: Union[str, Direction] = Direction.IN,
) -> type[marshmallow.Schema]:
    """
    Creates `marshmallow.Schema` class, whose fields mirror the definition of the provided
    schema class. Loaded data is coerced by the schema definition, and loading results in
    the schema instance.

    Keys of the loaded data are matched with attribute names ignoring case. Keys that do not
    correspond to any field are passed to coercion as received.

    Args:
        schema_cls: Schema class, e.g. `User`.
        direction: Whether the loaded data is inbound (`in`), or outbound (`out`).

    Returns:
        `marshmallow.Schema` subclass.

    Examples:
        >>> UserSchema = create_schema(User)
        >>> user = UserSchema().load({"userName": "bjensen"})
        >>> user["userName"]
        'bjensen'
    """
    if not isinstance(schema_cls, type) or not issubclass(schema_cls, Schema):
        raise TypeError("Expected 'schema_cls' to be a Schema class")

    direction = str(direction)
    definition = schema_cls.definition
    fields_ = {
        **_get_fields(definition.attrs, direction),
        **_get_extension_fields(definition, direction),
    }

    def _pre_load(_, data: Any, **__) -> Any:
        return _canonical_keys(definition.attrs, data)

    def _validate_coercion(_, __, original_data: Any, **___) -> None:
        try:
            definition.coerce(original_data, direction)
        except (TypeError, ScimError) as e:
            raise _to_validation_error(e)

    def _post_load(_, __, original_data: Any, **___) -> Schema:
        try:
            return schema_cls(original_data, direction)
        except (TypeError, ScimError) as e:
            raise _to_validation_error(e)

    class Meta:
        unknown = marshmallow.EXCLUDE

    return type(
        f"{schema_cls.__name__}Schema",
        (marshmallow.Schema,),
        {
            **fields_,
            "Meta": Meta,
            "_pre_load": marshmallow.pre_load(_pre_load),
            "_validate_coercion": marshmallow.validates_schema(
                _validate_coercion, pass_original=True
            ),
            "_post_load": marshmallow.post_load(_post_load, pass_original=True),
        },
    )
