import re

import pytest

from scimkit.data.attrs import Boolean, Complex, Integer, String
from scimkit.data.filter import Filter
from scimkit.data.schemas import ExtensionBinding, Schema, SchemaDefinition
from scimkit.data.values import ComplexValue, MultiValue, dump
from scimkit.error import ScimError, ScimErrorType, UndeclaredAttributeError
from tests.conftest import CORE_ID, EXTENSION_ID, create_fake_extension


@pytest.mark.parametrize(
    ("args", "expected_message"),
    (
        (
            ("Fake", "urn:bad:Fake"),
            "Invalid SCIM schema URN namespace 'urn:bad:Fake' in SchemaDefinition instantiation",
        ),
        (
            ("", CORE_ID),
            "Expected 'name' to be a non-empty string in SchemaDefinition instantiation",
        ),
        (
            (None, CORE_ID),
            "Required parameter 'name' missing from SchemaDefinition instantiation",
        ),
        (
            ("Fake", None),
            "Required parameter 'id' missing from SchemaDefinition instantiation",
        ),
        (
            ("Fake", CORE_ID, 42),
            "Expected 'description' to be a string in SchemaDefinition instantiation",
        ),
    ),
)
def test_schema_definition_parameters_are_validated(args, expected_message):
    with pytest.raises(TypeError, match=re.escape(expected_message)):
        SchemaDefinition(*args)


def test_common_attributes_are_added_to_schema_definition(fake_definition):
    assert [attr.name for attr in fake_definition.attrs][:4] == [
        "schemas",
        "id",
        "externalId",
        "meta",
    ]
    assert "id" not in [attr.name for attr in fake_definition.own_attrs]


def test_schema_definition_is_described(fake_definition):
    description = fake_definition.describe("/Schemas")

    assert description["schemas"] == ["urn:ietf:params:scim:schemas:core:2.0:Schema"]
    assert description["id"] == CORE_ID
    assert description["name"] == "Fake"
    assert description["description"] == "Schema for tests"
    assert description["meta"] == {"resourceType": "Schema", "location": f"/Schemas/{CORE_ID}"}
    assert [attr["name"] for attr in description["attributes"]] == [
        attr.name for attr in fake_definition.own_attrs
    ]


@pytest.mark.parametrize(
    ("name", "expected_type", "expected_name"),
    (
        ("userName", String, "userName"),
        ("USERNAME", String, "userName"),
        ("C.VALUE", String, "value"),
        ("meta.resourceType", String, "resourceType"),
        (f"{CORE_ID}:userName", String, "userName"),
        (f"{CORE_ID}:c_mv.primary", Boolean, "primary"),
    ),
)
def test_attribute_is_found_by_name(fake_definition, name, expected_type, expected_name):
    attr = fake_definition.attribute(name)

    assert isinstance(attr, expected_type)
    assert attr.name == expected_name


@pytest.mark.parametrize(
    ("name", "expected_message"),
    (
        ("unknown", f"Schema definition '{CORE_ID}' does not declare attribute 'unknown'"),
        (
            "userName.value",
            f"Attribute 'userName' of schema '{CORE_ID}' is not of type 'complex' "
            "and does not define any subAttributes",
        ),
        (
            "c.unknown",
            f"Attribute 'c' of schema '{CORE_ID}' does not declare subAttribute 'unknown'",
        ),
        (
            "urn:ietf:params:scim:schemas:other:2.0:Other:attr",
            f"Schema definition '{CORE_ID}' does not declare schema extension "
            "for namespaced target 'urn:ietf:params:scim:schemas:other:2.0:Other:attr'",
        ),
    ),
)
def test_attribute_is_not_found_if_not_declared(fake_definition, name, expected_message):
    with pytest.raises(TypeError, match=re.escape(expected_message)):
        fake_definition.attribute(name)


def test_extension_attributes_are_found_by_namespaced_name(fake_definition, fake_extension):
    fake_definition.extend(fake_extension)

    assert fake_definition.attribute(EXTENSION_ID) is fake_extension
    assert fake_definition.attribute(f"{EXTENSION_ID}:manager.value").name == "value"
    with pytest.raises(
        TypeError,
        match=re.escape(f"Schema definition '{EXTENSION_ID}' does not declare attribute 'id'"),
    ):
        fake_definition.attribute(f"{EXTENSION_ID}:id")


def test_extension_is_bound_once(fake_definition, fake_extension):
    fake_definition.extend(fake_extension, required=True)
    fake_definition.extend(fake_extension)

    assert fake_definition.extensions == [ExtensionBinding(fake_extension, True)]
    with pytest.raises(
        TypeError,
        match=re.escape(
            f"Schema definition '{CORE_ID}' already declares extension '{EXTENSION_ID}'"
        ),
    ):
        fake_definition.extend(create_fake_extension())


def test_same_extension_can_be_bound_to_many_schemas(fake_extension):
    first = SchemaDefinition("First", "urn:ietf:params:scim:schemas:test:2.0:First")
    second = SchemaDefinition("Second", "urn:ietf:params:scim:schemas:test:2.0:Second")

    first.extend(fake_extension, required=True)
    second.extend(fake_extension)

    assert first.extensions[0].required is True
    assert second.extensions[0].required is False
    assert first.extensions[0].definition is second.extensions[0].definition


def test_extensions_of_extension_are_bound_to_schema(fake_definition, fake_extension):
    nested = SchemaDefinition(
        "Nested", "urn:ietf:params:scim:schemas:extension:test:2.0:Nested", "", [String("x")]
    )
    fake_extension.extend(nested, required=True)

    fake_definition.extend(fake_extension)

    assert [binding.id for binding in fake_definition.extensions] == [EXTENSION_ID, nested.id]
    assert fake_definition.extensions[1].required is True


def test_attributes_are_added_to_schema_definition(fake_definition):
    extra = String("extra")

    fake_definition.extend([extra, Integer("another")])

    assert fake_definition.attribute("extra") is extra
    with pytest.raises(
        TypeError,
        match=re.escape(f"Schema definition '{CORE_ID}' already declares attribute 'STR'"),
    ):
        fake_definition.extend(String("STR"))


def test_attributes_are_removed_from_schema_definition(fake_definition, fake_extension):
    fake_definition.extend(fake_extension)

    fake_definition.truncate("str", "c_mv.type", fake_extension)

    with pytest.raises(TypeError, match="does not declare attribute 'str'"):
        fake_definition.attribute("str")
    with pytest.raises(TypeError, match="does not declare subAttribute 'type'"):
        fake_definition.attribute("c_mv.type")
    assert fake_definition.extensions == []


def test_data_is_coerced_by_schema_definition(fake_definition):
    data = fake_definition.coerce({"UserName": "bjensen", "int": "42", "str_mv": ["a", "b"]})

    assert data["userName"] == "bjensen"
    assert data["int"] == 42
    assert isinstance(data["str_mv"], MultiValue)
    assert dump(data) == {
        "schemas": [CORE_ID],
        "meta": {"resourceType": "Fake"},
        "userName": "bjensen",
        "int": 42,
        "str_mv": ["a", "b"],
    }


def test_id_is_required_for_outbound_data(fake_definition):
    with pytest.raises(TypeError, match="Required attribute 'id' is missing"):
        fake_definition.coerce({"userName": "bjensen"}, "out")


def test_outbound_attributes_are_ignored_for_inbound_data(fake_definition):
    data = fake_definition.coerce({"id": "1", "userName": "bjensen"}, "in")

    assert "id" not in data


def test_location_is_populated_from_basepath(fake_definition):
    data = fake_definition.coerce(
        {"id": "1", "userName": "bjensen"}, "out", basepath="https://example.com/v2/Fakes"
    )

    assert data["meta"]["location"] == "https://example.com/v2/Fakes/1"


def test_extension_values_are_merged_from_object_and_namespaced_keys(
    fake_definition, fake_extension
):
    fake_definition.extend(fake_extension)

    data = fake_definition.coerce(
        {
            "userName": "bjensen",
            EXTENSION_ID: {"employeeNumber": "701984"},
            f"{EXTENSION_ID}:level": 3,
            f"{EXTENSION_ID}:manager.value": "26118915-6090-4610-87e4-49d8ca9f808d",
        }
    )

    assert data["schemas"] == [CORE_ID, EXTENSION_ID]
    assert dump(data[EXTENSION_ID]) == {
        "employeeNumber": "701984",
        "level": 3,
        "manager": {"value": "26118915-6090-4610-87e4-49d8ca9f808d"},
    }


def test_extension_errors_are_reported_with_extension_id(fake_definition, fake_extension):
    fake_definition.extend(fake_extension)

    with pytest.raises(
        TypeError,
        match=re.escape(
            "Attribute 'level' expected value type 'integer' but found type 'string' "
            f"in schema extension '{EXTENSION_ID}'"
        ),
    ):
        fake_definition.coerce({"userName": "bjensen", EXTENSION_ID: {"level": "high"}})


def test_required_extension_values_must_be_present(fake_definition, fake_extension):
    fake_definition.extend(fake_extension, required=True)

    with pytest.raises(
        TypeError, match=re.escape(f"Missing values for required schema extension '{EXTENSION_ID}'")
    ):
        fake_definition.coerce({"userName": "bjensen"})


def test_coerced_data_is_filtered_by_included_attributes(fake_definition):
    data = fake_definition.coerce(
        {"id": "1", "userName": "bjensen", "str": "x"},
        filters=Filter("userName pr"),
    )

    assert dump(data) == {
        "schemas": [CORE_ID],
        "id": "1",
        "meta": {"resourceType": "Fake"},
        "userName": "bjensen",
    }


def test_coerced_data_is_filtered_by_excluded_attributes(fake_definition):
    data = fake_definition.coerce(
        {"userName": "bjensen", "str": "x", "int": 1},
        filters=Filter("str np and int np"),
    )

    assert "str" not in data
    assert "int" not in data
    assert data["userName"] == "bjensen"


def test_coerced_data_is_filtered_by_included_sub_attributes(fake_definition):
    data = fake_definition.coerce(
        {
            "userName": "bjensen",
            "c_mv": [{"value": "a", "type": "x"}, {"value": "b", "primary": True}],
        },
        filters=Filter("c_mv.value pr"),
    )

    assert data["c_mv"].to_list() == [{"value": "a"}, {"value": "b"}]
    assert "userName" not in data


def test_schema_class_requires_definition():
    class Broken(Schema):
        pass

    with pytest.raises(
        TypeError, match="Class attribute 'definition' must be specified by schema 'Broken'"
    ):
        Broken({})


def test_schema_values_are_read_ignoring_case(fake_schema):
    instance = fake_schema({"userName": "bjensen", "c": {"value": "x"}})

    assert instance["USERNAME"] == "bjensen"
    assert instance[f"{CORE_ID}:userName"] == "bjensen"
    assert instance["str"] is None
    assert isinstance(instance["c"], ComplexValue)
    assert instance["meta"]["resourceType"] == "Fake"
    assert "username" in instance
    assert "str" not in instance
    assert "unknown" not in instance


def test_undeclared_schema_value_can_not_be_read(fake_schema):
    instance = fake_schema({"userName": "bjensen"})

    with pytest.raises(UndeclaredAttributeError) as exc_info:
        _ = instance["c.value"]

    assert exc_info.value.name == "c.value"
    assert str(exc_info.value) == f"Schema '{CORE_ID}' does not declare attribute 'c.value'"


def test_schema_values_are_coerced_on_write(fake_schema):
    instance = fake_schema({"userName": "bjensen"})

    instance["int"] = "5"
    instance["c_mv"] = [{"value": "a"}]

    assert instance["int"] == 5
    assert isinstance(instance["c_mv"], MultiValue)
    with pytest.raises(
        ScimError,
        match=re.escape("Attribute 'int' expected value type 'integer' but found type 'string'"),
    ) as exc_info:
        instance["int"] = "five"
    assert exc_info.value.scim_type == ScimErrorType.INVALID_VALUE
    assert instance["int"] == 5


def test_immutable_schema_value_can_not_be_changed(fake_schema):
    instance = fake_schema({"userName": "bjensen", "fixed": "x"})

    instance["fixed"] = "x"
    with pytest.raises(
        ScimError, match="Attribute 'fixed' already defined and is not mutable"
    ) as exc_info:
        instance["fixed"] = "y"

    assert exc_info.value.scim_type == ScimErrorType.MUTABILITY
    assert instance["fixed"] == "x"


def test_immutable_schema_value_can_be_set_if_not_defined(fake_schema):
    instance = fake_schema({"userName": "bjensen"})

    instance["fixed"] = "y"

    assert instance["fixed"] == "y"


def test_schema_value_is_removed(fake_schema):
    instance = fake_schema({"userName": "bjensen", "str": "x"})

    del instance["str"]

    assert "str" not in instance
    with pytest.raises(ScimError, match="Required attribute 'userName' is missing"):
        del instance["userName"]


def test_incompatible_schemas_are_rejected(fake_schema):
    with pytest.raises(
        ScimError,
        match="The request body supplied a schema type that is incompatible with this resource",
    ) as exc_info:
        fake_schema({"schemas": ["urn:ietf:params:scim:schemas:core:2.0:User"], "userName": "a"})

    assert exc_info.value.scim_type == ScimErrorType.INVALID_SYNTAX


def test_required_extension_must_be_listed_in_schemas(fake_extension):
    class FakeSchema(Schema):
        definition = SchemaDefinition("Fake", CORE_ID, "", [String("userName")])

    FakeSchema.extend(fake_extension, required=True)

    with pytest.raises(
        ScimError,
        match=re.escape(
            f"The request body is missing schema extension '{EXTENSION_ID}' "
            "required by this resource type"
        ),
    ):
        FakeSchema({"schemas": [CORE_ID], "userName": "a"})


def test_extension_values_are_read_and_written(fake_schema_with_extension):
    instance = fake_schema_with_extension({"userName": "bjensen", EXTENSION_ID: {"level": 1}})

    instance[f"{EXTENSION_ID}:employeeNumber"] = "701984"

    assert instance[EXTENSION_ID]["level"] == 1
    assert instance[f"{EXTENSION_ID}:LEVEL"] == 1
    assert instance[f"{EXTENSION_ID}:employeeNumber"] == "701984"
    assert instance[f"{EXTENSION_ID}:manager.value"] is None
    assert instance.to_dict()[EXTENSION_ID] == {"level": 1, "employeeNumber": "701984"}


def test_extension_value_write_is_coerced(fake_schema_with_extension):
    instance = fake_schema_with_extension({"userName": "bjensen", EXTENSION_ID: {"level": 1}})

    instance[EXTENSION_ID]["level"] = "2"

    assert instance[f"{EXTENSION_ID}:level"] == 2
    with pytest.raises(ScimError, match="Attribute 'level' expected value type 'integer'"):
        instance[EXTENSION_ID]["level"] = "two"
    with pytest.raises(UndeclaredAttributeError):
        instance[EXTENSION_ID]["userName"] = "x"


def test_extension_is_removed(fake_schema_with_extension):
    instance = fake_schema_with_extension({"userName": "bjensen", EXTENSION_ID: {"level": 1}})

    del instance[EXTENSION_ID]

    assert instance[EXTENSION_ID] is None
    assert EXTENSION_ID not in instance.to_dict()


def test_schema_is_converted_to_dict(fake_schema):
    instance = fake_schema({"userName": "bjensen", "secret": "s3cr3t", "str_mv": ["x"]})

    assert instance["secret"] == "s3cr3t"
    assert instance.to_dict() == {
        "schemas": [CORE_ID],
        "meta": {"resourceType": "Fake"},
        "userName": "bjensen",
        "str_mv": ["x"],
    }


def test_schema_instance_is_copied(fake_schema):
    instance = fake_schema({"userName": "bjensen", "secret": "s3cr3t", "c_mv": [{"value": "a"}]})

    copy = fake_schema(instance)

    assert copy.to_dict() == instance.to_dict()
    assert copy["secret"] == "s3cr3t"
    assert copy["c_mv"] is not instance["c_mv"]


def test_schema_class_is_extended_with_attributes(fake_schema):
    fake_schema.extend(Complex("extra", sub_attributes=[String("value")]))

    instance = fake_schema({"userName": "bjensen", "extra": {"value": "x"}})

    assert instance["extra"]["value"] == "x"


def test_schema_class_extension_requires_valid_target(fake_schema):
    with pytest.raises(
        TypeError,
        match="Expected 'extension' to be a Schema class, SchemaDefinition instance, "
        "or collection of Attribute instances",
    ):
        fake_schema.extend("extra")


def test_schema_class_attributes_are_truncated(fake_schema):
    fake_schema.truncate("str")

    with pytest.raises(KeyError):
        fake_schema({"userName": "bjensen"})["str"]
