import logging
import re
from datetime import datetime, timezone

import pytest

from scimkit.data.attrs import (
    AttributeMutability,
    AttributeReturn,
    Binary,
    Boolean,
    Complex,
    DateTime,
    Decimal,
    Integer,
    Reference,
    String,
    create_attribute,
)
from scimkit.data.values import ComplexValue, MultiValue


@pytest.mark.parametrize(
    ("name", "expected_message"),
    (
        ("user name", "Invalid character ' ' in name of attribute definition 'user name'"),
        ("@name", "Invalid leading character '@' in name of attribute definition '@name'"),
        ("name!", "Invalid character '!' in name of attribute definition 'name!'"),
    ),
)
def test_attribute_name_is_validated(name, expected_message):
    with pytest.raises(TypeError, match=re.escape(expected_message)):
        String(name)


@pytest.mark.parametrize("name", ("userName", "$ref", "x509Certificates", "str_cs_mv", "-x"))
def test_valid_attribute_names_are_accepted(name):
    assert String(name).name == name


@pytest.mark.parametrize(
    ("config", "expected_message"),
    (
        (
            {"multi_valued": "yes"},
            "Attribute 'multiValued' value must be either 'true' or 'false' "
            "in attribute definition 'attr'",
        ),
        (
            {"canonical_values": "work"},
            "Attribute 'canonicalValues' value must be either a collection or 'false' "
            "in attribute definition 'attr'",
        ),
        (
            {"mutable": "sometimes"},
            "Attribute 'mutability' value 'sometimes' not recognised "
            "in attribute definition 'attr'",
        ),
        (
            {"returned": 1},
            "Attribute 'returned' value must be either string or boolean "
            "in attribute definition 'attr'",
        ),
        (
            {"direction": "sideways"},
            "Attribute 'direction' value 'sideways' not recognised "
            "in attribute definition 'attr'",
        ),
    ),
)
def test_attribute_config_is_validated(config, expected_message):
    with pytest.raises(TypeError, match=re.escape(expected_message)):
        String("attr", **config)


def test_attribute_config_is_validated_after_creation():
    attr = String("attr")

    with pytest.raises(TypeError, match="Attribute 'required' value must be either"):
        attr.config.required = "yes"

    assert attr.config.required is False


def test_attribute_config_does_not_accept_new_characteristics():
    attr = String("attr")

    with pytest.raises(AttributeError):
        attr.config.colour = "red"


@pytest.mark.parametrize(
    ("config", "expected"),
    (
        ({}, AttributeMutability.READ_WRITE),
        ({"mutable": False}, AttributeMutability.READ_ONLY),
        ({"direction": "in"}, AttributeMutability.WRITE_ONLY),
        ({"mutable": "immutable"}, AttributeMutability.IMMUTABLE),
    ),
)
def test_mutability_is_derived_from_config(config, expected):
    assert String("attr", **config).config.mutability == expected


@pytest.mark.parametrize(
    ("returned", "expected", "never_returned"),
    (
        (True, AttributeReturn.DEFAULT, False),
        (False, AttributeReturn.NEVER, True),
        ("never", AttributeReturn.NEVER, True),
        ("always", AttributeReturn.ALWAYS, False),
        ("request", AttributeReturn.REQUEST, False),
    ),
)
def test_returned_characteristic_is_derived_from_config(returned, expected, never_returned):
    config = String("attr", returned=returned).config

    assert config.returned_characteristic == expected
    assert config.never_returned is never_returned


@pytest.mark.parametrize(
    ("attr", "value", "expected"),
    (
        (Boolean("bool"), True, True),
        (Boolean("bool"), "TRUE", True),
        (Boolean("bool"), "false", False),
        (Integer("int"), 42, 42),
        (Integer("int"), "42", 42),
        (Integer("int"), -7, -7),
        (Integer("int"), 5.0, 5),
        (Decimal("decimal"), 5.0, 5.0),
        (Decimal("decimal"), 4.2, 4.2),
        (Decimal("decimal"), "4.2", 4.2),
        (String("str"), "value", "value"),
        (String("str"), "", ""),
        (DateTime("datetime"), "2024-01-01T10:00:00+02:00", "2024-01-01T08:00:00.000Z"),
        (DateTime("datetime"), "2024-01-01", "2024-01-01T00:00:00.000Z"),
        (
            DateTime("datetime"),
            datetime(2024, 1, 1, 8, 30, tzinfo=timezone.utc),
            "2024-01-01T08:30:00.000Z",
        ),
        (Binary("binary"), "aGVsbG8=", "aGVsbG8="),
        (Binary("binary"), "aGVsbG8", "aGVsbG8"),
        (Binary("binary"), b"hello", "aGVsbG8="),
        (
            Reference("ref", reference_types=["external"]),
            "https://example.com/users/1",
            "https://example.com/users/1",
        ),
        (Reference("ref", reference_types=["uri"]), "/Users/1", "/Users/1"),
        (
            Reference("ref", reference_types=["uri"]),
            "urn:ietf:params:scim:schemas:core:2.0:User",
            "urn:ietf:params:scim:schemas:core:2.0:User",
        ),
        (
            Reference("ref", reference_types=["User", "Group"]),
            "https://example.com/v2/Groups/1",
            "https://example.com/v2/Groups/1",
        ),
    ),
)
def test_value_is_coerced(attr, value, expected):
    assert attr.coerce(value) == expected


def test_whole_decimal_number_is_coerced_to_integer():
    value = Integer("int").coerce(5.0)

    assert value == 5
    assert isinstance(value, int)


@pytest.mark.parametrize(
    ("attr", "value", "expected_message"),
    (
        (
            Boolean("bool"),
            1,
            "Attribute 'bool' expected value type 'boolean' but found type 'number'",
        ),
        (
            Boolean("bool"),
            "yes",
            "Attribute 'bool' expected value type 'boolean' but found type 'string'",
        ),
        (
            Integer("int"),
            4.2,
            "Attribute 'int' expected value type 'integer' but found type 'decimal'",
        ),
        (
            Integer("int"),
            True,
            "Attribute 'int' expected value type 'integer' but found type 'boolean'",
        ),
        (
            Integer("int"),
            "forty-two",
            "Attribute 'int' expected value type 'integer' but found type 'string'",
        ),
        (
            Decimal("decimal"),
            42,
            "Attribute 'decimal' expected value type 'decimal' but found type 'integer'",
        ),
        (
            String("str"),
            42,
            "Attribute 'str' expected value type 'string' but found type 'number'",
        ),
        (
            String("str"),
            {"value": "x"},
            "Attribute 'str' expected value type 'string' but found type 'complex'",
        ),
        (
            DateTime("datetime"),
            "yesterday",
            "Attribute 'datetime' expected value to be a valid date",
        ),
        (
            DateTime("datetime"),
            True,
            "Attribute 'datetime' expected value type 'dateTime' but found type 'boolean'",
        ),
        (
            Binary("binary"),
            "not base64!",
            "Attribute 'binary' expected value type 'binary' "
            "to be base64 encoded string or binary octet stream",
        ),
        (
            Reference("ref", reference_types=["external"]),
            "/Users/1",
            "Attribute 'ref' expected value type 'reference' to refer to one of: 'external'",
        ),
        (
            Reference("ref"),
            "/Users/1",
            "Attribute 'ref' with type 'reference' does not specify any referenceTypes",
        ),
        (
            Complex("c", sub_attributes=[String("value")]),
            "value",
            "Complex attribute 'c' expected complex value but found type 'string'",
        ),
        (
            Complex("c", sub_attributes=[String("value")]),
            {"other": "x"},
            "Complex attribute 'c' does not declare subAttribute 'other'",
        ),
    ),
)
def test_invalid_value_is_not_coerced(attr, value, expected_message):
    with pytest.raises(TypeError, match=re.escape(expected_message)):
        attr.coerce(value)


def test_missing_required_value_is_reported():
    with pytest.raises(TypeError, match="Required attribute 'userName' is missing"):
        String("userName", required=True).coerce(None)


def test_missing_required_value_is_reported_only_in_attribute_direction():
    attr = String("id", required=True, direction="out")

    assert attr.coerce(None, "both") is None
    with pytest.raises(TypeError, match="Required attribute 'id' is missing"):
        attr.coerce(None, "out")


def test_value_is_not_coerced_if_attribute_does_not_participate_in_direction():
    attr = String("password", direction="in")

    assert attr.coerce("secret", "out") is None
    assert attr.coerce("secret", "in") == "secret"
    assert attr.coerce("secret", "both") == "secret"


def test_single_value_is_rejected_by_multi_valued_attribute():
    with pytest.raises(TypeError, match="Attribute 'tags' expected to be a collection"):
        String("tags", multi_valued=True).coerce("a")


def test_collection_is_rejected_by_single_valued_attribute():
    with pytest.raises(
        TypeError, match="Attribute 'tag' is not multi-valued and must not be a collection"
    ):
        String("tag").coerce(["a", "b"])


def test_multi_valued_attribute_is_coerced_to_multi_value():
    value = Integer("numbers", multi_valued=True).coerce(["1", 2])

    assert isinstance(value, MultiValue)
    assert value == [1, 2]


def test_non_canonical_value_is_rejected():
    attr = String("type", canonical_values=["work", "home"])

    assert attr.coerce("work") == "work"
    with pytest.raises(TypeError, match="Attribute 'type' contains non-canonical value"):
        attr.coerce("other")


def test_non_canonical_value_in_collection_is_rejected():
    attr = String("types", multi_valued=True, canonical_values=["work", "home"])

    with pytest.raises(TypeError, match="Attribute 'types' contains non-canonical value"):
        attr.coerce(["work", "other"])


def test_complex_value_is_coerced_with_case_insensitive_names():
    attr = Complex("name", sub_attributes=[String("givenName"), String("familyName")])

    value = attr.coerce({"GIVENNAME": "Barbara", "familyname": "Jensen"})

    assert isinstance(value, ComplexValue)
    assert value["givenName"] == "Barbara"
    assert value["FamilyName"] == "Jensen"
    assert dict(value) == {"givenName": "Barbara", "familyName": "Jensen"}


def test_missing_required_sub_attribute_is_reported():
    attr = Complex("manager", sub_attributes=[String("value", required=True)])

    with pytest.raises(
        TypeError, match="Required attribute 'value' is missing from complex attribute 'manager'"
    ):
        attr.coerce({})


def test_empty_complex_value_is_created_for_single_valued_complex_attribute():
    value = Complex("name", sub_attributes=[String("givenName")]).coerce(None)

    assert isinstance(value, ComplexValue)
    assert len(value) == 0
    assert value["givenName"] is None


def test_multi_valued_complex_attribute_without_value_is_none():
    attr = Complex("emails", multi_valued=True, sub_attributes=[String("value")])

    assert attr.coerce(None) is None


def test_multi_valued_complex_attribute_is_coerced():
    attr = Complex(
        "emails",
        multi_valued=True,
        sub_attributes=[String("value"), Boolean("primary")],
    )

    value = attr.coerce([{"value": "a@example.com", "primary": "true"}, {"value": "b@example.com"}])

    assert isinstance(value, MultiValue)
    assert all(isinstance(item, ComplexValue) for item in value)
    assert value.to_list() == [
        {"value": "a@example.com", "primary": True},
        {"value": "b@example.com"},
    ]


def test_soft_validator_findings_are_logged_as_warnings(caplog):
    attr = String("email", validators=[lambda value: None if "@" in value else "missing '@'"])

    with caplog.at_level(logging.WARNING, logger="scimkit.data.attrs"):
        assert attr.coerce("bjensen") == "bjensen"
        assert attr.coerce("bjensen@example.com") == "bjensen@example.com"

    assert [record.getMessage() for record in caplog.records] == ["Attribute 'email': missing '@'"]


def test_complex_attribute_sub_attributes_are_looked_up_by_path():
    inner = String("value")
    attr = Complex("outer", sub_attributes=[Complex("inner", sub_attributes=[inner])])

    assert attr.attribute("INNER.value") is inner
    assert attr.attribute("inner.unknown") is None


def test_complex_attribute_sub_attributes_can_be_truncated():
    attr = Complex("name", sub_attributes=[String("givenName"), String("familyName")])

    attr.truncate("givenName", "unknown")

    assert [sub_attr.name for sub_attr in attr.sub_attributes] == ["familyName"]


@pytest.mark.parametrize(
    ("attr", "expected"),
    (
        (
            String("userName", required=True, uniqueness="server", description="Login"),
            {
                "name": "userName",
                "type": "string",
                "multiValued": False,
                "description": "Login",
                "required": True,
                "caseExact": False,
                "mutability": "readWrite",
                "returned": "default",
                "uniqueness": "server",
            },
        ),
        (
            Boolean("active"),
            {
                "name": "active",
                "type": "boolean",
                "multiValued": False,
                "description": "",
                "required": False,
                "mutability": "readWrite",
                "returned": "default",
            },
        ),
        (
            Reference("profileUrl", reference_types=["external"], mutable=False),
            {
                "name": "profileUrl",
                "type": "reference",
                "referenceTypes": ["external"],
                "multiValued": False,
                "description": "",
                "required": False,
                "caseExact": False,
                "mutability": "readOnly",
                "returned": "default",
                "uniqueness": "none",
            },
        ),
        (
            Complex(
                "emails",
                multi_valued=True,
                uniqueness=False,
                sub_attributes=[
                    String("value"),
                    String("type", canonical_values=["work"], returned=False),
                    String("hidden", shadow=True),
                ],
            ),
            {
                "name": "emails",
                "type": "complex",
                "multiValued": True,
                "description": "",
                "required": False,
                "subAttributes": [
                    {
                        "name": "value",
                        "type": "string",
                        "multiValued": False,
                        "description": "",
                        "required": False,
                        "caseExact": False,
                        "mutability": "readWrite",
                        "returned": "default",
                        "uniqueness": "none",
                    },
                    {
                        "name": "type",
                        "type": "string",
                        "multiValued": False,
                        "description": "",
                        "required": False,
                        "caseExact": False,
                        "canonicalValues": ["work"],
                        "mutability": "readWrite",
                        "returned": "never",
                        "uniqueness": "none",
                    },
                ],
                "mutability": "readWrite",
                "returned": "default",
            },
        ),
    ),
)
def test_attribute_is_described(attr, expected):
    assert attr.to_dict() == expected


def test_attribute_is_created_by_type_name():
    attr = create_attribute("string", "userName", required=True)

    assert isinstance(attr, String)
    assert attr.config.required is True


def test_complex_attribute_is_created_by_type_name():
    attr = create_attribute("complex", "name", sub_attributes=[String("givenName")])

    assert isinstance(attr, Complex)
    assert attr.attribute("givenName") is not None


@pytest.mark.parametrize(
    ("args", "kwargs", "expected_message"),
    (
        (("unknown", "attr"), {}, "Type 'unknown' not recognised in attribute definition 'attr'"),
        (
            ("string", "attr"),
            {"sub_attributes": [String("value")]},
            "Attribute type must be 'complex' when subAttributes are specified "
            "in attribute definition 'attr'",
        ),
        ((None, "attr"), {}, "Required parameter 'type' missing from Attribute instantiation"),
        (("string", None), {}, "Required parameter 'name' missing from Attribute instantiation"),
    ),
)
def test_attribute_creation_fails_for_invalid_input(args, kwargs, expected_message):
    with pytest.raises(TypeError, match=re.escape(expected_message)):
        create_attribute(*args, **kwargs)
