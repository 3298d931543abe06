from copy import deepcopy

import pytest

from scimkit.data.attrs import (
    Binary,
    Boolean,
    Complex,
    DateTime,
    Decimal,
    Integer,
    Reference,
    String,
)
from scimkit.data.schemas import Schema, SchemaDefinition
from scimkit.schemas import Group, User

CORE_ID = "urn:ietf:params:scim:schemas:test:2.0:Fake"
EXTENSION_ID = "urn:ietf:params:scim:schemas:extension:test:2.0:Fake"


def create_fake_definition() -> SchemaDefinition:
    return SchemaDefinition(
        "Fake",
        CORE_ID,
        "Schema for tests",
        [
            Integer("int"),
            String("str"),
            String("str_cs", case_exact=True),
            String("str_mv", multi_valued=True),
            String("str_cs_mv", case_exact=True, multi_valued=True),
            Boolean("bool"),
            DateTime("datetime"),
            Decimal("decimal"),
            Binary("binary"),
            Reference("external_ref", reference_types=["external"]),
            Reference("uri_ref", reference_types=["uri"]),
            Reference("fake_ref", reference_types=["Fake"]),
            Complex("c", sub_attributes=[String("value")]),
            Complex(
                "c_mv",
                multi_valued=True,
                sub_attributes=[String("value"), String("type"), Boolean("primary")],
            ),
            Complex(
                "c2",
                sub_attributes=[String("str"), Integer("int"), Boolean("bool", required=True)],
            ),
            String("userName", required=True),
            String("secret", returned=False),
            String("fixed", mutable=False),
        ],
    )


def create_fake_extension() -> SchemaDefinition:
    return SchemaDefinition(
        "FakeExtension",
        EXTENSION_ID,
        "Schema extension for tests",
        [
            String("employeeNumber"),
            Integer("level"),
            Complex(
                "manager",
                sub_attributes=[String("value"), String("displayName", mutable=False)],
            ),
        ],
    )


@pytest.fixture
def fake_definition() -> SchemaDefinition:
    return create_fake_definition()


@pytest.fixture
def fake_extension() -> SchemaDefinition:
    return create_fake_extension()


@pytest.fixture
def fake_schema():
    class FakeSchema(Schema):
        definition = create_fake_definition()

    return FakeSchema


@pytest.fixture
def fake_schema_with_extension():
    class FakeExtension(Schema):
        definition = create_fake_extension()

    class FakeSchema(Schema):
        definition = create_fake_definition()

    FakeSchema.extend(FakeExtension)
    return FakeSchema


_user_data = {
    "schemas": ["urn:ietf:params:scim:schemas:core:2.0:User"],
    "id": "2819c223-7f76-453a-919d-413861904646",
    "externalId": "bjensen",
    "userName": "bjensen@example.com",
    "name": {
        "formatted": "Ms. Barbara J Jensen, III",
        "familyName": "Jensen",
        "givenName": "Barbara",
        "middleName": "Jane",
        "honorificPrefix": "Ms.",
        "honorificSuffix": "III",
    },
    "displayName": "Babs Jensen",
    "nickName": "Babs",
    "profileUrl": "https://login.example.com/bjensen",
    "emails": [
        {"value": "bjensen@example.com", "type": "work", "primary": True},
        {"value": "babs@jensen.org", "type": "home"},
    ],
    "addresses": [
        {
            "streetAddress": "100 Universal City Plaza",
            "locality": "Hollywood",
            "region": "CA",
            "postalCode": "91608",
            "country": "US",
            "formatted": "100 Universal City Plaza\nHollywood, CA 91608 USA",
            "type": "work",
            "primary": True,
        },
        {
            "streetAddress": "456 Hollywood Blvd",
            "locality": "Hollywood",
            "region": "CA",
            "postalCode": "91608",
            "country": "US",
            "formatted": "456 Hollywood Blvd\nHollywood, CA 91608 USA",
            "type": "home",
        },
    ],
    "phoneNumbers": [
        {"value": "+1 201-555-0123", "type": "work"},
        {"value": "+1 201-555-0124", "type": "mobile"},
    ],
    "ims": [{"value": "someaimhandle", "type": "aim"}],
    "photos": [
        {"value": "https://photos.example.com/profilephoto/72930000000Ccne/F", "type": "photo"},
        {
            "value": "https://photos.example.com/profilephoto/72930000000Ccne/T",
            "type": "thumbnail",
        },
    ],
    "userType": "Employee",
    "title": "Tour Guide",
    "preferredLanguage": "en-US",
    "locale": "en-US",
    "timezone": "America/Los_Angeles",
    "active": True,
    "x509Certificates": [
        {"value": "MIIDQzCCAqygAwIBAgICEAAwDQYJKoZIhvcNAQEFBQAwTjELMAkGA1UEBhMCVVMx"}
    ],
    "meta": {
        "resourceType": "User",
        "created": "2010-01-23T04:56:22Z",
        "lastModified": "2011-05-13T04:42:34Z",
        "version": 'W/"a330bc54f0671c9"',
        "location": "https://example.com/v2/Users/2819c223-7f76-453a-919d-413861904646",
    },
}

_group_data = {
    "schemas": ["urn:ietf:params:scim:schemas:core:2.0:Group"],
    "id": "e9e30dba-f08f-4109-8486-d5c6a331660a",
    "displayName": "Tour Guides",
    "members": [
        {
            "value": "2819c223-7f76-453a-919d-413861904646",
            "$ref": "https://example.com/v2/Users/2819c223-7f76-453a-919d-413861904646",
            "type": "User",
        },
        {
            "value": "902c246b-6245-4190-8e05-00816be7344a",
            "$ref": "https://example.com/v2/Users/902c246b-6245-4190-8e05-00816be7344a",
            "type": "User",
        },
    ],
    "meta": {
        "resourceType": "Group",
        "created": "2010-01-23T04:56:22Z",
        "lastModified": "2011-05-13T04:42:34Z",
        "version": 'W/"3694e05e9dff592"',
        "location": "https://example.com/v2/Groups/e9e30dba-f08f-4109-8486-d5c6a331660a",
    },
}


@pytest.fixture
def user_data():
    return deepcopy(_user_data)


@pytest.fixture
def group_data():
    return deepcopy(_group_data)


@pytest.fixture
def user(user_data) -> User:
    return User(user_data)


@pytest.fixture
def group(group_data) -> Group:
    return Group(group_data)
