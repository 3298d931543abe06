import re

import pytest

from scimkit.data.filter import is_excluded_attributes_filter
from scimkit.error import ScimError, ScimErrorType
from scimkit.messages.list_response import ListResponse
from scimkit.query import QueryParams
from scimkit.schemas import User


def test_empty_query_params_are_parsed():
    params = QueryParams.parse({})

    assert params.filter is None
    assert params.attributes is None
    assert params.constraints == {}


def test_filter_is_parsed_against_schema_definition():
    params = QueryParams.parse({"filter": 'userName eq "BJENSEN"'}, User.definition)

    assert params.filter == [{"userName": ["eq", "BJENSEN"]}]
    assert params.filter.match([{"userName": "bjensen"}]) == [{"userName": "bjensen"}]


def test_id_is_parsed_as_equality_filter():
    params = QueryParams.parse({"id": 'weird"id', "filter": "title pr"})

    assert params.filter == [{"id": ["eq", 'weird"id']}]


def test_attributes_are_parsed_as_presence_filter():
    params = QueryParams.parse({"attributes": "userName, name.givenName,,emails"})

    assert params.attributes == [
        {"userName": ["pr"], "name": {"givenName": ["pr"]}, "emails": ["pr"]}
    ]
    assert not is_excluded_attributes_filter(params.attributes)


def test_excluded_attributes_are_parsed_as_absence_filter():
    params = QueryParams.parse({"excludedAttributes": "emails,groups"})

    assert params.attributes == [{"emails": ["np"], "groups": ["np"]}]
    assert is_excluded_attributes_filter(params.attributes)


def test_attributes_take_precedence_over_excluded_attributes():
    params = QueryParams.parse({"attributes": "userName", "excludedAttributes": "userName"})

    assert params.attributes == [{"userName": ["pr"]}]


def test_sort_and_pagination_params_are_parsed_into_constraints():
    params = QueryParams.parse(
        {"sortBy": "userName", "sortOrder": "descending", "startIndex": "2", "count": 1}
    )

    assert params.constraints == {
        "sortBy": "userName",
        "sortOrder": "descending",
        "startIndex": 2,
        "count": 1,
    }


def test_constraints_are_applied_by_list_response():
    resources = [{"userName": "a"}, {"userName": "b"}, {"userName": "c"}]
    params = QueryParams.parse({"sortBy": "userName", "sortOrder": "descending", "count": "1"})

    response = ListResponse(resources, params.constraints)

    assert response.resources == [{"userName": "c"}]
    assert response.total_results == 3


@pytest.mark.parametrize(
    ("params", "scim_type", "expected_message"),
    (
        (
            [("filter", "title pr")],
            ScimErrorType.INVALID_SYNTAX,
            "Expected query parameters to be a single complex object value",
        ),
        ({"id": ""}, ScimErrorType.INVALID_VALUE, "Expected id to be a non-empty string"),
        ({"id": 1}, ScimErrorType.INVALID_VALUE, "Expected id to be a non-empty string"),
        ({"filter": " "}, ScimErrorType.INVALID_FILTER, "Expected filter to be a non-empty string"),
        (
            {"filter": "userName eq"},
            ScimErrorType.INVALID_FILTER,
            "Missing expected value for 'eq' comparator of attribute 'userName' in filter",
        ),
        (
            {"attributes": ["userName"]},
            ScimErrorType.INVALID_FILTER,
            "Expected attributes to be a comma-separated list string",
        ),
        (
            {"excludedAttributes": 1},
            ScimErrorType.INVALID_FILTER,
            "Expected excludedAttributes to be a comma-separated list string",
        ),
        ({"sortBy": 1}, ScimErrorType.INVALID_VALUE, "Expected sortBy to be a string value"),
        (
            {"sortOrder": "up"},
            ScimErrorType.INVALID_VALUE,
            "Expected sortOrder to be either 'ascending' or 'descending'",
        ),
        (
            {"startIndex": "first"},
            ScimErrorType.INVALID_VALUE,
            "Expected startIndex to be an integer value",
        ),
        ({"count": True}, ScimErrorType.INVALID_VALUE, "Expected count to be an integer value"),
    ),
)
def test_invalid_query_params_are_rejected(params, scim_type, expected_message):
    with pytest.raises(ScimError, match=re.escape(expected_message)) as exc_info:
        QueryParams.parse(params)

    assert exc_info.value.scim_type == scim_type
